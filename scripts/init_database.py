#!/usr/bin/env python3
"""
Database Initialization Script

Creates the runtime settings tables and, with --seed, a couple of example
settings.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from runtime_config.core.logger import get_logger, setup_logging
from runtime_config.models import Base, RuntimeSetting
from runtime_config.services.runtime_config_engine import create_runtime_config_engine
from runtime_config.services.runtime_setting_models import WriteContext
from runtime_config.stores.database import engine, test_connection

logger = get_logger(__name__)

SEED_SETTINGS = [
    {
        "namespace": "client_release",
        "key": "minimum_supported_version",
        "value": {"version": "1.0.0", "force_update": False},
        "status": "published",
        "priority": 100,
        "metadata": {"description": "Oldest client build still allowed to start"},
    },
    {
        "namespace": "feature_flags",
        "key": "new_home_feed",
        "value": {"enabled": True},
        "status": "draft",
        "priority": 10,
        "rollout_strategy": {"mode": "percentage", "percentage": 10},
    },
]


def create_tables():
    """Create all database tables."""
    logger.info("Creating database tables...")

    # Referenced so the model is registered with Base before create_all
    _ = RuntimeSetting

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


async def seed_settings():
    engine_ = create_runtime_config_engine()
    for payload in SEED_SETTINGS:
        setting = await engine_.upsert_setting(payload, WriteContext(user_id="init_database"))
        logger.info("Seeded %s/%s (%s)", setting.namespace, setting.key, setting.id)


def main():
    """Main function to initialize the database."""
    parser = argparse.ArgumentParser(description="Initialize the runtime settings database")
    parser.add_argument("--seed", action="store_true", help="Insert example settings")
    args = parser.parse_args()

    setup_logging()
    try:
        logger.info("Starting database initialization...")

        connection_status = test_connection()
        logger.info("Database connection test passed: %s", connection_status)

        create_tables()

        if args.seed:
            asyncio.run(seed_settings())

        logger.info("Database initialization completed successfully")

    except Exception as e:
        logger.error("Database initialization failed: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
