"""
runtime-config - Main Entry Point

Supports both CLI and API modes for flexible deployment.
"""

import argparse
import asyncio
import json
import os
import sys

from fastapi import FastAPI

from runtime_config.core.config import settings


async def run_cli_mode(args: argparse.Namespace) -> None:
    """
    Resolve the active settings for one client context and print them as JSON.
    """
    from runtime_config.core.logger import setup_logging
    from runtime_config.services.runtime_config_engine import (
        create_runtime_config_engine,
    )
    from runtime_config.stores.redis_client import close_redis_client

    setup_logging()
    engine = create_runtime_config_engine()
    try:
        active = await engine.get_active_settings(
            environment=args.environment,
            platform=args.platform,
            namespace=args.namespace,
            channel=args.channel,
            app_version=args.app_version,
            include_draft=args.include_draft,
            rollout_seed=args.rollout_seed,
            skip_cache=True,
        )
    finally:
        await close_redis_client()

    print(json.dumps(active, indent=2, ensure_ascii=False, sort_keys=True))


def create_app() -> FastAPI:
    """
    Factory function to create FastAPI application.

    This function is called by uvicorn in factory mode to avoid
    import-time side effects when running in CLI mode.

    Returns:
        FastAPI: Configured application instance
    """
    from runtime_config.api.factory import create_api
    from runtime_config.core.logger import setup_logging

    setup_logging()

    return create_api(
        title=settings.api__title,
        description=settings.api__description,
        version=settings.api__version,
        docs_url=settings.api__docs_url,
        redoc_url=settings.api__redoc_url,
        mount_prefix="/api",
    )


def main() -> None:
    """
    Main entry point with CLI argument parsing.
    """
    parser = argparse.ArgumentParser(
        description="runtime-config - Runtime configuration and rollout service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --mode api                              # Run as FastAPI server (default)
  python main.py --mode api --host 127.0.0.1 --port 3000 # Custom host/port
  python main.py --mode cli --environment production --platform ios --app-version 2.1.0
        """,
    )

    parser.add_argument(
        "--mode",
        choices=["cli", "api"],
        default="api",
        help="Run mode: 'api' for FastAPI server, 'cli' for a one-off lookup (default: api)",
    )
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "0.0.0.0"),
        help="Host to bind the API server (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "8080")),
        help="Port to bind the API server (default: 8080)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development (API mode only)",
    )

    lookup = parser.add_argument_group("lookup options (CLI mode only)")
    lookup.add_argument("--environment")
    lookup.add_argument("--platform")
    lookup.add_argument("--namespace")
    lookup.add_argument("--channel")
    lookup.add_argument("--app-version")
    lookup.add_argument("--rollout-seed")
    lookup.add_argument("--include-draft", action="store_true")

    args = parser.parse_args()

    if args.mode == "cli":
        try:
            asyncio.run(run_cli_mode(args))
        except KeyboardInterrupt:
            pass
        except Exception as e:
            print(f"❌ Lookup failed: {e}", file=sys.stderr)
            sys.exit(1)
        return

    print("🚀 Starting runtime-config API Server...")
    print(f"📍 Server will run on {args.host}:{args.port}")
    print(f"🌍 Environment: {settings.environment}")
    print(f"🐛 Debug mode: {settings.debug}")
    print(f"📚 API docs: http://{args.host}:{args.port}{settings.api__docs_url}")
    print(f"📖 ReDoc: http://{args.host}:{args.port}{settings.api__redoc_url}")
    print()

    try:
        # Import uvicorn here to avoid import-time side effects in CLI mode
        import uvicorn

        uvicorn.run(
            "main:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=args.reload or settings.debug,
            log_level=str(settings.log_level).lower(),
        )
    except Exception as e:
        print(f"❌ Error starting API server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
