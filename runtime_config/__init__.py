"""
runtime-config Package

Runtime configuration and progressive rollout service: scoped settings with
version gating, time windows, deterministic rollouts, optional value
encryption and a two-tier lookup cache, served over FastAPI.
"""

__version__ = "0.1.0"

__all__ = [
    "api",
    "core",
    "models",
    "services",
    "stores",
    "utils",
]
