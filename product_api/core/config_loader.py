"""Environment detection and .env file selection utilities."""

import os
from pathlib import Path

from product_api.core.enums import Environment

__all__ = ["Environment", "get_current_environment", "get_env_file", "get_env_files"]

# product_api/env_files/
_ENV_FILES_DIR = Path(__file__).parent.parent / "env_files"


def get_current_environment() -> Environment:
    """Get current environment from ENV variable (defaults to LOCAL)."""
    env_value = os.getenv("ENV", Environment.LOCAL.value)
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.LOCAL


def get_env_file(override: Environment | None = None) -> str:
    """Absolute path to the environment .env file (e.g. ".../env_files/.env_local")."""
    env = get_current_environment()

    # Override is honoured only when running locally
    if env is Environment.LOCAL and override:
        env = override

    return str(_ENV_FILES_DIR / f".env_{env.value}")


def get_env_files(override: Environment | None = None) -> tuple[str, ...]:
    """Get .env files to load (base + environment-specific).

    Args:
        override: Override environment (local mode only)

    Returns:
        Absolute .env file paths in load order, base first. Later files win.
    """
    return (str(_ENV_FILES_DIR / ".env_base"), get_env_file(override))
