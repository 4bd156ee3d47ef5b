"""
Application configuration loaded from environment variables.

A `.env` file next to the package (or in the working directory) is read
first; real environment variables win over it.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

package_dir = Path(__file__).resolve().parent
load_dotenv(package_dir.parent / ".env")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in ("false", "0", "")


class Config:
    """Application configuration."""

    # Storage: any SQLAlchemy URL; SQLite file by default
    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{package_dir.parent / 'rotations.db'}")
    DEBUG = _env_flag("DEBUG", False)  # echo SQL

    # Calendar
    TIMEZONE = os.getenv("TIMEZONE", "UTC")
    INTERNSHIP_DAYS = int(os.getenv("INTERNSHIP_DAYS", "365"))
    MAX_EXTENSION_DAYS = 365

    # Scheduling rules (defaults for the runtime settings table)
    AUTO_ROTATION = _env_flag("AUTO_ROTATION", True)
    ALLOW_OVERLAP = _env_flag("ALLOW_OVERLAP", False)
    AUTO_GENERATE_ON_CREATE = _env_flag("AUTO_GENERATE_ON_CREATE", False)

    # Server
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "8000"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


config = Config()


def configure_logging(level=None):
    """Set the root logger format and level once per process."""
    logging.basicConfig(
        level=level or config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
