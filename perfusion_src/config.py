"""Configuration management for the Perfusion Case Tracker."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
else:
    # Fall back to template for defaults
    template_path = Path(__file__).parent.parent / ".env.template"
    if template_path.exists():
        load_dotenv(template_path)

# New England organ donor service area
DEFAULT_ALLOWED_REGIONS = ["MA", "ME", "NH", "VT", "RI", "CT"]


class Config:
    """Application configuration."""

    # Organization code used as the case label prefix
    ORGANIZATION_CODE: str = os.getenv("ORGANIZATION_CODE", "NEDS")

    # Hospital directory settings
    ALLOWED_REGIONS: list[str] = [
        r.strip().upper()
        for r in os.getenv("ALLOWED_REGIONS", ",".join(DEFAULT_ALLOWED_REGIONS)).split(",")
        if r.strip()
    ]
    HOSPITAL_DATA_PATH: str | None = os.getenv("HOSPITAL_DATA_PATH") or None

    # Storage settings
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "memory")  # memory or sqlite
    PERFUSION_DB_PATH: str = os.getenv("PERFUSION_DB_PATH", "~/.perfusion/perfusion.db")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Admin passcode has no default; it must come from the environment
    ADMIN_PASSCODE: str | None = os.getenv("ADMIN_PASSCODE") or None

    @classmethod
    def is_admin_configured(cls) -> bool:
        """Check if an admin passcode has been provided."""
        return bool(cls.ADMIN_PASSCODE)

    @classmethod
    def get_db_path(cls) -> str:
        return os.path.expanduser(cls.PERFUSION_DB_PATH)


config = Config()
