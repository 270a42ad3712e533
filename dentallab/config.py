"""
Runtime configuration for the dental lab API
Values come from the environment (optionally a .env file)
"""

from dotenv import load_dotenv
import os

load_dotenv()


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


class Settings:
    """Application settings"""

    def __init__(self):
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dentallab.db")
        self.SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-change-in-production")
        self.ACCESS_TOKEN_EXPIRE_MINUTES = _get_int("ACCESS_TOKEN_EXPIRE_MINUTES", 480)
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # Bootstrap admin account, created at startup when both are set
        self.ADMIN_USERNAME = os.getenv("ADMIN_USERNAME")
        self.ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
        self.ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")

        self.RATE_LIMIT_ENABLED = _get_bool("RATE_LIMIT_ENABLED", True)
        self.INCLUDE_ERROR_DETAILS = _get_bool("INCLUDE_ERROR_DETAILS", False)

        # Background sweeps
        self.SCHEDULER_ENABLED = _get_bool("SCHEDULER_ENABLED", True)
        self.UNPAID_GRACE_DAYS = _get_int("UNPAID_GRACE_DAYS", 7)
        self.PURGE_AFTER_DAYS = _get_int("PURGE_AFTER_DAYS", 365)
        self.NOTIFICATION_RETENTION_DAYS = _get_int("NOTIFICATION_RETENTION_DAYS", 30)
        self.UNPAID_CHECK_INTERVAL_HOURS = _get_int("UNPAID_CHECK_INTERVAL_HOURS", 24)
        self.PURGE_INTERVAL_HOURS = _get_int("PURGE_INTERVAL_HOURS", 24 * 7)
        self.NOTIFICATION_CLEANUP_INTERVAL_HOURS = _get_int("NOTIFICATION_CLEANUP_INTERVAL_HOURS", 24)


settings = Settings()
