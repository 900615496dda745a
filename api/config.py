"""
Environment-aware configuration.
Signing secret, document path, token lifetimes, CORS and logging.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # HMAC key for tokens and reset digests; unset means a random per-process key
    AUTH_SECRET = os.getenv("AUTH_SECRET")
    AUTH_DB_PATH = os.getenv("AUTH_DB_PATH", "squeeble_db.json")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "900")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "604800")))
    RESET_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("RESET_TOKEN_EXPIRES_SECONDS", "3600")))
    # Return raw reset tokens from /auth/password/forgot (no mail delivery wired up)
    EXPOSE_RESET_TOKEN = _flag("EXPOSE_RESET_TOKEN")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True
    EXPOSE_RESET_TOKEN = _flag("EXPOSE_RESET_TOKEN", "true")


class TestingConfig(BaseConfig):
    TESTING = True
    EXPOSE_RESET_TOKEN = True


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
