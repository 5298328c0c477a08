"""Application settings read from the environment (and an optional .env file)."""
import os


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///vehicle_rental.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # payment processor: "fake" for local runs, "http" for a real gateway
    PAYMENT_PROCESSOR = os.getenv("PAYMENT_PROCESSOR", "fake")
    PAYMENT_API_BASE = os.getenv("PAYMENT_API_BASE", "")
    PAYMENT_API_KEY = os.getenv("PAYMENT_API_KEY", "")
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "usd")
    PAYMENT_TIMEOUT_SECONDS = _env_int("PAYMENT_TIMEOUT_SECONDS", 10)
    # falls back to SECRET_KEY when unset
    PAYMENT_TOKEN_KEY = os.getenv("PAYMENT_TOKEN_KEY")

    CANCELLATION_WINDOW_HOURS = _env_int("CANCELLATION_WINDOW_HOURS", 24)
    DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "Pacific/Auckland")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    PAYMENT_PROCESSOR = "fake"
    PAYMENT_TOKEN_KEY = "test-token-key"
    LOG_LEVEL = "DEBUG"
