from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Library Circulation API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/library_circulation"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Overdue checker interval (seconds)
    OVERDUE_CHECK_INTERVAL: int = 86400

    # Circulation policy
    DAILY_FINE_RATE: Decimal = Decimal("1.00")
    DEFAULT_ACTOR: str = "System"
    MEMBERSHIP_VALIDITY_DAYS: int = 365

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
