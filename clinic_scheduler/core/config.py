# clinic_scheduler/core/config.py
import os
import logging
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra='ignore')

    # Application Settings
    APP_NAME: str = "Clinic Scheduling Core"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database Settings
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./clinic_scheduler.db")

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Booking Settings
    APPOINTMENT_DURATION_MINUTES: int = 60
    BOOKING_LOCK_TIMEOUT_SECONDS: float = 5.0

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings: Settings = get_settings()


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )
