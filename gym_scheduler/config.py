# gym_scheduler/config.py
from typing import List

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./gym_scheduler.db"
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: float = 60 * 24  # supports decimal durations

    # Scheduling rules
    SCHEDULE_TIMEZONE: str = "UTC"  # day boundaries for the daily limit
    SCHEDULE_DURATION_HOURS: int = 2
    MAX_SCHEDULES_PER_DAY: int = 5
    DEFAULT_MAX_TRAINEES: int = 10

    CORS_ORIGINS: str = "*"  # comma-separated
    LOG_LEVEL: str = "INFO"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"

settings = Settings()
