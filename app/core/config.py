from pydantic_settings import BaseSettings
from typing import Dict, List, Union
from pydantic import field_validator
import json


def _default_weekly_schedule() -> Dict[str, dict]:
    """Mon-Fri 09:00-17:00, weekends closed."""
    weekday = {"enabled": True, "slots": [{"start": "09:00", "end": "17:00"}]}
    closed = {"enabled": False, "slots": []}
    return {
        "monday": dict(weekday),
        "tuesday": dict(weekday),
        "wednesday": dict(weekday),
        "thursday": dict(weekday),
        "friday": dict(weekday),
        "saturday": dict(closed),
        "sunday": dict(closed),
    }


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Recruitment Scheduling API"

    # Database Settings
    POSTGRES_USER: str = "user"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: str = "recruitment_db"

    @property
    def DATABASE_URL(self) -> str:
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Redis Settings (for Celery task queue)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # JWT Settings
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # AWS SES Settings (candidate messaging)
    AWS_REGION: str = "eu-west-2"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_SES_FROM_EMAIL: str = "recruitment@example.com"
    AWS_SES_FROM_NAME: str = "Recruitment Team"
    RECRUITMENT_TEAM_EMAIL: str = "recruitment-team@example.com"

    # Logging
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    # Scheduling
    BOOKING_TIMEZONE: str = "Europe/London"
    INTERVIEW_SLOT_DURATION: int = 30
    INTERVIEW_BUFFER_MINUTES: int = 15
    INTERVIEW_MIN_NOTICE_HOURS: int = 24
    TRIAL_SLOT_DURATION: int = 240
    TRIAL_BUFFER_MINUTES: int = 30
    TRIAL_MIN_NOTICE_HOURS: int = 48
    INTERVIEW_SCHEDULE: Dict[str, dict] = _default_weekly_schedule()
    TRIAL_SCHEDULE: Dict[str, dict] = _default_weekly_schedule()

    # Sweeps and lifecycle timings
    FEEDBACK_REMINDER_GRACE_HOURS: int = 2
    LAPSE_AFTER_HOURS: int = 48
    REACTIVATION_DEBOUNCE_SECONDS: int = 60

    # CORS Settings - can be set as JSON string in .env
    BACKEND_CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000", "http://localhost:8000"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Union[List[str], str]) -> List[str]:
        """Parse CORS origins from JSON string or list"""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # If not valid JSON, split by comma
                return [origin.strip() for origin in v.split(",")]
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
