from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./hydration.db"
    user_id: int = 1  # single-user MVP; multi-user: swap for JWT claim
    default_timezone: str = "UTC"
    default_daily_goal_ml: int = 2000
    pattern_lookback_days: int = 30
    snooze_minutes: int = 15
    reminder_tick_minutes: int = 5
    reminder_retention_days: int = 90
    cleanup_hour: int = 2

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
