from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60 * 12, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Weekly capacity per class; the settings table may override these at runtime.
    default_max_weekly_tasks: int = Field(2, alias="DEFAULT_MAX_WEEKLY_TASKS", ge=1)
    default_max_weekly_exams: int = Field(2, alias="DEFAULT_MAX_WEEKLY_EXAMS", ge=1)
    # A published assignment older than this counts as overdue on the admin stats.
    overdue_after_days: int = Field(3, alias="OVERDUE_AFTER_DAYS", ge=1)

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")

    admin_email: Optional[str] = Field(None, alias="ADMIN_EMAIL")
    admin_password: Optional[str] = Field(None, alias="ADMIN_PASSWORD")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
