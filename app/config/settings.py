from typing import List, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    ENVIRONMENT: str = "development"
    NAME: str = "EventNoti Server"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    """Pydantic v2 doesn't support parsing List[str] from a plain comma-separated string by default anymore."""
    ALLOWED_HOSTS: Union[str, List[str]] = "http://localhost:5173"
    LOG_LEVEL: str = "info"

    # Database
    DATABASE_URL: str = "sqlite:///./data/event-noti.db"

    # Timezone used when the settings table has no usable value
    DEFAULT_TIMEZONE: str = "Asia/Shanghai"

    # Scheduler (crontab expressions, evaluated in the configured timezone)
    NOTIFICATION_CRON: str = "* * * * *"
    RETRY_CRON: str = "*/5 * * * *"
    EXPIRE_CRON: str = "5 9 * * *"
    SCHEDULER_ENABLED: bool = True

    # Delivery
    MAX_RETRIES: int = 3
    SEND_DELAY_SECONDS: float = 0.5
    RETRY_SEND_DELAY_SECONDS: float = 1.0
    WEBHOOK_TIMEOUT_SECONDS: float = 10.0

    # Redis & Celery
    REDIS_PASSWORD: str = ""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @field_validator("ALLOWED_HOSTS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if not v:
            return []
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


settings = Settings()
