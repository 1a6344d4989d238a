from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "CMS Scheduler"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./scheduler.db"

    # Security settings
    admin_token: str = "change-me"

    # Scheduler settings
    timezone: str = "UTC"
    scheduler_settings_file: str = "data/scheduler_settings.json"
    plugins_config_file: str = "data/plugins_config.json"
    # 0 disables the in-process interval job; an external crontab can still
    # call the lightweight cron URL or the CLI.
    scheduler_cron_interval_minutes: int = 0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
