from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "MeroShare IPO Bot API"
    app_env: str = "development"
    api_prefix: str = "/api/v1"

    meroshare_base_url: str = "https://webbackend.cdsc.com.np/api/meroShare"
    request_timeout_seconds: int = 30
    verify_ssl: bool = True

    database_url: str = "sqlite:///./meroshare.db"

    scheduler_enabled: bool = True
    apply_cron: str = "0 0 * * *"
    scheduler_timezone: str = "Asia/Kathmandu"

    log_level: str = "INFO"
    log_format: str = "json"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
