from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    api_base_url: str = "http://localhost:5000/api"
    api_token: str | None = None  # sent as Bearer token when set
    http_timeout_sec: float | None = None  # None = wait indefinitely

    # Redis pub/sub carrying server-pushed events (e.g. "new:order")
    event_source_url: str = "redis://localhost:6379/0"
    channel_reconnect_delay_sec: float = 2.0

    notification_store_path: str = ".dashboard/notifications.json"
    notification_store_key: str = "dashboardNotifications"

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
