from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str

    # Redis
    redis_url: str

    # API
    api_port: int = 8000

    # Security
    internal_api_secret: str  # HMAC secret for caller authentication

    # Webhooks
    webhook_url: str = ""  # Default delivery target, empty = disabled
    webhook_secret: str = ""
    webhook_timeout_seconds: float = 5.0
    webhook_max_attempts: int = 5
    webhook_backoff_base_seconds: float = 1.0
    webhook_backoff_factor: float = 2.0

    # Delivery recovery
    delivery_reclaim_idle_seconds: float = 120.0  # Stream entries idle longer than this are reclaimed
    delivery_sweep_age_seconds: float = 300.0  # Pending rows older than this are queued again
    delivery_maintenance_interval_seconds: float = 60.0

    # Matching
    dislike_ttl_days: int | None = None  # None = permanent suppression

    # Interests
    taxonomy_path: str | None = None  # JSON file overriding the built-in taxonomy

    # Notifications
    notifications_list_limit: int = 50

    # Environment
    environment: str = "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


settings = Settings()
