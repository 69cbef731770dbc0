import socket

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Application
    app_name: str = "LinkSprint"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8080

    # Database
    database_url: str = "sqlite:///./linksprint.db"

    # Short links
    base_url: str = "http://localhost:8080"
    short_code_length: int = 6
    custom_code_min_length: int = 3
    custom_code_max_length: int = 10

    # Cache settings
    cache_backend: str = "redis"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 24 * 60 * 60  # 24 hours
    cache_timeout: float = 2.0  # Seconds allowed per cache call

    # Click queue settings
    queue_backend: str = "redis_streams"  # Options: "redis_streams", "memory"
    queue_name: str = "click_events"
    queue_consumer_group: str = "click_workers"
    # Must stay the same across restarts so pending entries are found again
    queue_consumer_name: str = Field(default_factory=socket.gethostname)
    queue_claim_idle_ms: int = 60000  # 0 disables XAUTOCLAIM
    queue_batch_size: int = 100
    queue_block_ms: int = 1000
    click_worker_embedded: bool = True

    # HTTP
    cors_origins: list[str] = ["*"]
    default_page_size: int = 10
    max_page_size: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
