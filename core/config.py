from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "Portfolio Timeline"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database (document store)
    database_url: str = "sqlite+aiosqlite:///./portfolio.db"
    database_echo: bool = False
    database_auto_create: bool = True  # create tables on startup (dev/SQLite)

    # CORS - comma-separated list of allowed origins
    allowed_origins: str = "http://localhost:3000"

    # Blob storage
    storage_backend: str = "local"  # Options: "local", "s3"
    storage_root: str = "./storage"  # For local backend
    storage_base_url: Optional[str] = None  # Public base URL for local download links
    s3_bucket: Optional[str] = None  # Required for S3 backend
    s3_region: str = "us-east-1"
    s3_endpoint_url: Optional[str] = None  # For MinIO/LocalStack
    s3_access_key: Optional[str] = None  # Optional, uses IAM role if not provided
    s3_secret_key: Optional[str] = None  # Optional, uses IAM role if not provided
    images_container: str = "images"
    text_files_container: str = "textfiles"

    # Cache TTL (Time-To-Live) in seconds
    cache_ttl_timeline: int = 300  # 5 minutes, list and per-date entries
    cache_ttl_messages: int = 120  # 2 minutes
    cache_ttl_message_stats: int = 300  # 5 minutes
    cache_purge_interval: int = 60  # seconds between sweeps of expired entries

    @model_validator(mode="after")
    def validate_storage_config(self) -> "Settings":
        """Validate blob storage backend configuration"""
        if self.storage_backend == "s3":
            if not self.s3_bucket:
                raise ValueError(
                    "s3_bucket is required when storage_backend is 's3'. "
                    "Set S3_BUCKET environment variable or update .env file."
                )
        elif self.storage_backend != "local":
            raise ValueError(
                f"Invalid storage_backend '{self.storage_backend}'. "
                f"Must be one of: 'local', 's3'"
            )
        if self.images_container == self.text_files_container:
            raise ValueError("images_container and text_files_container must differ")
        return self

    @property
    def blob_containers(self) -> tuple[str, str]:
        return (self.images_container, self.text_files_container)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
