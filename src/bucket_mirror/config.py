"""Configuration management for bucket-mirror."""

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROTECTED_FILES = ["sitemap.xml", "robots.txt", "index.html"]

# S3 DeleteObjects accepts at most this many keys per request
MAX_DELETE_BATCH_SIZE = 1000


class MirrorConfig(BaseSettings):
    """Settings for one Dropbox -> bucket mirror."""

    dropbox_token: str = Field(default="", description="Dropbox API bearer token")
    dropbox_api_url: str = Field(
        default="https://api.dropboxapi.com/2",
        description="Base URL for Dropbox RPC endpoints",
    )
    dropbox_content_url: str = Field(
        default="https://content.dropboxapi.com/2",
        description="Base URL for Dropbox content endpoints",
    )

    bucket: str = Field(default="", description="Target bucket name")
    aws_region: str = Field(default="us-east-1", description="Region of the target bucket")
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = Field(
        default=None, description="Override for S3 compatible endpoints"
    )
    public_base_url: Optional[str] = Field(
        default=None,
        description="Public URL prefix for bucket objects, defaults to the S3 path style URL",
    )

    protected_files: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PROTECTED_FILES),
        description="Target keys containing any of these names are never deleted",
    )
    max_concurrency: int = Field(default=8, description="Maximum simultaneous transfers")
    delete_batch_size: int = Field(default=MAX_DELETE_BATCH_SIZE)
    list_page_limit: int = Field(default=1000, description="Dropbox listing page size")
    recent_updates_limit: int = Field(default=50)
    link_expiry: int = Field(default=900, description="Presigned URL lifetime in seconds")
    request_timeout: float = Field(default=30.0)

    log_level: str = "INFO"
    log_file: Optional[Path] = None

    host: str = "0.0.0.0"
    port: int = 8080

    model_config = SettingsConfigDict(
        env_prefix="BUCKET_MIRROR_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def bucket_url(self) -> str:
        """Get the public URL prefix for objects in the bucket."""
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        return f"https://s3.amazonaws.com/{self.bucket}"

    @field_validator("max_concurrency")
    @classmethod
    def ensure_positive_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrency must be at least 1")
        return v

    @field_validator("delete_batch_size")
    @classmethod
    def ensure_batch_size(cls, v: int) -> int:
        if not 1 <= v <= MAX_DELETE_BATCH_SIZE:
            raise ValueError(f"delete_batch_size must be between 1 and {MAX_DELETE_BATCH_SIZE}")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


def get_config() -> MirrorConfig:
    """Load configuration from the environment (and .env)."""
    return MirrorConfig()
