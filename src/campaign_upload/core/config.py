"""Configuration management for the campaign upload client."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    ENV: str = "local"
    SERVICE_NAME: str = "campaign-upload"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Backend Configuration
    UPLOAD_BASE_URL: str = "http://localhost:3000"  # Relative endpoints resolve against this
    REQUEST_TIMEOUT: int = 300  # seconds, applied by httpx to every request

    # Upload Strategy
    MULTIPART_THRESHOLD_MB: int = 1  # Files at or above this use multipart upload
    PART_SIZE_MB: int = Field(5, ge=5)  # S3 rejects non-final parts smaller than 5MB
    PART_CONCURRENCY: int = Field(1, ge=1)  # Parts in flight at once; 1 keeps transfers sequential
    READ_STORAGE_ETAG: bool = False  # Take ETag from the storage response instead of the relay

    @property
    def multipart_threshold_bytes(self) -> int:
        """Convert MULTIPART_THRESHOLD_MB to bytes."""
        return self.MULTIPART_THRESHOLD_MB * 1024 * 1024

    @property
    def part_size_bytes(self) -> int:
        """Convert PART_SIZE_MB to bytes."""
        return self.PART_SIZE_MB * 1024 * 1024


# Singleton settings instance
settings = Settings()
