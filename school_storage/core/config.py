"""
Storage configuration management using Pydantic Settings.
Loads environment variables and provides centralized configuration.
"""
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Storage settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Metadata
    APP_NAME: str = "School Storage"
    APP_VERSION: str = "1.0.0"

    # MinIO / S3
    MINIO_ENDPOINT: str = Field("localhost")
    MINIO_PORT: int = Field(9000)
    MINIO_USE_SSL: bool = Field(False)
    MINIO_ACCESS_KEY: str = Field("minioadmin")
    MINIO_SECRET_KEY: str = Field("minioadmin")
    MINIO_REGION: str = Field("us-east-1")

    # The backend may be reachable internally on a different address
    # than the one browsers use
    MINIO_PUBLIC_ENDPOINT: Optional[str] = Field(None)
    MINIO_PUBLIC_PORT: Optional[int] = Field(None)

    # Upload limits
    MAX_UPLOAD_SIZE_MB: int = 5

    # Maintenance
    RETENTION_DAYS: int = 90
    PRESIGNED_URL_EXPIRY_SECONDS: int = 3600  # 1 hour

    # Logging
    LOG_LEVEL: str = Field("INFO")
    LOG_JSON: bool = Field(True)

    @field_validator("MINIO_PORT", "MINIO_PUBLIC_PORT")
    @classmethod
    def validate_port(cls, v):
        """Ensure ports are in the TCP range."""
        if v is not None and not 0 < v < 65536:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid LOG_LEVEL: {v}")
        return level


# Global settings instance
settings = Settings()
