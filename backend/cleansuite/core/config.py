"""Application configuration using Pydantic Settings."""

from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageProvider(str, Enum):
    GCS = "gcs"
    S3 = "s3"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "CleanSuite"
    debug: bool = False
    api_v1_prefix: str = "/v1"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:5173"

    # Database
    database_url: str

    # Firebase Auth
    firebase_project_id: str
    google_application_credentials: Optional[str] = None

    # Storage
    storage_provider: StorageProvider = StorageProvider.S3

    # GCS Config
    gcs_bucket_name: Optional[str] = None
    gcs_project_id: Optional[str] = None

    # S3 Config
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: Optional[str] = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Public base URL for uploaded objects (CDN or bucket website endpoint)
    storage_public_base_url: Optional[str] = None

    # Presigned URLs
    presign_ttl_seconds: int = 300
    max_upload_size_mb: int = 15

    # Pricing / invoicing fallbacks when a company has no configuration row
    default_hourly_rate: Decimal = Decimal("35")
    default_tax_rate: Decimal = Decimal("13")
    default_job_duration_hours: float = 2.0
    invoice_due_days: int = 30

    # Payroll: wage for cleaners with none set
    default_cleaner_wage: Decimal = Decimal("15")

    @property
    def bucket_name(self) -> str:
        """Get the appropriate bucket name based on storage provider."""
        if self.storage_provider == StorageProvider.GCS:
            if not self.gcs_bucket_name:
                raise ValueError("GCS_BUCKET_NAME required when STORAGE_PROVIDER=gcs")
            return self.gcs_bucket_name
        else:
            if not self.s3_bucket_name:
                raise ValueError("S3_BUCKET_NAME required when STORAGE_PROVIDER=s3")
            return self.s3_bucket_name

    @property
    def public_base_url(self) -> str:
        """Base URL that public object URLs are built from."""
        if self.storage_public_base_url:
            return self.storage_public_base_url.rstrip("/")
        if self.storage_provider == StorageProvider.GCS:
            return f"https://storage.googleapis.com/{self.bucket_name}"
        return f"https://{self.bucket_name}.s3.{self.aws_region or 'us-east-1'}.amazonaws.com"


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
