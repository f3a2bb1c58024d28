from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

StorageBackend = Literal["local", "gcs"]
PdfEngine = Literal["pdfplumber", "pymupdf"]


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "localhost"
    db_port: int = Field(default=5432, gt=0, le=65535)
    db_database: str = "docworker"
    db_username: str = "docworker"
    db_password: str = "secret"
    db_pool_max_size: int = Field(default=5, gt=0)

    storage_backend: StorageBackend = "local"
    storage_bucket: str = "Documents"
    storage_local_root: str = "/app/files"
    gcp_project_id: str | None = None
    signed_url_ttl_seconds: int = Field(default=3600, gt=0)

    job_poll_interval_seconds: float = Field(default=3.0, gt=0)
    error_backoff_seconds: float = Field(default=5.0, gt=0)
    claim_batch_size: int = Field(default=5, gt=0)
    # 0 disables the stale-job reclaim
    stale_job_timeout_seconds: int = Field(default=900, ge=0)
    stale_check_interval_seconds: int = Field(default=60, gt=0)

    pdf_engine: PdfEngine = "pdfplumber"
    ocr_language: str = "eng"
    tesseract_cmd: str | None = None

    max_ocr_text_length: int = Field(default=50_000, gt=0)
    text_preview_length: int = Field(default=500, gt=0)
