from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class DocumentStatus(str, Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


@dataclass
class JobRecord:
    """Represents a row from the processing_jobs table."""

    id: int
    document_id: int
    status: str
    progress: int = 0
    attempt: int = 0
    error: str | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None


@dataclass(frozen=True)
class JobOutcome:
    """Terminal result of one processing attempt."""

    status: JobStatus
    error: str | None = None

    @classmethod
    def done(cls) -> "JobOutcome":
        return cls(status=JobStatus.DONE)

    @classmethod
    def failed(cls, error: str) -> "JobOutcome":
        return cls(status=JobStatus.FAILED, error=error)


@dataclass
class DocumentRecord:
    """Represents a row from the documents table."""

    id: int
    filename: str
    storage_path: str
    mime_type: str
    status: str
    document_type: str | None = None
    structured_result: dict[str, Any] | None = None
    created_at: datetime | None = None
    processed_at: datetime | None = None


@dataclass
class DocumentSummary:
    """A document row paired with the state of its most recent job."""

    id: int
    filename: str
    status: str
    document_type: str | None = None
    created_at: datetime | None = None
    job_status: str | None = None
    job_progress: int | None = None


@dataclass
class ClassificationRecord:
    """Represents a row from the classifications table."""

    document_id: int
    label: str
    confidence: float
    model: str
    id: int | None = None
    created_at: datetime | None = None


@dataclass
class ExtractedFieldRecord:
    """Represents a row from the extracted_fields table."""

    document_id: int
    field_name: str
    field_value: str
    confidence: float
    normalized: dict[str, Any] | None = None
    id: int | None = None


@dataclass
class OcrTextRecord:
    """Represents a row from the ocr_texts table."""

    document_id: int
    page_number: int
    text: str
    id: int | None = None
