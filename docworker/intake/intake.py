import re
import time
from dataclasses import dataclass

from docworker.database.repositories.documents_repository import DocumentsRepository
from docworker.database.repositories.job_repository import JobRepository
from docworker.intake.exceptions import UnsupportedContentTypeError
from docworker.logging.logger import Log
from docworker.storage.base import BaseStorage

ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "application/pdf"})
STORAGE_PREFIX = "documents"

_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9._-]")


def build_storage_path(filename: str, timestamp_ms: int | None = None) -> str:
    """Collision-resistant storage key: ``documents/{epoch_ms}_{sanitized_name}``."""
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    sanitized = _UNSAFE_CHARS_RE.sub("_", filename)
    return f"{STORAGE_PREFIX}/{timestamp_ms}_{sanitized}"


@dataclass(frozen=True)
class SubmissionResult:
    document_id: int
    job_id: int


class DocumentIntake:
    """Accepts an uploaded file and queues it for processing."""

    def __init__(
        self,
        storage: BaseStorage,
        doc_repo: DocumentsRepository,
        job_repo: JobRepository,
    ) -> None:
        self._storage = storage
        self._doc_repo = doc_repo
        self._job_repo = job_repo

    def submit(self, filename: str, content: bytes, content_type: str) -> SubmissionResult:
        """Store the file, create its document row, then its pending job.

        Raises:
            UnsupportedContentTypeError: for anything but JPEG, PNG or PDF.
            UploadError: if the file cannot be stored.
            PersistenceError: if either row cannot be created.
        """
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise UnsupportedContentTypeError(
                f"Invalid file type '{content_type}'. Only JPG, PNG, and PDF allowed"
            )
        storage_path = build_storage_path(filename)
        self._storage.upload(storage_path, content, content_type)
        document = self._doc_repo.create_document(
            filename=filename,
            storage_path=storage_path,
            mime_type=content_type,
            size_bytes=len(content),
        )
        job = self._job_repo.create_job(document.id)
        Log.info(f"Queued document {document.id} ({filename}) as job {job.id}")
        return SubmissionResult(document_id=document.id, job_id=job.id)
