from docworker.database.models import JobRecord
from docworker.database.repositories.job_repository import JobRepository
from docworker.extraction.exceptions import ExtractionError
from docworker.logging.logger import Log
from docworker.processor.exceptions import ProcessorError
from docworker.processor.processor import Processor
from docworker.storage.exceptions import StorageError

# Failures with a self-explanatory message; anything else is logged with its traceback.
_EXPECTED_ERRORS = (ExtractionError, StorageError, ProcessorError)


class JobRunner:
    """Run one job and write exactly one terminal state for it."""

    def __init__(self, processor: Processor, job_repo: JobRepository) -> None:
        self._processor = processor
        self._job_repo = job_repo

    def run(self, job: JobRecord) -> bool:
        """Execute a single job. Returns True when the job reached ``done``."""
        Log.info(f"Running job {job.id} for document {job.document_id}")
        try:
            self._processor.process(job)
        except Exception as exc:
            self._handle_failure(job, exc)
            return False
        if not self._job_repo.mark_done(job.id, job.attempt):
            return False
        Log.info(f"Job {job.id} completed successfully")
        return True

    def _handle_failure(self, job: JobRecord, exc: Exception) -> None:
        """Mark the job failed; the document row is left as it was."""
        message = str(exc) or type(exc).__name__
        if isinstance(exc, _EXPECTED_ERRORS):
            Log.error(f"Job {job.id} failed ({type(exc).__name__}): {message}")
        else:
            Log.exception(f"Job {job.id} failed unexpectedly: {message}")
        self._job_repo.mark_failed(job.id, job.attempt, message)
