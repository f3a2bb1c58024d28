import pytest

from docworker.config.settings import Settings
from docworker.database.models import DocumentRecord, JobRecord
from docworker.database.repositories.documents_repository import DocumentsRepository
from docworker.database.repositories.job_repository import JobRepository
from docworker.processor.processor import build_processor
from docworker.storage.local_adapter import LocalStorageAdapter
from docworker.worker.job_runner import JobRunner
from docworker.worker.worker import Worker


def _run_one_job(settings: Settings, storage: LocalStorageAdapter) -> None:
    job_repo = JobRepository(settings.claim_batch_size)
    processor = build_processor(settings, job_repo, storage=storage)
    try:
        Worker(job_repo, JobRunner(processor, job_repo), settings).run(max_jobs=1)
    finally:
        processor.close()


@pytest.mark.integration
class TestWorkerIntegration:
    def test_invoice_pdf_is_processed(
        self,
        seed_document: DocumentRecord,
        seed_job: JobRecord,
        storage: LocalStorageAdapter,
        invoice_pdf_bytes: bytes,
        test_settings: Settings,
        fetch_one,
    ) -> None:
        storage.upload(seed_document.storage_path, invoice_pdf_bytes, "application/pdf")

        _run_one_job(test_settings, storage)

        job = JobRepository().find_by_id(seed_job.id)
        assert job is not None
        assert job.status == "done"
        assert job.progress == 100

        document = DocumentsRepository().find_by_id(seed_document.id)
        assert document.status == "processed"
        assert document.document_type == "invoice"
        assert document.structured_result is not None
        assert document.structured_result["fields"]["invoice_total"] == "250.00"

        label = fetch_one(
            "SELECT label, model FROM classifications WHERE document_id = %s",
            (seed_document.id,),
        )
        assert label == ("invoice", "pattern_matching_v1")
        normalized = fetch_one(
            "SELECT normalized FROM extracted_fields WHERE document_id = %s AND field_name = %s",
            (seed_document.id, "invoice_total"),
        )
        assert normalized == ({"type": "money", "value": 250.0, "currency": "USD"},)

    def test_missing_file_fails_job_and_leaves_document(
        self,
        seed_document: DocumentRecord,
        seed_job: JobRecord,
        storage: LocalStorageAdapter,
        test_settings: Settings,
        fetch_one,
    ) -> None:
        _run_one_job(test_settings, storage)

        job = JobRepository().find_by_id(seed_job.id)
        assert job is not None
        assert job.status == "failed"
        assert job.error is not None
        assert job.error.startswith("Failed to download file")

        document = DocumentsRepository().find_by_id(seed_document.id)
        assert document.status == "uploaded"
        assert fetch_one(
            "SELECT COUNT(*) FROM classifications WHERE document_id = %s", (seed_document.id,)
        ) == (0,)
