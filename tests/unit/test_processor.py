from unittest.mock import MagicMock, call

import pytest

from docworker.classification.classifier import PatternClassifier
from docworker.classification.models import Category
from docworker.database.models import DocumentRecord, JobRecord
from docworker.database.repositories.documents_repository import DocumentsRepository
from docworker.database.repositories.job_repository import JobRepository
from docworker.database.repositories.results_repository import ResultsRepository
from docworker.extraction.exceptions import ExtractionError
from docworker.extraction.extractor import TextExtractor
from docworker.extraction.models import ContentKind, TextExtractionResult
from docworker.extraction.pdfplumber_adapter import PdfPlumberAdapter
from docworker.fields.extractor import FieldExtractor
from docworker.fields.models import MoneyValue
from docworker.processor.exceptions import DocumentNotFoundError
from docworker.processor.processor import Processor
from docworker.processor.results import TRUNCATION_MARKER
from docworker.processor.steps import (
    ClassifyStep,
    ExtractFieldsStep,
    ExtractTextStep,
    LoadDocumentStep,
    PersistResultsStep,
)
from docworker.storage.exceptions import DownloadError
from docworker.worker.job_runner import JobRunner


def _make_document(
    mime_type: str = "image/png",
    filename: str = "invoice.png",
) -> DocumentRecord:
    return DocumentRecord(
        id=1,
        filename=filename,
        storage_path=f"documents/1700000000000_{filename}",
        mime_type=mime_type,
        status="uploaded",
    )


def _make_job(job_id: int = 9) -> JobRecord:
    return JobRecord(id=job_id, document_id=1, status="running", attempt=1)


def _make_pipeline(
    document: DocumentRecord | None = None,
    text_extractor: MagicMock | TextExtractor | None = None,
) -> tuple[Processor, MagicMock, MagicMock, MagicMock, MagicMock, MagicMock]:
    doc_repo = MagicMock(spec=DocumentsRepository)
    storage = MagicMock()
    results_repo = MagicMock(spec=ResultsRepository)
    job_repo = MagicMock(spec=JobRepository)
    if text_extractor is None:
        text_extractor = MagicMock(spec=TextExtractor)
        text_extractor.extract.return_value = TextExtractionResult(
            text="INVOICE #12345\nWidgets x2\nTotal: $250.00",
            confidence=88.0,
        )

    doc_repo.find_by_id.return_value = document or _make_document()
    storage.download.return_value = b"\x89PNG-fake"

    steps = [
        LoadDocumentStep(doc_repo, storage),
        ExtractTextStep(text_extractor),
        ClassifyStep(PatternClassifier()),
        ExtractFieldsStep(FieldExtractor()),
        PersistResultsStep(results_repo, max_text_length=50_000, preview_length=500),
    ]
    processor = Processor(steps=steps, job_repo=job_repo)
    return processor, doc_repo, storage, text_extractor, results_repo, job_repo


class TestProcessorPipeline:
    def test_runs_all_steps_and_persists_outputs(self) -> None:
        processor, doc_repo, storage, text_extractor, results_repo, _job_repo = _make_pipeline()

        processor.process(_make_job(9))

        doc_repo.find_by_id.assert_called_once_with(1)
        storage.download.assert_called_once_with("documents/1700000000000_invoice.png")
        text_extractor.extract.assert_called_once_with(b"\x89PNG-fake", ContentKind.IMAGE)
        results_repo.save.assert_called_once()
        kwargs = results_repo.save.call_args.kwargs
        assert results_repo.save.call_args.args == (1,)
        assert kwargs["ocr_text"] == "INVOICE #12345\nWidgets x2\nTotal: $250.00"
        assert kwargs["classification"].type is Category.INVOICE
        assert kwargs["structured_result"]["type"] == "invoice"

    def test_reports_progress_checkpoints_in_order(self) -> None:
        processor, *_rest, job_repo = _make_pipeline()

        processor.process(_make_job(9))

        assert job_repo.update_progress.call_args_list == [
            call(9, 1, 10),
            call(9, 1, 30),
            call(9, 1, 50),
            call(9, 1, 70),
        ]

    def test_pdf_documents_use_paginated_extraction(self) -> None:
        document = _make_document(mime_type="application/pdf", filename="scan.pdf")
        processor, _doc, _storage, text_extractor, _results, _job = _make_pipeline(document)

        processor.process(_make_job(9))

        assert text_extractor.extract.call_args.args[1] is ContentKind.PAGINATED

    def test_long_text_is_truncated_before_persisting(self) -> None:
        text_extractor = MagicMock(spec=TextExtractor)
        text_extractor.extract.return_value = TextExtractionResult(
            text="invoice " * 10_000, confidence=90.0
        )
        processor, _doc, _storage, _te, results_repo, _job = _make_pipeline(
            text_extractor=text_extractor
        )

        processor.process(_make_job(9))

        kwargs = results_repo.save.call_args.kwargs
        assert kwargs["ocr_text"].endswith(TRUNCATION_MARKER)
        assert len(kwargs["ocr_text"]) == 50_000 + len(TRUNCATION_MARKER)
        assert len(kwargs["structured_result"]["text_preview"]) == 503

    def test_step_error_propagates_and_skips_persist(self) -> None:
        processor, _doc, _storage, text_extractor, results_repo, job_repo = _make_pipeline()
        text_extractor.extract.side_effect = ExtractionError("bad image")

        with pytest.raises(ExtractionError, match="bad image"):
            processor.process(_make_job(7))

        results_repo.save.assert_not_called()
        assert call(7, 1, 50) not in job_repo.update_progress.call_args_list

    def test_missing_document_raises_not_found(self) -> None:
        processor, doc_repo, storage, *_rest = _make_pipeline()
        doc_repo.find_by_id.side_effect = DocumentNotFoundError("Document 1 not found")

        with pytest.raises(DocumentNotFoundError):
            processor.process(_make_job(7))

        storage.download.assert_not_called()

    def test_close_releases_step_resources(self) -> None:
        processor, _doc, storage, text_extractor, _results, _job = _make_pipeline()

        processor.close()

        storage.close.assert_called_once()
        text_extractor.close.assert_called_once()


class TestEndToEndScenarios:
    """Full job attempts with the real classifier and field rules; store and storage mocked."""

    def test_invoice_image_reaches_done(self) -> None:
        processor, _doc, _storage, _te, results_repo, job_repo = _make_pipeline()
        runner = JobRunner(processor, job_repo)

        assert runner.run(_make_job(9))

        job_repo.mark_done.assert_called_once_with(9, 1)
        job_repo.mark_failed.assert_not_called()
        kwargs = results_repo.save.call_args.kwargs
        assert kwargs["classification"].type is Category.INVOICE
        total = next(f for f in kwargs["fields"] if f.name == "invoice_total")
        assert total.normalized == MoneyValue(value=250.0, currency="USD")
        assert kwargs["structured_result"]["fields"]["invoice_total"] == "250.00"

    def test_pdf_without_text_layer_completes_with_empty_result(
        self, empty_pdf_bytes: bytes
    ) -> None:
        document = _make_document(mime_type="application/pdf", filename="blank.pdf")
        text_extractor = TextExtractor(MagicMock(), PdfPlumberAdapter())
        processor, _doc, storage, _te, results_repo, job_repo = _make_pipeline(
            document, text_extractor
        )
        storage.download.return_value = empty_pdf_bytes

        JobRunner(processor, job_repo).run(_make_job(3))

        job_repo.mark_done.assert_called_once_with(3, 1)
        kwargs = results_repo.save.call_args.kwargs
        assert kwargs["ocr_text"] == ""
        assert kwargs["classification"].type is Category.OTHER
        assert kwargs["classification"].confidence == 0.0
        assert kwargs["fields"] == []
        assert kwargs["structured_result"] == {
            "type": "other",
            "confidence": 0.0,
            "text_preview": "",
            "fields": {},
        }

    def test_download_failure_marks_job_failed_and_leaves_document(self) -> None:
        processor, doc_repo, storage, _te, results_repo, job_repo = _make_pipeline()
        storage.download.side_effect = DownloadError("Failed to download file: bucket offline")

        assert not JobRunner(processor, job_repo).run(_make_job(5))

        job_repo.mark_failed.assert_called_once_with(
            5, 1, "Failed to download file: bucket offline"
        )
        job_repo.mark_done.assert_not_called()
        results_repo.save.assert_not_called()
        assert doc_repo.find_by_id.return_value.status == "uploaded"
