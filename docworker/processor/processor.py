from collections.abc import Sequence

from docworker.classification.classifier import PatternClassifier
from docworker.config.settings import Settings
from docworker.database.models import JobRecord
from docworker.database.repositories.documents_repository import DocumentsRepository
from docworker.database.repositories.job_repository import JobRepository
from docworker.database.repositories.results_repository import ResultsRepository
from docworker.extraction.factory import build_text_extractor
from docworker.fields.extractor import FieldExtractor
from docworker.logging.logger import Log
from docworker.processor.pipeline import PipelineContext, PipelineStep
from docworker.processor.steps import (
    ClassifyStep,
    ExtractFieldsStep,
    ExtractTextStep,
    LoadDocumentStep,
    PersistResultsStep,
)
from docworker.storage.base import BaseStorage
from docworker.storage.factory import StorageFactory


class Processor:
    """Runs a document through the pipeline steps in order.

    Pipeline: download (10) -> extract text (30) -> classify (50)
    -> extract fields (70) -> persist. Exceptions propagate unchanged to
    the caller, which owns the job's terminal state; the document row is
    only written by the final persist step.
    """

    def __init__(self, steps: Sequence[PipelineStep], job_repo: JobRepository) -> None:
        self._steps = list(steps)
        self._job_repo = job_repo

    def process(self, job: JobRecord) -> PipelineContext:
        Log.info(f"Processing document {job.document_id} for job {job.id} (attempt {job.attempt})")
        context = PipelineContext(document_id=job.document_id, job_id=job.id)
        for step in self._steps:
            if step.progress is not None:
                self._job_repo.update_progress(job.id, job.attempt, step.progress)
            Log.debug(f"Job {job.id}: {step.name}")
            context = step.run(context)
        return context

    def close(self) -> None:
        for step in self._steps:
            step.close()


def build_processor(
    settings: Settings,
    job_repo: JobRepository,
    storage: BaseStorage | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    doc_repo = DocumentsRepository()
    steps: list[PipelineStep] = [
        LoadDocumentStep(doc_repo, storage or StorageFactory.create(settings)),
        ExtractTextStep(build_text_extractor(settings)),
        ClassifyStep(PatternClassifier()),
        ExtractFieldsStep(FieldExtractor()),
        PersistResultsStep(
            ResultsRepository(),
            max_text_length=settings.max_ocr_text_length,
            preview_length=settings.text_preview_length,
        ),
    ]
    return Processor(steps=steps, job_repo=job_repo)
