from docworker.classification.classifier import PatternClassifier
from docworker.database.repositories.documents_repository import DocumentsRepository
from docworker.database.repositories.results_repository import ResultsRepository
from docworker.extraction.extractor import TextExtractor
from docworker.extraction.models import detect_content_kind
from docworker.fields.extractor import FieldExtractor
from docworker.logging.logger import Log
from docworker.processor.pipeline import PipelineContext, PipelineStep
from docworker.processor.results import build_structured_result, truncate_text
from docworker.storage.base import BaseStorage


class LoadDocumentStep(PipelineStep):
    name = "downloading"
    progress = 10

    def __init__(self, doc_repo: DocumentsRepository, storage: BaseStorage) -> None:
        self._doc_repo = doc_repo
        self._storage = storage

    def run(self, context: PipelineContext) -> PipelineContext:
        document = self._doc_repo.find_by_id(context.document_id)
        context.document = document
        context.raw_bytes = self._storage.download(document.storage_path)
        Log.info(f"Loaded {len(context.raw_bytes)} bytes for document {document.id}")
        return context

    def close(self) -> None:
        self._storage.close()


class ExtractTextStep(PipelineStep):
    name = "extracting"
    progress = 30

    def __init__(self, text_extractor: TextExtractor) -> None:
        self._text_extractor = text_extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.document is None:
            raise ValueError("PipelineContext.document must be set before text extraction")
        kind = detect_content_kind(context.document.mime_type, context.document.filename)
        context.content_kind = kind
        context.extraction = self._text_extractor.extract(context.raw_bytes, kind)
        Log.info(
            f"Extracted {len(context.extraction.text)} chars from document "
            f"{context.document_id} ({kind.value})"
        )
        return context

    def close(self) -> None:
        self._text_extractor.close()


class ClassifyStep(PipelineStep):
    name = "classifying"
    progress = 50

    def __init__(self, classifier: PatternClassifier) -> None:
        self._classifier = classifier

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.extraction is None:
            raise ValueError("PipelineContext.extraction must be set before classification")
        context.classification = self._classifier.classify(context.extraction.text)
        Log.info(
            f"Classified document {context.document_id} as "
            f"{context.classification.type.value} ({context.classification.confidence:.1f}%)"
        )
        return context


class ExtractFieldsStep(PipelineStep):
    name = "extracting-fields"
    progress = 70

    def __init__(self, field_extractor: FieldExtractor) -> None:
        self._field_extractor = field_extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.extraction is None or context.classification is None:
            raise ValueError(
                "PipelineContext.extraction and classification must be set before field extraction"
            )
        context.fields = self._field_extractor.extract_fields(
            context.extraction.text, context.classification.type
        )
        Log.info(f"Extracted {len(context.fields)} fields from document {context.document_id}")
        return context


class PersistResultsStep(PipelineStep):
    name = "persisting"

    def __init__(
        self,
        results_repo: ResultsRepository,
        max_text_length: int,
        preview_length: int,
    ) -> None:
        self._results_repo = results_repo
        self._max_text_length = max_text_length
        self._preview_length = preview_length

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.extraction is None or context.classification is None:
            raise ValueError("PipelineContext must hold extraction and classification before persist")
        stored_text = truncate_text(context.extraction.text, self._max_text_length)
        context.structured_result = build_structured_result(
            context.classification,
            context.fields,
            stored_text,
            self._preview_length,
        )
        self._results_repo.save(
            context.document_id,
            ocr_text=stored_text,
            classification=context.classification,
            fields=context.fields,
            structured_result=context.structured_result,
        )
        return context
