from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar

from docworker.classification.models import ClassificationResult
from docworker.database.models import DocumentRecord
from docworker.extraction.models import ContentKind, TextExtractionResult
from docworker.fields.models import ExtractedField


@dataclass(slots=True)
class PipelineContext:
    document_id: int
    job_id: int
    document: DocumentRecord | None = None
    raw_bytes: bytes = b""
    content_kind: ContentKind | None = None
    extraction: TextExtractionResult | None = None
    classification: ClassificationResult | None = None
    fields: list[ExtractedField] = field(default_factory=list)
    structured_result: dict[str, object] = field(default_factory=dict)


class PipelineStep(ABC):
    """One stage of document processing.

    ``progress`` is the checkpoint reported to the job row before the step
    runs; steps without one leave progress unchanged.
    """

    name: ClassVar[str]
    progress: ClassVar[int | None] = None

    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError

    def close(self) -> None:
        """Release resources owned by the step."""
