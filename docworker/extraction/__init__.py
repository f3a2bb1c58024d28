from docworker.extraction.exceptions import ExtractionError
from docworker.extraction.extractor import TextExtractor
from docworker.extraction.models import (
    BoundingBox,
    ContentKind,
    TextExtractionResult,
    TextUnit,
    detect_content_kind,
)

__all__ = [
    "BoundingBox",
    "ContentKind",
    "ExtractionError",
    "TextExtractionResult",
    "TextExtractor",
    "TextUnit",
    "detect_content_kind",
]
