from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath

from docworker.extraction.exceptions import ExtractionError


class ContentKind(str, Enum):
    IMAGE = "image"
    PAGINATED = "paginated"


def detect_content_kind(mime_type: str | None, filename: str | None = None) -> ContentKind:
    """Decide which backend handles a document.

    The declared MIME type wins; the filename extension is the fallback for
    uploads stored with a generic type.
    """
    mime = (mime_type or "").lower()
    suffix = PurePosixPath(filename or "").suffix.lower()
    if mime == "application/pdf" or suffix == ".pdf":
        return ContentKind.PAGINATED
    if mime.startswith("image/") or suffix in {".jpg", ".jpeg", ".png"}:
        return ContentKind.IMAGE
    raise ExtractionError(f"Unsupported content type '{mime_type}' for '{filename}'")


@dataclass(frozen=True)
class BoundingBox:
    """Unit position in source pixels (or synthetic units for PDFs)."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class TextUnit:
    """One recognized line of text."""

    text: str
    confidence: float
    bbox: BoundingBox | None = None


@dataclass
class TextExtractionResult:
    """Output of the text extraction step."""

    text: str
    confidence: float
    units: list[TextUnit] = field(default_factory=list)
