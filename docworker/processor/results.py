from docworker.classification.models import ClassificationResult
from docworker.fields.models import ExtractedField

TRUNCATION_MARKER = "... [truncated]"
PREVIEW_SUFFIX = "..."


def truncate_text(text: str, max_length: int) -> str:
    """Bound stored OCR text; longer input keeps *max_length* chars plus the marker."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER


def text_preview(text: str, preview_length: int) -> str:
    if len(text) <= preview_length:
        return text
    return text[:preview_length] + PREVIEW_SUFFIX


def build_structured_result(
    classification: ClassificationResult,
    fields: list[ExtractedField],
    stored_text: str,
    preview_length: int,
) -> dict[str, object]:
    """Denormalized per-document summary kept on the documents row."""
    return {
        "type": classification.type.value,
        "confidence": classification.confidence,
        "text_preview": text_preview(stored_text, preview_length),
        "fields": {f.name: f.value for f in fields},
    }
