from docworker.classification.models import Category, ClassificationResult
from docworker.fields.models import ExtractedField
from docworker.processor.results import (
    TRUNCATION_MARKER,
    build_structured_result,
    text_preview,
    truncate_text,
)


class TestTruncateText:
    def test_short_text_is_unchanged(self) -> None:
        assert truncate_text("hello", 50_000) == "hello"

    def test_text_at_limit_is_unchanged(self) -> None:
        text = "x" * 50_000
        assert truncate_text(text, 50_000) == text

    def test_long_text_ends_with_marker(self) -> None:
        result = truncate_text("x" * 60_000, 50_000)
        assert result.endswith(TRUNCATION_MARKER)
        assert len(result) == 50_000 + len(TRUNCATION_MARKER)


class TestTextPreview:
    def test_short_text_has_no_ellipsis(self) -> None:
        assert text_preview("short", 500) == "short"

    def test_long_text_is_cut_with_ellipsis(self) -> None:
        preview = text_preview("a" * 800, 500)
        assert preview == "a" * 500 + "..."


class TestBuildStructuredResult:
    def test_combines_type_confidence_preview_and_fields(self) -> None:
        classification = ClassificationResult(
            type=Category.INVOICE, confidence=75.0, model="pattern_matching_v1"
        )
        fields = [
            ExtractedField(name="invoice_number", value="12345", confidence=85),
            ExtractedField(name="invoice_total", value="250.00", confidence=90),
        ]

        result = build_structured_result(classification, fields, "INVOICE #12345", 500)

        assert result == {
            "type": "invoice",
            "confidence": 75.0,
            "text_preview": "INVOICE #12345",
            "fields": {"invoice_number": "12345", "invoice_total": "250.00"},
        }

    def test_empty_document(self) -> None:
        classification = ClassificationResult(
            type=Category.OTHER, confidence=0.0, model="pattern_matching_v1"
        )
        result = build_structured_result(classification, [], "", 500)
        assert result == {"type": "other", "confidence": 0.0, "text_preview": "", "fields": {}}
