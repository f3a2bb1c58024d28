from abc import ABC, abstractmethod

from docworker.extraction.models import BoundingBox, TextExtractionResult, TextUnit

# Embedded PDF text is exact, so there is no recognizer uncertainty to report.
EMBEDDED_TEXT_CONFIDENCE = 95.0
SYNTHETIC_LINE_WIDTH = 800
SYNTHETIC_LINE_HEIGHT = 20


class BaseImageExtractor(ABC):
    """Contract for raster-image recognition adapters."""

    @abstractmethod
    def extract(self, image_bytes: bytes) -> TextExtractionResult:
        """Recognize text in an image.

        Returns:
            TextExtractionResult with one unit per detected line.

        Raises:
            ExtractionError: if recognition fails for any reason.
        """

    def close(self) -> None:
        """Release the recognition backend, if one was acquired."""


class BasePdfExtractor(ABC):
    """Contract for all PDF text extraction adapters."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> TextExtractionResult:
        """Extract embedded text from PDF bytes.

        A PDF without a text layer yields an empty result, not an error.

        Raises:
            ExtractionError: if the PDF cannot be parsed.
        """

    def _build_result(self, text: str) -> TextExtractionResult:
        lines = [line.strip() for line in text.split("\n")]
        units = [
            TextUnit(
                text=line,
                confidence=EMBEDDED_TEXT_CONFIDENCE,
                bbox=BoundingBox(
                    x=0,
                    y=index * SYNTHETIC_LINE_HEIGHT,
                    width=SYNTHETIC_LINE_WIDTH,
                    height=SYNTHETIC_LINE_HEIGHT,
                ),
            )
            for index, line in enumerate(line for line in lines if line)
        ]
        return TextExtractionResult(
            text=text,
            confidence=EMBEDDED_TEXT_CONFIDENCE,
            units=units,
        )
