from docworker.extraction.base import BaseImageExtractor, BasePdfExtractor
from docworker.extraction.models import ContentKind, TextExtractionResult
from docworker.logging.logger import Log


class TextExtractor:
    """Routes document bytes to the image or PDF backend and owns both."""

    def __init__(
        self,
        image_extractor: BaseImageExtractor,
        pdf_extractor: BasePdfExtractor,
    ) -> None:
        self._image_extractor = image_extractor
        self._pdf_extractor = pdf_extractor

    def extract(self, content: bytes, kind: ContentKind) -> TextExtractionResult:
        if kind is ContentKind.PAGINATED:
            result = self._pdf_extractor.extract(content)
        else:
            result = self._image_extractor.extract(content)
        Log.debug(
            f"Extracted {len(result.text)} chars in {len(result.units)} units "
            f"({kind.value}, confidence {result.confidence})"
        )
        return result

    def close(self) -> None:
        self._image_extractor.close()
