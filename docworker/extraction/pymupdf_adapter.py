import pymupdf

from docworker.extraction.base import BasePdfExtractor
from docworker.extraction.exceptions import ExtractionError
from docworker.extraction.models import TextExtractionResult


class PyMuPdfAdapter(BasePdfExtractor):
    """Extracts text from PDF using PyMuPDF."""

    def extract(self, pdf_bytes: bytes) -> TextExtractionResult:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
        except Exception as exc:
            raise ExtractionError(f"PDF processing failed: {exc}") from exc
        return self._build_result("\n".join(pages).strip())
