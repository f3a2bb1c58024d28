import io

import pdfplumber

from docworker.extraction.base import BasePdfExtractor
from docworker.extraction.exceptions import ExtractionError
from docworker.extraction.models import TextExtractionResult


class PdfPlumberAdapter(BasePdfExtractor):
    """Extracts text from PDF using pdfplumber."""

    def extract(self, pdf_bytes: bytes) -> TextExtractionResult:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise ExtractionError(f"PDF processing failed: {exc}") from exc
        return self._build_result("\n".join(pages).strip())
