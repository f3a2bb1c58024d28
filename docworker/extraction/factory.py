from docworker.config.settings import PdfEngine, Settings
from docworker.extraction.base import BasePdfExtractor
from docworker.extraction.extractor import TextExtractor
from docworker.extraction.pdfplumber_adapter import PdfPlumberAdapter
from docworker.extraction.pymupdf_adapter import PyMuPdfAdapter
from docworker.extraction.tesseract_adapter import TesseractImageAdapter

PDF_ENGINES: dict[PdfEngine, type[BasePdfExtractor]] = {
    "pdfplumber": PdfPlumberAdapter,
    "pymupdf": PyMuPdfAdapter,
}


def build_pdf_extractor(engine: PdfEngine) -> BasePdfExtractor:
    """Instantiate the text-layer reader registered for *engine*."""
    try:
        return PDF_ENGINES[engine]()
    except KeyError:
        raise ValueError(
            f"Unknown PDF engine '{engine}'. Choose from: {list(PDF_ENGINES)}"
        ) from None


def build_text_extractor(settings: Settings) -> TextExtractor:
    """Build a TextExtractor with Tesseract for images and the configured PDF engine."""
    return TextExtractor(
        image_extractor=TesseractImageAdapter(
            language=settings.ocr_language,
            tesseract_cmd=settings.tesseract_cmd,
        ),
        pdf_extractor=build_pdf_extractor(settings.pdf_engine),
    )
