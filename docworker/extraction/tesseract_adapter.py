import io
from statistics import fmean
from typing import Any

import pytesseract
from PIL import Image

from docworker.extraction.base import BaseImageExtractor
from docworker.extraction.exceptions import ExtractionError
from docworker.extraction.models import BoundingBox, TextExtractionResult, TextUnit
from docworker.logging.logger import Log

_LineKey = tuple[int, int, int, int]


class TesseractImageAdapter(BaseImageExtractor):
    """Recognizes text in raster images with Tesseract.

    The engine is probed lazily on the first call to :meth:`extract` and
    released by :meth:`close`; a later call probes it again.
    """

    def __init__(self, language: str = "eng", tesseract_cmd: str | None = None) -> None:
        self._language = language
        self._tesseract_cmd = tesseract_cmd
        self._engine_version: str | None = None

    @property
    def is_ready(self) -> bool:
        return self._engine_version is not None

    def extract(self, image_bytes: bytes) -> TextExtractionResult:
        self._ensure_engine()
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")
                data = pytesseract.image_to_data(
                    image,
                    lang=self._language,
                    output_type=pytesseract.Output.DICT,
                )
        except Exception as exc:
            raise ExtractionError(f"Image recognition failed: {exc}") from exc
        return self._build_result(data)

    def close(self) -> None:
        if self._engine_version is not None:
            Log.info("Releasing Tesseract engine")
        self._engine_version = None

    def _ensure_engine(self) -> None:
        if self._engine_version is not None:
            return
        if self._tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self._tesseract_cmd
        try:
            version = pytesseract.get_tesseract_version()
        except Exception as exc:
            raise ExtractionError(f"Tesseract engine unavailable: {exc}") from exc
        self._engine_version = str(version)
        Log.info(f"Tesseract {self._engine_version} initialized (lang={self._language})")

    def _build_result(self, data: dict[str, list[Any]]) -> TextExtractionResult:
        lines: dict[_LineKey, list[int]] = {}
        for i, word in enumerate(data["text"]):
            if not str(word).strip() or float(data["conf"][i]) < 0:
                continue
            key = (
                int(data["page_num"][i]),
                int(data["block_num"][i]),
                int(data["par_num"][i]),
                int(data["line_num"][i]),
            )
            lines.setdefault(key, []).append(i)

        units: list[TextUnit] = []
        text_parts: list[str] = []
        word_confidences: list[float] = []
        previous_paragraph: tuple[int, int, int] | None = None

        for key, indices in lines.items():
            confidences = [_clamp(float(data["conf"][i])) for i in indices]
            left = min(int(data["left"][i]) for i in indices)
            top = min(int(data["top"][i]) for i in indices)
            right = max(int(data["left"][i]) + int(data["width"][i]) for i in indices)
            bottom = max(int(data["top"][i]) + int(data["height"][i]) for i in indices)
            line_text = " ".join(str(data["text"][i]).strip() for i in indices)

            units.append(
                TextUnit(
                    text=line_text,
                    confidence=round(fmean(confidences), 2),
                    bbox=BoundingBox(x=left, y=top, width=right - left, height=bottom - top),
                )
            )
            word_confidences.extend(confidences)

            # Blank line between paragraphs keeps section breaks visible to field rules.
            paragraph = key[:3]
            if previous_paragraph is not None:
                text_parts.append("\n\n" if paragraph != previous_paragraph else "\n")
            text_parts.append(line_text)
            previous_paragraph = paragraph

        confidence = round(fmean(word_confidences), 2) if word_confidences else 0.0
        return TextExtractionResult(text="".join(text_parts), confidence=confidence, units=units)


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))
