"""
Local text extractors for uploaded files.

PDF via pypdf, plain text via UTF-8 decoding, images via Tesseract OCR.
Blocking parsers run in a worker thread.
"""

import asyncio
from io import BytesIO

from PIL import Image, UnidentifiedImageError
from pypdf import PdfReader
from pypdf.errors import PdfReadError
import pytesseract

from parley.core.logger import setup_logger
from parley.interfaces.text_extractor import ITextExtractor
from parley.models.enums import ExtractionMethod

logger = setup_logger(__name__)

TEXT_TYPE_MARKERS = ("javascript", "json", "python", "markdown")
OCR_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png")


class PdfTextExtractor(ITextExtractor):
    """Extract the text layer of a PDF."""

    method = ExtractionMethod.PDF

    def __init__(self, max_pages: int = 200):
        self._max_pages = max_pages

    def supports(self, content_type: str) -> bool:
        return content_type == "application/pdf"

    async def extract(self, data: bytes, filename: str) -> str:
        return await asyncio.to_thread(self._extract_sync, data, filename)

    def _extract_sync(self, data: bytes, filename: str) -> str:
        try:
            reader = PdfReader(BytesIO(data))
        except PdfReadError as e:
            logger.warning(f"Could not open PDF {filename}: {e}")
            return ""

        chunks: list[str] = []
        for page in reader.pages[: self._max_pages]:
            try:
                page_text = page.extract_text() or ""
            except Exception:
                page_text = ""
            page_text = page_text.strip()
            if page_text:
                chunks.append(page_text)
        return "\n\n".join(chunks)


class PlainTextExtractor(ITextExtractor):
    """Decode text-like files (plain text, code, JSON, Markdown)."""

    method = ExtractionMethod.TEXT

    def supports(self, content_type: str) -> bool:
        return content_type.startswith("text/") or any(
            marker in content_type for marker in TEXT_TYPE_MARKERS
        )

    async def extract(self, data: bytes, filename: str) -> str:
        return data.decode("utf-8", errors="replace")


class OcrTextExtractor(ITextExtractor):
    """Read text from JPEG/PNG images with Tesseract."""

    method = ExtractionMethod.OCR

    def __init__(self, language: str = "eng"):
        self._language = language

    def supports(self, content_type: str) -> bool:
        return content_type in OCR_IMAGE_TYPES

    async def extract(self, data: bytes, filename: str) -> str:
        logger.info(f"Performing OCR on {filename}")
        return await asyncio.to_thread(self._extract_sync, data, filename)

    def _extract_sync(self, data: bytes, filename: str) -> str:
        try:
            with Image.open(BytesIO(data)) as image:
                return (pytesseract.image_to_string(image, lang=self._language) or "").strip()
        except pytesseract.TesseractNotFoundError:
            logger.error(f"Tesseract is not installed; cannot OCR {filename}")
            return ""
        except UnidentifiedImageError:
            logger.warning(f"Could not decode image {filename}")
            return ""


def default_extractors() -> list[ITextExtractor]:
    return [PdfTextExtractor(), PlainTextExtractor(), OcrTextExtractor()]
