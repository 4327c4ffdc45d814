"""
Unit tests for the local text extractors.
"""

from io import BytesIO

import pytest
import pytesseract
from PIL import Image

from parley.infrastructure.local.text_extractors import (
    OcrTextExtractor,
    PdfTextExtractor,
    PlainTextExtractor,
    default_extractors,
)
from parley.models.enums import ExtractionMethod


@pytest.mark.parametrize(
    "content_type",
    ["text/plain", "text/csv", "application/json", "application/javascript", "text/x-python"],
)
def test_plain_text_supports_text_like_types(content_type):
    assert PlainTextExtractor().supports(content_type)


def test_plain_text_rejects_binary_types():
    extractor = PlainTextExtractor()

    assert not extractor.supports("application/pdf")
    assert not extractor.supports("image/png")


@pytest.mark.asyncio
async def test_plain_text_decodes_utf8_leniently():
    text = await PlainTextExtractor().extract("héllo".encode() + b"\xff", "a.txt")

    assert text.startswith("héllo")


@pytest.mark.asyncio
async def test_unreadable_pdf_yields_empty_text():
    assert await PdfTextExtractor().extract(b"not a pdf at all", "broken.pdf") == ""


@pytest.mark.asyncio
async def test_undecodable_image_yields_empty_text():
    assert await OcrTextExtractor().extract(b"not an image", "broken.png") == ""


def test_default_extractors_cover_every_method():
    methods = {extractor.method for extractor in default_extractors()}

    assert methods == {ExtractionMethod.PDF, ExtractionMethod.TEXT, ExtractionMethod.OCR}


@pytest.mark.asyncio
async def test_missing_tesseract_binary_yields_empty_text(monkeypatch):
    def missing_binary(*args, **kwargs):
        raise pytesseract.TesseractNotFoundError()

    monkeypatch.setattr(pytesseract, "image_to_string", missing_binary)
    buffer = BytesIO()
    Image.new("RGB", (8, 8), "white").save(buffer, format="PNG")

    assert await OcrTextExtractor().extract(buffer.getvalue(), "scan.png") == ""
