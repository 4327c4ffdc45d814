"""
File analysis service.

Checks the upload, extracts its text with the matching extractor and asks
the gateway for an analysis through a single synthetic user message.
"""

from typing import Optional, Sequence

from parley.core.exceptions import PayloadTooLargeError, UnsupportedFileTypeError, ValidationError
from parley.core.logger import setup_logger
from parley.interfaces.text_extractor import ITextExtractor
from parley.models.enums import MessageRole
from parley.models.file_analysis import (
    AnalyzedFileMetadata,
    FileAnalysisResponse,
    FileInfoResponse,
    FileMetadata,
)
from parley.models.thread import Message
from parley.services.ai_gateway import AIResponseGateway
from parley.utils.datetime_utils import now_utc

logger = setup_logger(__name__)

PREVIEW_LENGTH = 500
ANALYSIS_SYSTEM_PROMPT = (
    "You are Parley, an assistant specialised in file analysis. Give a structured, "
    "well organised analysis with the key insights a reader needs."
)
ANALYSIS_PROMPT_TEMPLATE = """Analyze this {method} file named "{filename}". Provide:
1. Brief summary (2-3 sentences)
2. Key points or main topics
3. Important details or insights
4. Any issues, errors, or suggestions (if applicable)

File content:
{content}"""


def format_bytes(size: int, decimals: int = 2) -> str:
    """Human readable size, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, max(decimals, 0)):g} {units[index]}"


def normalize_content_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


class FileAnalysisService:
    """Analyze uploaded files through the AI gateway."""

    def __init__(
        self,
        gateway: AIResponseGateway,
        extractors: Sequence[ITextExtractor],
        max_bytes: int = 10 * 1024 * 1024,
        content_char_limit: int = 8000,
        model_mode: str = "fast",
    ):
        self._gateway = gateway
        self._extractors = list(extractors)
        self._max_bytes = max_bytes
        self._content_char_limit = content_char_limit
        self._model_mode = model_mode

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def find_extractor(self, content_type: str) -> Optional[ITextExtractor]:
        for extractor in self._extractors:
            if extractor.supports(content_type):
                return extractor
        return None

    def require_extractor(self, content_type: Optional[str]) -> ITextExtractor:
        """Return the extractor for a MIME type or raise UnsupportedFileTypeError."""
        content_type = normalize_content_type(content_type)
        extractor = self.find_extractor(content_type)
        if extractor is None:
            raise UnsupportedFileTypeError(
                "Unsupported file type. Please upload PDF, text, code, JSON, Markdown, "
                "or JPEG/PNG image files",
                details={"type": content_type},
            )
        return extractor

    def _check_size(self, size: int) -> None:
        if size > self._max_bytes:
            raise PayloadTooLargeError(
                f"File too large. Maximum size is {format_bytes(self._max_bytes)}",
                details={"size": size, "max_bytes": self._max_bytes},
            )

    def _metadata(self, filename: str, size: int, content_type: str) -> dict:
        return {
            "filename": filename,
            "size": size,
            "size_formatted": format_bytes(size),
            "type": content_type,
            "uploaded_at": now_utc(),
        }

    def describe(self, filename: str, content_type: Optional[str], size: int) -> FileInfoResponse:
        """Metadata only, no extraction."""
        self._check_size(size)
        content_type = normalize_content_type(content_type)
        return FileInfoResponse(
            metadata=FileMetadata(**self._metadata(filename, size, content_type)),
            supported=self.find_extractor(content_type) is not None,
        )

    async def analyze(
        self,
        filename: str,
        content_type: Optional[str],
        data: bytes,
    ) -> FileAnalysisResponse:
        """Extract text from an upload and return the model's analysis."""
        content_type = normalize_content_type(content_type)
        extractor = self.require_extractor(content_type)
        self._check_size(len(data))

        logger.info(f"Processing file: {filename} ({content_type})")
        content = await extractor.extract(data, filename)
        if not content or not content.strip():
            raise ValidationError("File appears to be empty or unreadable")

        prompt = ANALYSIS_PROMPT_TEMPLATE.format(
            method=extractor.method.value.upper(),
            filename=filename,
            content=content[: self._content_char_limit],
        )
        analysis = await self._gateway.get_reply(
            [Message(role=MessageRole.USER, content=prompt[:10000], timestamp=now_utc())],
            self._model_mode,
            system_prompt=ANALYSIS_SYSTEM_PROMPT,
        )

        preview = content[:PREVIEW_LENGTH] + ("..." if len(content) > PREVIEW_LENGTH else "")
        return FileAnalysisResponse(
            analysis=analysis,
            metadata=AnalyzedFileMetadata(
                **self._metadata(filename, len(data), content_type),
                content_length=len(content),
            ),
            extraction_method=extractor.method,
            content_preview=preview,
        )
