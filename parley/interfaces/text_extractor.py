"""
Text extractor interface.

Extractors turn an uploaded file into plain text. Implementations: PDF,
plain text, OCR for images.
"""

from abc import ABC, abstractmethod

from parley.models.enums import ExtractionMethod


class ITextExtractor(ABC):
    """Abstract interface for file text extraction."""

    method: ExtractionMethod

    @abstractmethod
    def supports(self, content_type: str) -> bool:
        """
        Check whether this extractor handles a MIME type.

        Args:
            content_type: Declared MIME type (lowercase, no parameters)

        Returns:
            True if the extractor can read the file
        """
        pass

    @abstractmethod
    async def extract(self, data: bytes, filename: str) -> str:
        """
        Extract text from file content.

        Args:
            data: Raw file bytes
            filename: Original filename (for logging)

        Returns:
            Extracted text (may be empty)
        """
        pass
