"""
Enum definitions for the application.
"""

from enum import Enum


class MessageRole(str, Enum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ExtractionMethod(str, Enum):
    """How text was pulled out of an uploaded file."""

    PDF = "pdf"
    TEXT = "text"
    OCR = "ocr"
