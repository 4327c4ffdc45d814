"""Pydantic models (schemas) for the application."""

from parley.models.enums import ExtractionMethod, MessageRole
from parley.models.chat import ChatRequest, ChatResponse, HistoryEntry
from parley.models.file_analysis import FileAnalysisResponse, FileInfoResponse
from parley.models.thread import Message, MessageCreate, Thread, ThreadSettings, ThreadUpdate
from parley.models.user import UserPreference

__all__ = [
    # Enums
    "MessageRole",
    "ExtractionMethod",
    # Chat
    "ChatRequest",
    "ChatResponse",
    "HistoryEntry",
    # Threads
    "Message",
    "MessageCreate",
    "Thread",
    "ThreadSettings",
    "ThreadUpdate",
    # Files
    "FileAnalysisResponse",
    "FileInfoResponse",
    # Users
    "UserPreference",
]
