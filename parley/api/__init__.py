"""API routers."""

from parley.api import chat, files, models, threads

__all__ = [
    "chat",
    "files",
    "models",
    "threads",
]
