"""Parley: conversational AI front end with persisted threads."""

__version__ = "0.1.0"
