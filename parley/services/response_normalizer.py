"""
Response normalizer.

Turns whatever a provider returned (strings, lists, nested dicts) into one
plain string without ever falling back to ``str(obj)``.
"""

from collections.abc import Mapping, Sequence
from typing import Any

DEFAULT_MAX_DEPTH = 10
DEFAULT_PRIORITY_FIELDS: tuple[str, ...] = ("text", "content", "message", "parts", "body")
# Envelope keys that never carry reply text
DEFAULT_METADATA_FIELDS: tuple[str, ...] = ("role", "type", "id", "model", "finish_reason")


class ResponseNormalizer:
    """Recursive text extractor with an explicit depth bound and field order.

    Rules, applied at each level:

    * ``str`` is returned unchanged.
    * Sequences are normalized element-wise and concatenated.
    * Mappings use the first priority field with a non-empty result; when
      none yields text every other value (envelope keys such as ``role``
      excepted) is normalized and the non-empty results concatenated.
    * Anything else (``None``, numbers, booleans, arbitrary objects) or a
      level deeper than ``max_depth`` yields ``""``.

    An empty result means "no readable content"; callers decide what to show.
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        priority_fields: Sequence[str] = DEFAULT_PRIORITY_FIELDS,
        metadata_fields: Sequence[str] = DEFAULT_METADATA_FIELDS,
    ):
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        self.max_depth = max_depth
        self.priority_fields = tuple(priority_fields)
        self.metadata_fields = frozenset(metadata_fields)

    def normalize(self, payload: Any) -> str:
        try:
            return self._normalize(payload, 0)
        except RecursionError:
            return ""

    def _normalize(self, value: Any, depth: int) -> str:
        if depth > self.max_depth:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, Mapping):
            return self._normalize_mapping(value, depth)
        if isinstance(value, (list, tuple)):
            return "".join(self._normalize(item, depth + 1) for item in value)
        return ""

    def _normalize_mapping(self, value: Mapping, depth: int) -> str:
        for field in self.priority_fields:
            if field in value:
                text = self._normalize(value[field], depth + 1)
                if text:
                    return text
        parts = [
            self._normalize(item, depth + 1)
            for key, item in value.items()
            if key not in self.priority_fields and key not in self.metadata_fields
        ]
        return "".join(part for part in parts if part)


_default_normalizer = ResponseNormalizer()


def normalize(payload: Any) -> str:
    """Normalize with the default configuration."""
    return _default_normalizer.normalize(payload)
