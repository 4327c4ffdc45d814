"""
Model provider client interface.

Defines the contract for talking to one external chat-completion backend.
Implementations: Groq (OpenAI-compatible), Gemini.
"""

from abc import ABC, abstractmethod
from typing import Any

from parley.core.model_modes import ModelConfig


class IProviderClient(ABC):
    """Abstract interface for model provider clients."""

    #: Provider identifier referenced by the model-mode registry
    name: str = ""

    @abstractmethod
    async def send(self, messages: list[dict[str, str]], config: ModelConfig) -> Any:
        """
        Send a chat-completion request.

        Only the provider's top-level envelope is unwrapped; nested content is
        returned as-is for the response normalizer.

        Args:
            messages: Ordered ``{"role", "content"}`` dicts
            config: Model and sampling parameters

        Returns:
            Raw provider payload

        Raises:
            ProviderUnavailable: No credential configured
            ProviderHTTPError: Non-success HTTP status
            ProviderTransportError: Network failure or timeout
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check whether a credential is available.

        Returns:
            True if requests can be sent
        """
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        return None
