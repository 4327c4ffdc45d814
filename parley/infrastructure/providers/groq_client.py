"""
Groq provider client ("fast" mode).

Talks to Groq's OpenAI-compatible chat completions endpoint.
"""

from typing import Any

from parley.core.exceptions import ProviderUnavailable
from parley.core.model_modes import ModelConfig
from parley.infrastructure.providers.base import HttpProviderClient


class GroqProviderClient(HttpProviderClient):
    """Chat completions over the OpenAI-compatible Groq API."""

    name = "groq"

    async def send(self, messages: list[dict[str, str]], config: ModelConfig) -> Any:
        if not self.is_configured():
            raise ProviderUnavailable("GROQ_API_KEY is not configured")

        payload = {
            "model": config.model,
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "top_p": config.top_p,
        }
        body = await self._post_json(
            f"{self._base_url}/chat/completions",
            payload,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        return self._unwrap(body)

    @staticmethod
    def _unwrap(body: Any) -> Any:
        """Strip the ``choices[0].message`` envelope."""
        if not isinstance(body, dict):
            return body
        choices = body.get("choices")
        if isinstance(choices, list) and choices:
            first = choices[0]
            if isinstance(first, dict) and "message" in first:
                return first["message"]
            return first
        return body
