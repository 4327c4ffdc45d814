"""
Gemini provider client ("creative" mode).

Uses the generateContent REST endpoint with an API key.
"""

from typing import Any

from parley.core.exceptions import ProviderUnavailable
from parley.core.model_modes import ModelConfig
from parley.infrastructure.providers.base import HttpProviderClient


class GeminiProviderClient(HttpProviderClient):
    """Chat completions over the Gemini generateContent API."""

    name = "gemini"

    async def send(self, messages: list[dict[str, str]], config: ModelConfig) -> Any:
        if not self.is_configured():
            raise ProviderUnavailable("GEMINI_API_KEY is not configured")

        body = await self._post_json(
            f"{self._base_url}/models/{config.model}:generateContent",
            self.build_payload(messages, config),
            params={"key": self._api_key},
        )
        return self._unwrap(body)

    @staticmethod
    def build_payload(messages: list[dict[str, str]], config: ModelConfig) -> dict[str, Any]:
        """Map chat messages onto Gemini contents.

        System messages become ``systemInstruction``; assistant turns use the
        ``model`` role.
        """
        system_parts = [
            {"text": m["content"]} for m in messages if m["role"] == "system" and m["content"]
        ]
        contents = [
            {
                "role": "model" if m["role"] == "assistant" else "user",
                "parts": [{"text": m["content"]}],
            }
            for m in messages
            if m["role"] != "system"
        ]
        payload: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": config.temperature,
                "maxOutputTokens": config.max_tokens,
                "topP": config.top_p,
            },
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}
        return payload

    @staticmethod
    def _unwrap(body: Any) -> Any:
        """Strip the ``candidates[0].content`` envelope."""
        if not isinstance(body, dict):
            return body
        candidates = body.get("candidates")
        if isinstance(candidates, list) and candidates:
            first = candidates[0]
            if isinstance(first, dict) and "content" in first:
                return first["content"]
            return first
        return body
