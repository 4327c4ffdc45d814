"""
Shared HTTP plumbing for model provider clients.
"""

from typing import Any, Optional

import httpx

from parley.core.exceptions import ProviderHTTPError, ProviderTransportError
from parley.interfaces.provider_client import IProviderClient


def extract_error_message(response: httpx.Response) -> str:
    """Pull a readable error message out of a failed provider response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str) and error:
            return error
        if isinstance(body.get("message"), str):
            return body["message"]
    return f"HTTP {response.status_code}"


class HttpProviderClient(IProviderClient):
    """Base class for providers reached over JSON/HTTP.

    Owns one ``httpx.AsyncClient`` that is created lazily and released with
    ``aclose()``.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def _post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> Any:
        try:
            response = await self._get_client().post(
                url,
                json=payload,
                headers=headers,
                params=params,
            )
        except httpx.TimeoutException as e:
            raise ProviderTransportError(f"{self.name} request timed out", timed_out=True) from e
        except httpx.HTTPError as e:
            raise ProviderTransportError(f"{self.name} request failed: {e}") from e

        if not response.is_success:
            raise ProviderHTTPError(response.status_code, extract_error_message(response))

        try:
            return response.json()
        except ValueError:
            # Non-JSON success bodies are handed to the normalizer as text
            return response.text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
