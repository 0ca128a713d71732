"""
Upstream Client - Gemini generateContent over HTTP.

Single attempt per call; retry and model fallback belong to the caller.
"""

import time
from typing import Any

import httpx
from structlog import get_logger

from novluma.config import settings
from novluma.exceptions import UpstreamProtocolError, UpstreamUnavailableError
from novluma.models.domain import UpstreamResponse
from novluma.observability import metrics
from novluma.observability.tracing import trace_operation

logger = get_logger(__name__)


def extract_generated_text(body: Any) -> str:
    """
    Text of the first part of the first candidate.

    Any missing level yields an empty string.
    """
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
    return text if isinstance(text, str) else ""


def count_words(text: str) -> int:
    """Number of whitespace-separated tokens."""
    return len(text.split())


class GeminiClient:
    """Thin async client for the generateContent endpoint."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.upstream_timeout_seconds
        self._http_client = http_client

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    def endpoint(self, model: str, version: str) -> str:
        """generateContent URL for a model/version pair (without the key)."""
        return f"{self.base_url}/{version}/models/{model}:generateContent"

    async def generate_content(
        self, model: str, version: str, body: dict[str, Any], api_key: str
    ) -> UpstreamResponse:
        """
        POST a generation request and return the decoded response.

        Non-2xx responses are returned, not raised, so the caller can relay
        them unchanged.

        Raises:
            UpstreamUnavailableError: connection failure or timeout
            UpstreamProtocolError: 2xx response whose body is not JSON
        """
        url = self.endpoint(model, version)
        start = time.time()

        with trace_operation("upstream_generate_content", model=model, version=version) as span:
            try:
                response = await self.http_client.post(
                    url,
                    params={"key": api_key},
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
            except httpx.HTTPError as e:
                metrics.record_error(type(e).__name__, "upstream_generate_content")
                logger.error(
                    "upstream_request_failed",
                    model=model,
                    version=version,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise UpstreamUnavailableError(type(e).__name__) from e

            duration = time.time() - start
            span.set_attribute("http.status_code", response.status_code)
            metrics.record_upstream(model, response.status_code, duration)

        try:
            payload: Any = response.json()
        except ValueError as e:
            if response.is_success:
                raise UpstreamProtocolError("response body is not JSON") from e
            payload = {"error": response.text or response.reason_phrase}

        logger.info(
            "upstream_response",
            model=model,
            version=version,
            status_code=response.status_code,
            duration_seconds=duration,
        )
        return UpstreamResponse(status_code=response.status_code, body=payload)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


_client: GeminiClient | None = None


def get_upstream_client() -> GeminiClient:
    """FastAPI dependency returning the process-wide upstream client."""
    global _client
    if _client is None:
        _client = GeminiClient()
    return _client


async def close_upstream_client() -> None:
    """Close the process-wide upstream client (for graceful shutdown)."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
