"""
Generation Client - calls the gateway on behalf of the dashboard.

Model fallback lives here, not in the gateway: each strategy is a separate
gateway call, admitted and metered independently. Authentication and quota
rejections end the loop because no other model would be treated differently.
"""

from dataclasses import dataclass
from typing import Any

import httpx
from structlog import get_logger

from novluma.services.upstream import extract_generated_text

logger = get_logger(__name__)


@dataclass(frozen=True)
class ModelStrategy:
    """One (model, version) pair to try."""

    model: str
    version: str


DEFAULT_STRATEGIES: tuple[ModelStrategy, ...] = (
    ModelStrategy(model="gemini-2.0-flash", version="v1beta"),
    ModelStrategy(model="gemini-flash-latest", version="v1beta"),
    ModelStrategy(model="gemini-pro-latest", version="v1beta"),
)

# Statuses where trying another model cannot help
_TERMINAL_STATUSES = frozenset({400, 401, 403, 405})


class GenerationFailedError(Exception):
    """Raised when no strategy produced content."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def build_prompt(topic: str, platform: str, tone: str) -> str:
    """Content-creation prompt for a topic on a given platform."""
    return (
        f'You are an expert content creator. Write a {platform} about "{topic}".\n'
        "\n"
        f"Tone: {tone}\n"
        "\n"
        "Requirements:\n"
        '- If it\'s a Twitter Thread, separate tweets with "---".\n'
        "- If it's a LinkedIn Post, use professional formatting and hashtags.\n"
        "- If it's a Blog Post, include a catchy title and clear headings.\n"
        "- If it's an Email, include a subject line.\n"
        "\n"
        "Make it engaging, high-quality, and ready to post."
    )


def _error_message(response: httpx.Response) -> str:
    try:
        data: Any = response.json()
    except ValueError:
        return f"API Error: {response.status_code} {response.reason_phrase}"

    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return f"API Error: {response.status_code} {response.reason_phrase}"


class GenerationClient:
    """Async client for POST /api/generate."""

    def __init__(
        self,
        base_url: str,
        id_token: str,
        strategies: tuple[ModelStrategy, ...] = DEFAULT_STRATEGIES,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 90.0,
    ) -> None:
        if not strategies:
            raise ValueError("at least one model strategy is required")
        self.base_url = base_url.rstrip("/")
        self.id_token = id_token
        self.strategies = strategies
        self.timeout = timeout
        self._http_client = http_client

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def generate_text(
        self,
        contents: list[Any],
        generation_config: dict[str, Any] | None = None,
        safety_settings: list[Any] | None = None,
    ) -> str:
        """
        Try each strategy in order and return the first generated text.

        Raises:
            GenerationFailedError: every strategy failed, or a terminal
                rejection (auth, quota) was returned
        """
        last_error: GenerationFailedError | None = None

        for strategy in self.strategies:
            logger.info("generation_attempt", model=strategy.model, version=strategy.version)
            try:
                return await self._attempt(strategy, contents, generation_config, safety_settings)
            except GenerationFailedError as e:
                logger.warning(
                    "generation_strategy_failed",
                    model=strategy.model,
                    version=strategy.version,
                    status_code=e.status_code,
                    error=e.message,
                )
                if e.status_code in _TERMINAL_STATUSES:
                    raise
                last_error = e

        # strategies is non-empty, so at least one attempt failed
        assert last_error is not None
        logger.error("generation_all_strategies_failed", error=last_error.message)
        raise GenerationFailedError(last_error.message, last_error.status_code)

    async def generate_content(self, topic: str, platform: str, tone: str) -> str:
        """Generate ready-to-post content for a topic."""
        prompt = build_prompt(topic, platform, tone)
        return await self.generate_text([{"parts": [{"text": prompt}]}])

    async def _attempt(
        self,
        strategy: ModelStrategy,
        contents: list[Any],
        generation_config: dict[str, Any] | None,
        safety_settings: list[Any] | None,
    ) -> str:
        payload: dict[str, Any] = {
            "contents": contents,
            "model": strategy.model,
            "version": strategy.version,
        }
        if generation_config is not None:
            payload["generationConfig"] = generation_config
        if safety_settings is not None:
            payload["safetySettings"] = safety_settings

        try:
            response = await self.http_client.post(
                f"{self.base_url}/api/generate",
                json=payload,
                headers={"Authorization": f"Bearer {self.id_token}"},
            )
        except httpx.HTTPError as e:
            raise GenerationFailedError(f"Request failed: {type(e).__name__}") from e

        if not response.is_success:
            raise GenerationFailedError(_error_message(response), response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationFailedError("Invalid response format from AI") from e

        text = extract_generated_text(data)
        if not text:
            raise GenerationFailedError("Invalid response format from AI")
        return text

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
