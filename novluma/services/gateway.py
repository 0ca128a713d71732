"""
Generation Gateway - authenticated, quota-gated proxy to the upstream model.

handle() is the single error boundary: every failure becomes a
GatewayResponse with a status and an {"error": ...} body.

Order of operations:
1. Method check (no side effects)
2. Bearer token verification (no storage access before this succeeds)
3. Body validation
4. Usage lookup/creation, admission, durable cycle reset
5. Upstream call (requires the server API key)
6. Debit by the words actually produced (2xx only)
"""

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError
from structlog import get_logger

from novluma.config import Settings
from novluma.exceptions import (
    InvalidRequestError,
    MethodNotAllowedError,
    NovlumaError,
    QuotaExceededError,
    ServerMisconfiguredError,
)
from novluma.models.api import GenerationRequest
from novluma.models.domain import GatewayResponse, UserRecord, VerifiedIdentity
from novluma.observability import log_context, metrics
from novluma.services.identity import FirebaseIdentityVerifier, parse_bearer_token
from novluma.services.quota import QuotaLedger, admit
from novluma.services.upstream import GeminiClient, count_words, extract_generated_text

logger = get_logger(__name__)


def _utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


def _error(status_code: int, message: str) -> GatewayResponse:
    return GatewayResponse(status_code=status_code, body={"error": message})


class GenerationGateway:
    """Request-scoped handler; holds no state between invocations."""

    def __init__(
        self,
        ledger: QuotaLedger,
        verifier: FirebaseIdentityVerifier,
        upstream: GeminiClient,
        settings: Settings,
    ) -> None:
        self.ledger = ledger
        self.verifier = verifier
        self.upstream = upstream
        self.settings = settings

    async def handle(
        self, method: str, authorization: str | None, body: bytes
    ) -> GatewayResponse:
        """Run one generation request end to end."""
        try:
            if method.upper() != "POST":
                raise MethodNotAllowedError(method)

            token = parse_bearer_token(authorization)
            identity = self.verifier.verify(token)

            with log_context(user_id=identity.user_id):
                return await self._generate(identity, body)

        except NovlumaError as e:
            metrics.record_generation(type(e).__name__)
            logger.info(
                "generation_rejected",
                error_type=type(e).__name__,
                status_code=e.status_code,
                error=e.message,
            )
            return _error(e.status_code, e.message)

        except Exception as e:
            metrics.record_generation("internal_error")
            metrics.record_error(type(e).__name__, "generate")
            logger.error(
                "generation_failed", error_type=type(e).__name__, error=str(e), exc_info=True
            )
            return _error(500, str(e) or "Internal Server Error")

    async def _generate(self, identity: VerifiedIdentity, body: bytes) -> GatewayResponse:
        request = self._parse_body(body)

        user = await self.ledger.get_or_init_usage(identity)
        await self._admit(user)

        api_key = self.settings.upstream_api_key
        if not api_key:
            logger.error("upstream_api_key_missing")
            raise ServerMisconfiguredError()

        model = request.model or self.settings.gemini_default_model
        version = request.version or self.settings.gemini_default_version

        upstream = await self.upstream.generate_content(
            model, version, request.upstream_body(), api_key
        )

        if not upstream.ok:
            metrics.record_generation("upstream_error")
            logger.warning(
                "upstream_error_relayed",
                model=model,
                version=version,
                status_code=upstream.status_code,
            )
            return GatewayResponse(status_code=upstream.status_code, body=upstream.body)

        words = count_words(extract_generated_text(upstream.body))
        await self._debit(identity.user_id, words)

        metrics.record_generation("success")
        return GatewayResponse(status_code=200, body=upstream.body)

    def _parse_body(self, body: bytes) -> GenerationRequest:
        try:
            data: Any = json.loads(body) if body else None
        except ValueError as e:
            raise InvalidRequestError("body is not valid JSON") from e

        if not isinstance(data, dict):
            raise InvalidRequestError("body must be a JSON object")

        try:
            return GenerationRequest.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise InvalidRequestError(f"invalid fields: {fields}") from e

    async def _admit(self, user: UserRecord) -> None:
        """Apply the admission decision; a signaled reset is persisted first."""
        now = _utc_now()
        decision = admit(user.usage, user.role, now)

        if decision.reset_required:
            await self.ledger.reset_cycle(user.user_id, user.usage.cycle_start, now)

        if not decision.admitted:
            logger.info(
                "quota_exceeded",
                words_used=decision.words_used,
                limit=decision.limit,
            )
            raise QuotaExceededError(decision.limit, decision.words_used)

    async def _debit(self, user_id: str, words: int) -> None:
        """
        Record consumption after the fact.

        A failure here is logged and swallowed: the caller already has the
        generated content and keeps it.
        """
        metrics.record_output(words)
        if words <= 0:
            return

        try:
            await self.ledger.debit(user_id, words)
        except Exception as e:
            metrics.record_error(type(e).__name__, "debit")
            logger.error(
                "usage_debit_failed",
                words=words,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            try:
                await self.ledger.session.rollback()
            except Exception as rollback_error:
                logger.error("usage_debit_rollback_failed", error=str(rollback_error))
        else:
            metrics.record_debit(words)
