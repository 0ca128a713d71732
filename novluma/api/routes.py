"""
API Routes - generation proxy, usage and health endpoints.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from novluma.api.dependencies import get_current_identity
from novluma.config import Settings, get_settings
from novluma.db.session import get_read_db, get_write_db
from novluma.models.api import ErrorResponse, HealthResponse, UsageResponse
from novluma.models.domain import VerifiedIdentity
from novluma.services.gateway import GenerationGateway
from novluma.services.identity import FirebaseIdentityVerifier, get_identity_verifier
from novluma.services.quota import QuotaLedger
from novluma.services.upstream import GeminiClient, get_upstream_client

router = APIRouter()


@router.api_route(
    "/api/generate",
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        405: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate(
    request: Request,
    db: AsyncSession = Depends(get_write_db),
    verifier: FirebaseIdentityVerifier = Depends(get_identity_verifier),
    upstream: GeminiClient = Depends(get_upstream_client),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Metered proxy to the upstream generateContent API.

    Auth: Authorization: Bearer {firebase_id_token}
    Body: {contents, model?, version?, generationConfig?, safetySettings?}

    Every method is routed here so that non-POST calls get the same
    {"error": ...} body as every other rejection.
    """
    gateway = GenerationGateway(QuotaLedger(db), verifier, upstream, settings)
    result = await gateway.handle(
        request.method,
        request.headers.get("Authorization"),
        await request.body(),
    )
    return JSONResponse(status_code=result.status_code, content=result.body)


@router.get("/api/usage", response_model=UsageResponse)
async def get_usage(
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_write_db),
) -> UsageResponse:
    """
    Current billing-cycle usage for the caller.

    Creates the user record on first sight, like the gateway does.
    """
    summary = await QuotaLedger(db).usage_summary(identity)
    return UsageResponse(
        user_id=summary.user_id,
        role=summary.role,
        words_used=summary.words_used,
        word_limit=summary.word_limit,
        words_remaining=summary.words_remaining,
        unlimited=summary.unlimited,
        cycle_start=summary.cycle_start,
        cycle_resets_at=summary.cycle_resets_at,
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_read_db)) -> HealthResponse | JSONResponse:
    """
    Health check for load balancer.

    Verifies database connectivity.
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(exc),
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )

    return HealthResponse(
        status="healthy",
        database="connected",
        timestamp=datetime.now(UTC).isoformat(),
    )
