"""
FastAPI Dependencies - Authentication for dashboard endpoints.

The generation gateway authenticates inside its own handler; these
dependencies serve the other user-facing routes.
"""

from fastapi import Depends, Header

from novluma.models.domain import VerifiedIdentity
from novluma.services.identity import (
    FirebaseIdentityVerifier,
    get_identity_verifier,
    parse_bearer_token,
)


async def get_current_identity(
    authorization: str | None = Header(None, description="Bearer {firebase_id_token}"),
    verifier: FirebaseIdentityVerifier = Depends(get_identity_verifier),
) -> VerifiedIdentity:
    """
    Verify the bearer token on the request.

    Usage:
        @router.get("/api/usage")
        async def get_usage(identity: VerifiedIdentity = Depends(get_current_identity)):
            ...

    Raises:
        MissingTokenError / InvalidTokenError, rendered as 401 by the app
    """
    token = parse_bearer_token(authorization)
    return verifier.verify(token)
