"""
Identity Verifier - exchanges Firebase ID tokens for a verified identity.

Tokens are verified against Google's public certificates for the configured
Firebase project. Verified tokens are cached until shortly before they expire
to avoid re-verifying on every request.
"""

import time

import google.auth.exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from structlog import get_logger

from novluma.config import settings
from novluma.exceptions import InvalidTokenError, MissingTokenError, ServerMisconfiguredError
from novluma.models.domain import VerifiedIdentity

logger = get_logger(__name__)

_MAX_CACHE_SIZE = 10000
_CACHE_EXPIRY_BUFFER_SECONDS = 60


def parse_bearer_token(authorization: str | None) -> str:
    """
    Extract the credential from an Authorization header value.

    Raises:
        MissingTokenError: header absent, not a Bearer credential, or empty
    """
    if not authorization:
        raise MissingTokenError()

    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        raise MissingTokenError()

    return credentials.strip()


class FirebaseIdentityVerifier:
    """Verifies Firebase ID tokens issued for one project."""

    def __init__(self, project_id: str, request: google_requests.Request | None = None) -> None:
        self.project_id = project_id
        self._request = request
        # token -> (identity, expiry_timestamp)
        self._cache: dict[str, tuple[VerifiedIdentity, float]] = {}

    @property
    def request(self) -> google_requests.Request:
        """Transport used to fetch Google's signing certificates."""
        if self._request is None:
            self._request = google_requests.Request()  # type: ignore[no-untyped-call]
        return self._request

    def verify(self, token: str) -> VerifiedIdentity:
        """
        Verify a token and return the identity it asserts.

        Raises:
            InvalidTokenError: signature, audience, issuer or expiry check failed
            ServerMisconfiguredError: no Firebase project configured
        """
        cached = self._cache.get(token)
        if cached is not None:
            identity, expiry = cached
            if time.time() < expiry:
                return identity
            del self._cache[token]

        if not self.project_id:
            logger.error("firebase_project_id_missing")
            raise ServerMisconfiguredError("Missing Firebase Project ID")

        try:
            claims = id_token.verify_firebase_token(  # type: ignore[no-untyped-call]
                token, self.request, audience=self.project_id
            )
        except (ValueError, google.auth.exceptions.GoogleAuthError) as e:
            logger.warning("id_token_verification_failed", error=str(e))
            raise InvalidTokenError(str(e)) from e

        if not claims:
            raise InvalidTokenError("token carries no claims")

        user_id = claims.get("user_id") or claims.get("sub")
        if not user_id:
            raise InvalidTokenError("token is missing a user id")

        identity = VerifiedIdentity(
            user_id=user_id,
            email=claims.get("email"),
            name=claims.get("name"),
        )

        expiry = float(claims.get("exp", time.time() + 3600)) - _CACHE_EXPIRY_BUFFER_SECONDS
        self._remember(token, identity, expiry)
        return identity

    def _remember(self, token: str, identity: VerifiedIdentity, expiry: float) -> None:
        if len(self._cache) >= _MAX_CACHE_SIZE:
            now = time.time()
            for key in [k for k, (_, exp) in self._cache.items() if exp < now]:
                del self._cache[key]
            if len(self._cache) >= _MAX_CACHE_SIZE:
                self._cache.clear()
        self._cache[token] = (identity, expiry)


_verifier: FirebaseIdentityVerifier | None = None


def get_identity_verifier() -> FirebaseIdentityVerifier:
    """FastAPI dependency returning the process-wide verifier."""
    global _verifier
    if _verifier is None:
        _verifier = FirebaseIdentityVerifier(settings.firebase_project_id)
    return _verifier
