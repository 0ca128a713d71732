"""
Exception Classes - Strongly typed exception hierarchy.

Every exception carries the HTTP status it is rendered with and a
human-readable message that is safe to return to the caller.
"""

from uuid import UUID


class NovlumaError(Exception):
    """Base exception for all service errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ============================================================================
# Client Errors
# ============================================================================


class MethodNotAllowedError(NovlumaError):
    """Raised when the gateway is called with anything other than POST."""

    status_code = 405

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__("Method not allowed")


class AuthenticationError(NovlumaError):
    """Base for bearer credential failures."""

    status_code = 401


class MissingTokenError(AuthenticationError):
    """Raised when no bearer credential is present."""

    def __init__(self) -> None:
        super().__init__("Unauthorized: Missing Token")


class InvalidTokenError(AuthenticationError):
    """Raised when the identity verifier rejects the bearer credential."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__("Unauthorized: Invalid Token")


class InvalidRequestError(NovlumaError):
    """Raised when the request body is not a valid generation request."""

    status_code = 400

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid request: {detail}")


class QuotaExceededError(NovlumaError):
    """Raised when a user has used up the monthly word allowance."""

    status_code = 403

    def __init__(self, limit: int, words_used: int) -> None:
        self.limit = limit
        self.words_used = words_used
        super().__init__(
            f"Monthly limit reached. Your plan includes {limit} words/month. "
            "Your usage resets at the start of your next billing cycle."
        )


class ProjectNotFoundError(NovlumaError):
    """Raised when a project does not exist or belongs to someone else."""

    status_code = 404

    def __init__(self, project_id: UUID) -> None:
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


# ============================================================================
# Operator / Upstream Errors
# ============================================================================


class ServerMisconfiguredError(NovlumaError):
    """Raised when a setting the service cannot run without is missing."""

    status_code = 500

    def __init__(self, detail: str = "Missing API Key") -> None:
        self.detail = detail
        super().__init__(f"Server Configuration Error: {detail}")


class UpstreamUnavailableError(NovlumaError):
    """Raised when the upstream API could not be reached or timed out."""

    status_code = 502

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Upstream generation service unavailable: {detail}")


class UpstreamProtocolError(NovlumaError):
    """Raised when a successful upstream response is not valid JSON."""

    status_code = 502

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid response from generation service: {detail}")


# ============================================================================
# Storage Errors
# ============================================================================


class WriteVerificationError(NovlumaError):
    """Raised when a database write cannot be read back."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Write verification failed: {detail}")
