"""
Tests for the exception hierarchy.

Each error carries the status and caller-facing message it is rendered with.
"""

from uuid import uuid4

import pytest

from novluma.exceptions import (
    AuthenticationError,
    InvalidRequestError,
    InvalidTokenError,
    MethodNotAllowedError,
    MissingTokenError,
    NovlumaError,
    ProjectNotFoundError,
    QuotaExceededError,
    ServerMisconfiguredError,
    UpstreamProtocolError,
    UpstreamUnavailableError,
    WriteVerificationError,
)


class TestErrorRendering:
    """Status codes and messages."""

    @pytest.mark.parametrize(
        ("error", "status_code", "message"),
        [
            (MethodNotAllowedError("GET"), 405, "Method not allowed"),
            (MissingTokenError(), 401, "Unauthorized: Missing Token"),
            (InvalidTokenError("expired"), 401, "Unauthorized: Invalid Token"),
            (ServerMisconfiguredError(), 500, "Server Configuration Error: Missing API Key"),
        ],
    )
    def test_fixed_messages(self, error, status_code, message):
        """Caller-facing messages are fixed strings."""
        assert error.status_code == status_code
        assert error.message == message
        assert str(error) == message

    def test_misconfiguration_names_setting(self):
        """The operator message names whichever setting is missing."""
        error = ServerMisconfiguredError("Missing Firebase Project ID")

        assert error.status_code == 500
        assert error.detail == "Missing Firebase Project ID"
        assert error.message == "Server Configuration Error: Missing Firebase Project ID"

    def test_quota_message_names_limit(self):
        """The quota message names the plan allowance."""
        error = QuotaExceededError(limit=5000, words_used=5050)

        assert error.status_code == 403
        assert error.message == (
            "Monthly limit reached. Your plan includes 5000 words/month. "
            "Your usage resets at the start of your next billing cycle."
        )
        assert error.words_used == 5050

    def test_invalid_token_keeps_reason_private(self):
        """The verifier's reason is kept but not shown to the caller."""
        error = InvalidTokenError("Token expired, 1 < 2")

        assert error.reason == "Token expired, 1 < 2"
        assert "expired" not in error.message

    def test_detail_errors(self):
        """Errors with detail include it in the message."""
        assert InvalidRequestError("body is not valid JSON").message == (
            "Invalid request: body is not valid JSON"
        )
        assert UpstreamUnavailableError("ReadTimeout").status_code == 502
        assert UpstreamProtocolError("not JSON").status_code == 502
        assert WriteVerificationError("gone").status_code == 500

    def test_project_not_found(self):
        """Project errors are 404 and carry the id."""
        project_id = uuid4()
        error = ProjectNotFoundError(project_id)

        assert error.status_code == 404
        assert error.project_id == project_id
        assert str(project_id) in error.message


class TestHierarchy:
    """Inheritance used by the error handlers."""

    def test_auth_errors(self):
        """Both token errors are authentication errors."""
        assert issubclass(MissingTokenError, AuthenticationError)
        assert issubclass(InvalidTokenError, AuthenticationError)

    @pytest.mark.parametrize(
        "error_class",
        [
            MethodNotAllowedError,
            AuthenticationError,
            InvalidRequestError,
            QuotaExceededError,
            ProjectNotFoundError,
            ServerMisconfiguredError,
            UpstreamUnavailableError,
            UpstreamProtocolError,
            WriteVerificationError,
        ],
    )
    def test_all_derive_from_base(self, error_class):
        """Every service error is a NovlumaError."""
        assert issubclass(error_class, NovlumaError)
