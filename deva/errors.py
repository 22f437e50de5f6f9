"""Error taxonomy shared by the classifier, the Linear client and the routes.

Every error carries the HTTP status it maps to and a message that is safe
to show to the user. Route handlers let these propagate; the exception
handlers registered in ``main.py`` turn them into ``{"error": ...}``
responses.
"""

from typing import Optional


class DevaError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, cause: Optional[Exception] = None):
        self.message = message or self.public_message
        self.cause = cause
        super().__init__(self.message)


class AuthenticationError(DevaError):
    """Missing, expired or rejected Linear access token."""

    status_code = 401
    public_message = "Authentication failed. Please reconnect to Linear."


class UpstreamUnavailable(DevaError):
    """A network call to Linear or the LLM provider failed."""

    status_code = 500
    public_message = "Failed to reach Linear"


class LinearAPIError(UpstreamUnavailable):
    """Linear answered with GraphQL errors or an unsuccessful mutation."""

    public_message = "Linear request failed"


class ValidationError(DevaError):
    """Request data is incomplete; raised before any remote call."""

    status_code = 400
    public_message = "Invalid request"


class ResourceNotFound(DevaError):
    status_code = 404
    public_message = "Resource not found"


class NoTeamFound(ResourceNotFound):
    """The authenticated Linear user belongs to no team."""

    status_code = 400
    public_message = (
        "Failed to find or select team. Please ensure you have access to at least one team."
    )


class InvalidTransition(DevaError):
    """Conversation status change that would move backwards."""

    status_code = 409
    public_message = "Invalid status transition"
