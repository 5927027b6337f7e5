"""Domain errors raised by gates and services; mapped to HTTP responses in app.main."""


class ServiceError(Exception):
    """Base class for expected failures that carry an HTTP status and a client-safe message."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ServiceError):
    """Missing, invalid or expired credential, or an inactive account."""

    status_code = 401
    default_message = "Authentication required"


class Forbidden(ServiceError):
    """Authenticated caller lacks a required permission or ownership."""

    status_code = 403
    default_message = "Insufficient permissions"


class Conflict(ServiceError):
    """A unique key is already taken or the change would break an invariant."""

    status_code = 400
    default_message = "Resource already exists"


class NotFound(ServiceError):
    """A referenced user, role, permission or document does not exist."""

    status_code = 404
    default_message = "Resource not found"


class PayloadTooLarge(ServiceError):
    status_code = 413
    default_message = "Payload too large"


class InvalidInput(ServiceError):
    status_code = 400
    default_message = "Invalid request body"
