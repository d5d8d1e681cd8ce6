"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses. Each exception
carries the HTTP status the API layer renders it with.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ForbiddenError(ServiceError):
    """Raised when a caller fails the admin check."""

    status_code = 403

    def __init__(self, caller_id: Optional[str] = None):
        self.caller_id = caller_id
        super().__init__("Forbidden: only the developer can perform this action")


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    status_code = 404

    def __init__(self, resource: str, identifier: Any = None):
        self.resource = resource
        self.identifier = identifier
        if identifier is None:
            super().__init__(f"{resource} not found")
        else:
            super().__init__(f"{resource} {identifier} not found")


class ConflictError(ServiceError):
    """Raised when an operation conflicts with existing state."""

    status_code = 409


class AlreadyClaimedError(ConflictError):
    """Raised when a code or site-wide gift was already redeemed by the caller."""

    status_code = 400

    def __init__(self, code: Optional[str] = None):
        self.code = code
        super().__init__("Gift already claimed")


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class PersistenceError(ServiceError):
    """Raised when the document store cannot complete a write."""

    status_code = 500


class UpstreamDeliveryError(ServiceError):
    """
    Raised when an outbound call (companion bot, webhook) fails.

    Never propagated to API callers: delivery is fire-and-forget and the
    failure is logged and reported as a warning alongside the result.
    """

    status_code = 502

    def __init__(self, target: str, message: str):
        self.target = target
        super().__init__(f"{target} delivery failed: {message}")
