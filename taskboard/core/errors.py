"""
Error taxonomy raised by the authorization core and its services.

The request layer maps these to HTTP responses in ``taskboard.main``; nothing
below this module knows about status codes.
"""
import enum


class DenialReason(str, enum.Enum):
    """Why a policy decision came out negative."""
    NO_ORGANIZATION_ACCESS = "no_organization_access"
    INSUFFICIENT_ROLE = "insufficient_role"
    NOT_FOUND = "not_found"


class TaskboardError(Exception):
    """Base class for domain errors."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(TaskboardError):
    """Referenced entity does not exist, or must look as if it did not."""


class ForbiddenError(TaskboardError):
    """A policy predicate evaluated false for the requested operation."""

    def __init__(self, detail: str, reason: DenialReason):
        super().__init__(detail)
        self.reason = reason


class ValidationFailure(TaskboardError):
    """Malformed filter, pagination or payload input."""


class AuthenticationError(TaskboardError):
    """Missing, expired or otherwise unusable credentials."""


class AuditWriteFailure(TaskboardError):
    """The audit store rejected a write."""
