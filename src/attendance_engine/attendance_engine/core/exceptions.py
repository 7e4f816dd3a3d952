class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is the stable kind reported to API clients.
    """

    code = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    code = "authentication_error"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "authorization_error"


class InvalidRange(ValidationError):
    """Raised when a check-out is not strictly after its check-in."""

    code = "invalid_range"


class AlreadyOpen(DomainError):
    """Raised on a second check-in for the same day."""

    code = "already_open"


class NoOpenRecord(DomainError):
    """Raised when closing a day that has no in-progress record."""

    code = "no_open_record"


class DuplicatePending(DomainError):
    """Raised when a pending correction already targets the record."""

    code = "duplicate_pending"


class AlreadyProcessed(DomainError):
    """Raised when reviewing a request that is no longer pending."""

    code = "already_processed"


class Unauthorized(AuthorizationError):
    """Raised when the actor has no authority; the message never says why."""

    code = "unauthorized"

    def __init__(self, message: str = "You are not allowed to perform this action"):
        super().__init__(message)


class ConfigMissing(DomainError):
    """Raised when the shift or geofence configuration is absent or disabled."""

    code = "config_missing"


class NotFound(DomainError):
    code = "not_found"


class OutsideGeofence(DomainError):
    """Raised on a strict-mode check-in outside every eligible zone."""

    code = "outside_geofence"


class RecordChanged(DomainError):
    """Raised when the attendance record changed between reading it and applying a correction."""

    code = "record_changed"


class OnLeave(DomainError):
    """Raised on a check-in for a day covered by approved (non work-from-home) leave."""

    code = "on_leave"
