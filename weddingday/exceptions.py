"""Custom exceptions for the wedding day timeline.

These exceptions carry machine-readable error codes so the API can answer
with structured errors and the client can tell a version conflict apart from
a rejected op or a network failure.
"""

from typing import TYPE_CHECKING, Any

from weddingday.constants.error_codes import get_error_spec, is_retryable
from weddingday.schemas.envelope import ErrorInfo, ErrorLocation, SuggestedAction

if TYPE_CHECKING:
    from weddingday.schemas.timeline import TimelineSnapshot


class WeddingDayError(Exception):
    """Base exception for all application errors.

    Provides structured error information for API responses.
    """

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        location: ErrorLocation | None = None,
        suggested_fix: str | None = None,
    ):
        self.message = message or self.__class__.message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.location = location
        self.suggested_fix = suggested_fix
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return is_retryable(self.code)

    def at_op(self, index: int) -> "WeddingDayError":
        """Attach the position of the failing op in a publish batch."""
        if self.location is None:
            self.location = ErrorLocation(op_index=index)
        else:
            self.location = self.location.model_copy(update={"op_index": index})
        return self

    def to_error_info(self) -> ErrorInfo:
        """Convert exception to ErrorInfo for API response."""
        spec = get_error_spec(self.code)

        suggested_actions: list[SuggestedAction] = []
        if "suggested_action" in spec:
            suggested_actions.append(
                SuggestedAction(
                    action=spec["suggested_action"],
                    endpoint=spec.get("suggested_endpoint"),
                    parameters=spec.get("parameters", {}),
                )
            )

        return ErrorInfo(
            code=self.code,
            message=self.message,
            location=self.location,
            retryable=self.retryable,
            suggested_fix=self.suggested_fix or spec.get("suggested_fix"),
            suggested_actions=suggested_actions,
        )


# =============================================================================
# Resource Not Found Errors (404)
# =============================================================================


class ResourceNotFoundError(WeddingDayError):
    """Base class for resource not found errors."""

    code = "NOT_FOUND"
    status_code = 404


class WeddingNotFoundError(ResourceNotFoundError):
    """Wedding not found."""

    code = "WEDDING_NOT_FOUND"
    message = "Wedding not found"

    def __init__(self, wedding_id: str | None = None):
        message = f"Wedding not found: {wedding_id}" if wedding_id else self.message
        super().__init__(message)


class EventNotFoundError(ResourceNotFoundError):
    """Timeline event not found."""

    code = "EVENT_NOT_FOUND"
    message = "Event not found"

    def __init__(self, event_id: str | None = None):
        message = f"Event not found: {event_id}" if event_id else self.message
        location = ErrorLocation(event_id=event_id) if event_id else None
        super().__init__(message, location=location)


class LaneNotFoundError(ResourceNotFoundError):
    """Timeline lane not found."""

    code = "LANE_NOT_FOUND"
    message = "Lane not found"

    def __init__(self, lane_id: str | None = None, event_id: str | None = None):
        message = f"Lane not found: {lane_id}" if lane_id else self.message
        location = ErrorLocation(lane_id=lane_id, event_id=event_id) if lane_id else None
        super().__init__(message, location=location)


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(WeddingDayError):
    """Base class for validation errors."""

    code = "VALIDATION_ERROR"
    status_code = 400
    message = "Validation failed"


class InvalidTimeRangeError(ValidationError):
    """Event times cannot be placed inside the day-of window."""

    code = "INVALID_TIME_RANGE"
    message = "Event end must be after start"

    def __init__(
        self,
        message: str | None = None,
        *,
        event_id: str | None = None,
        field: str | None = None,
    ):
        location = None
        if event_id or field:
            location = ErrorLocation(event_id=event_id, field=field)
        super().__init__(message or self.message, location=location)


class DuplicateIdError(ValidationError):
    """An event or lane with the supplied id already exists."""

    code = "DUPLICATE_ID"
    message = "Id already exists"

    def __init__(self, entity: str, entity_id: str):
        location = (
            ErrorLocation(event_id=entity_id)
            if entity == "event"
            else ErrorLocation(lane_id=entity_id)
        )
        super().__init__(f"Duplicate {entity} id: {entity_id}", location=location)


class EventLockedError(ValidationError):
    """Event is locked and cannot be modified."""

    code = "EVENT_LOCKED"
    message = "Event is locked"

    def __init__(self, event_id: str | None = None):
        message = f"Event is locked: {event_id}" if event_id else self.message
        location = ErrorLocation(event_id=event_id) if event_id else None
        super().__init__(message, location=location)


class MissingRequiredFieldError(ValidationError):
    """Required field is missing."""

    code = "MISSING_REQUIRED_FIELD"
    message = "Required field is missing"

    def __init__(self, field: str | None = None):
        message = f"Required field is missing: {field}" if field else self.message
        location = ErrorLocation(field=field) if field else None
        super().__init__(message, location=location)


class InvalidFieldValueError(ValidationError):
    """Field value is invalid."""

    code = "INVALID_FIELD_VALUE"
    message = "Invalid field value"

    def __init__(self, message: str | None = None, *, field: str | None = None):
        location = ErrorLocation(field=field) if field else None
        super().__init__(message or self.message, location=location)


# =============================================================================
# Access Errors (403)
# =============================================================================


class PermissionDeniedError(WeddingDayError):
    """Caller may not edit this timeline."""

    code = "PERMISSION_DENIED"
    status_code = 403
    message = "You do not have permission to edit this timeline"


# =============================================================================
# Conflict Errors (409)
# =============================================================================


class ConflictError(WeddingDayError):
    """Base class for conflict errors."""

    code = "CONFLICT"
    status_code = 409


class VersionConflictError(ConflictError):
    """The draft was forked from a version that is no longer current.

    Carries the current canonical snapshot so the caller can show what
    changed and rebuild its draft.
    """

    code = "VERSION_CONFLICT"
    message = "Timeline was updated by someone else"

    def __init__(
        self,
        base_version: int,
        current_version: int,
        snapshot: "TimelineSnapshot | None" = None,
    ):
        self.base_version = base_version
        self.current_version = current_version
        self.snapshot = snapshot
        super().__init__(
            f"Version conflict: expected {base_version}, current {current_version}"
        )


class PublishInProgressError(ConflictError):
    """A publish for this session has not finished yet."""

    code = "PUBLISH_IN_PROGRESS"
    message = "A publish is already in progress"


# =============================================================================
# Transient Errors (503)
# =============================================================================


class TransientError(WeddingDayError):
    """Network or storage failure; safe to retry manually."""

    code = "TRANSIENT_ERROR"
    status_code = 503
    message = "Service is temporarily unavailable"

    @property
    def retryable(self) -> bool:
        return True


class StorageError(TransientError):
    """Database error."""

    code = "STORAGE_ERROR"
    message = "Storage error"


class TimelineTransportError(TransientError):
    """The timeline API could not be reached or answered with a server error."""

    code = "TRANSPORT_ERROR"
    message = "Timeline service could not be reached"


# =============================================================================
# Configuration Errors (500)
# =============================================================================


class ConfigurationError(WeddingDayError):
    """Wedding data cannot produce a valid timeline window."""

    code = "CONFIGURATION_ERROR"
    status_code = 500
    message = "Invalid wedding configuration"


class InvalidTimezoneError(ConfigurationError):
    code = "INVALID_TIMEZONE"
    message = "Invalid venue timezone"

    def __init__(self, timezone_id: str | None = None):
        message = f"Invalid venue timezone: {timezone_id}" if timezone_id else self.message
        super().__init__(message, location=ErrorLocation(field="venueTimezone"))


class InvalidWeddingDateError(ConfigurationError):
    code = "INVALID_WEDDING_DATE"
    message = "Invalid wedding date"

    def __init__(self, wedding_date: Any = None):
        message = f"Invalid wedding date: {wedding_date}" if wedding_date else self.message
        super().__init__(message, location=ErrorLocation(field="weddingDate"))

