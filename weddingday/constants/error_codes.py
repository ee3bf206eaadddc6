"""Error codes dictionary for the timeline API.

This is the single source of truth for all error codes, their retryability,
and suggested recovery actions. Used by exception handlers to generate
machine-readable error responses.
"""

from typing import Any, TypedDict


class ErrorCodeSpec(TypedDict, total=False):
    """Specification for an error code."""

    retryable: bool
    suggested_action: str
    suggested_endpoint: str
    suggested_fix: str
    parameters: dict[str, Any]


# Error codes dictionary - single source of truth
ERROR_CODES: dict[str, ErrorCodeSpec] = {
    # ==========================================================================
    # Resource errors (retryable after refresh)
    # ==========================================================================
    "WEDDING_NOT_FOUND": {
        "retryable": False,
    },
    "EVENT_NOT_FOUND": {
        "retryable": True,
        "suggested_action": "refresh_timeline",
        "suggested_endpoint": "GET /api/weddings/{wedding_id}/timeline",
    },
    "LANE_NOT_FOUND": {
        "retryable": True,
        "suggested_action": "refresh_timeline",
        "suggested_endpoint": "GET /api/weddings/{wedding_id}/timeline",
    },
    # ==========================================================================
    # Validation errors (not retryable, fix input)
    # ==========================================================================
    "VALIDATION_ERROR": {
        "retryable": False,
    },
    "INVALID_TIME_RANGE": {
        "retryable": False,
        "suggested_fix": "Keep the event inside the 3:00 AM to 3:00 AM day-of window",
    },
    "DUPLICATE_ID": {
        "retryable": False,
        "suggested_fix": "Generate a fresh id for the new event or lane",
    },
    "EVENT_LOCKED": {
        "retryable": False,
        "suggested_fix": "Unlock the event before editing it",
    },
    "MISSING_REQUIRED_FIELD": {
        "retryable": False,
    },
    "INVALID_FIELD_VALUE": {
        "retryable": False,
    },
    # ==========================================================================
    # Access errors
    # ==========================================================================
    "PERMISSION_DENIED": {
        "retryable": False,
    },
    # ==========================================================================
    # Conflict errors
    # ==========================================================================
    "VERSION_CONFLICT": {
        "retryable": True,
        "suggested_action": "rebase_draft",
        "suggested_endpoint": "GET /api/weddings/{wedding_id}/timeline",
        "suggested_fix": "Review the current timeline and re-apply your edits on top of it",
    },
    "PUBLISH_IN_PROGRESS": {
        "retryable": True,
        "suggested_action": "wait_and_retry",
        "parameters": {"delay_ms": 500},
    },
    # ==========================================================================
    # Transient errors
    # ==========================================================================
    "STORAGE_ERROR": {
        "retryable": True,
        "suggested_action": "retry_manually",
    },
    "TRANSPORT_ERROR": {
        "retryable": True,
        "suggested_action": "retry_manually",
    },
    # ==========================================================================
    # System errors
    # ==========================================================================
    "CONFIGURATION_ERROR": {
        "retryable": False,
    },
    "INVALID_TIMEZONE": {
        "retryable": False,
        "suggested_fix": "Use an IANA timezone id such as America/New_York",
    },
    "INVALID_WEDDING_DATE": {
        "retryable": False,
        "suggested_fix": "Use a YYYY-MM-DD calendar date",
    },
    "INTERNAL_ERROR": {
        "retryable": False,
    },
}


def get_error_spec(code: str) -> ErrorCodeSpec:
    """Get error specification by code.

    Args:
        code: The error code

    Returns:
        ErrorCodeSpec with retryable flag and suggested actions
    """
    return ERROR_CODES.get(code, {"retryable": False})


def is_retryable(code: str) -> bool:
    """Check if an error code is retryable."""
    spec = get_error_spec(code)
    return spec.get("retryable", False)
