"""Models package for Shortcode Registry."""

from .url import (
    DIRECT_SOURCE,
    UNKNOWN_LOCATION,
    ClickEvent,
    UrlRecord,
    is_active,
    utc_now,
)
from .submission import (
    Submission,
    ValidatedSubmission,
    ValidationIssue,
    ValidationResult,
)
from .outcomes import ResolveOutcome, SubmitOutcome

__all__ = [
    "DIRECT_SOURCE",
    "UNKNOWN_LOCATION",
    "ClickEvent",
    "UrlRecord",
    "is_active",
    "utc_now",
    "Submission",
    "ValidatedSubmission",
    "ValidationIssue",
    "ValidationResult",
    "ResolveOutcome",
    "SubmitOutcome",
]
