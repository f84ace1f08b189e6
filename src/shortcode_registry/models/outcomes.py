"""Discriminated results returned by the registry service."""

from typing import Optional

from ..core.errors import ErrorKind
from .submission import ValidationIssue
from .url import RegistryModel, UrlRecord


class SubmitOutcome(RegistryModel):
    """Result of a batch submission.

    ``error`` is None on success, in which case ``created`` holds the new
    records in submission order. On failure nothing was committed and
    ``issues`` lists every violation found.
    """

    created: tuple[UrlRecord, ...] = ()
    error: Optional[ErrorKind] = None
    issues: tuple[ValidationIssue, ...] = ()
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def errors(self) -> list[str]:
        return [str(issue) for issue in self.issues]


class ResolveOutcome(RegistryModel):
    """Result of resolving a shortcode for a redirect."""

    shortcode: str
    error: Optional[ErrorKind] = None
    target_url: Optional[str] = None
    record: Optional[UrlRecord] = None

    @property
    def ok(self) -> bool:
        return self.error is None
