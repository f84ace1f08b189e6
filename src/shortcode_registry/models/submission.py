"""Pydantic models for batch submissions and their validation results."""

from typing import Optional, Union

from pydantic import Field

from ..core.errors import ErrorKind
from .url import RegistryModel


class Submission(RegistryModel):
    """Model for one raw entry of a shorten batch."""

    url: Optional[str] = Field("", description="The original long URL to shorten")
    validity: Optional[Union[int, float, str]] = Field(
        None, description="Validity in minutes, defaults to 30"
    )
    custom_shortcode: Optional[str] = Field(None, description="Custom short code")

    @property
    def is_blank(self) -> bool:
        return not (self.url or "").strip()


class ValidatedSubmission(RegistryModel):
    """Model for an accepted entry, with defaults applied."""

    position: int
    url: str
    validity_minutes: int
    custom_shortcode: Optional[str] = None


class ValidationIssue(RegistryModel):
    """Model for one violation found in a batch."""

    position: int
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"URL {self.position}: {self.message}"


class ValidationResult(RegistryModel):
    """Model for the accepted entries and issues of a validated batch."""

    accepted: tuple[ValidatedSubmission, ...] = ()
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> list[str]:
        return [str(issue) for issue in self.issues]
