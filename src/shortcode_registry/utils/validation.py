"""Validation of shorten batches.

Every entry is checked independently and every violation is reported;
the caller decides whether to commit the batch.
"""

import re
import logging
from typing import Collection, Optional, Sequence, Union

from pydantic import AnyUrl, TypeAdapter, ValidationError

from ..core.errors import ErrorKind
from ..models.submission import (
    Submission,
    ValidatedSubmission,
    ValidationIssue,
    ValidationResult,
)
from .shortener import RESERVED_SHORTCODES

logger = logging.getLogger(__name__)

SHORTCODE_PATTERN = re.compile(r"^[A-Za-z0-9]+$")

_url_adapter = TypeAdapter(AnyUrl)


def is_valid_url(url: str) -> bool:
    """Check that ``url`` is a well-formed absolute URL."""
    try:
        _url_adapter.validate_python(url.strip())
    except ValidationError:
        return False
    return True


def parse_validity(value: Union[int, float, str, None]) -> Optional[int]:
    """Parse a validity value as a positive integer number of minutes.

    Returns:
        The parsed minutes, or None if the value is not a positive integer.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    return value if value > 0 else None


def _has_validity(value: Union[int, float, str, None]) -> bool:
    if value is None:
        return False
    return not (isinstance(value, str) and not value.strip())


class SubmissionValidator:
    """Validates batches of submissions against the issued shortcodes."""

    def __init__(
        self,
        default_validity_minutes: int = 30,
        max_validity_minutes: int = 60 * 24 * 365,
        max_shortcode_length: int = 10,
        reserved_shortcodes: Collection[str] = RESERVED_SHORTCODES,
    ):
        self.default_validity_minutes = default_validity_minutes
        self.max_validity_minutes = max_validity_minutes
        self.max_shortcode_length = max_shortcode_length
        self.reserved_shortcodes = frozenset(reserved_shortcodes)

    def validate(
        self,
        batch: Sequence[Submission],
        existing_shortcodes: Collection[str],
    ) -> ValidationResult:
        """Validate a batch.

        Blank entries are skipped. Positions in issues are 1-based indexes
        into ``batch``.

        Args:
            batch: Submissions in the order they were entered.
            existing_shortcodes: Every shortcode ever issued.

        Returns:
            Accepted entries and the itemized issues.
        """
        accepted: list[ValidatedSubmission] = []
        issues: list[ValidationIssue] = []
        claimed: set[str] = set()

        for position, entry in enumerate(batch, start=1):
            if entry.is_blank:
                continue

            def report(kind: ErrorKind, message: str) -> None:
                issues.append(ValidationIssue(position=position, kind=kind, message=message))

            url = entry.url.strip()
            if not is_valid_url(url):
                report(ErrorKind.INVALID_INPUT, "Invalid URL format")

            validity = self.default_validity_minutes
            if _has_validity(entry.validity):
                parsed = parse_validity(entry.validity)
                if parsed is None:
                    report(ErrorKind.INVALID_INPUT, "Validity must be a positive integer")
                elif parsed > self.max_validity_minutes:
                    report(
                        ErrorKind.INVALID_INPUT,
                        f"Validity must not exceed {self.max_validity_minutes} minutes",
                    )
                else:
                    validity = parsed

            code = entry.custom_shortcode or None
            if code is not None:
                if not SHORTCODE_PATTERN.fullmatch(code) or len(code) > self.max_shortcode_length:
                    report(
                        ErrorKind.INVALID_INPUT,
                        "Custom shortcode must be alphanumeric and "
                        f"max {self.max_shortcode_length} characters",
                    )
                if code in self.reserved_shortcodes:
                    report(ErrorKind.INVALID_INPUT, f"Custom shortcode '{code}' is reserved")
                if code in existing_shortcodes:
                    report(
                        ErrorKind.DUPLICATE_SHORTCODE,
                        f"Custom shortcode '{code}' already exists",
                    )
                elif code in claimed:
                    report(
                        ErrorKind.DUPLICATE_SHORTCODE,
                        f"Custom shortcode '{code}' is used more than once in this batch",
                    )
                claimed.add(code)

            if issues and issues[-1].position == position:
                continue
            accepted.append(
                ValidatedSubmission(
                    position=position,
                    url=url,
                    validity_minutes=validity,
                    custom_shortcode=code,
                )
            )

        logger.debug(f"Validation completed. Errors found: {len(issues)}")
        return ValidationResult(accepted=tuple(accepted), issues=tuple(issues))
