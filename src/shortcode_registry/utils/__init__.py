"""Utils package for Shortcode Registry."""

from .shortener import ALPHABET, RESERVED_SHORTCODES, ShortcodeGenerator, create_short_url
from .validation import (
    SubmissionValidator,
    is_valid_url,
    parse_validity,
)

__all__ = [
    "ALPHABET",
    "RESERVED_SHORTCODES",
    "ShortcodeGenerator",
    "create_short_url",
    "SubmissionValidator",
    "is_valid_url",
    "parse_validity",
]
