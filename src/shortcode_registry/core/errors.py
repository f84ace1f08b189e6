"""Error kinds and exceptions raised by the registry."""

from enum import Enum


class ErrorKind(str, Enum):
    """Discriminator carried by failed outcomes."""

    INVALID_INPUT = "invalid_input"
    DUPLICATE_SHORTCODE = "duplicate_shortcode"
    GENERATION_EXHAUSTED = "generation_exhausted"
    EMPTY_BATCH = "empty_batch"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"


class RegistryError(Exception):
    """Base class for registry errors."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT


class InvalidInput(RegistryError):
    kind = ErrorKind.INVALID_INPUT


class DuplicateShortcode(RegistryError):
    kind = ErrorKind.DUPLICATE_SHORTCODE

    def __init__(self, shortcode: str):
        super().__init__(f"Shortcode '{shortcode}' already exists")
        self.shortcode = shortcode


class GenerationExhausted(RegistryError):
    kind = ErrorKind.GENERATION_EXHAUSTED

    def __init__(self, attempts: int):
        super().__init__(f"Failed to generate unique short code after {attempts} attempts")
        self.attempts = attempts


class EmptyBatch(RegistryError):
    kind = ErrorKind.EMPTY_BATCH

    def __init__(self):
        super().__init__("Please enter at least one URL")


class ShortcodeNotFound(RegistryError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, shortcode: str):
        super().__init__(f"Shortcode not found: {shortcode}")
        self.shortcode = shortcode


class ShortcodeExpired(RegistryError):
    kind = ErrorKind.EXPIRED

    def __init__(self, shortcode: str):
        super().__init__(f"Shortcode expired: {shortcode}")
        self.shortcode = shortcode
