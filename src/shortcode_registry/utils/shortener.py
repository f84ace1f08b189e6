"""URL shortening utilities module.

This module handles the generation of short codes and short links.
"""

import random
import string
import logging
from typing import Collection, Optional

from ..core.errors import GenerationExhausted

logger = logging.getLogger(__name__)


# Characters allowed in short codes
ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits

# Path segments served by fixed routes; a shortcode equal to one never redirects
RESERVED_SHORTCODES = frozenset({"docs", "health", "redoc", "shorten", "urls"})


class ShortcodeGenerator:
    """Generate random short codes that are not yet issued."""

    def __init__(
        self,
        length: int = 6,
        max_attempts: int = 10,
        rng: Optional[random.Random] = None,
        reserved: Collection[str] = RESERVED_SHORTCODES,
    ):
        """Initialize short code generator.

        Args:
            length: Length of generated codes.
            max_attempts: Draws allowed before giving up.
            rng: Random source. Defaults to the ``random`` module.
            reserved: Codes never handed out.
        """
        if length < 1 or max_attempts < 1:
            raise ValueError("length and max_attempts must be positive")
        self.length = length
        self.max_attempts = max_attempts
        self.rng = rng or random
        self.reserved = frozenset(reserved)

    def generate_random(self) -> str:
        """Draw one code, each character uniformly from ALPHABET."""
        return "".join(self.rng.choices(ALPHABET, k=self.length))

    def generate(self, existing_shortcodes: Collection[str]) -> str:
        """Generate a code absent from ``existing_shortcodes`` and not reserved.

        Raises:
            GenerationExhausted: If every draw collided.
        """
        for attempt in range(1, self.max_attempts + 1):
            code = self.generate_random()
            if code not in existing_shortcodes and code not in self.reserved:
                if attempt > 1:
                    logger.debug(f"Generated code after {attempt} attempts: {code}")
                return code
        logger.error(f"No unique short code after {self.max_attempts} attempts")
        raise GenerationExhausted(self.max_attempts)


def create_short_url(base_url: str, short_code: str) -> str:
    """Create full short URL from base URL and short code.

    Args:
        base_url: Base URL of the service.
        short_code: Short code.

    Returns:
        Full short URL string.
    """
    return f"{base_url.rstrip('/')}/{short_code}"
