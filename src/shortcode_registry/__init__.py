"""Shortcode Registry - short links with expiry and click analytics."""

__version__ = "0.1.0"
