"""Schemas package for Shortcode Registry."""

from .url import (
    ShortenRequest,
    ShortenResponse,
    URLRecordResponse,
    URLListResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ShortenRequest",
    "ShortenResponse",
    "URLRecordResponse",
    "URLListResponse",
    "ErrorResponse",
    "HealthResponse",
]
