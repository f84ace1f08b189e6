"""API package for Shortcode Registry."""

from .routes import health_router, urls_router

__all__ = ["health_router", "urls_router"]
