"""Services package for Shortcode Registry."""

from .registry import (
    RegistryService,
    create_registry_service,
    create_sink,
    get_registry_service,
    close_registry_service,
)

__all__ = [
    "RegistryService",
    "create_registry_service",
    "create_sink",
    "get_registry_service",
    "close_registry_service",
]
