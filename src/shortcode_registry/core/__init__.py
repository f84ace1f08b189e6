"""Core package - configuration, errors, storage and telemetry."""

from .config import settings, get_settings, Settings
from .errors import (
    ErrorKind,
    RegistryError,
    InvalidInput,
    DuplicateShortcode,
    GenerationExhausted,
    EmptyBatch,
    ShortcodeNotFound,
    ShortcodeExpired,
)
from .persistence import (
    PersistenceBackend,
    InMemoryBackend,
    JsonFileBackend,
    SQLiteBackend,
    create_backend,
    dump_records,
    load_records,
)
from .store import RegistryStore
from .telemetry import (
    AuditEvent,
    TelemetrySink,
    NullTelemetrySink,
    LoggingTelemetrySink,
    HttpTelemetrySink,
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "ErrorKind",
    "RegistryError",
    "InvalidInput",
    "DuplicateShortcode",
    "GenerationExhausted",
    "EmptyBatch",
    "ShortcodeNotFound",
    "ShortcodeExpired",
    "PersistenceBackend",
    "InMemoryBackend",
    "JsonFileBackend",
    "SQLiteBackend",
    "create_backend",
    "dump_records",
    "load_records",
    "RegistryStore",
    "AuditEvent",
    "TelemetrySink",
    "NullTelemetrySink",
    "LoggingTelemetrySink",
    "HttpTelemetrySink",
]
