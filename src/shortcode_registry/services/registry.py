"""Business logic service for the shortcode registry."""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from ..core.config import Settings, get_settings
from ..core.errors import (
    DuplicateShortcode,
    ErrorKind,
    GenerationExhausted,
    ShortcodeExpired,
    ShortcodeNotFound,
)
from ..core.persistence import create_backend
from ..core.store import RegistryStore
from ..core.telemetry import (
    AuditEvent,
    AuditLevel,
    HttpTelemetrySink,
    LoggingTelemetrySink,
    TelemetrySink,
)
from ..models import (
    DIRECT_SOURCE,
    UNKNOWN_LOCATION,
    ClickEvent,
    ResolveOutcome,
    Submission,
    SubmitOutcome,
    UrlRecord,
    utc_now,
)
from ..utils.shortener import ShortcodeGenerator
from ..utils.validation import SubmissionValidator

logger = logging.getLogger(__name__)

RawSubmission = Union[Submission, Mapping[str, Any]]


class RegistryService:
    """Service layer for registering and resolving shortcodes."""

    def __init__(
        self,
        store: RegistryStore,
        generator: Optional[ShortcodeGenerator] = None,
        validator: Optional[SubmissionValidator] = None,
        sink: Optional[TelemetrySink] = None,
        clock: Callable[[], datetime] = utc_now,
        stack: str = "backend",
    ):
        """Initialize registry service.

        Args:
            store: Registry store holding the records.
            generator: Optional short code generator.
            validator: Optional submission validator.
            sink: Telemetry sink receiving audit events.
            clock: Source of the current time.
            stack: Stack label put on audit events.
        """
        self.store = store
        self.generator = generator or ShortcodeGenerator()
        self.validator = validator or SubmissionValidator()
        self.sink = sink or TelemetrySink()
        self.clock = clock
        self.stack = stack
        self._submit_lock = threading.Lock()

    def _emit(self, level: AuditLevel, package: str, message: str) -> None:
        try:
            self.sink.emit(
                AuditEvent(stack=self.stack, level=level, package=package, message=message)
            )
        except Exception as e:
            logger.warning(f"Telemetry sink failed: {e}")

    def submit_batch(self, raw_inputs: Iterable[RawSubmission]) -> SubmitOutcome:
        """Register a batch of URLs, all or nothing.

        Args:
            raw_inputs: Submissions or mappings with ``url``, ``validity``
                and ``customShortcode`` keys.

        Returns:
            Outcome with the created records in submission order, or the
            error kind and itemized issues.
        """
        self._emit("info", "service", "URL shortening process initiated")
        submissions = [
            raw if isinstance(raw, Submission) else Submission.model_validate(raw)
            for raw in raw_inputs
        ]
        filled = [s for s in submissions if not s.is_blank]
        if not filled:
            self._emit("warn", "service", "No URLs provided for shortening")
            return SubmitOutcome(error=ErrorKind.EMPTY_BATCH, detail="Please enter at least one URL")

        with self._submit_lock:
            existing = self.store.existing_shortcodes()
            result = self.validator.validate(filled, existing)
            if not result.ok:
                errors = result.errors
                self._emit("error", "service", f"Validation failed: {'; '.join(errors)}")
                kinds = {issue.kind for issue in result.issues}
                kind = (
                    ErrorKind.DUPLICATE_SHORTCODE
                    if kinds == {ErrorKind.DUPLICATE_SHORTCODE}
                    else ErrorKind.INVALID_INPUT
                )
                return SubmitOutcome(error=kind, issues=result.issues, detail="\n".join(errors))
            self._emit("info", "service", "Validation completed. Errors found: 0")

            used = set(existing)
            used.update(e.custom_shortcode for e in result.accepted if e.custom_shortcode)
            records = []
            try:
                for entry in result.accepted:
                    shortcode = entry.custom_shortcode or self.generator.generate(used)
                    used.add(shortcode)
                    records.append(
                        UrlRecord.create(
                            original_url=entry.url,
                            shortcode=shortcode,
                            validity_minutes=entry.validity_minutes,
                            created_at=self.clock(),
                        )
                    )
            except GenerationExhausted as e:
                self._emit("fatal", "service", f"Failed to shorten URLs: {e}")
                return SubmitOutcome(error=e.kind, detail=str(e))

            try:
                self.store.put_all(records)
            except DuplicateShortcode as e:
                self._emit("error", "repository", str(e))
                return SubmitOutcome(error=e.kind, detail=str(e))

        for record in records:
            self._emit(
                "info",
                "repository",
                f"URL shortened successfully: {record.original_url} -> {record.shortcode}",
            )
        self._emit("info", "service", f"URL shortening completed. {len(records)} URLs processed")
        return SubmitOutcome(created=tuple(records))

    def resolve(
        self,
        shortcode: str,
        referrer: Optional[str] = None,
        location: Optional[str] = None,
    ) -> ResolveOutcome:
        """Resolve a shortcode to its target and record the visit.

        Args:
            shortcode: The shortcode being visited.
            referrer: Referrer of the visit, if any.
            location: Coarse location label of the visitor, if known.

        Returns:
            Outcome with the target URL, or NOT_FOUND / EXPIRED.
        """
        self._emit("info", "service", f"Redirect attempt for shortcode: {shortcode}")
        record = self.store.get_by_shortcode(shortcode)
        if record is None:
            self._emit("warn", "service", f"Shortcode not found: {shortcode}")
            return ResolveOutcome(shortcode=shortcode, error=ErrorKind.NOT_FOUND)
        if not record.is_active(self.clock()):
            self._emit("warn", "service", f"Expired URL accessed: {shortcode}")
            return ResolveOutcome(shortcode=shortcode, error=ErrorKind.EXPIRED, record=record)

        event = ClickEvent(
            timestamp=self.clock(),
            source=referrer or DIRECT_SOURCE,
            location=location or UNKNOWN_LOCATION,
        )
        try:
            updated = self.store.append_click(shortcode, event)
        except ShortcodeNotFound:
            self._emit("warn", "service", f"Shortcode not found: {shortcode}")
            return ResolveOutcome(shortcode=shortcode, error=ErrorKind.NOT_FOUND)
        except ShortcodeExpired:
            self._emit("warn", "service", f"Expired URL accessed: {shortcode}")
            return ResolveOutcome(shortcode=shortcode, error=ErrorKind.EXPIRED, record=record)

        self._emit(
            "info",
            "repository",
            f"Click recorded for {shortcode}. Total clicks: {updated.click_count}",
        )
        return ResolveOutcome(shortcode=shortcode, target_url=updated.original_url, record=updated)

    def get_record(self, shortcode: str) -> Optional[UrlRecord]:
        return self.store.get_by_shortcode(shortcode)

    def list_records(self) -> list[UrlRecord]:
        return self.store.list_all()

    def partition_records(self) -> tuple[list[UrlRecord], list[UrlRecord]]:
        return self.store.partition(self.clock())

    def close(self) -> None:
        """Close the telemetry sink and flush and close the store."""
        self.sink.close()
        self.store.close()


def create_sink(settings: Settings) -> TelemetrySink:
    """Build the telemetry sink configured in ``settings``."""
    if settings.telemetry_url:
        return HttpTelemetrySink(
            settings.telemetry_url,
            token=settings.telemetry_token,
            timeout=settings.telemetry_timeout,
        )
    return LoggingTelemetrySink()


def create_registry_service(settings: Optional[Settings] = None) -> RegistryService:
    """Wire a RegistryService from settings.

    Args:
        settings: Settings to use. Defaults to the cached global settings.

    Returns:
        Ready RegistryService instance.
    """
    settings = settings or get_settings()
    backend = create_backend(settings.storage_backend, settings.storage_path)
    return RegistryService(
        store=RegistryStore(backend),
        generator=ShortcodeGenerator(
            length=settings.short_code_length,
            max_attempts=settings.max_generation_attempts,
        ),
        validator=SubmissionValidator(
            default_validity_minutes=settings.default_validity_minutes,
            max_validity_minutes=settings.max_validity_minutes,
            max_shortcode_length=settings.max_custom_shortcode_length,
        ),
        sink=create_sink(settings),
        stack=settings.telemetry_stack,
    )


_service: Optional[RegistryService] = None
_service_lock = threading.Lock()


def get_registry_service() -> RegistryService:
    """Get the registry service instance for dependency injection.

    Returns:
        RegistryService instance, created on first use.
    """
    global _service
    with _service_lock:
        if _service is None:
            _service = create_registry_service()
        return _service


def close_registry_service() -> None:
    """Close the global registry service, if it was created."""
    global _service
    with _service_lock:
        if _service is not None:
            _service.close()
            _service = None
