"""Audit telemetry sinks.

The registry reports significant transitions as ``AuditEvent`` values.
Sinks are fire-and-forget: ``emit`` must return quickly and must not raise.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Literal, Optional

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

AuditLevel = Literal["debug", "info", "warn", "error", "fatal"]

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}


class AuditEvent(BaseModel):
    """Model for one structured audit event."""

    stack: str
    level: AuditLevel
    package: str
    message: str


class TelemetrySink:
    """Base sink; discards every event."""

    def emit(self, event: AuditEvent) -> None:
        pass

    def close(self) -> None:
        pass


NullTelemetrySink = TelemetrySink


class LoggingTelemetrySink(TelemetrySink):
    """Writes audit events to a local logger."""

    def __init__(self, audit_logger: Optional[logging.Logger] = None):
        self.logger = audit_logger or logging.getLogger("shortcode_registry.audit")

    def emit(self, event: AuditEvent) -> None:
        self.logger.log(
            _LOG_LEVELS[event.level],
            f"[{event.stack}/{event.package}] {event.message}",
        )


class HttpTelemetrySink(TelemetrySink):
    """POSTs audit events to a remote log collector.

    Requests run on a single background thread; failures are logged
    locally and dropped.
    """

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.url = url
        self.client = client or httpx.Client(timeout=timeout)
        self.headers = headers
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="telemetry")

    def emit(self, event: AuditEvent) -> None:
        try:
            self._executor.submit(self._send, event)
        except RuntimeError as e:
            logger.warning(f"Telemetry sink closed, dropping event: {e}")

    def _send(self, event: AuditEvent) -> None:
        try:
            response = self.client.post(self.url, json=event.model_dump(), headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Logging failed: {e}")
        except Exception:
            logger.exception(f"Logging failed: unexpected error posting to {self.url}")

    def close(self) -> None:
        """Send pending events, then release the HTTP client."""
        self._executor.shutdown(wait=True)
        self.client.close()
