"""External sink adapters.

``StdlibSink`` is the default platform sink: it forwards composed lines to the
standard library ``logging`` module, where the application's own handlers
decide what happens to them. Records written here carry a marker so that
``ChronicleHandler`` never feeds them back into a ``Logger``.
"""

import logging
import threading

from chroniclepy.core.models import LogRecord, Severity

SINK_LOGGER_PREFIX = "chroniclepy.sink"
SPAN_LOGGER_NAME = "chroniclepy.span"

# Attribute set on stdlib records produced by the sinks in this module.
RECORD_MARKER = "chronicle_record_id"


class StdlibSink:
    """Write composed lines through the ``logging`` module.

    Each record goes to the stdlib logger ``<prefix>.<subsystem>.<category>``
    at ``severity.stdlib_level``.

    Args:
        prefix: Logger name prefix (default "chroniclepy.sink").
    """

    def __init__(self, prefix: str = SINK_LOGGER_PREFIX) -> None:
        self._prefix = prefix

    def write(self, line: str, severity: Severity, record: LogRecord) -> None:
        """Write one composed line."""
        target = logging.getLogger(f"{self._prefix}.{record.subsystem}.{record.category}")
        target.log(
            severity.stdlib_level,
            "%s",
            line,
            extra={
                RECORD_MARKER: str(record.id),
                "chronicle_subsystem": record.subsystem,
                "chronicle_severity": severity.label,
            },
        )


class NullSink:
    """Sink that discards everything."""

    def write(self, line: str, severity: Severity, record: LogRecord) -> None:
        pass


class CollectingSink:
    """Sink that keeps every written line in memory.

    Suitable for tests and for embedding where the composed lines are
    consumed directly.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._lines: list[tuple[str, Severity]] = []

    def write(self, line: str, severity: Severity, record: LogRecord) -> None:
        with self._lock:
            self._lines.append((line, severity))

    @property
    def lines(self) -> list[tuple[str, Severity]]:
        """Copy of the ``(line, severity)`` pairs written so far."""
        with self._lock:
            return list(self._lines)

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()


class StdlibSpanSink:
    """Span sink writing ``span.<phase>`` lines at DEBUG level."""

    def __init__(self, logger_name: str = SPAN_LOGGER_NAME) -> None:
        self._logger = logging.getLogger(logger_name)

    def _write(self, phase: str, name: str, span_id: str, payload: str) -> None:
        if not self._logger.isEnabledFor(logging.DEBUG):
            return
        suffix = f" | {payload}" if payload else ""
        self._logger.debug(
            "span.%s name=%s id=%s%s",
            phase,
            name,
            span_id,
            suffix,
            extra={RECORD_MARKER: span_id},
        )

    def begin(self, name: str, span_id: str, payload: str) -> None:
        self._write("begin", name, span_id, payload)

    def end(self, name: str, span_id: str, payload: str) -> None:
        self._write("end", name, span_id, payload)

    def event(self, name: str, span_id: str, payload: str) -> None:
        self._write("event", name, span_id, payload)


class CollectingSpanSink:
    """Span sink that keeps ``(phase, name, span_id, payload)`` tuples."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: list[tuple[str, str, str, str]] = []

    def begin(self, name: str, span_id: str, payload: str) -> None:
        self._record("begin", name, span_id, payload)

    def end(self, name: str, span_id: str, payload: str) -> None:
        self._record("end", name, span_id, payload)

    def event(self, name: str, span_id: str, payload: str) -> None:
        self._record("event", name, span_id, payload)

    def _record(self, phase: str, name: str, span_id: str, payload: str) -> None:
        with self._lock:
            self._calls.append((phase, name, span_id, payload))

    @property
    def calls(self) -> list[tuple[str, str, str, str]]:
        with self._lock:
            return list(self._calls)
