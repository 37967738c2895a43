"""Port interfaces for log sinks and observers.

These protocols define the contracts that collaborators must implement.
The logger depends only on these interfaces, not concrete implementations.
"""

from typing import Protocol, runtime_checkable

from chroniclepy.core.models import LogRecord, Severity


@runtime_checkable
class LogSink(Protocol):
    """Port for the external log sink.

    Receives one fully composed line per accepted record. Writes are best
    effort: nothing a sink does is reported back to the caller of ``emit``.
    Examples: StdlibSink, NullSink, CollectingSink.
    """

    def write(self, line: str, severity: Severity, record: LogRecord) -> None:
        """Write a composed line at the given severity."""
        ...


@runtime_checkable
class LogObserver(Protocol):
    """Port for live consumers of log records.

    Observers are called synchronously from the emitting thread. They must
    not block indefinitely and must not emit on the logger that notifies
    them. Example: ConsoleBuffer.
    """

    def receive(self, record: LogRecord) -> None:
        """Receive one accepted log record."""
        ...


@runtime_checkable
class SpanSink(Protocol):
    """Port for tracing spans.

    Begin and end calls for one span share the same ``span_id``.
    Examples: StdlibSpanSink, CollectingSpanSink.
    """

    def begin(self, name: str, span_id: str, payload: str) -> None:
        """Open a span."""
        ...

    def end(self, name: str, span_id: str, payload: str) -> None:
        """Close a span opened with ``begin``."""
        ...

    def event(self, name: str, span_id: str, payload: str) -> None:
        """Record a point-in-time span event."""
        ...
