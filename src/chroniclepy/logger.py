"""The structured logger.

A ``Logger`` filters records by an allow-set of severities, builds structured
metadata, composes one line per record, writes that line to an external sink
and hands the record to every registered observer.

Example:
    ```python
    from chroniclepy import Logger, Severity, tags

    logger = Logger("com.example.app")
    logger.set_allowed_levels({Severity.ERROR, Severity.FAULT})
    logger.error("Something broke", tags=[tags.NETWORK], metadata={"id": 42})
    ```
"""

import asyncio
import logging
import sys
import threading
import uuid
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from chroniclepy.adapters.sinks import StdlibSink, StdlibSpanSink
from chroniclepy.core.models import LogRecord, Severity, SourceLocation, Tag
from chroniclepy.core.observers import Deliver, ObserverSet, ObserverToken, Subscription
from chroniclepy.core.options import OutputOptions
from chroniclepy.core.ports import LogObserver, LogSink, SpanSink
from chroniclepy.core.rwlock import ReadWriteLock
from chroniclepy.core.values import (
    ArrayValue,
    IntegerValue,
    MapValue,
    StringValue,
    StructuredValue,
)

# Fallback channel for failures inside sinks and observers. Never routed back
# into a Logger by ChronicleHandler.
internal_logger = logging.getLogger("chroniclepy.internal")

DEFAULT_SUBSYSTEM = "chroniclepy"
DEFAULT_CATEGORY = "default"

Message = str | Callable[[], str]
TagLike = Tag | str
Metadata = Mapping[str, Any]

_UNKNOWN_SOURCE = SourceLocation(file="<unknown>", function="<unknown>", line=0)


def _call_site(depth: int) -> SourceLocation:
    """Return the source location ``depth`` frames above the caller."""
    try:
        frame = sys._getframe(depth + 1)
    except ValueError:
        return _UNKNOWN_SOURCE
    code = frame.f_code
    return SourceLocation(file=code.co_filename, function=code.co_name, line=frame.f_lineno)


def _normalize_tags(tags: Iterable[TagLike]) -> tuple[Tag, ...]:
    return tuple(tag if isinstance(tag, Tag) else Tag(str(tag)) for tag in tags)


def format_tags(tags: tuple[Tag, ...]) -> str:
    """Return the ``[A][B] `` prefix for ``tags``, or an empty string."""
    if not tags:
        return ""
    return "".join(f"[{tag}]" for tag in tags) + " "


def compose_line(message: str, tag_prefix: str, rendered_metadata: str | None) -> str:
    """Join tagged message and rendered metadata with `` | ``.

    A blank message with tags collapses to the trimmed tag prefix.
    """
    components: list[str] = []
    if message.strip(" \t"):
        components.append(tag_prefix + message)
    elif tag_prefix:
        components.append(tag_prefix.strip(" \t"))
    if rendered_metadata:
        components.append(rendered_metadata)
    return " | ".join(components)


def new_span_id() -> str:
    """Generate an identifier shared by paired span begin/end calls."""
    return uuid.uuid4().hex[:16]


@dataclass(frozen=True)
class _Snapshot:
    """Configuration observed by one emit call."""

    subsystem: str
    allowed: frozenset[Severity]
    options: OutputOptions
    observers: tuple[tuple[str, Deliver], ...]

    def allows(self, level: Severity) -> bool:
        return not self.allowed or level in self.allowed


@dataclass(frozen=True)
class _Prepared:
    """Metadata and tag rendering shared by every message of one call."""

    snapshot: _Snapshot
    level: Severity
    tags: tuple[Tag, ...]
    tag_prefix: str
    metadata: MapValue | None
    rendered: str | None
    source: SourceLocation


class Logger:
    """A named structured logger.

    Args:
        subsystem: Subsystem identifier, injected as ``_subsystem`` metadata.
        category: Fixed category passed along on every record.
        sink: External sink receiving composed lines. Defaults to a
            ``StdlibSink`` writing through the ``logging`` module.
        span_sink: Sink receiving span begin/end/event calls. Defaults to a
            ``StdlibSpanSink``.
        options: Rendering options. Defaults to ``OutputOptions.default()``.
        allowed_levels: Initial allow-set. Empty or None allows every level.
    """

    def __init__(
        self,
        subsystem: str = DEFAULT_SUBSYSTEM,
        category: str = DEFAULT_CATEGORY,
        *,
        sink: LogSink | None = None,
        span_sink: SpanSink | None = None,
        options: OutputOptions | None = None,
        allowed_levels: Iterable[Severity] | None = None,
    ) -> None:
        self.id = uuid.uuid4()
        self._category = category
        self._sink: LogSink = sink if sink is not None else StdlibSink()
        self._span_sink: SpanSink = span_sink if span_sink is not None else StdlibSpanSink()
        self._lock = ReadWriteLock()
        self._dispatch_lock = threading.Lock()
        self._local = threading.local()
        self._subsystem = subsystem
        self._allowed: frozenset[Severity] = frozenset(allowed_levels or ())
        self._options = options if options is not None else OutputOptions.default()
        self._observers = ObserverSet(self.id)

    def __repr__(self) -> str:
        return f"Logger(subsystem={self.subsystem!r}, category={self._category!r})"

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def category(self) -> str:
        return self._category

    @property
    def sink(self) -> LogSink:
        return self._sink

    @property
    def span_sink(self) -> SpanSink:
        return self._span_sink

    @property
    def subsystem(self) -> str:
        with self._lock.read():
            return self._subsystem

    @subsystem.setter
    def subsystem(self, value: str) -> None:
        with self._lock.write():
            self._subsystem = value

    @property
    def allowed_levels(self) -> frozenset[Severity]:
        """Current allow-set. Empty means every level is allowed."""
        with self._lock.read():
            return self._allowed

    def set_allowed_levels(self, levels: Iterable[Severity]) -> None:
        """Replace the allow-set. An empty set allows every level."""
        allowed = frozenset(levels)
        with self._lock.write():
            self._allowed = allowed

    def set_minimum_level(self, minimum: Severity) -> None:
        """Allow ``minimum`` and every more severe level."""
        self.set_allowed_levels(Severity.at_or_above(minimum))

    def is_enabled(self, level: Severity) -> bool:
        with self._lock.read():
            return not self._allowed or level in self._allowed

    @property
    def options(self) -> OutputOptions:
        with self._lock.read():
            return self._options

    def set_options(self, options: OutputOptions) -> None:
        with self._lock.write():
            self._options = options

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def add_observer(self, observer: LogObserver | Deliver, *, weak: bool = False) -> ObserverToken:
        """Register an observer for every accepted record.

        Args:
            observer: Callable taking a ``LogRecord`` or an object with a
                ``receive(record)`` method.
            weak: Hold the observer by weak reference; it is dropped once
                collected.

        Returns:
            Token for ``remove_observer``.
        """
        with self._lock.write():
            return self._observers.add(observer, weak=weak)

    def remove_observer(self, token: ObserverToken) -> bool:
        """Unregister an observer.

        Returns:
            True if the token was registered here; False for tokens already
            removed or issued by another logger.
        """
        with self._lock.write():
            return self._observers.remove(token)

    def subscribe(self, observer: LogObserver | Deliver, *, weak: bool = False) -> Subscription:
        """Register an observer and return a guard that unregisters it."""
        return Subscription(self.add_observer(observer, weak=weak), self.remove_observer)

    @property
    def observer_count(self) -> int:
        with self._lock.read():
            return len(self._observers)

    # ------------------------------------------------------------------
    # Emitting
    # ------------------------------------------------------------------

    def emit(
        self,
        message: Message,
        level: Severity,
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        *,
        source: SourceLocation | None = None,
        stacklevel: int = 1,
    ) -> LogRecord | None:
        """Emit one message if ``level`` is allowed.

        Args:
            message: Message text, or a zero-argument callable producing it.
                The callable is not invoked when the level is filtered out.
            level: Severity of the message.
            tags: Tags prefixed to the line and recorded under ``_tags``.
            metadata: Extra context; values of any type are accepted.
            source: Call site. Captured from the caller when omitted.
            stacklevel: Frames to skip when capturing the call site.

        Returns:
            The emitted record, or None when filtered out.
        """
        snapshot = self._snapshot()
        if not snapshot.allows(level):
            return None
        if source is None:
            source = _call_site(stacklevel)
        prepared = self._prepare(snapshot, level, tags, metadata, source)
        record = self._build(prepared, message)
        self._dispatch(prepared, [record])
        return record

    def emit_batch(
        self,
        messages: Iterable[Message],
        level: Severity,
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        *,
        source: SourceLocation | None = None,
        stacklevel: int = 1,
    ) -> list[LogRecord]:
        """Emit several messages sharing one filter check and one metadata pass.

        Records are written and delivered in message order. No message is
        evaluated when the level is filtered out.
        """
        snapshot = self._snapshot()
        if not snapshot.allows(level):
            return []
        if source is None:
            source = _call_site(stacklevel)
        prepared = self._prepare(snapshot, level, tags, metadata, source)
        records = [self._build(prepared, message) for message in messages]
        self._dispatch(prepared, records)
        return records

    def emit_async(
        self,
        producer: Callable[[], Awaitable[str]],
        level: Severity,
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        *,
        source: SourceLocation | None = None,
        stacklevel: int = 1,
    ) -> "asyncio.Task[LogRecord | None] | None":
        """Schedule a message produced by a coroutine.

        Nothing is scheduled when ``level`` is filtered out. Cancelling the
        returned task before ``producer`` completes suppresses the record.

        Returns:
            The scheduled task, or None when filtered out or when there is no
            running event loop.
        """
        if not self.is_enabled(level):
            return None
        if source is None:
            source = _call_site(stacklevel)
        frozen_tags = _normalize_tags(tags)
        frozen_metadata = dict(metadata) if metadata else None

        async def produce_and_emit() -> LogRecord | None:
            try:
                message = await producer()
            except Exception as exc:  # noqa: BLE001
                internal_logger.exception("async message producer failed for %r", self.subsystem)
                message = _failed_message(exc)
            return self.emit(message, level, frozen_tags, frozen_metadata, source=source)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            internal_logger.error("emit_async called without a running event loop; record dropped")
            return None
        return loop.create_task(produce_and_emit())

    def debug(
        self,
        message: Message,
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        **kwargs: Any,
    ) -> LogRecord | None:
        kwargs["stacklevel"] = kwargs.get("stacklevel", 1) + 1
        return self.emit(message, Severity.DEBUG, tags, metadata, **kwargs)

    def info(
        self,
        message: Message,
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        **kwargs: Any,
    ) -> LogRecord | None:
        kwargs["stacklevel"] = kwargs.get("stacklevel", 1) + 1
        return self.emit(message, Severity.INFO, tags, metadata, **kwargs)

    def notice(
        self,
        message: Message,
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        **kwargs: Any,
    ) -> LogRecord | None:
        kwargs["stacklevel"] = kwargs.get("stacklevel", 1) + 1
        return self.emit(message, Severity.NOTICE, tags, metadata, **kwargs)

    def warning(
        self,
        message: Message,
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        **kwargs: Any,
    ) -> LogRecord | None:
        kwargs["stacklevel"] = kwargs.get("stacklevel", 1) + 1
        return self.emit(message, Severity.WARNING, tags, metadata, **kwargs)

    def error(
        self,
        message: Message,
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        **kwargs: Any,
    ) -> LogRecord | None:
        kwargs["stacklevel"] = kwargs.get("stacklevel", 1) + 1
        return self.emit(message, Severity.ERROR, tags, metadata, **kwargs)

    def fault(
        self,
        message: Message,
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        **kwargs: Any,
    ) -> LogRecord | None:
        kwargs["stacklevel"] = kwargs.get("stacklevel", 1) + 1
        return self.emit(message, Severity.FAULT, tags, metadata, **kwargs)

    # ------------------------------------------------------------------
    # Spans
    # ------------------------------------------------------------------

    def begin_span(
        self,
        name: str,
        message: Message = "",
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        *,
        span_id: str | None = None,
        source: SourceLocation | None = None,
        stacklevel: int = 1,
    ) -> str:
        """Open a span and return its identifier.

        Spans bypass the allow-set and go to the span sink only.
        """
        span_id = span_id or new_span_id()
        source = source or _call_site(stacklevel)
        self._write_span(self._span_sink.begin, name, span_id, message, tags, metadata, source)
        return span_id

    def end_span(
        self,
        name: str,
        span_id: str,
        message: Message = "",
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        *,
        source: SourceLocation | None = None,
        stacklevel: int = 1,
    ) -> None:
        """Close the span opened under ``span_id``."""
        source = source or _call_site(stacklevel)
        self._write_span(self._span_sink.end, name, span_id, message, tags, metadata, source)

    def event_span(
        self,
        name: str,
        message: Message = "",
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
        *,
        span_id: str | None = None,
        source: SourceLocation | None = None,
        stacklevel: int = 1,
    ) -> str:
        """Record a point-in-time span event and return its identifier."""
        span_id = span_id or new_span_id()
        source = source or _call_site(stacklevel)
        self._write_span(self._span_sink.event, name, span_id, message, tags, metadata, source)
        return span_id

    def span(
        self,
        name: str,
        message: Message = "",
        tags: Iterable[TagLike] = (),
        metadata: Metadata | None = None,
    ) -> Iterator[str]:
        """Context manager pairing ``begin_span`` and ``end_span``.

        Example:
            ```python
            with logger.span("load", metadata={"items": 3}) as span_id:
                ...
            ```
        """
        return self._span_context(name, message, tags, metadata, _call_site(1))

    @contextmanager
    def _span_context(
        self,
        name: str,
        message: Message,
        tags: Iterable[TagLike],
        metadata: Metadata | None,
        source: SourceLocation,
    ) -> Iterator[str]:
        tags = _normalize_tags(tags)
        span_id = self.begin_span(name, message, tags, metadata, source=source)
        try:
            yield span_id
        finally:
            self.end_span(name, span_id, "", tags, metadata, source=source)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _snapshot(self) -> _Snapshot:
        with self._lock.read():
            return _Snapshot(
                subsystem=self._subsystem,
                allowed=self._allowed,
                options=self._options,
                observers=tuple(self._observers.snapshot()),
            )

    def _structure(
        self,
        snapshot: _Snapshot,
        tags: tuple[Tag, ...],
        metadata: Metadata | None,
        source: SourceLocation,
    ) -> MapValue | None:
        structured: dict[str, StructuredValue] = {}
        for key, value in (metadata or {}).items():
            structured[str(key)] = StructuredValue.from_dynamic(value)
        if tags:
            structured["_tags"] = ArrayValue(tuple(StringValue(tag.value) for tag in tags))
        options = snapshot.options
        if options.show_source and "_source" not in structured:
            structured["_source"] = MapValue.of(
                {
                    "file": StringValue(source.file_name),
                    "function": StringValue(source.function),
                    "line": IntegerValue(source.line),
                }
            )
        if options.show_subsystem and "_subsystem" not in structured:
            structured["_subsystem"] = StringValue(snapshot.subsystem)
        if not structured:
            return None
        return MapValue.of(structured)

    def _prepare(
        self,
        snapshot: _Snapshot,
        level: Severity,
        tags: Iterable[TagLike],
        metadata: Metadata | None,
        source: SourceLocation,
    ) -> _Prepared:
        normalized = _normalize_tags(tags)
        structured = self._structure(snapshot, normalized, metadata, source)
        rendered = None
        if structured is not None and snapshot.options.show_metadata:
            rendered = snapshot.options.render(structured) or None
        return _Prepared(
            snapshot=snapshot,
            level=level,
            tags=normalized,
            tag_prefix=format_tags(normalized),
            metadata=structured,
            rendered=rendered,
            source=source,
        )

    def _build(self, prepared: _Prepared, message: Message) -> LogRecord:
        text = _resolve(message)
        return LogRecord(
            level=prepared.level,
            message=text,
            tags=prepared.tags,
            metadata=prepared.metadata,
            rendered_metadata=prepared.rendered,
            subsystem=prepared.snapshot.subsystem,
            category=self._category,
            source=prepared.source,
            composed_line=compose_line(text, prepared.tag_prefix, prepared.rendered),
        )

    def _dispatch(self, prepared: _Prepared, records: list[LogRecord]) -> None:
        subsystem = prepared.snapshot.subsystem
        if getattr(self._local, "dispatching", False):
            internal_logger.error(
                "reentrant emit on %r from an observer or sink; %d record(s) dropped",
                subsystem,
                len(records),
            )
            return
        with self._dispatch_lock:
            self._local.dispatching = True
            try:
                for record in records:
                    line, level = record.composed_line, record.level
                    self._guarded("log sink", subsystem, self._sink.write, line, level, record)
                    for label, deliver in prepared.snapshot.observers:
                        self._guarded(f"observer {label}", subsystem, deliver, record)
            finally:
                self._local.dispatching = False

    def _guarded(self, what: str, subsystem: str, func: Callable[..., Any], *args: Any) -> None:
        try:
            func(*args)
        except Exception:  # noqa: BLE001
            internal_logger.exception("%s failed in logger %r", what, subsystem)

    def _write_span(
        self,
        write: Callable[[str, str, str], None],
        name: str,
        span_id: str,
        message: Message,
        tags: Iterable[TagLike],
        metadata: Metadata | None,
        source: SourceLocation,
    ) -> None:
        snapshot = self._snapshot()
        normalized = _normalize_tags(tags)
        structured = self._structure(snapshot, normalized, metadata, source)
        rendered = None
        if structured is not None and snapshot.options.show_metadata:
            rendered = snapshot.options.render(structured) or None
        payload = compose_line(_resolve(message), format_tags(normalized), rendered)
        self._guarded("span sink", snapshot.subsystem, write, name, span_id, payload)


def _failed_message(exc: BaseException) -> str:
    return f"<message unavailable: {type(exc).__name__}: {exc}>"


def _resolve(message: Message) -> str:
    if isinstance(message, str):
        return message
    try:
        return str(message())
    except Exception as exc:  # noqa: BLE001
        internal_logger.exception("log message callable failed")
        return _failed_message(exc)
