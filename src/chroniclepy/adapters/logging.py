"""Python logging bridge for chroniclepy.

``ChronicleHandler`` routes records from the standard library ``logging``
front-end into chroniclepy loggers, one logger per stdlib logger name.
``ChronicleLoggerAdapter`` goes the other way and lets code written against
the ``logging`` API log through a given chroniclepy ``Logger``.
"""

import logging
import os
import sys
import threading
import traceback
from collections.abc import Callable, Mapping, MutableMapping
from enum import IntEnum
from typing import Any

from chroniclepy.adapters.sinks import RECORD_MARKER
from chroniclepy.core.models import Severity, SourceLocation, Tag
from chroniclepy.logger import Logger
from chroniclepy.registry import LoggerRegistry, default_registry

NOTICE = 25
logging.addLevelName(NOTICE, "NOTICE")

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

# Callable returning context merged into every forwarded record
ContextProvider = Callable[[], Mapping[str, Any]]

# chroniclepy's own stdlib loggers; never routed back into a Logger
_OWN_NAMESPACE = "chroniclepy"

# Source file of the logging package, skipped when locating adapter call sites
_LOGGING_SRCFILE = os.path.normcase(logging.addLevelName.__code__.co_filename)

_UNKNOWN_SOURCE = SourceLocation(file="<unknown>", function="<unknown>", line=0)


class FacadeLevel(IntEnum):
    """Levels of the ``logging`` front-end as seen by the bridge."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    NOTICE = 3
    WARNING = 4
    ERROR = 5
    CRITICAL = 6

    @classmethod
    def from_levelno(cls, levelno: int) -> "FacadeLevel":
        """Classify a numeric stdlib level."""
        if levelno < logging.DEBUG:
            return cls.TRACE
        if levelno < logging.INFO:
            return cls.DEBUG
        if levelno < NOTICE:
            return cls.INFO
        if levelno < logging.WARNING:
            return cls.NOTICE
        if levelno < logging.ERROR:
            return cls.WARNING
        if levelno < logging.CRITICAL:
            return cls.ERROR
        return cls.CRITICAL


_TO_SEVERITY = {
    FacadeLevel.TRACE: Severity.DEBUG,
    FacadeLevel.DEBUG: Severity.DEBUG,
    FacadeLevel.INFO: Severity.INFO,
    FacadeLevel.NOTICE: Severity.NOTICE,
    FacadeLevel.WARNING: Severity.WARNING,
    FacadeLevel.ERROR: Severity.ERROR,
    FacadeLevel.CRITICAL: Severity.FAULT,
}


def to_severity(level: FacadeLevel) -> Severity:
    """Map a front-end level onto a chroniclepy severity."""
    return _TO_SEVERITY[level]


def allowed_levels_for(minimum: FacadeLevel) -> frozenset[Severity]:
    """Allow-set equivalent of a front-end minimum level."""
    return Severity.at_or_above(to_severity(minimum))


class ChronicleHandler(logging.Handler):
    """Logging handler that forwards records into chroniclepy loggers.

    Each stdlib logger name maps to ``registry.instance(name)``. Changing the
    handler level updates the allow-set of every logger it has routed to.

    Example:
        ```python
        import logging
        from chroniclepy.adapters.logging import ChronicleHandler

        logging.getLogger().addHandler(ChronicleHandler())
        logging.getLogger("billing").warning("card declined", extra={"code": 51})
        ```
    """

    def __init__(
        self,
        registry: LoggerRegistry | None = None,
        level: int = logging.NOTSET,
        context_provider: ContextProvider | None = None,
    ) -> None:
        """Initialize the handler.

        Args:
            registry: Registry to route into. Defaults to the process-wide one.
            level: Minimum stdlib level handled.
            context_provider: Optional callable returning metadata merged into
                every record. Values passed via ``extra`` take precedence.
        """
        super().__init__(level)
        self._context_provider = context_provider
        self._registry = registry if registry is not None else default_registry()
        self._routed: dict[str, Logger] = {}
        self._routed_lock = threading.Lock()
        self.addFilter(_not_own)

    @property
    def registry(self) -> LoggerRegistry:
        return self._registry

    def setLevel(self, level: int | str) -> None:  # noqa: N802
        super().setLevel(level)
        allowed = allowed_levels_for(FacadeLevel.from_levelno(self.level))
        with self._routed_lock:
            targets = list(self._routed.values())
        for target in targets:
            target.set_allowed_levels(allowed)

    def _target(self, name: str) -> Logger:
        with self._routed_lock:
            target = self._routed.get(name)
        if target is not None:
            return target
        target = self._registry.instance(name)
        target.set_allowed_levels(allowed_levels_for(FacadeLevel.from_levelno(self.level)))
        with self._routed_lock:
            self._routed.setdefault(name, target)
        return target

    def handle(self, record: logging.LogRecord) -> bool | logging.LogRecord:  # type: ignore[override]
        """Filter and forward a record without holding the handler lock.

        Target loggers serialize their own dispatch, and a sink on the same
        thread may log back through ``logging`` while that dispatch is held.
        """
        rv = self.filter(record)
        if isinstance(rv, logging.LogRecord):
            record = rv
        if rv:
            self.emit(record)
        return rv

    def emit(self, record: logging.LogRecord) -> None:
        """Forward a stdlib record.

        Args:
            record: The log record to emit.
        """
        try:
            message = record.getMessage()
            context = dict(self._context_provider()) if self._context_provider else {}
        except Exception:  # noqa: BLE001
            self.handleError(record)
            return

        # Extra attributes override context provider values
        metadata: dict[str, Any] = {
            **context,
            **{
                key: value
                for key, value in record.__dict__.items()
                if key not in _STANDARD_LOGRECORD_ATTRS and not key.startswith("_")
            },
        }

        # Extract exception info if present
        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None:
                metadata["exc_type"] = exc_type.__name__
            if exc_value is not None:
                metadata["exc_message"] = str(exc_value)
            if exc_tb is not None:
                metadata["exc_traceback"] = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )

        tags = [Tag(record.module)] if record.module else []
        self._target(record.name).emit(
            message,
            to_severity(FacadeLevel.from_levelno(record.levelno)),
            tags,
            metadata,
            source=SourceLocation(
                file=record.pathname,
                function=record.funcName or "",
                line=record.lineno,
            ),
        )


def _is_own(record: logging.LogRecord) -> bool:
    if RECORD_MARKER in record.__dict__:
        return True
    return record.name == _OWN_NAMESPACE or record.name.startswith(_OWN_NAMESPACE + ".")


def _not_own(record: logging.LogRecord) -> bool:
    return not _is_own(record)


_bootstrap_lock = threading.Lock()


def bootstrap(
    default_level: FacadeLevel = FacadeLevel.INFO,
    registry: LoggerRegistry | None = None,
) -> ChronicleHandler:
    """Route the whole ``logging`` front-end through chroniclepy.

    Installs a ``ChronicleHandler`` on the root logger. Calling again returns
    the installed handler with its level updated.

    Args:
        default_level: Minimum front-end level forwarded.
        registry: Registry to route into. Defaults to the process-wide one.
    """
    root = logging.getLogger()
    levelno = _FROM_FACADE[default_level]
    with _bootstrap_lock:
        for handler in root.handlers:
            if isinstance(handler, ChronicleHandler):
                handler.setLevel(levelno)
                return handler
        handler = ChronicleHandler(registry=registry)
        handler.setLevel(levelno)
        root.addHandler(handler)
        if root.level > levelno:
            root.setLevel(levelno)
        return handler


_FROM_FACADE = {
    FacadeLevel.TRACE: 5,
    FacadeLevel.DEBUG: logging.DEBUG,
    FacadeLevel.INFO: logging.INFO,
    FacadeLevel.NOTICE: NOTICE,
    FacadeLevel.WARNING: logging.WARNING,
    FacadeLevel.ERROR: logging.ERROR,
    FacadeLevel.CRITICAL: logging.CRITICAL,
}


class ChronicleLoggerAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """``logging``-style front for a chroniclepy ``Logger``.

    Calls such as ``adapter.warning("disk %s full", name, extra={...})`` are
    formatted the stdlib way and emitted on the wrapped logger with ``extra``
    as metadata.
    """

    def __init__(self, target: Logger, extra: MutableMapping[str, Any] | None = None) -> None:
        super().__init__(logging.getLogger(f"{_OWN_NAMESPACE}.adapter"), extra or {})
        self.target = target

    def isEnabledFor(self, level: int) -> bool:  # noqa: N802
        return self.target.is_enabled(to_severity(FacadeLevel.from_levelno(level)))

    def log(self, level: int, msg: object, *args: Any, **kwargs: Any) -> None:
        severity = to_severity(FacadeLevel.from_levelno(level))
        if not self.target.is_enabled(severity):
            return
        source = _adapter_call_site(int(kwargs.get("stacklevel", 1)))
        metadata = dict(self.extra or {})
        metadata.update(kwargs.get("extra") or {})
        exc_info = kwargs.get("exc_info")
        if exc_info:
            if isinstance(exc_info, BaseException):
                metadata["exc_type"] = type(exc_info).__name__
                metadata["exc_message"] = str(exc_info)
            elif exc_info is True:
                metadata["exc_traceback"] = traceback.format_exc()

        # Same rule as logging.LogRecord: a lone mapping supplies named fields
        fields: Any = args
        if len(args) == 1 and isinstance(args[0], Mapping) and args[0]:
            fields = args[0]

        def message() -> str:
            return str(msg) % fields if fields else str(msg)

        self.target.emit(message, severity, (), metadata, source=source)


def _adapter_call_site(stacklevel: int) -> SourceLocation:
    """Locate the caller of ``ChronicleLoggerAdapter.log``.

    Frames inside the ``logging`` package are skipped first, so calls made
    through ``LoggerAdapter.info`` and friends resolve like a direct
    ``adapter.log(...)``. ``stacklevel`` then walks further out.
    """
    try:
        frame = sys._getframe(2)
    except ValueError:
        return _UNKNOWN_SOURCE
    while frame is not None and os.path.normcase(frame.f_code.co_filename) == _LOGGING_SRCFILE:
        frame = frame.f_back
    for _ in range(stacklevel - 1):
        if frame is None:
            break
        frame = frame.f_back
    if frame is None:
        return _UNKNOWN_SOURCE
    code = frame.f_code
    return SourceLocation(file=code.co_filename, function=code.co_name, line=frame.f_lineno)
