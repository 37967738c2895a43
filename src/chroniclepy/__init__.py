"""chroniclepy - structured, leveled, tagged logging with live observers."""

from chroniclepy import tags
from chroniclepy.adapters.console import (
    ConsoleBuffer,
    console_for,
    disable_console,
    enable_console,
)
from chroniclepy.adapters.logging import (
    ChronicleHandler,
    ChronicleLoggerAdapter,
    ContextProvider,
    FacadeLevel,
    bootstrap,
)
from chroniclepy.adapters.sinks import (
    CollectingSink,
    CollectingSpanSink,
    NullSink,
    StdlibSink,
    StdlibSpanSink,
)
from chroniclepy.core.encoding.ndjson import encode_records
from chroniclepy.core.models import LogRecord, Severity, SourceLocation, Tag
from chroniclepy.core.observers import ObserverToken, Subscription
from chroniclepy.core.options import KeyPolicy, MetadataFormat, OutputOptions
from chroniclepy.core.ports import LogObserver, LogSink, SpanSink
from chroniclepy.core.values import (
    ArrayValue,
    BoolValue,
    FloatValue,
    IntegerValue,
    MapValue,
    NullValue,
    StringValue,
    StructuredValue,
    ToStructuredValue,
)
from chroniclepy.logger import Logger
from chroniclepy.registry import LoggerRegistry, default_registry, get_logger, shared

__all__ = [
    "ArrayValue",
    "BoolValue",
    "ChronicleHandler",
    "ChronicleLoggerAdapter",
    "CollectingSink",
    "CollectingSpanSink",
    "ConsoleBuffer",
    "ContextProvider",
    "FacadeLevel",
    "FloatValue",
    "IntegerValue",
    "KeyPolicy",
    "LogObserver",
    "LogRecord",
    "LogSink",
    "Logger",
    "LoggerRegistry",
    "MapValue",
    "MetadataFormat",
    "NullSink",
    "NullValue",
    "ObserverToken",
    "OutputOptions",
    "Severity",
    "SourceLocation",
    "SpanSink",
    "StdlibSink",
    "StdlibSpanSink",
    "StringValue",
    "StructuredValue",
    "Subscription",
    "Tag",
    "ToStructuredValue",
    "bootstrap",
    "console_for",
    "default_registry",
    "disable_console",
    "enable_console",
    "encode_records",
    "get_logger",
    "shared",
    "tags",
]
