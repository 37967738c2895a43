"""Core domain models for structured log records."""

import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from enum import IntEnum

from chroniclepy.core.values import MapValue


class Severity(IntEnum):
    """Ordered severity of a log record.

    DEBUG < INFO < NOTICE < WARNING < ERROR < FAULT.
    """

    DEBUG = 0
    INFO = 1
    NOTICE = 2
    WARNING = 3
    ERROR = 4
    FAULT = 5

    @property
    def stdlib_level(self) -> int:
        """Native level of the external sink (the ``logging`` module).

        NOTICE and WARNING both map to ``logging.WARNING``.
        """
        return _STDLIB_LEVELS[self]

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, text: str) -> "Severity":
        """Look up a severity by case-insensitive name.

        Raises:
            ValueError: If ``text`` names no severity.
        """
        try:
            return cls[text.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown severity: {text!r}") from None

    @classmethod
    def at_or_above(cls, minimum: "Severity") -> frozenset["Severity"]:
        """Return every severity greater than or equal to ``minimum``."""
        return frozenset(level for level in cls if level >= minimum)


_STDLIB_LEVELS = {
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.NOTICE: logging.WARNING,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FAULT: logging.CRITICAL,
}


@dataclass(frozen=True)
class Tag:
    """A free-form label attached to log records.

    Tags categorise and prefix rendered lines; they play no part in
    filtering. Declare new ones as module constants::

        PAYMENTS = Tag("Payments")
    """

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SourceLocation:
    """Call site that produced a log record.

    Attributes:
        file: Path of the source file.
        function: Name of the calling function.
        line: Line number within ``file``.
    """

    file: str
    function: str
    line: int

    @property
    def file_name(self) -> str:
        """Base name of ``file``."""
        return os.path.basename(self.file)


@dataclass(frozen=True, eq=False)
class LogRecord:
    """Immutable snapshot of one emitted log event.

    Records compare and hash by ``id`` only.

    Attributes:
        level: Severity the record was emitted at.
        message: Resolved message text.
        tags: Tags in the order they were given.
        metadata: Structured metadata, or None when there was none.
        rendered_metadata: Metadata as rendered into ``composed_line``.
        subsystem: Subsystem of the emitting logger at emit time.
        category: Category of the emitting logger.
        source: Call site provenance.
        composed_line: Final line handed to the external sink.
        id: Process-unique identifier.
        timestamp: Unix timestamp in seconds captured at creation.
    """

    level: Severity
    message: str
    tags: tuple[Tag, ...]
    metadata: MapValue | None
    rendered_metadata: str | None
    subsystem: str
    category: str
    source: SourceLocation
    composed_line: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    timestamp: float = field(default_factory=lambda: time.time())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LogRecord):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def tagged_message(self) -> str:
        """Message prefixed with its tags, e.g. ``[Network][API] text``."""
        prefix = "".join(f"[{tag}]" for tag in self.tags)
        return f"{prefix} {self.message}" if prefix else self.message
