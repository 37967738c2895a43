"""Bounded console buffer for live log views.

Provides bounded in-memory storage of recent records that evicts the oldest
records when full. A presentation layer reads consistent snapshots while
loggers append from any thread.
"""

import threading
import uuid
from collections import deque
from collections.abc import Iterator
from typing import TYPE_CHECKING

from chroniclepy.core.models import LogRecord
from chroniclepy.core.observers import ObserverToken

if TYPE_CHECKING:
    from chroniclepy.logger import Logger

DEFAULT_CAPACITY = 500


class ConsoleBuffer:
    """Ring buffer implementation of the LogObserver port.

    Stores records in emission order. When the buffer is full, the oldest
    records are evicted to make room for new ones.

    Args:
        capacity: Maximum number of records to keep (clamped to at least 1).
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._lock = threading.Lock()
        self._capacity = max(1, capacity)
        self._records: deque[LogRecord] = deque(maxlen=self._capacity)
        # Guards _attachments; never taken while delivering records
        self._attach_lock = threading.Lock()
        self._attachments: dict[uuid.UUID, tuple["Logger", ObserverToken]] = {}

    @property
    def capacity(self) -> int:
        with self._lock:
            return self._capacity

    def receive(self, record: LogRecord) -> None:
        """Append a record, evicting from the head when over capacity."""
        with self._lock:
            self._records.append(record)

    def set_capacity(self, capacity: int) -> None:
        """Change capacity (minimum 1), trimming the oldest records if needed."""
        with self._lock:
            self._capacity = max(1, capacity)
            self._records = deque(self._records, maxlen=self._capacity)

    def clear(self) -> None:
        """Remove all records. Capacity is unchanged."""
        with self._lock:
            self._records.clear()

    def snapshot(self) -> tuple[LogRecord, ...]:
        """Return the buffered records, oldest first."""
        with self._lock:
            return tuple(self._records)

    def __iter__(self) -> Iterator[LogRecord]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def attach(self, logger: "Logger", *, weak: bool = False) -> ObserverToken:
        """Start receiving records from ``logger``.

        Attaching to an already attached logger replaces the earlier
        registration.
        """
        with self._attach_lock:
            self._release(logger.id)
            token = logger.add_observer(self, weak=weak)
            self._attachments[logger.id] = (logger, token)
            return token

    def detach(self, logger: "Logger | None" = None) -> None:
        """Stop receiving records from ``logger``, or from every logger."""
        with self._attach_lock:
            keys = [logger.id] if logger is not None else list(self._attachments)
            for key in keys:
                self._release(key)

    def _release(self, key: uuid.UUID) -> None:
        # Caller holds _attach_lock
        attachment = self._attachments.pop(key, None)
        if attachment is not None:
            attached, token = attachment
            attached.remove_observer(token)


_consoles: dict[uuid.UUID, ConsoleBuffer] = {}
_consoles_lock = threading.Lock()


def enable_console(logger: "Logger", capacity: int = DEFAULT_CAPACITY) -> ConsoleBuffer:
    """Attach a console buffer to ``logger``, one per logger.

    Calling again returns the same buffer with its capacity updated.
    """
    with _consoles_lock:
        buffer = _consoles.get(logger.id)
        if buffer is not None:
            buffer.set_capacity(capacity)
            return buffer
        buffer = ConsoleBuffer(capacity)
        buffer.attach(logger)
        _consoles[logger.id] = buffer
        return buffer


def disable_console(logger: "Logger") -> None:
    """Detach and forget the console buffer of ``logger``, if any."""
    with _consoles_lock:
        buffer = _consoles.pop(logger.id, None)
    if buffer is not None:
        buffer.detach(logger)


def console_for(logger: "Logger") -> ConsoleBuffer | None:
    """Return the console buffer enabled on ``logger``, if any."""
    with _consoles_lock:
        return _consoles.get(logger.id)
