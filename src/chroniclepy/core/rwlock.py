"""Readers-writer lock used to guard per-logger configuration."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class ReadWriteLock:
    """Phase-fair readers-writer lock.

    Any number of readers may hold the lock together. A waiting writer holds
    back newly arriving readers, and a releasing writer admits every reader
    that was already waiting before the next writer may enter. Neither side
    starves while the other keeps re-acquiring. Not reentrant.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0
        self._waiting_readers = 0
        # Readers admitted ahead of waiting writers by the last write release
        self._reader_passes = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the lock shared for the duration of the block."""
        with self._cond:
            self._waiting_readers += 1
            try:
                while self._writer or (self._waiting_writers and not self._reader_passes):
                    self._cond.wait()
            except BaseException:
                self._waiting_readers -= 1
                self._reader_passes = min(self._reader_passes, self._waiting_readers)
                self._cond.notify_all()
                raise
            self._waiting_readers -= 1
            if self._reader_passes:
                self._reader_passes -= 1
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Hold the lock exclusively for the duration of the block."""
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers or self._reader_passes:
                    self._cond.wait()
            except BaseException:
                self._waiting_writers -= 1
                self._cond.notify_all()
                raise
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._reader_passes = self._waiting_readers
                self._cond.notify_all()
