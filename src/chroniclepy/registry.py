"""Keyed registry of loggers and the process-wide default context."""

import threading
from collections.abc import Callable

from chroniclepy.logger import DEFAULT_SUBSYSTEM, Logger

LoggerFactory = Callable[[str], Logger]


class LoggerRegistry:
    """Map from key to ``Logger`` with at most one logger per key.

    Lookups of existing keys do not take the lock; creating a logger for a
    new key is a single check-insert under the registry lock, so racing
    callers always receive the same instance. Entries are never removed.

    Args:
        factory: Builds the logger for a new key (default: ``Logger(key)``).
        default_subsystem: Subsystem of the eagerly created ``default``
            logger.
    """

    def __init__(
        self,
        factory: LoggerFactory | None = None,
        default_subsystem: str = DEFAULT_SUBSYSTEM,
    ) -> None:
        self._factory: LoggerFactory = factory or Logger
        self._lock = threading.Lock()
        self._loggers: dict[str, Logger] = {}
        self.default = self._factory(default_subsystem)

    def instance(self, key: str) -> Logger:
        """Return the logger for ``key``, creating it on first use.

        A new logger is seeded with ``subsystem=key``.
        """
        logger = self._loggers.get(key)
        if logger is not None:
            return logger
        with self._lock:
            logger = self._loggers.get(key)
            if logger is None:
                logger = self._factory(key)
                self._loggers[key] = logger
            return logger

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._loggers)

    def __contains__(self, key: object) -> bool:
        return key in self._loggers

    def __len__(self) -> int:
        return len(self._loggers)


_default_registry = LoggerRegistry()


def default_registry() -> LoggerRegistry:
    """Return the process-wide registry."""
    return _default_registry


def shared() -> Logger:
    """Return the process-wide default logger."""
    return _default_registry.default


def get_logger(key: str) -> Logger:
    """Return the process-wide logger for ``key``."""
    return _default_registry.instance(key)
