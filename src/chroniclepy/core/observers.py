"""Observer registration for loggers.

Observers are either plain callables taking a ``LogRecord`` or objects with a
``receive(record)`` method. Each registration may hold its observer strongly
or weakly; weak registrations disappear once the observer is collected.
"""

import uuid
import weakref
from collections.abc import Callable
from dataclasses import dataclass, field
from types import MethodType
from typing import Any

from chroniclepy.core.models import LogRecord
from chroniclepy.core.ports import LogObserver

Deliver = Callable[[LogRecord], None]


@dataclass(frozen=True)
class ObserverToken:
    """Opaque handle identifying one observer registration.

    Attributes:
        owner: Identifier of the logger that issued the token.
    """

    owner: uuid.UUID
    id: uuid.UUID = field(default_factory=uuid.uuid4)


class _Entry:
    """A single registration resolving to a delivery callable, or None once dead."""

    __slots__ = ("_resolve", "label")

    def __init__(self, observer: Any, weak: bool) -> None:
        self.label = _describe(observer)
        if isinstance(observer, LogObserver):
            if weak:
                ref = weakref.ref(observer)
                self._resolve = lambda: _receive_of(ref())
            else:
                deliver = observer.receive
                self._resolve = lambda: deliver
        elif callable(observer):
            if weak:
                if isinstance(observer, MethodType):
                    self._resolve = weakref.WeakMethod(observer)
                else:
                    self._resolve = weakref.ref(observer)
            else:
                self._resolve = lambda: observer
        else:
            raise TypeError(f"observer must be callable or define receive(): {observer!r}")

    def resolve(self) -> Deliver | None:
        return self._resolve()


def _receive_of(target: Any) -> Deliver | None:
    return None if target is None else target.receive


def _describe(observer: Any) -> str:
    name = getattr(observer, "__qualname__", None) or type(observer).__qualname__
    return str(name)


class ObserverSet:
    """Registered observers of one logger, keyed by token.

    Not thread-safe on its own; the owning logger guards it.
    """

    def __init__(self, owner: uuid.UUID) -> None:
        self._owner = owner
        self._entries: dict[ObserverToken, _Entry] = {}

    def add(self, observer: LogObserver | Deliver, weak: bool = False) -> ObserverToken:
        """Register an observer and return its token.

        Raises:
            TypeError: If the observer is neither callable nor has ``receive``,
                or a weak registration targets an object that cannot be
                weakly referenced.
        """
        entry = _Entry(observer, weak)
        self.prune()
        token = ObserverToken(owner=self._owner)
        self._entries[token] = entry
        return token

    def remove(self, token: ObserverToken) -> bool:
        """Remove a registration. Unknown or foreign tokens are ignored."""
        if token.owner != self._owner:
            return False
        removed = self._entries.pop(token, None) is not None
        self.prune()
        return removed

    def prune(self) -> None:
        """Drop weak registrations whose observer has been collected."""
        dead = [token for token, entry in self._entries.items() if entry.resolve() is None]
        for token in dead:
            del self._entries[token]

    def snapshot(self) -> list[tuple[str, Deliver]]:
        """Return ``(label, deliver)`` pairs for every live observer."""
        live = []
        for entry in self._entries.values():
            deliver = entry.resolve()
            if deliver is not None:
                live.append((entry.label, deliver))
        return live

    def __len__(self) -> int:
        return sum(1 for entry in self._entries.values() if entry.resolve() is not None)


class Subscription:
    """Guard that removes an observer when closed.

    Usable as a context manager::

        with logger.subscribe(records.append):
            logger.info("captured")
    """

    def __init__(self, token: ObserverToken, remove: Callable[[ObserverToken], bool]) -> None:
        self.token = token
        self._remove: Callable[[ObserverToken], bool] | None = remove

    @property
    def active(self) -> bool:
        return self._remove is not None

    def close(self) -> None:
        """Remove the observer. Calling again does nothing."""
        remove, self._remove = self._remove, None
        if remove is not None:
            remove(self.token)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
