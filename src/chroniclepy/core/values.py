"""Structured metadata values and their canonical text rendering.

A ``StructuredValue`` is a closed set of immutable variants (string, integer,
float, bool, array, map, null). Every variant renders to a deterministic,
JSON-like line fragment so that two structurally equal values always produce
the same text, whatever order a map was built in.
"""

import math
import numbers
from collections.abc import Iterator, Mapping, Sequence, Set
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def escape(text: str) -> str:
    """Escape backslash, double quote, newline, carriage return and tab."""
    return "".join(_ESCAPES.get(char, char) for char in text)


def format_float(value: float) -> str:
    """Render a float without trailing fractional zeros.

    ``1.50`` renders as ``1.5`` and ``2.0`` as ``2``. Exponent forms and
    non-finite values keep Python's own textual form.
    """
    if not math.isfinite(value):
        return repr(value)
    text = repr(value)
    if "." in text and "e" not in text:
        text = text.rstrip("0").rstrip(".")
    return text


@runtime_checkable
class ToStructuredValue(Protocol):
    """Capability for objects that know their own structured form."""

    def __structured_value__(self) -> "StructuredValue":
        """Return the structured representation of this object."""
        ...


class StructuredValue:
    """Base class of all structured metadata variants."""

    __slots__ = ()

    def render(self) -> str:
        """Render this value to its canonical text form."""
        raise NotImplementedError

    def to_python(self) -> Any:
        """Convert back into plain JSON-compatible Python values."""
        raise NotImplementedError

    def __str__(self) -> str:
        return self.render()

    @staticmethod
    def from_dynamic(value: Any) -> "StructuredValue":
        """Convert an arbitrary Python value into a structured value.

        Never raises: unrecognised types fall back to their ``str()`` form.
        """
        return _convert(value, frozenset())

    @staticmethod
    def from_mapping(mapping: Mapping[Any, Any]) -> "MapValue":
        """Convert a mapping of arbitrary values into a ``MapValue``."""
        return MapValue.of(
            {str(key): _convert(item, frozenset()) for key, item in mapping.items()}
        )


@dataclass(frozen=True, slots=True)
class StringValue(StructuredValue):
    value: str

    def render(self) -> str:
        return f'"{escape(self.value)}"'

    def to_python(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class IntegerValue(StructuredValue):
    value: int

    def render(self) -> str:
        return str(self.value)

    def to_python(self) -> int:
        return self.value


@dataclass(frozen=True, slots=True)
class FloatValue(StructuredValue):
    value: float

    def render(self) -> str:
        return format_float(self.value)

    def to_python(self) -> float | str:
        # JSON has no spelling for nan/inf
        if not math.isfinite(self.value):
            return repr(self.value)
        return self.value


@dataclass(frozen=True, slots=True)
class BoolValue(StructuredValue):
    value: bool

    def render(self) -> str:
        return "true" if self.value else "false"

    def to_python(self) -> bool:
        return self.value


@dataclass(frozen=True, slots=True)
class NullValue(StructuredValue):
    def render(self) -> str:
        return "null"

    def to_python(self) -> None:
        return None


NULL = NullValue()


@dataclass(frozen=True, slots=True)
class ArrayValue(StructuredValue):
    items: tuple[StructuredValue, ...] = ()

    def render(self) -> str:
        return "[" + ",".join(item.render() for item in self.items) + "]"

    def to_python(self) -> list[Any]:
        return [item.to_python() for item in self.items]

    def __iter__(self) -> Iterator[StructuredValue]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class MapValue(StructuredValue):
    """Map from string keys to structured values.

    Entries are kept sorted by key, so equality, hashing and rendering do not
    depend on the order the map was built in.
    """

    entries: tuple[tuple[str, StructuredValue], ...] = ()

    def __post_init__(self) -> None:
        unique = dict(self.entries)
        object.__setattr__(self, "entries", tuple(sorted(unique.items())))

    @classmethod
    def of(cls, mapping: Mapping[str, StructuredValue]) -> "MapValue":
        """Build a map from an existing mapping of structured values."""
        return cls(tuple(mapping.items()))

    def render(self) -> str:
        body = ",".join(f'"{escape(key)}":{item.render()}' for key, item in self.entries)
        return "{" + body + "}"

    def to_python(self) -> dict[str, Any]:
        return {key: item.to_python() for key, item in self.entries}

    def as_dict(self) -> dict[str, StructuredValue]:
        """Return a new plain dict of the entries."""
        return dict(self.entries)

    def keys(self) -> list[str]:
        return [key for key, _ in self.entries]

    def get(self, key: str, default: StructuredValue | None = None) -> StructuredValue | None:
        for entry_key, item in self.entries:
            if entry_key == key:
                return item
        return default

    def __getitem__(self, key: str) -> StructuredValue:
        item = self.get(key)
        if item is None:
            raise KeyError(key)
        return item

    def __contains__(self, key: object) -> bool:
        return any(entry_key == key for entry_key, _ in self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.entries)


def _textual(value: Any) -> StringValue:
    try:
        return StringValue(str(value))
    except Exception:  # noqa: BLE001
        return StringValue(f"<unrepresentable {type(value).__name__}>")


def _convert(value: Any, seen: frozenset[int]) -> StructuredValue:
    # Containers already on the conversion path are cycles.
    if id(value) in seen:
        return StringValue("<cycle>")

    if isinstance(value, StructuredValue):
        return value
    if isinstance(value, ToStructuredValue):
        try:
            converted = value.__structured_value__()
        except Exception:  # noqa: BLE001
            return _textual(value)
        if isinstance(converted, StructuredValue):
            return converted
        return _textual(value)
    if value is None:
        return NULL
    if isinstance(value, bool):
        return BoolValue(value)
    if isinstance(value, numbers.Integral):
        return IntegerValue(int(value))
    if isinstance(value, numbers.Real):
        return FloatValue(float(value))
    if isinstance(value, str):
        return StringValue(value)
    if isinstance(value, (bytes, bytearray)):
        return StringValue(bytes(value).decode("utf-8", errors="replace"))

    nested = seen | {id(value)}
    if isinstance(value, Mapping):
        return MapValue.of(
            {str(key): _convert(item, nested) for key, item in value.items()}
        )
    if isinstance(value, Set):
        # unordered input, ordered by rendering for determinism
        items = (_convert(item, nested) for item in value)
        return ArrayValue(tuple(sorted(items, key=lambda item: item.render())))
    if isinstance(value, Sequence):
        return ArrayValue(tuple(_convert(item, nested) for item in value))
    return _textual(value)
