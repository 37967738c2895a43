"""Output options controlling metadata injection and rendering."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from chroniclepy.core.values import MapValue


class MetadataFormat(Enum):
    """How rendered metadata appears in the composed line."""

    COMPACT = "compact"
    LOGFMT = "logfmt"


@dataclass(frozen=True)
class KeyPolicy:
    """Selects which top-level metadata keys are rendered.

    Use the ``all``, ``include`` and ``exclude`` constructors rather than
    building instances directly.
    """

    mode: str = "all"
    keys: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def all(cls) -> "KeyPolicy":
        return cls()

    @classmethod
    def include(cls, keys: Iterable[str]) -> "KeyPolicy":
        return cls("include", frozenset(keys))

    @classmethod
    def exclude(cls, keys: Iterable[str]) -> "KeyPolicy":
        return cls("exclude", frozenset(keys))

    def allows(self, key: str) -> bool:
        if self.mode == "include":
            return key in self.keys
        if self.mode == "exclude":
            return key not in self.keys
        return True


@dataclass(frozen=True)
class OutputOptions:
    """Rendering configuration for a logger.

    Attributes:
        show_metadata: Append `` | <metadata>`` to the composed line.
        metadata_format: Rendering style of the appended metadata.
        key_policy: Top-level keys allowed into the rendered text. Structured
            metadata on the record is not filtered.
        show_subsystem: Inject the reserved ``_subsystem`` key.
        show_source: Inject the reserved ``_source`` key.
    """

    show_metadata: bool = True
    metadata_format: MetadataFormat = MetadataFormat.COMPACT
    key_policy: KeyPolicy = field(default_factory=KeyPolicy.all)
    show_subsystem: bool = True
    show_source: bool = True

    @classmethod
    def default(cls) -> "OutputOptions":
        return cls()

    def render(self, metadata: MapValue) -> str:
        """Render metadata according to these options.

        Returns an empty string when no key survives the key policy.
        """
        entries = [(key, item) for key, item in metadata.entries if self.key_policy.allows(key)]
        if not entries:
            return ""
        if self.metadata_format is MetadataFormat.LOGFMT:
            return " ".join(f"{key}={item.render()}" for key, item in entries)
        return MapValue(tuple(entries)).render()
