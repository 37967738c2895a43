"""Commonly used tags.

Tags are plain labels; projects add their own alongside these::

    from chroniclepy import Tag

    BILLING = Tag("Billing")
"""

from chroniclepy.core.models import Tag

UI = Tag("UI")
NETWORK = Tag("Network")
DATABASE = Tag("Database")
CACHE = Tag("Cache")
AUTH = Tag("Auth")
PERFORMANCE = Tag("Performance")
LIFECYCLE = Tag("Lifecycle")

__all__ = [
    "AUTH",
    "CACHE",
    "DATABASE",
    "LIFECYCLE",
    "NETWORK",
    "PERFORMANCE",
    "UI",
]
