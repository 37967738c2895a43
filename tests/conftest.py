"""Shared test fixtures for all test modules."""

import logging
from collections.abc import Iterator

import pytest

from chroniclepy.adapters.sinks import CollectingSink, CollectingSpanSink
from chroniclepy.core.models import LogRecord
from chroniclepy.logger import Logger
from chroniclepy.registry import LoggerRegistry


@pytest.fixture
def sink() -> CollectingSink:
    """Provide an in-memory sink capturing composed lines."""
    return CollectingSink()


@pytest.fixture
def span_sink() -> CollectingSpanSink:
    """Provide an in-memory span sink."""
    return CollectingSpanSink()


@pytest.fixture
def logger(sink: CollectingSink, span_sink: CollectingSpanSink) -> Logger:
    """Logger writing to collecting sinks, with every level allowed."""
    return Logger("com.example.tests", sink=sink, span_sink=span_sink)


@pytest.fixture
def received(logger: Logger) -> list[LogRecord]:
    """Records delivered to an observer registered on ``logger``."""
    records: list[LogRecord] = []
    logger.add_observer(records.append)
    return records


@pytest.fixture
def registry(sink: CollectingSink) -> LoggerRegistry:
    """Isolated registry whose loggers share the collecting sink."""
    return LoggerRegistry(factory=lambda key: Logger(key, sink=sink))


@pytest.fixture
def clean_root_logger() -> Iterator[logging.Logger]:
    """Restore root logger handlers and level after the test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
