"""Tests for port interfaces."""

import pytest

from chroniclepy.adapters.console import ConsoleBuffer
from chroniclepy.adapters.sinks import (
    CollectingSink,
    CollectingSpanSink,
    NullSink,
    StdlibSink,
    StdlibSpanSink,
)
from chroniclepy.core.models import LogRecord, Severity
from chroniclepy.core.ports import LogObserver, LogSink, SpanSink


class TestLogSink:
    """Tests for LogSink protocol."""

    @pytest.mark.core
    def test_protocol_has_write_method(self) -> None:
        """LogSink must define write(line, severity, record) -> None."""
        assert hasattr(LogSink, "write")

    @pytest.mark.core
    def test_class_implementing_protocol_is_recognized(self) -> None:
        class FakeSink:
            def write(self, line: str, severity: Severity, record: LogRecord) -> None:
                pass

        sink: LogSink = FakeSink()
        assert isinstance(sink, LogSink)

    @pytest.mark.core
    @pytest.mark.parametrize("sink_type", [StdlibSink, NullSink, CollectingSink])
    def test_bundled_sinks_satisfy_protocol(self, sink_type: type) -> None:
        assert isinstance(sink_type(), LogSink)


class TestLogObserver:
    """Tests for LogObserver protocol."""

    @pytest.mark.core
    def test_console_buffer_is_an_observer(self) -> None:
        assert isinstance(ConsoleBuffer(), LogObserver)

    @pytest.mark.core
    def test_plain_object_is_not_an_observer(self) -> None:
        assert not isinstance(object(), LogObserver)


class TestSpanSink:
    """Tests for SpanSink protocol."""

    @pytest.mark.core
    @pytest.mark.parametrize("sink_type", [StdlibSpanSink, CollectingSpanSink])
    def test_bundled_span_sinks_satisfy_protocol(self, sink_type: type) -> None:
        assert isinstance(sink_type(), SpanSink)

    @pytest.mark.core
    def test_incomplete_span_sink_is_rejected(self) -> None:
        class OnlyBegin:
            def begin(self, name: str, span_id: str, payload: str) -> None:
                pass

        assert not isinstance(OnlyBegin(), SpanSink)
