"""BDD step definitions for logger and console features."""

from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from chroniclepy.adapters.console import ConsoleBuffer
from chroniclepy.adapters.sinks import CollectingSink
from chroniclepy.core.models import LogRecord, Severity, Tag
from chroniclepy.core.observers import ObserverToken
from chroniclepy.core.options import OutputOptions
from chroniclepy.logger import Logger


@dataclass
class FacadeScenarioContext:
    """Shared state between steps in a logger scenario."""

    sink: CollectingSink = field(default_factory=CollectingSink)
    logger: Logger | None = None
    records: list[LogRecord] = field(default_factory=list)
    token: ObserverToken | None = None
    evaluations: int = 0
    console: ConsoleBuffer | None = None

    @property
    def active_logger(self) -> Logger:
        assert self.logger is not None, "no logger configured"
        return self.logger

    @property
    def active_console(self) -> ConsoleBuffer:
        assert self.console is not None, "no console configured"
        return self.console


def _split(text: str) -> list[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


@pytest.fixture
def ctx() -> FacadeScenarioContext:
    """Fresh scenario context for each test."""
    return FacadeScenarioContext()


# === Background Steps ===
@given(parsers.parse('a logger for subsystem "{subsystem}" without source metadata'))
def step_logger(ctx: FacadeScenarioContext, subsystem: str) -> None:
    ctx.logger = Logger(subsystem, sink=ctx.sink, options=OutputOptions(show_source=False))


@given("an observer collecting records")
def step_collecting_observer(ctx: FacadeScenarioContext) -> None:
    ctx.token = ctx.active_logger.add_observer(ctx.records.append)


@given("an observer that raises")
def step_raising_observer(ctx: FacadeScenarioContext) -> None:
    def explode(record: LogRecord) -> None:
        raise RuntimeError("observer failure")

    ctx.active_logger.add_observer(explode)


@given(parsers.parse("a console of capacity {capacity:d}"))
def step_console(ctx: FacadeScenarioContext, capacity: int) -> None:
    ctx.console = ConsoleBuffer(capacity)
    ctx.console.attach(ctx.active_logger)


@given(parsers.parse('the allowed levels are "{levels}"'))
def step_allowed_levels(ctx: FacadeScenarioContext, levels: str) -> None:
    ctx.active_logger.set_allowed_levels(Severity.parse(name) for name in _split(levels))


@given("the allowed levels are reset to empty")
def step_reset_levels(ctx: FacadeScenarioContext) -> None:
    ctx.active_logger.set_allowed_levels(set())


# === Emit Steps ===
@when(parsers.parse('"{message}" is emitted at {level} with tag "{tag}" and metadata {key}={value:d}'))
def step_emit_tagged(
    ctx: FacadeScenarioContext, message: str, level: str, tag: str, key: str, value: int
) -> None:
    ctx.active_logger.emit(message, Severity.parse(level), [Tag(tag)], {key: value})


@when(parsers.parse('"{message}" is emitted at {level:w}'))
def step_emit(ctx: FacadeScenarioContext, message: str, level: str) -> None:
    ctx.active_logger.emit(message, Severity.parse(level))


@when(parsers.parse("a counted message is emitted at {level}"))
def step_emit_counted(ctx: FacadeScenarioContext, level: str) -> None:
    def message() -> str:
        ctx.evaluations += 1
        return "counted"

    ctx.active_logger.emit(message, Severity.parse(level))


@when(parsers.parse('the messages "{messages}" are emitted at {level}'))
def step_emit_many(ctx: FacadeScenarioContext, messages: str, level: str) -> None:
    for message in _split(messages):
        ctx.active_logger.emit(message, Severity.parse(level))


@when("the observer is removed twice")
def step_remove_twice(ctx: FacadeScenarioContext) -> None:
    assert ctx.token is not None
    assert ctx.active_logger.remove_observer(ctx.token) is True
    assert ctx.active_logger.remove_observer(ctx.token) is False


# === Console Steps ===
@when(parsers.parse("the console capacity is set to {capacity:d}"))
def step_set_capacity(ctx: FacadeScenarioContext, capacity: int) -> None:
    ctx.active_console.set_capacity(capacity)


@when("the console is cleared")
def step_clear_console(ctx: FacadeScenarioContext) -> None:
    ctx.active_console.clear()


# === Assertions ===
@then(parsers.parse("the sink line is '{line}'"))
def step_sink_line(ctx: FacadeScenarioContext, line: str) -> None:
    assert [written for written, _ in ctx.sink.lines] == [line]


@then(parsers.re(r"the sink received (?P<count>\d+) lines?"), converters={"count": int})
def step_sink_count(ctx: FacadeScenarioContext, count: int) -> None:
    assert len(ctx.sink.lines) == count


@then(parsers.re(r"the observer received (?P<count>\d+) records?"), converters={"count": int})
def step_observer_count(ctx: FacadeScenarioContext, count: int) -> None:
    assert len(ctx.records) == count


@then(parsers.re(r"the message was evaluated (?P<count>\d+) times?"), converters={"count": int})
def step_evaluations(ctx: FacadeScenarioContext, count: int) -> None:
    assert ctx.evaluations == count


@then(parsers.parse('the console holds "{messages}"'))
def step_console_holds(ctx: FacadeScenarioContext, messages: str) -> None:
    assert [record.message for record in ctx.active_console.snapshot()] == _split(messages)


@then("the console is empty")
def step_console_empty(ctx: FacadeScenarioContext) -> None:
    assert len(ctx.active_console) == 0


@then(parsers.parse("the console capacity is {capacity:d}"))
def step_console_capacity(ctx: FacadeScenarioContext, capacity: int) -> None:
    assert ctx.active_console.capacity == capacity
