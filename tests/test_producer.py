"""Tests for producer module."""

import logging

import pytest

from lazy_sequence.exceptions import ComputationError, IllegalStateError, InjectedError
from lazy_sequence.models import ProducerState, StepResult
from lazy_sequence.producer import GeneratorProducer, ProducerAdapter, as_controllable, producer


@producer
def guarded_naturals(log):
    """Naturals that record when their cleanup runs."""
    current = 0
    try:
        while True:
            yield current
            current += 1
    finally:
        log.append("closed")


@producer
def answer():
    yield 1
    return 42


@producer
def nothing():
    return "empty"
    yield


@producer
def resilient():
    while True:
        try:
            yield "data"
        except InjectedError as error:
            yield f"recovered: {error.message}"


class Counter:
    """Plain producer without close or inject support."""

    def __init__(self):
        self.current = 0

    def pull(self):
        value = self.current
        self.current += 1
        return StepResult.item(value)


class OneShot:
    """Plain producer that counts how often it is pulled."""

    def __init__(self):
        self.calls = 0

    def pull(self):
        self.calls += 1
        return StepResult.final(42)


def test_first_pull_suspends():
    """Test that the first pull yields a value and suspends."""
    gen = guarded_naturals([])
    assert gen.state is ProducerState.START

    assert gen.pull() == StepResult(done=False, value=0)
    assert gen.state is ProducerState.SUSPENDED
    assert gen.pull() == StepResult(done=False, value=1)


def test_completion_is_idempotent():
    """Test that the final result is frozen once reported."""
    gen = answer()

    assert gen.pull() == StepResult.item(1)
    final = gen.pull()

    assert final == StepResult.final(42)
    assert gen.state is ProducerState.COMPLETED
    assert gen.pull() is final
    assert gen.pull() is final


def test_empty_body_completes_on_first_pull():
    """Test a body that returns without yielding."""
    gen = nothing()

    assert gen.pull() == StepResult.final("empty")
    assert gen.completed


def test_close_runs_cleanup():
    """Test that close runs the body's finally block before returning."""
    log = []
    gen = guarded_naturals(log)
    gen.pull()
    gen.pull()

    result = gen.close(3)

    assert result == StepResult.final(3)
    assert log == ["closed"]
    assert gen.pull() is result


def test_close_on_completed_returns_frozen_result():
    """Test that closing a finished producer ignores the new value."""
    gen = answer()
    gen.pull()
    gen.pull()

    assert gen.close(3) == StepResult.final(42)


def test_close_twice_runs_cleanup_once():
    """Test that cleanup never runs twice."""
    log = []
    gen = guarded_naturals(log)
    gen.pull()

    first = gen.close("a")
    second = gen.close("b")

    assert second is first
    assert log == ["closed"]


def test_close_before_start_skips_body():
    """Test that closing a fresh producer never enters its body."""
    log = []
    gen = guarded_naturals(log)

    assert gen.close("early") == StepResult.final("early")
    assert log == []
    assert gen.pull() == StepResult.final("early")


def test_close_rejects_yield_during_cleanup():
    """Test that a body yielding from its finally block is an error."""

    @producer
    def stubborn():
        try:
            yield 1
        finally:
            yield 2

    gen = stubborn()
    gen.pull()

    with pytest.raises(IllegalStateError, match="yielded a value while being closed"):
        gen.close()

    assert gen.completed


def test_cleanup_failure_propagates():
    """Test that an error raised during cleanup reaches the caller."""

    @producer
    def broken_cleanup():
        try:
            yield 1
        finally:
            raise ComputationError("cleanup failed")

    gen = broken_cleanup()
    gen.pull()

    with pytest.raises(ComputationError, match="cleanup failed"):
        gen.close("ignored")

    assert gen.pull() == StepResult.final()


def test_computation_error_propagates_from_pull():
    """Test that a failing body completes the producer."""

    @producer
    def failing():
        yield 1
        raise ComputationError("boom")

    gen = failing()
    gen.pull()

    with pytest.raises(ComputationError, match="boom"):
        gen.pull()

    assert gen.state is ProducerState.COMPLETED
    assert gen.pull() == StepResult.final()


def test_inject_handled_by_body():
    """Test that a body catching an injected error can keep yielding."""
    gen = resilient()
    assert gen.pull() == StepResult.item("data")

    result = gen.inject(InjectedError("disk full"))

    assert result == StepResult.item("recovered: disk full")
    assert gen.state is ProducerState.SUSPENDED
    assert gen.pull() == StepResult.item("data")


def test_inject_uncaught_propagates():
    """Test that an unhandled injected error completes the producer."""
    log = []
    gen = guarded_naturals(log)
    gen.pull()
    error = InjectedError("Boom!")

    with pytest.raises(InjectedError) as exc_info:
        gen.inject(error)

    assert exc_info.value is error
    assert gen.state is ProducerState.COMPLETED
    assert log == ["closed"]
    assert gen.pull() == StepResult.final()


def test_inject_body_returns():
    """Test that a body may finish in response to an injected error."""

    @producer
    def stops_on_error():
        try:
            yield 1
        except InjectedError:
            return "stopped"

    gen = stops_on_error()
    gen.pull()

    assert gen.inject(InjectedError("stop")) == StepResult.final("stopped")
    assert gen.completed


def test_inject_before_start_raises():
    """Test that injecting into a fresh producer fails without entering the body."""
    log = []
    gen = guarded_naturals(log)
    error = InjectedError("too early")

    with pytest.raises(IllegalStateError, match="before it has started") as exc_info:
        gen.inject(error)

    assert exc_info.value.__cause__ is error
    assert log == []
    assert gen.completed


def test_inject_after_completion_raises():
    """Test that injecting into a finished producer fails."""
    gen = answer()
    gen.pull()
    gen.pull()

    with pytest.raises(IllegalStateError, match="completed"):
        gen.inject(InjectedError("late"))


def test_inject_requires_exception_instance():
    """Test that inject rejects non-exceptions."""
    gen = answer()
    gen.pull()

    with pytest.raises(TypeError, match="exception instance"):
        gen.inject("not an error")


def test_reentrant_pull_rejected():
    """Test that pulling a producer from inside its own body fails."""
    holder = {}

    @producer
    def reentrant():
        yield holder["self"].pull()

    gen = reentrant()
    holder["self"] = gen

    with pytest.raises(IllegalStateError, match="while it is running"):
        gen.pull()

    assert gen.completed


def test_producer_is_its_own_iterator():
    """Test the self-iteration capability."""
    gen = answer()

    assert iter(gen) is gen
    assert as_controllable(gen) is gen
    assert list(gen) == [1]


def test_next_reports_final_value():
    """Test that StopIteration carries the final value."""
    gen = answer()
    assert next(gen) == 1

    with pytest.raises(StopIteration) as exc_info:
        next(gen)

    assert exc_info.value.value == 42


def test_with_block_closes_after_break():
    """Test that leaving a with block closes the producer."""
    log = []

    with guarded_naturals(log) as gen:
        for n in gen:
            if n == 2:
                break

    assert log == ["closed"]
    assert gen.completed


def test_close_is_logged(caplog):
    """Test that state transitions are logged at debug level."""
    caplog.set_level(logging.DEBUG, logger="lazy_sequence.producer")
    gen = guarded_naturals([])
    gen.pull()

    gen.close()

    assert "Closing guarded_naturals" in caplog.text


def test_custom_logger_is_used():
    """Test that an injected logger receives the messages."""
    messages = []

    class ListLogger:
        def debug(self, message):
            messages.append(message)

        info = warning = error = debug

    gen = GeneratorProducer((n for n in range(3)), name="numbers", logger=ListLogger())
    gen.pull()
    gen.close()

    assert messages == ["Closing numbers"]


def test_name_and_repr():
    """Test producer naming."""
    gen = answer()

    assert gen.name == "answer"
    assert "state=start" in repr(gen)


def test_producer_decorator_requires_generator_function():
    """Test that @producer rejects plain functions."""
    with pytest.raises(TypeError, match="generator function"):

        @producer
        def not_a_generator():
            return 1


def test_generator_producer_requires_generator():
    """Test that GeneratorProducer rejects other iterables."""
    with pytest.raises(TypeError, match="expects a generator"):
        GeneratorProducer([1, 2, 3])


def test_plain_producer_needs_adapter():
    """Test that a plain producer is not iterable by itself."""
    with pytest.raises(TypeError, match="ProducerAdapter"):
        as_controllable(Counter())


def test_as_controllable_rejects_other_objects():
    """Test the capability lookup on unrelated objects."""
    with pytest.raises(TypeError, match="not a producer"):
        as_controllable(42)


def test_adapter_pulls_and_closes():
    """Test that the adapter drives a plain producer and runs on_close."""
    released = []
    adapter = ProducerAdapter(Counter(), on_close=lambda: released.append(True))

    assert adapter.pull() == StepResult.item(0)
    assert adapter.pull() == StepResult.item(1)
    assert adapter.close("stop") == StepResult.final("stop")
    assert released == [True]
    assert adapter.name == "Counter"


def test_adapter_close_before_pull_skips_cleanup():
    """Test that on_close only runs after the source was pulled."""
    released = []
    adapter = ProducerAdapter(Counter(), on_close=lambda: released.append(True))

    adapter.close()

    assert released == []
    assert adapter.completed


def test_adapter_inject_propagates():
    """Test that a plain producer cannot handle injected errors."""
    adapter = ProducerAdapter(Counter())
    adapter.pull()

    with pytest.raises(InjectedError):
        adapter.inject(InjectedError("no handler"))

    assert adapter.completed


def test_adapter_freezes_final_result():
    """Test that the adapter stops pulling its source after completion."""
    source = OneShot()
    adapter = ProducerAdapter(source)

    final = adapter.pull()

    assert adapter.pull() is final
    assert source.calls == 1


def test_adapter_rejects_bad_step():
    """Test that a source must return StepResult instances."""

    class Broken:
        def pull(self):
            return 5

    adapter = ProducerAdapter(Broken())

    with pytest.raises(TypeError, match="expected StepResult"):
        adapter.pull()


def test_adapter_requires_producer():
    """Test that the adapter validates its source."""
    with pytest.raises(TypeError, match="does not implement pull"):
        ProducerAdapter(object())


class Finite:
    """Plain producer that yields one item and then finishes."""

    def __init__(self):
        self.done = False

    def pull(self):
        if self.done:
            return StepResult.final("end")
        self.done = True
        return StepResult.item(1)


def test_adapter_cleanup_runs_on_exhaustion():
    """Test that on_close runs once when the source finishes by itself."""
    released = []
    adapter = ProducerAdapter(Finite(), on_close=lambda: released.append(1))

    assert adapter.to_list() == [1]
    adapter.close()

    assert released == [1]


def test_adapter_cleanup_runs_on_uncaught_inject():
    """Test that on_close runs when an injected error ends the adapter."""
    released = []
    adapter = ProducerAdapter(Counter(), on_close=lambda: released.append(1))
    adapter.pull()

    with pytest.raises(InjectedError):
        adapter.inject(InjectedError("x"))
    adapter.close()

    assert released == [1]


def test_adapter_cleanup_runs_on_source_failure():
    """Test that on_close runs when the source's pull raises."""

    class Failing:
        def pull(self):
            raise ComputationError("source broke")

    released = []
    adapter = ProducerAdapter(Failing(), on_close=lambda: released.append(1))

    with pytest.raises(ComputationError, match="source broke"):
        adapter.pull()
    adapter.close()

    assert released == [1]


def test_with_block_keeps_original_error_when_close_fails():
    """Test that a failing cleanup does not hide the error leaving the block."""

    @producer
    def broken_cleanup():
        try:
            yield 1
        finally:
            raise ComputationError("cleanup failed")

    with pytest.raises(KeyError):
        with broken_cleanup() as gen:
            gen.pull()
            raise KeyError("original")

    assert gen.completed


def test_with_block_reports_close_failure_without_error():
    """Test that a failing cleanup propagates when the block exits normally."""

    @producer
    def broken_cleanup():
        try:
            yield 1
        finally:
            raise ComputationError("cleanup failed")

    with pytest.raises(ComputationError, match="cleanup failed"):
        with broken_cleanup() as gen:
            gen.pull()
