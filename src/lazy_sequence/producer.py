"""Controllable producers and the state machine they share."""

import functools
import inspect
import logging
from abc import abstractmethod
from typing import Any, Callable, Generator, Optional

from .exceptions import IllegalStateError
from .models import ProducerState, StepResult
from .protocols import ControllableProducer, LoggerProtocol, Producer, SelfIterating

_NO_INITIAL = object()


class BaseProducer(ControllableProducer, SelfIterating):
    """
    Explicit state machine behind every controllable producer.

    Owns the START -> SUSPENDED -> COMPLETED transitions, freezes the final
    StepResult and rejects re-entrant calls. Subclasses only describe how to
    advance, how to receive an injected error and how to release resources:

    - ``_advance()``: compute the next StepResult
    - ``_deliver(error)``: raise ``error`` at the suspension point and return
      the StepResult the body produces in response
    - ``_release()``: run cleanup tied to the current suspension point

    Also implements the Python iterator protocol (returning itself) and the
    context manager protocol (closing on exit), and offers the fluent
    combinator methods.
    """

    def __init__(self, name: Optional[str] = None, logger: Optional[LoggerProtocol] = None):
        """
        Initialize producer.

        Args:
            name: Label used in log messages and errors
            logger: Logger instance (defaults to module logger)
        """
        self.name = name or type(self).__name__
        self._logger = logger or logging.getLogger(__name__)
        self._state = ProducerState.START
        self._final: Optional[StepResult] = None
        self._owner: Optional["BaseProducer"] = None

    @property
    def state(self) -> ProducerState:
        """Current lifecycle state."""
        return self._state

    @property
    def completed(self) -> bool:
        return self._state is ProducerState.COMPLETED

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} state={self._state.value}>"

    # ------------------------------------------------------------------
    # Pull protocol
    # ------------------------------------------------------------------

    def pull(self) -> StepResult:
        """
        Pull the next step.

        Returns:
            StepResult with the next item, or the frozen final result once
            the producer has completed

        Raises:
            IllegalStateError: If called while the producer is running
        """
        if self._state is ProducerState.COMPLETED:
            return self._final
        self._enter("pull")
        try:
            step = self._advance()
        except BaseException as exc:
            self._logger.debug(f"{self.name} failed during pull: {exc!r}")
            self._complete(StepResult.final())
            raise
        return self._settle(step)

    def close(self, value: Any = None) -> StepResult:
        """
        Force the producer to stop.

        Cleanup tied to the suspension point runs before the final result is
        returned. Closing a completed producer returns its frozen result.

        Args:
            value: Final value to report

        Returns:
            The final StepResult
        """
        if self._state is ProducerState.COMPLETED:
            return self._final
        self._enter("close")
        self._logger.debug(f"Closing {self.name}")
        try:
            self._release()
        except BaseException as exc:
            self._logger.warning(f"Cleanup of {self.name} failed: {exc!r}")
            self._complete(StepResult.final())
            raise
        return self._complete(StepResult.final(value))

    def inject(self, error: BaseException) -> StepResult:
        """
        Raise ``error`` at the producer's current suspension point.

        Args:
            error: Exception instance to deliver

        Returns:
            The StepResult produced if the body handles the error

        Raises:
            IllegalStateError: If the producer was never pulled or has completed
            TypeError: If ``error`` is not an exception instance
        """
        if not isinstance(error, BaseException):
            raise TypeError(f"inject() expects an exception instance, got {type(error).__name__}")
        if self._state is ProducerState.COMPLETED:
            raise IllegalStateError(f"Cannot inject into completed producer {self.name}")
        if self._state is ProducerState.START:
            self._enter("inject")
            try:
                self._release()
            finally:
                self._complete(StepResult.final())
            raise IllegalStateError(
                f"Cannot inject into {self.name} before it has started",
                suggestion="pull at least once before injecting",
            ) from error

        self._enter("inject")
        self._logger.debug(f"Injecting {error!r} into {self.name}")
        try:
            step = self._deliver(error)
        except BaseException:
            self._complete(StepResult.final())
            raise
        return self._settle(step)

    # ------------------------------------------------------------------
    # State bookkeeping
    # ------------------------------------------------------------------

    def _enter(self, operation: str) -> None:
        if self._state is ProducerState.RUNNING:
            raise IllegalStateError(
                f"Cannot {operation} {self.name} while it is running",
                suggestion="calls on a producer must be strictly sequential",
            )
        self._state = ProducerState.RUNNING

    def _settle(self, step: StepResult) -> StepResult:
        if step.done:
            return self._complete(step)
        self._state = ProducerState.SUSPENDED
        return step

    def _complete(self, final: StepResult) -> StepResult:
        self._final = final
        self._state = ProducerState.COMPLETED
        return final

    @abstractmethod
    def _advance(self) -> StepResult:
        """Compute the next step."""

    @abstractmethod
    def _deliver(self, error: BaseException) -> StepResult:
        """Raise ``error`` at the suspension point."""

    @abstractmethod
    def _release(self) -> None:
        """Run cleanup for the current suspension point."""

    # ------------------------------------------------------------------
    # Iteration sugar
    # ------------------------------------------------------------------

    def __iter__(self) -> "BaseProducer":
        return self

    def __next__(self) -> Any:
        step = self.pull()
        if step.done:
            raise StopIteration(step.value)
        return step.value

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and close producer."""
        if exc_type is None:
            self.close()
            return
        # keep the error that is already unwinding the with block
        try:
            self.close()
        except Exception as exc:
            self._logger.error(f"Closing {self.name} failed while handling {exc_type.__name__}: {exc!r}")

    def _claim(self, owner: "BaseProducer") -> None:
        if self._owner is not None:
            raise IllegalStateError(
                f"{self.name} is already wrapped by {self._owner.name}",
                suggestion="build a separate producer for each chain",
            )
        self._owner = owner

    # ------------------------------------------------------------------
    # Combinators
    # ------------------------------------------------------------------

    def skip(self, count: int) -> "BaseProducer":
        """Discard the first ``count`` items."""
        from .combinators import Skip

        return Skip(self, count, logger=self._logger)

    drop = skip

    def transform(self, func: Callable[[Any], Any]) -> "BaseProducer":
        """Map every item through ``func``."""
        from .combinators import Transform

        return Transform(self, func, logger=self._logger)

    map = transform

    def take(self, count: int) -> "BaseProducer":
        """Stop after ``count`` items, closing this producer."""
        from .combinators import Take

        return Take(self, count, logger=self._logger)

    def filter(self, predicate: Callable[[Any], bool]) -> "BaseProducer":
        """Keep only items for which ``predicate`` is true."""
        from .combinators import Filter

        return Filter(self, predicate, logger=self._logger)

    def for_each(self, func: Callable[[Any], Any]) -> None:
        """Call ``func`` on every item until the producer completes."""
        from .combinators import for_each

        return for_each(self, func)

    def to_list(self) -> list:
        """Collect every remaining item into a list."""
        from .combinators import to_list

        return to_list(self)

    def reduce(self, func: Callable[[Any, Any], Any], initial: Any = _NO_INITIAL) -> Any:
        """Fold the remaining items with ``func``."""
        from .combinators import reduce

        if initial is _NO_INITIAL:
            return reduce(self, func)
        return reduce(self, func, initial)


class GeneratorProducer(BaseProducer):
    """
    Producer whose body is a Python generator.

    The generator is the two-way channel: values come out through ``next``,
    injected errors go in through ``throw`` and close goes in as
    ``GeneratorExit``, so ``finally`` blocks and ``with`` scopes around a
    ``yield`` run on close.
    """

    def __init__(
        self,
        body: Generator,
        name: Optional[str] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        if not inspect.isgenerator(body):
            raise TypeError(f"GeneratorProducer expects a generator, got {type(body).__name__}")
        super().__init__(name or body.__name__, logger)
        self._body = body

    def _advance(self) -> StepResult:
        try:
            return StepResult.item(next(self._body))
        except StopIteration as stop:
            return StepResult.final(stop.value)

    def _deliver(self, error: BaseException) -> StepResult:
        try:
            return StepResult.item(self._body.throw(error))
        except StopIteration as stop:
            return StepResult.final(stop.value)

    def _release(self) -> None:
        try:
            self._body.throw(GeneratorExit())
        except (GeneratorExit, StopIteration):
            return
        raise IllegalStateError(
            f"{self.name} yielded a value while being closed",
            suggestion="do not yield from a finally block",
        )


def producer(func: Callable[..., Generator]) -> Callable[..., GeneratorProducer]:
    """
    Turn a generator function into a factory of GeneratorProducers.

    Args:
        func: Generator function providing the producer body

    Returns:
        Callable with the same signature returning a GeneratorProducer
    """
    if not inspect.isgeneratorfunction(func):
        raise TypeError(f"@producer expects a generator function, got {func!r}")

    @functools.wraps(func)
    def factory(*args, **kwargs) -> GeneratorProducer:
        return GeneratorProducer(func(*args, **kwargs), name=func.__name__)

    return factory


class ProducerAdapter(BaseProducer):
    """
    Adapts a plain Producer into a controllable, self-iterating one.

    A plain producer has no suspension point of its own, so an injected
    error is raised straight back to the caller. Cleanup is the optional
    ``on_close`` callback. It runs at most once, and only if the source was
    pulled, on whichever ending comes first: exhaustion, a failing source,
    an uncaught injected error or an explicit close.
    """

    def __init__(
        self,
        source: Producer,
        on_close: Optional[Callable[[], Any]] = None,
        name: Optional[str] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        """
        Initialize adapter.

        Args:
            source: Object with a ``pull()`` method returning StepResult
            on_close: Cleanup callback invoked when the adapter is closed
            name: Label used in log messages and errors
            logger: Logger instance
        """
        if not isinstance(source, Producer):
            raise TypeError(f"{type(source).__name__} does not implement pull()")
        if on_close is not None and not callable(on_close):
            raise TypeError("on_close must be callable")
        super().__init__(name or type(source).__name__, logger)
        self._source = source
        self._on_close = on_close
        self._pulled = False
        self._released = False

    def _advance(self) -> StepResult:
        self._pulled = True
        try:
            step = self._source.pull()
            if not isinstance(step, StepResult):
                raise TypeError(
                    f"{self.name}.pull() returned {type(step).__name__}, expected StepResult"
                )
        except BaseException:
            self._release()
            raise
        if step.done:
            self._release()
        return step

    def _deliver(self, error: BaseException) -> StepResult:
        self._release()
        raise error

    def _release(self) -> None:
        if not self._pulled or self._released:
            return
        self._released = True
        if self._on_close is not None:
            self._on_close()


def as_controllable(source: Any) -> BaseProducer:
    """
    Look up the self-iteration capability of ``source``.

    Args:
        source: Candidate producer

    Returns:
        The same producer instance

    Raises:
        TypeError: If ``source`` is a plain Producer or not a producer at all
    """
    if isinstance(source, ControllableProducer) and isinstance(source, SelfIterating):
        return iter(source)
    if isinstance(source, Producer):
        raise TypeError(
            f"{type(source).__name__} is a plain producer; wrap it in ProducerAdapter first"
        )
    raise TypeError(f"{type(source).__name__} is not a producer")
