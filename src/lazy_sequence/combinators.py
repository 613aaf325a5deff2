"""Lazy combinators over controllable producers."""

import logging
from typing import Any, Callable, List, Optional

from .models import StepResult
from .producer import _NO_INITIAL, BaseProducer, as_controllable
from .protocols import LoggerProtocol

logger = logging.getLogger(__name__)


def _validate_count(count: int, operator: str) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise TypeError(f"{operator}() count must be an integer, got {type(count).__name__}")
    if count < 0:
        raise ValueError(f"{operator}() count must be non-negative, got {count}")
    return count


def _validate_callable(func: Any, operator: str) -> Callable:
    if not callable(func):
        raise TypeError(f"{operator}() expects a callable, got {type(func).__name__}")
    return func


class Combinator(BaseProducer):
    """
    A producer that wraps exactly one upstream producer.

    Single Responsibility: Own operator state and forward control upstream.

    Closing the node closes its upstream first. An injected error is
    forwarded upstream; if the upstream recovers with a new step, the node
    handles it like a pulled one via ``_accept``.

    A producer can be wrapped by one node only; wrapping it again raises
    IllegalStateError.
    """

    def __init__(
        self,
        upstream: Any,
        name: str,
        logger: Optional[LoggerProtocol] = None,
    ):
        """
        Initialize combinator node.

        Args:
            upstream: Controllable, self-iterating producer to wrap
            name: Operator label
            logger: Logger instance
        """
        self._upstream = as_controllable(upstream)
        super().__init__(name, logger)
        if isinstance(self._upstream, BaseProducer):
            self._upstream._claim(self)

    @property
    def upstream(self) -> BaseProducer:
        return self._upstream

    def _advance(self) -> StepResult:
        return self._accept(self._upstream.pull())

    def _deliver(self, error: BaseException) -> StepResult:
        return self._accept(self._upstream.inject(error))

    def _release(self) -> None:
        self._upstream.close()

    def _accept(self, step: StepResult) -> StepResult:
        """Handle a step obtained from upstream."""
        return step


class Skip(Combinator):
    """Discards the first ``count`` items, then passes everything through."""

    def __init__(self, upstream: Any, count: int, logger: Optional[LoggerProtocol] = None):
        self._remaining = _validate_count(count, "skip")
        super().__init__(upstream, f"skip({count})", logger)

    def _advance(self) -> StepResult:
        while self._remaining > 0:
            step = self._upstream.pull()
            if step.done:
                return step
            self._remaining -= 1
        return self._upstream.pull()


class Transform(Combinator):
    """Maps every item through a function; final results pass unchanged."""

    def __init__(
        self,
        upstream: Any,
        func: Callable[[Any], Any],
        logger: Optional[LoggerProtocol] = None,
    ):
        self._func = _validate_callable(func, "transform")
        super().__init__(upstream, f"transform({getattr(func, '__name__', 'func')})", logger)

    def _accept(self, step: StepResult) -> StepResult:
        if step.done:
            return step
        try:
            mapped = self._func(step.value)
        except BaseException:
            self._upstream.close()
            raise
        return StepResult.item(mapped)


class Take(Combinator):
    """
    Passes through at most ``count`` items.

    Once the quota is used up, the next pull closes upstream without pulling
    it and completes with a final value of None.
    """

    def __init__(self, upstream: Any, count: int, logger: Optional[LoggerProtocol] = None):
        self._remaining = _validate_count(count, "take")
        super().__init__(upstream, f"take({count})", logger)

    @property
    def remaining(self) -> int:
        return self._remaining

    def _advance(self) -> StepResult:
        if self._remaining == 0:
            return self._truncate()
        return self._accept(self._upstream.pull())

    def _accept(self, step: StepResult) -> StepResult:
        if step.done:
            return step
        # reachable through inject when the upstream recovers after the quota
        if self._remaining == 0:
            return self._truncate()
        self._remaining -= 1
        return step

    def _truncate(self) -> StepResult:
        self._logger.debug(f"{self.name} exhausted, closing {self._upstream.name}")
        self._upstream.close()
        return StepResult.final()


class Filter(Combinator):
    """Passes through only the items matching a predicate."""

    def __init__(
        self,
        upstream: Any,
        predicate: Callable[[Any], bool],
        logger: Optional[LoggerProtocol] = None,
    ):
        self._predicate = _validate_callable(predicate, "filter")
        super().__init__(upstream, f"filter({getattr(predicate, '__name__', 'predicate')})", logger)

    def _accept(self, step: StepResult) -> StepResult:
        while not step.done:
            try:
                matched = self._predicate(step.value)
            except BaseException:
                self._upstream.close()
                raise
            if matched:
                return step
            step = self._upstream.pull()
        return step


# ----------------------------------------------------------------------
# Terminal operations
# ----------------------------------------------------------------------


def for_each(source: Any, func: Callable[[Any], Any]) -> None:
    """
    Drive the pull loop, calling ``func`` on every item.

    If ``func`` raises, the chain is closed before the error propagates.

    Args:
        source: Head of a producer chain
        func: Callback invoked once per item
    """
    _validate_callable(func, "for_each")
    head = as_controllable(source)
    count = 0
    while True:
        step = head.pull()
        if step.done:
            logger.debug(f"for_each over {head.name} finished after {count} items")
            return None
        try:
            func(step.value)
        except BaseException:
            head.close()
            raise
        count += 1


def to_list(source: Any) -> List[Any]:
    """
    Collect every remaining item of ``source`` into a list.

    Args:
        source: Head of a producer chain

    Returns:
        List of items in production order
    """
    items: List[Any] = []
    for_each(source, items.append)
    return items


def reduce(source: Any, func: Callable[[Any, Any], Any], initial: Any = _NO_INITIAL) -> Any:
    """
    Fold the items of ``source`` from left to right.

    Args:
        source: Head of a producer chain
        func: Two-argument accumulator function
        initial: Starting value; defaults to the first item

    Returns:
        The accumulated value

    Raises:
        TypeError: If ``source`` is empty and no initial value was given
    """
    _validate_callable(func, "reduce")
    head = as_controllable(source)
    accumulator = initial
    if accumulator is _NO_INITIAL:
        first = head.pull()
        if first.done:
            raise TypeError("reduce() of empty sequence with no initial value")
        accumulator = first.value

    def fold(value: Any) -> None:
        nonlocal accumulator
        accumulator = func(accumulator, value)

    for_each(head, fold)
    return accumulator
