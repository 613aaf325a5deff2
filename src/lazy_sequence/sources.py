"""Ready-made producers."""

from typing import Any, Iterable, Iterator

from .producer import BaseProducer, GeneratorProducer, producer


@producer
def naturals(start: int = 0) -> Iterator[int]:
    """Infinite counting sequence starting at ``start``."""
    current = start
    while True:
        yield current
        current += 1


def _delegate(iterable: Iterable) -> Iterator:
    # yield from forwards close and inject to a wrapped generator
    return (yield from iterable)


def from_iterable(iterable: Iterable[Any]) -> BaseProducer:
    """
    Wrap any Python iterable as a controllable producer.

    Producers are returned unchanged. Generators keep their own cleanup and
    error handling, since close and inject are delegated to them.

    Args:
        iterable: Source of items

    Returns:
        A controllable, self-iterating producer
    """
    if isinstance(iterable, BaseProducer):
        return iterable
    return GeneratorProducer(_delegate(iter(iterable)), name=type(iterable).__name__)
