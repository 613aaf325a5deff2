"""Capability definitions for producers.

``Producer`` is the bare pull contract. ``ControllableProducer`` adds forced
termination and error injection, and ``SelfIterating`` marks a producer that
is its own iteration source. The latter two are abstract base classes so that
the capability is declared explicitly and checked with ``isinstance``.
"""

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from .models import StepResult


@runtime_checkable
class Producer(Protocol):
    """Protocol for anything that can be pulled for a StepResult."""

    def pull(self) -> StepResult:
        """Produce the next step."""
        ...


class ControllableProducer(ABC):
    """Producer that can be closed early or have an error injected."""

    @abstractmethod
    def pull(self) -> StepResult:
        """Produce the next step."""

    @abstractmethod
    def close(self, value: Any = None) -> StepResult:
        """Force termination, running any pending cleanup."""

    @abstractmethod
    def inject(self, error: BaseException) -> StepResult:
        """Raise ``error`` at the current suspension point."""


class SelfIterating(ABC):
    """Marker for producers that return themselves from ``__iter__``."""

    @abstractmethod
    def __iter__(self) -> "SelfIterating":
        """Return this same instance."""

    @abstractmethod
    def __next__(self) -> Any:
        """Return the next produced item."""


class LoggerProtocol(Protocol):
    """Protocol for logging."""

    def info(self, message: str) -> None:
        """Log info message."""
        ...

    def debug(self, message: str) -> None:
        """Log debug message."""
        ...

    def warning(self, message: str) -> None:
        """Log warning message."""
        ...

    def error(self, message: str) -> None:
        """Log error message."""
        ...
