"""Data models for the pull protocol."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ProducerState(str, Enum):
    """Producer lifecycle enumeration."""

    START = "start"
    SUSPENDED = "suspended"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(frozen=True)
class StepResult(Generic[T]):
    """
    Result of a single pull.

    While ``done`` is False, ``value`` is a produced item. Once ``done`` is
    True, ``value`` is the producer's final result and the same instance is
    returned by every later pull.
    """

    done: bool
    value: Any = None

    @classmethod
    def item(cls, value: T) -> "StepResult[T]":
        """Create a result carrying a produced item."""
        return cls(done=False, value=value)

    @classmethod
    def final(cls, value: Any = None) -> "StepResult[T]":
        """Create a terminal result carrying the final value."""
        return cls(done=True, value=value)

    def to_dict(self) -> dict:
        """Convert result to dictionary."""
        return {"done": self.done, "value": self.value}
