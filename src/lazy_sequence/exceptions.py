"""Exception hierarchy for lazy_sequence."""

from typing import Optional


class LazySequenceError(Exception):
    """Base exception for all lazy_sequence errors.

    Carries an optional suggestion that is appended to the message.
    """

    def __init__(self, message: str, suggestion: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message} ({self.suggestion})"
        return self.message


class ComputationError(LazySequenceError):
    """A producer body failed while computing its next value."""

    pass


class InjectedError(LazySequenceError):
    """Error delivered into a producer at its suspension point."""

    pass


class IllegalStateError(LazySequenceError):
    """Operation is not valid for the producer's current state."""

    pass
