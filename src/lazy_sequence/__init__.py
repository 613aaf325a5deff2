"""Lazy sequences - pull-based producers with closable combinator chains."""

__version__ = "0.1.0"

from .combinators import Combinator, Filter, Skip, Take, Transform, for_each, reduce, to_list
from .exceptions import ComputationError, IllegalStateError, InjectedError, LazySequenceError
from .models import ProducerState, StepResult
from .producer import BaseProducer, GeneratorProducer, ProducerAdapter, as_controllable, producer
from .protocols import ControllableProducer, LoggerProtocol, Producer, SelfIterating
from .sources import from_iterable, naturals

__all__ = [
    # Models
    "StepResult",
    "ProducerState",
    # Exceptions
    "LazySequenceError",
    "ComputationError",
    "InjectedError",
    "IllegalStateError",
    # Protocols
    "Producer",
    "ControllableProducer",
    "SelfIterating",
    "LoggerProtocol",
    # Producers
    "BaseProducer",
    "GeneratorProducer",
    "ProducerAdapter",
    "producer",
    "as_controllable",
    # Combinators
    "Combinator",
    "Skip",
    "Transform",
    "Take",
    "Filter",
    "for_each",
    "to_list",
    "reduce",
    # Sources
    "naturals",
    "from_iterable",
]
