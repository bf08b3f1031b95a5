"""Core data structures for nmanet."""

from nmanet.core.network import Network
from nmanet.core.outcomes import Outcome, OutcomeType
from nmanet.core.errors import (
    NetworkDataError,
    MissingInputError,
    InvalidValueError,
    AmbiguousOutcomeError,
    StructuralError,
    NetworkAdvisory,
)

__all__ = [
    "Network",
    "Outcome",
    "OutcomeType",
    "NetworkDataError",
    "MissingInputError",
    "InvalidValueError",
    "AmbiguousOutcomeError",
    "StructuralError",
    "NetworkAdvisory",
]
