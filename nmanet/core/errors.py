"""
Error hierarchy for nmanet.

Typed exceptions let callers tell which kind of input problem aborted the
construction of a network, and which column or labels were at fault,
without parsing message strings.

Hierarchy:
    NetworkDataError                (base, subclass of ValueError)
    ├── MissingInputError           (required column role not bound / absent)
    ├── InvalidValueError           (type, range, integrality, positivity)
    ├── AmbiguousOutcomeError       (zero or several outcome types matched)
    └── StructuralError             (reference, classes, studies, baselines,
                                     outcome combinations)

Non-fatal conditions are reported with ``warnings.warn`` using the
``NetworkAdvisory`` category.
"""

from __future__ import annotations
from typing import Any, Dict, Optional, Sequence


class NetworkDataError(ValueError):
    """Base exception for all network construction errors."""

    def __init__(self, message: str, *, column: Optional[str] = None,
                 labels: Optional[Sequence[Any]] = None):
        self.column = column
        self.labels = list(labels) if labels is not None else []
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation of the error."""
        d = {
            "error_type": type(self).__name__,
            "message": str(self),
        }
        if self.column:
            d["column"] = self.column
        if self.labels:
            d["labels"] = [str(label) for label in self.labels]
        return d


class MissingInputError(NetworkDataError):
    """A mandatory column role was not bound, or names an absent column."""
    pass


class InvalidValueError(NetworkDataError):
    """Values violate a type, range, integrality or positivity constraint."""
    pass


class AmbiguousOutcomeError(NetworkDataError):
    """The supplied outcome columns match zero or several outcome types."""
    pass


class StructuralError(NetworkDataError):
    """The data are well-typed but do not form a coherent network."""
    pass


class NetworkAdvisory(UserWarning):
    """Non-fatal notice that some downstream features will be unavailable."""
    pass
