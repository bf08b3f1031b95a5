"""
Outcome types and outcome validation for nmanet.

This module decides which kind of outcome a data source supplies from the
set of outcome columns that were bound, and checks the supplied values
before they enter a network.

Outcome types:
    - continuous: mean outcome ``y`` (with standard error ``se`` for AgD)
    - binary: 0/1 outcome ``r`` (individual data only)
    - count: event count ``r`` out of denominator ``n`` (arm-based AgD)
    - rate: event count ``r`` over time at risk ``E``
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import numpy as np
import pandas as pd

from nmanet.core.errors import (
    AmbiguousOutcomeError,
    InvalidValueError,
    MissingInputError,
    StructuralError,
)
from nmanet.utils import is_integer_valued, is_numeric


class OutcomeType(Enum):
    """Types of outcome a data source can supply."""

    CONTINUOUS = "continuous"
    BINARY = "binary"
    COUNT = "count"
    RATE = "rate"

    @classmethod
    def from_string(cls, s: str) -> OutcomeType:
        """Convert string to OutcomeType enum."""
        s_lower = s.lower().strip()
        aliases = {
            "normal": "continuous",
            "bernoulli": "binary",
            "binomial": "count",
            "poisson": "rate",
        }
        s_lower = aliases.get(s_lower, s_lower)
        for member in cls:
            if member.value == s_lower or member.name.lower() == s_lower:
                return member
        raise ValueError(f"Unknown outcome type: {s}")

    def __str__(self) -> str:
        return self.value


def _as_outcome_type(value: Optional[Union[str, OutcomeType]]) -> Optional[OutcomeType]:
    if value is None or isinstance(value, OutcomeType):
        return value
    return OutcomeType.from_string(value)


@dataclass
class Outcome:
    """
    Outcome type supplied by each kind of data source in a network.

    Attributes:
        individual: Outcome type of the individual patient data, if any
        arm: Outcome type of the arm-based aggregate data, if any
        contrast: Outcome type of the contrast-based aggregate data, if any
    """

    individual: Optional[OutcomeType] = None
    arm: Optional[OutcomeType] = None
    contrast: Optional[OutcomeType] = None

    def __post_init__(self):
        """Convert string inputs to enums."""
        self.individual = _as_outcome_type(self.individual)
        self.arm = _as_outcome_type(self.arm)
        self.contrast = _as_outcome_type(self.contrast)

    def present(self) -> Dict[str, OutcomeType]:
        """Slots that hold an outcome type."""
        return {k: v for k, v in self.to_dict(as_enum=True).items() if v is not None}

    def to_dict(self, as_enum: bool = False) -> Dict[str, Any]:
        """Convert to dictionary."""
        d = {"arm": self.arm, "contrast": self.contrast, "individual": self.individual}
        if as_enum:
            return d
        return {k: (v.value if v is not None else None) for k, v in d.items()}


# Slot descriptions used in messages
_SLOT_NAMES = {
    "arm": "arm-based AgD",
    "contrast": "contrast-based AgD",
    "individual": "IPD",
}

# Outcome types that can share one likelihood once linked through relative
# effects. None marks an absent data source.
VALID_OUTCOME_COMBINATIONS: List[Dict[str, set]] = [
    {
        "arm": {OutcomeType.COUNT, OutcomeType.BINARY, None},
        "contrast": {OutcomeType.CONTINUOUS, None},
        "individual": {OutcomeType.BINARY, None},
    },
    {
        "arm": {OutcomeType.RATE, None},
        "contrast": {OutcomeType.CONTINUOUS, None},
        "individual": {OutcomeType.RATE, None},
    },
    {
        "arm": {OutcomeType.CONTINUOUS, None},
        "contrast": {OutcomeType.CONTINUOUS, None},
        "individual": {OutcomeType.CONTINUOUS, None},
    },
]


# ============================================================================
# Outcome Classification
# ============================================================================

def get_outcome_type(
    y: Any = None,
    se: Any = None,
    r: Any = None,
    n: Any = None,
    E: Any = None,
) -> OutcomeType:
    """
    Determine the outcome type from the outcome columns supplied.

    Exactly one pattern must match: ``y`` gives continuous, ``r`` with ``E``
    gives rate, ``r`` with ``n`` gives count, ``r`` alone gives binary.
    Unbound columns are passed as None.

    Args:
        y: Continuous outcome values
        se: Standard errors (not used for classification)
        r: Event counts or binary outcomes
        n: Binomial denominators
        E: Time at risk

    Returns:
        The single matching OutcomeType

    Raises:
        AmbiguousOutcomeError: If no pattern or several patterns match
    """
    matched = []
    if y is not None:
        matched.append(OutcomeType.CONTINUOUS)
    if r is not None:
        if E is not None:
            matched.append(OutcomeType.RATE)
        if n is not None:
            matched.append(OutcomeType.COUNT)
        if n is None and E is None:
            matched.append(OutcomeType.BINARY)

    if not matched:
        raise AmbiguousOutcomeError("Please specify one and only one outcome.")
    if len(matched) > 1:
        names = [m.value for m in matched]
        raise AmbiguousOutcomeError(
            "Please specify one and only one outcome, instead of "
            f"{', '.join(names[:-1])} and {names[-1]}."
        )
    return matched[0]


# ============================================================================
# Field-Level Validation
# ============================================================================

def _check_numeric(values: Any, label: str, column: str, context: str) -> np.ndarray:
    if not is_numeric(values):
        raise InvalidValueError(f"{label} must be numeric{context}", column=column)
    arr = np.asarray(values, dtype=np.float64)
    if np.isnan(arr).any():
        raise InvalidValueError(f"{label} contains missing values{context}", column=column)
    return arr


def check_standard_error(se: Any, context: str = "") -> np.ndarray:
    """
    Check standard errors are numeric, present, finite and positive.

    Args:
        se: Standard error values
        context: Text appended to error messages

    Returns:
        Standard errors as a float array
    """
    arr = _check_numeric(se, "Standard error `se`", "se", context)
    if np.isinf(arr).any():
        raise InvalidValueError(f"Standard error `se` cannot be infinite{context}", column="se")
    if (arr <= 0).any():
        raise InvalidValueError(f"Standard errors must be positive{context}", column="se")
    return arr


def check_outcome_continuous(
    y: Any,
    se: Any = None,
    with_se: bool = True,
    context: str = "",
) -> None:
    """
    Check continuous outcome columns.

    Args:
        y: Continuous outcome values, or None if unbound
        se: Standard errors, or None if unbound
        with_se: Whether this source requires a standard error with ``y``
        context: Text appended to error messages
    """
    if with_se:
        if y is not None and se is not None:
            _check_numeric(y, "Continuous outcome `y`", "y", context)
            check_standard_error(se, context)
        elif y is not None:
            raise MissingInputError(
                f"Specify standard error `se` for continuous outcome `y`{context}", column="se"
            )
        elif se is not None:
            raise MissingInputError(f"Specify continuous outcome `y`{context}", column="y")
    elif y is not None:
        _check_numeric(y, "Continuous outcome `y`", "y", context)


def check_outcome_count(r: Any, n: Any, E: Any) -> None:
    """
    Check arm-based count or rate outcome columns.

    Args:
        r: Event counts, or None if unbound
        n: Binomial denominators, or None if unbound
        E: Time at risk, or None if unbound
    """
    if n is not None:
        n_arr = _check_numeric(n, "Denominator `n`", "n", "")
        if not is_integer_valued(n_arr).all():
            raise InvalidValueError("Denominator `n` must be integer-valued", column="n")
        if (n_arr <= 0).any():
            raise InvalidValueError("Denominator `n` must be greater than zero", column="n")
        if r is None:
            raise MissingInputError("Specify outcome count `r`.", column="r")

    if E is not None:
        E_arr = _check_numeric(E, "Time at risk `E`", "E", "")
        if (E_arr <= 0).any():
            raise InvalidValueError("Time at risk `E` must be positive", column="E")
        if r is None:
            raise MissingInputError("Specify outcome count `r`.", column="r")

    if r is not None:
        if n is None and E is None:
            raise MissingInputError(
                "Specify denominator `n` (count outcome) or time at risk `E` (rate outcome)"
            )
        r_arr = _check_numeric(r, "Outcome count `r`", "r", "")
        if not is_integer_valued(r_arr).all():
            raise InvalidValueError("Outcome count `r` must be integer-valued", column="r")
        if n is not None and ((r_arr < 0) | (r_arr > n_arr)).any():
            raise InvalidValueError("Count outcome `r` must be between 0 and `n`", column="r")
        if E is not None and (r_arr < 0).any():
            raise InvalidValueError("Rate outcome count `r` must be non-negative", column="r")


def check_outcome_binary(r: Any, E: Any) -> None:
    """
    Check individual-level binary or rate outcome columns.

    Args:
        r: Binary outcomes or event counts, or None if unbound
        E: Time at risk, or None if unbound
    """
    if E is not None:
        if r is None:
            raise MissingInputError("Specify count `r` for rate outcome", column="r")
        E_arr = _check_numeric(E, "Time at risk `E`", "E", "")
        if (E_arr <= 0).any():
            raise InvalidValueError("Time at risk `E` must be positive", column="E")
        r_arr = _check_numeric(r, "Rate outcome count `r`", "r", "")
        if not is_integer_valued(r_arr).all() or (r_arr < 0).any():
            raise InvalidValueError(
                "Rate outcome count `r` must be non-negative integer", column="r"
            )
    elif r is not None:
        r_arr = _check_numeric(r, "Binary outcome `r`", "r", "")
        if not np.isin(r_arr, [0, 1]).all():
            raise InvalidValueError("Binary outcome `r` must equal 0 or 1", column="r")


def check_sample_size(sample_size: Any) -> None:
    """Check sample sizes are positive whole numbers."""
    if not is_numeric(sample_size):
        raise InvalidValueError("Sample size `sample_size` must be numeric", column="sample_size")
    arr = np.asarray(sample_size, dtype=np.float64)
    if np.isnan(arr).any():
        raise InvalidValueError(
            "Sample size `sample_size` contains missing values", column="sample_size"
        )
    if np.isinf(arr).any():
        raise InvalidValueError("Sample size `sample_size` cannot be infinite", column="sample_size")
    if not is_integer_valued(arr).all():
        raise InvalidValueError(
            "Sample size `sample_size` must be integer-valued", column="sample_size"
        )
    if (arr <= 0).any():
        raise InvalidValueError(
            "Sample size `sample_size` must be greater than zero", column="sample_size"
        )


# ============================================================================
# Cross-Source Compatibility
# ============================================================================

def check_outcome_combination(outcome: Outcome) -> None:
    """
    Check that the outcome types of combined data sources are compatible.

    Args:
        outcome: Outcome record of the combined network

    Raises:
        StructuralError: If no valid combination contains the outcome types
    """
    slots = outcome.to_dict(as_enum=True)
    for valid in VALID_OUTCOME_COMBINATIONS:
        if all(slots[k] in valid[k] for k in valid):
            return

    present = [f"{_SLOT_NAMES[k]} {v.value}" for k, v in outcome.present().items()]
    if len(present) > 1:
        described = f"{', '.join(present[:-1])} and {present[-1]}"
    else:
        described = present[0]
    raise StructuralError(f"Combining {described} outcomes is not supported.")
