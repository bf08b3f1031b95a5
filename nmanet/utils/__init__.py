"""
Utility functions for nmanet.

This module provides label ordering, formatting and small numeric
checks used throughout the nmanet package.
"""

from __future__ import annotations
from typing import Any, Iterable, List, Sequence, Tuple
import re
import numpy as np
import pandas as pd


# ============================================================================
# Natural Sorting
# ============================================================================

_DIGITS = re.compile(r"(\d+)")


def natural_key(label: Any) -> Tuple:
    """
    Sort key giving numeric-aware ordering of labels.

    Runs of digits compare as integers, so "T2" sorts before "T10".
    Digit runs sort before text, and text compares case-insensitively
    with the original string as the final tie-break.

    Args:
        label: Any label; compared through its string form

    Returns:
        Tuple usable as a sort key
    """
    text = str(label)
    parts = []
    for chunk in _DIGITS.split(text):
        if not chunk:
            continue
        if chunk.isdigit():
            parts.append((0, int(chunk), ""))
        else:
            parts.append((1, 0, chunk.casefold()))
    return tuple(parts), text


def natural_sort(labels: Iterable[Any]) -> List[Any]:
    """Sort the distinct labels in natural order."""
    return sorted(pd.unique(np.asarray(list(labels), dtype=object)), key=natural_key)


# ============================================================================
# Validation Utilities
# ============================================================================

def is_scalar_label(value: Any) -> bool:
    """Check that a value is a single label rather than a collection."""
    return np.ndim(value) == 0 and not isinstance(value, (dict, set))


def is_numeric(values: Any) -> bool:
    """Check that a column holds numeric (non-boolean) values."""
    arr = pd.Series(values)
    return pd.api.types.is_numeric_dtype(arr) and not pd.api.types.is_bool_dtype(arr)


def is_integer_valued(values: Any) -> np.ndarray:
    """Elementwise check that finite values have no fractional part."""
    arr = np.asarray(values, dtype=np.float64)
    with np.errstate(invalid="ignore"):
        return np.isfinite(arr) & (arr == np.trunc(arr))


# ============================================================================
# Formatting Utilities
# ============================================================================

def format_labels(labels: Iterable[Any]) -> str:
    """Format labels as a comma separated list."""
    return ", ".join(str(label) for label in labels)


def format_suitable_values(levels: Sequence[Any], limit: int = 5) -> str:
    """
    Format the valid alternatives for an unmatched label.

    At most ``limit`` levels are shown, followed by ``...`` when the
    list is longer.

    Args:
        levels: Valid levels, in order
        limit: Maximum number of levels to show

    Returns:
        Formatted string
    """
    levels = list(levels)
    if len(levels) <= limit:
        return format_labels(levels)
    return format_labels(levels[:limit]) + ", ..."
