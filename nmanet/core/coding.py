"""
Study and treatment coding for nmanet.

Raw study, treatment and class labels are converted into categoricals with
a canonical level order: natural sort order of the distinct labels, with
the reference treatment (and the class containing it) moved to the front.
"""

from __future__ import annotations
from dataclasses import replace
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple
import numpy as np
import pandas as pd

from nmanet.core.errors import InvalidValueError, StructuralError
from nmanet.utils import (
    format_labels,
    format_suitable_values,
    is_scalar_label,
    natural_sort,
)

if TYPE_CHECKING:
    from nmanet.core.network import Network


# Reserved column names in network tables
STUDY = ".study"
TRT = ".trt"
TRTCLASS = ".trtclass"


def as_labels(values: Any) -> List[str]:
    """Convert raw labels of any atomic type to strings."""
    return [str(v) for v in values]


def nfactor(values: Any) -> pd.Categorical:
    """
    Code labels as a categorical with levels in natural sort order.

    Args:
        values: Raw labels

    Returns:
        Categorical of string labels, levels ordered "T1", "T2", "T10"
    """
    labels = as_labels(values)
    return pd.Categorical(labels, categories=natural_sort(labels))


def relevel(cat: pd.Categorical, ref: str) -> pd.Categorical:
    """Move one level to the front, keeping the order of the others."""
    levels = list(cat.categories)
    if not levels or levels[0] == ref:
        return cat
    return cat.reorder_categories([ref] + [lvl for lvl in levels if lvl != ref])


def unique_levels(cat: pd.Categorical) -> pd.Categorical:
    """Categorical holding each level once, in level order."""
    return pd.Categorical(list(cat.categories), categories=cat.categories)


def check_trt_ref(trt_ref: Any, levels: Sequence[str], where: str = "data") -> str:
    """
    Check an explicit reference treatment against the observed levels.

    Args:
        trt_ref: Requested reference treatment label
        levels: Treatment levels available
        where: Description of where the levels come from, for messages

    Returns:
        The reference treatment as a string label
    """
    if not is_scalar_label(trt_ref):
        raise InvalidValueError("`trt_ref` must be length 1.", column="trt_ref")
    ref = str(trt_ref)
    if ref not in list(levels):
        raise StructuralError(
            f"`trt_ref` does not match a treatment in the {where}.\n"
            f"Suitable values are: {format_suitable_values(levels)}",
            column="trt_ref",
            labels=[ref],
        )
    return ref


def check_trt_class(trt_class: Any, trt: Any) -> None:
    """
    Check that every treatment belongs to exactly one class.

    Args:
        trt_class: Class label per row
        trt: Treatment label per row

    Raises:
        StructuralError: Naming the treatments found in more than one class
    """
    if pd.isna(pd.Series(trt, dtype=object)).any():
        raise InvalidValueError("`trt` cannot contain missing values", column="trt")
    if pd.isna(pd.Series(trt_class, dtype=object)).any():
        raise InvalidValueError("`trt_class` cannot contain missing values", column="trt_class")

    pairs = pd.DataFrame({
        "trt": as_labels(trt),
        "trt_class": as_labels(trt_class),
    }).drop_duplicates()
    dup = pairs.loc[pairs["trt"].duplicated(), "trt"].unique()
    if len(dup) > 0:
        dup = natural_sort(dup)
        raise StructuralError(
            "Treatment present in more than one class (check `trt` and `trt_class`): "
            f"{format_labels(dup)}",
            column="trt_class",
            labels=dup,
        )


def code_classes(
    trt: pd.Categorical,
    trt_class: Any,
) -> Tuple[pd.Categorical, pd.Categorical]:
    """
    Code treatment classes against coded treatments.

    The class containing the first treatment level becomes the first class
    level; other classes keep natural sort order.

    Args:
        trt: Coded treatments, one per row
        trt_class: Class label per row

    Returns:
        Tuple of (class per row, class per treatment level)
    """
    class_col = nfactor(trt_class)
    lookup = (
        pd.DataFrame({"trt": trt.codes, "trt_class": np.asarray(class_col, dtype=object)})
        .drop_duplicates()
        .sort_values("trt", kind="stable")
    )
    class_ref = lookup["trt_class"].iloc[0]
    class_col = relevel(class_col, class_ref)
    classes = pd.Categorical(list(lookup["trt_class"]), categories=class_col.categories)
    return class_col, classes


# ============================================================================
# Default Reference Treatment
# ============================================================================

def arm_table(tables: Sequence[Optional[pd.DataFrame]]) -> pd.DataFrame:
    """
    Distinct (study, treatment) arms across network tables.

    Args:
        tables: Network tables, None for absent ones

    Returns:
        DataFrame with string columns ``study`` and ``trt``
    """
    frames = [
        pd.DataFrame({
            "study": np.asarray(t[STUDY], dtype=object),
            "trt": np.asarray(t[TRT], dtype=object),
        })
        for t in tables if t is not None and len(t) > 0
    ]
    if not frames:
        return pd.DataFrame({"study": [], "trt": []}, dtype=object)
    return pd.concat(frames, ignore_index=True).drop_duplicates(ignore_index=True)


def get_default_trt_ref(
    tables: Sequence[Optional[pd.DataFrame]],
    levels: Sequence[str],
) -> Optional[str]:
    """
    Choose the best-connected treatment as the network reference.

    Treatments are ranked by the number of direct comparisons they take
    part in (one per pair of arms within a study), then by the smallest
    total number of arms in the studies they appear in, then by level
    order.

    Args:
        tables: Network tables, None for absent ones
        levels: Treatment levels in their current order

    Returns:
        The chosen reference label, or None if there are no arms
    """
    arms = arm_table(tables)
    if arms.empty:
        return None

    arms["n_arms"] = arms.groupby("study")["trt"].transform("size")
    ranks = arms.groupby("trt").agg(
        n_connect=("n_arms", lambda a: int(np.sum(a - 1))),
        n_arms=("n_arms", "sum"),
    )
    order = {lvl: i for i, lvl in enumerate(levels)}
    ranks["order"] = [order[t] for t in ranks.index]
    ranks = ranks.sort_values(
        ["n_connect", "n_arms", "order"],
        ascending=[False, True, True],
        kind="stable",
    )
    return ranks.index[0]


def apply_default_trt_ref(network: Network) -> Network:
    """
    Relevel a network to its default reference treatment.

    Treatment levels, the treatment column of every table and, when
    present, the class levels and class columns are releveled together.
    The result is flagged as carrying a default reference.

    Args:
        network: Network whose reference was not chosen explicitly

    Returns:
        New Network with the derived reference first
    """
    levels = list(network.treatments.categories)
    trt_ref = get_default_trt_ref(network.tables(), levels)
    if trt_ref is None:
        return network

    ref_pos = levels.index(trt_ref)
    trt_sort = [ref_pos] + [i for i in range(len(levels)) if i != ref_pos]

    changes = {"treatments": unique_levels(relevel(network.treatments, trt_ref))}
    class_ref = None
    if network.classes is not None:
        class_ref = network.classes[ref_pos]
        classes = relevel(network.classes, class_ref)
        changes["classes"] = classes.take(trt_sort)

    for name in ("individual_data", "arm_data", "contrast_data"):
        table = getattr(network, name)
        if table is None:
            continue
        table = table.copy()
        table[TRT] = relevel(table[TRT].array, trt_ref)
        if class_ref is not None:
            table[TRTCLASS] = relevel(table[TRTCLASS].array, class_ref)
        changes[name] = table

    return replace(network, default_reference=True, **changes)
