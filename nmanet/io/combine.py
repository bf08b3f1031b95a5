"""
Combining data sources into one network.

Networks built from individual patient data, arm-based and contrast-based
aggregate data are joined into a single network: treatment, study and
class codes are placed in one shared code space, and the outcome types of
the sources are checked for compatibility.
"""

from __future__ import annotations
from typing import Any, List, Optional
import warnings
import numpy as np
import pandas as pd

from nmanet.core.coding import (
    STUDY,
    TRT,
    TRTCLASS,
    apply_default_trt_ref,
    check_trt_class,
    check_trt_ref,
)
from nmanet.core.errors import NetworkAdvisory, StructuralError
from nmanet.core.network import Network
from nmanet.core.outcomes import Outcome, check_outcome_combination
from nmanet.utils import format_labels, natural_sort


_SLOTS = ("individual_data", "arm_data", "contrast_data")
_OUTCOME_SLOTS = {
    "individual_data": ("individual", "IPD"),
    "arm_data": ("arm", "AgD (arm-based)"),
    "contrast_data": ("contrast", "AgD (contrast-based)"),
}


def _combine_classes(sources: List[Network], trts: List[str]) -> Optional[pd.Categorical]:
    """
    Combine treatment classes across sources.

    Returns:
        Class of each treatment in ``trts`` order, with the class of the
        first treatment as the first level, or None when classes are
        dropped or absent
    """
    with_data = [s for s in sources if not s.is_empty]
    has_classes = [s.classes is not None for s in with_data]

    if not with_data or not any(has_classes):
        return None
    if not all(has_classes):
        warnings.warn(
            "Not all data sources have defined treatment classes. "
            "Removing treatment class information.",
            NetworkAdvisory,
            stacklevel=3,
        )
        return None

    lookup = pd.DataFrame({
        "trt": np.concatenate([np.asarray(s.treatments, dtype=object) for s in with_data]),
        "trt_class": np.concatenate([np.asarray(s.classes, dtype=object) for s in with_data]),
    }).drop_duplicates()
    check_trt_class(lookup["trt_class"], lookup["trt"])

    order = {t: i for i, t in enumerate(trts)}
    lookup = lookup.sort_values("trt", key=lambda col: col.map(order), kind="stable")

    class_ref = lookup["trt_class"].iloc[0]
    class_lvls = natural_sort(lookup["trt_class"])
    class_lvls = [class_ref] + [c for c in class_lvls if c != class_ref]
    return pd.Categorical(list(lookup["trt_class"]), categories=class_lvls)


def _check_studies(sources: List[Network]) -> None:
    """Check that no study label appears in more than one source."""
    all_studs = pd.Series(
        [s for src in sources if src.studies is not None for s in src.studies],
        dtype=object,
    )
    dup = list(all_studs[all_studs.duplicated()].unique())
    if dup:
        dup = natural_sort(dup)
        raise StructuralError(
            f"Studies with same label found in multiple data sources: {format_labels(dup)}",
            column="study",
            labels=dup,
        )


def _combine_tables(
    sources: List[Network],
    slot: str,
    trts: List[str],
    studs: List[str],
    classes: Optional[pd.Categorical],
) -> Optional[pd.DataFrame]:
    """Expand each source's codes to the shared levels and stack the tables."""
    tables = []
    for src in sources:
        table = getattr(src, slot)
        if table is None:
            continue
        table = table.copy()
        table[TRT] = table[TRT].cat.set_categories(trts)
        table[STUDY] = table[STUDY].cat.set_categories(studs)
        if classes is not None:
            table[TRTCLASS] = table[TRTCLASS].cat.set_categories(classes.categories)
        elif TRTCLASS in table.columns:
            table = table.drop(columns=TRTCLASS)
        tables.append(table)

    if not tables:
        return None
    return pd.concat(tables, ignore_index=True)


def _combine_outcomes(sources: List[Network]) -> Outcome:
    """Reconcile the outcome type of each kind of data across sources."""
    combined = {}
    for slot in _SLOTS:
        name, label = _OUTCOME_SLOTS[slot]
        types = []
        for src in sources:
            otype = getattr(src.outcome, name)
            if otype is not None and otype not in types:
                types.append(otype)
        if len(types) > 1:
            raise StructuralError(
                f"Multiple outcome types present in {label}: "
                f"{format_labels(t.value for t in types)}."
            )
        combined[name] = types[0] if types else None

    outcome = Outcome(**combined)
    check_outcome_combination(outcome)
    return outcome


def combine_networks(*networks: Network, trt_ref: Optional[Any] = None) -> Network:
    """
    Combine multiple data sources into one network.

    Args:
        *networks: Networks created with the ``network_from_*`` builders
        trt_ref: Reference treatment for the whole network; by default the
            best-connected treatment is chosen

    Returns:
        The combined Network

    Raises:
        TypeError: If any argument is not a Network
        StructuralError: If the sources cannot be combined
    """
    if not networks:
        raise TypeError("Expecting at least one Network to combine")
    if not all(isinstance(s, Network) for s in networks):
        raise TypeError(
            "Expecting to combine objects of class `Network`, created using "
            "the network_from_* functions"
        )
    sources = list(networks)

    # Treatment code space
    trts = natural_sort(
        t for s in sources if s.treatments is not None for t in s.treatments
    )
    if trt_ref is not None:
        trt_ref = check_trt_ref(trt_ref, trts, where="network")
        trts = [trt_ref] + [t for t in trts if t != trt_ref]

    classes = _combine_classes(sources, trts)

    _check_studies(sources)
    studs = natural_sort(
        s for src in sources if src.studies is not None for s in src.studies
    )

    tables = {
        slot: _combine_tables(sources, slot, trts, studs, classes)
        for slot in _SLOTS
    }
    outcome = _combine_outcomes(sources)

    if all(t is None for t in tables.values()):
        return Network.empty()

    network = Network(
        treatments=pd.Categorical(trts, categories=trts),
        classes=classes,
        studies=pd.Categorical(studs, categories=studs),
        outcome=outcome,
        **tables,
    )

    if trt_ref is None:
        network = apply_default_trt_ref(network)
    return network
