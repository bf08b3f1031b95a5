"""
Network container for nmanet.

A Network holds the normalized data of an evidence network together with
its treatment, study and class coding, ready to be handed to a model
fitting engine. Networks are created by the builders in ``nmanet.io`` and
combined with ``combine_networks``; they are not modified afterwards.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Dict, List, Optional
import numpy as np
import pandas as pd
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components

from nmanet.core.coding import STUDY, TRT, arm_table
from nmanet.core.outcomes import Outcome


SAMPLE_SIZE = ".sample_size"


def _categorical_equal(a: Optional[pd.Categorical], b: Optional[pd.Categorical]) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return (
        list(a.categories) == list(b.categories)
        and list(np.asarray(a, dtype=object)) == list(np.asarray(b, dtype=object))
    )


def _table_equal(a: Optional[pd.DataFrame], b: Optional[pd.DataFrame]) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return a.equals(b)


@dataclass(eq=False)
class Network:
    """
    Evidence network of studies comparing treatments.

    Attributes:
        individual_data: Individual patient data, one row per patient
        arm_data: Arm-based aggregate data, one row per study arm
        contrast_data: Contrast-based aggregate data, one row per study arm,
            with the baseline arm of each study marked by a missing ``.y``
        treatments: Treatment levels; the first is the network reference
        classes: Class of each treatment, aligned to ``treatments``
        studies: Study levels in natural sort order
        outcome: Outcome type supplied by each kind of data
        default_reference: True when the reference treatment was derived
            rather than chosen by the caller
    """

    individual_data: Optional[pd.DataFrame] = None
    arm_data: Optional[pd.DataFrame] = None
    contrast_data: Optional[pd.DataFrame] = None
    treatments: Optional[pd.Categorical] = None
    classes: Optional[pd.Categorical] = None
    studies: Optional[pd.Categorical] = None
    outcome: Outcome = field(default_factory=Outcome)
    default_reference: bool = False

    def __post_init__(self):
        """Treat zero-row tables as absent."""
        for name in ("individual_data", "arm_data", "contrast_data"):
            table = getattr(self, name)
            if table is not None and len(table) == 0:
                setattr(self, name, None)

    @classmethod
    def empty(cls) -> Network:
        """The empty network, holding no data."""
        return cls()

    def tables(self) -> List[Optional[pd.DataFrame]]:
        """Individual, arm-based and contrast-based tables, None when absent."""
        return [self.individual_data, self.arm_data, self.contrast_data]

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        """Whether the network holds no data at all."""
        return all(t is None for t in self.tables())

    @property
    def has_ipd(self) -> bool:
        return self.individual_data is not None

    @property
    def has_agd_arm(self) -> bool:
        return self.arm_data is not None

    @property
    def has_agd_contrast(self) -> bool:
        return self.contrast_data is not None

    @property
    def has_agd_sample_size(self) -> bool:
        """Whether every aggregate data table carries sample sizes."""
        arm_ok = not self.has_agd_arm or SAMPLE_SIZE in self.arm_data.columns
        contrast_ok = not self.has_agd_contrast or SAMPLE_SIZE in self.contrast_data.columns
        return arm_ok and contrast_ok

    # ------------------------------------------------------------------
    # Counts and lookups
    # ------------------------------------------------------------------

    @property
    def n_treatments(self) -> int:
        return 0 if self.treatments is None else len(self.treatments)

    @property
    def n_studies(self) -> int:
        return 0 if self.studies is None else len(self.studies)

    @property
    def n_classes(self) -> int:
        return 0 if self.classes is None else len(self.classes.categories)

    @property
    def trt_ref(self) -> Optional[str]:
        """The network reference treatment."""
        if self.n_treatments == 0:
            return None
        return self.treatments[0]

    def class_lookup(self) -> Dict[str, str]:
        """Map each treatment to its class."""
        if self.classes is None:
            return {}
        return dict(zip(self.treatments, self.classes))

    def edges(self) -> pd.DataFrame:
        """
        Direct comparisons in the network.

        Returns:
            DataFrame with one row per pair of treatments compared within
            at least one study: ``trt1``, ``trt2`` (in treatment level
            order), ``n_studies`` and the list of ``studies``
        """
        columns = ["trt1", "trt2", "n_studies", "studies"]
        arms = arm_table(self.tables())
        if arms.empty:
            return pd.DataFrame(columns=columns)

        order = {lvl: i for i, lvl in enumerate(self.treatments)}
        pairs: Dict[tuple, List[str]] = {}
        study_order = {lvl: i for i, lvl in enumerate(self.studies)}
        by_study = sorted(
            arms.groupby("study", sort=False)["trt"],
            key=lambda kv: study_order[kv[0]],
        )
        for study, study_trts in by_study:
            trts = sorted(study_trts, key=order.get)
            for pair in combinations(trts, 2):
                pairs.setdefault(pair, []).append(study)

        records = [
            {"trt1": t1, "trt2": t2, "n_studies": len(studs), "studies": studs}
            for (t1, t2), studs in sorted(
                pairs.items(), key=lambda kv: (order[kv[0][0]], order[kv[0][1]])
            )
        ]
        return pd.DataFrame(records, columns=columns)

    def is_connected(self) -> bool:
        """Whether every treatment is linked to every other by some path."""
        if self.n_treatments == 0:
            return False
        index = {lvl: i for i, lvl in enumerate(self.treatments)}
        edges = self.edges()
        rows = [index[t] for t in edges["trt1"]]
        cols = [index[t] for t in edges["trt2"]]
        adjacency = coo_matrix(
            (np.ones(len(rows)), (rows, cols)),
            shape=(self.n_treatments, self.n_treatments),
        )
        n_components, _ = connected_components(adjacency, directed=False)
        return n_components == 1

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def summary(self) -> Dict[str, Any]:
        """
        Compute summary counts for the network.

        Returns:
            Dictionary of counts, outcome types and the reference treatment
        """
        def n_rows(table):
            return 0 if table is None else len(table)

        def n_table_studies(table):
            return 0 if table is None else int(table[STUDY].nunique())

        return {
            "n_studies": self.n_studies,
            "n_treatments": self.n_treatments,
            "n_classes": self.n_classes,
            "trt_ref": self.trt_ref,
            "default_reference": self.default_reference,
            "n_ipd_studies": n_table_studies(self.individual_data),
            "n_ipd_rows": n_rows(self.individual_data),
            "n_agd_arm_studies": n_table_studies(self.arm_data),
            "n_agd_contrast_studies": n_table_studies(self.contrast_data),
            "outcome": self.outcome.to_dict(),
            "connected": self.is_connected(),
        }

    def describe(self) -> str:
        """Generate human-readable summary."""
        if self.is_empty:
            return "Empty network"

        lines = [
            f"A network with {self.n_studies} studies and {self.n_treatments} treatments",
            "=" * 50,
        ]
        sources = [
            ("Individual patient data", self.individual_data, self.outcome.individual),
            ("Arm-based aggregate data", self.arm_data, self.outcome.arm),
            ("Contrast-based aggregate data", self.contrast_data, self.outcome.contrast),
        ]
        for label, table, otype in sources:
            if table is None:
                continue
            lines.append(f"{label} ({otype}):")
            for study, rows in table.groupby(STUDY, observed=True, sort=False):
                arms = " | ".join(str(t) for t in pd.unique(rows[TRT]))
                lines.append(f"  {study}: {arms}")
            lines.append("")

        ref_note = " (default)" if self.default_reference else ""
        lines.append(f"Reference treatment: {self.trt_ref}{ref_note}")
        if self.classes is not None:
            lines.append(f"Treatment classes: {self.n_classes}")
        if not self.is_connected():
            lines.append("Network is disconnected")
        return "\n".join(lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Network):
            return NotImplemented
        return (
            all(_table_equal(a, b) for a, b in zip(self.tables(), other.tables()))
            and _categorical_equal(self.treatments, other.treatments)
            and _categorical_equal(self.classes, other.classes)
            and _categorical_equal(self.studies, other.studies)
            and self.outcome == other.outcome
            and self.default_reference == other.default_reference
        )

    def __repr__(self) -> str:
        return (
            f"Network(n_studies={self.n_studies}, n_treatments={self.n_treatments}, "
            f"trt_ref={self.trt_ref!r}, outcome={self.outcome.to_dict()})"
        )
