"""
Network builders for nmanet.

This module provides functions for turning a pandas DataFrame of study
data into a Network. There is one builder per kind of data source:

    - ``network_from_ipd``: individual patient data, one row per patient
    - ``network_from_agd_arm``: arm-based aggregate data, one row per arm
    - ``network_from_agd_contrast``: contrast-based aggregate data, one row
      per arm with relative effects against a baseline arm in each study

Several networks can then be joined with ``combine_networks``.

Example:
    >>> import pandas as pd
    >>> from nmanet import network_from_agd_arm
    >>>
    >>> df = pd.DataFrame({
    ...     "studyc": ["S1", "S1", "S2", "S2"],
    ...     "trtc": ["A", "B", "A", "B"],
    ...     "r": [5, 8, 3, 4],
    ...     "n": [20, 22, 15, 14],
    ... })
    >>> net = network_from_agd_arm(df, study="studyc", trt="trtc", r="r", n="n")
    >>> print(net.describe())
"""

from __future__ import annotations
from typing import Any, Dict, Hashable, Optional, Tuple
import warnings
import numpy as np
import pandas as pd

from nmanet.core.coding import (
    STUDY,
    TRT,
    TRTCLASS,
    apply_default_trt_ref,
    as_labels,
    check_trt_class,
    check_trt_ref,
    code_classes,
    nfactor,
    relevel,
    unique_levels,
)
from nmanet.core.errors import InvalidValueError, NetworkAdvisory, StructuralError
from nmanet.core.network import SAMPLE_SIZE, Network
from nmanet.core.outcomes import (
    Outcome,
    OutcomeType,
    check_outcome_binary,
    check_outcome_continuous,
    check_outcome_count,
    check_sample_size,
    check_standard_error,
    get_outcome_type,
)
from nmanet.io.schema import (
    AGD_ARM_ROLES,
    AGD_CONTRAST_ROLES,
    IPD_ROLES,
    ColumnRoles,
)
from nmanet.utils import format_labels, is_scalar_label


def _check_data(data: Any) -> None:
    if not isinstance(data, pd.DataFrame):
        raise TypeError("Argument `data` should be a pandas DataFrame")


def _pull_labels(
    data: pd.DataFrame,
    roles: ColumnRoles,
    trt_ref: Any,
) -> Tuple[pd.Series, pd.Series, Optional[pd.Series]]:
    """Pull and check study, treatment and class columns."""
    study = roles.pull(data, "study")
    if study.isna().any():
        raise InvalidValueError("`study` cannot contain missing values", column="study")

    trt = roles.pull(data, "trt")
    if trt.isna().any():
        raise InvalidValueError("`trt` cannot contain missing values", column="trt")

    trt_class = roles.pull(data, "trt_class")
    if trt_class is not None:
        check_trt_class(trt_class, trt)

    if trt_ref is not None and not is_scalar_label(trt_ref):
        raise InvalidValueError("`trt_ref` must be length 1.", column="trt_ref")

    return study, trt, trt_class


def _build_table(
    data: pd.DataFrame,
    roles: ColumnRoles,
    study: pd.Series,
    trt: pd.Series,
    trt_class: Optional[pd.Series],
    trt_ref: Any,
    outcome_cols: Dict[str, Any],
) -> Tuple[pd.DataFrame, Optional[pd.Categorical]]:
    """
    Assemble a network table in the standard format.

    The coded study, treatment and class columns come first, then the
    outcome columns, then every other column of ``data``.

    Returns:
        Tuple of (table, class per treatment level or None)
    """
    d = pd.DataFrame({
        STUDY: nfactor(study),
        TRT: nfactor(trt),
    })

    if trt_ref is not None:
        trt_ref = check_trt_ref(trt_ref, d[TRT].cat.categories)
        d[TRT] = relevel(d[TRT].array, trt_ref)

    classes = None
    if trt_class is not None:
        class_col, classes = code_classes(d[TRT].array, trt_class)
        d[TRTCLASS] = class_col

    for name, values in outcome_cols.items():
        if values is not None:
            d[name] = np.asarray(values)

    rest = data.drop(columns=roles.source_columns(["study", "trt", "trt_class"]))
    d = pd.concat([d, rest], axis=1)
    return d, classes


def _finish(
    table: pd.DataFrame,
    classes: Optional[pd.Categorical],
    slot: str,
    outcome: Outcome,
    trt_ref: Any,
) -> Network:
    """Produce the network and derive a default reference if needed."""
    network = Network(
        treatments=unique_levels(table[TRT].array),
        classes=classes,
        studies=unique_levels(table[STUDY].array),
        outcome=outcome,
        **{slot: table},
    )
    if trt_ref is None:
        network = apply_default_trt_ref(network)
    return network


def _sample_size_advisory(builder: str) -> None:
    warnings.warn(
        "Optional argument `sample_size` not provided, some features may not be "
        f"available (see help({builder})).",
        NetworkAdvisory,
        stacklevel=3,
    )


def network_from_ipd(
    data: pd.DataFrame,
    study: Optional[Hashable] = None,
    trt: Optional[Hashable] = None,
    y: Optional[Hashable] = None,
    r: Optional[Hashable] = None,
    E: Optional[Hashable] = None,
    trt_ref: Optional[Any] = None,
    trt_class: Optional[Hashable] = None,
) -> Network:
    """
    Set up a network of individual patient data (IPD).

    Args:
        data: DataFrame with one row per patient
        study: Column of study labels
        trt: Column of treatment labels
        y: Column of a continuous outcome
        r: Column of a binary outcome, or of event counts with ``E``
        E: Column of time at risk, for rate outcomes
        trt_ref: Reference treatment; by default the best-connected
            treatment is chosen
        trt_class: Column of treatment classes

    Returns:
        Network holding ``individual_data``

    Raises:
        TypeError: If ``data`` is not a DataFrame
        NetworkDataError: If the data do not form a valid network
    """
    _check_data(data)
    if len(data) == 0:
        return Network.empty()

    roles = ColumnRoles(study=study, trt=trt, trt_class=trt_class, y=y, r=r, E=E)
    roles.validate(data, IPD_ROLES)
    data = data.reset_index(drop=True)

    study_col, trt_col, class_col = _pull_labels(data, roles, trt_ref)

    y_col = roles.pull(data, "y")
    r_col = roles.pull(data, "r")
    E_col = roles.pull(data, "E")

    check_outcome_continuous(y_col, with_se=False)
    check_outcome_binary(r_col, E_col)
    o_type = get_outcome_type(y=y_col, r=r_col, E=E_col)

    if o_type == OutcomeType.CONTINUOUS:
        outcome_cols = {".y": y_col}
    elif o_type == OutcomeType.BINARY:
        outcome_cols = {".r": r_col}
    else:
        outcome_cols = {".r": r_col, ".E": E_col}

    table, classes = _build_table(
        data, roles, study_col, trt_col, class_col, trt_ref, outcome_cols
    )
    return _finish(table, classes, "individual_data", Outcome(individual=o_type), trt_ref)


def network_from_agd_arm(
    data: pd.DataFrame,
    study: Optional[Hashable] = None,
    trt: Optional[Hashable] = None,
    y: Optional[Hashable] = None,
    se: Optional[Hashable] = None,
    r: Optional[Hashable] = None,
    n: Optional[Hashable] = None,
    E: Optional[Hashable] = None,
    sample_size: Optional[Hashable] = None,
    trt_ref: Optional[Any] = None,
    trt_class: Optional[Hashable] = None,
) -> Network:
    """
    Set up a network of arm-based aggregate data (AgD).

    If a count outcome is given and ``sample_size`` is omitted, the
    denominator ``n`` is used as the sample size.

    Args:
        data: DataFrame with one row per study arm
        study: Column of study labels
        trt: Column of treatment labels
        y: Column of mean outcomes, with ``se``
        se: Column of standard errors of ``y``
        r: Column of event counts, with ``n`` or ``E``
        n: Column of Binomial denominators
        E: Column of time at risk
        sample_size: Column of arm sample sizes
        trt_ref: Reference treatment; by default the best-connected
            treatment is chosen
        trt_class: Column of treatment classes

    Returns:
        Network holding ``arm_data``
    """
    _check_data(data)
    if len(data) == 0:
        return Network.empty()

    roles = ColumnRoles(
        study=study, trt=trt, trt_class=trt_class,
        y=y, se=se, r=r, n=n, E=E, sample_size=sample_size,
    )
    roles.validate(data, AGD_ARM_ROLES)
    data = data.reset_index(drop=True)

    study_col, trt_col, class_col = _pull_labels(data, roles, trt_ref)

    y_col = roles.pull(data, "y")
    se_col = roles.pull(data, "se")
    r_col = roles.pull(data, "r")
    n_col = roles.pull(data, "n")
    E_col = roles.pull(data, "E")

    check_outcome_continuous(y_col, se_col, with_se=True)
    check_outcome_count(r_col, n_col, E_col)
    o_type = get_outcome_type(y=y_col, se=se_col, r=r_col, n=n_col, E=E_col)

    ss_col = roles.pull(data, "sample_size")
    if ss_col is not None:
        check_sample_size(ss_col)
    elif o_type == OutcomeType.COUNT:
        ss_col = n_col
    else:
        _sample_size_advisory("network_from_agd_arm")

    if o_type == OutcomeType.CONTINUOUS:
        outcome_cols = {".y": y_col, ".se": se_col}
    elif o_type == OutcomeType.COUNT:
        outcome_cols = {".r": r_col, ".n": n_col}
    else:
        outcome_cols = {".r": r_col, ".E": E_col}
    outcome_cols[SAMPLE_SIZE] = ss_col

    table, classes = _build_table(
        data, roles, study_col, trt_col, class_col, trt_ref, outcome_cols
    )
    return _finish(table, classes, "arm_data", Outcome(arm=o_type), trt_ref)


def _check_baselines(study: pd.Series, baseline: np.ndarray) -> pd.DataFrame:
    """
    Check each study has exactly one baseline arm and at least one contrast.

    Returns:
        DataFrame indexed by study label with the number of arms
        (``size``) and of baseline arms (``sum``)
    """
    counts = (
        pd.DataFrame({"study": as_labels(study), "baseline": baseline})
        .groupby("study", sort=False)["baseline"]
        .agg(["size", "sum"])
    )

    multiple = list(counts.index[counts["sum"] > 1])
    if multiple:
        raise StructuralError(
            "Multiple baseline arms (where y is missing) in a study or studies: "
            f"{format_labels(multiple)}",
            column="y",
            labels=multiple,
        )

    missing = list(counts.index[counts["sum"] == 0])
    if missing:
        raise StructuralError(
            "Study or studies without a specified baseline arm (where y is missing): "
            f"{format_labels(missing)}",
            column="y",
            labels=missing,
        )

    single = list(counts.index[counts["size"] < 2])
    if single:
        raise StructuralError(
            "Study or studies with only a baseline arm and no contrasts: "
            f"{format_labels(single)}",
            column="y",
            labels=single,
        )
    return counts


def network_from_agd_contrast(
    data: pd.DataFrame,
    study: Optional[Hashable] = None,
    trt: Optional[Hashable] = None,
    y: Optional[Hashable] = None,
    se: Optional[Hashable] = None,
    sample_size: Optional[Hashable] = None,
    trt_ref: Optional[Any] = None,
    trt_class: Optional[Hashable] = None,
) -> Network:
    """
    Set up a network of contrast-based aggregate data (AgD).

    Each study has a single baseline arm, marked by a missing ``y``,
    against which the relative effects on its other arms are given. In
    studies with three or more arms, ``se`` on the baseline row must hold
    the standard error of the mean outcome on the baseline arm; it sets
    the covariance between the relative effects.

    Rows of the same study are stored next to each other, in order of
    first appearance of each study.

    Args:
        data: DataFrame with one row per study arm
        study: Column of study labels
        trt: Column of treatment labels
        y: Column of relative effects, missing on baseline arms
        se: Column of standard errors
        sample_size: Column of arm sample sizes
        trt_ref: Reference treatment; by default the best-connected
            treatment is chosen
        trt_class: Column of treatment classes

    Returns:
        Network holding ``contrast_data``
    """
    _check_data(data)
    if len(data) == 0:
        return Network.empty()

    roles = ColumnRoles(
        study=study, trt=trt, trt_class=trt_class,
        y=y, se=se, sample_size=sample_size,
    )
    roles.validate(data, AGD_CONTRAST_ROLES)
    data = data.reset_index(drop=True)

    study_col, trt_col, class_col = _pull_labels(data, roles, trt_ref)

    y_col = roles.pull(data, "y")
    se_col = roles.pull(data, "se")

    ss_col = roles.pull(data, "sample_size")
    if ss_col is not None:
        check_sample_size(ss_col)
    else:
        _sample_size_advisory("network_from_agd_contrast")

    baseline = y_col.isna().to_numpy()
    counts = _check_baselines(study_col, baseline)

    multi_arm = counts.index[counts["size"] > 2]
    multi_arm_baseline = baseline & np.isin(as_labels(study_col), list(multi_arm))
    if multi_arm_baseline.any():
        check_standard_error(
            se_col[multi_arm_baseline],
            context=" on baseline arms in studies with >2 arms.",
        )

    check_outcome_continuous(
        y_col[~baseline], se_col[~baseline], with_se=True,
        context=" for non-baseline rows (i.e. those specifying contrasts against baseline).",
    )
    o_type = get_outcome_type(y=y_col[~baseline], se=se_col[~baseline])

    outcome_cols = {".y": y_col, ".se": se_col, SAMPLE_SIZE: ss_col}
    table, classes = _build_table(
        data, roles, study_col, trt_col, class_col, trt_ref, outcome_cols
    )

    # Keep rows of each study together, studies in order of first appearance
    first_seen, _ = pd.factorize(np.asarray(table[STUDY], dtype=object))
    table = table.iloc[np.argsort(first_seen, kind="stable")].reset_index(drop=True)

    return _finish(table, classes, "contrast_data", Outcome(contrast=o_type), trt_ref)
