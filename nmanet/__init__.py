"""
nmanet: Evidence Networks for Network Meta-Analysis

Sets up the data of a network meta-analysis from a mix of individual
patient data (IPD) and aggregate data (AgD), either arm-based or
contrast-based. Each data source is checked, coded and normalized into a
Network; several sources can be combined into one network that is ready
to be passed to a model fitting engine.

Key Features:
    - Outcome type detection and validation (continuous, binary, count, rate)
    - Natural sort order of study and treatment labels
    - Reference treatment chosen by the caller or derived from connectivity
    - Treatment class coding with one class per treatment
    - Combination of IPD and AgD sources into one network

Example Usage:
    >>> import pandas as pd
    >>> from nmanet import network_from_agd_arm, network_from_ipd, combine_networks
    >>>
    >>> agd = pd.DataFrame({
    ...     "study": ["S1", "S1", "S2", "S2"],
    ...     "trt": ["A", "B", "A", "C"],
    ...     "r": [5, 8, 3, 4],
    ...     "n": [20, 22, 15, 14],
    ... })
    >>> ipd = pd.DataFrame({
    ...     "study": ["S3"] * 4,
    ...     "trt": ["B", "B", "C", "C"],
    ...     "event": [0, 1, 1, 0],
    ... })
    >>>
    >>> net = combine_networks(
    ...     network_from_agd_arm(agd, study="study", trt="trt", r="r", n="n"),
    ...     network_from_ipd(ipd, study="study", trt="trt", r="event"),
    ... )
    >>> print(net.describe())

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"

# Core classes
from nmanet.core.network import Network
from nmanet.core.outcomes import (
    Outcome,
    OutcomeType,
    get_outcome_type,
    check_outcome_combination,
)
from nmanet.core.errors import (
    NetworkDataError,
    MissingInputError,
    InvalidValueError,
    AmbiguousOutcomeError,
    StructuralError,
    NetworkAdvisory,
)

# Builders
from nmanet.io.builders import (
    network_from_ipd,
    network_from_agd_arm,
    network_from_agd_contrast,
)
from nmanet.io.combine import combine_networks
from nmanet.io.schema import ColumnRoles

# Utilities
from nmanet.utils import natural_key, natural_sort

__all__ = [
    # Version info
    "__version__",

    # Core classes
    "Network",
    "Outcome",
    "OutcomeType",
    "get_outcome_type",
    "check_outcome_combination",

    # Errors
    "NetworkDataError",
    "MissingInputError",
    "InvalidValueError",
    "AmbiguousOutcomeError",
    "StructuralError",
    "NetworkAdvisory",

    # Builders
    "network_from_ipd",
    "network_from_agd_arm",
    "network_from_agd_contrast",
    "combine_networks",
    "ColumnRoles",

    # Utilities
    "natural_key",
    "natural_sort",
]
