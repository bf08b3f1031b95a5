"""
Column role bindings for nmanet.

Each builder reads a fixed set of column roles (study, treatment, outcome
columns, ...) from the caller's DataFrame. This module defines those roles
per kind of data source and resolves the caller's bindings against the
DataFrame, failing fast when a required role is unbound or a bound column
does not exist.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Dict, Hashable, List, Optional
import pandas as pd

from nmanet.core.errors import MissingInputError


@dataclass
class RoleSpec:
    """Specification for a column role."""

    name: str
    required: bool = False
    description: str = ""


STUDY_ROLES: List[RoleSpec] = [
    RoleSpec("study", required=True, description="Study label"),
    RoleSpec("trt", required=True, description="Treatment label"),
    RoleSpec("trt_class", description="Treatment class label"),
]

IPD_ROLES: List[RoleSpec] = STUDY_ROLES + [
    RoleSpec("y", description="Continuous outcome"),
    RoleSpec("r", description="Binary outcome or event count"),
    RoleSpec("E", description="Time at risk"),
]

AGD_ARM_ROLES: List[RoleSpec] = STUDY_ROLES + [
    RoleSpec("y", description="Mean outcome"),
    RoleSpec("se", description="Standard error of the mean outcome"),
    RoleSpec("r", description="Event count"),
    RoleSpec("n", description="Binomial denominator"),
    RoleSpec("E", description="Time at risk"),
    RoleSpec("sample_size", description="Arm sample size"),
]

AGD_CONTRAST_ROLES: List[RoleSpec] = STUDY_ROLES + [
    RoleSpec("y", required=True, description="Relative effect, missing on the baseline arm"),
    RoleSpec("se", required=True, description="Standard error of the relative effect"),
    RoleSpec("sample_size", description="Arm sample size"),
]

_REQUIRED_MESSAGES = {
    "y": "Specify continuous outcome `y`",
    "se": "Specify standard error `se`",
}


@dataclass
class ColumnRoles:
    """
    Names of the DataFrame columns playing each role.

    Attributes:
        study: Column of study labels
        trt: Column of treatment labels
        trt_class: Column of treatment class labels
        y: Column of continuous outcomes
        se: Column of standard errors
        r: Column of binary outcomes or event counts
        n: Column of Binomial denominators
        E: Column of times at risk
        sample_size: Column of arm sample sizes
    """

    study: Optional[Hashable] = None
    trt: Optional[Hashable] = None
    trt_class: Optional[Hashable] = None
    y: Optional[Hashable] = None
    se: Optional[Hashable] = None
    r: Optional[Hashable] = None
    n: Optional[Hashable] = None
    E: Optional[Hashable] = None
    sample_size: Optional[Hashable] = None

    def bound(self) -> Dict[str, Hashable]:
        """Roles that were given a column, mapped to the column name."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def validate(self, data: pd.DataFrame, roles: List[RoleSpec]) -> None:
        """
        Check bindings against a role schema and the DataFrame columns.

        Args:
            data: Input DataFrame
            roles: Role schema of the builder

        Raises:
            MissingInputError: If a required role is unbound, or a bound
                column is not in ``data``
        """
        bound = self.bound()
        for spec in roles:
            if spec.required and spec.name not in bound:
                message = _REQUIRED_MESSAGES.get(spec.name, f"Specify `{spec.name}`")
                if spec.description:
                    message = f"{message} ({spec.description.lower()})"
                raise MissingInputError(message, column=spec.name)

        for spec in roles:
            column = bound.get(spec.name)
            if column is not None and column not in data.columns:
                raise MissingInputError(
                    f"Column '{column}' given for `{spec.name}` not found in data",
                    column=spec.name,
                    labels=[column],
                )

    def pull(self, data: pd.DataFrame, role: str) -> Optional[pd.Series]:
        """Column bound to a role, or None if the role is unbound."""
        column = getattr(self, role)
        if column is None:
            return None
        return data[column]

    def source_columns(self, roles: List[str]) -> List[Hashable]:
        """Column names bound to the given roles."""
        bound = self.bound()
        return [bound[r] for r in roles if r in bound]
