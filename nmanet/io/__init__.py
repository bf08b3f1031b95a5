"""Building networks from data frames and combining them."""

from nmanet.io.builders import (
    network_from_ipd,
    network_from_agd_arm,
    network_from_agd_contrast,
)
from nmanet.io.combine import combine_networks
from nmanet.io.schema import (
    ColumnRoles,
    RoleSpec,
    IPD_ROLES,
    AGD_ARM_ROLES,
    AGD_CONTRAST_ROLES,
)

__all__ = [
    "network_from_ipd",
    "network_from_agd_arm",
    "network_from_agd_contrast",
    "combine_networks",
    "ColumnRoles",
    "RoleSpec",
    "IPD_ROLES",
    "AGD_ARM_ROLES",
    "AGD_CONTRAST_ROLES",
]
