"""Configuration specification models for clusteriam."""

from .cluster import (
    ClusterConfig,
    ClusterIAM,
    FargateProfile,
    OIDCConfig,
)
from .common import (
    is_disabled,
    is_enabled,
    is_set_and_non_empty,
)
from .nodegroup import (
    AddonPolicies,
    NodeGroup,
    NodeGroupIAM,
)
from .serviceaccount import (
    ServiceAccount,
    ServiceAccountStatus,
)
from .status import ClusterStatus, status_path_for

__all__ = [
    # Helpers
    "is_enabled",
    "is_disabled",
    "is_set_and_non_empty",
    # Cluster models
    "ClusterConfig",
    "ClusterIAM",
    "FargateProfile",
    "OIDCConfig",
    # Node group models
    "NodeGroup",
    "NodeGroupIAM",
    "AddonPolicies",
    # Service account models
    "ServiceAccount",
    "ServiceAccountStatus",
    # Provisioning status
    "ClusterStatus",
    "status_path_for",
]
