"""clusteriam components and configuration models."""

from .config_base import ConfigModel
from .specs import (
    AddonPolicies,
    ClusterConfig,
    ClusterIAM,
    ClusterStatus,
    FargateProfile,
    NodeGroup,
    NodeGroupIAM,
    OIDCConfig,
    ServiceAccount,
    ServiceAccountStatus,
    status_path_for,
)

__all__ = [
    # Base
    "ConfigModel",
    # Cluster
    "ClusterConfig",
    "ClusterIAM",
    "FargateProfile",
    "OIDCConfig",
    # Node groups
    "NodeGroup",
    "NodeGroupIAM",
    "AddonPolicies",
    # Service accounts
    "ServiceAccount",
    "ServiceAccountStatus",
    # Provisioning status
    "ClusterStatus",
    "status_path_for",
]
