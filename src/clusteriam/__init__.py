"""clusteriam - IAM planning and output binding for managed Kubernetes clusters."""

__version__ = "0.1.0"

from .infra import (
    ClusterResourceSet,
    IAMServiceAccountResourceSet,
    NodeGroupResourceSet,
    ResourceGraph,
)

__all__ = [
    "ClusterResourceSet",
    "IAMServiceAccountResourceSet",
    "NodeGroupResourceSet",
    "ResourceGraph",
    "__version__",
]
