"""IAM resource planning: graphs, output bindings and per-unit resource sets."""

from .cluster import ClusterResourceSet
from .nodegroup import NodeGroupResourceSet, classify_node_group_iam
from .outputs import OutputBindingRegistry
from .resource_set import IAMResourceSet
from .serviceaccount import IAMServiceAccountResourceSet
from .template import ResourceGraph, ResourceKind, render_json, render_yaml

__all__ = [
    "ClusterResourceSet",
    "IAMResourceSet",
    "IAMServiceAccountResourceSet",
    "NodeGroupResourceSet",
    "OutputBindingRegistry",
    "ResourceGraph",
    "ResourceKind",
    "classify_node_group_iam",
    "render_json",
    "render_yaml",
]
