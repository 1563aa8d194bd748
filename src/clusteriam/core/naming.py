"""Centralized naming conventions for clusteriam stacks.

This module provides a single source of truth for the names of the
provisioning stacks created per cluster unit.
"""

import re


class StackNaming:
    """Centralized naming for all Pulumi stacks.

    All methods use the PROJECT_PREFIX to ensure consistency.
    The prefix can be changed to rebrand or for testing.
    """

    PROJECT_PREFIX = "clusteriam"

    @staticmethod
    def sanitize(value: str) -> str:
        """Lowercase and replace anything outside [a-z0-9-] with '-'.

        Args:
            value: Raw name segment

        Returns:
            Sanitized segment without leading/trailing dashes
        """
        return re.sub(r"[^a-z0-9-]+", "-", value.lower()).strip("-")

    @staticmethod
    def get_project_name() -> str:
        """Pulumi project name shared by all clusteriam stacks."""
        return f"{StackNaming.PROJECT_PREFIX}-iam"

    @staticmethod
    def get_cluster_stack_name(cluster: str) -> str:
        """Generate the stack name of the cluster IAM unit.

        Pattern: {PROJECT_PREFIX}-{cluster}-cluster

        Args:
            cluster: Cluster name

        Returns:
            Stack name like 'clusteriam-prod-cluster'
        """
        return f"{StackNaming.PROJECT_PREFIX}-{StackNaming.sanitize(cluster)}-cluster"

    @staticmethod
    def get_nodegroup_stack_name(cluster: str, nodegroup: str) -> str:
        """Generate the stack name of a node group IAM unit.

        Pattern: {PROJECT_PREFIX}-{cluster}-nodegroup-{nodegroup}
        """
        return (
            f"{StackNaming.PROJECT_PREFIX}-{StackNaming.sanitize(cluster)}"
            f"-nodegroup-{StackNaming.sanitize(nodegroup)}"
        )

    @staticmethod
    def get_serviceaccount_stack_name(cluster: str, namespace: str, name: str) -> str:
        """Generate the stack name of a service account IAM unit.

        Pattern: {PROJECT_PREFIX}-{cluster}-addon-iamserviceaccount-{namespace}-{name}
        """
        return (
            f"{StackNaming.PROJECT_PREFIX}-{StackNaming.sanitize(cluster)}"
            f"-addon-iamserviceaccount-{StackNaming.sanitize(namespace)}-{StackNaming.sanitize(name)}"
        )

    @staticmethod
    def parse_stack_name(stack_name: str) -> dict:
        """Parse a stack name into its unit kind and identifiers.

        Args:
            stack_name: Full stack name to parse

        Returns:
            Dictionary with 'cluster', 'kind' and, where applicable,
            'nodegroup' or 'serviceaccount'

        Raises:
            ValueError: If the name does not follow a clusteriam pattern
        """
        prefix = f"{StackNaming.PROJECT_PREFIX}-"
        if not stack_name.startswith(prefix):
            raise ValueError(f"Invalid stack name format: {stack_name}")
        rest = stack_name[len(prefix):]

        if "-addon-iamserviceaccount-" in rest:
            cluster, sa = rest.split("-addon-iamserviceaccount-", 1)
            return {"cluster": cluster, "kind": "serviceaccount", "serviceaccount": sa}
        if "-nodegroup-" in rest:
            cluster, ng = rest.split("-nodegroup-", 1)
            return {"cluster": cluster, "kind": "nodegroup", "nodegroup": ng}
        if rest.endswith("-cluster"):
            return {"cluster": rest[: -len("-cluster")], "kind": "cluster"}
        raise ValueError(f"Invalid stack name format: {stack_name}")
