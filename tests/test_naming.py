"""Tests for centralized naming module."""

import pytest

from clusteriam.core.naming import StackNaming


class TestStackNaming:
    """Test suite for StackNaming class."""

    def test_project_prefix(self):
        assert StackNaming.PROJECT_PREFIX == "clusteriam"
        assert StackNaming.get_project_name() == "clusteriam-iam"

    def test_stack_names(self):
        assert StackNaming.get_cluster_stack_name("prod") == "clusteriam-prod-cluster"
        assert StackNaming.get_nodegroup_stack_name("prod", "workers") == "clusteriam-prod-nodegroup-workers"
        assert (
            StackNaming.get_serviceaccount_stack_name("prod", "kube-system", "aws-node")
            == "clusteriam-prod-addon-iamserviceaccount-kube-system-aws-node"
        )

    def test_sanitize(self):
        assert StackNaming.sanitize("My_Cluster.1") == "my-cluster-1"
        assert StackNaming.get_cluster_stack_name("Team A") == "clusteriam-team-a-cluster"

    def test_parse_stack_name(self):
        assert StackNaming.parse_stack_name("clusteriam-prod-cluster") == {"cluster": "prod", "kind": "cluster"}
        assert StackNaming.parse_stack_name("clusteriam-prod-nodegroup-workers") == {
            "cluster": "prod", "kind": "nodegroup", "nodegroup": "workers",
        }
        parsed = StackNaming.parse_stack_name("clusteriam-prod-addon-iamserviceaccount-backend-app")
        assert parsed["kind"] == "serviceaccount"
        assert parsed["serviceaccount"] == "backend-app"

    def test_parse_invalid(self):
        with pytest.raises(ValueError, match="Invalid stack name"):
            StackNaming.parse_stack_name("other-prod-cluster")
        with pytest.raises(ValueError):
            StackNaming.parse_stack_name("clusteriam-prod")
