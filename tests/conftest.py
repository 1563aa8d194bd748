"""Shared fixtures for clusteriam tests."""

from pathlib import Path

import pytest

from clusteriam.components import ClusterConfig, NodeGroup, ServiceAccount
from clusteriam.errors import RoleImportError

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


class FakeRoleImporter:
    """Role importer returning a fixed role, or raising if ``error`` is set."""

    def __init__(self, role_arn: str = "arn:aws:iam::111122223333:role/imported", error: bool = False):
        self.role_arn = role_arn
        self.error = error
        self.calls = []

    def import_instance_role_from_profile_arn(self, profile_arn: str) -> str:
        self.calls.append(profile_arn)
        if self.error:
            raise RoleImportError(profile_arn, "instance profile not found")
        return self.role_arn


class FakeTrust:
    """Trust document provider recording the identities it was asked for."""

    def __init__(self):
        self.calls = []

    def make_assume_role_policy_document(self, namespace: str, name: str) -> dict:
        self.calls.append((namespace, name))
        return {"Version": "2012-10-17", "Statement": [{"Sid": f"{namespace}:{name}"}]}


@pytest.fixture
def cluster():
    """Minimal cluster with one node group and one service account."""
    return ClusterConfig(
        name="demo",
        node_groups=[NodeGroup(name="workers")],
        iam={"service_accounts": [ServiceAccount(name="app", namespace="backend")]},
    )


@pytest.fixture
def importer():
    return FakeRoleImporter()


@pytest.fixture
def trust():
    return FakeTrust()


@pytest.fixture
def example_config(tmp_path):
    """Copy of examples/cluster.yaml in a temporary directory."""
    path = tmp_path / "cluster.yaml"
    path.write_text((EXAMPLES_DIR / "cluster.yaml").read_text())
    return path


@pytest.fixture
def make_importer():
    """Factory for fake role importers."""
    return FakeRoleImporter
