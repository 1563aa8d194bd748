"""Tests for the node group IAM resource set."""

import pytest

from clusteriam.components import ClusterIAM, NodeGroup
from clusteriam.errors import ConfigError, DuplicateNameError, RoleImportError
from clusteriam.infra.nodegroup import (
    ExternalProfile,
    ExternalProfileAndRole,
    ExternalRole,
    ManagedRole,
    NamedManagedRole,
    NodeGroupResourceSet,
    classify_node_group_iam,
    make_managed_policies,
)
from clusteriam.infra.outputs import BindingKind
from clusteriam.infra.template import GetAtt, Ref, Sub, make_policy_arns

PROFILE_ARN = "arn:aws:iam::111122223333:instance-profile/existing"
ROLE_ARN = "arn:aws:iam::111122223333:role/existing"


def _plan(iam=None, cluster_iam=None, importer=None) -> NodeGroupResourceSet:
    rs = NodeGroupResourceSet(
        cluster_iam or ClusterIAM(),
        NodeGroup(name="workers", iam=iam or {}),
        importer,
        cluster_name="demo",
    )
    rs.add_all_resources()
    return rs


class TestClassification:
    """Test the pure state classification."""

    @pytest.mark.parametrize("iam, expected", [
        ({"instance_profile_arn": PROFILE_ARN, "instance_role_arn": ROLE_ARN},
         ExternalProfileAndRole(PROFILE_ARN, ROLE_ARN)),
        ({"instance_profile_arn": PROFILE_ARN}, ExternalProfile(PROFILE_ARN)),
        ({"instance_profile_arn": PROFILE_ARN, "instance_role_name": "ignored"}, ExternalProfile(PROFILE_ARN)),
        ({"instance_role_arn": ROLE_ARN}, ExternalRole(ROLE_ARN)),
        ({"instance_role_arn": ROLE_ARN, "instance_role_name": "ignored"}, ExternalRole(ROLE_ARN)),
        ({}, ManagedRole()),
        ({"instance_role_name": "my-nodes"}, NamedManagedRole("my-nodes")),
    ])
    def test_priority_order(self, iam, expected):
        assert classify_node_group_iam(NodeGroup(name="ng", iam=iam).iam) == expected


class TestStateTable:
    """Flags and declared resources for each of the five states."""

    @pytest.mark.parametrize("iam, with_iam, with_named_iam, resources", [
        ({"instance_profile_arn": PROFILE_ARN, "instance_role_arn": ROLE_ARN}, False, False, []),
        ({"instance_profile_arn": PROFILE_ARN}, False, False, []),
        ({"instance_role_arn": ROLE_ARN}, True, False, ["NodeInstanceProfile"]),
        ({}, True, False, ["NodeInstanceRole", "NodeInstanceProfile"]),
        ({"instance_role_name": "my-nodes"}, True, True, ["NodeInstanceRole", "NodeInstanceProfile"]),
    ])
    def test_flags_and_resources(self, iam, with_iam, with_named_iam, resources, importer):
        rs = _plan(iam, importer=importer)
        assert (rs.with_iam, rs.with_named_iam) == (with_iam, with_named_iam)
        assert rs.graph.names() == resources

    def test_capabilities(self):
        assert _plan({"instance_profile_arn": PROFILE_ARN, "instance_role_arn": ROLE_ARN}).required_capabilities() == []
        assert _plan({}).required_capabilities() == ["CAPABILITY_IAM"]
        assert _plan({"instance_role_name": "my-nodes"}).required_capabilities() == ["CAPABILITY_NAMED_IAM"]


class TestExternalProfileAndRole:
    def test_both_outputs_pass_through(self):
        rs = _plan({"instance_profile_arn": PROFILE_ARN, "instance_role_arn": ROLE_ARN})

        assert rs.outputs.names(BindingKind.PASS_THROUGH) == ["InstanceProfileARN", "InstanceRoleARN"]
        assert rs.graph.outputs["InstanceProfileARN"].value == PROFILE_ARN
        assert rs.graph.outputs["InstanceRoleARN"].value == ROLE_ARN
        assert rs.instance_profile_arn == PROFILE_ARN

        rs.get_all_outputs({})
        assert rs.spec.iam.instance_profile_arn == PROFILE_ARN
        assert rs.spec.iam.instance_role_arn == ROLE_ARN


class TestExternalProfile:
    """Existing profile without a role: the role is imported after provisioning."""

    profile = "arn:profile:1"

    def test_bindings(self, importer):
        rs = _plan({"instance_profile_arn": self.profile}, importer=importer)

        assert rs.outputs.names(BindingKind.PASS_THROUGH) == ["InstanceProfileARN"]
        assert rs.outputs.get("InstanceProfileARN").value == self.profile
        assert rs.outputs.names(BindingKind.LOOKUP) == ["InstanceRoleARN"]
        assert len(rs.outputs) == 2
        # The role ARN is unknown until the lookup runs
        assert list(rs.graph.outputs) == ["InstanceProfileARN"]

    def test_lookup_writes_role(self, make_importer):
        importer = make_importer(role_arn="arn:aws:iam::111122223333:role/owner")
        rs = _plan({"instance_profile_arn": self.profile}, importer=importer)

        rs.get_all_outputs({})

        assert importer.calls == [self.profile]
        assert rs.spec.iam.instance_role_arn == "arn:aws:iam::111122223333:role/owner"
        assert rs.resolved == {
            "InstanceProfileARN": self.profile,
            "InstanceRoleARN": "arn:aws:iam::111122223333:role/owner",
        }

    def test_import_error_surfaces_and_role_untouched(self, make_importer):
        importer = make_importer(error=True)
        rs = _plan({"instance_profile_arn": self.profile}, importer=importer)

        with pytest.raises(RoleImportError, match="arn:profile:1"):
            rs.get_all_outputs({})

        assert importer.calls == [self.profile]
        assert rs.spec.iam.instance_role_arn == ""

    def test_import_is_not_retried(self, make_importer):
        importer = make_importer(error=True)
        rs = _plan({"instance_profile_arn": self.profile}, importer=importer)
        with pytest.raises(RoleImportError):
            rs.get_all_outputs({})
        assert len(importer.calls) == 1

    def test_importer_required(self):
        rs = NodeGroupResourceSet(ClusterIAM(), NodeGroup(name="workers", iam={"instance_profile_arn": self.profile}))
        with pytest.raises(ConfigError, match="role importer"):
            rs.add_all_resources()


class TestExternalRole:
    def test_profile_wraps_external_role(self):
        rs = _plan({"instance_role_arn": ROLE_ARN})

        profile = rs.graph.get("NodeInstanceProfile").properties
        assert profile == {"Path": "/", "Roles": [ROLE_ARN]}
        assert rs.instance_profile_arn == GetAtt("NodeInstanceProfile", "Arn")
        assert rs.outputs.names(BindingKind.ATTRIBUTE) == ["InstanceProfileARN"]
        assert rs.outputs.names(BindingKind.PASS_THROUGH) == ["InstanceRoleARN"]

        rs.get_all_outputs({"InstanceProfileARN": "P"})
        assert rs.spec.iam.instance_profile_arn == "P"
        assert rs.spec.iam.instance_role_arn == ROLE_ARN


class TestManagedRole:
    """Neither profile nor role supplied: both are created."""

    def test_role_and_profile(self):
        rs = _plan({})

        role = rs.graph.get("NodeInstanceRole").properties
        assert role["Path"] == "/"
        assert "RoleName" not in role
        assert role["AssumeRolePolicyDocument"]["Statement"][0]["Principal"]["Service"] == [
            Sub("ec2.${AWS::URLSuffix}")
        ]
        assert rs.graph.get("NodeInstanceProfile").properties["Roles"] == [Ref("NodeInstanceRole")]
        assert rs.instance_profile_arn == GetAtt("NodeInstanceProfile", "Arn")

    def test_named_role_and_boundary(self):
        boundary = "arn:aws:iam::111122223333:policy/boundary"
        rs = _plan({"instance_role_name": "my-nodes", "instance_role_permissions_boundary": boundary})
        role = rs.graph.get("NodeInstanceRole").properties
        assert role["RoleName"] == "my-nodes"
        assert role["PermissionsBoundary"] == boundary

    def test_round_trip_sets_only_profile_and_role(self):
        rs = _plan({})
        before = rs.spec.model_dump()

        rs.get_all_outputs({"InstanceProfileARN": "P", "InstanceRoleARN": "R"})

        after = rs.spec.model_dump()
        assert after["iam"]["instance_profile_arn"] == "P"
        assert after["iam"]["instance_role_arn"] == "R"
        before["iam"].update(instance_profile_arn="P", instance_role_arn="R")
        assert after == before

    def test_addon_and_custom_policies(self):
        document = {"Version": "2012-10-17", "Statement": [{"Effect": "Allow", "Action": "s3:*", "Resource": "*"}]}
        rs = _plan({
            "with_addon_policies": {"auto_scaler": True, "ebs": True},
            "attach_policy": document,
        })
        assert rs.graph.names() == [
            "NodeInstanceRole",
            "PolicyAutoScaling",
            "PolicyEBS",
            "Policy1",
            "NodeInstanceProfile",
        ]
        assert rs.graph.get("Policy1").properties["PolicyDocument"] == document

    def test_planning_twice_fails(self):
        rs = _plan({})
        with pytest.raises(DuplicateNameError, match="NodeInstanceRole"):
            rs.add_all_resources()


class TestManagedPolicies:
    """Test managed policy selection for created node roles."""

    def _policies(self, iam=None, cluster_iam=None):
        return make_managed_policies(cluster_iam or ClusterIAM(), NodeGroup(name="ng", iam=iam or {}).iam)

    def test_defaults(self):
        assert self._policies() == make_policy_arns(
            "AmazonEKSWorkerNodePolicy", "AmazonEKS_CNI_Policy", "AmazonEC2ContainerRegistryReadOnly"
        )

    def test_cni_left_out_with_oidc(self):
        policies = self._policies(cluster_iam=ClusterIAM(with_oidc=True))
        assert make_policy_arns("AmazonEKS_CNI_Policy")[0] not in policies

    def test_cni_explicitly_enabled_with_oidc(self):
        policies = self._policies({"with_addon_policies": {"cni": True}}, ClusterIAM(with_oidc=True))
        assert make_policy_arns("AmazonEKS_CNI_Policy")[0] in policies

    def test_cni_explicitly_disabled(self):
        policies = self._policies({"with_addon_policies": {"cni": False}})
        assert make_policy_arns("AmazonEKS_CNI_Policy")[0] not in policies

    def test_image_builder_and_cloudwatch(self):
        policies = self._policies({"with_addon_policies": {"image_builder": True, "cloud_watch": True}})
        assert policies == make_policy_arns(
            "AmazonEKSWorkerNodePolicy",
            "AmazonEKS_CNI_Policy",
            "AmazonEC2ContainerRegistryPowerUser",
            "CloudWatchAgentServerPolicy",
        )

    def test_attached_arns_first_and_deduplicated(self):
        attached = [
            "arn:aws:iam::aws:policy/AmazonEKSWorkerNodePolicy",
            "arn:aws:iam::111122223333:policy/custom/extra",
        ]
        policies = self._policies({"attach_policy_arns": attached})
        assert policies == attached + make_policy_arns("AmazonEKS_CNI_Policy", "AmazonEC2ContainerRegistryReadOnly")

    def test_attached_arn_without_resource_name(self):
        with pytest.raises(ConfigError, match="resource name"):
            self._policies({"attach_policy_arns": ["arn:aws:iam::111122223333:policy"]})
