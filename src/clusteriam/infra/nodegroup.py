"""IAM resources of a node group.

The node group's IAM settings fall into exactly one of five states, decided
once by ``classify_node_group_iam``:

* ``ExternalProfileAndRole``: use both as given, declare nothing
* ``ExternalProfile``: use the profile, import its role after provisioning
* ``ExternalRole``: create an instance profile around the given role
* ``ManagedRole``: create role and instance profile
* ``NamedManagedRole``: as ``ManagedRole`` with a caller-fixed role name
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from ..components.specs import ClusterIAM, NodeGroup, NodeGroupIAM, is_disabled, is_enabled
from ..errors import ConfigError
from . import outputs
from .policies import (
    AMAZON_EC2_CONTAINER_REGISTRY_POWER_USER,
    AMAZON_EC2_CONTAINER_REGISTRY_READ_ONLY,
    AMAZON_EKS_CNI_POLICY,
    CLOUDWATCH_AGENT_SERVER_POLICY,
    DEFAULT_NODE_POLICIES,
    attach_addon_policies,
    attach_policy_document,
)
from .resource_set import IAMResourceSet
from .template import (
    TEMPLATE_DESCRIPTION_SUFFIX,
    GetAtt,
    Ref,
    ResourceKind,
    Sub,
    make_assume_role_policy_document_for_services,
    make_policy_arns,
    make_service_ref,
    policy_name_from_arn,
)

logger = logging.getLogger(__name__)

INSTANCE_ROLE = "NodeInstanceRole"
INSTANCE_PROFILE = "NodeInstanceProfile"
CUSTOM_POLICY = "Policy1"


class RoleImporter(Protocol):
    """Looks up the role attached to an existing instance profile."""

    def import_instance_role_from_profile_arn(self, profile_arn: str) -> str:
        """Return the role ARN, raising ``RoleImportError`` on failure."""
        ...


# ---------- States ----------

@dataclass(frozen=True)
class ExternalProfileAndRole:
    profile_arn: str
    role_arn: str


@dataclass(frozen=True)
class ExternalProfile:
    profile_arn: str


@dataclass(frozen=True)
class ExternalRole:
    role_arn: str


@dataclass(frozen=True)
class ManagedRole:
    pass


@dataclass(frozen=True)
class NamedManagedRole:
    role_name: str


NodeIAMState = Union[ExternalProfileAndRole, ExternalProfile, ExternalRole, ManagedRole, NamedManagedRole]


def classify_node_group_iam(iam: NodeGroupIAM) -> NodeIAMState:
    """Decide which IAM state a node group is in."""
    if iam.instance_profile_arn:
        if iam.instance_role_arn:
            return ExternalProfileAndRole(iam.instance_profile_arn, iam.instance_role_arn)
        return ExternalProfile(iam.instance_profile_arn)
    if iam.instance_role_arn:
        return ExternalRole(iam.instance_role_arn)
    if iam.instance_role_name:
        return NamedManagedRole(iam.instance_role_name)
    return ManagedRole()


# ---------- Shared role creation ----------

def make_managed_policies(cluster_iam: ClusterIAM, iam: NodeGroupIAM) -> list[Union[str, Sub]]:
    """Managed policy ARNs for a node instance role.

    Caller-attached ARNs come first; a default policy with the same name as
    an attached ARN is not added again.

    Raises:
        ConfigError: If an attached ARN has no resource name
    """
    addons = iam.with_addon_policies
    names = list(DEFAULT_NODE_POLICIES)
    if not is_disabled(addons.cni) and (is_enabled(addons.cni) or not is_enabled(cluster_iam.with_oidc)):
        names.append(AMAZON_EKS_CNI_POLICY)
    if is_enabled(addons.image_builder):
        names.append(AMAZON_EC2_CONTAINER_REGISTRY_POWER_USER)
    else:
        names.append(AMAZON_EC2_CONTAINER_REGISTRY_READ_ONLY)
    if is_enabled(addons.cloud_watch):
        names.append(CLOUDWATCH_AGENT_SERVER_POLICY)

    attached = []
    for arn in iam.attach_policy_arns:
        resource = arn.split(":", 5)[-1] if arn.count(":") >= 5 else ""
        if "/" not in resource or resource.endswith("/"):
            raise ConfigError(f"failed to find ARN resource name: {arn}")
        attached.append(policy_name_from_arn(arn))

    return [*iam.attach_policy_arns, *make_policy_arns(*(n for n in names if n not in attached))]


def create_role(rs: IAMResourceSet, cluster_iam: ClusterIAM, iam: NodeGroupIAM) -> Ref:
    """Declare the node instance role with its inline policies."""
    role = {
        "Path": "/",
        "AssumeRolePolicyDocument": make_assume_role_policy_document_for_services(
            make_service_ref("EC2"),
        ),
        "ManagedPolicyArns": make_managed_policies(cluster_iam, iam),
    }
    if iam.instance_role_name:
        role["RoleName"] = iam.instance_role_name
    if iam.instance_role_permissions_boundary:
        role["PermissionsBoundary"] = iam.instance_role_permissions_boundary
    ref = rs.new_resource(INSTANCE_ROLE, ResourceKind.ROLE, role)

    attach_addon_policies(rs.graph, ref, iam.with_addon_policies.enabled_inline())
    if iam.attach_policy:
        attach_policy_document(rs.graph, CUSTOM_POLICY, ref, iam.attach_policy)
    return ref


# ---------- Resource set ----------

class NodeGroupResourceSet(IAMResourceSet):
    """Instance role and profile of one node group."""

    def __init__(self, cluster_iam: ClusterIAM, node_group: NodeGroup,
                 importer: Optional[RoleImporter] = None, cluster_name: str = ""):
        super().__init__(
            description=f"IAM resources for nodegroup {node_group.name!r} "
                        f"of cluster {cluster_name!r} {TEMPLATE_DESCRIPTION_SUFFIX}"
        )
        self.cluster_iam = cluster_iam
        self.spec = node_group
        self.importer = importer
        self.instance_profile_arn: Union[str, GetAtt, None] = None
        self.state: Optional[NodeIAMState] = None

    def add_all_resources(self) -> None:
        self.add_resources_for_iam()

    def add_resources_for_iam(self) -> None:
        self.state = classify_node_group_iam(self.spec.iam)
        logger.info(f"Nodegroup {self.spec.name}: IAM state {type(self.state).__name__}")
        builders = {
            ExternalProfileAndRole: self._build_external_profile_and_role,
            ExternalProfile: self._build_external_profile,
            ExternalRole: self._build_external_role,
            ManagedRole: self._build_managed_role,
            NamedManagedRole: self._build_managed_role,
        }
        builders[type(self.state)](self.state)

    def _build_external_profile_and_role(self, state: ExternalProfileAndRole) -> None:
        self.with_iam = False
        self.with_named_iam = False
        self.instance_profile_arn = state.profile_arn
        self.define_pass_through_output(
            outputs.NODEGROUP_INSTANCE_PROFILE_ARN, state.profile_arn, True, self._set_instance_profile_arn,
        )
        self.define_pass_through_output(
            outputs.NODEGROUP_INSTANCE_ROLE_ARN, state.role_arn, True, self._set_instance_role_arn,
        )

    def _build_external_profile(self, state: ExternalProfile) -> None:
        if self.importer is None:
            raise ConfigError(
                f"nodegroup {self.spec.name!r} uses an existing instance profile without a role; "
                "a role importer is required"
            )
        self.with_iam = False
        self.with_named_iam = False
        self.instance_profile_arn = state.profile_arn
        self.define_pass_through_output(
            outputs.NODEGROUP_INSTANCE_PROFILE_ARN, state.profile_arn, True, self._set_instance_profile_arn,
        )
        self.outputs.define_lookup(
            outputs.NODEGROUP_INSTANCE_ROLE_ARN, outputs.NODEGROUP_INSTANCE_PROFILE_ARN, self._import_instance_role,
        )

    def _build_external_role(self, state: ExternalRole) -> None:
        self.with_iam = True
        self.with_named_iam = False
        # The role is not managed by this graph, so the profile names it directly
        self.new_resource(INSTANCE_PROFILE, ResourceKind.INSTANCE_PROFILE, {
            "Path": "/",
            "Roles": [state.role_arn],
        })
        self.instance_profile_arn = self.define_output_from_att(
            outputs.NODEGROUP_INSTANCE_PROFILE_ARN, INSTANCE_PROFILE, "Arn", True, self._set_instance_profile_arn,
        )
        self.define_pass_through_output(
            outputs.NODEGROUP_INSTANCE_ROLE_ARN, state.role_arn, True, self._set_instance_role_arn,
        )

    def _build_managed_role(self, state: Union[ManagedRole, NamedManagedRole]) -> None:
        self.with_iam = True
        # Fixed role names need CAPABILITY_NAMED_IAM
        self.with_named_iam = isinstance(state, NamedManagedRole)

        role = create_role(self, self.cluster_iam, self.spec.iam)
        self.new_resource(INSTANCE_PROFILE, ResourceKind.INSTANCE_PROFILE, {
            "Path": "/",
            "Roles": [role],
        })
        self.instance_profile_arn = self.define_output_from_att(
            outputs.NODEGROUP_INSTANCE_PROFILE_ARN, INSTANCE_PROFILE, "Arn", True, self._set_instance_profile_arn,
        )
        self.define_output_from_att(
            outputs.NODEGROUP_INSTANCE_ROLE_ARN, INSTANCE_ROLE, "Arn", True, self._set_instance_role_arn,
        )

    def _set_instance_profile_arn(self, value: str) -> None:
        self.spec.iam.instance_profile_arn = value

    def _set_instance_role_arn(self, value: str) -> None:
        self.spec.iam.instance_role_arn = value

    def _import_instance_role(self, profile_arn: str) -> None:
        # One-shot: a RoleImportError propagates to the caller untouched
        role_arn = self.importer.import_instance_role_from_profile_arn(profile_arn)
        logger.info(f"Imported instance role {role_arn} from profile {profile_arn}")
        self._set_instance_role_arn(role_arn)
        self.resolved[outputs.NODEGROUP_INSTANCE_ROLE_ARN] = role_arn
