"""Pulumi component that materializes a planned IAM resource graph.

The graph is engine-neutral; this component maps each node to the
equivalent ``pulumi_aws`` resource and resolves the graph's intrinsics to
Pulumi outputs.
"""

from typing import Any, Dict, Optional

import pulumi
import pulumi_aws as aws

from ..template import GetAtt, Ref, Resource, ResourceGraph, ResourceKind, Sub

# Attribute names used by planners -> pulumi_aws output properties
ATTRIBUTES = {
    "Arn": "arn",
    "RoleId": "unique_id",
}


def role_name_from_identifier(identifier: str) -> str:
    """Role names are accepted as-is; role ARNs are reduced to the name."""
    if identifier.startswith("arn:"):
        return identifier.rsplit("/", 1)[-1]
    return identifier


class IAMStack(pulumi.ComponentResource):
    """Materializes every resource and output of one IAM resource graph."""

    def __init__(self, name: str, graph: ResourceGraph,
                 opts: Optional[pulumi.ResourceOptions] = None):
        super().__init__("clusteriam:aws:IAMStack", name, None, opts)

        self._name = name
        self._child_opts = pulumi.ResourceOptions(parent=self)
        partition = aws.get_partition(opts=pulumi.InvokeOptions(parent=self))
        self._variables = {
            "AWS::Partition": partition.partition,
            "AWS::URLSuffix": partition.dns_suffix,
            "AWS::StackName": pulumi.get_stack(),
        }
        self._resources: Dict[str, pulumi.CustomResource] = {}
        pulumi.log.info(f"Materializing {len(graph)} IAM resource(s) and {len(graph.outputs)} output(s)", resource=self)

        creators = {
            ResourceKind.ROLE: self._create_role,
            ResourceKind.INSTANCE_PROFILE: self._create_instance_profile,
            ResourceKind.POLICY: self._create_policy,
        }
        # Declaration order is dependency order
        for logical_name, resource in graph.resources.items():
            self._resources[logical_name] = creators[resource.kind](logical_name, resource)

        self.outputs = {
            output_name: self._resolve(output.value)
            for output_name, output in graph.outputs.items()
        }
        self.register_outputs(self.outputs)

    def _resolve(self, value: Any) -> Any:
        if isinstance(value, Ref):
            return self._resources[value.name].name
        if isinstance(value, GetAtt):
            return getattr(self._resources[value.name], ATTRIBUTES[value.attribute])
        if isinstance(value, Sub):
            return value.resolve(self._variables)
        if isinstance(value, dict):
            return {k: self._resolve(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._resolve(v) for v in value]
        return value

    def _role_names(self, roles: list) -> list:
        return [role_name_from_identifier(r) if isinstance(r, str) else self._resolve(r) for r in roles]

    def _create_role(self, logical_name: str, resource: Resource) -> aws.iam.Role:
        props = resource.properties
        role = aws.iam.Role(
            f"{self._name}-{logical_name}",
            assume_role_policy=pulumi.Output.json_dumps(self._resolve(props["AssumeRolePolicyDocument"])),
            name=props.get("RoleName"),
            path=props.get("Path"),
            permissions_boundary=self._resolve(props.get("PermissionsBoundary")),
            opts=self._child_opts,
        )
        for i, policy_arn in enumerate(props.get("ManagedPolicyArns", [])):
            aws.iam.RolePolicyAttachment(
                f"{self._name}-{logical_name}-policy-{i}",
                role=role.name,
                policy_arn=self._resolve(policy_arn),
                opts=self._child_opts,
            )
        return role

    def _create_instance_profile(self, logical_name: str, resource: Resource) -> aws.iam.InstanceProfile:
        props = resource.properties
        roles = self._role_names(props["Roles"])
        if len(roles) != 1:
            raise ValueError(f"instance profile {logical_name} must reference exactly one role")
        return aws.iam.InstanceProfile(
            f"{self._name}-{logical_name}",
            path=props.get("Path"),
            role=roles[0],
            opts=self._child_opts,
        )

    def _create_policy(self, logical_name: str, resource: Resource) -> aws.iam.RolePolicy:
        props = resource.properties
        document = pulumi.Output.json_dumps(self._resolve(props["PolicyDocument"]))
        policies = [
            aws.iam.RolePolicy(
                f"{self._name}-{logical_name}" + (f"-{i}" if i else ""),
                name=self._resolve(props["PolicyName"]),
                role=role,
                policy=document,
                opts=self._child_opts,
            )
            for i, role in enumerate(self._role_names(props["Roles"]))
        ]
        return policies[0]
