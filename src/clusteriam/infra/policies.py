"""Inline policy attachment and the managed policies the planners reference."""

from collections.abc import Mapping, Sequence
from typing import Any, Union

from .template import Ref, ResourceGraph, ResourceKind, Sub, make_policy_document

# AWS managed policy names
AMAZON_EKS_CLUSTER_POLICY = "AmazonEKSClusterPolicy"
AMAZON_EKS_VPC_RESOURCE_CONTROLLER = "AmazonEKSVPCResourceController"
AMAZON_EKS_WORKER_NODE_POLICY = "AmazonEKSWorkerNodePolicy"
AMAZON_EKS_CNI_POLICY = "AmazonEKS_CNI_Policy"
AMAZON_EC2_CONTAINER_REGISTRY_POWER_USER = "AmazonEC2ContainerRegistryPowerUser"
AMAZON_EC2_CONTAINER_REGISTRY_READ_ONLY = "AmazonEC2ContainerRegistryReadOnly"
CLOUDWATCH_AGENT_SERVER_POLICY = "CloudWatchAgentServerPolicy"
AMAZON_EKS_FARGATE_POD_EXECUTION_ROLE_POLICY = "AmazonEKSFargatePodExecutionRolePolicy"

DEFAULT_NODE_POLICIES = [AMAZON_EKS_WORKER_NODE_POLICY]


def make_policy_name(name: str) -> Sub:
    """Policy names are unique per stack."""
    return Sub("${AWS::StackName}-" + name)


def attach_allow_policy(
    graph: ResourceGraph,
    name: str,
    role: Ref,
    resources: Union[str, Sequence[str]],
    actions: Sequence[str],
) -> Ref:
    """Declare an inline policy with a single allow statement on ``role``.

    Args:
        graph: Graph to declare the policy in
        name: Logical name of the policy resource
        role: Reference to the role the policy is attached to
        resources: Resource pattern, a single string or a sequence of strings
        actions: Allowed actions

    Returns:
        Reference to the declared policy
    """
    if not isinstance(resources, str):
        resources = list(resources)
    return attach_policy_document(graph, name, role, make_policy_document({
        "Effect": "Allow",
        "Resource": resources,
        "Action": list(actions),
    }))


def attach_policy_document(graph: ResourceGraph, name: str, role: Ref,
                           document: Mapping[str, Any]) -> Ref:
    """Declare an inline policy on ``role`` from a raw policy document."""
    return graph.declare(name, ResourceKind.POLICY, {
        "PolicyName": make_policy_name(name),
        "Roles": [role],
        "PolicyDocument": dict(document),
    })


# ---------- Node addon policies ----------

ADDON_POLICY_STATEMENTS: dict[str, list[tuple[str, Union[str, list[str]], list[str]]]] = {
    "auto_scaler": [
        ("PolicyAutoScaling", "*", [
            "autoscaling:DescribeAutoScalingGroups",
            "autoscaling:DescribeAutoScalingInstances",
            "autoscaling:DescribeLaunchConfigurations",
            "autoscaling:DescribeTags",
            "autoscaling:SetDesiredCapacity",
            "autoscaling:TerminateInstanceInAutoScalingGroup",
            "ec2:DescribeLaunchTemplateVersions",
        ]),
    ],
    "external_dns": [
        ("PolicyExternalDNSChangeSet", "arn:aws:route53:::hostedzone/*", [
            "route53:ChangeResourceRecordSets",
        ]),
        ("PolicyExternalDNSHostedZones", "*", [
            "route53:ListHostedZones",
            "route53:ListResourceRecordSets",
            "route53:ListTagsForResource",
        ]),
    ],
    "cert_manager": [
        ("PolicyCertManagerChangeSet", "arn:aws:route53:::hostedzone/*", [
            "route53:ChangeResourceRecordSets",
        ]),
        ("PolicyCertManagerHostedZones", "*", [
            "route53:ListResourceRecordSets",
            "route53:ListHostedZonesByName",
        ]),
        ("PolicyCertManagerGetChange", "arn:aws:route53:::change/*", [
            "route53:GetChange",
        ]),
    ],
    "ebs": [
        ("PolicyEBS", "*", [
            "ec2:AttachVolume",
            "ec2:CreateSnapshot",
            "ec2:CreateTags",
            "ec2:CreateVolume",
            "ec2:DeleteSnapshot",
            "ec2:DeleteTags",
            "ec2:DeleteVolume",
            "ec2:DescribeInstances",
            "ec2:DescribeSnapshots",
            "ec2:DescribeTags",
            "ec2:DescribeVolumes",
            "ec2:DetachVolume",
        ]),
    ],
    "efs": [
        ("PolicyEFS", "*", [
            "elasticfilesystem:*",
        ]),
        ("PolicyEFSEC2", "*", [
            "ec2:CreateNetworkInterface",
            "ec2:DeleteNetworkInterface",
            "ec2:DescribeAvailabilityZones",
            "ec2:DescribeNetworkInterfaceAttribute",
            "ec2:DescribeNetworkInterfaces",
            "ec2:DescribeSecurityGroups",
            "ec2:DescribeSubnets",
            "ec2:DescribeVpcs",
            "ec2:ModifyNetworkInterfaceAttribute",
        ]),
    ],
    "xray": [
        ("PolicyXRay", "*", [
            "xray:PutTraceSegments",
            "xray:PutTelemetryRecords",
            "xray:GetSamplingRules",
            "xray:GetSamplingTargets",
            "xray:GetSamplingStatisticSummaries",
        ]),
    ],
}


def attach_addon_policies(graph: ResourceGraph, role: Ref, enabled: Sequence[str]) -> list[Ref]:
    """Attach the inline policies of every enabled addon, in table order."""
    refs = []
    for addon, statements in ADDON_POLICY_STATEMENTS.items():
        if addon not in enabled:
            continue
        for name, resources, actions in statements:
            refs.append(attach_allow_policy(graph, name, role, resources, actions))
    return refs
