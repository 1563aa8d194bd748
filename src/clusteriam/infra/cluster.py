"""IAM resources of the cluster control plane."""

import logging

from ..components.specs import ClusterConfig, is_disabled, is_set_and_non_empty
from . import outputs
from .policies import (
    AMAZON_EKS_CLUSTER_POLICY,
    AMAZON_EKS_FARGATE_POD_EXECUTION_ROLE_POLICY,
    AMAZON_EKS_VPC_RESOURCE_CONTROLLER,
    attach_allow_policy,
)
from .resource_set import IAMResourceSet
from .template import (
    TEMPLATE_DESCRIPTION_SUFFIX,
    ResourceKind,
    make_assume_role_policy_document_for_services,
    make_policy_arns,
    make_service_ref,
)

logger = logging.getLogger(__name__)

SERVICE_ROLE = "ServiceRole"
FARGATE_POD_EXECUTION_ROLE = "FargatePodExecutionRole"


class ClusterResourceSet(IAMResourceSet):
    """Service role (and Fargate pod execution role) of one cluster."""

    def __init__(self, spec: ClusterConfig):
        super().__init__(
            description=f"IAM resources for EKS cluster {spec.name!r} {TEMPLATE_DESCRIPTION_SUFFIX}"
        )
        self.spec = spec

    def add_all_resources(self) -> None:
        self.add_resources_for_iam()
        self.add_resources_for_fargate()

    def add_resources_for_iam(self) -> None:
        iam = self.spec.iam
        self.with_named_iam = False

        if is_set_and_non_empty(iam.service_role_arn):
            logger.info(f"Using existing service role {iam.service_role_arn}")
            self.with_iam = False
            self.define_pass_through_output(
                outputs.CLUSTER_SERVICE_ROLE_ARN, iam.service_role_arn, True,
                self._set_service_role_arn,
            )
            return

        self.with_iam = True

        managed_policies = [AMAZON_EKS_CLUSTER_POLICY]
        if not is_disabled(iam.vpc_resource_controller_policy):
            managed_policies.append(AMAZON_EKS_VPC_RESOURCE_CONTROLLER)

        role = {
            # EKS must be able to schedule pods onto Fargate when Fargate
            # profiles are added later
            "AssumeRolePolicyDocument": make_assume_role_policy_document_for_services(
                make_service_ref("EKS"),
                make_service_ref("EKSFargatePods"),
            ),
            "ManagedPolicyArns": make_policy_arns(*managed_policies),
        }
        if is_set_and_non_empty(iam.service_role_permissions_boundary):
            role["PermissionsBoundary"] = iam.service_role_permissions_boundary
        ref = self.new_resource(SERVICE_ROLE, ResourceKind.ROLE, role)

        attach_allow_policy(self.graph, "PolicyCloudWatchMetrics", ref, "*", [
            "cloudwatch:PutMetricData",
        ])
        # Needed to create load balancers, not part of AmazonEKSClusterPolicy
        attach_allow_policy(self.graph, "PolicyELBPermissions", ref, "*", [
            "ec2:DescribeAccountAttributes",
            "ec2:DescribeAddresses",
            "ec2:DescribeInternetGateways",
        ])

        self.define_output_from_att(
            outputs.CLUSTER_SERVICE_ROLE_ARN, SERVICE_ROLE, "Arn", True,
            self._set_service_role_arn,
        )

    def add_resources_for_fargate(self) -> None:
        iam = self.spec.iam

        if is_set_and_non_empty(iam.fargate_pod_execution_role_arn):
            self.define_pass_through_output(
                outputs.CLUSTER_FARGATE_POD_EXECUTION_ROLE_ARN, iam.fargate_pod_execution_role_arn, True,
                self._set_fargate_pod_execution_role_arn,
            )
            return

        if not self.spec.fargate_profiles:
            return

        logger.info(f"Creating Fargate pod execution role for {len(self.spec.fargate_profiles)} profile(s)")
        self.with_iam = True

        role = {
            "AssumeRolePolicyDocument": make_assume_role_policy_document_for_services(
                make_service_ref("EKSFargatePods"),
            ),
            "ManagedPolicyArns": make_policy_arns(AMAZON_EKS_FARGATE_POD_EXECUTION_ROLE_POLICY),
        }
        if is_set_and_non_empty(iam.fargate_pod_execution_role_permissions_boundary):
            role["PermissionsBoundary"] = iam.fargate_pod_execution_role_permissions_boundary
        self.new_resource(FARGATE_POD_EXECUTION_ROLE, ResourceKind.ROLE, role)

        self.define_output_from_att(
            outputs.CLUSTER_FARGATE_POD_EXECUTION_ROLE_ARN, FARGATE_POD_EXECUTION_ROLE, "Arn", True,
            self._set_fargate_pod_execution_role_arn,
        )

    def _set_service_role_arn(self, value: str) -> None:
        self.spec.iam.service_role_arn = value

    def _set_fargate_pod_execution_role_arn(self, value: str) -> None:
        self.spec.iam.fargate_pod_execution_role_arn = value
