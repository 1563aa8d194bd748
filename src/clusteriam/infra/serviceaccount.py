"""IAM role of a federated (IRSA) service account."""

import logging
from typing import Any, Protocol

from ..components.specs import ServiceAccount, ServiceAccountStatus
from . import outputs
from .policies import attach_policy_document
from .resource_set import IAMResourceSet
from .template import TEMPLATE_DESCRIPTION_SUFFIX, ResourceKind

logger = logging.getLogger(__name__)

ROLE = "Role1"
CUSTOM_POLICY = "Policy1"


class TrustDocumentProvider(Protocol):
    """Builds the trust policy letting a service account assume a role."""

    def make_assume_role_policy_document(self, namespace: str, name: str) -> dict[str, Any]:
        ...


class IAMServiceAccountResourceSet(IAMResourceSet):
    """One role per service account, each in its own graph.

    Roles are never given fixed names, since many service accounts are
    provisioned as separate units.
    """

    def __init__(self, spec: ServiceAccount, trust: TrustDocumentProvider):
        super().__init__(
            description=f"IAM role for serviceaccount {spec.name_string()!r} {TEMPLATE_DESCRIPTION_SUFFIX}"
        )
        self.spec = spec
        self.trust = trust
        self.with_iam = True
        self.with_named_iam = False

    def add_all_resources(self) -> None:
        role = {
            "AssumeRolePolicyDocument": self.trust.make_assume_role_policy_document(
                self.spec.namespace, self.spec.name
            ),
            "ManagedPolicyArns": list(self.spec.attach_policy_arns),
        }
        if self.spec.permissions_boundary:
            role["PermissionsBoundary"] = self.spec.permissions_boundary
        ref = self.new_resource(ROLE, ResourceKind.ROLE, role)
        logger.debug(f"Declared role for serviceaccount {self.spec.name_string()}")

        self.define_output_from_att(outputs.SERVICEACCOUNT_ROLE_ARN, ROLE, "Arn", False, self._set_status)

        if self.spec.attach_policy:
            attach_policy_document(self.graph, CUSTOM_POLICY, ref, self.spec.attach_policy)

    def _set_status(self, value: str) -> None:
        self.spec.status = ServiceAccountStatus(role_arn=value)
