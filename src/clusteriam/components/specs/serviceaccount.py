"""IAM service account (federated workload identity) models."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import ARN, DNSLabel


class ServiceAccountStatus(BaseModel):
    """Provisioning result of an IAM service account."""
    role_arn: Optional[str] = None


class ServiceAccount(BaseModel):
    """Kubernetes service account bound to its own IAM role."""
    name: DNSLabel
    namespace: DNSLabel = "default"
    attach_policy_arns: List[ARN] = Field(default_factory=list)
    attach_policy: Optional[Dict[str, Any]] = None
    permissions_boundary: Optional[ARN] = None
    status: Optional[ServiceAccountStatus] = None

    model_config = ConfigDict(extra="forbid")

    def name_string(self) -> str:
        return f"{self.namespace}/{self.name}"
