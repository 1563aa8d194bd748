"""Trust documents for service accounts federated through the cluster's OIDC provider."""

from typing import Any

from ..components.specs import OIDCConfig
from .template import make_policy_document


class OIDCTrust:
    """Builds ``sts:AssumeRoleWithWebIdentity`` trust policies for one issuer."""

    def __init__(self, issuer_url: str, account_id: str, partition: str = "aws",
                 audience: str = "sts.amazonaws.com"):
        self.issuer = issuer_url.removeprefix("https://").rstrip("/")
        self.account_id = account_id
        self.partition = partition
        self.audience = audience

    @classmethod
    def from_config(cls, config: OIDCConfig) -> "OIDCTrust":
        return cls(config.issuer_url, config.account_id, config.partition, config.audience)

    @property
    def provider_arn(self) -> str:
        return f"arn:{self.partition}:iam::{self.account_id}:oidc-provider/{self.issuer}"

    def make_assume_role_policy_document(self, namespace: str, name: str) -> dict[str, Any]:
        return make_policy_document({
            "Effect": "Allow",
            "Principal": {"Federated": self.provider_arn},
            "Action": ["sts:AssumeRoleWithWebIdentity"],
            "Condition": {
                "StringEquals": {
                    f"{self.issuer}:sub": f"system:serviceaccount:{namespace}:{name}",
                    f"{self.issuer}:aud": self.audience,
                },
            },
        })
