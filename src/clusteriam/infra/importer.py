"""Import the role of an existing instance profile via the IAM API."""

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import RoleImportError

logger = logging.getLogger(__name__)


def instance_profile_name_from_arn(profile_arn: str) -> str:
    """``arn:aws:iam::123:instance-profile/path/name`` -> ``name``."""
    resource = profile_arn.split(":", 5)[-1]
    return resource.rsplit("/", 1)[-1]


class InstanceRoleImporter:
    """Looks up instance profile roles with boto3.

    The IAM client is created on first use, so constructing an importer
    needs no credentials.
    """

    def __init__(self, client: Optional[Any] = None, session: Optional[boto3.session.Session] = None):
        self._client = client
        self._session = session

    @property
    def client(self):
        if self._client is None:
            session = self._session or boto3.session.Session()
            self._client = session.client("iam")
        return self._client

    def import_instance_role_from_profile_arn(self, profile_arn: str) -> str:
        """Return the ARN of the role attached to ``profile_arn``.

        Raises:
            RoleImportError: If the profile cannot be read or has no role
        """
        name = instance_profile_name_from_arn(profile_arn)
        if not name:
            raise RoleImportError(profile_arn, "cannot determine instance profile name")

        logger.debug(f"Looking up instance profile {name}")
        try:
            response = self.client.get_instance_profile(InstanceProfileName=name)
        except (ClientError, BotoCoreError) as e:
            raise RoleImportError(profile_arn, str(e)) from e

        roles = response.get("InstanceProfile", {}).get("Roles", [])
        if not roles:
            raise RoleImportError(profile_arn, "instance profile has no role attached")
        return roles[0]["Arn"]
