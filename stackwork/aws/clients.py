"""Factory for boto3 clients, optionally under an assumed role."""

import logging
import uuid
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import TransientIOError

logger = logging.getLogger(__name__)


class ClientFactory:
    """Creates boto3 clients for the configured region.

    When a role ARN is given the client runs under temporary credentials
    from ``sts:AssumeRole``; otherwise the default credential chain applies.

    Attributes:
        region: Region passed to every client (None uses the boto3 default)
    """

    def __init__(self, region: str | None = None, session: boto3.Session | None = None):
        self.region = region
        self._session = session or boto3.Session()

    def create(self, service: str, role_arn: str | None = None) -> Any:
        """Create a client for ``service``.

        Args:
            service: boto3 service name, e.g. "acm" or "route53"
            role_arn: Optional role to assume first

        Returns:
            boto3 client

        Raises:
            TransientIOError: If the role could not be assumed
        """
        if not role_arn:
            return self._session.client(service, region_name=self.region)

        sts = self._session.client("sts", region_name=self.region)
        try:
            credentials = sts.assume_role(
                RoleArn=role_arn,
                RoleSessionName=f"stackwork-{uuid.uuid4().hex[:16]}",
            )["Credentials"]
        except (BotoCoreError, ClientError) as e:
            raise TransientIOError(f"Could not assume role {role_arn}: {e}") from e

        logger.debug(f"Assumed {role_arn} for {service}")
        return self._session.client(
            service,
            region_name=self.region,
            aws_access_key_id=credentials["AccessKeyId"],
            aws_secret_access_key=credentials["SecretAccessKey"],
            aws_session_token=credentials["SessionToken"],
        )


def error_code(error: Exception) -> str | None:
    """Return the AWS error code of a botocore ClientError, if any."""
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None
