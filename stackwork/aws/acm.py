"""Certificate status oracle backed by AWS Certificate Manager."""

import logging
from enum import Enum
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, Field

from ..errors import TransientIOError
from .clients import error_code
from .route53 import ChallengeRecord

logger = logging.getLogger(__name__)


class CertificateStatus(str, Enum):
    """Certificate statuses reported by ACM."""
    PENDING_VALIDATION = "PENDING_VALIDATION"
    ISSUED = "ISSUED"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"
    VALIDATION_TIMED_OUT = "VALIDATION_TIMED_OUT"
    REVOKED = "REVOKED"
    FAILED = "FAILED"


class CertificateDescription(BaseModel):
    """Snapshot of a certificate as ACM reports it.

    ``status`` keeps the raw token so statuses added to ACM later still
    surface verbatim; compare it against ``CertificateStatus`` members.

    Attributes:
        arn: Certificate ARN
        status: Raw ACM status token
        challenges: Validation records not yet satisfied
        failure_reason: ACM's failure reason, when it gives one
    """

    arn: str
    status: str
    challenges: list[ChallengeRecord] = Field(default_factory=list)
    failure_reason: str | None = None


class AcmCertificateOracle:
    """Requests, describes and deletes certificates in ACM."""

    def __init__(self, acm_client: Any):
        self.client = acm_client

    def request(
        self,
        domain_name: str,
        subject_alternative_names: list[str],
        validation_method: str,
        idempotency_token: str,
    ) -> str:
        """Request a certificate, returning its ARN.

        ACM answers repeated requests that carry the same idempotency token
        with the ARN of the first one, so a retried Create finds the
        certificate it already started.

        Raises:
            TransientIOError: If ACM could not be reached or refused the request
        """
        params: dict[str, Any] = {
            "DomainName": domain_name,
            "ValidationMethod": validation_method,
            "IdempotencyToken": idempotency_token,
        }
        if subject_alternative_names:
            params["SubjectAlternativeNames"] = subject_alternative_names

        try:
            arn = self.client.request_certificate(**params)["CertificateArn"]
        except (BotoCoreError, ClientError) as e:
            raise TransientIOError(f"Could not request certificate for {domain_name}: {e}") from e

        logger.info(f"Requested certificate {arn} for {domain_name}")
        return arn

    def describe(self, arn: str) -> CertificateDescription:
        """Fetch the current status and outstanding validation records.

        Raises:
            TransientIOError: If ACM could not be reached
        """
        try:
            detail = self.client.describe_certificate(CertificateArn=arn)["Certificate"]
        except (BotoCoreError, ClientError) as e:
            raise TransientIOError(f"Could not describe certificate {arn}: {e}") from e

        challenges = []
        for option in detail.get("DomainValidationOptions") or []:
            record = option.get("ResourceRecord")
            if not record or option.get("ValidationStatus") == "SUCCESS":
                continue
            challenges.append(
                ChallengeRecord(name=record["Name"], type=record["Type"], value=record["Value"])
            )

        return CertificateDescription(
            arn=arn,
            status=str(detail.get("Status", "")),
            challenges=challenges,
            failure_reason=detail.get("FailureReason"),
        )

    def delete(self, arn: str) -> bool:
        """Delete a certificate.

        Returns:
            False if ACM no longer knows the certificate, True otherwise

        Raises:
            TransientIOError: For any other failure
        """
        try:
            self.client.delete_certificate(CertificateArn=arn)
        except ClientError as e:
            if error_code(e) == "ResourceNotFoundException":
                logger.info(f"Certificate {arn} was already deleted")
                return False
            raise TransientIOError(f"Could not delete certificate {arn}: {e}") from e
        except BotoCoreError as e:
            raise TransientIOError(f"Could not delete certificate {arn}: {e}") from e

        logger.info(f"Deleted certificate {arn}")
        return True
