"""Custom::Certificate - ACM certificates validated through Route 53.

Create requests the certificate and upserts its DNS validation records into
the given hosted zone. Issuance takes minutes, so the handler then polls ACM
through Wait re-invocations until the certificate is issued or fails.

Example template usage:

    Certificate:
      Type: Custom::Certificate
      Properties:
        ServiceToken: !GetAtt CertificateFunction.Arn
        DomainName: example.com
        SubjectAlternativeNames: [www.example.com]
        ValidationMethod: DNS
        HostedZoneId: Z123EXAMPLE
"""

import hashlib
import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..aws.acm import AcmCertificateOracle, CertificateDescription, CertificateStatus
from ..aws.route53 import RecordReconciler
from ..custom_resource.envelope import Request
from ..custom_resource.notifier import CompletionNotifier
from ..custom_resource.provider import CustomResourceProvider, OperationState, PollResult
from ..custom_resource.reinvoker import Reinvoker

logger = logging.getLogger(__name__)


class ValidationMethod(str, Enum):
    """How ACM verifies domain ownership."""
    DNS = "DNS"
    EMAIL = "EMAIL"


class CertificateProperties(BaseModel):
    """Resource properties of a Custom::Certificate.

    Attributes:
        domain_name: Primary domain of the certificate
        subject_alternative_names: Additional domains, deduplicated and sorted
        validation_method: DNS or EMAIL validation
        hosted_zone_id: Zone that receives the DNS validation records
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    domain_name: str = Field(alias="DomainName", min_length=1)
    subject_alternative_names: tuple[str, ...] = Field(
        default=(), alias="SubjectAlternativeNames"
    )
    validation_method: ValidationMethod = Field(
        default=ValidationMethod.DNS, alias="ValidationMethod"
    )
    hosted_zone_id: str | None = Field(default=None, alias="HostedZoneId")

    @field_validator("subject_alternative_names", mode="before")
    @classmethod
    def _normalize_names(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        return tuple(sorted(set(value)))

    def certificate_identity(self) -> tuple[str, tuple[str, ...], ValidationMethod]:
        """Fields ACM cannot change on an existing certificate."""
        return (
            self.domain_name.lower(),
            tuple(name.lower() for name in self.subject_alternative_names),
            self.validation_method,
        )


class CertificateProvider(CustomResourceProvider[CertificateProperties]):
    """Provisions ACM certificates.

    Attributes:
        oracle: ACM access used to request, poll and delete certificates
        reconciler: Route 53 access used to publish validation records
    """

    properties_model = CertificateProperties
    failure_message = "Certificate could not be issued."

    def __init__(
        self,
        oracle: AcmCertificateOracle,
        reconciler: RecordReconciler,
        notifier: CompletionNotifier,
        reinvoker: Reinvoker,
        poll_interval: int | None = None,
    ):
        super().__init__(notifier, reinvoker, poll_interval=poll_interval)
        self.oracle = oracle
        self.reconciler = reconciler

    def create(self, request: Request[CertificateProperties]) -> str:
        properties = request.resource_properties
        arn = self.oracle.request(
            properties.domain_name,
            list(properties.subject_alternative_names),
            properties.validation_method.value,
            idempotency_token(request),
        )
        # Validation records are published by the Wait pass that follows
        return arn

    def poll(self, request: Request[CertificateProperties]) -> PollResult:
        description = self.oracle.describe(request.physical_resource_id)

        if description.status == CertificateStatus.PENDING_VALIDATION:
            # Every pending pass upserts; ACM can attach records late
            self._publish_challenges(request.resource_properties, description)
            return PollResult(OperationState.PENDING, description.status)

        if description.status == CertificateStatus.ISSUED:
            return PollResult(
                OperationState.SUCCEEDED,
                description.status,
                data={
                    "Arn": description.arn,
                    "DomainName": request.resource_properties.domain_name,
                },
            )

        if description.failure_reason:
            logger.warning(
                f"Certificate {description.arn} is {description.status}: {description.failure_reason}"
            )
        return PollResult(OperationState.FAILED, description.status)

    def delete(self, physical_resource_id: str) -> None:
        self.oracle.delete(physical_resource_id)

    def requires_replacement(self, request: Request[CertificateProperties]) -> bool:
        old = request.old_resource_properties
        if old is None:
            return True
        return old.certificate_identity() != request.resource_properties.certificate_identity()

    def _publish_challenges(
        self, properties: CertificateProperties, description: CertificateDescription
    ) -> None:
        if properties.validation_method is not ValidationMethod.DNS or not description.challenges:
            return

        if not properties.hosted_zone_id:
            names = ", ".join(sorted({record.name for record in description.challenges}))
            logger.info(f"No HostedZoneId given; create validation records manually: {names}")
            return

        self.reconciler.reconcile_all(properties.hosted_zone_id, description.challenges)


def idempotency_token(request: Request[CertificateProperties]) -> str:
    """Token that makes ACM return the same certificate for a repeated request.

    ACM accepts up to 32 word characters; a hex digest prefix fits.
    """
    properties = request.resource_properties
    domain, names, method = properties.certificate_identity()
    seed = "|".join(
        [
            request.stack_id or "",
            request.logical_resource_id or "",
            request.request_id or "",
            domain,
            ",".join(names),
            method.value,
        ]
    )
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()[:32]
