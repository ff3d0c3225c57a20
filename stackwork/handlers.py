"""
Lambda entry points.

Each handler configures logging, wires real AWS clients from settings and
delegates to the component that does the work.
"""

import logging
from typing import Any

from pydantic import ValidationError

from .aws.acm import AcmCertificateOracle
from .aws.clients import ClientFactory
from .aws.route53 import RecordReconciler
from .custom_resource.notifier import CompletionNotifier
from .custom_resource.reinvoker import build_reinvoker
from .errors import InvalidRequestError
from .logs import configure_logging
from .pipelines.github import CommitStatusReporter
from .pipelines.models import S3DeploymentRequest
from .pipelines.s3_deployment import S3Deployer
from .pipelines.stack_deployment import StackDeployer
from .resources.certificate import CertificateProvider
from .settings import get_settings

logger = logging.getLogger(__name__)


def build_certificate_provider(
    function_arn: str | None = None,
    client_factory: ClientFactory | None = None,
) -> CertificateProvider:
    """Wire a CertificateProvider against real AWS services.

    Args:
        function_arn: Function that serves the resource, re-invoked while pending
        client_factory: Optional factory override

    Returns:
        Ready-to-use CertificateProvider
    """
    settings = get_settings()
    client_factory = client_factory or ClientFactory(region=settings.aws_region)

    return CertificateProvider(
        oracle=AcmCertificateOracle(client_factory.create("acm")),
        reconciler=RecordReconciler(client_factory.create("route53"), ttl=settings.record_ttl),
        notifier=CompletionNotifier(),
        reinvoker=build_reinvoker(settings, function_arn, client_factory),
        poll_interval=settings.poll_interval_seconds,
    )


def certificate_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any] | None:
    """Serve Custom::Certificate requests."""
    configure_logging()
    provider = build_certificate_provider(getattr(context, "invoked_function_arn", None))
    response = provider.handle(event)
    return response.to_payload() if response else None


def stack_deployment_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Serve stack deployment requests delivered through SQS."""
    configure_logging()
    settings = get_settings()
    client_factory = ClientFactory(region=settings.aws_region)
    deployer = StackDeployer(
        client_factory,
        client_factory.create("stepfunctions"),
        notification_arn=settings.notification_arn,
    )
    return {"deployed": deployer.handle(event)}


def s3_deployment_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Serve S3 deployment requests invoked directly by the pipeline."""
    configure_logging()
    try:
        request = S3DeploymentRequest.model_validate(event)
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid S3 deployment request: {e}") from e

    settings = get_settings()
    deployer = S3Deployer(ClientFactory(region=settings.aws_region), CommitStatusReporter())
    return {"success": True, "uploaded": deployer.handle(request)}
