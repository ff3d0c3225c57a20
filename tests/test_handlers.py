"""Tests for the Lambda entry points."""

from unittest.mock import MagicMock, Mock, patch

import pytest

from stackwork.custom_resource.reinvoker import LambdaReinvoker
from stackwork.errors import InvalidRequestError
from stackwork.handlers import (
    build_certificate_provider,
    certificate_handler,
    s3_deployment_handler,
)
from stackwork.resources.certificate import CertificateProvider
from tests.conftest import CERTIFICATE_ARN, make_event

FUNCTION_ARN = "arn:aws:lambda:us-east-1:111111111111:function:certificate"


def test_build_certificate_provider_wires_clients():
    """Test the provider is built from factory clients and settings."""
    factory = Mock()
    factory.create.side_effect = lambda service, role_arn=None: MagicMock(name=service)

    provider = build_certificate_provider(FUNCTION_ARN, client_factory=factory)

    assert isinstance(provider, CertificateProvider)
    assert isinstance(provider.reinvoker, LambdaReinvoker)
    assert provider.poll_interval == 0
    services = [call.args[0] for call in factory.create.call_args_list]
    assert services == ["acm", "route53", "lambda"]


def test_certificate_handler_returns_payload():
    """Test the handler uses the context's function ARN and returns the response payload."""
    provider = Mock()
    provider.handle.return_value.to_payload.return_value = {"Status": "SUCCESS"}
    context = Mock(invoked_function_arn=FUNCTION_ARN)

    with patch("stackwork.handlers.build_certificate_provider", return_value=provider) as build:
        result = certificate_handler(make_event("Delete", PhysicalResourceId=CERTIFICATE_ARN), context)

    build.assert_called_once_with(FUNCTION_ARN)
    assert result == {"Status": "SUCCESS"}


def test_certificate_handler_pending_returns_none():
    """Test a pending operation returns nothing."""
    provider = Mock()
    provider.handle.return_value = None

    with patch("stackwork.handlers.build_certificate_provider", return_value=provider):
        assert certificate_handler(make_event("Create")) is None


def test_s3_deployment_handler_rejects_invalid_event():
    """Test an invalid S3 deployment request raises."""
    with pytest.raises(InvalidRequestError):
        s3_deployment_handler({"DestinationBucket": "www.example.com"})
