"""Tests for self-reinvocation."""

import json
from unittest.mock import MagicMock, Mock

import pytest

from stackwork.custom_resource.envelope import Request
from stackwork.custom_resource.reinvoker import (
    LambdaReinvoker,
    ScheduledReinvoker,
    build_reinvoker,
)
from stackwork.errors import ConfigurationError, TransientIOError
from stackwork.settings import StackworkSettings
from tests.conftest import CERTIFICATE_ARN, client_error, make_event

FUNCTION_ARN = "arn:aws:lambda:us-east-1:111111111111:function:certificate"


@pytest.fixture
def wait_request():
    return Request.parse(make_event("Create")).as_wait(CERTIFICATE_ARN)


@pytest.fixture
def client_factory():
    factory = Mock()
    factory.create.side_effect = lambda service, role_arn=None: MagicMock(name=service)
    return factory


def test_lambda_reinvoker_invokes_asynchronously(wait_request):
    """Test the Wait envelope is sent as an Event invocation."""
    client = MagicMock()

    LambdaReinvoker(client, FUNCTION_ARN).schedule_retry(wait_request, 0)

    client.invoke.assert_called_once()
    kwargs = client.invoke.call_args.kwargs
    assert kwargs["FunctionName"] == FUNCTION_ARN
    assert kwargs["InvocationType"] == "Event"
    payload = json.loads(kwargs["Payload"])
    assert payload["RequestType"] == "Wait"
    assert payload["PhysicalResourceId"] == CERTIFICATE_ARN


def test_lambda_reinvoker_wraps_errors(wait_request):
    """Test that a failed invoke raises TransientIOError."""
    client = MagicMock()
    client.invoke.side_effect = client_error("TooManyRequestsException")

    with pytest.raises(TransientIOError):
        LambdaReinvoker(client, FUNCTION_ARN).schedule_retry(wait_request, 0)


def test_scheduled_reinvoker_creates_one_time_schedule(wait_request):
    """Test a delayed re-invocation becomes a self-deleting schedule."""
    client = MagicMock()
    role = "arn:aws:iam::111111111111:role/scheduler"

    ScheduledReinvoker(client, FUNCTION_ARN, role, group="polls").schedule_retry(wait_request, 60)

    client.create_schedule.assert_called_once()
    kwargs = client.create_schedule.call_args.kwargs
    assert kwargs["GroupName"] == "polls"
    assert kwargs["ScheduleExpression"].startswith("at(")
    assert kwargs["ScheduleExpressionTimezone"] == "UTC"
    assert kwargs["ActionAfterCompletion"] == "DELETE"
    assert kwargs["Target"]["Arn"] == FUNCTION_ARN
    assert kwargs["Target"]["RoleArn"] == role
    assert json.loads(kwargs["Target"]["Input"])["RequestType"] == "Wait"
    assert len(kwargs["Name"]) <= 64


def test_scheduled_reinvoker_wraps_errors(wait_request):
    """Test that a failed schedule raises TransientIOError."""
    client = MagicMock()
    client.create_schedule.side_effect = client_error("ServiceQuotaExceededException")

    with pytest.raises(TransientIOError):
        ScheduledReinvoker(client, FUNCTION_ARN, "role").schedule_retry(wait_request, 60)


def test_build_requires_function(client_factory):
    """Test that a reinvoker cannot be built without a target."""
    with pytest.raises(ConfigurationError):
        build_reinvoker(StackworkSettings(), None, client_factory)


def test_build_uses_settings_function(client_factory):
    """Test the target falls back to settings."""
    settings = StackworkSettings(poll_interval_seconds=0, function_arn=FUNCTION_ARN)

    reinvoker = build_reinvoker(settings, None, client_factory)

    assert isinstance(reinvoker, LambdaReinvoker)
    assert reinvoker.function_name == FUNCTION_ARN


def test_build_schedules_when_delayed(client_factory):
    """Test a scheduler role enables delayed polling."""
    settings = StackworkSettings(poll_interval_seconds=30, scheduler_role_arn="role")

    reinvoker = build_reinvoker(settings, FUNCTION_ARN, client_factory)

    assert isinstance(reinvoker, ScheduledReinvoker)
    client_factory.create.assert_called_with("scheduler")


def test_build_rejects_delay_without_scheduler_role(client_factory):
    """Test the default delay is never silently dropped."""
    settings = StackworkSettings(poll_interval_seconds=60, function_arn=FUNCTION_ARN)

    with pytest.raises(ConfigurationError, match="SW_SCHEDULER_ROLE_ARN"):
        build_reinvoker(settings, None, client_factory)

    client_factory.create.assert_not_called()
