"""Tests for pipeline triggering and commit statuses."""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from stackwork.errors import TransientIOError
from stackwork.pipelines.github import CommitState, CommitStatusReporter
from stackwork.pipelines.models import CommitInfo
from stackwork.pipelines.starter import PipelineStarter, PushEvent, execution_name
from tests.conftest import client_error

PIPELINE_ARN = "arn:aws:states:us-east-1:111111111111:stateMachine:web-cicd-pipeline"


def push_event(**fields):
    payload = {
        "ref": "refs/heads/main",
        "repository": {"name": "web", "full_name": "cythral/web"},
        "head_commit": {"id": "0123456789abcdef", "message": "Fix"},
        "pusher": {"name": "octocat"},
    }
    payload.update(fields)
    return PushEvent.model_validate(payload)


@pytest.fixture
def stepfunctions():
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = [
        {"stateMachines": [{"name": "api-cicd-pipeline", "stateMachineArn": "other"}]},
        {"stateMachines": [{"name": "web-cicd-pipeline", "stateMachineArn": PIPELINE_ARN}]},
    ]
    client.start_execution.return_value = {"executionArn": f"{PIPELINE_ARN}:run"}
    return client


class TestPipelineStarter:
    """Tests for PipelineStarter."""

    def test_start_execution_is_called(self, stepfunctions):
        event = push_event()

        execution_arn = PipelineStarter(stepfunctions).start_pipeline_if_exists(event)

        assert execution_arn == f"{PIPELINE_ARN}:run"
        kwargs = stepfunctions.start_execution.call_args.kwargs
        assert kwargs["stateMachineArn"] == PIPELINE_ARN
        assert kwargs["name"].startswith("0123456789abcdef-")
        payload = json.loads(kwargs["input"])
        assert payload["repository"]["name"] == "web"
        assert payload["pusher"] == {"name": "octocat"}

    def test_missing_pipeline_is_ignored(self, stepfunctions):
        event = push_event(repository={"name": "docs"})

        assert PipelineStarter(stepfunctions).start_pipeline_if_exists(event) is None
        stepfunctions.start_execution.assert_not_called()

    def test_custom_suffix(self, stepfunctions):
        stepfunctions.get_paginator.return_value.paginate.return_value = [
            {"stateMachines": [{"name": "web-deploy", "stateMachineArn": "custom"}]}
        ]

        assert PipelineStarter(stepfunctions, suffix="-deploy").find_pipeline("web") == "custom"

    def test_start_failure_raises(self, stepfunctions):
        stepfunctions.start_execution.side_effect = client_error("ExecutionLimitExceeded")

        with pytest.raises(TransientIOError):
            PipelineStarter(stepfunctions).start_pipeline_if_exists(push_event())

    def test_execution_name_without_commit(self):
        name = execution_name(push_event(head_commit=None))

        assert name.startswith("push-")
        assert len(name) <= 80


class TestCommitStatusReporter:
    """Tests for CommitStatusReporter."""

    commit = CommitInfo(github_owner="cythral", github_repository="web", github_ref="abc123")

    def test_posts_status(self):
        received = []

        def handler(request):
            received.append(request)
            return httpx.Response(201)

        reporter = CommitStatusReporter(
            token="gh-token",
            api_url="https://github.example/api/",
            transport=httpx.MockTransport(handler),
        )

        assert reporter.put_commit_status(
            self.commit, CommitState.SUCCESS, "AWS S3", "site", "prod", "https://details"
        )

        request = received[0]
        assert str(request.url) == "https://github.example/api/repos/cythral/web/statuses/abc123"
        assert request.headers["authorization"] == "Bearer gh-token"
        assert json.loads(request.content) == {
            "state": "success",
            "context": "AWS S3 - site (prod)",
            "description": "AWS S3 deployment success",
            "target_url": "https://details",
        }

    def test_skips_without_token(self):
        transport = httpx.MockTransport(lambda request: pytest.fail("should not be called"))

        reporter = CommitStatusReporter(transport=transport)

        assert reporter.put_commit_status(self.commit, CommitState.PENDING, "AWS S3", "site") is False

    def test_skips_without_commit(self):
        reporter = CommitStatusReporter(token="gh-token")

        assert reporter.put_commit_status(None, CommitState.PENDING, "AWS S3", "site") is False

    def test_github_failure_is_not_fatal(self):
        reporter = CommitStatusReporter(
            token="gh-token", transport=httpx.MockTransport(lambda request: httpx.Response(500))
        )

        assert reporter.put_commit_status(self.commit, CommitState.FAILURE, "AWS S3", "site") is False
