"""
Pytest configuration and fixtures for Stackwork tests.
"""

import pytest
from botocore.exceptions import ClientError

from stackwork.errors import DeliveryError
from stackwork.settings import reload_settings

CERTIFICATE_ARN = "arn:aws:acm:us-east-1:111111111111:certificate/example.com"
RESPONSE_URL = "https://cloudformation-custom-resource-response.s3.amazonaws.com/presigned"


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Reload settings from a clean environment with immediate polling."""
    for name in (
        "SW_FUNCTION_ARN",
        "SW_SCHEDULER_ROLE_ARN",
        "SW_GITHUB_TOKEN",
        "SW_GITHUB_WEBHOOK_SECRET",
        "SW_NOTIFICATION_ARN",
        "NOTIFICATION_ARN",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SW_POLL_INTERVAL_SECONDS", "0")
    yield reload_settings()
    monkeypatch.undo()
    reload_settings()


def make_event(request_type, properties=None, **fields):
    """Build a custom resource request envelope."""
    event = {
        "RequestType": request_type,
        "ResponseURL": RESPONSE_URL,
        "StackId": "arn:aws:cloudformation:us-east-1:111111111111:stack/web/1",
        "RequestId": "req-1",
        "LogicalResourceId": "Certificate",
        "ResourceType": "Custom::Certificate",
        "ResourceProperties": properties if properties is not None else {"DomainName": "example.com"},
    }
    event.update(fields)
    return event


def client_error(code, message="error", operation="Operation"):
    """Build a botocore ClientError with the given code."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class RecordingNotifier:
    """Notifier fake that records every delivery."""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def notify(self, response_url, response):
        self.sent.append((response_url, response))
        if self.fail:
            raise DeliveryError("callback unreachable")


class RecordingReinvoker:
    """Reinvoker fake that records every scheduled retry."""

    def __init__(self):
        self.scheduled = []

    def schedule_retry(self, request, interval_seconds):
        self.scheduled.append((request, interval_seconds))


class FakeRoute53:
    """In-memory hosted zones honoring CREATE and UPSERT semantics."""

    def __init__(self):
        self.zones = {}
        self.calls = []

    def change_resource_record_sets(self, HostedZoneId, ChangeBatch):
        self.calls.append((HostedZoneId, ChangeBatch))
        zone = self.zones.setdefault(HostedZoneId, {})
        for change in ChangeBatch["Changes"]:
            record_set = change["ResourceRecordSet"]
            key = (record_set["Name"], record_set["Type"])
            if change["Action"] == "CREATE" and key in zone:
                raise client_error("InvalidChangeBatch", "record already exists")
            zone[key] = [record["Value"] for record in record_set["ResourceRecords"]]
        return {"ChangeInfo": {"Status": "PENDING"}}


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def reinvoker():
    return RecordingReinvoker()


@pytest.fixture
def route53():
    return FakeRoute53()
