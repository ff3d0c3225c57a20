"""Tests for CompletionNotifier."""

import json

import httpx
import pytest

from stackwork.custom_resource.envelope import Request, Response
from stackwork.custom_resource.notifier import CompletionNotifier
from stackwork.errors import DeliveryError
from tests.conftest import CERTIFICATE_ARN, RESPONSE_URL, make_event


@pytest.fixture
def response():
    return Response.success(Request.parse(make_event("Create")), CERTIFICATE_ARN)


def test_notify_puts_response(response):
    """Test that the response is PUT to the callback with an empty content type."""
    received = []

    def handler(request):
        received.append(request)
        return httpx.Response(200)

    CompletionNotifier(transport=httpx.MockTransport(handler)).notify(RESPONSE_URL, response)

    assert len(received) == 1
    request = received[0]
    assert request.method == "PUT"
    assert str(request.url) == RESPONSE_URL
    assert request.headers["content-type"] == ""
    body = json.loads(request.content)
    assert body["Status"] == "SUCCESS"
    assert body["PhysicalResourceId"] == CERTIFICATE_ARN


def test_notify_raises_on_rejection(response):
    """Test that an HTTP error status raises DeliveryError."""
    transport = httpx.MockTransport(lambda request: httpx.Response(403))

    with pytest.raises(DeliveryError, match="403"):
        CompletionNotifier(transport=transport).notify(RESPONSE_URL, response)


def test_notify_raises_when_unreachable(response):
    """Test that a transport failure raises DeliveryError."""

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DeliveryError):
        CompletionNotifier(transport=httpx.MockTransport(handler)).notify(RESPONSE_URL, response)


def test_notify_requires_callback(response):
    """Test that a request without ResponseURL cannot be answered."""
    with pytest.raises(DeliveryError):
        CompletionNotifier(transport=httpx.MockTransport(lambda r: httpx.Response(200))).notify(
            None, response
        )


def test_defaults_come_from_settings(monkeypatch):
    """Test timeout and retries default to settings."""
    monkeypatch.setenv("SW_NOTIFY_TIMEOUT_SECONDS", "3.5")
    monkeypatch.setenv("SW_NOTIFY_RETRIES", "5")
    from stackwork.settings import reload_settings

    reload_settings()
    notifier = CompletionNotifier()

    assert notifier.timeout == 3.5
    assert notifier.retries == 5
