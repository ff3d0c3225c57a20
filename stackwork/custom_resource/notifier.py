"""Completion notifier: delivers the terminal Response to the callback URL."""

import json
import logging
from urllib.parse import urlparse

import httpx

from ..errors import DeliveryError
from ..settings import get_settings
from .envelope import Response

logger = logging.getLogger(__name__)


class CompletionNotifier:
    """PUTs a Response to the presigned callback URL of a request.

    The callback is a presigned S3 URL, which rejects any Content-Type the
    URL was not signed with, so the header is sent empty.

    Attributes:
        timeout: Seconds to wait for the callback
        retries: Connection retries handled by the transport
    """

    def __init__(
        self,
        timeout: float | None = None,
        retries: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the notifier.

        Args:
            timeout: Request timeout override (defaults to settings)
            retries: Connection retry override (defaults to settings)
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.notify_timeout_seconds
        self.retries = retries if retries is not None else settings.notify_retries
        self._transport = transport

    def notify(self, response_url: str | None, response: Response) -> None:
        """Deliver ``response`` to ``response_url``.

        Args:
            response_url: Callback reference from the request envelope
            response: Terminal outcome to deliver

        Raises:
            DeliveryError: If there is no callback or it could not be reached
        """
        if not response_url:
            raise DeliveryError("Request carries no ResponseURL")

        body = json.dumps(response.to_payload())
        host = urlparse(response_url).netloc

        logger.info(
            f"Sending {response.status.value} for {response.physical_resource_id} to {host}"
        )

        transport = self._transport or httpx.HTTPTransport(retries=self.retries)
        try:
            with httpx.Client(transport=transport, timeout=self.timeout) as client:
                result = client.put(
                    response_url,
                    content=body,
                    headers={"Content-Type": ""},
                )
        except httpx.HTTPError as e:
            raise DeliveryError(f"Could not reach callback at {host}: {e}") from e

        if result.is_error:
            raise DeliveryError(
                f"Callback at {host} rejected the response: HTTP {result.status_code}"
            )
