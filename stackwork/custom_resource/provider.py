"""Provisioning state machine for asynchronous custom resources.

A custom resource handler is invoked once per lifecycle request and keeps no
memory between invocations. Long-running operations are driven to completion
by polling:

    Create ──► create() ──► Wait ──► poll() ──┬─ pending ──► schedule re-entry
                                              ├─ succeeded ─► notify SUCCESS
                                              └─ failed ────► notify FAILED

Everything the next invocation needs travels in the Wait request itself, so
any number of Wait invocations may run for one resource; only the one that
observes a terminal status sends the response.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, assert_never

from pydantic import BaseModel

from ..settings import get_settings
from ..errors import DeliveryError
from .envelope import (
    InvalidPropertiesError,
    Request,
    RequestType,
    Response,
    fallback_physical_id,
)
from .notifier import CompletionNotifier
from .reinvoker import Reinvoker

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseModel)


class OperationState(str, Enum):
    """Progress of an operation as derived from the oracle."""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class PollResult:
    """Outcome of one poll of the oracle.

    Attributes:
        state: Whether the operation is pending or terminal
        status_token: The oracle's raw status, quoted in failure reasons
        data: Outputs to return on success
    """

    state: OperationState
    status_token: str
    data: dict[str, Any] = field(default_factory=dict)


class CustomResourceProvider(ABC, Generic[P]):
    """Base class for custom resources whose operations complete asynchronously.

    Subclasses describe a resource with ``properties_model`` and implement
    ``create``, ``delete`` and ``poll``; this class owns dispatch, the Wait
    loop and the single terminal notification.

    Attributes:
        properties_model: Pydantic model for ResourceProperties
        failure_message: Prefix of the reason sent when an operation fails
        notifier: Delivers the terminal Response
        reinvoker: Schedules the next Wait invocation
        poll_interval: Seconds between Wait invocations
    """

    properties_model: type[P]
    failure_message: str = "Operation could not be completed."

    def __init__(
        self,
        notifier: CompletionNotifier,
        reinvoker: Reinvoker,
        poll_interval: int | None = None,
    ):
        self.notifier = notifier
        self.reinvoker = reinvoker
        self.poll_interval = (
            poll_interval if poll_interval is not None else get_settings().poll_interval_seconds
        )

    @abstractmethod
    def create(self, request: Request[P]) -> str:
        """Start the operation and apply any side effects it needs.

        Must be safe to repeat for the same request.

        Returns:
            Physical resource id of the started operation
        """

    @abstractmethod
    def delete(self, physical_resource_id: str) -> None:
        """Deprovision the resource named by ``physical_resource_id``."""

    @abstractmethod
    def poll(self, request: Request[P]) -> PollResult:
        """Ask the oracle how the operation behind ``request`` is progressing."""

    def requires_replacement(self, request: Request[P]) -> bool:
        """Whether an Update needs a new resource.

        The default replaces whenever the properties changed or the previous
        properties are unknown.
        """
        old = request.old_resource_properties
        return old is None or old != request.resource_properties

    def handle(self, event: dict[str, Any] | str | bytes) -> Response | None:
        """Run one invocation.

        Args:
            event: Inbound request envelope

        Returns:
            The Response that was sent, or None while the operation is pending

        Raises:
            InvalidRequestError: If the envelope itself is malformed
            TransientIOError: If an AWS call failed; the invocation should be
                retried as a whole
        """
        raw = Request.parse(event)
        logger.info(
            f"{raw.request_type.value} {raw.resource_type or 'resource'} "
            f"{raw.logical_resource_id} ({raw.physical_resource_id or 'unassigned'})"
        )

        try:
            request = raw.bind(self.properties_model)
        except InvalidPropertiesError as e:
            return self._reject(raw, e)

        return self._dispatch(request)

    def _dispatch(self, request: Request[P]) -> Response | None:
        match request.request_type:
            case RequestType.CREATE:
                return self._on_create(request)
            case RequestType.UPDATE:
                return self._on_update(request)
            case RequestType.DELETE:
                return self._on_delete(request)
            case RequestType.WAIT:
                return self._on_wait(request)
            case _ as unreachable:
                assert_never(unreachable)

    def _on_create(self, request: Request[P]) -> Response | None:
        physical_resource_id = self.create(request)
        return self._dispatch(request.as_wait(physical_resource_id))

    def _on_update(self, request: Request[P]) -> Response | None:
        if request.physical_resource_id and not self.requires_replacement(request):
            logger.info(f"No replacement needed for {request.physical_resource_id}")
            return self._dispatch(request.as_wait(request.physical_resource_id))
        return self._on_create(request)

    def _on_delete(self, request: Request[Any]) -> Response:
        if request.physical_resource_id:
            try:
                self.delete(request.physical_resource_id)
            except Exception as e:
                # Delete always reports success
                logger.warning(
                    f"Ignoring failure deleting {request.physical_resource_id}: {e}"
                )
        return self._complete(request, Response.success(request, fallback_physical_id(request)))

    def _on_wait(self, request: Request[P]) -> Response | None:
        physical_resource_id = request.physical_resource_id
        if not physical_resource_id:
            return self._complete(
                request,
                Response.failure(
                    request,
                    fallback_physical_id(request),
                    "Wait request carries no PhysicalResourceId",
                ),
            )

        result = self.poll(request)

        match result.state:
            case OperationState.PENDING:
                logger.info(
                    f"{physical_resource_id} is {result.status_token}; "
                    f"checking again in {self.poll_interval}s"
                )
                self.reinvoker.schedule_retry(request, self.poll_interval)
                return None
            case OperationState.SUCCEEDED:
                response = Response.success(request, physical_resource_id, result.data)
            case OperationState.FAILED:
                response = Response.failure(
                    request,
                    physical_resource_id,
                    f"{self.failure_message} (Got status: {result.status_token})",
                )
            case _ as unreachable:
                assert_never(unreachable)

        return self._complete(request, response)

    def _reject(self, request: Request[Any], error: InvalidPropertiesError) -> Response:
        if request.request_type is RequestType.DELETE:
            logger.warning(f"Deleting despite invalid properties: {error}")
            return self._on_delete(request)

        logger.error(str(error))
        return self._complete(
            request, Response.failure(request, fallback_physical_id(request), str(error))
        )

    def _complete(self, request: Request[Any], response: Response) -> Response:
        try:
            self.notifier.notify(request.response_url, response)
        except DeliveryError as e:
            logger.error(
                f"Operation on {response.physical_resource_id} finished with "
                f"{response.status.value} but the response was not delivered: {e}"
            )
        return response
