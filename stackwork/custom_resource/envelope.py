"""Request and response envelopes for custom resource invocations.

Every invocation of a custom resource handler receives a ``Request`` and, once
the operation reaches a terminal state, answers with exactly one ``Response``.
Both models use the template engine's PascalCase wire names as aliases so they
can be read from and written to the wire unchanged, while Python code works
with snake_case attributes.

Example:
    >>> request = Request.parse(event).bind(CertificateProperties)
    >>> request.resource_properties.domain_name
    'example.com'
    >>> wait = request.as_wait("arn:aws:acm:us-east-1:1:certificate/abc")
    >>> wait.request_type
    <RequestType.WAIT: 'Wait'>
"""

import json
from enum import Enum
from typing import Any, Generic, Self, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..errors import InvalidRequestError

P = TypeVar("P")


class RequestType(str, Enum):
    """Lifecycle phase requested for a resource.

    ``WAIT`` never comes from the template engine; it is the internal phase a
    handler uses to re-enter itself while an operation is still pending.
    """
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    WAIT = "Wait"


class ResponseStatus(str, Enum):
    """Terminal outcome reported to the callback."""
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class InvalidPropertiesError(InvalidRequestError):
    """Resource properties failed validation against their model."""
    pass


class Request(BaseModel, Generic[P]):
    """Inbound envelope carried across every invocation boundary.

    Attributes:
        request_type: Lifecycle phase to run
        resource_properties: Operation-specific payload
        old_resource_properties: Previous payload (Update only)
        physical_resource_id: Stable identifier, absent before the first Create
        response_url: Callback that receives the single terminal Response
        stack_id: Parent stack identifier, echoed back in the Response
        request_id: Request identifier, echoed back in the Response
        logical_resource_id: Template logical id, echoed back in the Response
        resource_type: Template resource type (e.g. Custom::Certificate)
        service_token: Function that serves the resource
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    request_type: RequestType = Field(alias="RequestType")
    resource_properties: P = Field(alias="ResourceProperties")
    old_resource_properties: P | None = Field(default=None, alias="OldResourceProperties")
    physical_resource_id: str | None = Field(default=None, alias="PhysicalResourceId")
    response_url: str | None = Field(default=None, alias="ResponseURL")
    stack_id: str | None = Field(default=None, alias="StackId")
    request_id: str | None = Field(default=None, alias="RequestId")
    logical_resource_id: str | None = Field(default=None, alias="LogicalResourceId")
    resource_type: str | None = Field(default=None, alias="ResourceType")
    service_token: str | None = Field(default=None, alias="ServiceToken")

    @classmethod
    def parse(cls, event: dict[str, Any] | str | bytes) -> "Request[dict[str, Any]]":
        """Parse a raw inbound event with untyped properties.

        Properties stay a plain dict so that a malformed payload can still be
        answered through the envelope's callback. Use ``bind`` to validate
        them against an operation-specific model.

        Args:
            event: Decoded event dict, or its JSON text

        Returns:
            Request with dict properties

        Raises:
            InvalidRequestError: If the event is not a valid envelope
        """
        if isinstance(event, (str, bytes)):
            try:
                event = json.loads(event)
            except json.JSONDecodeError as e:
                raise InvalidRequestError(f"Event is not valid JSON: {e}") from e

        if isinstance(event, dict) and event.get("ResourceProperties") is None:
            event = {**event, "ResourceProperties": {}}

        try:
            return Request[dict[str, Any]].model_validate(event)
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid request envelope: {e}") from e

    def bind(self, properties_model: type[BaseModel]) -> "Request[Any]":
        """Validate the properties against ``properties_model``.

        Raises:
            InvalidPropertiesError: If the properties do not validate
        """
        try:
            return Request[properties_model].model_validate(
                self.model_dump(by_alias=True, exclude_none=True)
            )
        except ValidationError as e:
            raise InvalidPropertiesError(_summarize(e)) from e

    def as_wait(self, physical_resource_id: str) -> Self:
        """Return an equivalent Wait request for ``physical_resource_id``."""
        return self.model_copy(
            update={
                "request_type": RequestType.WAIT,
                "physical_resource_id": physical_resource_id,
            }
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize back to the wire shape."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Response(BaseModel):
    """Terminal outcome delivered to the request's callback.

    ``reason`` is present iff the status is FAILED and ``data`` iff it is
    SUCCESS. Build instances with ``success`` or ``failure``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    status: ResponseStatus = Field(alias="Status")
    physical_resource_id: str = Field(alias="PhysicalResourceId")
    reason: str | None = Field(default=None, alias="Reason")
    data: dict[str, Any] | None = Field(default=None, alias="Data")
    stack_id: str | None = Field(default=None, alias="StackId")
    request_id: str | None = Field(default=None, alias="RequestId")
    logical_resource_id: str | None = Field(default=None, alias="LogicalResourceId")
    no_echo: bool = Field(default=False, alias="NoEcho")

    @model_validator(mode="after")
    def _check_outcome_fields(self) -> Self:
        if self.status is ResponseStatus.FAILED:
            if not self.reason:
                raise ValueError("A FAILED response requires a reason")
            if self.data is not None:
                raise ValueError("A FAILED response cannot carry data")
        elif self.reason is not None:
            raise ValueError("A SUCCESS response cannot carry a reason")
        return self

    @classmethod
    def success(
        cls,
        request: Request[Any],
        physical_resource_id: str,
        data: dict[str, Any] | None = None,
    ) -> "Response":
        return cls(
            status=ResponseStatus.SUCCESS,
            physical_resource_id=physical_resource_id,
            data=data or {},
            **_echo(request),
        )

    @classmethod
    def failure(
        cls,
        request: Request[Any],
        physical_resource_id: str,
        reason: str,
    ) -> "Response":
        return cls(
            status=ResponseStatus.FAILED,
            physical_resource_id=physical_resource_id,
            reason=reason,
            **_echo(request),
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the callback wire shape."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def fallback_physical_id(request: Request[Any]) -> str:
    """Identifier to report when no resource was ever created."""
    return (
        request.physical_resource_id
        or request.logical_resource_id
        or request.request_id
        or "unassigned"
    )


def _echo(request: Request[Any]) -> dict[str, Any]:
    return {
        "stack_id": request.stack_id,
        "request_id": request.request_id,
        "logical_resource_id": request.logical_resource_id,
    }


def _summarize(error: ValidationError) -> str:
    # "ResourceProperties.DomainName: Field required" reads better in a stack event
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}")
    return "Invalid resource properties: " + "; ".join(parts)
