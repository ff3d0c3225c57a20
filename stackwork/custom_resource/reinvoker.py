"""Self-reinvocation: re-enter a handler later with an equivalent request.

A pending operation is never waited on inside an invocation. Instead the
handler dispatches a new, independent invocation of itself carrying the Wait
request and returns. Nothing is awaited or tracked after dispatch.
"""

import json
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ..aws.clients import ClientFactory
from ..errors import ConfigurationError, TransientIOError
from ..settings import StackworkSettings
from .envelope import Request

logger = logging.getLogger(__name__)


class Reinvoker(ABC):
    """Dispatches a fire-and-forget re-entry of the state machine."""

    @abstractmethod
    def schedule_retry(self, request: Request[Any], interval_seconds: int) -> None:
        """Dispatch ``request`` to run again after ``interval_seconds``.

        Raises:
            TransientIOError: If the dispatch itself could not be made
        """


class LambdaReinvoker(Reinvoker):
    """Re-invokes the function immediately through an asynchronous invoke."""

    def __init__(self, lambda_client: Any, function_name: str):
        self.client = lambda_client
        self.function_name = function_name

    def schedule_retry(self, request: Request[Any], interval_seconds: int = 0) -> None:
        if interval_seconds:
            logger.debug(
                f"Asynchronous invoke cannot delay; dispatching now instead of in {interval_seconds}s"
            )

        payload = json.dumps(request.to_payload())
        try:
            self.client.invoke(
                FunctionName=self.function_name,
                InvocationType="Event",
                Payload=payload,
            )
        except (BotoCoreError, ClientError) as e:
            raise TransientIOError(f"Could not re-invoke {self.function_name}: {e}") from e

        logger.info(
            f"Re-invoked {self.function_name} for {request.physical_resource_id}"
        )


class ScheduledReinvoker(Reinvoker):
    """Re-invokes the function later through a one-time EventBridge schedule.

    The schedule deletes itself after it fires.
    """

    def __init__(
        self,
        scheduler_client: Any,
        function_arn: str,
        role_arn: str,
        group: str = "default",
    ):
        self.client = scheduler_client
        self.function_arn = function_arn
        self.role_arn = role_arn
        self.group = group

    def schedule_retry(self, request: Request[Any], interval_seconds: int) -> None:
        fire_at = datetime.now(timezone.utc) + timedelta(seconds=interval_seconds)
        name = f"stackwork-wait-{uuid.uuid4().hex}"

        try:
            self.client.create_schedule(
                Name=name,
                GroupName=self.group,
                ScheduleExpression=f"at({fire_at:%Y-%m-%dT%H:%M:%S})",
                ScheduleExpressionTimezone="UTC",
                FlexibleTimeWindow={"Mode": "OFF"},
                ActionAfterCompletion="DELETE",
                Target={
                    "Arn": self.function_arn,
                    "RoleArn": self.role_arn,
                    "Input": json.dumps(request.to_payload()),
                },
            )
        except (BotoCoreError, ClientError) as e:
            raise TransientIOError(f"Could not schedule re-invocation {name}: {e}") from e

        logger.info(
            f"Scheduled {name} at {fire_at.isoformat()} for {request.physical_resource_id}"
        )


def build_reinvoker(
    settings: StackworkSettings,
    function_arn: str | None,
    client_factory: ClientFactory | None = None,
) -> Reinvoker:
    """Pick the reinvocation mechanism for the configured poll interval.

    Args:
        settings: Active settings
        function_arn: Function to re-enter, usually from the Lambda context
        client_factory: Factory for AWS clients

    Returns:
        A ScheduledReinvoker when a delay is configured, otherwise a
        LambdaReinvoker that re-enters immediately

    Raises:
        ConfigurationError: If no function to re-invoke is known, or a delay
            is configured without a scheduler role to honor it
    """
    function_arn = function_arn or settings.function_arn
    if not function_arn:
        raise ConfigurationError(
            "No function to re-invoke: run inside Lambda or set SW_FUNCTION_ARN"
        )

    client_factory = client_factory or ClientFactory(region=settings.aws_region)

    if settings.poll_interval_seconds > 0:
        if not settings.scheduler_role_arn:
            raise ConfigurationError(
                f"A {settings.poll_interval_seconds}s poll interval needs SW_SCHEDULER_ROLE_ARN; "
                "set it or set SW_POLL_INTERVAL_SECONDS=0 to re-poll immediately"
            )
        return ScheduledReinvoker(
            client_factory.create("scheduler"),
            function_arn,
            settings.scheduler_role_arn,
            group=settings.scheduler_group,
        )

    return LambdaReinvoker(client_factory.create("lambda"), function_arn)
