"""Deploy stacks on behalf of a waiting pipeline task.

Deployment requests arrive as SQS messages sent by a Step Functions task
that waits on a task token. The deployer starts the stack operation and
answers the task right away only when nothing will follow: on failure, and
when the stack is already up to date. Started operations report through the
stack's notification topic, correlated by the client request token.
"""

import hashlib
import json
import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from ..aws.clients import ClientFactory, error_code
from ..errors import InvalidRequestError, TransientIOError
from .artifacts import open_zip, read_zip_entry
from .models import StackDeploymentRequest, TemplateConfiguration

logger = logging.getLogger(__name__)

NO_UPDATES_MESSAGE = "No updates are to be performed"


class StackDeployer:
    """Creates or updates stacks from zipped build artifacts.

    Attributes:
        client_factory: Creates S3 and CloudFormation clients
        stepfunctions: Client used to answer the pipeline task
        notification_arn: SNS topic that receives stack events
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        stepfunctions_client: Any,
        notification_arn: str | None = None,
    ):
        self.client_factory = client_factory
        self.stepfunctions = stepfunctions_client
        self.notification_arn = notification_arn

    def handle(self, sqs_event: dict[str, Any]) -> list[str]:
        """Process every deployment request in an SQS event.

        Returns:
            Names of the stacks whose deployment was started or confirmed
        """
        deployed = []
        for record in sqs_event.get("Records", []):
            request = parse_request(record)
            if self.deploy(request, record.get("messageId", "")):
                deployed.append(request.stack_name)
        return deployed

    def deploy(self, request: StackDeploymentRequest, message_id: str) -> bool:
        """Deploy one stack, reporting failures to the pipeline task.

        Returns:
            True if the deployment was started or was already current
        """
        try:
            s3 = self.client_factory.create("s3")
            with open_zip(s3, request.zip_location) as archive:
                template = read_zip_entry(archive, request.template_file_name)
                configuration = load_configuration(archive, request.template_configuration_file_name)

            cloudformation = self.client_factory.create("cloudformation", request.role_arn)
            started = self.create_or_update(
                cloudformation,
                request,
                template,
                configuration,
                client_request_token(message_id or request.token),
            )
        except Exception as e:
            logger.error(f"Deployment of {request.stack_name} failed: {e}")
            self._send_task_failure(request, str(e))
            return False

        if not started:
            logger.info(f"{request.stack_name} is already up to date")
            self._send_task_success(request, {"StackName": request.stack_name, "Changed": False})
        return True

    def create_or_update(
        self,
        cloudformation: Any,
        request: StackDeploymentRequest,
        template: str,
        configuration: TemplateConfiguration,
        token: str,
    ) -> bool:
        """Start a create or update of the stack.

        Returns:
            False if CloudFormation reported that nothing changed
        """
        params: dict[str, Any] = {
            "StackName": request.stack_name,
            "TemplateBody": template,
            "Parameters": [
                {"ParameterKey": key, "ParameterValue": value}
                for key, value in merge_parameters(
                    configuration.parameters, request.parameter_overrides
                ).items()
            ],
            "Capabilities": request.capabilities,
            "ClientRequestToken": token,
            "Tags": [{"Key": key, "Value": value} for key, value in configuration.tags.items()],
        }
        if self.notification_arn:
            params["NotificationARNs"] = [self.notification_arn]
        if configuration.stack_policy:
            params["StackPolicyBody"] = json.dumps(configuration.stack_policy)

        if not stack_exists(cloudformation, request.stack_name):
            cloudformation.create_stack(**params)
            logger.info(f"Creating stack {request.stack_name}")
            return True

        try:
            cloudformation.update_stack(**params)
        except ClientError as e:
            if NO_UPDATES_MESSAGE in str(e):
                return False
            raise
        logger.info(f"Updating stack {request.stack_name}")
        return True

    def _send_task_success(self, request: StackDeploymentRequest, output: dict[str, Any]) -> None:
        try:
            self.stepfunctions.send_task_success(taskToken=request.token, output=json.dumps(output))
        except (BotoCoreError, ClientError) as e:
            raise TransientIOError(f"Could not report success for {request.stack_name}: {e}") from e

    def _send_task_failure(self, request: StackDeploymentRequest, cause: str) -> None:
        try:
            self.stepfunctions.send_task_failure(
                taskToken=request.token,
                error="DeploymentFailed",
                cause=cause[:32768],
            )
        except (BotoCoreError, ClientError) as e:
            raise TransientIOError(f"Could not report failure for {request.stack_name}: {e}") from e


def parse_request(record: dict[str, Any]) -> StackDeploymentRequest:
    """Read the deployment request from an SQS record body."""
    try:
        return StackDeploymentRequest.model_validate_json(record.get("body") or "")
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid stack deployment request: {e}") from e


def load_configuration(archive: Any, file_name: str | None) -> TemplateConfiguration:
    """Load the template configuration file, or an empty one if none is named."""
    if not file_name:
        return TemplateConfiguration()
    return TemplateConfiguration.model_validate_json(read_zip_entry(archive, file_name))


def merge_parameters(parameters: dict[str, str], overrides: dict[str, str]) -> dict[str, str]:
    """Overlay ``overrides`` on ``parameters``."""
    return {**parameters, **overrides}


def stack_exists(cloudformation: Any, stack_name: str) -> bool:
    try:
        cloudformation.describe_stacks(StackName=stack_name)
    except ClientError as e:
        if error_code(e) == "ValidationError" and "does not exist" in str(e):
            return False
        raise
    return True


def client_request_token(seed: str) -> str:
    """Deterministic token so a redelivered message cannot start a second operation."""
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()[:64]
