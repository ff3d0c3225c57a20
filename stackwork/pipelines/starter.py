"""Start a repository's CI/CD pipeline when code is pushed."""

import logging
import re
import uuid
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, ConfigDict

from ..errors import TransientIOError

logger = logging.getLogger(__name__)


class Repository(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    full_name: str | None = None


class HeadCommit(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str


class PushEvent(BaseModel):
    """GitHub push webhook payload; unknown fields are kept for the pipeline."""

    model_config = ConfigDict(extra="allow")

    ref: str | None = None
    repository: Repository
    head_commit: HeadCommit | None = None


class PipelineStarter:
    """Starts the Step Functions pipeline named after a pushed repository.

    Attributes:
        suffix: Appended to the repository name to form the state machine name
    """

    def __init__(self, stepfunctions_client: Any, suffix: str = "-cicd-pipeline"):
        self.client = stepfunctions_client
        self.suffix = suffix

    def find_pipeline(self, repository_name: str) -> str | None:
        """Return the ARN of the repository's pipeline, if one exists."""
        pipeline_name = f"{repository_name}{self.suffix}"
        try:
            paginator = self.client.get_paginator("list_state_machines")
            for page in paginator.paginate():
                for machine in page.get("stateMachines", []):
                    if machine["name"] == pipeline_name:
                        return machine["stateMachineArn"]
        except (BotoCoreError, ClientError) as e:
            raise TransientIOError(f"Could not list state machines: {e}") from e
        return None

    def start_pipeline_if_exists(self, event: PushEvent) -> str | None:
        """Start the pipeline for ``event``'s repository.

        Returns:
            Execution ARN, or None when the repository has no pipeline
        """
        repository_name = event.repository.name
        state_machine_arn = self.find_pipeline(repository_name)
        if not state_machine_arn:
            logger.info(f"No pipeline for {repository_name}; ignoring push")
            return None

        try:
            execution = self.client.start_execution(
                stateMachineArn=state_machine_arn,
                name=execution_name(event),
                input=event.model_dump_json(),
            )
        except (BotoCoreError, ClientError) as e:
            raise TransientIOError(f"Could not start pipeline for {repository_name}: {e}") from e

        logger.info(f"Started {execution['executionArn']}")
        return execution["executionArn"]


def execution_name(event: PushEvent) -> str:
    """Unique execution name, led by the commit id when there is one."""
    suffix = uuid.uuid4().hex[:8]
    if event.head_commit:
        commit = re.sub(r"[^0-9A-Za-z_-]", "", event.head_commit.id)[:40]
        return f"{commit}-{suffix}"
    return f"push-{uuid.uuid4().hex}"
