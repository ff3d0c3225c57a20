"""CI/CD orchestration: pipeline triggering, stack and S3 deployments."""

from .github import CommitState, CommitStatusReporter
from .models import CommitInfo, S3DeploymentRequest, StackDeploymentRequest, TemplateConfiguration
from .s3_deployment import S3Deployer
from .stack_deployment import StackDeployer
from .starter import PipelineStarter, PushEvent

__all__ = [
    "CommitInfo",
    "CommitState",
    "CommitStatusReporter",
    "PipelineStarter",
    "PushEvent",
    "S3Deployer",
    "S3DeploymentRequest",
    "StackDeployer",
    "StackDeploymentRequest",
    "TemplateConfiguration",
]
