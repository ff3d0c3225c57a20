"""Request models for the deployment handlers."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CommitInfo(BaseModel):
    """Commit a deployment was built from."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    github_owner: str | None = Field(default=None, alias="GithubOwner")
    github_repository: str | None = Field(default=None, alias="GithubRepository")
    github_ref: str | None = Field(default=None, alias="GithubRef")


class StackDeploymentRequest(BaseModel):
    """Deploy a stack from a template packaged in a zip artifact.

    Attributes:
        zip_location: s3:// URI of the build artifact
        template_file_name: Template path inside the zip
        template_configuration_file_name: Optional template configuration inside the zip
        stack_name: Stack to create or update
        role_arn: Role the stack operation runs under
        parameter_overrides: Parameters that win over the template configuration
        capabilities: Capabilities to acknowledge (e.g. CAPABILITY_IAM)
        token: Step Functions task token of the waiting pipeline
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    zip_location: str = Field(alias="ZipLocation")
    template_file_name: str = Field(alias="TemplateFileName")
    template_configuration_file_name: str | None = Field(
        default=None, alias="TemplateConfigurationFileName"
    )
    stack_name: str = Field(alias="StackName")
    role_arn: str | None = Field(default=None, alias="RoleArn")
    parameter_overrides: dict[str, str] = Field(default_factory=dict, alias="ParameterOverrides")
    capabilities: list[str] = Field(default_factory=list, alias="Capabilities")
    token: str = Field(alias="Token")
    environment_name: str | None = Field(default=None, alias="EnvironmentName")
    commit_info: CommitInfo | None = Field(default=None, alias="CommitInfo")


class TemplateConfiguration(BaseModel):
    """Template configuration file: parameters, tags and stack policy."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    parameters: dict[str, str] = Field(default_factory=dict, alias="Parameters")
    tags: dict[str, str] = Field(default_factory=dict, alias="Tags")
    stack_policy: dict[str, Any] | None = Field(default=None, alias="StackPolicy")


class S3DeploymentRequest(BaseModel):
    """Unpack a zip artifact into a bucket."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    zip_location: str = Field(alias="ZipLocation")
    destination_bucket: str = Field(alias="DestinationBucket")
    role_arn: str | None = Field(default=None, alias="RoleArn")
    project_name: str | None = Field(default=None, alias="ProjectName")
    environment_name: str | None = Field(default=None, alias="EnvironmentName")
    commit_info: CommitInfo | None = Field(default=None, alias="CommitInfo")
