"""
Stackwork Settings - Configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find project root (where .env file is located)
PROJECT_ROOT = Path(__file__).parent.parent


class StackworkSettings(BaseSettings):
    """
    Stackwork configuration settings.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file in current directory
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="SW_",  # All Stackwork env vars must start with SW_
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR) (env: SW_LOG_LEVEL)",
    )

    # AWS Configuration
    aws_region: str | None = Field(
        default=None,
        description="Region for AWS clients, falls back to the boto3 default chain (env: SW_AWS_REGION or AWS_REGION)",
        validation_alias=AliasChoices("SW_AWS_REGION", "AWS_REGION"),
    )

    # Polling Configuration
    poll_interval_seconds: int = Field(
        default=60,
        ge=0,
        description="Delay between Wait re-invocations of a pending operation (env: SW_POLL_INTERVAL_SECONDS)",
    )

    function_arn: str | None = Field(
        default=None,
        description="Function to re-invoke when the Lambda context does not provide one (env: SW_FUNCTION_ARN)",
    )

    scheduler_role_arn: str | None = Field(
        default=None,
        description="Role EventBridge Scheduler assumes to invoke the function (env: SW_SCHEDULER_ROLE_ARN)",
    )

    scheduler_group: str = Field(
        default="default",
        description="EventBridge Scheduler group for one-time poll schedules (env: SW_SCHEDULER_GROUP)",
    )

    # DNS Configuration
    record_ttl: int = Field(
        default=60,
        ge=0,
        description="TTL for validation records upserted into Route 53 (env: SW_RECORD_TTL)",
    )

    # Callback Configuration
    notify_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for the completion callback PUT (env: SW_NOTIFY_TIMEOUT_SECONDS)",
    )

    notify_retries: int = Field(
        default=2,
        ge=0,
        description="Connection retries for the completion callback PUT (env: SW_NOTIFY_RETRIES)",
    )

    # Deployment Configuration
    notification_arn: str | None = Field(
        default=None,
        description="SNS topic for stack events (env: SW_NOTIFICATION_ARN or NOTIFICATION_ARN)",
        validation_alias=AliasChoices("SW_NOTIFICATION_ARN", "NOTIFICATION_ARN"),
    )

    pipeline_suffix: str = Field(
        default="-cicd-pipeline",
        description="Suffix appended to a repository name to find its pipeline (env: SW_PIPELINE_SUFFIX)",
    )

    # GitHub Configuration
    github_token: str | None = Field(
        default=None,
        description="Token used to report commit statuses (env: SW_GITHUB_TOKEN)",
    )

    github_webhook_secret: str | None = Field(
        default=None,
        description="Shared secret for webhook signature validation (env: SW_GITHUB_WEBHOOK_SECRET)",
    )

    github_api_url: str = Field(
        default="https://api.github.com",
        description="Base URL for the GitHub REST API (env: SW_GITHUB_API_URL)",
    )


# Global settings instance
_settings: StackworkSettings | None = None


def get_settings() -> StackworkSettings:
    """
    Get the global settings instance.

    Creates the settings instance on first call, then returns cached instance.

    Returns:
        StackworkSettings instance
    """
    global _settings
    if _settings is None:
        _settings = StackworkSettings()
    return _settings


def reload_settings() -> StackworkSettings:
    """
    Reload settings from environment/files.

    Useful for testing or when .env file changes.

    Returns:
        Fresh StackworkSettings instance
    """
    global _settings
    _settings = StackworkSettings()
    return _settings
