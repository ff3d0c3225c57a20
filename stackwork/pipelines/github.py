"""Commit status reporting to GitHub."""

import logging
from enum import Enum

import httpx

from ..settings import get_settings
from .models import CommitInfo

logger = logging.getLogger(__name__)


class CommitState(str, Enum):
    """States accepted by the GitHub commit status API."""
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"


class CommitStatusReporter:
    """Posts deployment progress as commit statuses."""

    def __init__(
        self,
        token: str | None = None,
        api_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        settings = get_settings()
        self.token = token or settings.github_token
        self.api_url = (api_url or settings.github_api_url).rstrip("/")
        self._transport = transport

    def put_commit_status(
        self,
        commit: CommitInfo | None,
        state: CommitState,
        service_name: str,
        project_name: str,
        environment_name: str | None = None,
        details_url: str | None = None,
    ) -> bool:
        """Set the status of ``commit`` for one deployment target.

        Reporting is best effort: a missing token or commit, or a GitHub
        failure, is logged and never fails the deployment.

        Returns:
            True if GitHub accepted the status
        """
        if not commit or not (commit.github_owner and commit.github_repository and commit.github_ref):
            logger.debug("No commit information; skipping commit status")
            return False
        if not self.token:
            logger.debug("SW_GITHUB_TOKEN is not set; skipping commit status")
            return False

        target = f"{project_name} ({environment_name})" if environment_name else project_name
        payload = {
            "state": state.value,
            "context": f"{service_name} - {target}",
            "description": f"{service_name} deployment {state.value}",
        }
        if details_url:
            payload["target_url"] = details_url

        url = (
            f"{self.api_url}/repos/{commit.github_owner}/{commit.github_repository}"
            f"/statuses/{commit.github_ref}"
        )
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
        }

        try:
            with httpx.Client(transport=self._transport, timeout=10.0) as client:
                response = client.post(url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Could not set commit status on {commit.github_ref}: {e}")
            return False

        logger.info(f"Commit {commit.github_ref} marked {state.value} for {target}")
        return True
