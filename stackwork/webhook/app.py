"""
Stackwork Webhook - FastAPI application receiving GitHub push events.

Each push to a repository with a matching pipeline starts that pipeline.
"""

import hashlib
import hmac
import logging
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, Header, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from ..aws.clients import ClientFactory
from ..pipelines.starter import PipelineStarter, PushEvent
from ..settings import get_settings

logger = logging.getLogger(__name__)


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check GitHub's ``X-Hub-Signature-256`` header against the body."""
    if not signature or not signature.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(f"sha256={expected}", signature)


def _default_starter() -> PipelineStarter:
    settings = get_settings()
    client = ClientFactory(region=settings.aws_region).create("stepfunctions")
    return PipelineStarter(client, suffix=settings.pipeline_suffix)


def create_app(starter_factory: Callable[[], PipelineStarter] | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        starter_factory: Builds the PipelineStarter per request (tests inject fakes)

    Returns:
        Configured FastAPI application instance
    """
    starter_factory = starter_factory or _default_starter

    app = FastAPI(
        title="Stackwork Webhook",
        description="Starts CI/CD pipelines for GitHub pushes",
        version="0.1.0",
    )

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """
        Health check endpoint.

        Returns:
            Dictionary with status
        """
        return {"status": "healthy"}

    @app.post("/webhook", status_code=status.HTTP_202_ACCEPTED)
    async def webhook(
        request: Request,
        x_github_event: str | None = Header(default=None),
        x_hub_signature_256: str | None = Header(default=None),
    ) -> dict[str, Any]:
        """Receive a GitHub webhook delivery."""
        body = await request.body()

        secret = get_settings().github_webhook_secret
        if not secret:
            logger.error("SW_GITHUB_WEBHOOK_SECRET is not set; rejecting delivery")
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Webhook secret not configured")
        if not verify_signature(secret, body, x_hub_signature_256):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

        if x_github_event != "push":
            return {"status": "ignored", "event": x_github_event}

        try:
            event = PushEvent.model_validate_json(body)
        except ValidationError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

        starter = starter_factory()
        execution_arn = await run_in_threadpool(starter.start_pipeline_if_exists, event)
        if execution_arn is None:
            return {"status": "no_pipeline", "repository": event.repository.name}
        return {"status": "started", "executionArn": execution_arn}

    return app


# Create default app instance
app = create_app()
