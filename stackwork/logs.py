"""Logging setup shared by the Lambda entry points and the CLI."""

import logging

from .settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging():
    """Configure logging based on settings.

    The Lambda runtime installs its own root handler before any user code
    runs, so the level is set on the root logger explicitly as well.
    """
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))
