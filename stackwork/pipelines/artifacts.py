"""Helpers for build artifacts stored as zip files in S3."""

import io
import logging
import zipfile
from typing import Any
from urllib.parse import urlparse

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import DeploymentError, TransientIOError

logger = logging.getLogger(__name__)


def parse_s3_location(location: str) -> tuple[str, str]:
    """Split an ``s3://bucket/key`` URI into bucket and key.

    Raises:
        DeploymentError: If the location is not an s3:// URI with a key
    """
    parsed = urlparse(location)
    key = parsed.path.lstrip("/")
    if parsed.scheme.lower() != "s3" or not parsed.netloc or not key:
        raise DeploymentError(f"Not an s3://bucket/key location: {location}")
    return parsed.netloc, key


def open_zip(s3_client: Any, location: str) -> zipfile.ZipFile:
    """Download the zip at ``location`` into memory and open it."""
    bucket, key = parse_s3_location(location)
    try:
        body = s3_client.get_object(Bucket=bucket, Key=key)["Body"].read()
    except (BotoCoreError, ClientError) as e:
        raise TransientIOError(f"Could not download {location}: {e}") from e

    logger.debug(f"Downloaded {len(body)} bytes from {location}")
    try:
        return zipfile.ZipFile(io.BytesIO(body))
    except zipfile.BadZipFile as e:
        raise DeploymentError(f"{location} is not a zip archive") from e


def read_zip_entry(archive: zipfile.ZipFile, name: str) -> str:
    """Read a text entry from an open archive."""
    try:
        return archive.read(name).decode("utf-8")
    except KeyError as e:
        raise DeploymentError(f"{name} not found in artifact") from e
