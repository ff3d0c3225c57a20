"""Deploy a zipped build artifact into an S3 bucket (static sites)."""

import logging
import mimetypes
from typing import Any

from ..aws.clients import ClientFactory
from ..errors import DeploymentError
from .artifacts import open_zip
from .github import CommitState, CommitStatusReporter
from .models import S3DeploymentRequest

logger = logging.getLogger(__name__)

SERVICE_NAME = "AWS S3"


class S3Deployer:
    """Replaces a bucket's content with the entries of a zip artifact.

    Existing objects are tagged ``dirty=true`` first; uploaded objects carry
    no tags, so whatever is still dirty afterwards is stale and can be
    expired by a lifecycle rule.
    """

    def __init__(self, client_factory: ClientFactory, status_reporter: CommitStatusReporter):
        self.client_factory = client_factory
        self.status_reporter = status_reporter

    def handle(self, request: S3DeploymentRequest) -> int:
        """Deploy the artifact.

        Returns:
            Number of objects uploaded

        Raises:
            DeploymentError: If any step failed (after reporting failure)
        """
        self._report(request, CommitState.PENDING)

        try:
            s3 = self.client_factory.create("s3", request.role_arn)
            self.mark_existing_objects_dirty(s3, request.destination_bucket)

            artifacts = self.client_factory.create("s3")
            with open_zip(artifacts, request.zip_location) as archive:
                uploaded = 0
                # ZipFile reads are not thread safe; upload sequentially
                for entry in archive.infolist():
                    if entry.is_dir():
                        continue
                    self.upload_entry(s3, request.destination_bucket, entry.filename, archive.read(entry))
                    uploaded += 1
        except Exception as e:
            logger.error(f"Got an error uploading files to {request.destination_bucket}: {e}")
            self._report(request, CommitState.FAILURE)
            raise DeploymentError(f"S3 deployment to {request.destination_bucket} failed: {e}") from e

        self._report(request, CommitState.SUCCESS)
        logger.info(f"Uploaded {uploaded} objects to {request.destination_bucket}")
        return uploaded

    def mark_existing_objects_dirty(self, s3: Any, bucket: str) -> int:
        marked = 0
        paginator = s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket):
            for obj in page.get("Contents", []):
                s3.put_object_tagging(
                    Bucket=bucket,
                    Key=obj["Key"],
                    Tagging={"TagSet": [{"Key": "dirty", "Value": "true"}]},
                )
                marked += 1
        logger.debug(f"Marked {marked} existing objects in {bucket} as dirty")
        return marked

    def upload_entry(self, s3: Any, bucket: str, key: str, body: bytes) -> None:
        content_type, _ = mimetypes.guess_type(key)
        s3.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType=content_type or "binary/octet-stream",
        )
        logger.info(f"Uploaded {key}")

    def _report(self, request: S3DeploymentRequest, state: CommitState) -> None:
        self.status_reporter.put_commit_status(
            request.commit_info,
            state,
            service_name=SERVICE_NAME,
            project_name=request.project_name or request.destination_bucket,
            environment_name=request.environment_name,
            details_url=(
                f"https://s3.console.aws.amazon.com/s3/buckets/{request.destination_bucket}/"
            ),
        )
