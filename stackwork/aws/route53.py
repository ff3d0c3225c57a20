"""DNS record reconciler backed by Route 53."""

import logging
from collections.abc import Iterable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, ConfigDict

from ..errors import TransientIOError

logger = logging.getLogger(__name__)


class ChallengeRecord(BaseModel):
    """A DNS record that satisfies a validation challenge.

    Frozen and hashable, so the identical record requested for several
    domains (an apex and its wildcard, for instance) collapses into one.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    value: str


class RecordReconciler:
    """Applies validation challenge records to a hosted zone.

    Records are always written with UPSERT, so reconciling the same record
    again leaves the zone unchanged and concurrent reconcilers do not
    conflict.
    """

    def __init__(self, route53_client: Any, ttl: int = 60):
        self.client = route53_client
        self.ttl = ttl

    def reconcile(self, hosted_zone_id: str, record: ChallengeRecord) -> None:
        """Upsert ``record`` into ``hosted_zone_id``.

        Raises:
            TransientIOError: If Route 53 rejected or failed the change
        """
        try:
            self.client.change_resource_record_sets(
                HostedZoneId=hosted_zone_id,
                ChangeBatch={
                    "Comment": "Certificate validation record managed by stackwork",
                    "Changes": [
                        {
                            "Action": "UPSERT",
                            "ResourceRecordSet": {
                                "Name": record.name,
                                "Type": record.type,
                                "TTL": self.ttl,
                                "ResourceRecords": [{"Value": record.value}],
                            },
                        }
                    ],
                },
            )
        except (BotoCoreError, ClientError) as e:
            raise TransientIOError(
                f"Could not upsert {record.type} {record.name} in {hosted_zone_id}: {e}"
            ) from e

        logger.info(f"Upserted {record.type} {record.name} in {hosted_zone_id}")

    def reconcile_all(self, hosted_zone_id: str, records: Iterable[ChallengeRecord]) -> int:
        """Upsert each distinct record once.

        Returns:
            Number of distinct records reconciled
        """
        distinct = list(dict.fromkeys(records))
        for record in distinct:
            self.reconcile(hosted_zone_id, record)
        return len(distinct)
