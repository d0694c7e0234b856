"""Campaign batch store and aggregate status derivation."""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from adstudio.models.campaign_batch import BATCH_STATUSES, CampaignBatch
from adstudio.models.generation import IN_FLIGHT_STATUSES, Generation

logger = logging.getLogger(__name__)


def derive_batch_status(statuses: Iterable[str]) -> str:
    """Derive a batch's aggregate status from its children's statuses.

    ``running`` while any child is pending or processing, ``failed`` only when
    every child failed, ``done`` otherwise (partial success counts as done).
    """
    total = 0
    failed = 0
    in_flight = 0
    for status in statuses:
        total += 1
        if status in IN_FLIGHT_STATUSES:
            in_flight += 1
        elif status == "failed":
            failed += 1

    if in_flight > 0:
        return "running"
    if total > 0 and failed == total:
        return "failed"
    return "done"


class CampaignBatchesRepository:
    """Campaign batch rows, always scoped to the owning client."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(
        self,
        client_id: int,
        goal: Optional[str] = None,
        total_items: int = 0,
        metadata: Optional[dict[str, Any]] = None,
    ) -> CampaignBatch:
        batch = CampaignBatch(
            client_id=client_id,
            goal=goal,
            total_items=total_items,
            status="running",
            batch_metadata=dict(metadata or {}),
        )
        self.session.add(batch)
        self.session.commit()
        self.session.refresh(batch)
        return batch

    def get(self, batch_id: int, client_id: int) -> Optional[CampaignBatch]:
        return (
            self.session.query(CampaignBatch)
            .filter(CampaignBatch.id == batch_id, CampaignBatch.client_id == client_id)
            .first()
        )

    def set_status(self, batch_id: int, client_id: int, status: str) -> None:
        if status not in BATCH_STATUSES:
            raise ValueError(f"Invalid batch status: {status!r}")
        (
            self.session.query(CampaignBatch)
            .filter(CampaignBatch.id == batch_id, CampaignBatch.client_id == client_id)
            .update(
                {
                    CampaignBatch.status: status,
                    CampaignBatch.updated_at: datetime.now(timezone.utc),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()

    def refresh_status(self, batch_id: int, client_id: int) -> str:
        """Recompute the batch status from its current child rows and persist it.

        This is a full re-derivation rather than a counter update, so
        concurrent callers converge on the same value.
        """
        rows = (
            self.session.query(Generation.status, func.count(Generation.id))
            .filter(
                Generation.campaign_batch_id == batch_id,
                Generation.client_id == client_id,
            )
            .group_by(Generation.status)
            .all()
        )
        statuses = [status for status, count in rows for _ in range(count)]
        status = derive_batch_status(statuses)
        self.set_status(batch_id, client_id, status)
        logger.debug(f"Batch {batch_id} status refreshed to {status} ({len(statuses)} items)")
        return status
