"""CampaignBatch model."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import backref, relationship

from adstudio.database import Base, JSONType

BATCH_STATUSES = ("running", "done", "failed")


class CampaignBatch(Base):
    """A named run grouping many generations.

    ``status`` is derived from the child generation rows and is only ever
    written by the status refresh in ``adstudio.repositories.campaign_batches``.
    """

    __tablename__ = "campaign_batches"
    __table_args__ = (
        CheckConstraint(
            "status IN ('running', 'done', 'failed')",
            name="chk_campaign_batches_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(
        Integer,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    goal = Column(Text, nullable=True)
    total_items = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="running", index=True)
    batch_metadata = Column("metadata", JSONType, nullable=False, default=dict)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    client = relationship(
        "Client",
        backref=backref("campaign_batches", cascade="save-update, merge, delete", passive_deletes=True),
    )

    def __repr__(self) -> str:
        """String representation of CampaignBatch."""
        return (
            f"<CampaignBatch("
            f"id={self.id}, "
            f"client_id={self.client_id}, "
            f"total_items={self.total_items}, "
            f"status={self.status})>"
        )
