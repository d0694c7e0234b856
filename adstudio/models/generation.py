"""Generation model."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import backref, relationship

from adstudio.database import Base, JSONType

GENERATION_STATUSES = ("pending", "processing", "done", "failed")
IN_FLIGHT_STATUSES = ("pending", "processing")
TERMINAL_STATUSES = ("done", "failed")


class Generation(Base):
    """Generation model for tracking one attempt to produce creative images."""

    __tablename__ = "generations"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'processing', 'done', 'failed')",
            name="chk_generations_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(
        Integer,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    brand_kit_id = Column(
        Integer,
        ForeignKey("brand_kits.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Template library lives outside this service; kept as a plain weak id
    template_id = Column(Integer, nullable=True)
    campaign_batch_id = Column(
        Integer,
        ForeignKey("campaign_batches.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status = Column(String(20), nullable=False, default="pending", index=True)
    prompt = Column(Text, nullable=True)
    headline = Column(Text, nullable=True)
    body_copy = Column(Text, nullable=True)
    cta = Column(String(100), nullable=True)
    concept = Column(Text, nullable=True)
    avatar = Column(Text, nullable=True)  # Persona descriptor
    asset_ids = Column(JSONType, nullable=False, default=list)
    generated_images = Column(JSONType, nullable=False, default=list)
    selected_image_url = Column(Text, nullable=True)
    error = Column(Text, nullable=True)  # Only populated when status is failed
    generation_metadata = Column("metadata", JSONType, nullable=False, default=dict)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
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
        backref=backref("generations", cascade="save-update, merge, delete", passive_deletes=True),
    )
    campaign_batch = relationship("CampaignBatch", backref=backref("generations", passive_deletes=True))

    def __repr__(self) -> str:
        """String representation of Generation."""
        return (
            f"<Generation("
            f"id={self.id}, "
            f"client_id={self.client_id}, "
            f"campaign_batch_id={self.campaign_batch_id}, "
            f"status={self.status})>"
        )
