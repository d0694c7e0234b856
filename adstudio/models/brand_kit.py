"""BrandKit model."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import backref, relationship

from adstudio.database import Base, JSONType


class BrandKit(Base):
    """Brand identity for a client. At most one kit per client."""

    __tablename__ = "brand_kits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(
        Integer,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    name = Column(String(255), nullable=True)
    tagline = Column(Text, nullable=True)
    tone_of_voice = Column(Text, nullable=True)
    primary_colors = Column(JSONType, nullable=False, default=list)
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
        backref=backref("brand_kit", cascade="save-update, merge, delete", passive_deletes=True),
    )

    def __repr__(self) -> str:
        """String representation of BrandKit."""
        return f"<BrandKit(id={self.id}, client_id={self.client_id}, name={self.name})>"
