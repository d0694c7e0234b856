"""Client (workspace) model."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from adstudio.database import Base


class Client(Base):
    """Client model: the workspace every other record belongs to."""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
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

    def __repr__(self) -> str:
        """String representation of Client."""
        return f"<Client(id={self.id}, name={self.name})>"
