"""Favourite model."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB

from favourites_api.database import Base


class Favourite(Base):
    """A user's saved reference to an asset.

    The composite primary key (user_id, asset_id) is what makes a second
    insert for the same pair fail, concurrently or not.
    """

    __tablename__ = "favourites"

    user_id = Column(String(255), primary_key=True)
    asset_id = Column(String(255), primary_key=True)
    asset_type = Column(String(20), nullable=False)
    description = Column(Text, nullable=False, default="")
    data = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of Favourite."""
        return f"<Favourite(user_id={self.user_id}, asset_id={self.asset_id}, asset_type={self.asset_type})>"
