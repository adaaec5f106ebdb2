"""
Location model: a named place used to segment vote aggregates.
"""

from sqlalchemy import Column, Float, String, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship

from flashvote.db.base import Base, TimestampMixin, id_column


class Location(Base, TimestampMixin):
    __tablename__ = "locations"

    id = id_column()
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)
    lat = Column(Float, nullable=True)
    lon = Column(Float, nullable=True)
    meta = Column("metadata", JSON, nullable=True)

    event = relationship("Event", back_populates="locations")

    __table_args__ = (
        # Prefix search by postal code
        Index("ix_locations_zip_code", "zip_code"),
    )

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, name={self.name}, zip={self.zip_code})>"
