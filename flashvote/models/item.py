"""
Item model: an optional sub-entity of an event (e.g. a product) that groups
subjects. Slugs are unique within their event only.
"""

from sqlalchemy import Column, String, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from flashvote.db.base import Base, TimestampMixin, id_column


class Item(Base, TimestampMixin):
    __tablename__ = "items"

    id = id_column()
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    item_slug = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False)
    item_id = Column(String(100), nullable=True)  # external identifier
    category = Column(String(100), nullable=True)
    image_url = Column(String(1000), nullable=True)
    meta = Column("metadata", JSON, nullable=True)

    event = relationship("Event", back_populates="items")
    subjects = relationship("Subject", back_populates="item", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("event_id", "item_slug", name="uq_item_event_slug"),
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, event={self.event_id}, slug={self.item_slug})>"
