"""
Event model: the top-level voting campaign addressed by its slug.

Key design decisions:
- `slug` is globally unique and indexed; public pages resolve events by it
- `archived_at` is a soft disable: the row stays, voting on its subjects stops
- Children (items, subjects, locations, admin grants) cascade on delete
"""

from sqlalchemy import Boolean, Column, DateTime, JSON, String
from sqlalchemy.orm import relationship

from flashvote.db.base import Base, TimestampMixin, id_column


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = id_column()
    title = Column(String(255), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    is_premium = Column(Boolean, nullable=False, default=False)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    meta = Column("metadata", JSON, nullable=True)

    items = relationship("Item", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)
    subjects = relationship("Subject", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)
    locations = relationship("Location", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)
    admins = relationship("EventAdmin", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, slug={self.slug}, archived={self.is_archived})>"
