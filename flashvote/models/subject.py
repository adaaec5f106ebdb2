"""
Subject model: a single yes/no question.

A subject with item_id = NULL is an event-level question. A subject with an
empty label and metadata.is_default = true is the implicit "rate this item"
question created together with its item.
"""

from sqlalchemy import Column, String, ForeignKey, JSON
from sqlalchemy.orm import relationship

from flashvote.db.base import Base, CreatedAtMixin, id_column

DEFAULT_POS_LABEL = "Recommend"
DEFAULT_NEG_LABEL = "Not Recommended"


class Subject(Base, CreatedAtMixin):
    __tablename__ = "subjects"

    id = id_column()
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(String(36), ForeignKey("items.id", ondelete="CASCADE"), nullable=True, index=True)
    label = Column(String(500), nullable=False, default="")
    pos_label = Column(String(100), nullable=False, default="Yes")
    neg_label = Column(String(100), nullable=False, default="No")
    meta = Column("metadata", JSON, nullable=True)

    event = relationship("Event", back_populates="subjects")
    item = relationship("Item", back_populates="subjects")

    @property
    def is_default(self) -> bool:
        return bool((self.meta or {}).get("is_default"))

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, event={self.event_id}, item={self.item_id})>"
