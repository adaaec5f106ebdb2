"""
Admin grant: authorizes a non-owner user on an event.

Editors may mutate the event's catalog; viewers may only read the dashboard
views. Ownership itself lives on Event.owner_id.
"""

from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from flashvote.db.base import Base, CreatedAtMixin, id_column

ROLE_EDITOR = "editor"
ROLE_VIEWER = "viewer"


class EventAdmin(Base, CreatedAtMixin):
    __tablename__ = "admins"

    id = id_column()
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=ROLE_EDITOR)

    event = relationship("Event", back_populates="admins")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_admin_event_user"),
        CheckConstraint("role IN ('editor', 'viewer')", name="check_admin_role"),
    )

    def __repr__(self) -> str:
        return f"<EventAdmin(event={self.event_id}, user={self.user_id}, role={self.role})>"
