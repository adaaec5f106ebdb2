"""
Vote model: one immutable boolean response to a subject.

Key design decisions:
- Append only: nothing in the service updates or deletes a vote row
- user_id is nullable (anonymous voting); user_ip is always captured
- Composite (subject_id, location_id) index serves the batch aggregate,
  (subject_id, created_at) serves the time series
"""

from sqlalchemy import Boolean, Column, Float, String, ForeignKey, JSON, Index

from flashvote.db.base import Base, CreatedAtMixin, id_column


class Vote(Base, CreatedAtMixin):
    __tablename__ = "votes"

    id = id_column()
    subject_id = Column(String(36), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    location_id = Column(String(36), ForeignKey("locations.id", ondelete="SET NULL"), nullable=True)
    user_id = Column(String(64), nullable=True, index=True)
    user_ip = Column(String(64), nullable=True)
    lat = Column(Float, nullable=True)
    lon = Column(Float, nullable=True)
    choice = Column(Boolean, nullable=False)
    meta = Column("metadata", JSON, nullable=True)

    __table_args__ = (
        Index("ix_votes_subject_location", "subject_id", "location_id"),
        Index("ix_votes_subject_created", "subject_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Vote(id={self.id}, subject={self.subject_id}, choice={self.choice})>"
