from flashvote.db.base import Base, TimestampMixin, CreatedAtMixin

__all__ = ["Base", "TimestampMixin", "CreatedAtMixin"]
