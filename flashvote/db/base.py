"""
Declarative base and shared column mixins.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


def id_column() -> Column:
    return Column(String(36), primary_key=True, default=new_id)


class CreatedAtMixin:
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        index=True,
    )


class TimestampMixin(CreatedAtMixin):
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )
