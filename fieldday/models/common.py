import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column


def utcnow():
    return datetime.now(timezone.utc)


def json_list_column():
    """JSON array column that starts empty, for options, codes and member lists."""
    return mapped_column(JSON, default=list, nullable=False)


def uuid_ref_column():
    return mapped_column(UUID(as_uuid=True), nullable=False, index=True)


class UUIDMixin:
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class SoftDeleteMixin:
    # Soft-deleted rows keep their data so schema changes still reach them.
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
