from datetime import datetime
import uuid

from sqlalchemy import DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from fieldday.db.session import Base
from fieldday.models.common import SoftDeleteMixin, TimestampMixin, UUIDMixin, utcnow, uuid_ref_column

class Entry(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "entries"
    tab_id: Mapped[uuid.UUID] = uuid_ref_column()
    # Values keyed by column name; renames and deletions are rewritten in place.
    entry_data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    entry_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
