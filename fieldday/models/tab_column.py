import uuid

from sqlalchemy import Boolean, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fieldday.db.session import Base
from fieldday.models.common import TimestampMixin, UUIDMixin, json_list_column, uuid_ref_column


class TabColumn(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "tab_columns"
    __table_args__ = (
        UniqueConstraint("tab_id", "key", name="uq_tab_columns_tab_key"),
    )

    tab_id: Mapped[uuid.UUID] = uuid_ref_column()
    # Stable column id within the tab; "actions", "datetime" and "identifier" are system columns.
    key: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    data_type: Mapped[str] = mapped_column(String(30), nullable=False, default="text")
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required_field: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    identifier_domain: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    entry_options: Mapped[list] = json_list_column()
