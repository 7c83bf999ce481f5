import uuid

from sqlalchemy import Boolean, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fieldday.db.session import Base
from fieldday.models.common import TimestampMixin, UUIDMixin, json_list_column, uuid_ref_column


class Tab(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "tabs"
    __table_args__ = (
        UniqueConstraint("project_id", "tab_name", name="uq_tabs_project_tab_name"),
    )

    project_id: Mapped[uuid.UUID] = uuid_ref_column()
    tab_name: Mapped[str] = mapped_column(String(200), nullable=False)
    generate_unique_identifier: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    identifier_max_letter: Mapped[str | None] = mapped_column(String(1), nullable=True)
    identifier_max_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unwanted_codes: Mapped[list] = json_list_column()
    utilize_unwanted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    schema_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
