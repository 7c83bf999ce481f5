from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from fieldday.db.session import Base
from fieldday.models.common import UUIDMixin, TimestampMixin, json_list_column

class Project(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "projects"
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    contributors: Mapped[list] = json_list_column()
    administrators: Mapped[list] = json_list_column()
