from sqlalchemy import String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from fieldday.core.config import settings

DEFAULT_RESPONSIBLE = "System administrator"


class Base(DeclarativeBase):
    responsible: Mapped[str] = mapped_column(String(200), nullable=False, default=DEFAULT_RESPONSIBLE)


def _engine_kwargs(url: str) -> dict:
    kwargs: dict = {"echo": settings.SQL_ECHO, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
