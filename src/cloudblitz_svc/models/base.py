from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from cloudblitz_svc.config import DATABASE_URL

# SQLite needs cross-thread access because FastAPI runs sync handlers in a threadpool
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db() -> Generator[Session, None, None]:
    """Yield a session per request and always close it."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    # models must be imported so their tables are registered on Base.metadata
    from cloudblitz_svc.models import user, enquiry  # noqa: F401

    Base.metadata.create_all(bind=engine)
