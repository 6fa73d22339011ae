from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import get_settings

DATABASE_URL = get_settings().database_url

engine = create_engine(
    DATABASE_URL,
    echo=False,              # set True to see the SQL
    future=True,
    # FastAPI runs sync endpoints in a thread pool
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
    expire_on_commit=False
)


class Base(DeclarativeBase):
    """ORM base for every model."""
    pass


@contextmanager
def db_session() -> Iterator[Session]:
    """
    Session context manager:
    - commit when the block succeeds
    - rollback on exceptions
    - always close
    """
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create the tables that do not exist yet."""
    # model modules register their tables on Base.metadata
    from . import auth_models, models  # noqa: F401

    Base.metadata.create_all(bind=engine)
