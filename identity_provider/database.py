"""
SQLAlchemy engine and sessions for the identity provider.
SQLite unless IDP_DATABASE_URL points elsewhere; tests use sqlite:///:memory:.
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from identity_provider.config import DATABASE_URL
from identity_provider.models import Base


def _engine_for(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url)
    options: dict = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url:
        # One shared connection, otherwise every session opens its own empty database
        options["poolclass"] = StaticPool
    return create_engine(url, **options)


engine = _engine_for(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False)


def init_db() -> None:
    """Create missing tables. Safe to call repeatedly."""
    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request (startup seeding)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_db() -> Iterator[Session]:
    """Dependency: one session per request."""
    with session_scope() as db:
        yield db
