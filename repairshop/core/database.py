from __future__ import annotations

from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()

_IN_MEMORY_SQLITE_URLS = {"sqlite://", "sqlite:///:memory:"}


def build_engine(database_url: str) -> Engine:
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    # SQLite connections are shared with the threadpool FastAPI runs sync endpoints in.
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if database_url in _IN_MEMORY_SQLITE_URLS:
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_db(request: Request) -> Iterator[Session]:
    """One session per request, taken from the factory the app was built with."""
    db: Session = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
