from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker


def _engine_options(dsn: str) -> dict[str, object]:
    options: dict[str, object] = {"pool_pre_ping": True}
    if make_url(dsn).get_backend_name() == "sqlite":
        # uploads run in a worker thread, not the one that opened the pool
        options["connect_args"] = {"check_same_thread": False}
    return options


class Base(DeclarativeBase):
    pass


def create_session_factory(dsn: str):
    engine = create_engine(dsn, **_engine_options(dsn))
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
