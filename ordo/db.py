import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """
    Owned connection to the relational store.

    The app constructs one of these and drives its lifecycle explicitly
    (open on startup, close on shutdown); nothing here is a module-level
    singleton.
    """

    def __init__(self, url: str):
        self.url = url
        self._engine: Engine | None = None
        self._sessions: sessionmaker | None = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self, create_schema: bool = True) -> "Database":
        if self._engine is not None:
            return self
        kwargs = {}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # in-memory sqlite only lives as long as its single connection
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        self._engine = create_engine(self.url, **kwargs)
        self._sessions = sessionmaker(bind=self._engine, expire_on_commit=False)
        if create_schema:
            import ordo.models  # noqa: F401  (registers tables)
            Base.metadata.create_all(bind=self._engine)
        logger.info("database opened (%s)", self._engine.url.render_as_string(hide_password=True))
        return self

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.info("database closed")

    def session(self) -> Session:
        if self._sessions is None:
            raise RuntimeError("database is not open")
        return self._sessions()


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
