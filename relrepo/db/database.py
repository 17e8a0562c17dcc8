"""
Database engine and session management.

Builds the SQLAlchemy engine for a registry, renders its tables and hands out
gateways bound to fresh sessions. Nothing here is a process-wide global:
callers construct a ``Database`` and pass it (or its gateways) explicitly.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import Table, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from relrepo.config import Settings, get_settings
from relrepo.registry import SchemaRegistry
from .gateway import StorageGateway
from .tables import build_metadata

logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/").endswith("://"))


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection so the schema persists."""
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class Database:
    def __init__(
        self,
        registry: SchemaRegistry,
        url: Optional[str] = None,
        *,
        settings: Optional[Settings] = None,
    ):
        if not registry.sealed:
            registry.validate()
        self.settings = settings or get_settings()
        self.registry = registry
        self.url = url or self.settings.database_url
        self.engine = build_engine(self.url)
        self.metadata = build_metadata(registry)
        self.SessionLocal = sessionmaker(autoflush=False, bind=self.engine)
        logger.info("database ready: dialect=%s entities=%d", self.engine.dialect.name, len(registry))

    def table(self, name: str) -> Table:
        self.registry.resolve(name)
        return self.metadata.tables[name]

    def create_schema(self) -> None:
        self.metadata.create_all(bind=self.engine)

    def drop_schema(self) -> None:
        self.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    @contextmanager
    def gateway(self) -> Iterator[StorageGateway]:
        """Yield a gateway bound to a new session, closing the session afterwards."""
        session = self.SessionLocal()
        try:
            yield StorageGateway(
                self.registry, self.metadata, session, in_chunk_size=self.settings.in_chunk_size
            )
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
