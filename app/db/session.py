from typing import Iterator
from fastapi import Request
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session
from app.core.config import Settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine (and its pool); built once by create_app and passed around."""

    def __init__(self, settings: Settings):
        kwargs = {"echo": settings.SQL_ECHO}
        if settings.is_sqlite:
            # check_same_thread is needed for SQLite, remove for PostgreSQL
            kwargs["connect_args"] = {"check_same_thread": False}
            if settings.DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
                # every session must see the same in-memory database
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(settings.DATABASE_URL, **kwargs)
        if settings.is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

    def create_db_and_tables(self):
        # Import models to ensure they are registered with SQLModel metadata
        import app.models  # noqa: F401
        SQLModel.metadata.create_all(self.engine)

    def session(self) -> Session:
        return Session(self.engine)

    def dispose(self):
        self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_session(request: Request) -> Iterator[Session]:
    with get_database(request).session() as session:
        yield session
