"""Engine, session factory and the request-scoped session dependency."""

from collections.abc import Generator
from typing import Annotated, Any, Dict

from fastapi import Depends
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _engine_options(url: str) -> Dict[str, Any]:
    """Pooling and driver options for the configured backend."""
    if _is_sqlite(url):
        # One clinic workstation file; requests run on the threadpool
        return {
            "connect_args": {"check_same_thread": False},
            "pool_pre_ping": True,
        }
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


engine = create_engine(settings.database_url, echo=False, **_engine_options(settings.database_url))


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # Receipt lines, batches and PO items rely on ON DELETE rules
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if _is_sqlite(settings.database_url):
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


DbSession = Annotated[Session, Depends(get_db)]
