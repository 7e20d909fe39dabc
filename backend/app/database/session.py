"""
Database engine and session management.

The engine is built from the `database_url` configuration value. SQLite is the
default backend; in-memory SQLite databases share a single connection so that
every session sees the same tables.
"""

from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.configs.config_singleton import get_config
from backend.app.database.models import Base
from backend.app.utils.logging.logger import log_info


def _build_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine matching the configured URL."""
    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return create_engine(database_url, future=True, **options)
    return create_engine(database_url, future=True, pool_pre_ping=True)


engine = _build_engine(get_config("database_url"))
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency yielding one session per request.

    The session is rolled back when the request fails and always closed.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(seed: bool = True) -> None:
    """Create the tables and seed the default content of an empty database."""
    Base.metadata.create_all(bind=engine)
    log_info("[DATABASE] Schema ready")
    if seed:
        # Imported here to avoid a cycle with the services using this module.
        from backend.app.database.seed import seed_defaults

        with SessionLocal() as db:
            seed_defaults(db)


def check_database() -> bool:
    """Return True when the database answers a trivial query."""
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    return True
