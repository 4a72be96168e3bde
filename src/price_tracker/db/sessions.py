"""Database engine and session management."""
import os
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from price_tracker.db.models import (  # noqa: F401  # pylint: disable=unused-import
    Alert, Asset, PriceHistory, ProviderBudget, Subscription)


def create_db_engine(database_url: str) -> Engine:
    """Create an engine for the given URL.

    SQLite URLs get a single shared connection so in-memory databases survive
    across sessions; other backends get a small connection pool.
    """
    echo = os.getenv("SQL_ECHO", "0") == "1"
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


@contextmanager
def get_session(engine: Engine) -> Generator[Session, None, None]:
    """Yield a database session; commits on success, rolls back on error."""
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create all tables. Safe to call on startup (idempotent for existing tables)."""
    SQLModel.metadata.create_all(engine)
