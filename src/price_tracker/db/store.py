"""Keyed store: the only persistence surface the jobs depend on.

Jobs never build queries themselves. They ask for rows of a model by
equality criteria and/or a Python predicate, upsert rows by primary key and
append history records.
"""
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, select

from price_tracker.db.sessions import get_session
from price_tracker.exceptions import PersistenceError

ModelT = TypeVar("ModelT", bound=SQLModel)


class KeyedStore(Protocol):
    """Generic keyed store over SQLModel entities."""

    def get(self, model: type[ModelT], key: Any) -> ModelT | None: ...

    def filter(
        self,
        model: type[ModelT],
        predicate: Callable[[ModelT], bool] | None = None,
        **equals: Any,
    ) -> list[ModelT]: ...

    def upsert(self, obj: ModelT) -> ModelT: ...

    def append(self, record: ModelT) -> ModelT: ...


class SqlModelStore:
    """KeyedStore backed by a SQLAlchemy engine through SQLModel sessions.

    Every call runs in its own short session; there is no multi-row
    transaction across calls.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, model: type[ModelT], key: Any) -> ModelT | None:
        try:
            with get_session(self._engine) as session:
                return session.get(model, key)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load {model.__name__} {key!r}: {exc}") from exc

    def filter(
        self,
        model: type[ModelT],
        predicate: Callable[[ModelT], bool] | None = None,
        **equals: Any,
    ) -> list[ModelT]:
        """Rows of ``model`` whose columns equal ``equals`` and that satisfy ``predicate``."""
        statement = select(model)
        for name, value in equals.items():
            column = getattr(model, name)
            statement = statement.where(column.is_(None) if value is None else column == value)
        try:
            with get_session(self._engine) as session:
                rows = list(session.exec(statement).all())
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to query {model.__name__}: {exc}") from exc
        if predicate is None:
            return rows
        return [row for row in rows if predicate(row)]

    def upsert(self, obj: ModelT) -> ModelT:
        """Insert or update ``obj`` by primary key; returns the persisted instance."""
        try:
            with get_session(self._engine) as session:
                merged = session.merge(obj)
                session.flush()
                return merged
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to upsert {type(obj).__name__}: {exc}") from exc

    def append(self, record: ModelT) -> ModelT:
        """Insert an append-only record."""
        try:
            with get_session(self._engine) as session:
                session.add(record)
                session.flush()
                return record
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to append {type(record).__name__}: {exc}") from exc
