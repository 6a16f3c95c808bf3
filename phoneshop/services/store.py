"""Thin record-store facade over a SQLAlchemy session.

Routes talk to the database through ``RecordStore`` for the generic
find/insert/update/delete operations so that store failures surface as
``StoreError`` and missing rows as ``NotFoundError`` regardless of the
backend. Last writer wins; there is no version check.
"""

import logging
from dataclasses import dataclass
from typing import Any, Literal

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from phoneshop.core.exceptions import ConflictError, NotFoundError, StoreError

logger = logging.getLogger(__name__)

SortDirection = Literal["asc", "desc"]


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match."""

    field: str
    value: str


@dataclass(frozen=True)
class AnyOf:
    conditions: tuple[Any, ...]


@dataclass(frozen=True)
class FindQuery:
    filters: tuple[Any, ...] = ()
    sort: tuple[tuple[str, SortDirection], ...] = ()
    limit: int | None = None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _column(model, name: str):
    try:
        return getattr(model, name)
    except AttributeError as exc:
        raise ValueError(f"{model.__name__} has no field {name!r}") from exc


def _compile_condition(model, condition):
    if isinstance(condition, Eq):
        return _column(model, condition.field) == condition.value
    if isinstance(condition, Contains):
        return _column(model, condition.field).ilike(f"%{_escape_like(condition.value)}%", escape="\\")
    if isinstance(condition, AnyOf):
        return or_(*(_compile_condition(model, inner) for inner in condition.conditions))
    raise TypeError(f"Unsupported filter condition: {condition!r}")


def build_statement(model, query: FindQuery):
    statement = select(model)
    if query.filters:
        statement = statement.where(and_(*(_compile_condition(model, c) for c in query.filters)))
    for name, direction in query.sort:
        column = _column(model, name)
        statement = statement.order_by(column.desc() if direction == "desc" else column.asc())
    if query.limit is not None:
        statement = statement.limit(query.limit)
    return statement


class RecordStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find(self, model, query: FindQuery) -> list:
        try:
            return list(self.db.scalars(build_statement(model, query)).all())
        except SQLAlchemyError as exc:
            logger.warning("find on %s failed: %s", model.__tablename__, exc)
            raise StoreError(f"Failed to load {model.__tablename__}") from exc

    def get(self, model, record_id: Any, *, for_update: bool = False):
        try:
            if for_update:
                record = self.db.scalar(select(model).where(model.id == record_id).with_for_update())
            else:
                record = self.db.get(model, record_id)
        except SQLAlchemyError as exc:
            logger.warning("get %s/%s failed: %s", model.__tablename__, record_id, exc)
            raise StoreError(f"Failed to load {model.__tablename__}") from exc
        if record is None:
            raise NotFoundError(f"{model.__name__} not found")
        return record

    def commit(self, *records) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.info("commit rejected by constraint: %s", exc.orig)
            raise ConflictError("The change conflicts with an existing record") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("commit failed: %s", exc)
            raise StoreError("The change could not be saved, please try again") from exc
        for record in records:
            self.db.refresh(record)

    def insert(self, record, *extra):
        self.db.add(record)
        for item in extra:
            self.db.add(item)
        self.commit(record)
        return record

    def update(self, model, record_id: Any, values: dict[str, Any], *extra):
        record = self.get(model, record_id, for_update=True)
        for name, value in values.items():
            _column(model, name)
            setattr(record, name, value)
        for item in extra:
            self.db.add(item)
        self.commit(record)
        return record

    def delete(self, model, record_id: Any) -> None:
        record = self.get(model, record_id, for_update=True)
        self.db.delete(record)
        self.commit()
