"""
Repository layer: the only code that reads or writes ledger rows.

Each entity gets a repository bound to one request-scoped `Session`. SQLAlchemy
errors are translated into the error taxonomy in `core.errors` after the
session is rolled back: constraint violations become conflicts, values the
database rejects become validation errors and connection or pool failures
become StorageUnavailableError. Anything else is rolled back and re-raised.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Generic, Iterator, Protocol, Sequence, TypeVar
from uuid import UUID, uuid4
import logging

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import (
    DataError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session

from ..core.db import Base
from ..core.errors import (
    ConflictError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Protocol[ModelT]):
    """Capability interface the API depends on; any storage honouring it can be swapped in."""

    def create(self, payload: BaseModel, record_id: UUID | None = None) -> ModelT: ...

    def get_by_id(self, record_id: UUID) -> ModelT: ...

    def list(self, limit: int | None = None, offset: int = 0) -> Sequence[ModelT]: ...

    def count(self) -> int: ...

    def update(self, record_id: UUID, payload: BaseModel) -> ModelT: ...

    def delete(self, record_id: UUID) -> None: ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqlAlchemyRepository(Generic[ModelT]):
    model: type[ModelT]
    label: str  # singular noun used in error messages
    unique_field: str  # column guarded by the table's unique constraint

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _storage(self, step: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            self.db.rollback()
            logger.info(
                "Unique constraint violated",
                extra={"resource": self.model.__tablename__, "step": step},
            )
            raise ConflictError(
                f"A {self.label} with this {self.unique_field} already exists."
            ) from exc
        except DataError as exc:
            self.db.rollback()
            logger.info(
                "Value rejected by the database",
                extra={"resource": self.model.__tablename__, "step": step},
            )
            raise ValidationError("A value in the request is out of range for storage.") from exc
        except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
            self.db.rollback()
            logger.exception(
                "Storage failure",
                extra={"resource": self.model.__tablename__, "step": step},
            )
            raise StorageUnavailableError("The database is currently unavailable.") from exc
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _creation_defaults(self, now: datetime) -> dict[str, Any]:
        return {"created_at": now, "updated_at": now}

    def _not_found(self, record_id: UUID) -> NotFoundError:
        return NotFoundError(f"No {self.label} with id {record_id}.")

    def create(self, payload: BaseModel, record_id: UUID | None = None) -> ModelT:
        if record_id is not None:
            with self._storage("create"):
                existing = self.db.get(self.model, record_id)
            if existing is not None:
                raise ConflictError(f"A {self.label} with id {record_id} already exists.")

        row = self.model(
            id=record_id or uuid4(),
            **payload.model_dump(),
            **self._creation_defaults(utcnow()),
        )
        with self._storage("create"):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)

        logger.info(
            "Record created",
            extra={"resource": self.model.__tablename__, "record_id": str(row.id)},
        )
        return row

    def get_by_id(self, record_id: UUID) -> ModelT:
        with self._storage("get_by_id"):
            row = self.db.get(self.model, record_id)
        if row is None:
            raise self._not_found(record_id)
        return row

    def _get_by_unique(self, value: str) -> ModelT:
        if "\x00" in value:
            raise ValidationError(f"{self.unique_field} must not contain NUL characters")
        column = getattr(self.model, self.unique_field)
        with self._storage(f"get_by_{self.unique_field}"):
            row = self.db.execute(
                select(self.model).where(column == value)
            ).scalar_one_or_none()
        if row is None:
            raise NotFoundError(f"No {self.label} with {self.unique_field} {value}.")
        return row

    def list(self, limit: int | None = None, offset: int = 0) -> Sequence[ModelT]:
        """
        All rows, oldest first (created_at, then id to break ties).

        `limit=None` returns the full collection.
        """
        stmt = (
            select(self.model)
            .order_by(self.model.created_at.asc(), self.model.id.asc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._storage("list"):
            return self.db.execute(stmt).scalars().all()

    def count(self) -> int:
        with self._storage("count"):
            return self.db.execute(
                select(func.count()).select_from(self.model)
            ).scalar_one()

    def update(self, record_id: UUID, payload: BaseModel) -> ModelT:
        # Full replace of the fields present in the payload; required fields
        # are always present, omitted optional ones keep their stored value.
        row = self.get_by_id(record_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(row, field, value)
        row.updated_at = utcnow()

        with self._storage("update"):
            self.db.commit()
            self.db.refresh(row)

        logger.info(
            "Record updated",
            extra={"resource": self.model.__tablename__, "record_id": str(record_id)},
        )
        return row

    def delete(self, record_id: UUID) -> None:
        row = self.get_by_id(record_id)
        with self._storage("delete"):
            self.db.delete(row)
            self.db.commit()

        logger.info(
            "Record deleted",
            extra={"resource": self.model.__tablename__, "record_id": str(record_id)},
        )
