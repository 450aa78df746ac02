"""
Persistence seam for the import pipeline.

The classifier and committer only talk to a :class:`RecordStore`; the
SQLAlchemy implementation below does one lookup query per analysis and one
``INSERT ... ON CONFLICT DO NOTHING RETURNING`` statement per commit chunk.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from flask import current_app, has_app_context
from sqlalchemy import bindparam, insert, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from flask_app.models.base import db

UNIQUE_VIOLATION_REASON = "A record with the same unique key already exists."

DEFAULT_CHUNK_SIZE = 500

_ON_CONFLICT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

# existing[column][value] -> stored row as a plain dict
ExistingRecords = dict[str, dict[Any, dict[str, Any]]]


@dataclass(frozen=True)
class RejectedRow:
    """A row the store refused, identified by its position in the submitted batch."""

    index: int
    row: Mapping[str, Any]
    reason: str = UNIQUE_VIOLATION_REASON


@dataclass(frozen=True)
class BulkInsertResult:
    inserted_count: int
    rejected: tuple[RejectedRow, ...] = ()


class RecordStore(Protocol):
    """What the pipeline needs from persistence."""

    def find_existing(self, values_by_column: Mapping[str, Iterable[Any]]) -> ExistingRecords:
        """Return stored rows matching any of the given column values, indexed per column."""

    def bulk_insert(self, rows: Sequence[Mapping[str, Any]]) -> BulkInsertResult:
        """Insert every row the unique constraints accept; report the others individually."""


def _chunked(rows: Sequence[Mapping[str, Any]], size: int):
    for start in range(0, len(rows), size):
        yield start, rows[start : start + size]


class SqlAlchemyRecordStore:
    """
    :class:`RecordStore` over one mapped model's table.

    Args:
        model: Flask-SQLAlchemy model whose table receives the rows.
        key_columns: unique columns, primary natural key first. Inserted rows are
            identified by the full tuple of these columns.
        chunk_size: rows per INSERT statement; defaults to
            ``IMPORTER_COMMIT_CHUNK_SIZE``.
    """

    def __init__(self, model, key_columns: Sequence[str], *, session=None, chunk_size: int | None = None):
        if not key_columns:
            raise ValueError("SqlAlchemyRecordStore requires at least one key column.")
        self.model = model
        self.table = model.__table__
        self.key_columns = tuple(key_columns)
        self._session = session
        self._chunk_size = chunk_size

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    @property
    def chunk_size(self) -> int:
        if self._chunk_size:
            return self._chunk_size
        if has_app_context():
            return int(current_app.config.get("IMPORTER_COMMIT_CHUNK_SIZE", DEFAULT_CHUNK_SIZE))
        return DEFAULT_CHUNK_SIZE

    @property
    def dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    def find_existing(self, values_by_column: Mapping[str, Iterable[Any]]) -> ExistingRecords:
        existing: ExistingRecords = {column: {} for column in values_by_column}
        clauses = []
        for column, values in values_by_column.items():
            distinct_values = sorted({value for value in values if value is not None}, key=str)
            if not distinct_values:
                continue
            # Literal rendering keeps large batches clear of driver bind-parameter limits
            clauses.append(
                self.table.c[column].in_(
                    bindparam(f"{column}_values", value=distinct_values, expanding=True, literal_execute=True)
                )
            )
        if not clauses:
            return existing

        statement = select(self.table).where(or_(*clauses))
        for row in self.session.execute(statement).mappings():
            stored = dict(row)
            for column in existing:
                existing[column].setdefault(stored[column], stored)
        return existing

    def bulk_insert(self, rows: Sequence[Mapping[str, Any]]) -> BulkInsertResult:
        rows = list(rows)
        if not rows:
            return BulkInsertResult(inserted_count=0)

        insert_factory = _ON_CONFLICT_INSERTS.get(self.dialect_name)
        inserted = 0
        rejected: list[RejectedRow] = []
        for offset, chunk in _chunked(rows, self.chunk_size):
            if insert_factory is not None:
                chunk_inserted, chunk_rejected = self._insert_skipping_conflicts(insert_factory, offset, chunk)
            else:
                chunk_inserted, chunk_rejected = self._insert_with_savepoints(offset, chunk)
            inserted += chunk_inserted
            rejected.extend(chunk_rejected)
        self.session.commit()

        if has_app_context():
            current_app.logger.debug(
                "Bulk insert into %s finished",
                self.table.name,
                extra={
                    "importer_table": self.table.name,
                    "importer_rows_submitted": len(rows),
                    "importer_rows_inserted": inserted,
                    "importer_rows_rejected": len(rejected),
                },
            )
        return BulkInsertResult(inserted_count=inserted, rejected=tuple(rejected))

    def _insert_skipping_conflicts(self, insert_factory, offset, chunk):
        key_columns = [self.table.c[column] for column in self.key_columns]
        statement = (
            insert_factory(self.table)
            .values([dict(row) for row in chunk])
            .on_conflict_do_nothing()
            .returning(*key_columns)
        )
        returned = {tuple(stored) for stored in self.session.execute(statement)}

        inserted = 0
        rejected: list[RejectedRow] = []
        for position, row in enumerate(chunk):
            # Rows sharing one key may differ on another, so match the whole tuple
            key = tuple(row.get(column) for column in self.key_columns)
            if key in returned:
                returned.discard(key)
                inserted += 1
            else:
                rejected.append(RejectedRow(index=offset + position, row=row))
        return inserted, rejected

    def _insert_with_savepoints(self, offset, chunk):
        inserted = 0
        rejected: list[RejectedRow] = []
        for position, row in enumerate(chunk):
            try:
                with self.session.begin_nested():
                    self.session.execute(insert(self.table).values(**row))
            except IntegrityError:
                rejected.append(RejectedRow(index=offset + position, row=row))
            else:
                inserted += 1
        return inserted, rejected
