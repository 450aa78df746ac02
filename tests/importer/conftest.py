from __future__ import annotations

import pytest

from flask_app.importer.pipeline.store import BulkInsertResult, RejectedRow


class MemoryRecordStore:
    """In-memory RecordStore honouring unique key columns, for pipeline tests."""

    def __init__(self, key_columns, rows=()):
        self.key_columns = tuple(key_columns)
        self.rows: list[dict] = []
        self.lookups = 0
        self.insert_calls = 0
        for row in rows:
            self._add(dict(row))

    def _add(self, row):
        row.setdefault("id", len(self.rows) + 1)
        self.rows.append(row)

    def find_existing(self, values_by_column):
        self.lookups += 1
        existing = {column: {} for column in values_by_column}
        for column, values in values_by_column.items():
            wanted = {value for value in values if value is not None}
            for row in self.rows:
                if row.get(column) in wanted:
                    existing[column].setdefault(row[column], row)
        return existing

    def bulk_insert(self, rows):
        self.insert_calls += 1
        inserted = 0
        rejected = []
        for index, row in enumerate(rows):
            clash = any(
                row.get(column) is not None and any(stored.get(column) == row.get(column) for stored in self.rows)
                for column in self.key_columns
            )
            if clash:
                rejected.append(RejectedRow(index=index, row=row))
                continue
            self._add(dict(row))
            inserted += 1
        return BulkInsertResult(inserted_count=inserted, rejected=tuple(rejected))


@pytest.fixture
def memory_store():
    return MemoryRecordStore
