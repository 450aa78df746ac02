"""
Batch classification for the analyze phase.

Each validated row lands in exactly one bucket (new, current, conflicting,
invalid) after a single pass in input order against one store lookup.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .store import ExistingRecords, RecordStore
from .validation import ValidationOutcome


class Disposition(str, Enum):
    """Bucket a row is sorted into by the analyze phase."""

    NEW = "new"
    CURRENT = "current"
    CONFLICTING = "conflicting"
    INVALID = "invalid"


@dataclass(frozen=True)
class NaturalKey:
    """
    A unique business key.

    Attributes:
        field: key name in the normalized record.
        column: column holding the key in the store.
        label: human name used in conflict messages.
    """

    field: str
    column: str
    label: str


@dataclass(frozen=True)
class ClassifiedRecord:
    disposition: Disposition
    record: Mapping[str, Any] | None
    raw: Any = None
    conflict_reason: str | None = None
    errors: tuple[str, ...] = ()

    def to_payload(self) -> dict:
        if self.disposition is Disposition.INVALID:
            return {"data": self.raw, "errors": list(self.errors)}
        payload = dict(self.record or {})
        if self.disposition is Disposition.CONFLICTING:
            payload["conflictReason"] = self.conflict_reason
        return payload


@dataclass
class AnalysisReport:
    """Four buckets plus the counts reported to the operator."""

    total_received: int
    new: list[ClassifiedRecord] = field(default_factory=list)
    current: list[ClassifiedRecord] = field(default_factory=list)
    conflicting: list[ClassifiedRecord] = field(default_factory=list)
    invalid: list[ClassifiedRecord] = field(default_factory=list)
    filtered_out: int | None = None
    extra_data: dict[str, Any] = field(default_factory=dict)

    def add(self, classified: ClassifiedRecord) -> None:
        self._bucket(classified.disposition).append(classified)

    def _bucket(self, disposition: Disposition) -> list[ClassifiedRecord]:
        return {
            Disposition.NEW: self.new,
            Disposition.CURRENT: self.current,
            Disposition.CONFLICTING: self.conflicting,
            Disposition.INVALID: self.invalid,
        }[disposition]

    @property
    def total_valid(self) -> int:
        return len(self.new) + len(self.current) + len(self.conflicting)

    def disposition_counts(self) -> dict[str, int]:
        return {disposition.value: len(self._bucket(disposition)) for disposition in Disposition}

    def summary(self) -> dict[str, int]:
        summary = {
            "totalReceived": self.total_received,
            "totalValid": self.total_valid,
            "totalInvalid": len(self.invalid),
            "totalNew": len(self.new),
            "totalCurrent": len(self.current),
            "totalConflicts": len(self.conflicting),
        }
        if self.filtered_out is not None:
            summary["totalFilteredOut"] = self.filtered_out
        return summary

    def to_dict(self, message: str) -> dict:
        data = {
            "newRecords": [item.to_payload() for item in self.new],
            "currentRecords": [item.to_payload() for item in self.current],
            "conflictingRecords": [item.to_payload() for item in self.conflicting],
            "invalidRows": [item.to_payload() for item in self.invalid],
        }
        data.update(self.extra_data)
        return {"message": message, "summary": self.summary(), "data": data}


# Compares a candidate against the stored row sharing its primary key and
# returns a conflict reason when they disagree.
CurrentComparator = Callable[[Mapping[str, Any], Mapping[str, Any]], "str | None"]


def lookup_existing(
    store: RecordStore, records: Sequence[Mapping[str, Any]], keys: Sequence[NaturalKey]
) -> ExistingRecords:
    """Fetch every stored row sharing any natural key with ``records`` in one query."""
    return store.find_existing({key.column: [record.get(key.field) for record in records] for key in keys})


def classify_batch(
    outcomes: Sequence[ValidationOutcome],
    keys: Sequence[NaturalKey],
    existing: ExistingRecords,
    *,
    total_received: int | None = None,
    compare_current: CurrentComparator | None = None,
) -> AnalysisReport:
    """
    Sort validated rows into buckets.

    Per valid row, in input order:

    1. primary key already stored -> current (or conflicting when
       ``compare_current`` reports drift);
    2. any other key already stored -> conflicting;
    3. any key seen earlier in this batch -> conflicting;
    4. otherwise new, and its keys are remembered for the rest of the batch.
    """
    if not keys:
        raise ValueError("classify_batch requires at least one natural key.")

    report = AnalysisReport(total_received=len(outcomes) if total_received is None else total_received)
    primary, secondary = keys[0], tuple(keys[1:])
    seen: dict[str, set] = {key.field: set() for key in keys}

    for outcome in outcomes:
        if not outcome.is_valid:
            report.add(ClassifiedRecord(Disposition.INVALID, None, raw=outcome.raw, errors=outcome.errors))
            continue

        record = outcome.record
        primary_value = record.get(primary.field)
        stored = existing.get(primary.column, {}).get(primary_value)
        if stored is not None:
            reason = compare_current(record, stored) if compare_current else None
            if reason:
                report.add(ClassifiedRecord(Disposition.CONFLICTING, record, raw=outcome.raw, conflict_reason=reason))
            else:
                report.add(ClassifiedRecord(Disposition.CURRENT, record, raw=outcome.raw))
            continue

        reason = _store_conflict(record, secondary, existing) or _batch_conflict(record, keys, seen)
        if reason:
            report.add(ClassifiedRecord(Disposition.CONFLICTING, record, raw=outcome.raw, conflict_reason=reason))
            continue

        for key in keys:
            seen[key.field].add(record.get(key.field))
        report.add(ClassifiedRecord(Disposition.NEW, record, raw=outcome.raw))

    return report


def _store_conflict(record, keys, existing) -> str | None:
    for key in keys:
        value = record.get(key.field)
        if value in existing.get(key.column, {}):
            return f"The {key.label} {value} is already used by another record in the database."
    return None


def _batch_conflict(record, keys, seen) -> str | None:
    for key in keys:
        value = record.get(key.field)
        if value in seen[key.field]:
            return f"The {key.label} {value} is duplicated within the batch."
    return None
