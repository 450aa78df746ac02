"""
Commit phase: persist the rows an operator confirmed after analysis.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from flask import current_app, has_app_context

from .store import RecordStore
from .validation import ValidationOutcome

RejectionKind = Literal["duplicate", "invalid"]


@dataclass(frozen=True)
class RejectedRecord:
    """A submitted record that was not created, with the reason why."""

    kind: RejectionKind
    record: Any
    reason: str | None = None
    errors: tuple[str, ...] = ()

    def to_payload(self) -> dict:
        if self.kind == "invalid":
            return {"data": self.record, "errors": list(self.errors)}
        payload = dict(self.record)
        payload["reason"] = self.reason
        return payload


@dataclass(frozen=True)
class CommitResult:
    created_count: int
    rejected: tuple[RejectedRecord, ...] = ()

    @property
    def duplicates(self) -> tuple[RejectedRecord, ...]:
        return tuple(item for item in self.rejected if item.kind == "duplicate")

    @property
    def invalid(self) -> tuple[RejectedRecord, ...]:
        return tuple(item for item in self.rejected if item.kind == "invalid")

    def message(self) -> str:
        message = (
            f"Migration completed. New records created: {self.created_count}. "
            f"Duplicates found: {len(self.duplicates)}."
        )
        if self.invalid:
            message += f" Invalid records skipped: {len(self.invalid)}."
        return message

    def to_dict(self) -> dict:
        return {
            "message": self.message(),
            "data": {
                "createdCount": self.created_count,
                "duplicateRecords": [item.to_payload() for item in self.duplicates],
                "invalidRecords": [item.to_payload() for item in self.invalid],
            },
        }


def commit_records(
    records: Sequence[Any],
    *,
    validate: Callable[[Any], ValidationOutcome],
    build_row: Callable[[Mapping[str, Any]], Mapping[str, Any]],
    store: RecordStore,
    domain: str,
) -> CommitResult:
    """
    Re-validate ``records``, derive their stored form and bulk insert them.

    Records failing validation are rejected individually as ``invalid``; rows
    the store refuses on a unique key are rejected as ``duplicate``. Neither
    raises. Any other store error propagates to the caller.
    """
    return commit_outcomes([validate(raw) for raw in records], build_row=build_row, store=store, domain=domain)


def commit_outcomes(
    outcomes: Sequence[ValidationOutcome],
    *,
    build_row: Callable[[Mapping[str, Any]], Mapping[str, Any]],
    store: RecordStore,
    domain: str,
) -> CommitResult:
    """Same as :func:`commit_records` for rows the caller already validated."""
    rejected: list[RejectedRecord] = []
    accepted: list[Mapping[str, Any]] = []
    rows: list[Mapping[str, Any]] = []

    for outcome in outcomes:
        if not outcome.is_valid:
            rejected.append(RejectedRecord(kind="invalid", record=outcome.raw, errors=outcome.errors))
            continue
        accepted.append(outcome.record)
        rows.append(build_row(outcome.record))

    result = store.bulk_insert(rows)
    for refused in result.rejected:
        rejected.append(RejectedRecord(kind="duplicate", record=accepted[refused.index], reason=refused.reason))

    if has_app_context():
        current_app.logger.info(
            "Committed %s batch: %s created, %s rejected",
            domain,
            result.inserted_count,
            len(rejected),
            extra={
                "importer_domain": domain,
                "importer_records_submitted": len(outcomes),
                "importer_records_created": result.inserted_count,
                "importer_records_rejected": len(rejected),
            },
        )
    return CommitResult(created_count=result.inserted_count, rejected=tuple(rejected))
