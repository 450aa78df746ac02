"""
Product import: analyze a catalog batch and commit the new products.

Products reference a laboratory (required) and a category (optional). The
analyze phase creates missing references by name so the operator can review
them; the commit phase only accepts references that exist.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from flask import current_app, has_app_context

from flask_app.models.catalog import Category, Lab, Product, compute_discount

from .classify import AnalysisReport, NaturalKey, classify_batch, lookup_existing
from .commit import CommitResult, commit_outcomes
from .normalize import normalize_name, normalize_reference_id
from .store import ExistingRecords, RecordStore, SqlAlchemyRecordStore
from .validation import ValidationOutcome, validate_product_row

DOMAIN = "products"

PRODUCT_KEYS = (NaturalKey(field="code", column="code", label="product code"),)


@dataclass(frozen=True)
class ProductReference:
    """A foreign key resolved by name (analyze) or by id (commit)."""

    name_field: str
    id_field: str
    label: str
    required: bool
    report_key: str


LAB_REFERENCE = ProductReference(
    name_field="lab", id_field="labId", label="Laboratory", required=True, report_key="newLabs"
)
CATEGORY_REFERENCE = ProductReference(
    name_field="category",
    id_field="categoryId",
    label="Category",
    required=False,
    report_key="newCategories",
)
PRODUCT_REFERENCES = (LAB_REFERENCE, CATEGORY_REFERENCE)


def product_store() -> SqlAlchemyRecordStore:
    return SqlAlchemyRecordStore(Product, [key.column for key in PRODUCT_KEYS])


def reference_stores() -> dict[str, SqlAlchemyRecordStore]:
    return {
        LAB_REFERENCE.name_field: SqlAlchemyRecordStore(Lab, ["name"]),
        CATEGORY_REFERENCE.name_field: SqlAlchemyRecordStore(Category, ["name"]),
    }


def is_filtered_lab(raw: Any, filtered_lab: str | None) -> bool:
    if not filtered_lab or not isinstance(raw, Mapping):
        return False
    return normalize_name(raw.get("lab")) == filtered_lab


def ensure_reference_names(store: RecordStore, names: Sequence[str]) -> list[str]:
    """Create the named references that do not exist yet; return the names created."""
    names = sorted(set(names))
    if not names:
        return []
    existing = store.find_existing({"name": names})["name"]
    missing = [name for name in names if name not in existing]
    if not missing:
        return []
    result = store.bulk_insert([{"name": name} for name in missing])
    # A concurrent analysis may have created some of them first
    refused = {item.index for item in result.rejected}
    return [name for index, name in enumerate(missing) if index not in refused]


def prefetch_references(
    store: RecordStore, records: Sequence[Mapping[str, Any]], reference: ProductReference
) -> ExistingRecords:
    return store.find_existing(
        {
            "id": [record.get(reference.id_field) for record in records],
            "name": [record.get(reference.name_field) for record in records],
        }
    )


def resolve_references(
    outcome: ValidationOutcome, resolved: Mapping[str, ExistingRecords], *, analyzing: bool
) -> ValidationOutcome:
    """Replace reference names/ids by stored ones, or turn the outcome invalid."""
    if not outcome.is_valid:
        return outcome

    record = dict(outcome.record)
    errors: list[str] = []
    for reference in PRODUCT_REFERENCES:
        existing = resolved[reference.name_field]
        ref_id, name = record.get(reference.id_field), record.get(reference.name_field)
        if ref_id is not None:
            stored = existing.get("id", {}).get(ref_id)
            missing_message = f"{reference.label} id {ref_id} does not exist."
        elif name:
            stored = existing.get("name", {}).get(name)
            if analyzing:
                missing_message = f"{reference.label} '{name}' was not found and could not be created."
            else:
                missing_message = f"{reference.label} '{name}' does not exist."
        else:
            if reference.required:
                errors.append(f"{reference.label} is required.")
            record[reference.id_field] = None
            record[reference.name_field] = None
            continue

        if stored is None:
            errors.append(missing_message)
            continue
        record[reference.id_field] = stored["id"]
        record[reference.name_field] = stored["name"]

    if errors:
        return ValidationOutcome.invalid(outcome.raw, errors)
    return replace(outcome, record=record)


def compare_with_stored(record: Mapping[str, Any], stored: Mapping[str, Any]) -> str | None:
    """
    Conflict reason when a product code is stored with different data.

    Description and laboratory must match; categories are compared only when
    both sides carry one.
    """
    drifted = record.get("desc") != stored.get("desc") or record.get("labId") != stored.get("lab_id")
    if record.get("categoryId") is not None and stored.get("category_id") is not None:
        drifted = drifted or record["categoryId"] != stored["category_id"]
    if drifted:
        return (
            f"Product with code '{record.get('code')}' already exists with a different "
            "description, laboratory or category."
        )
    return None


def analyze_products(
    raw_rows: Sequence[Any],
    *,
    store: RecordStore | None = None,
    references: Mapping[str, RecordStore] | None = None,
    filtered_lab: str | None = None,
) -> AnalysisReport:
    """
    Classify a raw product batch.

    Rows whose laboratory is the filtered one are dropped and counted. Missing
    laboratories and categories are created and listed in the report.
    """
    store = store if store is not None else product_store()
    references = references if references is not None else reference_stores()
    if filtered_lab is None and has_app_context():
        filtered_lab = current_app.config.get("PRODUCT_FILTERED_LAB")

    kept = [raw for raw in raw_rows if not is_filtered_lab(raw, filtered_lab)]
    outcomes = [validate_product_row(raw) for raw in kept]
    valid_records = [outcome.record for outcome in outcomes if outcome.is_valid]

    created: dict[str, list[str]] = {}
    resolved: dict[str, ExistingRecords] = {}
    for reference in PRODUCT_REFERENCES:
        reference_store = references[reference.name_field]
        names = [record[reference.name_field] for record in valid_records if record.get(reference.name_field)]
        created[reference.report_key] = ensure_reference_names(reference_store, names)
        resolved[reference.name_field] = prefetch_references(reference_store, valid_records, reference)

    outcomes = [resolve_references(outcome, resolved, analyzing=True) for outcome in outcomes]
    existing = lookup_existing(store, [o.record for o in outcomes if o.is_valid], PRODUCT_KEYS)

    report = classify_batch(
        outcomes,
        PRODUCT_KEYS,
        existing,
        total_received=len(raw_rows),
        compare_current=compare_with_stored,
    )
    report.filtered_out = len(raw_rows) - len(kept)
    report.extra_data = dict(created)
    return report


def build_product_row(record: Mapping[str, Any]) -> dict:
    """Stored form of a validated product, with derived image URL and discount."""
    code = record["code"]
    return {
        "code": code,
        "desc": record.get("desc"),
        "extra_desc": record.get("extra_desc"),
        "notes": record.get("notes"),
        "medinor_price": record.get("medinor_price"),
        "public_price": record.get("public_price"),
        "price": record.get("price"),
        "iva": bool(record.get("iva")),
        "listed": bool(record.get("listed", True)),
        "image_url": record.get("imageUrl") or code,
        "discount": compute_discount(record.get("medinor_price"), record.get("public_price")),
        "lab_id": record["labId"],
        "category_id": record.get("categoryId"),
    }


def commit_products(
    records: Sequence[Any],
    *,
    store: RecordStore | None = None,
    references: Mapping[str, RecordStore] | None = None,
) -> CommitResult:
    """Create the confirmed products; references must already exist."""
    store = store if store is not None else product_store()
    references = references if references is not None else reference_stores()

    prepared = [validate_product_row(raw) for raw in records]
    valid_records = [outcome.record for outcome in prepared if outcome.is_valid]
    resolved = {
        reference.name_field: prefetch_references(references[reference.name_field], valid_records, reference)
        for reference in PRODUCT_REFERENCES
    }
    outcomes = [resolve_references(outcome, resolved, analyzing=False) for outcome in prepared]
    return commit_outcomes(outcomes, build_row=build_product_row, store=store, domain=DOMAIN)
