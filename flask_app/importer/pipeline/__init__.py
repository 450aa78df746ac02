"""Importer pipeline helpers."""

from __future__ import annotations

from .classify import AnalysisReport, ClassifiedRecord, Disposition, NaturalKey, classify_batch, lookup_existing
from .clients import CLIENT_KEYS, ClientRules, analyze_clients, build_client_row, commit_clients
from .commit import CommitResult, RejectedRecord, commit_outcomes, commit_records
from .normalize import (
    EMPTY_TEXT_SENTINEL,
    normalize_code,
    normalize_digits,
    normalize_flag,
    normalize_name,
    normalize_optional_text,
    normalize_price,
    normalize_reference_id,
    normalize_text,
)
from .products import PRODUCT_KEYS, analyze_products, build_product_row, commit_products
from .store import BulkInsertResult, RecordStore, RejectedRow, SqlAlchemyRecordStore
from .validation import KeyArity, ValidationOutcome, validate_client_row, validate_product_row

__all__ = [
    "AnalysisReport",
    "BulkInsertResult",
    "CLIENT_KEYS",
    "ClassifiedRecord",
    "ClientRules",
    "CommitResult",
    "Disposition",
    "EMPTY_TEXT_SENTINEL",
    "KeyArity",
    "NaturalKey",
    "PRODUCT_KEYS",
    "RecordStore",
    "RejectedRecord",
    "RejectedRow",
    "SqlAlchemyRecordStore",
    "ValidationOutcome",
    "analyze_clients",
    "analyze_products",
    "build_client_row",
    "build_product_row",
    "classify_batch",
    "commit_clients",
    "commit_outcomes",
    "commit_products",
    "commit_records",
    "lookup_existing",
    "normalize_code",
    "normalize_digits",
    "normalize_flag",
    "normalize_name",
    "normalize_optional_text",
    "normalize_price",
    "normalize_reference_id",
    "normalize_text",
    "validate_client_row",
    "validate_product_row",
]
