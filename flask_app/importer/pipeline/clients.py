"""
Client import: analyze a spreadsheet batch and commit the new clients.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any

from flask import current_app
from werkzeug.security import generate_password_hash

from flask_app.models.client import CLIENT_ROLE, Client

from .classify import AnalysisReport, NaturalKey, classify_batch, lookup_existing
from .commit import CommitResult, commit_records
from .store import RecordStore, SqlAlchemyRecordStore
from .validation import (
    CLIENT_CODE_FIELD,
    CLIENT_NAME_FIELD,
    CLIENT_TAX_ID_FIELD,
    KeyArity,
    validate_client_row,
)

DOMAIN = "clients"

CLIENT_KEYS = (
    NaturalKey(field=CLIENT_CODE_FIELD, column="cod_client", label="client code"),
    NaturalKey(field=CLIENT_TAX_ID_FIELD, column="identiftri", label="tax id"),
)


@dataclass(frozen=True)
class ClientRules:
    code_arity: KeyArity
    tax_id_digits: int
    password_hash_method: str

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ClientRules":
        return cls(
            code_arity=KeyArity(
                letters=int(config.get("CLIENT_CODE_LETTERS", 3)),
                digits=int(config.get("CLIENT_CODE_DIGITS", 3)),
            ),
            tax_id_digits=int(config.get("CLIENT_TAX_ID_DIGITS", 11)),
            password_hash_method=config.get("CLIENT_PASSWORD_HASH_METHOD", "scrypt"),
        )


def client_store() -> SqlAlchemyRecordStore:
    return SqlAlchemyRecordStore(Client, [key.column for key in CLIENT_KEYS])


def _resolve(store, rules):
    return (
        store if store is not None else client_store(),
        rules if rules is not None else ClientRules.from_config(current_app.config),
    )


def analyze_clients(
    raw_rows: Sequence[Any], *, store: RecordStore | None = None, rules: ClientRules | None = None
) -> AnalysisReport:
    """Classify a raw client batch against the stored clients. Nothing is written."""
    store, rules = _resolve(store, rules)
    validate = partial(validate_client_row, code_arity=rules.code_arity, tax_id_digits=rules.tax_id_digits)
    outcomes = [validate(raw) for raw in raw_rows]
    valid_records = [outcome.record for outcome in outcomes if outcome.is_valid]
    existing = lookup_existing(store, valid_records, CLIENT_KEYS)
    return classify_batch(outcomes, CLIENT_KEYS, existing)


def build_client_row(record: Mapping[str, Any], *, password_hash_method: str) -> dict:
    """
    Stored form of a validated client.

    The tax id doubles as username and initial password; the client must
    change it on first login and starts inactive.
    """
    tax_id = str(record[CLIENT_TAX_ID_FIELD]).strip()
    return {
        "cod_client": record[CLIENT_CODE_FIELD],
        "razon_soci": record[CLIENT_NAME_FIELD],
        "identiftri": tax_id,
        "username": tax_id,
        "password_hash": generate_password_hash(tax_id, method=password_hash_method),
        "active": False,
        "must_change_password": True,
        "role": CLIENT_ROLE,
    }


def commit_clients(
    records: Sequence[Any], *, store: RecordStore | None = None, rules: ClientRules | None = None
) -> CommitResult:
    """Create the confirmed clients; duplicates and invalid records are reported, never raised."""
    store, rules = _resolve(store, rules)
    return commit_records(
        records,
        validate=partial(validate_client_row, code_arity=rules.code_arity, tax_id_digits=rules.tax_id_digits),
        build_row=partial(build_client_row, password_hash_method=rules.password_hash_method),
        store=store,
        domain=DOMAIN,
    )
