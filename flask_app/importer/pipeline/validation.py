"""
Structural validation of normalized import rows.

Validators never touch the database; they turn one raw row into either a clean
record or a list of human-readable errors.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .normalize import (
    normalize_code,
    normalize_digits,
    normalize_flag,
    normalize_name,
    normalize_optional_text,
    normalize_price,
    normalize_reference_id,
    normalize_text,
)

CLIENT_CODE_FIELD = "COD_CLIENT"
CLIENT_TAX_ID_FIELD = "IDENTIFTRI"
CLIENT_NAME_FIELD = "RAZON_SOCI"

NOT_AN_OBJECT_ERROR = "Row must be a JSON object."


@dataclass(frozen=True)
class KeyArity:
    """Shape of a letters+digits code: exactly ``letters`` letters then ``digits`` digits."""

    letters: int
    digits: int

    def matches(self, code: str) -> bool:
        if len(code) != self.letters + self.digits:
            return False
        head, tail = code[: self.letters], code[self.letters :]
        return all("A" <= char <= "Z" for char in head) and all("0" <= char <= "9" for char in tail)

    def describe(self) -> str:
        return f"{self.letters} letters followed by {self.digits} digits"


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of validating one raw row.

    Exactly one of ``record`` / ``errors`` is populated.
    """

    raw: Any
    record: dict | None
    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.record is not None

    @classmethod
    def valid(cls, raw: Any, record: dict) -> "ValidationOutcome":
        return cls(raw=raw, record=record, errors=())

    @classmethod
    def invalid(cls, raw: Any, errors) -> "ValidationOutcome":
        return cls(raw=raw, record=None, errors=tuple(errors))


def normalize_client_row(raw: Mapping[str, Any]) -> dict:
    return {
        CLIENT_CODE_FIELD: normalize_code(raw.get(CLIENT_CODE_FIELD)),
        CLIENT_TAX_ID_FIELD: normalize_digits(raw.get(CLIENT_TAX_ID_FIELD)),
        CLIENT_NAME_FIELD: normalize_text(raw.get(CLIENT_NAME_FIELD)),
    }


def validate_client_row(raw: Any, *, code_arity: KeyArity, tax_id_digits: int) -> ValidationOutcome:
    """
    Normalize and validate one client row.

    The business name is defaulted, never rejected; the code and the tax id
    must match their configured shapes.
    """
    if not isinstance(raw, Mapping):
        return ValidationOutcome.invalid(raw, [NOT_AN_OBJECT_ERROR])

    record = normalize_client_row(raw)
    errors: list[str] = []

    code = record[CLIENT_CODE_FIELD]
    if not code:
        errors.append(f"{CLIENT_CODE_FIELD} is required.")
    elif not code_arity.matches(code):
        errors.append(f"{CLIENT_CODE_FIELD} '{code}' must contain exactly {code_arity.describe()}.")

    tax_id = record[CLIENT_TAX_ID_FIELD]
    if not tax_id:
        errors.append(f"{CLIENT_TAX_ID_FIELD} is required.")
    elif len(tax_id) != tax_id_digits:
        errors.append(f"{CLIENT_TAX_ID_FIELD} '{tax_id}' must contain exactly {tax_id_digits} digits.")

    if errors:
        return ValidationOutcome.invalid(raw, errors)
    return ValidationOutcome.valid(raw, record)


def normalize_product_row(raw: Mapping[str, Any]) -> dict:
    return {
        "code": normalize_optional_text(raw.get("code")) or "",
        "desc": normalize_optional_text(raw.get("desc")),
        "extra_desc": normalize_optional_text(raw.get("extra_desc")),
        "notes": normalize_optional_text(raw.get("notes")),
        "lab": normalize_name(raw.get("lab")),
        "labId": normalize_reference_id(raw.get("labId")),
        "category": normalize_name(raw.get("category")),
        "categoryId": normalize_reference_id(raw.get("categoryId")),
        "iva": normalize_flag(raw.get("iva")),
        "listed": normalize_flag(raw.get("listed"), default=True),
        "medinor_price": normalize_price(raw.get("medinor_price")),
        "public_price": normalize_price(raw.get("public_price")),
        "price": normalize_price(raw.get("price")),
        "imageUrl": normalize_optional_text(raw.get("imageUrl")),
    }


def validate_product_row(raw: Any) -> ValidationOutcome:
    """
    Normalize one product row; code, description and laboratory are required.

    The laboratory may come as a name (spreadsheet upload) or as ``labId``
    (records echoed back from an analysis report).
    """
    if not isinstance(raw, Mapping):
        return ValidationOutcome.invalid(raw, [NOT_AN_OBJECT_ERROR])

    record = normalize_product_row(raw)
    errors: list[str] = []
    if not record["code"]:
        errors.append("The product code is required.")
    if not record["desc"]:
        errors.append("The product description is required.")
    if not record["lab"] and record["labId"] is None:
        errors.append("The product laboratory is required.")

    if errors:
        return ValidationOutcome.invalid(raw, errors)
    return ValidationOutcome.valid(raw, record)
