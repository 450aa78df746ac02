"""
Batch extraction shared by the HTTP endpoints and the CLI.
"""

from __future__ import annotations

import csv
from collections.abc import Mapping
from pathlib import Path
from typing import Any


class ImporterError(Exception):
    """Base class for importer failures that abort a whole batch."""


class EmptyBatchError(ImporterError):
    """The request carried no rows (missing, not an array, or empty)."""


class BatchTooLargeError(ImporterError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"Batch of {size} rows exceeds the limit of {limit} rows.")
        self.size = size
        self.limit = limit


def extract_rows(payload: Any, key: str, *, max_rows: int | None = None) -> list:
    """
    Pull the row array stored under ``key`` out of a JSON payload.

    ``key`` may be dotted (``"data.newRecords"``) to reach a nested array.
    """
    current = payload
    for part in key.split("."):
        if not isinstance(current, Mapping):
            current = None
            break
        current = current.get(part)

    if not isinstance(current, list) or not current:
        raise EmptyBatchError(f"No records found in the request: '{key}' must be a non-empty array.")
    if max_rows is not None and len(current) > max_rows:
        raise BatchTooLargeError(len(current), max_rows)
    return current


def read_csv_rows(file_path: Path, *, encoding: str = "utf-8-sig", delimiter: str | None = None) -> list[dict]:
    """
    Read a spreadsheet CSV export into row dicts keyed by the header line.

    The delimiter is sniffed (comma or semicolon) unless given.
    """
    with open(file_path, newline="", encoding=encoding) as handle:
        sample = handle.read(4096)
        handle.seek(0)
        if delimiter is None:
            try:
                delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t").delimiter
            except csv.Error:
                delimiter = ","
        reader = csv.DictReader(handle, delimiter=delimiter)
        return [{(name or "").strip(): value for name, value in row.items() if name} for row in reader]
