# flask_app/routes/helpers.py

"""
Small request helpers shared by the JSON routes
"""

from dataclasses import dataclass
from http import HTTPStatus

from flask import current_app, request

from flask_app.models import db
from flask_app.utils.error_handler import ApiError


def get_json_object():
    """Return the request body as a dict or raise a 400."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ApiError("Request body must be a JSON object.", HTTPStatus.BAD_REQUEST)
    return payload


def get_or_404(model, object_id, label):
    instance = db.session.get(model, object_id)
    if instance is None:
        raise ApiError(f"{label} not found.", HTTPStatus.NOT_FOUND)
    return instance


def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


@dataclass(frozen=True)
class ListParams:
    """Pagination, search and sort parameters parsed from the query string."""

    page: int
    limit: int
    search: str
    sort: str | None
    descending: bool

    @property
    def offset(self):
        return (self.page - 1) * self.limit

    @classmethod
    def from_request(cls, sortable_fields):
        args = request.args
        max_limit = current_app.config.get("API_MAX_PAGE_SIZE", 200)
        limit = min(_positive_int(args.get("limit"), current_app.config.get("API_DEFAULT_PAGE_SIZE", 25)), max_limit)
        sort = args.get("sort")
        return cls(
            page=_positive_int(args.get("page"), 1),
            limit=limit,
            search=(args.get("search") or "").strip(),
            sort=sort if sort in sortable_fields else None,
            descending=(args.get("order") or "asc").lower() == "desc",
        )
