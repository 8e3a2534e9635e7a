"""schoolnet.utils

Helpers for shaping API responses and query values.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, Union

__all__ = [
    "OMISSIONS",
    "trim_obj",
    "trim_data",
    "format_filter_date",
    "merge_query",
    "unwrap",
]

OMISSIONS = ("links", "institutionType")

_filter_date_re = re.compile(r"^\d{2}-\d{2}-\d{4}$")
_DATE_FORMATS = ("%Y/%m/%d", "%m/%d/%Y")


def trim_obj(obj: Any, omissions: Iterable[str] = OMISSIONS) -> Any:
    """Return a copy of *obj* without the *omissions* keys (non-dicts pass through)."""
    if not isinstance(obj, dict):
        return obj
    omit = set(omissions)
    return {k: v for k, v in obj.items() if k not in omit}


def trim_data(data: Any, omissions: Iterable[str] = OMISSIONS) -> Any:
    """Trim a single object or every object of a list payload."""
    omissions = tuple(omissions)
    if isinstance(data, list):
        return [trim_obj(obj, omissions) for obj in data]
    return trim_obj(data, omissions)


def unwrap(body: Any) -> Any:
    """Pull the payload out of the ``{"data": ...}`` envelope."""
    if isinstance(body, dict):
        data = body.get("data")
        return data if data is not None else {}
    return {}


def format_filter_date(value: Union[str, int, float, date, datetime]) -> str:
    """Format a date as MM-DD-YYYY for ``modifiedsince`` filters.

    Accepts date/datetime objects, epoch milliseconds, ISO 8601 strings,
    ``YYYY/MM/DD``, ``MM/DD/YYYY`` and strings already in MM-DD-YYYY form.
    """
    if isinstance(value, (date, datetime)):
        return value.strftime("%m-%d-%Y")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000).strftime("%m-%d-%Y")
    if isinstance(value, str):
        text = value.strip()
        if _filter_date_re.match(text):
            return text
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).strftime("%m-%d-%Y")
        except ValueError:
            pass
        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).strftime("%m-%d-%Y")
            except ValueError:
                continue
    raise ValueError(f"Unrecognised date for modifiedsince filter: {value!r}")


def merge_query(*queries: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for q in queries:
        if q:
            merged.update(q)
    return merged
