"""schoolnet.ids

Resolve the many shapes an id can arrive in to a plain string. Callers may
pass a bare id, a record returned by an earlier call, or any object carrying
the right attribute. Each resource kind checks its own fields in order and
falls back to treating the input itself as the id.
"""
from __future__ import annotations

from typing import Any, Mapping, Sequence, Union

__all__ = [
    "IdLike",
    "resolve_id",
    "assessment_id",
    "institution_id",
    "school_id",
    "section_id",
    "staff_id",
]

IdLike = Union[str, int, Mapping[str, Any], Any]

ASSESSMENT_FIELDS = ("id", "instanceId")
INSTITUTION_FIELDS = ("id", "institutionId")
SECTION_FIELDS = ("id", "sectionId")
STAFF_FIELDS = ("staffId", "teacher", "id")


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def resolve_id(obj: IdLike, fields: Sequence[str]) -> str:
    """Return the first truthy value of *fields* on *obj*, else *obj* itself."""
    if isinstance(obj, (str, int)):
        return str(obj)
    for name in fields:
        value = _field(obj, name)
        if value:
            return str(value)
    if isinstance(obj, Mapping) or obj is None:
        raise ValueError(f"No id found in {obj!r} (looked for {', '.join(fields)})")
    return str(obj)


def assessment_id(obj: IdLike) -> str:
    return resolve_id(obj, ASSESSMENT_FIELDS)


def institution_id(obj: IdLike) -> str:
    """District or school id."""
    return resolve_id(obj, INSTITUTION_FIELDS)


school_id = institution_id


def section_id(obj: IdLike) -> str:
    return resolve_id(obj, SECTION_FIELDS)


def staff_id(obj: IdLike) -> str:
    return resolve_id(obj, STAFF_FIELDS)
