"""
Helpers for reading activity records.

Records may be ORM instances, plain objects or mappings (e.g. decoded API
payloads). Everything in the core reads fields through these helpers so it
does not care which one it was handed.
"""

from collections.abc import Mapping
from typing import Any, List


def read_field(record, name, default=None):
    if record is None:
        return default
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def write_field(record, name, value):
    if isinstance(record, Mapping):
        record[name] = value
    else:
        setattr(record, name, value)


def read_list(record, name):
    value = read_field(record, name)
    if not value:
        return []
    return list(value)


def safe_id(value):
    # ids pass through unchanged
    if value is None:
        return None
    if isinstance(value, (int, str)):
        return value
    return read_field(value, "id")


def mechanic_id_of(assignment):
    mid = read_field(assignment, "mechanic_id")
    if mid is None:
        mid = safe_id(read_field(assignment, "mechanic"))
    return mid


def activity_id_of(assignment):
    aid = read_field(assignment, "activity_id")
    if aid is None:
        aid = safe_id(read_field(assignment, "activity"))
    return aid


def unit_id_of(assignment):
    activity = read_field(assignment, "activity")
    uid = read_field(activity, "unit_id")
    if uid is None:
        uid = safe_id(read_field(activity, "unit"))
    return uid


def assignments_of(activity_or_assignments: Any) -> List[Any]:
    """Accept an activity (reads its ``mechanics``) or an iterable of assignments."""
    if activity_or_assignments is None:
        return []
    if isinstance(activity_or_assignments, Mapping) or hasattr(activity_or_assignments, "mechanics"):
        return read_list(activity_or_assignments, "mechanics")
    return list(activity_or_assignments)

