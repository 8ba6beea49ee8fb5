"""
Subset of CouchDB Mango selectors evaluated against decoded documents.

Supported forms, combined with implicit AND:

    {"field": value}                  equality
    {"field": {"$eq": value}}
    {"field": {"$exists": bool}}
    {"field": {"$regex": pattern}}    re.search on str(value)
    {"field": {"$in": [v1, v2]}}

The pseudo-field ``_id`` refers to the world-state key.
"""
import re
from typing import Any, Dict

from securedrive.core.exceptions import InvalidArgument


_MISSING = object()

_OPERATORS = {"$eq", "$exists", "$regex", "$in"}


def validate_selector(selector: Dict[str, Any]) -> None:
    """Reject unsupported operators up front."""
    if not isinstance(selector, dict):
        raise InvalidArgument("selector must be a mapping")
    for field, condition in selector.items():
        if isinstance(condition, dict):
            unknown = set(condition) - _OPERATORS
            if unknown:
                raise InvalidArgument(
                    f"Unsupported selector operator(s) for '{field}': {sorted(unknown)}"
                )
            if "$regex" in condition:
                try:
                    re.compile(condition["$regex"])
                except re.error as e:
                    raise InvalidArgument(f"Invalid regex for '{field}': {e}") from e


def _match_condition(value: Any, condition: Any) -> bool:
    if not isinstance(condition, dict):
        return value is not _MISSING and value == condition

    for op, operand in condition.items():
        if op == "$eq":
            if value is _MISSING or value != operand:
                return False
        elif op == "$exists":
            if (value is not _MISSING) != bool(operand):
                return False
        elif op == "$regex":
            if value is _MISSING or re.search(operand, str(value)) is None:
                return False
        elif op == "$in":
            if value is _MISSING or value not in operand:
                return False
    return True


def matches(selector: Dict[str, Any], key: str, document: Any) -> bool:
    """True when ``document`` stored under ``key`` satisfies ``selector``."""
    if not isinstance(document, dict):
        document = {}
    for field, condition in selector.items():
        value = key if field == "_id" else document.get(field, _MISSING)
        if not _match_condition(value, condition):
            return False
    return True
