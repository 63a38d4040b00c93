"""Flatten Jira field values of any shape into display strings."""

from typing import Any

# list entries never fall back to displayName
_OBJECT_KEYS = ("value", "name", "displayName")
_LIST_ITEM_KEYS = ("value", "name")


def _scalar(item: Any, keys: tuple[str, ...]) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        for key in keys:
            candidate = item.get(key)
            if candidate:
                return candidate if isinstance(candidate, str) else str(candidate)
    return ""


def normalize_field_value(value: Any) -> str:
    """Return a display string for a raw Jira field value.

    Strings pass through unchanged. Option and user objects resolve to their
    ``value``, ``name`` or ``displayName`` (first non-empty wins). Lists of
    options are joined with ``", "`` after dropping empty entries. Anything
    else, including ``None`` and numbers, yields ``""``.
    """
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list | tuple):
        parts = (_scalar(item, _LIST_ITEM_KEYS) for item in value)
        return ", ".join(part for part in parts if part)
    return _scalar(value, _OBJECT_KEYS)


def normalize_field_id(field_id: str | None) -> str:
    """Strip the square brackets some admin screens wrap field ids in"""
    if not field_id:
        return ""
    return field_id.replace("[", "").replace("]", "")
