"""Normalize cuisine tags stored in any of the historical column formats."""
import json
from typing import Any


def _tag(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict) and "name" in value:
        return str(value["name"]).strip()
    return str(value).strip() if value is not None else ""


def normalize_cuisines(raw: Any) -> tuple[str, ...]:
    """
    Return cuisine tags as a tuple of trimmed, non-empty strings.
    Accepts lists, JSON-encoded strings, comma-separated strings, dicts of values
    and objects carrying a "name" key. Anything else yields ().
    """
    if raw is None or raw == "":
        return ()
    if isinstance(raw, (list, tuple, set, frozenset)):
        return tuple(t for t in (_tag(v) for v in raw) if t)
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return tuple(t for t in (p.strip() for p in raw.split(",")) if t)
        if isinstance(parsed, str):
            return (parsed.strip(),) if parsed.strip() else ()
        return normalize_cuisines(parsed)
    if isinstance(raw, dict):
        if "name" in raw:
            return tuple(t for t in (_tag(raw),) if t)
        return tuple(t for t in (_tag(v) for v in raw.values()) if t)
    return ()
