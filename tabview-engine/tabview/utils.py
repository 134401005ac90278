import re
from typing import Any, List

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")
_MISSING = object()


def start_case(text: str) -> str:
    """Convert an identifier to `Start Case`.

    Both `snake_case` and `camelCase` identifiers are split into words, so
    `created_at` and `createdAt` both become `Created At`.
    """
    words = _WORD_RE.findall(text or "")
    return " ".join(w[0].upper() + w[1:] for w in words)


def split_path(path: str) -> List[str]:
    """Split a dotted path into its parts, ignoring empty parts."""
    return [p for p in (path or "").split(".") if p]


def get_value(item: Any, path: str, default: Any = None) -> Any:
    """Read a (possibly nested) value from a record.

    The record may be a mapping or a plain object. Each part of the dotted
    `path` is looked up as a key first and as an attribute second.

    Args:
        item: The record to read from.
        path: The dotted path to the value (`product.name`).
        default: The value to return if any part of the path is missing.
    """
    current = item
    for part in split_path(path):
        if current is None:
            return default
        if hasattr(current, "get") and callable(current.get):
            value = current.get(part, _MISSING)
        else:
            value = getattr(current, part, _MISSING)
        if value is _MISSING:
            return default
        current = value
    return current
