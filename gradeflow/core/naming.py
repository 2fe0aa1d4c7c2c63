"""
Key-name conversion between persisted rows (snake_case) and canonical
records (camelCase).

Only mapping keys are rewritten. Values are walked so nested records and
lists of records are converted too, but scalars (including strings) are
returned untouched.
"""

import re
from typing import Any, List, Optional

SNAKE_KEY = re.compile(r"^[a-z][a-z0-9]*(?:_[a-z][a-z0-9]*)*$")
CAMEL_KEY = re.compile(r"^[a-z][a-z0-9]*(?:[A-Z][a-z0-9]*)*$")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def camel_to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _convert_key(key, source: re.Pattern, target: re.Pattern, convert) -> Optional[str]:
    """Return the converted key, or None when it can't be converted safely."""
    if not isinstance(key, str):
        return None
    if source.match(key):
        return convert(key)
    if target.match(key):
        # already in the target convention
        return key
    return None


def _walk(value: Any, source, target, convert, malformed: Optional[List[str]], path: str) -> Any:
    if isinstance(value, dict):
        converted = {key: _convert_key(key, source, target, convert) for key in value}
        # keys already in the target convention keep their own name
        claimed = {key for key, new_key in converted.items() if new_key == key}
        out = {}
        for key, item in value.items():
            key_path = f"{path}.{key}" if path else str(key)
            new_key = converted[key]
            collides = new_key != key and (new_key in claimed or new_key in out)
            if new_key is None or collides:
                new_key = key
                if malformed is not None:
                    malformed.append(key_path)
            out[new_key] = _walk(item, source, target, convert, malformed, key_path)
        return out
    if isinstance(value, list):
        return [
            _walk(item, source, target, convert, malformed, f"{path}[{i}]")
            for i, item in enumerate(value)
        ]
    if isinstance(value, tuple):
        return tuple(
            _walk(item, source, target, convert, malformed, f"{path}[{i}]")
            for i, item in enumerate(value)
        )
    return value


def to_canonical(record: Any, malformed: Optional[List[str]] = None) -> Any:
    """
    Convert a persisted record (snake_case keys) to its canonical form.

    Args:
        record: A mapping, a list/tuple of mappings, or any nesting of those.
        malformed: Optional list that collects the dotted paths of keys that
            could not be converted, or whose converted name is already taken
            by another key of the same mapping. Those keys are passed through
            unchanged, so no value is ever dropped.

    Returns:
        A new structure with camelCase keys. The input is not modified.
    """
    return _walk(record, SNAKE_KEY, CAMEL_KEY, snake_to_camel, malformed, "")


def to_persisted(record: Any, malformed: Optional[List[str]] = None) -> Any:
    """
    Convert a canonical record (camelCase keys) to the persisted form.

    Mirror image of :func:`to_canonical`.
    """
    return _walk(record, CAMEL_KEY, SNAKE_KEY, camel_to_snake, malformed, "")
