"""
Locate the list worth paginating inside an upstream JSON document.

Upstream response shapes are not under our control, so the search is a
heuristic: conventional container keys first, then any key holding a list
(or a JSON-encoded list in a string), then one level of nesting.

A located list is described by the path of object keys leading to it. The
document is never mutated; ``rebuild`` copies every object along the path
and shares everything else.
"""

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

PREFERRED_ARRAY_KEYS = (
    "data",
    "items",
    "records",
    "rows",
    "result",
    "results",
    "payload",
    "entries",
)

# How many object levels below the root the search may descend.
MAX_SEARCH_DEPTH = 1

JSON_SEPARATORS = (",", ":")


def _reject_constant(token: str):
    raise ValueError(f"Non-standard JSON constant: {token}")


def _parse_finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {token}")
    return value


def parse_json(text: str) -> Any:
    """
    Strict JSON parsing.

    ``NaN``, ``Infinity`` and numbers overflowing a float are rejected, as
    are documents nested too deeply to decode. Every failure is a
    ``ValueError``.
    """
    try:
        return json.loads(
            text, parse_constant=_reject_constant, parse_float=_parse_finite_float
        )
    except RecursionError as e:
        raise ValueError("JSON document nested too deeply") from e


def dump_json(value: Any) -> str:
    """Compact JSON text; raises ``ValueError`` for values JSON cannot represent."""
    try:
        return json.dumps(
            value, separators=JSON_SEPARATORS, ensure_ascii=False, allow_nan=False
        )
    except RecursionError as e:
        raise ValueError("JSON document nested too deeply") from e


def render_json(value: Any) -> bytes:
    """
    UTF-8 encoded JSON for a response body.

    Strings holding lone surrogates (legal as JSON escapes, not as UTF-8)
    are written as ``\\u`` escapes instead.
    """
    text = dump_json(value)
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError:
        return json.dumps(
            value, separators=JSON_SEPARATORS, ensure_ascii=True, allow_nan=False
        ).encode("ascii")


@dataclass(frozen=True)
class ArrayTarget:
    """
    A list found inside a JSON document.

    Attributes:
        data: The list itself (decoded, when ``encoded`` is set).
        path: Object keys leading from the root to the slot holding the list.
            Empty when the root is the list.
        encoded: The slot holds the list as a JSON string, and replacements
            must be written back the same way.
    """

    data: List[Any]
    path: Tuple[str, ...] = ()
    encoded: bool = False

    @property
    def root_is_array(self) -> bool:
        return not self.path

    def nested_under(self, key: str) -> "ArrayTarget":
        return ArrayTarget(data=self.data, path=(key,) + self.path, encoded=self.encoded)

    def rebuild(self, root: Any, replacement: List[Any]) -> Any:
        """Return a copy of ``root`` with ``replacement`` in place of the list."""
        value = dump_json(replacement) if self.encoded else replacement
        return set_at_path(root, self.path, value)


def set_at_path(root: Any, path: Tuple[str, ...], value: Any) -> Any:
    """Return ``root`` with ``value`` stored under ``path``, copying each object on the way."""
    if not path:
        return value
    head, rest = path[0], path[1:]
    if not isinstance(root, dict) or head not in root:
        raise KeyError(head)
    updated: Dict[str, Any] = dict(root)
    updated[head] = set_at_path(root[head], rest, value)
    return updated


def _as_array(value: Any) -> Optional[Tuple[List[Any], bool]]:
    """Return ``(list, encoded)`` when ``value`` is a list or a JSON string holding one."""
    if isinstance(value, list):
        return value, False
    if isinstance(value, str):
        try:
            decoded = parse_json(value)
        except ValueError:
            return None
        if isinstance(decoded, list):
            return decoded, True
    return None


def _match_key(obj: Dict[str, Any], key: str) -> Optional[ArrayTarget]:
    found = _as_array(obj[key])
    if found is None:
        return None
    data, encoded = found
    return ArrayTarget(data=data, path=(key,), encoded=encoded)


def locate_array(root: Any, depth: int = 0) -> Optional[ArrayTarget]:
    """
    Find the list to paginate in ``root``.

    Returns ``None`` when no candidate exists, in which case the document
    should be passed through untouched.
    """
    if isinstance(root, list):
        return ArrayTarget(data=root)
    if not isinstance(root, dict):
        return None

    for key in PREFERRED_ARRAY_KEYS:
        if key in root:
            target = _match_key(root, key)
            if target is not None:
                return target

    for key in root:
        target = _match_key(root, key)
        if target is not None:
            return target

    if depth >= MAX_SEARCH_DEPTH:
        return None

    for key, value in root.items():
        if isinstance(value, (dict, list)):
            nested = locate_array(value, depth + 1)
            if nested is not None:
                return nested.nested_under(key)

    return None
