"""
Client-side pagination parameters.

The proxy accepts the usual spellings of a page-size parameter so callers
written against different APIs work unchanged. None of these keys ever
reach the upstream webhook.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Tuple, Union

PAGE_KEY = "page"
# Checked in this order; the first key present wins.
PAGE_SIZE_KEYS = ("limit", "per_page", "page_size", "pageSize")
PAGINATION_KEYS = frozenset((PAGE_KEY,) + PAGE_SIZE_KEYS)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000

QueryParams = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


@dataclass(frozen=True)
class PaginationDirective:
    """
    How the client wants the upstream result list sliced.

    Attributes:
        enabled: True when any pagination key was present in the query,
            whether or not its value was usable.
        page: 1-indexed page number.
        page_size: Items per page, between 1 and ``MAX_PAGE_SIZE``.
    """

    enabled: bool = False
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def start(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def end(self) -> int:
        return self.start + self.page_size


def _items(query_params: QueryParams) -> List[Tuple[str, str]]:
    # Starlette's QueryParams is a Mapping that also exposes multi_items()
    multi_items = getattr(query_params, "multi_items", None)
    if callable(multi_items):
        return list(multi_items())
    if isinstance(query_params, Mapping):
        return list(query_params.items())
    return list(query_params)


def _first(items: List[Tuple[str, str]], key: str) -> Optional[str]:
    for name, value in items:
        if name == key:
            return value
    return None


def sanitize_positive_int(
    value: Optional[str], fallback: int, maximum: Optional[int] = None
) -> int:
    """
    Parse a query value into a positive integer.

    Anything that is not a finite number of at least 1 after flooring yields
    ``fallback``. ``maximum`` caps the parsed value, never the fallback.
    """
    if value is None:
        return fallback
    try:
        parsed = float(value.strip())
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(parsed) or parsed <= 0:
        return fallback
    normalized = math.floor(parsed)
    if normalized < 1:
        return fallback
    if maximum:
        return min(normalized, maximum)
    return normalized


def extract_pagination(query_params: QueryParams) -> PaginationDirective:
    """Build the pagination directive for a request. Never raises."""
    items = _items(query_params)

    page_raw = _first(items, PAGE_KEY)
    size_raw = None
    size_present = False
    for key in PAGE_SIZE_KEYS:
        candidate = _first(items, key)
        if candidate is not None:
            size_raw = candidate
            size_present = True
            break

    return PaginationDirective(
        enabled=page_raw is not None or size_present,
        page=sanitize_positive_int(page_raw, DEFAULT_PAGE),
        page_size=sanitize_positive_int(size_raw, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE),
    )


def strip_pagination_params(query_params: QueryParams) -> List[Tuple[str, str]]:
    """Return the query parameters meant for the upstream, order preserved."""
    return [
        (key, value)
        for key, value in _items(query_params)
        if key not in PAGINATION_KEYS
    ]
