import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from webhook_proxy.pagination.directive import PaginationDirective
from webhook_proxy.pagination.locator import (
    ArrayTarget,
    locate_array,
    parse_json,
    render_json,
)

OUTCOME_PAGINATED = "paginated"
OUTCOME_NOT_JSON = "not_json"
OUTCOME_NO_ARRAY = "no_array"


@dataclass(frozen=True)
class PaginationMeta:
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @classmethod
    def build(cls, directive: PaginationDirective, total_items: int) -> "PaginationMeta":
        total_pages = (
            math.ceil(total_items / directive.page_size) if directive.page_size > 0 else 0
        )
        return cls(
            page=directive.page,
            page_size=directive.page_size,
            total_items=total_items,
            total_pages=total_pages,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "totalItems": self.total_items,
            "totalPages": self.total_pages,
        }


@dataclass(frozen=True)
class ReshapeResult:
    """
    Outcome of trying to paginate an upstream body.

    ``payload`` and its encoded ``body`` are set only when paginated.
    """

    outcome: str
    payload: Optional[Any] = None
    body: Optional[bytes] = None

    @property
    def paginated(self) -> bool:
        return self.outcome == OUTCOME_PAGINATED


def paginate(target: ArrayTarget, directive: PaginationDirective, root: Any) -> Any:
    """Slice the located list and wrap the rebuilt document with pagination metadata."""
    meta = PaginationMeta.build(directive, len(target.data)).to_dict()
    sliced = target.data[directive.start : directive.end]

    if target.root_is_array:
        return {"data": target.rebuild(root, sliced), "pagination": meta}

    rebuilt = target.rebuild(root, sliced)
    if isinstance(rebuilt, dict):
        return {**rebuilt, "pagination": meta}
    return {"data": sliced, "pagination": meta}


def reshape_body(text: str, directive: PaginationDirective) -> ReshapeResult:
    """
    Paginate an upstream body if it is JSON containing a list.

    Pagination is best effort: bodies that are not strict JSON, hold no
    list, or cannot be written back as JSON come back as a non-paginated
    result and are proxied unchanged.
    """
    try:
        root = parse_json(text)
    except ValueError:
        return ReshapeResult(OUTCOME_NOT_JSON)

    target = locate_array(root)
    if target is None:
        return ReshapeResult(OUTCOME_NO_ARRAY)

    try:
        payload = paginate(target, directive, root)
        body = render_json(payload)
    except ValueError:
        return ReshapeResult(OUTCOME_NOT_JSON)

    return ReshapeResult(OUTCOME_PAGINATED, payload, body)
