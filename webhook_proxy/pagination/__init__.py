from .directive import (
    MAX_PAGE_SIZE,
    PAGINATION_KEYS,
    PaginationDirective,
    extract_pagination,
    strip_pagination_params,
)
from .envelope import (
    PaginationMeta,
    ReshapeResult,
    paginate,
    reshape_body,
)
from .locator import (
    PREFERRED_ARRAY_KEYS,
    ArrayTarget,
    dump_json,
    locate_array,
    render_json,
)

__all__ = [
    "MAX_PAGE_SIZE",
    "PAGINATION_KEYS",
    "PREFERRED_ARRAY_KEYS",
    "ArrayTarget",
    "PaginationDirective",
    "PaginationMeta",
    "ReshapeResult",
    "dump_json",
    "extract_pagination",
    "locate_array",
    "paginate",
    "render_json",
    "reshape_body",
    "strip_pagination_params",
]
