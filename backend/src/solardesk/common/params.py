"""Query parameter dependencies for list endpoints.

``limit`` and ``offset`` are plain decimal integers, validated and never
clamped: anything that is not ASCII digits, or outside ``limit`` in
[1, 100] or ``offset`` >= 0, is rejected with 400 ``invalid query``.
``q`` is trimmed; an empty search means no search.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple, Type

from fastapi import Query

from ..errors import InvalidInputError

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
MAX_QUERY_LENGTH = 100

# Lax int parsing would accept "+5", " 5", "1_0" and "1.0"
DECIMAL_PATTERN = r"^[0-9]+$"


@dataclass(frozen=True)
class ListParams:
    limit: int = DEFAULT_LIMIT
    offset: int = 0
    q: Optional[str] = None
    status: Optional[Enum] = None


def page_bounds(limit: str, offset: str) -> Tuple[int, int]:
    """Convert validated ``limit``/``offset`` strings and check their range.

    Raises:
        InvalidInputError: Not a decimal integer, or out of range
    """
    if not (limit.isascii() and limit.isdigit() and offset.isascii() and offset.isdigit()):
        raise InvalidInputError("invalid query")
    limit_value, offset_value = int(limit), int(offset)
    if not 1 <= limit_value <= MAX_LIMIT:
        raise InvalidInputError("invalid query")
    return limit_value, offset_value


def normalize_search(q: Optional[str]) -> Optional[str]:
    """Trim ``q``; empty means absent.

    Raises:
        InvalidInputError: Search longer than 100 characters
    """
    if q is None:
        return None
    q = q.strip()
    if not q:
        return None
    if len(q) > MAX_QUERY_LENGTH:
        raise InvalidInputError("invalid query")
    return q


def list_params(
    limit: str = Query(str(DEFAULT_LIMIT), pattern=DECIMAL_PATTERN),
    offset: str = Query("0", pattern=DECIMAL_PATTERN),
    q: Optional[str] = Query(None),
) -> ListParams:
    limit_value, offset_value = page_bounds(limit, offset)
    return ListParams(limit=limit_value, offset=offset_value, q=normalize_search(q))


def status_list_params(status_enum: Type[Enum]) -> Callable:
    """Create a list-parameter dependency that also accepts a ``status`` filter.

    Example:
        @router.get("")
        def list_projects(params: ListParams = Depends(status_list_params(ProjectStatus))):
            ...
    """

    def dependency(
        limit: str = Query(str(DEFAULT_LIMIT), pattern=DECIMAL_PATTERN),
        offset: str = Query("0", pattern=DECIMAL_PATTERN),
        q: Optional[str] = Query(None),
        status: Optional[status_enum] = Query(None),
    ) -> ListParams:
        limit_value, offset_value = page_bounds(limit, offset)
        return ListParams(limit=limit_value, offset=offset_value, q=normalize_search(q), status=status)

    return dependency
