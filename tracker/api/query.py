from typing import Any, Sequence, TypeVar

T = TypeVar("T")

SEARCH_PATTERN = r"^[A-Za-z0-9 _.,@-]*$"
SORT_PATTERN = r"^-?[a-z_]+$"


def apply_sort(items: list[T], sort: str | None, allowed: Sequence[str]) -> list[T]:
    """Sort by a whitelisted attribute; a leading '-' sorts descending, nulls last."""
    if not sort:
        return items
    reverse = sort.startswith("-")
    field = sort.lstrip("-")
    if field not in allowed:
        return items
    present = [item for item in items if getattr(item, field) is not None]
    missing = [item for item in items if getattr(item, field) is None]
    present.sort(key=lambda item: _sort_key(getattr(item, field)), reverse=reverse)
    return present + missing


def _sort_key(value: Any) -> Any:
    if hasattr(value, "value"):
        return value.value
    return value


def apply_pagination(items: list[T], page: int, limit: int) -> list[T]:
    page = max(page, 1)
    limit = max(limit, 1)
    offset = (page - 1) * limit
    return items[offset : offset + limit]
