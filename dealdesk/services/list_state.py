"""
List-state reducer for dashboard clients.

Filter, pagination and sort state is a plain value; every user action maps
the old state to a new one. ``to_query_params`` turns a state into the query
string accepted by ``GET /api/deals``.
"""
from dataclasses import dataclass, field, replace
from typing import Union

from dealdesk.query.pagination import DEFAULT_LIMIT, DEFAULT_PAGE
from dealdesk.query.sorting import DEFAULT_DIRECTION, DEFAULT_SORT_KEY

FILTER_KEYS = ("search", "stage", "minValue", "maxValue", "startDate", "endDate")


def _empty_filters() -> dict[str, str]:
    filters = {key: "" for key in FILTER_KEYS}
    filters["stage"] = "all"
    return filters


@dataclass(frozen=True)
class ListState:
    filters: dict[str, str] = field(default_factory=_empty_filters)
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str = DEFAULT_SORT_KEY
    sort_order: str = DEFAULT_DIRECTION


@dataclass(frozen=True)
class SetFilters:
    filters: dict[str, str]


@dataclass(frozen=True)
class SetPage:
    page: int


@dataclass(frozen=True)
class SetLimit:
    limit: int


@dataclass(frozen=True)
class ToggleSort:
    field: str


@dataclass(frozen=True)
class Reset:
    pass


Action = Union[SetFilters, SetPage, SetLimit, ToggleSort, Reset]


def reduce(state: ListState, action: Action) -> ListState:
    """Apply one action. Changing what is listed always goes back to page 1."""
    if isinstance(action, SetFilters):
        filters = _empty_filters()
        filters.update({k: v for k, v in action.filters.items() if k in FILTER_KEYS})
        return replace(state, filters=filters, page=DEFAULT_PAGE)
    if isinstance(action, SetPage):
        return replace(state, page=max(DEFAULT_PAGE, action.page))
    if isinstance(action, SetLimit):
        return replace(state, limit=action.limit, page=DEFAULT_PAGE)
    if isinstance(action, ToggleSort):
        if state.sort_by == action.field:
            flipped = "DESC" if state.sort_order == "ASC" else "ASC"
            return replace(state, sort_order=flipped)
        return replace(state, sort_by=action.field, sort_order="ASC")
    if isinstance(action, Reset):
        return ListState()
    raise TypeError(f"Unknown action: {action!r}")


def to_query_params(state: ListState) -> dict[str, str]:
    """Query-string parameters for ``state``; empty filters are left out."""
    params = {key: value for key, value in state.filters.items() if value not in ("", None)}
    params.update({
        "page": str(state.page),
        "limit": str(state.limit),
        "sortBy": state.sort_by,
        "sortOrder": state.sort_order,
    })
    return params
