"""
Unit tests for the dashboard list-state reducer.
"""
from dealdesk.services.list_state import (
    ListState,
    Reset,
    SetFilters,
    SetLimit,
    SetPage,
    ToggleSort,
    reduce,
    to_query_params,
)


def test_initial_state_lists_newest_first():
    state = ListState()
    assert (state.page, state.limit, state.sort_by, state.sort_order) == (1, 10, "created_at", "DESC")
    assert state.filters["stage"] == "all"


def test_filters_reset_the_page():
    state = reduce(ListState(page=4), SetFilters({"search": "cloud", "unknown": "x"}))
    assert state.page == 1
    assert state.filters["search"] == "cloud"
    assert "unknown" not in state.filters


def test_limit_change_resets_the_page():
    state = reduce(ListState(page=3), SetLimit(25))
    assert (state.page, state.limit) == (1, 25)


def test_page_never_drops_below_one():
    assert reduce(ListState(), SetPage(0)).page == 1
    assert reduce(ListState(), SetPage(5)).page == 5


def test_toggle_same_field_flips_direction():
    state = reduce(ListState(), ToggleSort("created_at"))
    assert state.sort_order == "ASC"
    assert reduce(state, ToggleSort("created_at")).sort_order == "DESC"


def test_toggle_new_field_starts_ascending():
    state = reduce(ListState(), ToggleSort("value"))
    assert (state.sort_by, state.sort_order) == ("value", "ASC")


def test_reset():
    state = reduce(reduce(ListState(), SetFilters({"stage": "Won"})), SetPage(2))
    assert reduce(state, Reset()) == ListState()


def test_query_params_drop_empty_filters():
    state = reduce(ListState(), SetFilters({"search": "", "minValue": "100"}))
    params = to_query_params(state)
    assert params == {
        "stage": "all",
        "minValue": "100",
        "page": "1",
        "limit": "10",
        "sortBy": "created_at",
        "sortOrder": "DESC",
    }
