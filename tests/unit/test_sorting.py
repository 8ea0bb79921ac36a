"""
Unit tests for sort resolution and ordering.
"""
import pytest
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from sqlalchemy.dialects import postgresql

from dealdesk.models.deal import DealStage
from dealdesk.query.sorting import SORTABLE, SortSpec, order_by, resolve_sort, sort_rows


def _render(spec: SortSpec) -> list[str]:
    return [str(clause.compile(dialect=postgresql.dialect())) for clause in order_by(spec)]


class TestResolveSort:

    def test_defaults(self):
        assert resolve_sort(None, None) == SortSpec("created_at", "DESC")

    @pytest.mark.parametrize("key", sorted(SORTABLE))
    def test_whitelisted_keys_are_kept(self, key):
        assert resolve_sort(key, "ASC").key == key

    @pytest.mark.parametrize("key", ["id", "Value", "value; DROP TABLE deals", "description", ""])
    def test_unknown_keys_fall_back(self, key):
        assert resolve_sort(key, "ASC").key == "created_at"

    def test_direction_is_case_insensitive(self):
        assert resolve_sort("value", "asc").direction == "ASC"
        assert resolve_sort("value", " desc ").direction == "DESC"

    def test_unknown_direction_falls_back(self):
        assert resolve_sort("value", "sideways").direction == "DESC"


class TestOrderBy:

    def test_id_is_always_the_tiebreak(self):
        assert _render(SortSpec("value", "DESC")) == ["deals.value DESC", "deals.id ASC"]

    def test_close_date_puts_nulls_last(self):
        assert _render(SortSpec("close_date", "ASC"))[0] == "deals.close_date ASC NULLS LAST"

    def test_direction_never_comes_from_raw_input(self):
        spec = resolve_sort("name", "ASC; DROP TABLE deals")
        assert _render(spec)[0] == "deals.name DESC"


class TestSortRows:

    def _rows(self):
        return [
            SimpleNamespace(id=3, value=Decimal("10"), stage=DealStage.LOST, close_date=None),
            SimpleNamespace(id=1, value=Decimal("10"), stage=DealStage.NEW, close_date=date(2024, 3, 1)),
            SimpleNamespace(id=2, value=Decimal("30"), stage=DealStage.WON, close_date=date(2024, 1, 1)),
        ]

    def test_ties_break_on_id_ascending_in_both_directions(self):
        assert [r.id for r in sort_rows(self._rows(), SortSpec("value", "ASC"))] == [1, 3, 2]
        assert [r.id for r in sort_rows(self._rows(), SortSpec("value", "DESC"))] == [2, 1, 3]

    def test_stage_sorts_in_pipeline_order(self):
        assert [r.stage for r in sort_rows(self._rows(), SortSpec("stage", "ASC"))] == [
            DealStage.NEW, DealStage.WON, DealStage.LOST,
        ]

    def test_missing_close_dates_go_last(self):
        assert [r.id for r in sort_rows(self._rows(), SortSpec("close_date", "DESC"))] == [1, 2, 3]
        assert [r.id for r in sort_rows(self._rows(), SortSpec("close_date", "ASC"))] == [2, 1, 3]
