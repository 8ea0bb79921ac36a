"""
Unit tests for page parsing and the pagination envelope.
"""
import pytest
from hypothesis import given, strategies as st

from dealdesk.core.errors import ValidationFailed
from dealdesk.query.pagination import (
    MAX_LIMIT,
    PageRequest,
    paginate,
    parse_page_request,
    total_pages,
)


class TestParsePageRequest:

    def test_defaults(self):
        assert parse_page_request(None, None) == PageRequest(1, 10)
        assert parse_page_request("", " ") == PageRequest(1, 10)

    def test_offset(self):
        assert parse_page_request("3", "25").offset == 50

    @pytest.mark.parametrize("page", ["0", "-1", "abc", "1.5"])
    def test_bad_page(self, page):
        with pytest.raises(ValidationFailed) as exc:
            parse_page_request(page, None)
        assert exc.value.field == "page"

    @pytest.mark.parametrize("limit", ["0", "101", "-10", "ten"])
    def test_bad_limit(self, limit):
        with pytest.raises(ValidationFailed) as exc:
            parse_page_request(None, limit)
        assert exc.value.field == "limit"

    def test_max_limit_is_accepted(self):
        assert parse_page_request("1", str(MAX_LIMIT)).limit == MAX_LIMIT


class TestPaginate:

    def test_empty_set_has_one_page(self):
        envelope = paginate(PageRequest(1, 10), 0)
        assert envelope.total_pages == 1
        assert envelope.total_records == 0
        assert not envelope.has_next
        assert not envelope.has_prev

    def test_middle_page(self):
        envelope = paginate(PageRequest(2, 2), 5)
        assert envelope.total_pages == 3
        assert envelope.has_next
        assert envelope.has_prev

    def test_page_past_the_end_is_not_an_error(self):
        envelope = paginate(PageRequest(9, 10), 5)
        assert envelope.current_page == 9
        assert not envelope.has_next
        assert envelope.has_prev

    @given(total=st.integers(min_value=0, max_value=10_000), limit=st.integers(min_value=1, max_value=MAX_LIMIT))
    def test_pages_cover_every_record_exactly(self, total, limit):
        pages = total_pages(total, limit)
        assert pages >= 1
        assert (pages - 1) * limit <= max(total - 1, 0)
        assert total <= pages * limit

    @given(
        total=st.integers(min_value=0, max_value=1_000),
        page=st.integers(min_value=1, max_value=50),
        limit=st.integers(min_value=1, max_value=MAX_LIMIT),
    )
    def test_navigation_flags(self, total, page, limit):
        envelope = paginate(PageRequest(page, limit), total)
        assert envelope.has_prev == (page > 1)
        assert envelope.has_next == (page * limit < total)
