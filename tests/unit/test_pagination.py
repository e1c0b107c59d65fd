"""Unit tests for pagination state derivation."""

import pytest

from app.query.schemas import PaginationState, QueryDescriptor


class TestPaginationState:

    def test_first_of_two_pages(self):
        state = PaginationState.compute(page=1, page_size=50, total_count=97)
        assert state.total_pages == 2
        assert state.has_next_page is True
        assert state.has_prev_page is False

    def test_last_of_two_pages(self):
        state = PaginationState.compute(page=2, page_size=50, total_count=97)
        assert state.total_pages == 2
        assert state.has_next_page is False
        assert state.has_prev_page is True

    @pytest.mark.parametrize("total,pages", [(0, 0), (1, 1), (10, 1), (11, 2), (25, 3)])
    def test_total_pages_is_ceiling(self, total, pages):
        assert PaginationState.compute(page=1, page_size=10, total_count=total).total_pages == pages

    def test_page_past_the_end_keeps_requested_page(self):
        state = PaginationState.compute(page=5, page_size=10, total_count=25)
        assert state.current_page == 5
        assert state.has_next_page is False
        assert state.has_prev_page is True

    def test_unpaginated_results_sit_on_one_page(self):
        state = PaginationState.compute(page=3, page_size=0, total_count=42)
        assert state.current_page == 1
        assert state.total_pages == 1
        assert state.has_next_page is False
        assert state.has_prev_page is False

    def test_serializes_with_camel_case_keys(self):
        dumped = PaginationState.compute(page=1, page_size=10, total_count=25).model_dump(by_alias=True)
        assert dumped == {
            "currentPage": 1,
            "pageSize": 10,
            "totalCount": 25,
            "totalPages": 3,
            "hasNextPage": True,
            "hasPrevPage": False,
        }


class TestDescriptorValidation:

    def test_defaults(self):
        descriptor = QueryDescriptor(table="EMP")
        assert descriptor.page == 1
        assert descriptor.page_size == 50
        assert descriptor.columns == []

    @pytest.mark.parametrize("field,value", [("page", 0), ("pageSize", -1), ("pageSize", 100000)])
    def test_out_of_range_paging_is_rejected(self, field, value):
        with pytest.raises(ValueError):
            QueryDescriptor.model_validate({"table": "EMP", field: value})

    def test_descriptor_is_immutable(self):
        descriptor = QueryDescriptor(table="EMP")
        with pytest.raises(ValueError):
            descriptor.table = "DEPT"
