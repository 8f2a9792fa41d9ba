"""
Tests for range planning and A1 rendering.
"""

from carfleet.sheets.config import CARS, REPAIRS
from carfleet.sheets.ranges import (
    RangeSpec,
    clamp_limit,
    full_range,
    id_column_range,
    plan_page,
    row_range,
    total_pages,
)


class TestPlanPage:
    def test_first_page(self):
        plan = plan_page(CARS, 1, 10)
        assert plan.read_range.a1 == "'Cars'!A2:V11"
        assert plan.count_range.a1 == "'Cars'!A2:A"

    def test_third_page(self):
        plan = plan_page(REPAIRS, 3, 5)
        assert plan.read_range.first_row == 12
        assert plan.read_range.last_row == 16
        assert plan.read_range.a1 == "'Repairs'!A12:I16"

    def test_page_below_one_clamps(self):
        plan = plan_page(CARS, 0, 10)
        assert plan.page == 1
        assert plan.read_range.first_row == 2
        assert plan_page(CARS, -4, 10).page == 1

    def test_limit_clamps_to_maximum(self):
        plan = plan_page(CARS, 1, 50000)
        assert plan.limit == 1000
        assert plan.read_range.last_row == 1001

    def test_limit_below_one_clamps(self):
        assert plan_page(CARS, 1, 0).limit == 10  # default page size
        assert plan_page(CARS, 1, -3).limit == 1

    def test_custom_first_data_row(self):
        plan = plan_page(CARS, 2, 10, first_data_row=3)
        assert plan.read_range.first_row == 13
        assert plan.count_range.first_row == 3


class TestRanges:
    def test_full_range_is_open_ended(self):
        assert full_range(CARS).a1 == "'Cars'!A2:V"

    def test_id_column_range(self):
        assert id_column_range(REPAIRS).a1 == "'Repairs'!A2:A"

    def test_row_range(self):
        assert row_range(CARS, 7).a1 == "'Cars'!A7:V7"

    def test_sheet_names_are_quoted(self):
        assert RangeSpec("Car Sales", "B", "C", 2, 4).a1 == "'Car Sales'!B2:C4"


class TestTotals:
    def test_total_pages(self):
        assert total_pages(0, 10) == 0
        assert total_pages(10, 10) == 1
        assert total_pages(11, 10) == 2

    def test_clamp_limit(self):
        assert clamp_limit(None) == 10
        assert clamp_limit(5) == 5
        assert clamp_limit(2000) == 1000
