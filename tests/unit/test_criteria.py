from __future__ import annotations

from datetime import date

import pytest

from sales_search.domain.errors import CriteriaValidationError
from sales_search.domain.models import SearchCriteria, SearchPage

DEFAULT_PAGE_SIZE = 10


def test_defaults_mean_no_constraint_and_newest_first():
    criteria = SearchCriteria()

    assert criteria.query is None
    assert criteria.customer_regions == ()
    assert criteria.tags == ()
    assert criteria.min_age is None and criteria.max_age is None
    assert criteria.start_date is None and criteria.end_date is None
    assert criteria.sort_by == "date"
    assert criteria.sort_direction == "desc"
    assert criteria.page == 0
    assert criteria.size == DEFAULT_PAGE_SIZE


def test_blank_strings_become_absent():
    criteria = SearchCriteria.from_params(
        query="   ",
        customer_regions=["North", "", "  "],
        tags=[" ", "gift"],
        start_date="",
        end_date=None,
        sort_by="",
    )

    assert criteria.query is None
    assert criteria.customer_regions == ("North",)
    assert criteria.tags == ("gift",)
    assert criteria.start_date is None
    assert criteria.end_date is None
    assert criteria.sort_by == "date"


def test_value_sets_drop_duplicates_preserving_order():
    criteria = SearchCriteria.from_params(genders=["Male", "Female", "Male"])

    assert criteria.genders == ("Male", "Female")


def test_query_keeps_original_text():
    criteria = SearchCriteria.from_params(query=" Neha ")

    assert criteria.query == " Neha "


def test_dates_are_parsed_from_calendar_format():
    criteria = SearchCriteria.from_params(start_date="2024-02-01", end_date="2024-03-01")

    assert criteria.start_date == date(2024, 2, 1)
    assert criteria.end_date == date(2024, 3, 1)


@pytest.mark.parametrize("bad", ["2024/02/01", "01-02-2024", "2024-2-1", "2024-02-30", "tomorrow"])
def test_malformed_date_is_a_validation_error(bad: str):
    with pytest.raises(CriteriaValidationError) as excinfo:
        SearchCriteria.from_params(start_date=bad)

    assert "start_date" in str(excinfo.value)


def test_validation_error_is_also_a_value_error():
    with pytest.raises(ValueError):
        SearchCriteria.from_params(end_date="not-a-date")


def test_age_bounds_pass_through_without_clamping():
    criteria = SearchCriteria.from_params(min_age=50, max_age=20)

    assert criteria.min_age == 50
    assert criteria.max_age == 20


@pytest.mark.parametrize("params", [{"page": -1}, {"size": 0}, {"size": -5}])
def test_invalid_paging_is_rejected(params):
    with pytest.raises(CriteriaValidationError):
        SearchCriteria.from_params(**params)


def test_criteria_are_immutable():
    criteria = SearchCriteria.from_params(query="neha")

    with pytest.raises(Exception):
        criteria.query = "other"  # type: ignore[misc]


def test_offset_follows_page_and_size():
    criteria = SearchCriteria.from_params(page=3, size=25)

    assert criteria.offset == 75


def test_search_page_total_pages():
    assert SearchPage(total=21, size=10, backend="csv").total_pages == 3
    assert SearchPage(total=0, size=10, backend="csv").total_pages == 0
