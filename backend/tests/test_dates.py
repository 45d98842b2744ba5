"""Date helper tests."""

from datetime import date, datetime, timezone

import pytest

from hrms_api.utils.dates import format_us_date, normalize_date, normalize_date_fields


class TestNormalizeDate:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2019-05-15", "2019-05-15"),
            ("2019-05-15T00:00:00.000Z", "2019-05-15"),
            ("2019-05-15 13:45:00", "2019-05-15"),
            ("  2019-05-15 ", "2019-05-15"),
            (date(2019, 5, 15), "2019-05-15"),
            (datetime(2019, 5, 15, 23, 59, tzinfo=timezone.utc), "2019-05-15"),
        ],
    )
    def test_normalizes(self, value, expected: str) -> None:
        assert normalize_date(value) == expected

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values_pass_through(self, value) -> None:
        assert normalize_date(value) == value

    @pytest.mark.parametrize("value", ["15/05/2019", "yesterday", 20190515])
    def test_rejects_garbage(self, value) -> None:
        with pytest.raises(ValueError):
            normalize_date(value)


def test_normalize_date_fields_only_touches_present_fields() -> None:
    record = {"start_date": "2020-01-01T08:00:00Z", "school": "State U"}

    result = normalize_date_fields(record, ("start_date", "end_date"))

    assert result == {"start_date": "2020-01-01", "school": "State U"}
    assert record["start_date"] == "2020-01-01T08:00:00Z"


def test_format_us_date() -> None:
    assert format_us_date(date(2026, 3, 2)) == "03/02/2026"
