from datetime import date, datetime, timedelta, timezone

import pytest

from currency_service.domain import BusinessDate, InvalidDate


def test_parse_plain_date():
    parsed = BusinessDate.parse("2024-12-26")
    assert parsed.to_date() == date(2024, 12, 26)
    assert parsed.format() == "2024-12-26"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-12-26 12:43:00+00", date(2024, 12, 26)),
        ("2024-12-26 12:43:00Z", date(2024, 12, 26)),
        ("2024-12-26 12:43:00+0000", date(2024, 12, 26)),
        ("2024-12-26 01:30:00+03:00", date(2024, 12, 25)),
        ("2024-12-26 22:15:00-05", date(2024, 12, 27)),
    ],
)
def test_parse_provider_timestamp_keeps_utc_calendar_day(raw, expected):
    assert BusinessDate.parse(raw).to_date() == expected


@pytest.mark.parametrize("raw", [None, "", "  ", "null", '"null"'])
def test_parse_empty_forms_give_zero(raw):
    parsed = BusinessDate.parse(raw)
    assert parsed.is_zero()
    assert parsed == BusinessDate.zero()
    assert not parsed


@pytest.mark.parametrize("raw", ["26.12.2024", "2024-13-01", "2024-12-26T12:43:00+00", "yesterday"])
def test_parse_rejects_unknown_layouts(raw):
    with pytest.raises(InvalidDate):
        BusinessDate.parse(raw)


def test_zero_serializes_as_null():
    zero = BusinessDate.zero()
    assert zero.format() == "null"
    assert zero.to_json() is None
    assert BusinessDate(date(2024, 1, 2)).to_json() == "2024-01-02"


def test_datetime_input_is_truncated_to_utc_day():
    moscow = timezone(timedelta(hours=3))
    assert BusinessDate(datetime(2024, 12, 27, 1, 0, tzinfo=moscow)).to_date() == date(2024, 12, 26)


def test_ordering_and_hashing():
    earlier = BusinessDate(date(2024, 1, 1))
    later = BusinessDate(date(2024, 1, 2))
    assert BusinessDate.zero() < earlier < later
    assert max([later, BusinessDate.zero(), earlier]) == later
    assert len({earlier, BusinessDate.parse("2024-01-01")}) == 1


@pytest.mark.parametrize("day", [date(2024, 12, 26), date(2000, 2, 29), date(1999, 1, 1)])
def test_formatted_day_parses_back(day):
    value = BusinessDate(day)
    assert BusinessDate.parse(value.format()) == value


def test_parse_day_accepts_only_bare_days():
    assert BusinessDate.parse_day(" 2024-01-15 ").to_date() == date(2024, 1, 15)
    for raw in ["", None, "null", "2024-01-15 10:00:00+00", "15.01.2024"]:
        with pytest.raises(InvalidDate):
            BusinessDate.parse_day(raw)
