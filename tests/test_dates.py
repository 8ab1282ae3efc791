import datetime as dt

import pytest

from distribution_server.dates import EMPTY_DATE, DateParts, format_date_fr, normalize_date

MARCH_5 = DateParts("05", "03", "2025")


@pytest.mark.parametrize("value", [
    "2025-03-05",
    "2025-03-05T10:00:00",
    "2025-03-05T00:00:00.000Z",
    "2025-03-05 10:00:00",
    "2025-3-5",
    "05/03/2025",
    "5/3/2025",
    "05/03/2025 10:00:00",
    " 05/03/2025 ",
    "2025/03/05",
    "45721",
    "Wed Mar 05 2025 00:00:00 GMT+0000 (Coordinated Universal Time)",
    "05-03-2025",
])
def test_same_day_in_every_shape(value):
    assert normalize_date(value) == MARCH_5


@pytest.mark.parametrize("value", [None, "", "   ", "pas de date", "12", "n/a", "??/??/????"])
def test_unparsable_gives_empty_triple(value):
    assert normalize_date(value) == EMPTY_DATE
    assert normalize_date(value).is_empty


def test_idempotent_on_canonical_output():
    first = normalize_date("05/03/2025 08:30")
    assert normalize_date(first.iso()) == first
    assert normalize_date(f"{first.day}/{first.month}/{first.year}") == first


def test_date_objects():
    assert normalize_date(dt.date(2025, 3, 5)) == MARCH_5
    assert normalize_date(dt.datetime(2025, 3, 5, 23, 59)) == MARCH_5


def test_to_date():
    assert MARCH_5.to_date() == dt.date(2025, 3, 5)
    assert EMPTY_DATE.to_date() is None
    # Well-formed but not a calendar day
    assert normalize_date("31/02/2025") == DateParts("31", "02", "2025")
    assert normalize_date("31/02/2025").to_date() is None


def test_format_date_fr():
    assert format_date_fr("2025-03-05T10:00:00") == "05/03/2025"
    assert format_date_fr("n/a") == "n/a"
    assert format_date_fr(None) == ""
