import time
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from expense_import.normalizers import parse_amount, parse_date, title_case, to_decimal

TODAY = date(2025, 6, 15)


# ---- amounts -------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("500", Decimal("500")),
        ("-200", Decimal("-200")),
        ("1,234.50", Decimal("1234.50")),
        ("(12.34)", Decimal("-12.34")),
        ("$1,000", Decimal("1000")),
        ("₹ 250.75", Decimal("250.75")),
        ("-($1,234.56)", Decimal("-1234.56")),
        ("+42", Decimal("42")),
    ],
)
def test_to_decimal_accepts_common_bank_formats(raw, expected):
    assert to_decimal(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "abc", "12abc", "$", "()", "nan", "inf"])
def test_to_decimal_rejects_non_numeric(raw):
    with pytest.raises(ValueError):
        to_decimal(raw)


def test_parse_amount_handles_native_numbers():
    assert parse_amount(500) == Decimal("500")
    assert parse_amount(500.1) == Decimal("500.1")
    assert parse_amount(Decimal("7.25")) == Decimal("7.25")


def test_parse_amount_returns_none_for_unusable_cells():
    assert parse_amount(None) is None
    assert parse_amount("") is None
    assert parse_amount("n/a") is None
    assert parse_amount(True) is None
    assert parse_amount(float("nan")) is None
    assert parse_amount(datetime(2024, 1, 1)) is None


# ---- dates ---------------------------------------------------------------------


def test_day_first_string_is_not_read_month_first():
    assert parse_date("05-03-2024", today=TODAY) == "2024-03-05"
    assert parse_date("5/3/2024", today=TODAY) == "2024-03-05"
    assert parse_date("31/12/2023", today=TODAY) == "2023-12-31"


def test_native_date_values():
    assert parse_date(date(2024, 3, 5), today=TODAY) == "2024-03-05"
    assert parse_date(datetime(2024, 3, 5, 23, 30), today=TODAY) == "2024-03-05"


@pytest.fixture()
def kolkata_tz(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TZ", "Asia/Kolkata")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_tz_aware_values_use_local_calendar_date(kolkata_tz):
    # 23:30 UTC is 05:00 the next day at UTC+05:30
    assert parse_date(datetime(2024, 3, 5, 23, 30, tzinfo=timezone.utc)) == "2024-03-06"
    assert parse_date("2024-03-05T23:30:00Z") == "2024-03-06"
    assert parse_date(datetime(2024, 3, 5, 23, 30)) == "2024-03-05"


def test_generic_parse_for_other_strings():
    assert parse_date("2024-01-02", today=TODAY) == "2024-01-02"
    assert parse_date("March 5, 2024", today=TODAY) == "2024-03-05"


def test_invalid_day_first_date_falls_through_to_today():
    assert parse_date("31-02-2024", today=TODAY) == TODAY.isoformat()


@pytest.mark.parametrize("value", [None, "", "   ", "not a date", 12345])
def test_missing_or_unparseable_dates_default_to_today(value):
    assert parse_date(value, today=TODAY) == "2025-06-15"


def test_today_defaults_to_current_date():
    assert parse_date(None) == date.today().isoformat()


# ---- names ---------------------------------------------------------------------


def test_title_case():
    assert title_case("kirana store") == "Kirana Store"
    assert title_case("SWIGGY ORDER") == "Swiggy Order"
    assert title_case("  food & drinks ") == "Food & Drinks"
    assert title_case("") == ""
