"""
Date helpers and payment period math.
"""

from datetime import UTC, date, datetime

import pytest

from app.core.clock import add_months, format_dmy, local_date, local_day_bounds, local_to_utc
from app.services.finance_service import resolve_period


@pytest.mark.parametrize(
    "start, months, expected",
    [
        (date(2025, 1, 15), 1, date(2025, 2, 15)),
        (date(2025, 1, 31), 1, date(2025, 2, 28)),
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2025, 11, 30), 3, date(2026, 2, 28)),
        (date(2025, 3, 10), 12, date(2026, 3, 10)),
    ],
)
def test_add_months_clamps_to_month_end(start, months, expected):
    assert add_months(start, months) == expected


def test_local_day_bounds_in_mexico_city():
    start, end = local_day_bounds(date(2025, 3, 10), "America/Mexico_City")
    assert start == datetime(2025, 3, 10, 6, 0, tzinfo=UTC)
    assert end == datetime(2025, 3, 11, 6, 0, tzinfo=UTC)


def test_local_date_crosses_midnight():
    late_evening_utc = datetime(2025, 3, 11, 3, 0, tzinfo=UTC)
    assert local_date(late_evening_utc, "America/Mexico_City") == date(2025, 3, 10)
    assert local_date(late_evening_utc, "UTC") == date(2025, 3, 11)


def test_local_date_treats_naive_values_as_utc():
    assert local_date(datetime(2025, 3, 11, 3, 0), "America/Mexico_City") == date(2025, 3, 10)


def test_unknown_timezone_falls_back_to_default():
    assert local_day_bounds(date(2025, 3, 10), "Not/AZone") == local_day_bounds(
        date(2025, 3, 10), "America/Mexico_City"
    )


def test_local_to_utc():
    assert local_to_utc(date(2025, 3, 10), "07:30", "America/Mexico_City") == datetime(
        2025, 3, 10, 13, 30, tzinfo=UTC
    )


def test_format_dmy():
    assert format_dmy(date(2025, 3, 5)) == "05/03/2025"
    assert format_dmy(None) == ""


# ---------------------------------------------------------------------------
# Payment periods
# ---------------------------------------------------------------------------

TODAY = date(2025, 6, 10)


def test_new_membership_starts_today():
    assert resolve_period(None, 1, TODAY) == (TODAY, date(2025, 7, 10), False)


def test_active_membership_is_extended_from_its_end():
    start, end, extension = resolve_period(date(2025, 6, 20), 3, TODAY)
    assert (start, end, extension) == (date(2025, 6, 20), date(2025, 9, 20), True)


def test_membership_ending_today_is_still_extended():
    assert resolve_period(TODAY, 1, TODAY) == (TODAY, date(2025, 7, 10), True)


def test_lapsed_membership_restarts_today():
    assert resolve_period(date(2025, 5, 1), 1, TODAY) == (TODAY, date(2025, 7, 10), False)


def test_explicit_start_date_wins():
    start, end, extension = resolve_period(date(2025, 6, 20), 6, TODAY, start_date=date(2025, 7, 1))
    assert (start, end, extension) == (date(2025, 7, 1), date(2026, 1, 1), False)
