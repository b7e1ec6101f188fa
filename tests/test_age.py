from datetime import date, datetime, timedelta

import pytest
from hypothesis import given, strategies as st

from pedgrowth.age import (
    calculate_age,
    completed_months,
    corrected_birth_date,
    format_age,
    to_date,
)
from pedgrowth.errors import DateOrderViolation


@pytest.mark.parametrize(
    "dob, observed_at, expected",
    [
        ("2023-01-15", "2023-02-14", 0),
        ("2023-01-15", "2023-02-15", 1),
        ("2022-06-15", "2023-06-14", 11),
        ("2022-06-15", "2023-06-15", 12),
        ("2020-03-10", "2023-03-09", 35),
        ("2020-03-10", "2023-03-10", 36),
    ],
)
def test_tc001_completed_month_boundaries(dob, observed_at, expected) -> None:
    """A month counts only once the birth day-of-month is reached"""
    assert completed_months(dob, observed_at) == expected


def test_tc002_same_day_is_zero() -> None:
    """Observation on the birth date is 0 months"""
    assert completed_months(date(2023, 5, 20), date(2023, 5, 20)) == 0


def test_tc003_end_of_month_birth() -> None:
    """Born on the 31st: a 30-day month never reaches day 31"""
    assert completed_months("2023-01-31", "2023-02-28") == 0
    assert completed_months("2023-01-31", "2023-03-31") == 2


def test_tc004_datetime_and_string_inputs() -> None:
    """datetime and ISO string inputs behave like dates"""
    assert completed_months(datetime(2023, 1, 1, 23, 59), "2023-07-01") == 6
    assert to_date("2023-07-01T08:30:00") == date(2023, 7, 1)


def test_tc005_observation_before_birth_clamps_to_zero() -> None:
    """Reversed dates clamp to 0 instead of raising"""
    assert completed_months("2023-06-01", "2023-01-01") == 0


def test_tc006_strict_mode_raises_on_reversed_dates() -> None:
    """Strict mode surfaces the date-order violation"""
    with pytest.raises(DateOrderViolation, match="precedes date of birth"):
        completed_months("2023-06-01", "2023-01-01", strict=True)


def test_tc007_calculate_age_flags_violation(caplog) -> None:
    """calculate_age flags and logs reversed dates"""
    age = calculate_age("2023-06-01", "2023-01-01")
    assert age.completed_months == 0
    assert age.date_order_violation is True
    assert age.age_days < 0
    assert "precedes date of birth" in caplog.text


def test_tc008_corrected_age_for_preterm() -> None:
    """Born at 32 weeks: corrected age lags chronological age by 8 weeks"""
    dob = date(2023, 1, 1)
    assert corrected_birth_date(dob, 32) == dob + timedelta(days=56)
    age = calculate_age(dob, date(2023, 7, 1), gestational_age_weeks=32)
    assert age.completed_months == 6
    assert age.corrected_months == 4
    assert age.should_use_corrected_age


def test_tc009_no_corrected_age_for_term_or_older() -> None:
    """Corrected age applies only below 37 weeks and under 24 months"""
    term = calculate_age("2023-01-01", "2023-07-01", gestational_age_weeks=39)
    assert term.corrected_months is None
    older = calculate_age("2020-01-01", "2023-07-01", gestational_age_weeks=30)
    assert older.corrected_months is None
    assert not older.should_use_corrected_age


@pytest.mark.parametrize(
    "months, expected",
    [(0, "0 months"), (1, "1 month"), (5, "5 months"), (12, "1 year"), (24, "2 years"), (27, "2y 3m")],
)
def test_tc010_format_age(months, expected) -> None:
    """Human-readable ages"""
    assert format_age(months) == expected


@given(
    dob=st.dates(min_value=date(2000, 1, 1), max_value=date(2030, 12, 31)),
    d1=st.integers(min_value=-400, max_value=4000),
    d2=st.integers(min_value=-400, max_value=4000),
)
def test_tc011_monotonic_and_non_negative(dob, d1, d2) -> None:
    """Later observations never report fewer completed months"""
    t1, t2 = sorted((dob + timedelta(days=d1), dob + timedelta(days=d2)))
    m1 = completed_months(dob, t1)
    m2 = completed_months(dob, t2)
    assert 0 <= m1 <= m2
