"""
Age normalization in WHO completed months.

A month counts only once the observation day-of-month reaches the birth
day-of-month, so two observations 29 and 30 days after birth can report
different ages depending on calendar boundaries. That granularity is part of
the clinical standard and is preserved exactly.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict

from .config import (
    CORRECTED_AGE_LIMIT_MONTHS,
    PRETERM_GESTATION_WEEKS,
    TERM_GESTATION_WEEKS,
)
from .errors import DateOrderViolation

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]


class AgeCalculation(BaseModel):
    """
    Derived age values for one (date of birth, observation date) pair.

    Attributes:
        completed_months: Chronological completed months, never negative.
        age_days: Chronological age in whole days (negative if dates are reversed).
        date_order_violation: True when the observation precedes birth.
        corrected_months: Completed months from the corrected birth date, set
            only for preterm infants under the corrected-age limit.
    """

    model_config = ConfigDict(frozen=True)

    completed_months: int
    age_days: int
    date_order_violation: bool = False
    corrected_months: Optional[int] = None

    @property
    def should_use_corrected_age(self) -> bool:
        return self.corrected_months is not None


def to_date(value: DateLike) -> date:
    """Coerce a date, datetime or ISO string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def _month_difference(dob: date, observed_at: date) -> int:
    months = (observed_at.year - dob.year) * 12 + (observed_at.month - dob.month)
    if observed_at.day < dob.day:
        months -= 1
    return months


def completed_months(
    dob: DateLike, observed_at: DateLike, strict: bool = False
) -> int:
    """
    Whole calendar months elapsed between birth and observation.

    Args:
        dob: Date of birth.
        observed_at: Observation date.
        strict: Raise instead of clamping when observed_at precedes dob.

    Returns:
        Completed months, clamped to 0.

    Raises:
        DateOrderViolation: Only in strict mode, when observed_at < dob.
    """
    birth = to_date(dob)
    observed = to_date(observed_at)
    if observed < birth:
        if strict:
            raise DateOrderViolation(
                f"Observation date {observed.isoformat()} precedes date of birth "
                f"{birth.isoformat()}"
            )
        return 0
    return max(0, _month_difference(birth, observed))


def corrected_birth_date(dob: DateLike, gestational_age_weeks: float) -> date:
    """Shift a preterm birth date forward to the expected term date."""
    weeks_preterm = TERM_GESTATION_WEEKS - gestational_age_weeks
    return to_date(dob) + timedelta(days=round(weeks_preterm * 7))


def calculate_age(
    dob: DateLike,
    observed_at: DateLike,
    gestational_age_weeks: Optional[float] = None,
) -> AgeCalculation:
    """
    Full age calculation including the date-order flag and corrected age.

    Corrected age applies to infants born before 37 weeks while their
    chronological age is under 24 completed months.
    """
    birth = to_date(dob)
    observed = to_date(observed_at)
    violation = observed < birth
    if violation:
        logger.warning(
            "Observation date %s precedes date of birth %s; age clamped to 0",
            observed.isoformat(),
            birth.isoformat(),
        )

    months = completed_months(birth, observed)
    corrected = None
    if (
        gestational_age_weeks is not None
        and gestational_age_weeks < PRETERM_GESTATION_WEEKS
        and months < CORRECTED_AGE_LIMIT_MONTHS
    ):
        corrected = completed_months(
            corrected_birth_date(birth, gestational_age_weeks), observed
        )

    return AgeCalculation(
        completed_months=months,
        age_days=(observed - birth).days,
        date_order_violation=violation,
        corrected_months=corrected,
    )


def format_age(age_months: int) -> str:
    """Render completed months as '5 months', '2 years' or '2y 3m'."""
    years, months = divmod(int(age_months), 12)
    if years == 0:
        return f"{months} month{'s' if months != 1 else ''}"
    if months == 0:
        return f"{years} year{'s' if years != 1 else ''}"
    return f"{years}y {months}m"
