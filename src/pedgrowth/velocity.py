"""
Growth velocity between consecutive assessments.
"""

from typing import Iterable

import numpy as np
import pandas as pd

from .config import DAYS_PER_MONTH
from .models import AssessmentResult

VELOCITY_COLUMNS = [
    "measurement_type",
    "observed_at",
    "actual_age_months",
    "value",
    "z_score",
    "delta_value",
    "delta_months",
    "delta_days",
    "velocity",
    "rate_per_month",
    "percent_change",
]


def history_frame(history: Iterable[AssessmentResult]) -> pd.DataFrame:
    """Chronologically sorted frame of the fields velocity and trend rules need."""
    records = [
        {
            "measurement_type": result.measurement_type.value,
            "observed_at": pd.Timestamp(result.observed_at),
            "actual_age_months": result.actual_age_months,
            "value": result.value,
            "z_score": result.z_score,
        }
        for result in history
    ]
    df = pd.DataFrame.from_records(records, columns=VELOCITY_COLUMNS[:5])
    # stable sort keeps input order for same-day measurements
    return df.sort_values(
        ["measurement_type", "observed_at"], kind="mergesort"
    ).reset_index(drop=True)


def growth_velocities(history: Iterable[AssessmentResult]) -> pd.DataFrame:
    """
    Calculate growth velocity between consecutive measurements of each type.

    Parameters
    ----------
    history : Iterable[AssessmentResult]
        Assessments for one child, in any order and of any mix of types.

    Returns
    -------
    pd.DataFrame
        One row per assessment, sorted by type then date, with:
        - delta_value: change since the previous measurement of that type
        - delta_months: change in completed months
        - delta_days: calendar days elapsed
        - velocity: delta_value / delta_months (NaN when delta_months is 0)
        - rate_per_month: delta_value per 30.4375 days (NaN when delta_days is 0)
        - percent_change: relative change in percent
        The first row of each type has NaN deltas.
    """
    df = history_frame(history)
    if df.empty:
        return pd.DataFrame(columns=VELOCITY_COLUMNS)

    grouped = df.groupby("measurement_type", sort=False)
    df["delta_value"] = grouped["value"].diff()
    df["delta_months"] = grouped["actual_age_months"].diff()
    df["delta_days"] = grouped["observed_at"].diff().dt.days

    delta_months = df["delta_months"].replace(0, np.nan)
    delta_days = df["delta_days"].replace(0, np.nan)
    df["velocity"] = df["delta_value"] / delta_months
    df["rate_per_month"] = df["delta_value"] / delta_days * DAYS_PER_MONTH
    df["percent_change"] = df["delta_value"] / grouped["value"].shift() * 100.0

    return df[VELOCITY_COLUMNS]
