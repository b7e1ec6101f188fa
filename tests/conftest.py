from datetime import date
from typing import List, Optional, Tuple

import pytest

from pedgrowth.classification import classify
from pedgrowth.enums import MeasurementType, Sex
from pedgrowth.models import AssessmentResult, Measurement
from pedgrowth.reference import ReferenceDataPoint, ReferenceDataset, SexParameters
from pedgrowth.zscores import percentile_from_z, sd_band

Params = Tuple[float, float]


def make_dataset(
    rows: List[Tuple[int, Params, Params]],
    measurement_type: MeasurementType = MeasurementType.WEIGHT,
    version: str = "test",
) -> ReferenceDataset:
    """Build a synthetic dataset from (age, (male mean, sd), (female mean, sd)) rows."""
    return ReferenceDataset(
        measurement_type=measurement_type,
        version=version,
        rows=[
            ReferenceDataPoint(
                age_months=age,
                male=SexParameters(mean=male[0], sd=male[1]),
                female=SexParameters(mean=female[0], sd=female[1]),
            )
            for age, male, female in rows
        ],
    )


def make_result(
    z_score: float,
    observed_at: date,
    measurement_type: MeasurementType = MeasurementType.WEIGHT,
    value: float = 8.0,
    actual_age_months: int = 6,
    classification=None,
) -> AssessmentResult:
    """AssessmentResult stub for alert tests; only the fields rules read matter."""
    return AssessmentResult(
        measurement_type=measurement_type,
        value=value,
        sex=Sex.MALE,
        observed_at=observed_at,
        z_score=z_score,
        percentile=percentile_from_z(z_score),
        classification=classification or classify(z_score, measurement_type),
        sd_category=sd_band(z_score),
        reference_age_months=actual_age_months,
        actual_age_months=actual_age_months,
        dataset_max_age_months=60,
    )


@pytest.fixture
def weight_dataset() -> ReferenceDataset:
    """Weight-for-age table sampled quarterly, 0-12 months."""
    return make_dataset(
        [
            (0, (3.3, 0.5), (3.2, 0.45)),
            (3, (6.4, 0.8), (5.8, 0.75)),
            (6, (7.9, 0.9), (7.3, 0.85)),
            (9, (8.9, 1.0), (8.2, 0.95)),
            (12, (9.6, 1.0), (8.9, 1.0)),
        ]
    )


@pytest.fixture
def flat_dataset() -> ReferenceDataset:
    """Weight-for-age table with mean=10, sd=1 at every age up to 60 months."""
    return make_dataset([(age, (10.0, 1.0), (10.0, 1.0)) for age in (0, 30, 60)])


@pytest.fixture
def gapped_dataset() -> ReferenceDataset:
    """Table with rows at 0, 2 and 4 months only."""
    return make_dataset(
        [
            (0, (3.0, 0.5), (2.9, 0.5)),
            (2, (5.0, 0.6), (4.8, 0.6)),
            (4, (6.0, 0.7), (5.8, 0.7)),
        ]
    )


@pytest.fixture
def zero_sd_dataset() -> ReferenceDataset:
    """Malformed table: the 6-month male row has sd=0."""
    return make_dataset(
        [
            (0, (3.3, 0.5), (3.2, 0.45)),
            (6, (7.9, 0.0), (7.3, 0.85)),
        ]
    )


@pytest.fixture
def empty_dataset() -> ReferenceDataset:
    return ReferenceDataset(measurement_type=MeasurementType.WEIGHT)


@pytest.fixture
def dob() -> date:
    return date(2023, 1, 1)


@pytest.fixture
def six_month_weight() -> Measurement:
    """Male weight of 8.2 kg at exactly 6 completed months for dob 2023-01-01."""
    return Measurement(
        type=MeasurementType.WEIGHT,
        value=8.2,
        sex=Sex.MALE,
        observed_at=date(2023, 7, 1),
    )


def weight(value: Optional[float], observed_at: date, sex: Sex = Sex.MALE) -> Measurement:
    return Measurement(
        type=MeasurementType.WEIGHT, value=value, sex=sex, observed_at=observed_at
    )
