from datetime import date

import pandas as pd
import pytest
from pydantic import ValidationError

from conftest import make_dataset, weight
from pedgrowth.assessment import (
    AssessmentOptions,
    assess,
    assess_history,
    build_measurement,
    results_frame,
)
from pedgrowth.classification import LengthHeightForAge, WeightForAge
from pedgrowth.enums import MeasurementType, SdBand, Sex
from pedgrowth.errors import DateOrderViolation, InvalidMeasurement, MalformedReferenceData
from pedgrowth.models import Measurement
from pedgrowth.reference import load_reference_dataset


def test_tc001_end_to_end_six_months(six_month_weight, dob, weight_dataset) -> None:
    """8.2 kg boy at 6 months against mean 7.9, sd 0.9"""
    result = assess(six_month_weight, dob, weight_dataset)
    assert result.actual_age_months == 6
    assert result.reference_age_months == 6
    assert result.z_score == pytest.approx(0.3333, abs=1e-4)
    assert result.percentile == 84.1
    assert result.classification is WeightForAge.NORMAL
    assert result.sd_category is SdBand.MEDIAN
    assert result.measurement_type is MeasurementType.WEIGHT
    assert not result.age_clamped
    assert not result.date_order_violation
    assert result.dataset_max_age_months == 12


def test_tc002_value_at_mean(flat_dataset, dob) -> None:
    """Value equal to the mean is Z=0 and Normal"""
    result = assess(weight(10.0, date(2023, 7, 1)), dob, flat_dataset)
    assert result.z_score == 0.0
    assert result.classification is WeightForAge.NORMAL
    assert result.percentile == 50.0


def test_tc003_far_below_mean(flat_dataset, dob) -> None:
    """Low value gives a negative Z and an underweight label"""
    result = assess(weight(6.0, date(2023, 7, 1)), dob, flat_dataset)
    assert result.z_score == pytest.approx(-4.0)
    assert result.classification is WeightForAge.SEVERELY_UNDERWEIGHT
    assert result.sd_category is SdBand.SD_MINUS_3


def test_tc004_boundary_minus_three(flat_dataset, dob) -> None:
    """Z=-3.0 sits in the [-3, -2) band; -2.99 too"""
    at_boundary = assess(weight(7.0, date(2023, 7, 1)), dob, flat_dataset)
    assert at_boundary.z_score == -3.0
    assert at_boundary.classification is WeightForAge.UNDERWEIGHT
    just_above = assess(weight(7.01, date(2023, 7, 1)), dob, flat_dataset)
    assert just_above.z_score == pytest.approx(-2.99)
    assert just_above.classification is WeightForAge.UNDERWEIGHT


@pytest.mark.parametrize("value", [None, 0.0, -1.2, float("nan"), float("inf")])
def test_tc005_invalid_values(value, weight_dataset, dob) -> None:
    """Missing, non-positive and non-finite values are rejected"""
    with pytest.raises(InvalidMeasurement):
        assess(weight(value, date(2023, 7, 1)), dob, weight_dataset)


def test_tc006_division_guard(zero_sd_dataset, six_month_weight, dob, caplog) -> None:
    """sd=0 fails loudly and is logged"""
    with pytest.raises(MalformedReferenceData):
        assess(six_month_weight, dob, zero_sd_dataset)
    assert "Unusable reference parameters" in caplog.text


def test_tc007_empty_dataset(empty_dataset, six_month_weight, dob) -> None:
    with pytest.raises(MalformedReferenceData):
        assess(six_month_weight, dob, empty_dataset)


def test_tc008_dataset_type_mismatch(six_month_weight, dob) -> None:
    """A length table cannot assess a weight"""
    length = make_dataset(
        [(6, (67.6, 2.3), (65.7, 2.3))], measurement_type=MeasurementType.LENGTH_HEIGHT
    )
    with pytest.raises(InvalidMeasurement, match="cannot assess"):
        assess(six_month_weight, dob, length)


def test_tc009_idempotent(six_month_weight, dob, weight_dataset) -> None:
    """Identical inputs give identical results"""
    assert assess(six_month_weight, dob, weight_dataset) == assess(
        six_month_weight, dob, weight_dataset
    )


def test_tc010_clamped_age_is_reported(flat_dataset) -> None:
    """Children past 60 months are assessed at 60 with a flag"""
    result = assess(weight(20.0, date(2023, 7, 1)), date(2015, 1, 1), flat_dataset)
    assert result.actual_age_months == 102
    assert result.reference_age_months == 60
    assert result.age_clamped


def test_tc011_observation_before_birth(six_month_weight, weight_dataset) -> None:
    """Reversed dates clamp to age 0 and flag the result"""
    result = assess(six_month_weight, date(2024, 1, 1), weight_dataset)
    assert result.actual_age_months == 0
    assert result.reference_age_months == 0
    assert result.date_order_violation


def test_tc012_strict_dates(six_month_weight, weight_dataset) -> None:
    with pytest.raises(DateOrderViolation):
        assess(
            six_month_weight,
            date(2024, 1, 1),
            weight_dataset,
            AssessmentOptions(strict_dates=True),
        )


def test_tc013_rounding_and_normal_percentile(six_month_weight, dob, weight_dataset) -> None:
    """Opt-in rounding and continuous percentiles"""
    result = assess(
        six_month_weight,
        dob,
        weight_dataset,
        AssessmentOptions(round_to=2, percentile_method="normal"),
    )
    assert result.z_score == 0.33
    assert result.percentile == pytest.approx(63.06, abs=0.01)


def test_tc014_corrected_age(weight_dataset) -> None:
    """Preterm infants are looked up at corrected age"""
    options = AssessmentOptions(gestational_age_weeks=28)
    result = assess(weight(6.5, date(2023, 7, 1)), date(2023, 1, 1), weight_dataset, options)
    assert result.actual_age_months == 6
    assert result.corrected_age_months == 3
    assert result.reference_age_months == 3
    assert result.z_score == pytest.approx((6.5 - 6.4) / 0.8)


def test_tc015_invalid_options() -> None:
    with pytest.raises(ValidationError, match="lookup_method"):
        AssessmentOptions(lookup_method="spline")
    with pytest.raises(ValidationError):
        AssessmentOptions(round_to=-1)


def test_tc016_lms_mode_on_packaged_data(dob) -> None:
    """LMS mode on WHO data: the median is Z=0"""
    dataset = load_reference_dataset(MeasurementType.WEIGHT)
    median = dataset.rows[6].male.M
    result = assess(
        weight(median, date(2023, 7, 1)), dob, dataset, AssessmentOptions(zscore_method="lms")
    )
    assert result.z_score == pytest.approx(0.0, abs=1e-9)


def test_tc017_history_isolates_failures(dob, weight_dataset) -> None:
    """One bad measurement does not abort the batch"""
    history = [
        weight(5.0, date(2023, 2, 1)),
        weight(-1.0, date(2023, 4, 1)),
        weight(8.2, date(2023, 7, 1)),
        Measurement(
            type=MeasurementType.HEAD_CIRCUMFERENCE,
            value=43.0,
            sex=Sex.MALE,
            observed_at=date(2023, 7, 1),
        ),
    ]
    outcomes = assess_history(history, dob, {MeasurementType.WEIGHT: weight_dataset})
    assert [o.ok for o in outcomes] == [True, False, True, False]
    assert isinstance(outcomes[1].error, InvalidMeasurement)
    assert isinstance(outcomes[3].error, MalformedReferenceData)
    assert outcomes[2].result.classification is WeightForAge.NORMAL


def test_tc018_history_uses_packaged_data(dob) -> None:
    """Without datasets the bundled WHO tables are used"""
    history = [
        Measurement(
            type=MeasurementType.LENGTH_HEIGHT,
            value=67.6,
            sex=Sex.MALE,
            observed_at=date(2023, 7, 1),
        )
    ]
    (outcome,) = assess_history(history, dob)
    assert outcome.ok
    assert outcome.result.classification is LengthHeightForAge.NORMAL


def test_tc019_build_measurement() -> None:
    """Loose input is coerced or rejected as InvalidMeasurement"""
    m = build_measurement("weight-for-age", 8.2, "female", "2023-07-01")
    assert m.sex is Sex.FEMALE
    assert m.observed_at == date(2023, 7, 1)
    with pytest.raises(InvalidMeasurement):
        build_measurement("weight-for-age", 8.2, "unknown", "2023-07-01")


def test_tc020_results_frame(dob, weight_dataset) -> None:
    """Results tabulate sorted by date with string labels"""
    results = [
        assess(weight(8.2, date(2023, 7, 1)), dob, weight_dataset),
        assess(weight(6.4, date(2023, 4, 1)), dob, weight_dataset),
    ]
    df = results_frame(results)
    assert list(df["actual_age_months"]) == [3, 6]
    assert df.loc[1, "classification"] == "Normal"
    assert df.loc[1, "sd_category"] == "Median"
    assert pd.api.types.is_datetime64_any_dtype(df["observed_at"])
    assert results_frame([]).empty
