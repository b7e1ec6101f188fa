"""
Single-measurement and batch growth assessment.

Composes the age normalizer, reference lookup and Z-score calculator into a
fully populated AssessmentResult. Reference datasets are injected so the
calculator never touches storage.
"""

import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .age import DateLike, calculate_age, completed_months, to_date
from .classification import classify
from .enums import MeasurementType
from .errors import GrowthAssessmentError, InvalidMeasurement, MalformedReferenceData
from .models import AssessmentResult, Measurement
from .reference import LOOKUP_METHODS, ReferenceDataset, load_reference_dataset, lookup
from .zscores import (
    PERCENTILE_METHODS,
    ZSCORE_METHODS,
    compute_zscore,
    percentile,
    round_optional,
    sd_band,
)

logger = logging.getLogger(__name__)


class AssessmentOptions(BaseModel):
    """
    Per-call options for ``assess``.

    The defaults reproduce the clinical reference behaviour exactly; every
    other setting is an opt-in behaviour change.

    Attributes:
        lookup_method: "nearest" (default) or "linear" interpolation.
        zscore_method: "sd" (default, (value - mean) / sd) or "lms".
        percentile_method: "step" (default, coarse table) or "normal" CDF.
        round_to: Decimal places for Z-score and percentile; None keeps full precision.
        strict_dates: Raise DateOrderViolation instead of clamping to 0.
        gestational_age_weeks: Enables corrected age for preterm infants.
        use_corrected_age: Look up the reference at corrected age when it applies.
    """

    model_config = ConfigDict(frozen=True)

    lookup_method: str = "nearest"
    zscore_method: str = "sd"
    percentile_method: str = "step"
    round_to: Optional[int] = Field(default=None, ge=0)
    strict_dates: bool = False
    gestational_age_weeks: Optional[float] = Field(default=None, gt=0)
    use_corrected_age: bool = True

    @field_validator("lookup_method")
    @classmethod
    def validate_lookup_method(cls, v: str) -> str:
        if v not in LOOKUP_METHODS:
            raise ValueError(f"lookup_method must be one of {list(LOOKUP_METHODS)}")
        return v

    @field_validator("zscore_method")
    @classmethod
    def validate_zscore_method(cls, v: str) -> str:
        if v not in ZSCORE_METHODS:
            raise ValueError(f"zscore_method must be one of {list(ZSCORE_METHODS)}")
        return v

    @field_validator("percentile_method")
    @classmethod
    def validate_percentile_method(cls, v: str) -> str:
        if v not in PERCENTILE_METHODS:
            raise ValueError(
                f"percentile_method must be one of {list(PERCENTILE_METHODS)}"
            )
        return v


DEFAULT_OPTIONS = AssessmentOptions()


def _validate_value(measurement: Measurement) -> float:
    value = measurement.value
    if value is None:
        raise InvalidMeasurement(
            f"Missing value for {measurement.type.value} measurement "
            f"on {measurement.observed_at.isoformat()}"
        )
    if not math.isfinite(value) or value <= 0:
        raise InvalidMeasurement(
            f"Measurement value must be a positive finite number (got {value})"
        )
    return float(value)


def assess(
    measurement: Measurement,
    dob: DateLike,
    dataset: ReferenceDataset,
    options: Optional[AssessmentOptions] = None,
) -> AssessmentResult:
    """
    Assess one measurement against a reference dataset.

    Pipeline: completed-month age -> reference lookup -> Z-score ->
    percentile, classification and SD band. Identical inputs always give
    identical results.

    Args:
        measurement: Observed value, sex, type and date.
        dob: Child's date of birth.
        dataset: Reference dataset for ``measurement.type``.
        options: Behaviour switches; defaults reproduce the reference behaviour.

    Returns:
        Fully populated AssessmentResult. ``actual_age_months`` is the true
        age; ``reference_age_months`` the age of the parameters used.

    Raises:
        InvalidMeasurement: Missing, non-finite or non-positive value, or a
            dataset for a different measurement type.
        MalformedReferenceData: Empty dataset or unusable SD/LMS parameters.
        DateOrderViolation: Only with ``strict_dates``.
    """
    options = options or DEFAULT_OPTIONS
    value = _validate_value(measurement)
    if dataset.measurement_type is not measurement.type:
        raise InvalidMeasurement(
            f"Dataset '{dataset.measurement_type.value}' cannot assess a "
            f"'{measurement.type.value}' measurement"
        )

    if options.strict_dates:
        completed_months(dob, measurement.observed_at, strict=True)

    age = calculate_age(
        dob, measurement.observed_at, options.gestational_age_weeks
    )
    lookup_age = age.completed_months
    if options.use_corrected_age and age.should_use_corrected_age:
        lookup_age = age.corrected_months

    point = lookup(lookup_age, measurement.sex, dataset, method=options.lookup_method)

    try:
        z = compute_zscore(value, point.parameters, options.zscore_method)
    except MalformedReferenceData:
        logger.error(
            "Unusable reference parameters for %s at %s months (%s) in dataset %s",
            dataset.measurement_type.value,
            point.reference_age_months,
            measurement.sex.value,
            dataset.version,
        )
        raise

    return AssessmentResult(
        measurement_type=measurement.type,
        value=value,
        sex=measurement.sex,
        observed_at=measurement.observed_at,
        z_score=round_optional(z, options.round_to),
        percentile=round_optional(
            percentile(z, options.percentile_method), options.round_to
        ),
        classification=classify(z, measurement.type),
        sd_category=sd_band(z),
        reference_age_months=point.reference_age_months,
        actual_age_months=age.completed_months,
        dataset_max_age_months=point.max_age_months,
        age_clamped=point.clamped,
        date_order_violation=age.date_order_violation,
        corrected_age_months=age.corrected_months,
    )


class AssessmentOutcome(BaseModel):
    """Result or error for one measurement of a batch."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    measurement: Measurement
    result: Optional[AssessmentResult] = None
    error: Optional[GrowthAssessmentError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def assess_history(
    measurements: Iterable[Measurement],
    dob: DateLike,
    datasets: Optional[Mapping[MeasurementType, ReferenceDataset]] = None,
    options: Optional[AssessmentOptions] = None,
) -> List[AssessmentOutcome]:
    """
    Assess a child's measurement history.

    A failure on one measurement never aborts the rest; each outcome carries
    either a result or the error raised for that measurement. Outcomes keep
    the input order.

    Args:
        measurements: Any iterable of Measurement.
        dob: Date of birth shared by all measurements.
        datasets: Reference datasets by type; packaged WHO data when omitted.
        options: Passed through to ``assess``.
    """
    outcomes = []
    for measurement in measurements:
        try:
            if datasets is None:
                dataset = load_reference_dataset(measurement.type)
            elif measurement.type in datasets:
                dataset = datasets[measurement.type]
            else:
                raise MalformedReferenceData(
                    f"No reference dataset supplied for '{measurement.type.value}'"
                )
            result = assess(measurement, dob, dataset, options)
        except GrowthAssessmentError as e:
            logger.warning(
                "Skipping %s measurement on %s: %s",
                measurement.type.value,
                measurement.observed_at.isoformat(),
                e,
            )
            outcomes.append(AssessmentOutcome(measurement=measurement, error=e))
            continue
        outcomes.append(AssessmentOutcome(measurement=measurement, result=result))
    return outcomes


def build_measurement(
    measurement_type: MeasurementType,
    value: Optional[float],
    sex,
    observed_at: DateLike,
) -> Measurement:
    """
    Construct a Measurement from loosely typed input.

    Raises:
        InvalidMeasurement: If the fields fail model validation.
    """
    try:
        return Measurement(
            type=measurement_type,
            value=value,
            sex=sex,
            observed_at=to_date(observed_at),
        )
    except ValidationError as e:
        raise InvalidMeasurement(f"Invalid measurement: {e}") from e


RESULT_COLUMNS = [
    "measurement_type",
    "observed_at",
    "value",
    "sex",
    "actual_age_months",
    "reference_age_months",
    "z_score",
    "percentile",
    "classification",
    "sd_category",
    "age_clamped",
    "date_order_violation",
    "corrected_age_months",
]


def results_frame(results: Iterable[AssessmentResult]) -> pd.DataFrame:
    """
    Tabulate assessment results for charting.

    Enum fields are flattened to their string values and rows are sorted by
    measurement type then observation date.
    """
    records: List[Dict] = []
    for result in results:
        record = result.model_dump(include=set(RESULT_COLUMNS))
        for key in ("measurement_type", "sex", "classification", "sd_category"):
            record[key] = record[key].value
        records.append(record)

    df = pd.DataFrame.from_records(records, columns=RESULT_COLUMNS)
    if df.empty:
        return df
    df["observed_at"] = pd.to_datetime(df["observed_at"])
    return df.sort_values(["measurement_type", "observed_at"]).reset_index(drop=True)
