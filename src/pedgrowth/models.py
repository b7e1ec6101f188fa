"""
Data models for measurements, assessment results and alerts.
"""

from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict

from .classification import Classification
from .enums import (
    AlertSeverity,
    AlertType,
    MeasurementType,
    OverallStatus,
    SdBand,
    Sex,
)


class Measurement(BaseModel):
    """
    One observed anthropometric value.

    The value is deliberately unconstrained here; positivity and finiteness
    are checked by ``assess`` so that bad records surface as
    ``InvalidMeasurement`` rather than a model validation error.

    Attributes:
        type: Which reference standard applies.
        value: Observed value (kg for weight, cm otherwise).
        sex: Selects the reference column.
        observed_at: Date the measurement was taken.
    """

    model_config = ConfigDict(frozen=True)

    type: MeasurementType
    value: Optional[float] = None
    sex: Sex
    observed_at: date


class AssessmentResult(BaseModel):
    """
    Fully populated assessment of a single measurement.

    ``actual_age_months`` is the true completed-month age, while
    ``reference_age_months`` is the age of the reference parameters actually
    used (after clamping and nearest-row selection). ``age_clamped`` is set
    when the actual age fell outside the dataset's sampled range.
    """

    model_config = ConfigDict(frozen=True)

    measurement_type: MeasurementType
    value: float
    sex: Sex
    observed_at: date
    z_score: float
    percentile: float
    classification: Classification
    sd_category: SdBand
    reference_age_months: Union[int, float]
    actual_age_months: int
    dataset_max_age_months: int
    age_clamped: bool = False
    date_order_violation: bool = False
    corrected_age_months: Optional[int] = None


class GrowthAlert(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: AlertType
    severity: AlertSeverity
    message: str
    measurement_type: MeasurementType
    observed_at: Optional[date] = None
    value: Optional[float] = None
    z_score: Optional[float] = None
    percentile: Optional[float] = None
    threshold: Optional[float] = None
    recommendation: Optional[str] = None


class GrowthInterpretation(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_status: OverallStatus
    summary: str
    details: List[str]
    recommendations: List[str]
