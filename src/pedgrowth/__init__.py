"""
pedgrowth: WHO growth assessment for children aged 0-60 months.

Converts weight, length/height and head circumference measurements into
Z-scores, percentiles, classifications and clinical alerts.
"""

from .age import AgeCalculation, calculate_age, completed_months, format_age
from .alert_pipeline import AlertConfig, AlertPipeline, evaluate_alerts
from .assessment import (
    AssessmentOptions,
    AssessmentOutcome,
    assess,
    assess_history,
    build_measurement,
    results_frame,
)
from .classification import (
    CLASSIFICATION_THRESHOLDS,
    HeadCircumferenceForAge,
    LengthHeightForAge,
    WeightForAge,
    classify,
)
from .enums import (
    AlertSeverity,
    AlertType,
    MeasurementType,
    OverallStatus,
    SdBand,
    Sex,
)
from .errors import (
    DateOrderViolation,
    GrowthAssessmentError,
    InvalidMeasurement,
    MalformedReferenceData,
)
from .interpretation import interpret
from .models import AssessmentResult, GrowthAlert, GrowthInterpretation, Measurement
from .reference import (
    ReferenceDataPoint,
    ReferenceDataset,
    load_reference_dataset,
    load_reference_datasets,
    lookup,
)
from .velocity import growth_velocities
from .zscores import lms_value, lms_zscore, percentile_from_z, sd_band

__version__ = "0.1.0"

__all__ = [
    "AgeCalculation",
    "AlertConfig",
    "AlertPipeline",
    "AlertSeverity",
    "AlertType",
    "AssessmentOptions",
    "AssessmentOutcome",
    "AssessmentResult",
    "CLASSIFICATION_THRESHOLDS",
    "DateOrderViolation",
    "GrowthAlert",
    "GrowthAssessmentError",
    "GrowthInterpretation",
    "HeadCircumferenceForAge",
    "InvalidMeasurement",
    "LengthHeightForAge",
    "MalformedReferenceData",
    "Measurement",
    "MeasurementType",
    "OverallStatus",
    "ReferenceDataPoint",
    "ReferenceDataset",
    "SdBand",
    "Sex",
    "WeightForAge",
    "assess",
    "assess_history",
    "build_measurement",
    "calculate_age",
    "classify",
    "completed_months",
    "evaluate_alerts",
    "format_age",
    "growth_velocities",
    "interpret",
    "lms_value",
    "lms_zscore",
    "load_reference_dataset",
    "load_reference_datasets",
    "lookup",
    "percentile_from_z",
    "results_frame",
    "sd_band",
]
