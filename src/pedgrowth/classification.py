"""
Classification threshold tables for growth Z-scores.

Each measurement type owns a closed set of labels and an ordered list of
bands. A band covers every Z-score below its ``upper`` bound and at or above
the previous band's bound; the last band is open-ended. New measurement types
are supported by adding a table to ``CLASSIFICATION_THRESHOLDS``.
"""

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .enums import AlertType, MeasurementType


class WeightForAge(str, Enum):
    SEVERELY_UNDERWEIGHT = "Severely Underweight"
    UNDERWEIGHT = "Underweight"
    NORMAL = "Normal"
    OVERWEIGHT = "Overweight"
    OBESE = "Obese"


class LengthHeightForAge(str, Enum):
    SEVERELY_STUNTED = "Severely Stunted"
    STUNTED = "Stunted"
    NORMAL = "Normal"
    TALL = "Tall"
    VERY_TALL = "Very Tall"


class HeadCircumferenceForAge(str, Enum):
    SEVERE_MICROCEPHALY = "Severe Microcephaly"
    MICROCEPHALY = "Microcephaly"
    NORMAL = "Normal"
    MACROCEPHALY = "Macrocephaly"
    SEVERE_MACROCEPHALY = "Severe Macrocephaly"


Classification = Union[WeightForAge, LengthHeightForAge, HeadCircumferenceForAge]


class ClassificationBand(BaseModel):
    """
    One row of a threshold table.

    Attributes:
        upper: Exclusive upper Z bound; None for the open-ended top band.
        label: Classification reported for Z-scores in this band.
        alert_type: Alert raised for results in this band, if any.
    """

    model_config = ConfigDict(frozen=True)

    upper: Optional[float] = None
    label: Classification
    alert_type: Optional[AlertType] = None


class ThresholdTable(BaseModel):
    """Ordered, contiguous classification bands for one measurement type."""

    model_config = ConfigDict(frozen=True)

    measurement_type: MeasurementType
    bands: List[ClassificationBand]

    @field_validator("bands", mode="after")
    @classmethod
    def bands_are_ordered(cls, v: List[ClassificationBand]) -> List[ClassificationBand]:
        if not v:
            raise ValueError("At least one classification band required")
        if v[-1].upper is not None:
            raise ValueError("Last classification band must be open-ended")
        bounds = [band.upper for band in v[:-1]]
        if any(bound is None for bound in bounds):
            raise ValueError("Only the last classification band may be open-ended")
        for lower, upper in zip(bounds, bounds[1:]):
            if lower >= upper:
                raise ValueError("Classification band bounds must be increasing")
        return v

    def band_for(self, z_score: float) -> ClassificationBand:
        for band in self.bands:
            if band.upper is None or z_score < band.upper:
                return band
        return self.bands[-1]

    def alert_type_for(self, z_score: float) -> Optional[AlertType]:
        """
        Alert type for a Z-score, falling back to the nearest flagged band.

        Unflagged bands (Normal) borrow the alert type of the closest flagged
        band on the same side of zero, scanning down for negative Z-scores
        and up otherwise. Returns None if no flagged band lies that way.
        """
        band = self.band_for(z_score)
        if band.alert_type is not None:
            return band.alert_type
        index = self.bands.index(band)
        if z_score < 0:
            candidates = reversed(self.bands[:index])
        else:
            candidates = iter(self.bands[index + 1:])
        for candidate in candidates:
            if candidate.alert_type is not None:
                return candidate.alert_type
        return None


CLASSIFICATION_THRESHOLDS: Dict[MeasurementType, ThresholdTable] = {
    MeasurementType.WEIGHT: ThresholdTable(
        measurement_type=MeasurementType.WEIGHT,
        bands=[
            ClassificationBand(
                upper=-3.0,
                label=WeightForAge.SEVERELY_UNDERWEIGHT,
                alert_type=AlertType.SEVERE_UNDERWEIGHT,
            ),
            ClassificationBand(
                upper=-2.0,
                label=WeightForAge.UNDERWEIGHT,
                alert_type=AlertType.UNDERWEIGHT,
            ),
            ClassificationBand(upper=2.0, label=WeightForAge.NORMAL),
            ClassificationBand(
                upper=3.0,
                label=WeightForAge.OVERWEIGHT,
                alert_type=AlertType.OVERWEIGHT,
            ),
            ClassificationBand(label=WeightForAge.OBESE, alert_type=AlertType.OBESITY),
        ],
    ),
    MeasurementType.LENGTH_HEIGHT: ThresholdTable(
        measurement_type=MeasurementType.LENGTH_HEIGHT,
        bands=[
            ClassificationBand(
                upper=-3.0,
                label=LengthHeightForAge.SEVERELY_STUNTED,
                alert_type=AlertType.SEVERE_STUNTING,
            ),
            ClassificationBand(
                upper=-2.0,
                label=LengthHeightForAge.STUNTED,
                alert_type=AlertType.STUNTING,
            ),
            ClassificationBand(upper=2.0, label=LengthHeightForAge.NORMAL),
            ClassificationBand(
                upper=3.0,
                label=LengthHeightForAge.TALL,
                alert_type=AlertType.TALL_STATURE,
            ),
            ClassificationBand(
                label=LengthHeightForAge.VERY_TALL, alert_type=AlertType.TALL_STATURE
            ),
        ],
    ),
    MeasurementType.HEAD_CIRCUMFERENCE: ThresholdTable(
        measurement_type=MeasurementType.HEAD_CIRCUMFERENCE,
        bands=[
            ClassificationBand(
                upper=-3.0,
                label=HeadCircumferenceForAge.SEVERE_MICROCEPHALY,
                alert_type=AlertType.MICROCEPHALY,
            ),
            ClassificationBand(
                upper=-2.0,
                label=HeadCircumferenceForAge.MICROCEPHALY,
                alert_type=AlertType.MICROCEPHALY,
            ),
            ClassificationBand(upper=2.0, label=HeadCircumferenceForAge.NORMAL),
            ClassificationBand(
                upper=3.0,
                label=HeadCircumferenceForAge.MACROCEPHALY,
                alert_type=AlertType.MACROCEPHALY,
            ),
            ClassificationBand(
                label=HeadCircumferenceForAge.SEVERE_MACROCEPHALY,
                alert_type=AlertType.MACROCEPHALY,
            ),
        ],
    ),
}


def _table_for(
    measurement_type: MeasurementType,
    thresholds: Optional[Dict[MeasurementType, ThresholdTable]] = None,
) -> ThresholdTable:
    tables = CLASSIFICATION_THRESHOLDS if thresholds is None else thresholds
    try:
        return tables[MeasurementType(measurement_type)]
    except KeyError:
        raise ValueError(
            f"No classification thresholds configured for '{measurement_type}'"
        ) from None


def classification_band(
    z_score: float,
    measurement_type: MeasurementType,
    thresholds: Optional[Dict[MeasurementType, ThresholdTable]] = None,
) -> ClassificationBand:
    """Return the threshold band a Z-score falls in for a measurement type."""
    return _table_for(measurement_type, thresholds).band_for(z_score)


def alert_type_for(
    z_score: float,
    measurement_type: MeasurementType,
    thresholds: Optional[Dict[MeasurementType, ThresholdTable]] = None,
) -> Optional[AlertType]:
    """Return the alert type a Z-score maps to for a measurement type."""
    return _table_for(measurement_type, thresholds).alert_type_for(z_score)


def classify(
    z_score: float,
    measurement_type: MeasurementType,
    thresholds: Optional[Dict[MeasurementType, ThresholdTable]] = None,
) -> Classification:
    """
    Classify a Z-score for a measurement type.

    Args:
        z_score: Standardized score.
        measurement_type: Which threshold table applies.
        thresholds: Alternative tables; defaults to CLASSIFICATION_THRESHOLDS.

    Returns:
        The closed-enum label of the matching band.

    Raises:
        ValueError: If no table is configured for the measurement type.
    """
    return classification_band(z_score, measurement_type, thresholds).label
