"""
Closed vocabularies shared across the engine.
"""

from enum import Enum


class Sex(str, Enum):
    """Reference column selector. The WHO tables define only these two."""

    MALE = "male"
    FEMALE = "female"


class MeasurementType(str, Enum):
    WEIGHT = "weight-for-age"
    LENGTH_HEIGHT = "length-height-for-age"
    HEAD_CIRCUMFERENCE = "head-circumference-for-age"


class SdBand(str, Enum):
    """Standard-deviation band a Z-score falls in."""

    SD_MINUS_3 = "SD-3"
    SD_MINUS_2 = "SD-2"
    SD_MINUS_1 = "SD-1"
    MEDIAN = "Median"
    SD_PLUS_1 = "SD+1"
    SD_PLUS_2 = "SD+2"
    SD_PLUS_3 = "SD+3"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.INFO: 0,
    AlertSeverity.WARNING: 1,
    AlertSeverity.CRITICAL: 2,
}


class AlertType(str, Enum):
    SEVERE_UNDERWEIGHT = "severe-underweight"
    UNDERWEIGHT = "underweight"
    OVERWEIGHT = "overweight"
    OBESITY = "obesity"
    SEVERE_STUNTING = "severe-stunting"
    STUNTING = "stunting"
    TALL_STATURE = "tall-stature"
    MICROCEPHALY = "microcephaly"
    MACROCEPHALY = "macrocephaly"
    IMPLAUSIBLE_DECREASE = "implausible-decrease"
    NO_GROWTH = "no-growth"
    POOR_GROWTH_VELOCITY = "poor-growth-velocity"
    RAPID_GROWTH_VELOCITY = "rapid-growth-velocity"
    CROSSING_PERCENTILES_UP = "crossing-percentiles-up"
    CROSSING_PERCENTILES_DOWN = "crossing-percentiles-down"


class OverallStatus(str, Enum):
    NORMAL = "normal"
    MONITOR = "monitor"
    REVIEW_NEEDED = "review-needed"
    URGENT = "urgent"
