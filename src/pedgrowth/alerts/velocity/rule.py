"""
Trend alerts from consecutive measurements of the same type.
"""

import logging
from typing import Any, Dict, List, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..base import BaseAlertRule
from ...config import (
    DECREASE_TOLERANCE,
    EARLY_INFANT_MONTHS,
    EXPECTED_INFANT_GAIN_G_PER_DAY,
    RAPID_GAIN_RATIO,
    SLOW_GAIN_RATIO,
    STAGNATION_EPSILON,
    STAGNATION_MONTHS,
)
from ...enums import AlertSeverity, AlertType, MeasurementType
from ...models import AssessmentResult, GrowthAlert

logger = logging.getLogger(__name__)


class VelocityAlertConfig(BaseModel):
    """
    Configuration for trend alerts.

    Attributes:
        decrease_tolerance: Largest drop (kg or cm) per measurement type
            accepted before flagging an implausible decrease.
        stagnation_months: Minimum completed-month gap for a no-growth alert.
        stagnation_epsilon: |change| below this counts as no growth.
        early_infant_months: Weight gain is checked only below this age.
        expected_gain_g_per_day: Expected early-infant weight gain.
        slow_ratio: Gain below expected * slow_ratio is poor velocity.
        rapid_ratio: Gain above expected * rapid_ratio is rapid velocity.
    """

    decrease_tolerance: Dict[MeasurementType, float] = Field(
        default_factory=lambda: {
            MeasurementType(k): v for k, v in DECREASE_TOLERANCE.items()
        }
    )
    stagnation_months: int = Field(default=STAGNATION_MONTHS, ge=1)
    stagnation_epsilon: float = Field(default=STAGNATION_EPSILON, gt=0)
    early_infant_months: int = Field(default=EARLY_INFANT_MONTHS, ge=0)
    expected_gain_g_per_day: float = Field(default=EXPECTED_INFANT_GAIN_G_PER_DAY, gt=0)
    slow_ratio: float = Field(default=SLOW_GAIN_RATIO, gt=0)
    rapid_ratio: float = Field(default=RAPID_GAIN_RATIO, gt=0)

    @field_validator("decrease_tolerance", mode="after")
    @classmethod
    def non_negative_tolerance(
        cls, v: Dict[MeasurementType, float]
    ) -> Dict[MeasurementType, float]:
        for measurement_type, tolerance in v.items():
            if tolerance < 0:
                raise ValueError(
                    f"Decrease tolerance for {measurement_type.value} must be >= 0"
                )
        return v

    @field_validator("rapid_ratio", mode="after")
    @classmethod
    def slow_lt_rapid(cls, v: float, info: Any) -> float:
        if info.data.get("slow_ratio", float("inf")) >= v:
            raise ValueError("slow_ratio must be < rapid_ratio")
        return v


class VelocityAlertRule(BaseAlertRule):
    """
    Alert rule for growth trends between consecutive measurements.

    For each measurement type with at least two results, in chronological
    order:
    - implausible-decrease: the value dropped by more than the type's tolerance
    - no-growth: |change| below epsilon across at least ``stagnation_months``
    - poor/rapid-growth-velocity: weight gain in g/day outside
      [slow_ratio, rapid_ratio] times the expected early-infant gain

    Decreases and stagnation are reported separately from growth alerts
    because they frequently indicate measurement or data-entry error.
    """

    def __init__(self, **kwargs):
        try:
            self.config = VelocityAlertConfig(**kwargs)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

        self.validate_config()

    def validate_config(self) -> None:
        if self.config.early_infant_months > 60:
            raise ValueError("early_infant_months must be within the 0-60 month range")

    def evaluate(self, history: Sequence[AssessmentResult]) -> List[GrowthAlert]:
        alerts = []
        for measurement_type, series in self._series_by_type(history).items():
            for previous, current in zip(series, series[1:]):
                alerts.extend(self._compare(measurement_type, previous, current))
        return alerts

    def _compare(
        self,
        measurement_type: MeasurementType,
        previous: AssessmentResult,
        current: AssessmentResult,
    ) -> List[GrowthAlert]:
        cfg = self.config
        alerts = []
        delta = current.value - previous.value
        delta_months = current.actual_age_months - previous.actual_age_months
        delta_days = (current.observed_at - previous.observed_at).days

        tolerance = cfg.decrease_tolerance.get(measurement_type)
        if tolerance is not None and delta < -tolerance:
            logger.info(
                "%s dropped %.2f between %s and %s",
                measurement_type.value,
                -delta,
                previous.observed_at,
                current.observed_at,
            )
            alerts.append(
                self._alert(
                    AlertType.IMPLAUSIBLE_DECREASE,
                    current,
                    severity=AlertSeverity.WARNING,
                    message=(
                        f"Implausible decrease in {measurement_type.value}: "
                        f"{previous.value:g} to {current.value:g}"
                    ),
                    threshold=-tolerance,
                )
            )

        if abs(delta) < cfg.stagnation_epsilon and delta_months >= cfg.stagnation_months:
            alerts.append(
                self._alert(
                    AlertType.NO_GROWTH,
                    current,
                    severity=AlertSeverity.WARNING,
                    message=(
                        f"No change in {measurement_type.value} over "
                        f"{delta_months} months"
                    ),
                    threshold=cfg.stagnation_epsilon,
                )
            )

        if (
            measurement_type is MeasurementType.WEIGHT
            and current.actual_age_months < cfg.early_infant_months
            and delta_days > 0
        ):
            gain_per_day = delta * 1000 / delta_days
            slow = cfg.expected_gain_g_per_day * cfg.slow_ratio
            rapid = cfg.expected_gain_g_per_day * cfg.rapid_ratio
            if gain_per_day < slow:
                alerts.append(
                    self._alert(
                        AlertType.POOR_GROWTH_VELOCITY,
                        current,
                        severity=AlertSeverity.WARNING,
                        message=f"Slow weight gain: {gain_per_day:.1f} g/day",
                        threshold=slow,
                    )
                )
            elif gain_per_day > rapid:
                alerts.append(
                    self._alert(
                        AlertType.RAPID_GROWTH_VELOCITY,
                        current,
                        severity=AlertSeverity.INFO,
                        message=f"Rapid weight gain: {gain_per_day:.1f} g/day",
                        threshold=rapid,
                    )
                )
        return alerts
