"""
Single-point Z-score alerts.

Raises one alert per assessment whose Z-score magnitude reaches the
warning threshold, typed by its classification band.
"""

from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..base import BaseAlertRule
from ...classification import ThresholdTable, alert_type_for
from ...config import CRITICAL_Z_THRESHOLD, WARNING_Z_THRESHOLD
from ...enums import AlertSeverity, MeasurementType
from ...models import AssessmentResult, GrowthAlert


class ZScoreAlertConfig(BaseModel):
    """
    Configuration for single-point Z-score alerts.

    Attributes:
        warning_z (float): |z| at or above this raises a warning (2.0 by default).
        critical_z (float): |z| at or above this raises a critical alert (3.0 by default).
        thresholds (Optional[Dict]): Classification tables used to derive the
            alert type; the built-in WHO tables when None.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    warning_z: float = WARNING_Z_THRESHOLD
    critical_z: float = CRITICAL_Z_THRESHOLD
    thresholds: Optional[Dict[MeasurementType, ThresholdTable]] = None

    @field_validator("warning_z")
    @classmethod
    def validate_warning_z(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("warning_z must be positive")
        return v

    @field_validator("critical_z", mode="after")
    @classmethod
    def warning_lt_critical(cls, v: float, info) -> float:
        if info.data.get("warning_z", float("inf")) >= v:
            raise ValueError("warning_z must be < critical_z")
        return v


class ZScoreAlertRule(BaseAlertRule):
    """
    Alert rule for Z-scores far from the reference median.

    Severity follows |z|: critical at or above ``critical_z``, warning from
    ``warning_z`` up to ``critical_z``. The alert type comes from the
    classification band (e.g. a weight Z of -3.4 is "severe-underweight").
    A Z-score in an unflagged band (Normal) takes the type of the nearest
    flagged band on its side of zero, so a lowered warning_z still alerts.

    Usage:
        rule = ZScoreAlertRule(warning_z=2.0, critical_z=3.0)
        alerts = rule.evaluate(results)
    """

    def __init__(
        self,
        warning_z: float = WARNING_Z_THRESHOLD,
        critical_z: float = CRITICAL_Z_THRESHOLD,
        thresholds: Optional[Dict[MeasurementType, ThresholdTable]] = None,
    ):
        try:
            self.config = ZScoreAlertConfig(
                warning_z=warning_z, critical_z=critical_z, thresholds=thresholds
            )
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

        self.validate_config()

    def validate_config(self) -> None:
        if self.config.thresholds is not None and not self.config.thresholds:
            raise ValueError("thresholds must not be empty when provided")

    def severity_for(self, z_score: float) -> Optional[AlertSeverity]:
        magnitude = abs(z_score)
        if magnitude >= self.config.critical_z:
            return AlertSeverity.CRITICAL
        if magnitude >= self.config.warning_z:
            return AlertSeverity.WARNING
        return None

    def evaluate(self, history: Sequence[AssessmentResult]) -> List[GrowthAlert]:
        alerts = []
        for result in history:
            severity = self.severity_for(result.z_score)
            if severity is None:
                continue
            alert_type = alert_type_for(
                result.z_score, result.measurement_type, self.config.thresholds
            )
            if alert_type is None:
                continue
            threshold = (
                self.config.critical_z
                if severity is AlertSeverity.CRITICAL
                else self.config.warning_z
            )
            alerts.append(
                self._alert(
                    alert_type,
                    result,
                    severity=severity,
                    threshold=threshold if result.z_score > 0 else -threshold,
                )
            )
        return alerts
