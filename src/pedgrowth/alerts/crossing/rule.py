import math
from typing import Any, List, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..base import BaseAlertRule
from ...config import MAJOR_PERCENTILE_LINES_Z, PERCENTILE_LINES_CROSSED
from ...enums import AlertSeverity, AlertType
from ...models import AssessmentResult, GrowthAlert


class CrossingAlertConfig(BaseModel):
    """
    Configuration for percentile-line crossing alerts.

    Attributes:
        lines (List[float]): Z-scores of the major percentile lines
            (2nd, 15th, 50th, 85th, 98th by default).
        min_lines_crossed (int): Lines that must be crossed between two
            consecutive measurements to alert.
    """

    lines: List[float] = Field(default_factory=lambda: list(MAJOR_PERCENTILE_LINES_Z))
    min_lines_crossed: int = Field(default=PERCENTILE_LINES_CROSSED, ge=1)

    @field_validator("lines", mode="after")
    @classmethod
    def lines_sorted_unique(cls, v: List[float]) -> List[float]:
        if not v:
            raise ValueError("At least one percentile line required")
        if sorted(set(v)) != v:
            raise ValueError("Percentile lines must be unique and ascending")
        return v

    @field_validator("min_lines_crossed", mode="after")
    @classmethod
    def reachable(cls, v: int, info: Any) -> int:
        lines = info.data.get("lines")
        if lines is not None and v > len(lines):
            raise ValueError("min_lines_crossed cannot exceed the number of lines")
        return v


class CrossingAlertRule(BaseAlertRule):
    """
    Alert when consecutive Z-scores of one measurement type cross several
    major percentile lines.

    A line counts as crossed only when it lies strictly between the two
    Z-scores. Downward crossings are warnings, upward crossings info.
    """

    def __init__(self, **kwargs):
        try:
            self.config = CrossingAlertConfig(**kwargs)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

        self.validate_config()

    def validate_config(self) -> None:
        if any(not math.isfinite(line) for line in self.config.lines):
            raise ValueError("Percentile lines must be finite Z-scores")

    def lines_crossed(self, previous_z: float, current_z: float) -> int:
        low, high = sorted((previous_z, current_z))
        return sum(1 for line in self.config.lines if low < line < high)

    def evaluate(self, history: Sequence[AssessmentResult]) -> List[GrowthAlert]:
        alerts = []
        for series in self._series_by_type(history).values():
            for previous, current in zip(series, series[1:]):
                crossed = self.lines_crossed(previous.z_score, current.z_score)
                if crossed < self.config.min_lines_crossed:
                    continue
                upward = current.z_score > previous.z_score
                alert_type = (
                    AlertType.CROSSING_PERCENTILES_UP
                    if upward
                    else AlertType.CROSSING_PERCENTILES_DOWN
                )
                alerts.append(
                    self._alert(
                        alert_type,
                        current,
                        severity=AlertSeverity.INFO if upward else AlertSeverity.WARNING,
                        message=(
                            f"{current.measurement_type.value} crossed {crossed} major "
                            f"percentile lines {'upward' if upward else 'downward'}"
                        ),
                        threshold=float(self.config.min_lines_crossed),
                    )
                )
        return alerts
