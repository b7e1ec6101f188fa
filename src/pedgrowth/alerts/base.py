"""
Base alert rule class for all growth alert rules.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, Sequence

from ..enums import AlertType, MeasurementType
from ..models import AssessmentResult, GrowthAlert

ALERT_MESSAGES: Dict[AlertType, str] = {
    AlertType.SEVERE_UNDERWEIGHT: "Severe underweight detected",
    AlertType.UNDERWEIGHT: "Underweight detected",
    AlertType.OVERWEIGHT: "Overweight detected",
    AlertType.OBESITY: "Obesity detected",
    AlertType.SEVERE_STUNTING: "Severe stunting detected",
    AlertType.STUNTING: "Stunting detected",
    AlertType.TALL_STATURE: "Tall stature detected",
    AlertType.MICROCEPHALY: "Microcephaly detected",
    AlertType.MACROCEPHALY: "Macrocephaly detected",
    AlertType.IMPLAUSIBLE_DECREASE: "Implausible decrease between measurements",
    AlertType.NO_GROWTH: "No growth between measurements",
    AlertType.POOR_GROWTH_VELOCITY: "Slow weight gain",
    AlertType.RAPID_GROWTH_VELOCITY: "Rapid weight gain",
    AlertType.CROSSING_PERCENTILES_UP: "Upward crossing of major percentile lines",
    AlertType.CROSSING_PERCENTILES_DOWN: "Downward crossing of major percentile lines",
}

ALERT_RECOMMENDATIONS: Dict[AlertType, str] = {
    AlertType.SEVERE_UNDERWEIGHT: "Immediate medical evaluation recommended. Assess for malnutrition and underlying conditions.",
    AlertType.UNDERWEIGHT: "Monitor closely. Consider nutritional assessment and counseling.",
    AlertType.OVERWEIGHT: "Monitor weight gain. Consider dietary review.",
    AlertType.OBESITY: "Nutritional counseling and lifestyle modifications recommended.",
    AlertType.SEVERE_STUNTING: "Medical evaluation required. Assess for chronic malnutrition and growth disorders.",
    AlertType.STUNTING: "Monitor growth closely. Nutritional and medical assessment recommended.",
    AlertType.TALL_STATURE: "Review parental heights. Consider endocrine evaluation if growth is accelerating.",
    AlertType.MICROCEPHALY: "Neurological evaluation recommended.",
    AlertType.MACROCEPHALY: "Medical evaluation to rule out hydrocephalus or other conditions.",
    AlertType.IMPLAUSIBLE_DECREASE: "Verify both measurements and re-measure before clinical interpretation.",
    AlertType.NO_GROWTH: "Verify measurements. Assess for growth faltering if confirmed.",
    AlertType.POOR_GROWTH_VELOCITY: "Assess feeding adequacy and review weight at a short interval.",
    AlertType.RAPID_GROWTH_VELOCITY: "Review feeding practices.",
    AlertType.CROSSING_PERCENTILES_UP: "Review growth trajectory at the next visit.",
    AlertType.CROSSING_PERCENTILES_DOWN: "Assess for growth faltering and underlying illness.",
}


class BaseAlertRule(ABC):
    """
    Abstract base class for all growth alert rules.

    Each rule inherits from this class and implements `evaluate` and
    `validate_config`. Rules are pure: they read a child's assessment history
    and return alerts without mutating anything.

    Example subclass implementation:
        class ThresholdAlertRule(BaseAlertRule):
            def __init__(self, limit: float = 3.0):
                self.limit = limit
                self.validate_config()

            def validate_config(self) -> None:
                if self.limit <= 0:
                    raise ValueError("limit must be positive")

            def evaluate(self, history: Sequence[AssessmentResult]) -> List[GrowthAlert]:
                return []
    """

    @abstractmethod
    def evaluate(self, history: Sequence[AssessmentResult]) -> List[GrowthAlert]:
        """
        Evaluate a child's assessment history.

        Args:
            history: Assessment results for one child, any order, any mix of types.

        Returns:
            Alerts raised by this rule.
        """
        pass

    @abstractmethod
    def validate_config(self) -> None:
        """
        Validate rule-specific configuration.

        Raises:
            ValueError: If configuration is invalid.
        """
        pass

    @staticmethod
    def _series_by_type(
        history: Sequence[AssessmentResult],
    ) -> Dict[MeasurementType, List[AssessmentResult]]:
        """Group results per measurement type, each list chronologically ordered."""
        series: Dict[MeasurementType, List[AssessmentResult]] = defaultdict(list)
        for result in history:
            series[result.measurement_type].append(result)
        # sorted() is stable so same-day results keep their input order
        return {
            measurement_type: sorted(results, key=lambda r: r.observed_at)
            for measurement_type, results in series.items()
        }

    @staticmethod
    def _alert(
        alert_type: AlertType, result: AssessmentResult, **fields
    ) -> GrowthAlert:
        fields.setdefault("message", ALERT_MESSAGES[alert_type])
        fields.setdefault("recommendation", ALERT_RECOMMENDATIONS.get(alert_type))
        return GrowthAlert(
            type=alert_type,
            measurement_type=result.measurement_type,
            observed_at=result.observed_at,
            value=result.value,
            z_score=result.z_score,
            percentile=result.percentile,
            **fields,
        )
