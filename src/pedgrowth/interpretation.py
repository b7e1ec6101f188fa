"""
Overall interpretation of a set of growth alerts.
"""

from typing import List, Sequence

from .enums import AlertSeverity, OverallStatus
from .models import GrowthAlert, GrowthInterpretation

SUMMARIES = {
    OverallStatus.URGENT: "Critical growth concerns detected requiring immediate medical attention.",
    OverallStatus.REVIEW_NEEDED: "Growth concerns detected requiring medical review.",
    OverallStatus.MONITOR: "Growth is generally normal but should be monitored.",
    OverallStatus.NORMAL: "Growth measurements are within normal range.",
}

NORMAL_DETAIL = "All measurements are within normal percentile ranges."
ROUTINE_RECOMMENDATION = "Continue routine monitoring and well-child visits."
EXCLUSIVE_BREASTFEEDING_MONTHS = 6
COMPLEMENTARY_FEEDING_MONTHS = 24


def age_recommendation(age_months: float):
    if age_months < EXCLUSIVE_BREASTFEEDING_MONTHS:
        return "Ensure exclusive breastfeeding if possible."
    if age_months < COMPLEMENTARY_FEEDING_MONTHS:
        return "Monitor introduction of complementary foods."
    return None


def interpret(alerts: Sequence[GrowthAlert], age_months: float) -> GrowthInterpretation:
    """
    Summarize alerts into an overall status with recommendations.

    Status is urgent if any alert is critical, review-needed if any is a
    warning, monitor if only informational alerts exist, otherwise normal.
    Details and recommendations come from the alerts at the deciding
    severity; recommendations are de-duplicated keeping first occurrence,
    followed by age-specific feeding advice.
    """
    critical = [a for a in alerts if a.severity is AlertSeverity.CRITICAL]
    warnings = [a for a in alerts if a.severity is AlertSeverity.WARNING]

    if critical:
        status, deciding = OverallStatus.URGENT, critical
    elif warnings:
        status, deciding = OverallStatus.REVIEW_NEEDED, warnings
    elif alerts:
        status, deciding = OverallStatus.MONITOR, list(alerts)
    else:
        status, deciding = OverallStatus.NORMAL, []

    details: List[str] = [alert.message for alert in deciding]
    recommendations: List[str] = [
        alert.recommendation for alert in deciding if alert.recommendation
    ]
    if status is OverallStatus.NORMAL:
        details.append(NORMAL_DETAIL)
        recommendations.append(ROUTINE_RECOMMENDATION)

    advice = age_recommendation(age_months)
    if advice:
        recommendations.append(advice)

    return GrowthInterpretation(
        overall_status=status,
        summary=SUMMARIES[status],
        details=details,
        recommendations=list(dict.fromkeys(recommendations)),
    )
