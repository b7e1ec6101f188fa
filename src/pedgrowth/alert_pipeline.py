"""Alert pipeline for running configured rules over an assessment history."""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from .alerts import registry
from .alerts.base import BaseAlertRule
from .models import AssessmentResult, GrowthAlert

DEFAULT_RULES = ["zscore", "velocity", "crossing"]


class AlertConfig(BaseModel):
    """
    Selects which alert rules run and how each is configured.

    Attributes:
        rules: Registry names of the rules to run, in order.
        rule_options: Keyword arguments per rule name, e.g.
            ``{"zscore": {"warning_z": 2.5, "critical_z": 3.5}}``.
    """

    rules: List[str] = Field(default_factory=lambda: list(DEFAULT_RULES))
    rule_options: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @field_validator("rules", mode="after")
    @classmethod
    def known_rules(cls, v: List[str]) -> List[str]:
        unknown = [name for name in v if name not in registry]
        if unknown:
            raise ValueError(
                f"Unknown alert rules {unknown}. Available: {sorted(registry)}"
            )
        if len(v) != len(set(v)):
            raise ValueError("Alert rules must not repeat")
        return v

    @field_validator("rule_options", mode="after")
    @classmethod
    def options_for_known_rules(
        cls, v: Dict[str, Dict[str, Any]]
    ) -> Dict[str, Dict[str, Any]]:
        unknown = [name for name in v if name not in registry]
        if unknown:
            raise ValueError(f"Options given for unknown alert rules {unknown}")
        return v


class AlertPipeline:
    """
    Pipeline running several alert rules and merging their output.

    Alerts are ordered by observation date, then by descending severity.
    """

    def __init__(self, config: Optional[AlertConfig] = None) -> None:
        """
        Instantiate the configured rules.

        Raises:
            ValueError: If a rule's options are invalid.
        """
        self.config = config or AlertConfig()
        self.rules: List[BaseAlertRule] = [
            registry[name](**self.config.rule_options.get(name, {}))
            for name in self.config.rules
        ]

    def evaluate(self, history: Sequence[AssessmentResult]) -> List[GrowthAlert]:
        history = list(history)
        alerts: List[GrowthAlert] = []
        for rule in self.rules:
            alerts.extend(rule.evaluate(history))
        return sorted(alerts, key=_alert_order)


def _alert_order(alert: GrowthAlert):
    # undated alerts sort last
    return (alert.observed_at is None, alert.observed_at, -alert.severity.rank)


def evaluate_alerts(
    history: Sequence[AssessmentResult],
    config: Optional[AlertConfig] = None,
) -> List[GrowthAlert]:
    """
    Run the configured alert rules over a child's assessment history.

    Args:
        history: AssessmentResults for one child, any order.
        config: Rule selection and options; all rules with defaults when None.

    Returns:
        Alerts ordered by date then severity. Alerts are pure output and
        never modify the history.

    Raises:
        ValueError: If the configuration is invalid.
    """
    if isinstance(config, dict):
        try:
            config = AlertConfig(**config)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e
    return AlertPipeline(config).evaluate(history)
