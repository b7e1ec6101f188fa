# Tests for AlertPipeline

from datetime import date

import pytest

from conftest import make_result
from pedgrowth.alert_pipeline import AlertConfig, AlertPipeline, evaluate_alerts
from pedgrowth.enums import AlertSeverity, AlertType


class TestAlertPipeline:
    """Tests for AlertPipeline and evaluate_alerts"""

    def test_tc001_default_config_runs_all_rules(self):
        pipeline = AlertPipeline()
        assert [type(r).__name__ for r in pipeline.rules] == [
            "ZScoreAlertRule",
            "VelocityAlertRule",
            "CrossingAlertRule",
        ]

    def test_tc002_unknown_rule_rejected(self):
        with pytest.raises(ValueError, match="Unknown alert rules"):
            AlertConfig(rules=["zscore", "bmi"])

    def test_tc003_duplicate_rule_rejected(self):
        with pytest.raises(ValueError, match="must not repeat"):
            AlertConfig(rules=["zscore", "zscore"])

    def test_tc004_options_for_unknown_rule_rejected(self):
        with pytest.raises(ValueError, match="unknown alert rules"):
            AlertConfig(rule_options={"bmi": {}})

    def test_tc005_empty_history(self):
        assert evaluate_alerts([]) == []

    def test_tc006_alerts_ordered_by_date_then_severity(self):
        history = [
            make_result(-1.5, date(2023, 10, 1), value=6.5, actual_age_months=9),
            make_result(0.5, date(2023, 7, 1), value=8.0, actual_age_months=6),
            make_result(-3.4, date(2023, 4, 1), value=4.5, actual_age_months=3),
        ]
        alerts = evaluate_alerts(history)
        assert [a.observed_at for a in alerts] == sorted(a.observed_at for a in alerts)
        assert alerts[0].type is AlertType.SEVERE_UNDERWEIGHT
        last_day = [a for a in alerts if a.observed_at == date(2023, 10, 1)]
        assert {a.type for a in last_day} == {
            AlertType.IMPLAUSIBLE_DECREASE,
            AlertType.CROSSING_PERCENTILES_DOWN,
        }
        ranks = [a.severity.rank for a in last_day]
        assert ranks == sorted(ranks, reverse=True)

    def test_tc007_rule_selection_and_options(self):
        history = [make_result(-2.2, date(2023, 7, 1))]
        assert evaluate_alerts(history, AlertConfig(rules=["velocity"])) == []
        config = AlertConfig(
            rules=["zscore"], rule_options={"zscore": {"warning_z": 2.5, "critical_z": 3.5}}
        )
        assert evaluate_alerts(history, config) == []

    def test_tc008_dict_config_accepted(self):
        history = [make_result(-3.4, date(2023, 7, 1))]
        (alert,) = evaluate_alerts(history, {"rules": ["zscore"]})
        assert alert.severity is AlertSeverity.CRITICAL
        with pytest.raises(ValueError, match="Invalid configuration"):
            evaluate_alerts(history, {"rules": ["nope"]})

    def test_tc009_invalid_rule_options(self):
        config = AlertConfig(rules=["zscore"], rule_options={"zscore": {"warning_z": 4.0}})
        with pytest.raises(ValueError, match="Invalid configuration"):
            AlertPipeline(config)

    def test_tc010_history_not_mutated(self):
        history = [
            make_result(0.5, date(2023, 4, 1)),
            make_result(-1.5, date(2023, 7, 1)),
        ]
        snapshot = list(history)
        evaluate_alerts(history)
        assert history == snapshot
