# Tests for BaseAlertRule

from datetime import date
from typing import List, Sequence

import pytest

from conftest import make_result
from pedgrowth.alerts.base import ALERT_MESSAGES, ALERT_RECOMMENDATIONS, BaseAlertRule
from pedgrowth.enums import AlertSeverity, AlertType, MeasurementType
from pedgrowth.models import AssessmentResult, GrowthAlert


def test_tc001_instantiating_base_rule_raises_type_error():
    with pytest.raises(TypeError):
        BaseAlertRule()  # type: ignore[abstract]


def test_tc002_subclass_without_evaluate_raises_type_error():
    class Concrete(BaseAlertRule):
        def validate_config(self):
            pass

    with pytest.raises(TypeError):
        Concrete()  # type: ignore[abstract]


def test_tc003_series_grouped_and_ordered():
    history = [
        make_result(0.0, date(2023, 7, 1)),
        make_result(0.0, date(2023, 7, 1), measurement_type=MeasurementType.LENGTH_HEIGHT),
        make_result(0.5, date(2023, 4, 1)),
    ]
    series = BaseAlertRule._series_by_type(history)
    assert set(series) == {MeasurementType.WEIGHT, MeasurementType.LENGTH_HEIGHT}
    assert [r.observed_at for r in series[MeasurementType.WEIGHT]] == [
        date(2023, 4, 1),
        date(2023, 7, 1),
    ]


def test_tc004_alert_helper_fills_defaults():
    class Concrete(BaseAlertRule):
        def validate_config(self):
            pass

        def evaluate(self, history: Sequence[AssessmentResult]) -> List[GrowthAlert]:
            return [
                self._alert(AlertType.STUNTING, r, severity=AlertSeverity.WARNING)
                for r in history
            ]

    (alert,) = Concrete().evaluate([make_result(-2.5, date(2023, 7, 1))])
    assert alert.message == "Stunting detected"
    assert alert.recommendation == ALERT_RECOMMENDATIONS[AlertType.STUNTING]
    assert alert.z_score == -2.5
    assert alert.percentile == 2.3
    assert alert.observed_at == date(2023, 7, 1)


def test_tc005_every_alert_type_has_message_and_recommendation():
    assert set(ALERT_MESSAGES) == set(AlertType)
    assert set(ALERT_RECOMMENDATIONS) == set(AlertType)
