"""
Rules registry for automatic alert rule discovery.

This module provides automatic registration of alert rules by introspecting
BaseAlertRule subclasses in the pedgrowth.alerts submodules.
"""

from typing import Dict, Type

from .base import ALERT_MESSAGES, ALERT_RECOMMENDATIONS, BaseAlertRule

# Import rule modules to register subclasses
from .crossing import rule as crossing_rule
from .velocity import rule as velocity_rule
from .zscore import rule as zscore_rule


def _build_registry() -> Dict[str, Type[BaseAlertRule]]:
    """Build the registry by discovering BaseAlertRule subclasses."""
    registry = {}
    for cls in BaseAlertRule.__subclasses__():
        # ZScoreAlertRule -> 'zscore'
        rule_name = cls.__name__.replace("AlertRule", "").lower()
        registry[rule_name] = cls
    return registry


# Global registry instance
registry = _build_registry()

__all__ = [
    "ALERT_MESSAGES",
    "ALERT_RECOMMENDATIONS",
    "BaseAlertRule",
    "registry",
    "crossing_rule",
    "velocity_rule",
    "zscore_rule",
]
