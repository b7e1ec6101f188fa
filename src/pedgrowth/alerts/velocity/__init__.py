from .rule import VelocityAlertConfig, VelocityAlertRule

__all__ = ["VelocityAlertConfig", "VelocityAlertRule"]
