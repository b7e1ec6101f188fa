from .rule import CrossingAlertConfig, CrossingAlertRule

__all__ = ["CrossingAlertConfig", "CrossingAlertRule"]
