from .rule import ZScoreAlertConfig, ZScoreAlertRule

__all__ = ["ZScoreAlertConfig", "ZScoreAlertRule"]
