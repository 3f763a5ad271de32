"""Push-down regression evaluation metrics."""

from regeval.metrics import MeanSquaredLogarithmicError, MsleConfig, MsleResult

__all__ = ["MeanSquaredLogarithmicError", "MsleConfig", "MsleResult"]
