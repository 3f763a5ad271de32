"""Shared utilities."""

from .config import EvaluationConfig, load_yaml

__all__ = ["EvaluationConfig", "load_yaml"]
