"""Typing simulation for comparing prediction conditions offline."""

from .agent import TypingAgent, TypingConfig, TypingMetrics
from .runner import Condition, ExperimentResult, ExperimentRunner

__all__ = [
    "Condition",
    "ExperimentResult",
    "ExperimentRunner",
    "TypingAgent",
    "TypingConfig",
    "TypingMetrics",
]
