"""
Services Package

Pure cost estimation and the feedback recorder.
"""

from banking_agent.services.cost_estimator import (
    CostEstimate,
    CostEstimator,
    estimate_cost,
    estimate_tokens,
)
from banking_agent.services.feedback import FeedbackRecorder

__all__ = [
    "CostEstimate",
    "CostEstimator",
    "estimate_cost",
    "estimate_tokens",
    "FeedbackRecorder",
]
