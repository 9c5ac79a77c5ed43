"""
Bots - Read-only consumers for autonomous policies.

Planning support:
- Plan evaluator (expected time, XP and violations on a cloned state)
- Policy observation (discovery-filtered projection)
"""

from .evaluator import (
    ActionEvaluation, PlanEvaluation, PlanViolation, evaluate_action, evaluate_plan,
)
from .observation import PolicyObservation, get_observation

__all__ = [
    "ActionEvaluation",
    "PlanEvaluation",
    "PlanViolation",
    "evaluate_action",
    "evaluate_plan",
    "PolicyObservation",
    "get_observation",
]
