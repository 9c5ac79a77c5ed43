"""
Plan Evaluator - Projects cost and XP of actions without touching real state.

The evaluator is a sibling consumer of the engine's rules:
- preconditions and costs come from engine_core.checks
- state changes come from engine_core.effects, applied to a clone
- probabilistic actions are assumed to succeed, weighted by their odds

Plan problems never raise. Every failed step is recorded as a violation and
the projection continues from the last consistent clone.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import math

from ..engine_core.action import Action
from ..engine_core.checks import ActionCheck, check_action
from ..engine_core.effects import apply_effects, consume_time
from ..engine_core.ledger import check_contract_completions
from ..engine_core.progression import add_xp
from ..engine_core.state import WorldState
from ..world.exploration import rolls_available


@dataclass
class ActionEvaluation:
    expected_time: float
    expected_xp: float
    success_probability: float


@dataclass
class PlanViolation:
    action_index: int
    reason: str


@dataclass
class PlanEvaluation:
    expected_time: float = 0.0
    expected_xp: float = 0.0
    violations: list[PlanViolation] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations


def _estimate(state: WorldState, check: ActionCheck) -> ActionEvaluation:
    """Expected time, XP and odds for an action that passed its checks."""
    xp_weight = 1.0 if check.xp_skill is not None else 0.0

    if not check.variable_time:
        return ActionEvaluation(
            expected_time=check.time_cost,
            expected_xp=xp_weight * check.success_probability,
            success_probability=check.success_probability,
        )

    # Explore / Survey: repeated rolls until success or the session ends
    remaining = state.time.session_remaining_ticks
    chance = check.context["chance"]
    attempts = rolls_available(remaining, check.context["interval"])
    probability = 1.0 - (1.0 - chance) ** attempts
    expected = check.context["expected_ticks"]
    expected_time = remaining if math.isinf(expected) else min(math.ceil(expected), remaining)
    return ActionEvaluation(
        expected_time=expected_time,
        expected_xp=xp_weight * probability,
        success_probability=probability,
    )


def evaluate_action(state: WorldState, action: Action) -> ActionEvaluation:
    """
    Evaluate a single action against the current state. Never mutates state.

    Returns zeros when any precondition fails.
    """
    check = check_action(state, action)
    if not check.valid:
        return ActionEvaluation(expected_time=0, expected_xp=0.0, success_probability=0.0)
    return _estimate(state, check)


def evaluate_plan(state: WorldState, actions: list[Action]) -> PlanEvaluation:
    """
    Project a sequence of actions on a clone of state.

    Each action is checked against the accumulated clone; successful steps
    advance the clone as if they had succeeded.
    """
    simulated = state.clone()
    result = PlanEvaluation()

    for index, action in enumerate(actions):
        check = check_action(simulated, action)
        if not check.valid:
            result.violations.append(PlanViolation(
                action_index=index,
                reason=f"{check.failure_type.value}: {check.failure_reason}",
            ))
            continue

        estimate = _estimate(simulated, check)
        result.expected_time += estimate.expected_time
        result.expected_xp += estimate.expected_xp

        consume_time(simulated, int(estimate.expected_time))
        apply_effects(simulated, action, check)
        if check.xp_skill is not None:
            add_xp(simulated.player, check.xp_skill, 1)
        check_contract_completions(simulated)

    return result
