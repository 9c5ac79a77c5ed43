"""
Action System - The closed action union, failure taxonomy and ActionLog.

Every action type is its own frozen dataclass tagged with an ActionType.
The reducer and the shared checks dispatch on that tag through handler
tables that are asserted complete in the tests.

ActionLog is the canonical wire record: one per execute_action call,
never mutated afterward.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Union
import math

from .rng import RngRoll
from .state import SkillGain, Skill


class ActionType(str, Enum):
    """Types of actions in the system."""
    MOVE = "Move"
    GATHER = "Gather"
    FIGHT = "Fight"
    CRAFT = "Craft"
    STORE = "Store"
    DROP = "Drop"
    ACCEPT_CONTRACT = "AcceptContract"
    ENROL = "Enrol"
    EXPLORE = "Explore"
    SURVEY = "Survey"
    APPRAISE = "Appraise"
    TURN_IN_COMBAT_TOKEN = "TurnInCombatToken"


class FailureType(str, Enum):
    """Why an action did not commit."""
    SESSION_ENDED = "SESSION_ENDED"

    # Position and knowledge
    WRONG_LOCATION = "WRONG_LOCATION"
    LOCATION_NOT_DISCOVERED = "LOCATION_NOT_DISCOVERED"
    AREA_NOT_KNOWN = "AREA_NOT_KNOWN"
    NO_PATH_TO_DESTINATION = "NO_PATH_TO_DESTINATION"
    UNKNOWN_DESTINATION = "UNKNOWN_DESTINATION"
    ALREADY_AT_DESTINATION = "ALREADY_AT_DESTINATION"

    # Lookups
    NODE_NOT_FOUND = "NODE_NOT_FOUND"
    ENEMY_NOT_FOUND = "ENEMY_NOT_FOUND"
    RECIPE_NOT_FOUND = "RECIPE_NOT_FOUND"
    CONTRACT_NOT_FOUND = "CONTRACT_NOT_FOUND"
    MATERIAL_NOT_FOUND = "MATERIAL_NOT_FOUND"
    NODE_DEPLETED = "NODE_DEPLETED"

    # Skills
    INSUFFICIENT_SKILL = "INSUFFICIENT_SKILL"
    UNKNOWN_SKILL = "UNKNOWN_SKILL"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"

    # Items
    MISSING_ITEMS = "MISSING_ITEMS"
    MISSING_WEAPON = "MISSING_WEAPON"
    INVENTORY_FULL = "INVENTORY_FULL"
    INVALID_QUANTITY = "INVALID_QUANTITY"

    # Contracts
    ALREADY_HAS_CONTRACT = "ALREADY_HAS_CONTRACT"

    # Exploration
    AREA_FULLY_EXPLORED = "AREA_FULLY_EXPLORED"
    NO_UNDISCOVERED_AREAS = "NO_UNDISCOVERED_AREAS"

    # RNG-driven
    GATHER_FAILURE = "GATHER_FAILURE"
    COMBAT_FAILURE = "COMBAT_FAILURE"


class ActionParseError(ValueError):
    """Raised when an action payload cannot be turned into an Action."""


# =============================================================================
# Actions
# =============================================================================

@dataclass(frozen=True)
class _BaseAction:
    action_type: ClassVar[ActionType]

    def parameters(self) -> dict[str, Any]:
        """Action arguments as plain values."""
        params = {}
        for f in fields(self):
            value = getattr(self, f.name)
            params[f.name] = value.value if isinstance(value, Enum) else value
        return params

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.action_type.value, **self.parameters()}


@dataclass(frozen=True)
class Move(_BaseAction):
    """Travel to a town site, a known area, or a known location in the current area."""
    action_type: ClassVar[ActionType] = ActionType.MOVE
    destination: str


@dataclass(frozen=True)
class Gather(_BaseAction):
    action_type: ClassVar[ActionType] = ActionType.GATHER
    node_id: str
    material_id: str | None = None


@dataclass(frozen=True)
class Fight(_BaseAction):
    action_type: ClassVar[ActionType] = ActionType.FIGHT
    enemy_id: str


@dataclass(frozen=True)
class Craft(_BaseAction):
    action_type: ClassVar[ActionType] = ActionType.CRAFT
    recipe_id: str


@dataclass(frozen=True)
class Store(_BaseAction):
    action_type: ClassVar[ActionType] = ActionType.STORE
    item_id: str
    quantity: int = 1


@dataclass(frozen=True)
class Drop(_BaseAction):
    action_type: ClassVar[ActionType] = ActionType.DROP
    item_id: str
    quantity: int = 1


@dataclass(frozen=True)
class AcceptContract(_BaseAction):
    action_type: ClassVar[ActionType] = ActionType.ACCEPT_CONTRACT
    contract_id: str


@dataclass(frozen=True)
class Enrol(_BaseAction):
    action_type: ClassVar[ActionType] = ActionType.ENROL
    skill: Skill


@dataclass(frozen=True)
class Explore(_BaseAction):
    """Search the current area for an undiscovered location or connection."""
    action_type: ClassVar[ActionType] = ActionType.EXPLORE


@dataclass(frozen=True)
class Survey(_BaseAction):
    """Search for an unknown area adjacent to the current one."""
    action_type: ClassVar[ActionType] = ActionType.SURVEY


@dataclass(frozen=True)
class Appraise(_BaseAction):
    action_type: ClassVar[ActionType] = ActionType.APPRAISE
    node_id: str


@dataclass(frozen=True)
class TurnInCombatToken(_BaseAction):
    action_type: ClassVar[ActionType] = ActionType.TURN_IN_COMBAT_TOKEN


Action = Union[
    Move, Gather, Fight, Craft, Store, Drop, AcceptContract,
    Enrol, Explore, Survey, Appraise, TurnInCombatToken,
]

ACTION_CLASSES: dict[ActionType, type] = {
    cls.action_type: cls
    for cls in (
        Move, Gather, Fight, Craft, Store, Drop, AcceptContract,
        Enrol, Explore, Survey, Appraise, TurnInCombatToken,
    )
}


def action_from_dict(data: dict[str, Any]) -> Action:
    """
    Build an Action from its wire form.

    Example: {"type": "Gather", "node_id": "iron-node"}
    """
    if not isinstance(data, dict):
        raise ActionParseError(f"Action must be an object, got {type(data).__name__}")

    raw_type = data.get("type")
    try:
        action_type = ActionType(raw_type)
    except ValueError:
        raise ActionParseError(f"Unknown action type: {raw_type!r}") from None

    cls = ACTION_CLASSES[action_type]
    allowed = {f.name for f in fields(cls)}
    kwargs = {k: v for k, v in data.items() if k != "type"}
    unexpected = set(kwargs) - allowed
    if unexpected:
        raise ActionParseError(
            f"Unexpected fields for {action_type.value}: {sorted(unexpected)}"
        )

    if action_type == ActionType.ENROL and "skill" in kwargs:
        try:
            kwargs["skill"] = Skill(kwargs["skill"])
        except ValueError:
            raise ActionParseError(f"Unknown skill: {kwargs['skill']!r}") from None

    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ActionParseError(f"Invalid {action_type.value} action: {e}") from None


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class ContractCompletion:
    """One contract instance that completed during an action."""
    contract_id: str
    items_consumed: tuple[tuple[str, int], ...]
    rewards_granted: tuple[tuple[str, int], ...]
    reputation_gained: int
    xp_gained: SkillGain | None = None

    def to_dict(self) -> dict:
        return {
            "contract_id": self.contract_id,
            "items_consumed": [{"item_id": i, "quantity": q} for i, q in self.items_consumed],
            "rewards_granted": [{"item_id": i, "quantity": q} for i, q in self.rewards_granted],
            "reputation_gained": self.reputation_gained,
            "xp_gained": self.xp_gained.to_dict() if self.xp_gained else None,
        }


@dataclass(frozen=True)
class ExplorationLog:
    """Discovery and luck bookkeeping for one Explore or Survey."""
    success_chance: float
    roll_interval: float
    expected_ticks: float
    actual_ticks: int
    luck_delta: int | None = None
    discovered_area_id: str | None = None
    discovered_location_id: str | None = None
    discovered_connection_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "success_chance": self.success_chance,
            "roll_interval": self.roll_interval,
            "expected_ticks": None if math.isinf(self.expected_ticks) else self.expected_ticks,
            "actual_ticks": self.actual_ticks,
            "luck_delta": self.luck_delta,
            "discovered_area_id": self.discovered_area_id,
            "discovered_location_id": self.discovered_location_id,
            "discovered_connection_id": self.discovered_connection_id,
        }


@dataclass(frozen=True)
class ActionLog:
    """Immutable record of one execution step."""
    tick_before: int
    action_type: ActionType
    parameters: dict[str, Any]
    success: bool
    time_consumed: int
    failure_type: FailureType | None = None
    failure_reason: str | None = None
    skill_gained: SkillGain | None = None
    level_ups: tuple[tuple[str, int], ...] = ()
    rng_rolls: tuple[RngRoll, ...] = ()
    state_delta_summary: str = ""
    contracts_completed: tuple[ContractCompletion, ...] = ()
    exploration: ExplorationLog | None = None

    def to_dict(self) -> dict:
        """Plain JSON-compatible form."""
        return {
            "tick_before": self.tick_before,
            "action_type": self.action_type.value,
            "parameters": dict(self.parameters),
            "success": self.success,
            "failure_type": self.failure_type.value if self.failure_type else None,
            "failure_reason": self.failure_reason,
            "time_consumed": self.time_consumed,
            "skill_gained": self.skill_gained.to_dict() if self.skill_gained else None,
            "level_ups": [{"skill": s, "level": lvl} for s, lvl in self.level_ups],
            "rng_rolls": [roll.to_dict() for roll in self.rng_rolls],
            "state_delta_summary": self.state_delta_summary,
            "contracts_completed": [c.to_dict() for c in self.contracts_completed],
            "exploration": self.exploration.to_dict() if self.exploration else None,
        }
