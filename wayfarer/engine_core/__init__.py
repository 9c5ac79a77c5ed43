"""
Engine Core - Deterministic world state and action execution.

The engine is the runtime that:
1. Holds the WorldState (including the RNG position)
2. Checks action preconditions and costs
3. Executes actions via the reducer, one ActionLog per action
4. Settles contracts after every successful action
"""

from .config import WorldConfig, DEFAULT_CONFIG
from .state import WorldState, PlayerState, Skill, ItemStack
from .action import (
    Action, ActionType, ActionLog, FailureType, ActionParseError, action_from_dict,
    Move, Gather, Fight, Craft, Store, Drop, AcceptContract, Enrol, Explore,
    Survey, Appraise, TurnInCombatToken,
)
from .checks import ActionCheck, check_action
from .reducer import Reducer, execute_action
from .snapshot import state_to_dict, state_from_dict

__all__ = [
    "WorldConfig",
    "DEFAULT_CONFIG",
    "WorldState",
    "PlayerState",
    "Skill",
    "ItemStack",
    "Action",
    "ActionType",
    "ActionLog",
    "FailureType",
    "ActionParseError",
    "action_from_dict",
    "Move",
    "Gather",
    "Fight",
    "Craft",
    "Store",
    "Drop",
    "AcceptContract",
    "Enrol",
    "Explore",
    "Survey",
    "Appraise",
    "TurnInCombatToken",
    "ActionCheck",
    "check_action",
    "Reducer",
    "execute_action",
    "state_to_dict",
    "state_from_dict",
]
