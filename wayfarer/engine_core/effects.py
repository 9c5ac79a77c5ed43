"""
Action Effects - State changes for an action that passed its checks.

Shared by the reducer (real execution) and the plan evaluator (projection on
a clone). Randomness is resolved by the caller beforehand: loot is passed in,
and Explore/Survey discoveries are applied by the reducer only.
"""

from __future__ import annotations
from typing import Any, Callable

from .action import Action, ActionType
from .checks import ActionCheck
from .ledger import record_kill
from .state import (
    COMBAT_GUILD_TOKEN, CRUDE_WEAPON, LootEntry, Skill, SkillState, WorldState,
    add_items, remove_items,
)
from ..world.generator import ensure_adjacency
from ..world.visibility import mark_appraised


def consume_time(state: WorldState, ticks: int) -> None:
    state.time.current_tick += ticks
    state.time.session_remaining_ticks -= ticks


def _unequip_if_gone(state: WorldState, item_id: str) -> None:
    player = state.player
    if player.equipped_weapon == item_id and player.item_count(item_id) == 0:
        player.equipped_weapon = None


def _move(state: WorldState, action, check: ActionCheck, loot) -> str:
    position = state.exploration.player
    previous_area = position.current_area_id
    position.current_area_id = check.context["area_id"]
    position.current_location_id = check.context["location_id"]
    if position.current_area_id != previous_area:
        ensure_adjacency(state, position.current_area_id)
    where = position.current_location_id or position.current_area_id
    return f"Moved to {where}"


def _gather(state: WorldState, action, check: ActionCheck, loot) -> str:
    item_id = check.context["item_id"]
    node = state.world.nodes.get(action.node_id)
    if node is not None:
        node.get_material(check.context["material_id"]).remaining_units -= 1
    add_items(state.player.inventory, item_id, 1)
    return f"Gathered 1 {item_id}"


def _fight(state: WorldState, action, check: ActionCheck, loot: LootEntry | None) -> str:
    player = state.player
    enemy_id = check.context["enemy_id"]
    record_kill(state, enemy_id)
    if loot is None:
        return f"Defeated {enemy_id}"

    if loot.replaces_item and player.item_count(loot.replaces_item) > 0:
        remove_items(player.inventory, loot.replaces_item, 1)
        if player.equipped_weapon == loot.replaces_item:
            player.equipped_weapon = None
    add_items(player.inventory, loot.item_id, loot.quantity)
    if loot.auto_equip:
        player.equipped_weapon = loot.item_id
    return f"Defeated {enemy_id}, looted {loot.quantity} {loot.item_id}"


def _craft(state: WorldState, action, check: ActionCheck, loot) -> str:
    player = state.player
    recipe = state.world.recipes[check.context["recipe_id"]]
    for stack in recipe.inputs:
        remove_items(player.inventory, stack.item_id, stack.quantity)
    add_items(player.inventory, recipe.output.item_id, recipe.output.quantity)
    return f"Crafted {recipe.output.quantity} {recipe.output.item_id}"


def _store(state: WorldState, action, check: ActionCheck, loot) -> str:
    player = state.player
    remove_items(player.inventory, action.item_id, action.quantity)
    add_items(player.storage, action.item_id, action.quantity)
    _unequip_if_gone(state, action.item_id)
    return f"Stored {action.quantity} {action.item_id}"


def _drop(state: WorldState, action, check: ActionCheck, loot) -> str:
    remove_items(state.player.inventory, action.item_id, action.quantity)
    _unequip_if_gone(state, action.item_id)
    return f"Dropped {action.quantity} {action.item_id}"


def _accept_contract(state: WorldState, action, check: ActionCheck, loot) -> str:
    state.player.active_contracts.append(action.contract_id)
    return f"Accepted contract {action.contract_id}"


def _enrol(state: WorldState, action, check: ActionCheck, loot) -> str:
    player = state.player
    skill: Skill = check.context["skill"]
    skill_state = player.skills.setdefault(skill, SkillState())
    skill_state.level = max(skill_state.level, 1)
    if skill == Skill.COMBAT:
        add_items(player.inventory, CRUDE_WEAPON, 1)
        player.equipped_weapon = CRUDE_WEAPON
    return f"Enrolled in {skill.value}"


def _appraise(state: WorldState, action, check: ActionCheck, loot) -> str:
    mark_appraised(state, action.node_id)
    return f"Appraised {action.node_id}"


def _turn_in_token(state: WorldState, action, check: ActionCheck, loot) -> str:
    remove_items(state.player.inventory, COMBAT_GUILD_TOKEN, 1)
    unlocked = []
    for contract_id, contract in state.world.token_contracts.items():
        if contract_id not in state.world.contracts:
            state.world.contracts[contract_id] = contract
            unlocked.append(contract_id)
    if unlocked:
        return f"Turned in {COMBAT_GUILD_TOKEN}, unlocked {', '.join(unlocked)}"
    return f"Turned in {COMBAT_GUILD_TOKEN}"


def _no_effect(state: WorldState, action, check: ActionCheck, loot) -> str:
    return ""


_EFFECTS: dict[ActionType, Callable[[WorldState, Any, ActionCheck, Any], str]] = {
    ActionType.MOVE: _move,
    ActionType.GATHER: _gather,
    ActionType.FIGHT: _fight,
    ActionType.CRAFT: _craft,
    ActionType.STORE: _store,
    ActionType.DROP: _drop,
    ActionType.ACCEPT_CONTRACT: _accept_contract,
    ActionType.ENROL: _enrol,
    ActionType.APPRAISE: _appraise,
    ActionType.TURN_IN_COMBAT_TOKEN: _turn_in_token,
    # Discoveries depend on rolls and are applied by the reducer
    ActionType.EXPLORE: _no_effect,
    ActionType.SURVEY: _no_effect,
}


def apply_effects(
    state: WorldState,
    action: Action,
    check: ActionCheck,
    loot: LootEntry | None = None,
) -> str:
    """Apply an action's deterministic effects. Returns a one-line summary."""
    return _EFFECTS[action.action_type](state, action, check, loot)
