"""
Contract Ledger - Cumulative, re-acceptable contracts.

After every successful action the ledger scans active contracts in
acceptance order. A contract whose item and kill requirements are met is
completed atomically: inputs consumed (inventory first, then storage),
rewards granted, and the contract removed from the active list. Because the
inputs are consumed, a re-accepted contract needs fresh items before it can
complete again.
"""

from __future__ import annotations
import logging

from .action import ContractCompletion
from .progression import add_xp
from .state import Contract, ItemStack, WorldState, add_items, count_items, remove_items

logger = logging.getLogger(__name__)


def record_kill(state: WorldState, enemy_id: str) -> None:
    """Count a kill toward every active contract that asks for this enemy."""
    world = state.world
    player = state.player
    for contract_id in player.active_contracts:
        contract = world.contracts.get(contract_id)
        if contract is None:
            continue
        if any(req.enemy_id == enemy_id for req in contract.kill_requirements):
            progress = player.contract_kill_progress.setdefault(contract_id, {})
            progress[enemy_id] = progress.get(enemy_id, 0) + 1


def _consumption_plan(state: WorldState, contract: Contract) -> list[tuple[str, int, int]] | None:
    """
    (item_id, from_inventory, from_storage) per requirement.

    None if inventory plus storage cannot cover the requirements.
    """
    player = state.player
    plan = []
    for req in contract.requirements:
        held = count_items(player.inventory, req.item_id)
        stored = count_items(player.storage, req.item_id)
        if held + stored < req.quantity:
            return None
        from_inventory = min(held, req.quantity)
        plan.append((req.item_id, from_inventory, req.quantity - from_inventory))
    return plan


def kills_satisfied(state: WorldState, contract: Contract) -> bool:
    progress = state.player.contract_kill_progress.get(contract.contract_id, {})
    return all(
        progress.get(req.enemy_id, 0) >= req.count
        for req in contract.kill_requirements
    )


def _complete(state: WorldState, contract: Contract,
              plan: list[tuple[str, int, int]]) -> ContractCompletion:
    player = state.player

    for item_id, from_inventory, from_storage in plan:
        remove_items(player.inventory, item_id, from_inventory)
        remove_items(player.storage, item_id, from_storage)
    for reward in contract.rewards:
        add_items(player.inventory, reward.item_id, reward.quantity)

    player.guild_reputation += contract.reputation_reward
    if contract.xp_reward is not None:
        add_xp(player, contract.xp_reward.skill, contract.xp_reward.amount)

    player.active_contracts.remove(contract.contract_id)
    player.contract_kill_progress.pop(contract.contract_id, None)

    logger.info("Contract %s completed, +%d reputation", contract.contract_id, contract.reputation_reward)
    return ContractCompletion(
        contract_id=contract.contract_id,
        items_consumed=tuple((r.item_id, r.quantity) for r in contract.requirements),
        rewards_granted=tuple((r.item_id, r.quantity) for r in contract.rewards),
        reputation_gained=contract.reputation_reward,
        xp_gained=contract.xp_reward,
    )


def check_contract_completions(state: WorldState) -> list[ContractCompletion]:
    """Complete every active contract whose requirements are now met."""
    completions = []
    player = state.player

    for contract_id in list(player.active_contracts):
        contract = state.world.contracts.get(contract_id)
        if contract is None:
            continue
        plan = _consumption_plan(state, contract)
        if plan is None or not kills_satisfied(state, contract):
            continue

        removals = [ItemStack(item_id, qty) for item_id, qty, _ in plan if qty]
        if not player.can_fit_items(contract.rewards, removals):
            continue

        completions.append(_complete(state, contract, plan))

    return completions
