"""
Action Checks - Preconditions and cost model shared by engine and evaluator.

check_action() is the single source of truth for whether an action may run,
how long it takes, how likely it is to succeed and which skill it trains.
The reducer executes on top of it; the plan evaluator projects with it.
Neither side re-implements any of these rules.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable

from .action import (
    AcceptContract, Action, ActionType, Appraise, Craft, Drop, Enrol, Explore,
    FailureType, Fight, Gather, Move, Store, Survey, TurnInCombatToken,
)
from .state import (
    COMBAT_GUILD_TOKEN, CRUDE_WEAPON, Connection, ItemStack, Skill, TOWN_AREA_ID,
    TOWN_SITE, WorldState,
)
from ..world import exploration as odds
from ..world.visibility import is_area_known, is_connection_known, is_location_known


@dataclass
class ActionCheck:
    """
    Outcome of running an action's preconditions.

    For fixed-cost actions time_cost is exact. Explore and Survey have
    variable_time set; their success_probability is the per-roll chance.
    """
    valid: bool
    failure_type: FailureType | None = None
    failure_reason: str | None = None
    time_cost: int = 0
    success_probability: float = 1.0
    xp_skill: Skill | None = None
    variable_time: bool = False

    # Resolved targets handed to the effect step
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def fail(cls, failure_type: FailureType, reason: str) -> ActionCheck:
        return cls(valid=False, failure_type=failure_type, failure_reason=reason)

    @classmethod
    def ok(
        cls,
        time_cost: int,
        success_probability: float = 1.0,
        xp_skill: Skill | None = None,
        **context: Any,
    ) -> ActionCheck:
        return cls(
            valid=True,
            time_cost=time_cost,
            success_probability=success_probability,
            xp_skill=xp_skill,
            context=context,
        )


def check_action(state: WorldState, action: Action) -> ActionCheck:
    """Run every precondition for an action against a state. Never mutates."""
    remaining = state.time.session_remaining_ticks
    if remaining <= 0:
        return ActionCheck.fail(FailureType.SESSION_ENDED, "Session has no ticks remaining")

    checker = _CHECKS[action.action_type]
    check = checker(state, action)

    if check.valid and not check.variable_time and check.time_cost > remaining:
        return ActionCheck.fail(
            FailureType.SESSION_ENDED,
            f"Needs {check.time_cost} ticks but only {remaining} remain",
        )
    return check


# =============================================================================
# Travel
# =============================================================================

def find_path(state: WorldState, start: str, goal: str) -> list[Connection] | None:
    """
    Fewest-hop route over known connections between known areas.

    Returns the connections in travel order, or None if unreachable.
    """
    if start == goal:
        return []

    exploration = state.exploration
    previous: dict[str, tuple[str, Connection]] = {}
    visited = {start}
    queue = deque([start])

    while queue:
        area_id = queue.popleft()
        for conn in exploration.connections_of(area_id):
            if not is_connection_known(state, conn.connection_id):
                continue
            other = conn.other(area_id)
            if other in visited or not is_area_known(state, other):
                continue
            visited.add(other)
            previous[other] = (area_id, conn)
            if other == goal:
                path = []
                node = goal
                while node != start:
                    node, hop = previous[node]
                    path.append(hop)
                return list(reversed(path))
            queue.append(other)
    return None


def path_cost(state: WorldState, path: list[Connection]) -> int:
    return sum(state.world.base_travel_time * conn.travel_multiplier for conn in path)


def _check_move(state: WorldState, action: Move) -> ActionCheck:
    world = state.world
    exploration = state.exploration
    destination = action.destination
    current_area = state.current_area_id
    current_location = state.current_location_id

    # Town sites
    if world.is_site(destination):
        if current_area == TOWN_AREA_ID:
            if current_location == destination:
                return ActionCheck.fail(FailureType.ALREADY_AT_DESTINATION, f"Already at {destination}")
            return ActionCheck.ok(
                world.travel_costs[f"{current_location}->{destination}"],
                area_id=TOWN_AREA_ID, location_id=destination, path=[],
            )
        path = find_path(state, current_area, TOWN_AREA_ID)
        if path is None:
            return ActionCheck.fail(FailureType.NO_PATH_TO_DESTINATION, "No known route back to town")
        cost = path_cost(state, path)
        if destination != TOWN_SITE:
            cost += world.travel_costs[f"{TOWN_SITE}->{destination}"]
        return ActionCheck.ok(cost, area_id=TOWN_AREA_ID, location_id=destination, path=path)

    # Areas
    if destination in exploration.areas:
        if not is_area_known(state, destination):
            return ActionCheck.fail(FailureType.AREA_NOT_KNOWN, f"Area {destination} is not known")

        arrival = TOWN_SITE if destination == TOWN_AREA_ID else None
        if destination == current_area:
            if current_location == arrival:
                return ActionCheck.fail(FailureType.ALREADY_AT_DESTINATION, f"Already in {destination}")
            if current_area == TOWN_AREA_ID:
                cost = world.travel_costs[f"{current_location}->{TOWN_SITE}"]
            else:
                cost = 1
            return ActionCheck.ok(cost, area_id=destination, location_id=arrival, path=[])

        path = find_path(state, current_area, destination)
        if path is None:
            return ActionCheck.fail(
                FailureType.NO_PATH_TO_DESTINATION,
                f"No known route from {current_area} to {destination}",
            )
        return ActionCheck.ok(
            path_cost(state, path), area_id=destination, location_id=arrival, path=path,
        )

    # Locations inside the current area
    location = exploration.locations.get(destination)
    if location is not None:
        if not is_location_known(state, destination):
            return ActionCheck.fail(FailureType.LOCATION_NOT_DISCOVERED, f"{destination} has not been discovered")
        if location.area_id != current_area:
            return ActionCheck.fail(
                FailureType.WRONG_LOCATION,
                f"{destination} is in {location.area_id}, travel there first",
            )
        if current_location == destination:
            return ActionCheck.fail(FailureType.ALREADY_AT_DESTINATION, f"Already at {destination}")
        return ActionCheck.ok(1, area_id=current_area, location_id=destination, path=[])

    return ActionCheck.fail(FailureType.UNKNOWN_DESTINATION, f"Unknown destination: {destination}")


# =============================================================================
# Gathering
# =============================================================================

def _check_gather(state: WorldState, action: Gather) -> ActionCheck:
    world = state.world
    player = state.player

    resource = world.resource_nodes.get(action.node_id)
    if resource is not None:
        if state.current_location_id != resource.location_id:
            return ActionCheck.fail(FailureType.WRONG_LOCATION, f"Must be at {resource.location_id}")
        level = player.skill_level(resource.skill)
        if level < resource.required_level:
            return ActionCheck.fail(
                FailureType.INSUFFICIENT_SKILL,
                f"{resource.skill.value} {resource.required_level} required, have {level}",
            )
        if action.material_id is not None and action.material_id != resource.item_id:
            return ActionCheck.fail(FailureType.MATERIAL_NOT_FOUND, f"{action.node_id} yields only {resource.item_id}")
        if not player.can_fit_items([ItemStack(resource.item_id, 1)]):
            return ActionCheck.fail(FailureType.INVENTORY_FULL, "No free inventory slot")
        return ActionCheck.ok(
            resource.gather_time, resource.success_probability, resource.skill,
            item_id=resource.item_id,
        )

    node = world.nodes.get(action.node_id)
    if node is None:
        return ActionCheck.fail(FailureType.NODE_NOT_FOUND, f"Unknown node: {action.node_id}")
    if not is_location_known(state, node.location_id):
        return ActionCheck.fail(FailureType.LOCATION_NOT_DISCOVERED, f"{node.location_id} has not been discovered")
    if state.current_location_id != node.location_id:
        return ActionCheck.fail(FailureType.WRONG_LOCATION, f"Must be at {node.location_id}")
    if node.depleted:
        return ActionCheck.fail(FailureType.NODE_DEPLETED, f"{node.node_id} is depleted")

    level = player.skill_level(node.skill)
    if action.material_id is not None:
        material = node.get_material(action.material_id)
        if material is None:
            return ActionCheck.fail(FailureType.MATERIAL_NOT_FOUND, f"{action.material_id} not in {node.node_id}")
        if material.remaining_units <= 0:
            return ActionCheck.fail(FailureType.NODE_DEPLETED, f"{material.material_id} is exhausted")
        if level < material.required_level:
            return ActionCheck.fail(
                FailureType.INSUFFICIENT_SKILL,
                f"{node.skill.value} {material.required_level} required, have {level}",
            )
    else:
        workable = [
            m for m in node.materials
            if m.remaining_units > 0 and m.required_level <= level
        ]
        if not workable:
            return ActionCheck.fail(
                FailureType.INSUFFICIENT_SKILL,
                f"No material in {node.node_id} is workable at {node.skill.value} {level}",
            )
        material = max(workable, key=lambda m: m.tier)

    if not player.can_fit_items([ItemStack(material.material_id, 1)]):
        return ActionCheck.fail(FailureType.INVENTORY_FULL, "No free inventory slot")
    return ActionCheck.ok(
        node.gather_time, node.success_probability, node.skill,
        item_id=material.material_id, material_id=material.material_id,
    )


def _check_appraise(state: WorldState, action: Appraise) -> ActionCheck:
    node = state.world.nodes.get(action.node_id)
    if node is None:
        return ActionCheck.fail(FailureType.NODE_NOT_FOUND, f"Unknown node: {action.node_id}")
    if not is_location_known(state, node.location_id):
        return ActionCheck.fail(FailureType.LOCATION_NOT_DISCOVERED, f"{node.location_id} has not been discovered")
    if state.current_location_id != node.location_id:
        return ActionCheck.fail(FailureType.WRONG_LOCATION, f"Must be at {node.location_id}")
    if state.player.skill_level(node.skill) < 1:
        return ActionCheck.fail(FailureType.INSUFFICIENT_SKILL, f"{node.skill.value} 1 required")
    return ActionCheck.ok(1)


# =============================================================================
# Combat
# =============================================================================

def _check_fight(state: WorldState, action: Fight) -> ActionCheck:
    player = state.player
    enemy = state.world.enemies.get(action.enemy_id)
    if enemy is None:
        return ActionCheck.fail(FailureType.ENEMY_NOT_FOUND, f"Unknown enemy: {action.enemy_id}")
    if enemy.area_id != TOWN_AREA_ID and not is_location_known(state, enemy.location_id):
        return ActionCheck.fail(FailureType.LOCATION_NOT_DISCOVERED, f"{enemy.location_id} has not been discovered")
    if state.current_location_id != enemy.location_id:
        return ActionCheck.fail(FailureType.WRONG_LOCATION, f"Must be at {enemy.location_id}")

    level = player.skill_level(Skill.COMBAT)
    if level < enemy.required_level:
        return ActionCheck.fail(
            FailureType.INSUFFICIENT_SKILL,
            f"Combat {enemy.required_level} required, have {level}",
        )

    weapon = state.world.weapons.get(player.equipped_weapon or "")
    if weapon is None or player.item_count(weapon.item_id) < 1:
        return ActionCheck.fail(FailureType.MISSING_WEAPON, "No weapon equipped")

    for entry in enemy.loot_table:
        removals = []
        if entry.replaces_item and player.item_count(entry.replaces_item) > 0:
            removals.append(ItemStack(entry.replaces_item, 1))
        if not player.can_fit_items([ItemStack(entry.item_id, entry.quantity)], removals):
            return ActionCheck.fail(FailureType.INVENTORY_FULL, f"No room for possible loot {entry.item_id}")

    return ActionCheck.ok(
        weapon.fight_time, weapon.success_probability, Skill.COMBAT,
        enemy_id=enemy.enemy_id, weapon_id=weapon.item_id,
    )


# =============================================================================
# Crafting and items
# =============================================================================

def _check_craft(state: WorldState, action: Craft) -> ActionCheck:
    player = state.player
    recipe = state.world.recipes.get(action.recipe_id)
    if recipe is None:
        return ActionCheck.fail(FailureType.RECIPE_NOT_FOUND, f"Unknown recipe: {action.recipe_id}")
    if state.current_location_id != recipe.location_id:
        return ActionCheck.fail(FailureType.WRONG_LOCATION, f"Must be at {recipe.location_id}")
    level = player.skill_level(recipe.skill)
    if level < recipe.required_level:
        return ActionCheck.fail(
            FailureType.INSUFFICIENT_SKILL,
            f"{recipe.skill.value} {recipe.required_level} required, have {level}",
        )
    if not player.has_items(recipe.inputs):
        return ActionCheck.fail(FailureType.MISSING_ITEMS, f"Missing inputs for {recipe.recipe_id}")
    if not player.can_fit_items([recipe.output], recipe.inputs):
        return ActionCheck.fail(FailureType.INVENTORY_FULL, "No room for crafted item")
    return ActionCheck.ok(recipe.craft_time, 1.0, recipe.skill, recipe_id=recipe.recipe_id)


def _check_store(state: WorldState, action: Store) -> ActionCheck:
    if action.quantity <= 0:
        return ActionCheck.fail(FailureType.INVALID_QUANTITY, "Quantity must be positive")
    if state.current_location_id != state.world.storage_location_id:
        return ActionCheck.fail(FailureType.WRONG_LOCATION, f"Must be at {state.world.storage_location_id}")
    if state.player.item_count(action.item_id) < action.quantity:
        return ActionCheck.fail(FailureType.MISSING_ITEMS, f"Not enough {action.item_id}")
    return ActionCheck.ok(0, 1.0, Skill.LOGISTICS)


def _check_drop(state: WorldState, action: Drop) -> ActionCheck:
    if action.quantity <= 0:
        return ActionCheck.fail(FailureType.INVALID_QUANTITY, "Quantity must be positive")
    if state.player.item_count(action.item_id) < action.quantity:
        return ActionCheck.fail(FailureType.MISSING_ITEMS, f"Not enough {action.item_id}")
    return ActionCheck.ok(1)


# =============================================================================
# Guilds and contracts
# =============================================================================

def _check_accept_contract(state: WorldState, action: AcceptContract) -> ActionCheck:
    contract = state.world.contracts.get(action.contract_id)
    if contract is None:
        return ActionCheck.fail(FailureType.CONTRACT_NOT_FOUND, f"Unknown contract: {action.contract_id}")
    if state.current_location_id != contract.guild_location_id:
        return ActionCheck.fail(FailureType.WRONG_LOCATION, f"Must be at {contract.guild_location_id}")
    if contract.contract_id in state.player.active_contracts:
        return ActionCheck.fail(FailureType.ALREADY_HAS_CONTRACT, f"{contract.contract_id} is already active")
    return ActionCheck.ok(0)


def _check_enrol(state: WorldState, action: Enrol) -> ActionCheck:
    try:
        skill = Skill(action.skill)
    except ValueError:
        return ActionCheck.fail(FailureType.UNKNOWN_SKILL, f"Unknown skill: {action.skill}")
    if state.current_location_id != state.world.guild_location_id:
        return ActionCheck.fail(FailureType.WRONG_LOCATION, f"Must be at {state.world.guild_location_id}")
    if state.player.skill_level(skill) >= 1:
        return ActionCheck.fail(FailureType.ALREADY_ENROLLED, f"Already enrolled in {skill.value}")
    if skill == Skill.COMBAT and not state.player.can_fit_items([ItemStack(CRUDE_WEAPON, 1)]):
        return ActionCheck.fail(FailureType.INVENTORY_FULL, "No room for the guild weapon")
    return ActionCheck.ok(3, skill=skill)


def _check_turn_in_token(state: WorldState, action: TurnInCombatToken) -> ActionCheck:
    if state.current_location_id != state.world.guild_location_id:
        return ActionCheck.fail(FailureType.WRONG_LOCATION, f"Must be at {state.world.guild_location_id}")
    if state.player.item_count(COMBAT_GUILD_TOKEN) < 1:
        return ActionCheck.fail(FailureType.MISSING_ITEMS, f"No {COMBAT_GUILD_TOKEN} held")
    return ActionCheck.ok(0)


# =============================================================================
# Exploration
# =============================================================================

def _exploration_check(state: WorldState) -> ActionCheck:
    level = state.player.skill_level(Skill.EXPLORATION)
    chance = odds.success_chance(state)
    interval = odds.roll_interval(level)
    return ActionCheck(
        valid=True,
        success_probability=chance,
        xp_skill=Skill.EXPLORATION if level >= 1 else None,
        variable_time=True,
        context={
            "chance": chance,
            "interval": interval,
            "expected_ticks": odds.expected_ticks(chance, interval),
        },
    )


def _check_explore(state: WorldState, action: Explore) -> ActionCheck:
    if not odds.explore_candidates(state):
        return ActionCheck.fail(FailureType.AREA_FULLY_EXPLORED, f"Nothing left to find in {state.current_area_id}")
    return _exploration_check(state)


def _check_survey(state: WorldState, action: Survey) -> ActionCheck:
    if not odds.survey_candidates(state):
        return ActionCheck.fail(FailureType.NO_UNDISCOVERED_AREAS, f"No unknown areas next to {state.current_area_id}")
    return _exploration_check(state)


_CHECKS: dict[ActionType, Callable[[WorldState, Any], ActionCheck]] = {
    ActionType.MOVE: _check_move,
    ActionType.GATHER: _check_gather,
    ActionType.FIGHT: _check_fight,
    ActionType.CRAFT: _check_craft,
    ActionType.STORE: _check_store,
    ActionType.DROP: _check_drop,
    ActionType.ACCEPT_CONTRACT: _check_accept_contract,
    ActionType.ENROL: _check_enrol,
    ActionType.EXPLORE: _check_explore,
    ActionType.SURVEY: _check_survey,
    ActionType.APPRAISE: _check_appraise,
    ActionType.TURN_IN_COMBAT_TOKEN: _check_turn_in_token,
}
