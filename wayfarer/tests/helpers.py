"""
Test helpers for building Wayfarer states.
"""

from ..engine_core.action import Move
from ..engine_core.progression import get_total_xp
from ..engine_core.reducer import execute_action
from ..engine_core.state import (
    ItemStack, Location, LocationKind, Material, Node, NodeType, Skill,
    TOWN_AREA_ID, WorldState, add_items, connection_key,
)
from ..world.visibility import discover_area, discover_connection, discover_location


FIRST_RING_AREA = "area-d1-i0"


def set_skill(state: WorldState, skill: Skill, level: int) -> None:
    """Force a skill level for test setup."""
    state.player.skills[skill].level = level


def give(state: WorldState, item_id: str, quantity: int = 1) -> None:
    add_items(state.player.inventory, item_id, quantity)


def total_xp_by_skill(state: WorldState) -> dict:
    return {skill: get_total_xp(s) for skill, s in state.player.skills.items()}


def fill_inventory(state: WorldState, keep_free: int = 0) -> None:
    """Fill inventory slots with distinct junk items."""
    free = state.player.inventory_capacity - len(state.player.inventory) - keep_free
    for i in range(free):
        state.player.inventory.append(ItemStack(f"JUNK_{i}", 1))


def place_node(
    state: WorldState,
    area_id: str,
    required_levels=(1, 3, 5),
    units: int = 3,
    success_probability: float = 1.0,
) -> Node:
    """Put an undiscovered ore vein with known contents into an area."""
    location_id = f"{area_id}-loc-test"
    node = Node(
        node_id=f"{area_id}-node-test",
        location_id=location_id,
        area_id=area_id,
        node_type=NodeType.ORE_VEIN,
        skill=Skill.MINING,
        gather_time=2,
        success_probability=success_probability,
        materials=[
            Material(f"ORE_T{tier}", tier, level, units, units, Skill.MINING)
            for tier, level in enumerate(required_levels, start=1)
        ],
    )
    state.exploration.locations[location_id] = Location(
        location_id, area_id, LocationKind.GATHERING_NODE, node_id=node.node_id,
    )
    state.exploration.areas[area_id].location_ids.append(location_id)
    state.world.nodes[node.node_id] = node
    return node


def reveal_route_from_town(state: WorldState, area_id: str = FIRST_RING_AREA) -> None:
    """Learn a first-ring area and its road from town."""
    discover_area(state, area_id)
    discover_connection(state, connection_key(TOWN_AREA_ID, area_id))


def travel_to_first_ring(state: WorldState, area_id: str = FIRST_RING_AREA):
    reveal_route_from_town(state, area_id)
    log = execute_action(state, Move(area_id))
    assert log.success, log.failure_reason
    return log


def stand_at_node(state: WorldState, **node_kwargs) -> Node:
    """Travel to the first ring, plant a test vein there and walk up to it."""
    travel_to_first_ring(state)
    node = place_node(state, FIRST_RING_AREA, **node_kwargs)
    discover_location(state, node.location_id)
    log = execute_action(state, Move(node.location_id))
    assert log.success, log.failure_reason
    return node
