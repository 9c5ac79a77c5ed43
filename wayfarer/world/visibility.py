"""
Discovery & Visibility Ledger - What the player knows and may see.

Knowledge-set growth is the only mutation performed here. Nothing is ever
removed from known_area_ids, known_location_ids, known_connection_ids or
appraised_node_ids.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from ..engine_core.state import Material, Node, WorldState


class VisibilityTier(str, Enum):
    """How much of a node the player can currently see."""
    NONE = "none"            # node type only
    MATERIALS = "materials"  # material identities up to skill + 2
    FULL = "full"            # appraised, exact remaining quantities


MATERIAL_VISIBILITY_MARGIN = 2


# =============================================================================
# Knowledge growth
# =============================================================================

def discover_area(state: WorldState, area_id: str) -> bool:
    """Returns True if the area was newly learned."""
    known = state.exploration.player.known_area_ids
    if area_id in known:
        return False
    known.add(area_id)
    return True


def discover_location(state: WorldState, location_id: str) -> bool:
    known = state.exploration.player.known_location_ids
    if location_id in known:
        return False
    known.add(location_id)
    return True


def discover_connection(state: WorldState, connection_id: str) -> bool:
    known = state.exploration.player.known_connection_ids
    if connection_id in known:
        return False
    known.add(connection_id)
    return True


def mark_appraised(state: WorldState, node_id: str) -> bool:
    appraised = state.player.appraised_node_ids
    if node_id in appraised:
        return False
    appraised.add(node_id)
    return True


# =============================================================================
# Queries
# =============================================================================

def is_area_known(state: WorldState, area_id: str) -> bool:
    return area_id in state.exploration.player.known_area_ids


def is_location_known(state: WorldState, location_id: str) -> bool:
    return location_id in state.exploration.player.known_location_ids


def is_connection_known(state: WorldState, connection_id: str) -> bool:
    return connection_id in state.exploration.player.known_connection_ids


def frontier_area_ids(state: WorldState) -> list[str]:
    """Unknown areas at the far end of a known connection."""
    player = state.exploration.player
    frontier = set()
    for connection_id in player.known_connection_ids:
        connection = state.exploration.connections.get(connection_id)
        if connection is None:
            continue
        for area_id in (connection.area_a, connection.area_b):
            if area_id not in player.known_area_ids:
                frontier.add(area_id)
    return sorted(frontier)


def get_visibility_tier(state: WorldState, node: Node) -> VisibilityTier:
    if state.player.skill_level(node.skill) <= 0:
        return VisibilityTier.NONE
    if node.node_id in state.player.appraised_node_ids:
        return VisibilityTier.FULL
    return VisibilityTier.MATERIALS


def visible_materials(state: WorldState, node: Node) -> list[Material]:
    """Materials the player can identify on a node."""
    tier = get_visibility_tier(state, node)
    if tier == VisibilityTier.NONE:
        return []
    ceiling = state.player.skill_level(node.skill) + MATERIAL_VISIBILITY_MARGIN
    return [m for m in node.materials if m.required_level <= ceiling]


@dataclass
class MaterialView:
    material_id: str
    tier: int
    required_level: int
    remaining_units: int | None = None  # only at FULL visibility


@dataclass
class NodeView:
    """Player-facing projection of a node."""
    node_id: str
    node_type: str
    skill: str
    visibility: VisibilityTier
    depleted: bool | None = None
    materials: list[MaterialView] = field(default_factory=list)


def player_node_view(state: WorldState, node: Node) -> NodeView:
    tier = get_visibility_tier(state, node)
    view = NodeView(
        node_id=node.node_id,
        node_type=node.node_type.value,
        skill=node.skill.value,
        visibility=tier,
    )
    if tier == VisibilityTier.FULL:
        view.depleted = node.depleted
    for material in visible_materials(state, node):
        view.materials.append(MaterialView(
            material_id=material.material_id,
            tier=material.tier,
            required_level=material.required_level,
            remaining_units=material.remaining_units if tier == VisibilityTier.FULL else None,
        ))
    return view
