"""
Procedural World Generator - Lazily materialized areas, locations and connections.

Design principles:
- Keyed, not sequenced: every roll comes from keyed_draw(seed, entity, role),
  so an area's contents never depend on which areas were generated first
- Arena storage: generated entities are stored by id in WorldState and never
  regenerated once present
- Symmetric adjacency: an area's neighbours are derived from the outgoing picks
  of every area within one distance tier, so both endpoints agree on every edge
"""

from __future__ import annotations
from dataclasses import dataclass, field
from functools import lru_cache
import logging

from ..engine_core.rng import keyed_choice, keyed_draw, keyed_shuffle
from ..engine_core.state import (
    Area, Connection, Enemy, Location, LocationKind, LootEntry, Material, Node,
    NodeType, Skill, TOWN_AREA_ID, WorldState, connection_key,
)

logger = logging.getLogger(__name__)


# Shared 15/35/35/15 distribution for link counts (0..3) and multipliers (1..4)
LINK_COUNT_WEIGHTS = (15, 35, 35, 15)
MULTIPLIER_WEIGHTS = (15, 35, 35, 15)

# Independent existence rolls, about 56% of areas end up empty
LOCATION_PROBABILITIES = (
    (LocationKind.GATHERING_NODE, NodeType.ORE_VEIN, 0.2),
    (LocationKind.GATHERING_NODE, NodeType.TREE_STAND, 0.2),
    (LocationKind.MOB_CAMP, None, 0.125),
)

# (material_id, required_level); tier is position + 1
ORE_MATERIALS = (
    ("COPPER_ORE", 1),
    ("TIN_ORE", 3),
    ("IRON_ORE", 5),
    ("SILVER_ORE", 8),
)
WOOD_MATERIALS = (
    ("PINE_LOG", 1),
    ("OAK_LOG", 3),
    ("MAPLE_LOG", 5),
    ("YEW_LOG", 8),
)

CREATURE_LOOT = (
    ("HIDE", 1, 70.0),
    ("BONE", 1, 30.0),
)


@lru_cache(maxsize=None)
def area_count(distance: int) -> int:
    """Areas at a distance: 1 for town, then Fibonacci starting at 5, 8, 13 ..."""
    if distance <= 0:
        return 1
    a, b = 1, 1
    for _ in range(distance + 2):
        a, b = b, a + b
    return b


def area_id_for(distance: int, index: int) -> str:
    if distance == 0:
        return TOWN_AREA_ID
    return f"area-d{distance}-i{index}"


def travel_multiplier(seed: str, area_a: str, area_b: str) -> int:
    """Keyed by the canonical pair so either endpoint derives the same value."""
    return 1 + keyed_choice(seed, connection_key(area_a, area_b), "multiplier", MULTIPLIER_WEIGHTS)


@lru_cache(maxsize=4096)
def outgoing_links(seed: str, area_id: str, distance: int, max_distance: int) -> tuple[str, ...]:
    """Connections an area rolls for itself toward inner, same and outer tiers."""
    targets = []
    for target_distance, role in (
        (distance - 1, "inner"),
        (distance, "same"),
        (distance + 1, "outer"),
    ):
        if target_distance < 1 or target_distance > max_distance:
            continue
        count = keyed_choice(seed, area_id, f"links:{role}", LINK_COUNT_WEIGHTS)
        if count == 0:
            continue
        candidates = [
            area_id_for(target_distance, i)
            for i in range(area_count(target_distance))
            if area_id_for(target_distance, i) != area_id
        ]
        targets.extend(keyed_shuffle(seed, area_id, f"links:{role}:order", candidates)[:count])
    return tuple(targets)


def adjacency(seed: str, area_id: str, distance: int, max_distance: int) -> list[tuple[str, int, int]]:
    """
    Full neighbour list of an area as (area_id, distance, index), sorted by id.

    Town is adjacent to every distance-1 area.
    """
    neighbours: dict[str, tuple[str, int, int]] = {}

    if distance == 0:
        for i in range(area_count(1)):
            neighbours[area_id_for(1, i)] = (area_id_for(1, i), 1, i)
        return sorted(neighbours.values())

    if distance == 1:
        neighbours[TOWN_AREA_ID] = (TOWN_AREA_ID, 0, 0)

    lookup = {}
    for d in (distance - 1, distance, distance + 1):
        if 1 <= d <= max_distance:
            for i in range(area_count(d)):
                lookup[area_id_for(d, i)] = (area_id_for(d, i), d, i)

    for other_id, (_, other_distance, _) in lookup.items():
        links = outgoing_links(seed, other_id, other_distance, max_distance)
        if other_id == area_id:
            for target in links:
                neighbours[target] = lookup[target]
        elif area_id in links:
            neighbours[other_id] = lookup[other_id]

    return sorted(neighbours.values())


@dataclass
class GeneratedArea:
    """Everything an area contributes to the arenas."""
    area: Area
    locations: list[Location] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)
    enemies: list[Enemy] = field(default_factory=list)


def _build_node(seed: str, area_id: str, distance: int, index: int,
                location_id: str, node_type: NodeType) -> Node:
    if node_type == NodeType.ORE_VEIN:
        catalogue, skill = ORE_MATERIALS, Skill.MINING
    else:
        catalogue, skill = WOOD_MATERIALS, Skill.WOODCUTTING

    node_id = f"{area_id}-node-{index}"
    materials = []
    for tier, (material_id, required_level) in enumerate(catalogue[:min(distance + 1, len(catalogue))], start=1):
        units = 3 + int(keyed_draw(seed, node_id, f"units:{material_id}") * 10)
        materials.append(Material(
            material_id=material_id,
            tier=tier,
            required_level=required_level,
            remaining_units=units,
            max_units_initial=units,
            requires_skill=skill,
        ))

    return Node(
        node_id=node_id,
        location_id=location_id,
        area_id=area_id,
        node_type=node_type,
        skill=skill,
        gather_time=2 + (distance - 1) // 2,
        success_probability=max(0.4, 0.85 - 0.05 * (distance - 1)),
        materials=materials,
    )


def generate_area(seed: str, distance: int, index: int) -> GeneratedArea:
    """Pure function of (seed, area id). Calling it twice yields equal content."""
    area_id = area_id_for(distance, index)
    generated = GeneratedArea(area=Area(area_id=area_id, distance=distance, index=index))

    slot = 0
    for kind, node_type, probability in LOCATION_PROBABILITIES:
        role = f"location:{node_type.value if node_type else kind.value}"
        if keyed_draw(seed, area_id, role) >= probability:
            continue

        location_id = f"{area_id}-loc-{slot}"
        location = Location(location_id=location_id, area_id=area_id, kind=kind)

        if kind == LocationKind.GATHERING_NODE:
            node = _build_node(seed, area_id, distance, slot, location_id, node_type)
            location.node_id = node.node_id
            generated.nodes.append(node)
        else:
            enemy = Enemy(
                enemy_id=f"{area_id}-enemy-{slot}",
                location_id=location_id,
                required_level=distance,
                loot_table=[LootEntry(item, qty, weight) for item, qty, weight in CREATURE_LOOT],
                area_id=area_id,
            )
            location.enemy_id = enemy.enemy_id
            generated.enemies.append(enemy)

        generated.area.location_ids.append(location_id)
        generated.locations.append(location)
        slot += 1

    return generated


def ensure_area(state: WorldState, distance: int, index: int) -> Area:
    """Materialize an area into the arenas if it is not there yet."""
    area_id = area_id_for(distance, index)
    existing = state.exploration.areas.get(area_id)
    if existing is not None:
        return existing

    generated = generate_area(state.rng.seed, distance, index)
    state.exploration.areas[area_id] = generated.area
    for location in generated.locations:
        state.exploration.locations[location.location_id] = location
    for node in generated.nodes:
        state.world.nodes[node.node_id] = node
    for enemy in generated.enemies:
        state.world.enemies[enemy.enemy_id] = enemy

    logger.debug("Materialized area %s with %d locations", area_id, len(generated.locations))
    return generated.area


def ensure_adjacency(state: WorldState, area_id: str) -> list[Connection]:
    """
    Materialize every connection touching an area, plus the areas at the far ends.

    Idempotent: a second call only returns the existing connections.
    """
    exploration = state.exploration
    if area_id not in exploration.linked_area_ids:
        area = exploration.areas[area_id]
        neighbours = adjacency(
            state.rng.seed, area_id, area.distance, state.world.max_generated_distance,
        )
        for neighbour_id, distance, index in neighbours:
            if distance > 0:
                ensure_area(state, distance, index)
            key = connection_key(area_id, neighbour_id)
            if key not in exploration.connections:
                low, high = sorted((area_id, neighbour_id))
                exploration.connections[key] = Connection(
                    area_a=low,
                    area_b=high,
                    travel_multiplier=travel_multiplier(state.rng.seed, low, high),
                )
        exploration.linked_area_ids.add(area_id)
        logger.debug("Linked area %s to %d neighbours", area_id, len(neighbours))

    return exploration.connections_of(area_id)
