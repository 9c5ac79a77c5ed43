"""
World State - The single mutable aggregate owned by one simulation.

Design principles:
- One writer: only the reducer mutates a live WorldState
- Arena storage: generated areas, locations, nodes and enemies live in dicts
  keyed by id, never re-derived by parsing ids
- Serializable: plain dataclasses, sets and enums only (see snapshot.py)
- Clonable: the plan evaluator works on clone() and never on the original
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum

from .rng import RngState


TOWN_AREA_ID = "TOWN"
TOWN_SITE = "TOWN"

CRUDE_WEAPON = "CRUDE_WEAPON"
IMPROVED_WEAPON = "IMPROVED_WEAPON"
COMBAT_GUILD_TOKEN = "COMBAT_GUILD_TOKEN"


class Skill(str, Enum):
    """Trainable skills."""
    MINING = "Mining"
    WOODCUTTING = "Woodcutting"
    COMBAT = "Combat"
    SMITHING = "Smithing"
    LOGISTICS = "Logistics"
    EXPLORATION = "Exploration"


class LocationKind(str, Enum):
    """What a location hosts."""
    GATHERING_NODE = "gathering_node"
    MOB_CAMP = "mob_camp"
    PLACE = "place"


class NodeType(str, Enum):
    """Procedural gathering node types."""
    ORE_VEIN = "ore_vein"
    TREE_STAND = "tree_stand"


# =============================================================================
# Items
# =============================================================================

@dataclass
class ItemStack:
    """A quantity of one item. One stack occupies one inventory slot."""
    item_id: str
    quantity: int


def count_items(stacks: list[ItemStack], item_id: str) -> int:
    """Total quantity of an item across stacks."""
    return sum(s.quantity for s in stacks if s.item_id == item_id)


def add_items(stacks: list[ItemStack], item_id: str, quantity: int) -> None:
    """Add to an existing stack or open a new one."""
    for stack in stacks:
        if stack.item_id == item_id:
            stack.quantity += quantity
            return
    stacks.append(ItemStack(item_id, quantity))


def remove_items(stacks: list[ItemStack], item_id: str, quantity: int) -> int:
    """
    Remove up to quantity of an item, dropping emptied stacks.

    Returns how many were actually removed.
    """
    removed = 0
    for stack in list(stacks):
        if removed >= quantity:
            break
        if stack.item_id != item_id:
            continue
        take = min(stack.quantity, quantity - removed)
        stack.quantity -= take
        removed += take
        if stack.quantity == 0:
            stacks.remove(stack)
    return removed


# =============================================================================
# World content
# =============================================================================

@dataclass
class SkillGain:
    """XP granted to one skill."""
    skill: Skill
    amount: int

    def to_dict(self) -> dict:
        return {"skill": self.skill.value, "amount": self.amount}


@dataclass
class Material:
    """One extractable reserve inside a procedural node."""
    material_id: str
    tier: int
    required_level: int
    remaining_units: int
    max_units_initial: int
    requires_skill: Skill


@dataclass
class Node:
    """
    Procedurally generated gathering node.

    Reserves deplete monotonically and never replenish within a session.
    """
    node_id: str
    location_id: str
    area_id: str
    node_type: NodeType
    skill: Skill
    gather_time: int
    success_probability: float
    materials: list[Material] = field(default_factory=list)

    @property
    def depleted(self) -> bool:
        return all(m.remaining_units <= 0 for m in self.materials)

    def get_material(self, material_id: str) -> Material | None:
        for material in self.materials:
            if material.material_id == material_id:
                return material
        return None


@dataclass
class ResourceNode:
    """Starter gathering node with infinite reserves of a single item."""
    node_id: str
    location_id: str
    item_id: str
    skill: Skill
    gather_time: int
    success_probability: float
    required_level: int = 1


@dataclass
class LootEntry:
    """Weighted loot table row."""
    item_id: str
    quantity: int
    weight: float
    replaces_item: str | None = None
    auto_equip: bool = False


@dataclass
class Enemy:
    enemy_id: str
    location_id: str
    required_level: int
    loot_table: list[LootEntry] = field(default_factory=list)
    area_id: str = TOWN_AREA_ID


@dataclass
class Weapon:
    """Equippable item that sets fight duration and odds."""
    item_id: str
    fight_time: int
    success_probability: float


@dataclass
class Recipe:
    recipe_id: str
    inputs: list[ItemStack]
    output: ItemStack
    craft_time: int
    location_id: str
    skill: Skill = Skill.SMITHING
    required_level: int = 1


@dataclass
class KillRequirement:
    enemy_id: str
    count: int


@dataclass
class Contract:
    """
    Contract template.

    Accepting it puts contract_id into player.active_contracts; the ledger
    removes it again exactly when requirements are met and rewards granted.
    """
    contract_id: str
    guild_location_id: str
    requirements: list[ItemStack] = field(default_factory=list)
    kill_requirements: list[KillRequirement] = field(default_factory=list)
    rewards: list[ItemStack] = field(default_factory=list)
    reputation_reward: int = 0
    xp_reward: SkillGain | None = None


# =============================================================================
# Exploration graph
# =============================================================================

@dataclass
class Location:
    """Point of interest inside an area. References its content by id."""
    location_id: str
    area_id: str
    kind: LocationKind
    node_id: str | None = None
    enemy_id: str | None = None


@dataclass
class Area:
    """A region at integer distance from town. Immutable once generated."""
    area_id: str
    distance: int
    index: int
    location_ids: list[str] = field(default_factory=list)


def connection_key(a: str, b: str) -> str:
    """Canonical id for the undirected connection between two areas."""
    low, high = sorted((a, b))
    return f"{low}<->{high}"


@dataclass
class Connection:
    """Undirected edge, stored with endpoints in canonical order."""
    area_a: str
    area_b: str
    travel_multiplier: int

    @property
    def connection_id(self) -> str:
        return connection_key(self.area_a, self.area_b)

    def touches(self, area_id: str) -> bool:
        return area_id in (self.area_a, self.area_b)

    def other(self, area_id: str) -> str:
        return self.area_b if area_id == self.area_a else self.area_a


@dataclass
class ExplorationPlayer:
    """
    Position plus knowledge.

    The three known_* sets only ever grow.
    current_location_id is None while standing in an area's open ground.
    """
    current_area_id: str = TOWN_AREA_ID
    current_location_id: str | None = None
    known_area_ids: set[str] = field(default_factory=set)
    known_location_ids: set[str] = field(default_factory=set)
    known_connection_ids: set[str] = field(default_factory=set)
    total_luck_delta: int = 0
    current_streak: int = 0


@dataclass
class ExplorationState:
    areas: dict[str, Area] = field(default_factory=dict)
    locations: dict[str, Location] = field(default_factory=dict)
    connections: dict[str, Connection] = field(default_factory=dict)

    # Areas whose full adjacency has been materialized
    linked_area_ids: set[str] = field(default_factory=set)

    player: ExplorationPlayer = field(default_factory=ExplorationPlayer)

    def connections_of(self, area_id: str) -> list[Connection]:
        """Materialized connections touching an area, in id order."""
        return [
            conn for key, conn in sorted(self.connections.items())
            if conn.touches(area_id)
        ]

    def areas_at_distance(self, distance: int) -> list[Area]:
        return [a for a in self.areas.values() if a.distance == distance]


# =============================================================================
# Root aggregate
# =============================================================================

@dataclass
class TimeState:
    current_tick: int = 0
    session_remaining_ticks: int = 200


@dataclass
class SkillState:
    level: int = 0
    xp: int = 0


@dataclass
class PlayerState:
    """Inventory, skills, contracts and equipment of the single agent."""
    inventory: list[ItemStack] = field(default_factory=list)
    inventory_capacity: int = 10
    storage: list[ItemStack] = field(default_factory=list)
    skills: dict[Skill, SkillState] = field(default_factory=dict)
    guild_reputation: int = 0
    active_contracts: list[str] = field(default_factory=list)
    equipped_weapon: str | None = None

    # contract_id -> enemy_id -> kills counted while active
    contract_kill_progress: dict[str, dict[str, int]] = field(default_factory=dict)

    appraised_node_ids: set[str] = field(default_factory=set)

    def skill_level(self, skill: Skill) -> int:
        state = self.skills.get(skill)
        return state.level if state else 0

    def item_count(self, item_id: str) -> int:
        return count_items(self.inventory, item_id)

    def has_items(self, requirements: list[ItemStack]) -> bool:
        return all(self.item_count(r.item_id) >= r.quantity for r in requirements)

    def can_fit_items(
        self,
        additions: list[ItemStack],
        removals: list[ItemStack] | None = None,
    ) -> bool:
        """Would the inventory stay within capacity after removals then additions."""
        counts: dict[str, int] = {}
        for stack in self.inventory:
            counts[stack.item_id] = counts.get(stack.item_id, 0) + stack.quantity
        for stack in removals or []:
            counts[stack.item_id] = counts.get(stack.item_id, 0) - stack.quantity
        for stack in additions:
            counts[stack.item_id] = counts.get(stack.item_id, 0) + stack.quantity
        slots = sum(1 for qty in counts.values() if qty > 0)
        return slots <= self.inventory_capacity


@dataclass
class WorldData:
    """Static templates plus the procedural node and enemy arenas."""
    travel_costs: dict[str, int] = field(default_factory=dict)  # "A->B" between town sites
    resource_nodes: dict[str, ResourceNode] = field(default_factory=dict)
    nodes: dict[str, Node] = field(default_factory=dict)
    enemies: dict[str, Enemy] = field(default_factory=dict)
    weapons: dict[str, Weapon] = field(default_factory=dict)
    recipes: dict[str, Recipe] = field(default_factory=dict)
    contracts: dict[str, Contract] = field(default_factory=dict)

    # Unlocked into contracts by turning in a combat guild token
    token_contracts: dict[str, Contract] = field(default_factory=dict)

    storage_location_id: str = "TOWN"
    guild_location_id: str = "TOWN"
    base_travel_time: int = 10
    max_generated_distance: int = 8

    def is_site(self, location_id: str | None) -> bool:
        """Town sites are the locations that appear in the travel cost table."""
        if location_id is None:
            return False
        return any(key.startswith(f"{location_id}->") for key in self.travel_costs)


@dataclass
class WorldState:
    """
    Complete simulation state at a point in time.

    All gameplay changes go through the reducer.
    """
    time: TimeState
    player: PlayerState
    world: WorldData
    exploration: ExplorationState
    rng: RngState

    @property
    def current_area_id(self) -> str:
        return self.exploration.player.current_area_id

    @property
    def current_location_id(self) -> str | None:
        return self.exploration.player.current_location_id

    def clone(self) -> WorldState:
        """Deep copy the state."""
        return deepcopy(self)

