"""
Policy Observation - Sanitized, discovery-filtered view for autonomous policies.

Only what the player has discovered is projected: known areas, known
connections, known locations and the nodes there at the player's visibility
tier. Frontier areas appear by id only; their contents never leak.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from ..engine_core.checks import find_path, path_cost
from ..engine_core.state import ItemStack, LocationKind, WorldState
from ..world.visibility import NodeView, frontier_area_ids, is_location_known, player_node_view


@dataclass
class ContractView:
    contract_id: str
    guild_location_id: str
    requirements: list[ItemStack]
    kill_requirements: dict[str, int]
    kill_progress: dict[str, int]
    rewards: list[ItemStack]
    reputation_reward: int
    active: bool


@dataclass
class AreaView:
    area_id: str
    distance: int
    travel_ticks: int | None  # None if no known route from the current area
    known_location_ids: list[str] = field(default_factory=list)


@dataclass
class ConnectionView:
    connection_id: str
    area_a: str
    area_b: str
    travel_ticks: int


@dataclass
class LocationView:
    location_id: str
    area_id: str
    kind: str
    node: NodeView | None = None
    enemy_id: str | None = None


@dataclass
class PolicyObservation:
    current_tick: int
    remaining_ticks: int
    current_area_id: str
    current_location_id: str | None
    inventory: list[ItemStack]
    inventory_capacity: int
    storage: list[ItemStack]
    skills: dict[str, int]
    guild_reputation: int
    equipped_weapon: str | None
    areas: list[AreaView]
    connections: list[ConnectionView]
    locations: list[LocationView]
    frontier_area_ids: list[str]
    contracts: list[ContractView]
    enemy_ids: list[str]
    recipe_ids: list[str]
    total_luck_delta: int
    current_streak: int


def _location_view(state: WorldState, location_id: str) -> LocationView:
    location = state.exploration.locations[location_id]
    view = LocationView(location_id=location_id, area_id=location.area_id, kind=location.kind.value)
    if location.kind == LocationKind.GATHERING_NODE and location.node_id:
        view.node = player_node_view(state, state.world.nodes[location.node_id])
    elif location.kind == LocationKind.MOB_CAMP:
        view.enemy_id = location.enemy_id
    return view


def _contract_view(state: WorldState, contract_id: str) -> ContractView:
    contract = state.world.contracts[contract_id]
    return ContractView(
        contract_id=contract.contract_id,
        guild_location_id=contract.guild_location_id,
        requirements=[ItemStack(r.item_id, r.quantity) for r in contract.requirements],
        kill_requirements={k.enemy_id: k.count for k in contract.kill_requirements},
        kill_progress=dict(state.player.contract_kill_progress.get(contract_id, {})),
        rewards=[ItemStack(r.item_id, r.quantity) for r in contract.rewards],
        reputation_reward=contract.reputation_reward,
        active=contract_id in state.player.active_contracts,
    )


def get_observation(state: WorldState) -> PolicyObservation:
    """Build the read-only projection. Never mutates state."""
    exploration = state.exploration
    known = exploration.player
    player = state.player

    areas = []
    for area_id in sorted(known.known_area_ids):
        area = exploration.areas[area_id]
        path = find_path(state, state.current_area_id, area_id)
        areas.append(AreaView(
            area_id=area_id,
            distance=area.distance,
            travel_ticks=path_cost(state, path) if path is not None else None,
            known_location_ids=[
                loc for loc in area.location_ids if loc in known.known_location_ids
            ],
        ))

    connections = []
    for connection_id in sorted(known.known_connection_ids):
        conn = exploration.connections[connection_id]
        connections.append(ConnectionView(
            connection_id=connection_id,
            area_a=conn.area_a,
            area_b=conn.area_b,
            travel_ticks=state.world.base_travel_time * conn.travel_multiplier,
        ))

    return PolicyObservation(
        current_tick=state.time.current_tick,
        remaining_ticks=state.time.session_remaining_ticks,
        current_area_id=state.current_area_id,
        current_location_id=state.current_location_id,
        inventory=[ItemStack(s.item_id, s.quantity) for s in player.inventory],
        inventory_capacity=player.inventory_capacity,
        storage=[ItemStack(s.item_id, s.quantity) for s in player.storage],
        skills={skill.value: s.level for skill, s in player.skills.items()},
        guild_reputation=player.guild_reputation,
        equipped_weapon=player.equipped_weapon,
        areas=areas,
        connections=connections,
        locations=[_location_view(state, loc) for loc in sorted(known.known_location_ids)],
        frontier_area_ids=frontier_area_ids(state),
        contracts=[_contract_view(state, cid) for cid in sorted(state.world.contracts)],
        enemy_ids=sorted(
            enemy_id for enemy_id, enemy in state.world.enemies.items()
            if is_location_known(state, enemy.location_id)
        ),
        recipe_ids=sorted(state.world.recipes),
        total_luck_delta=known.total_luck_delta,
        current_streak=known.current_streak,
    )
