"""
World bootstrap - The town and its fixed starter content.

The town area holds three sites (TOWN, MINE, FOREST) joined by a fixed
travel cost table. Everything beyond town is procedural and materialized
lazily by the generator; only the town's own adjacency exists at start.
"""

from __future__ import annotations
import logging

from ..engine_core.config import DEFAULT_CONFIG, WorldConfig
from ..engine_core.rng import RngState
from ..engine_core.state import (
    COMBAT_GUILD_TOKEN, CRUDE_WEAPON, IMPROVED_WEAPON, TOWN_SITE,
    Area, Contract, Enemy, ExplorationPlayer, ExplorationState, ItemStack,
    KillRequirement, Location, LocationKind, LootEntry, PlayerState, Recipe,
    ResourceNode, Skill, SkillGain, SkillState, TimeState, TOWN_AREA_ID, Weapon,
    WorldData, WorldState,
)
from .generator import ensure_adjacency

logger = logging.getLogger(__name__)

MINE_SITE = "MINE"
FOREST_SITE = "FOREST"

COMBAT_GUILD_CONTRACT_ID = "combat-guild-1"

# No guild teaches these; the player starts at level 1.
UNGUILDED_SKILLS = frozenset({Skill.LOGISTICS})


def _travel_costs() -> dict[str, int]:
    costs = {}
    for a, b, ticks in (
        (TOWN_SITE, MINE_SITE, 2),
        (TOWN_SITE, FOREST_SITE, 3),
        (MINE_SITE, FOREST_SITE, 4),
    ):
        costs[f"{a}->{b}"] = ticks
        costs[f"{b}->{a}"] = ticks
    return costs


def combat_guild_contract() -> Contract:
    """Unlocked by turning in a combat guild token."""
    return Contract(
        contract_id=COMBAT_GUILD_CONTRACT_ID,
        guild_location_id=TOWN_SITE,
        kill_requirements=[KillRequirement("cave-rat", 2)],
        xp_reward=SkillGain(Skill.COMBAT, 5),
    )


def starter_world_data(config: WorldConfig) -> WorldData:
    """Fixed town content."""
    return WorldData(
        travel_costs=_travel_costs(),
        resource_nodes={
            "iron-node": ResourceNode(
                node_id="iron-node",
                location_id=MINE_SITE,
                item_id="IRON_ORE",
                skill=Skill.MINING,
                gather_time=2,
                success_probability=0.8,
            ),
            "wood-node": ResourceNode(
                node_id="wood-node",
                location_id=FOREST_SITE,
                item_id="WOOD_LOG",
                skill=Skill.WOODCUTTING,
                gather_time=2,
                success_probability=0.9,
            ),
        },
        enemies={
            "cave-rat": Enemy(
                enemy_id="cave-rat",
                location_id=MINE_SITE,
                required_level=1,
                loot_table=[
                    LootEntry("IRON_ORE", 1, 89),
                    LootEntry(IMPROVED_WEAPON, 1, 10, replaces_item=CRUDE_WEAPON, auto_equip=True),
                    LootEntry(COMBAT_GUILD_TOKEN, 1, 1),
                ],
            ),
        },
        weapons={
            CRUDE_WEAPON: Weapon(CRUDE_WEAPON, fight_time=3, success_probability=0.7),
            IMPROVED_WEAPON: Weapon(IMPROVED_WEAPON, fight_time=2, success_probability=0.8),
        },
        recipes={
            "iron-bar-recipe": Recipe(
                recipe_id="iron-bar-recipe",
                inputs=[ItemStack("IRON_ORE", 2)],
                output=ItemStack("IRON_BAR", 1),
                craft_time=3,
                location_id=TOWN_SITE,
            ),
        },
        contracts={
            "miners-guild-1": Contract(
                contract_id="miners-guild-1",
                guild_location_id=TOWN_SITE,
                requirements=[ItemStack("IRON_BAR", 2)],
                rewards=[ItemStack("IRON_ORE", 5)],
                reputation_reward=10,
                xp_reward=SkillGain(Skill.MINING, 2),
            ),
        },
        token_contracts={COMBAT_GUILD_CONTRACT_ID: combat_guild_contract()},
        storage_location_id=TOWN_SITE,
        guild_location_id=TOWN_SITE,
        base_travel_time=config.base_travel_time,
        max_generated_distance=config.max_generated_distance,
    )


def create_world(seed: str, config: WorldConfig | None = None) -> WorldState:
    """
    Deterministic world bootstrap.

    Same seed and config always produce an identical WorldState.
    """
    config = config or DEFAULT_CONFIG
    sites = (TOWN_SITE, MINE_SITE, FOREST_SITE)

    exploration = ExplorationState(
        areas={TOWN_AREA_ID: Area(TOWN_AREA_ID, distance=0, index=0, location_ids=list(sites))},
        locations={
            site: Location(site, TOWN_AREA_ID, LocationKind.PLACE)
            for site in sites
        },
        player=ExplorationPlayer(
            current_area_id=TOWN_AREA_ID,
            current_location_id=TOWN_SITE,
            known_area_ids={TOWN_AREA_ID},
            known_location_ids=set(sites),
        ),
    )

    state = WorldState(
        time=TimeState(current_tick=0, session_remaining_ticks=config.session_ticks),
        player=PlayerState(
            inventory_capacity=config.inventory_capacity,
            skills={skill: SkillState(level=1 if skill in UNGUILDED_SKILLS else 0) for skill in Skill},
        ),
        world=starter_world_data(config),
        exploration=exploration,
        rng=RngState(seed=seed),
    )
    ensure_adjacency(state, TOWN_AREA_ID)

    logger.debug("Created world for seed %r", seed)
    return state
