"""
Pytest fixtures for Wayfarer tests.
"""

import pytest

from ..engine_core.state import Skill, WorldState
from ..world.starter import create_world
from .helpers import give, set_skill


@pytest.fixture
def world() -> WorldState:
    """Fresh world for the canonical test seed."""
    return create_world("seed")


@pytest.fixture
def miner_world(world: WorldState) -> WorldState:
    """World where the player already has Mining 1."""
    set_skill(world, Skill.MINING, 1)
    return world


@pytest.fixture
def smith_world(world: WorldState) -> WorldState:
    """Player at TOWN with Smithing 1 and four iron ore."""
    set_skill(world, Skill.SMITHING, 1)
    give(world, "IRON_ORE", 4)
    return world


@pytest.fixture
def fighter_world(world: WorldState) -> WorldState:
    """Player at the MINE with Combat 1, a crude weapon and a certain win."""
    set_skill(world, Skill.COMBAT, 1)
    give(world, "CRUDE_WEAPON")
    world.player.equipped_weapon = "CRUDE_WEAPON"
    world.world.weapons["CRUDE_WEAPON"].success_probability = 1.0
    world.exploration.player.current_location_id = "MINE"
    return world


@pytest.fixture
def explorer_world(world: WorldState) -> WorldState:
    """Exploration level high enough that every roll in town succeeds."""
    set_skill(world, Skill.EXPLORATION, 20)
    return world
