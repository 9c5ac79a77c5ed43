"""
Success-Probability Model - Explore/Survey odds, roll cadence and luck.

chance = base + level bonus - distance penalty + knowledge bonus, where the
knowledge bonus rewards known neighbours and, proportionally, known areas
elsewhere on the same distance tier. Unskilled players get a flat 1%.
"""

from __future__ import annotations
from dataclasses import dataclass
import math

from ..engine_core.rng import RngRoll
from ..engine_core.state import Connection, Skill, WorldState, connection_key
from .generator import area_count

BASE_CHANCE = 0.05
LEVEL_BONUS = 0.05
DISTANCE_PENALTY = 0.05
CONNECTED_AREA_BONUS = 0.05
NON_CONNECTED_BONUS = 0.20
UNSKILLED_CHANCE = 0.01


@dataclass
class KnowledgeCounts:
    connected_known: int
    non_connected_known: int
    total_at_distance: int


def knowledge_counts(state: WorldState) -> KnowledgeCounts:
    player = state.exploration.player
    current = state.exploration.areas[player.current_area_id]

    connected = 0
    non_connected = 0
    for area_id in sorted(player.known_area_ids):
        if area_id == current.area_id:
            continue
        if connection_key(current.area_id, area_id) in player.known_connection_ids:
            connected += 1
            continue
        area = state.exploration.areas.get(area_id)
        if area is not None and area.distance == current.distance:
            non_connected += 1

    return KnowledgeCounts(connected, non_connected, area_count(current.distance))


def success_chance(state: WorldState) -> float:
    """Per-roll discovery chance in the current area, clamped to [0, 1]."""
    level = state.player.skill_level(Skill.EXPLORATION)
    if level <= 0:
        return UNSKILLED_CHANCE

    distance = state.exploration.areas[state.current_area_id].distance
    counts = knowledge_counts(state)

    if counts.total_at_distance == 0:
        proportional = 0.0
    else:
        proportional = counts.non_connected_known / counts.total_at_distance

    chance = (
        BASE_CHANCE
        + (level - 1) * LEVEL_BONUS
        - (distance - 1) * DISTANCE_PENALTY
        + counts.connected_known * CONNECTED_AREA_BONUS
        + NON_CONNECTED_BONUS * proportional
    )
    return min(1.0, max(0.0, chance))


def roll_interval(level: int) -> float:
    """Ticks between attempts."""
    return max(1.0, 2 - math.floor(level / 10) * 0.1)


def expected_ticks(chance: float, interval: float) -> float:
    if chance <= 0:
        return math.inf
    return interval / chance


def rolls_available(remaining_ticks: int, interval: float) -> int:
    """How many attempts fit in the remaining session."""
    if remaining_ticks <= 0:
        return 0
    return math.floor(remaining_ticks / interval + 1e-9)


# =============================================================================
# Candidates
# =============================================================================

def explore_candidates(state: WorldState) -> list[str]:
    """
    Undiscovered locations and connections of the current area.

    Entries are location ids or connection ids, sorted for stable rolls.
    """
    exploration = state.exploration
    player = exploration.player
    area = exploration.areas[player.current_area_id]

    candidates = [
        location_id for location_id in area.location_ids
        if location_id not in player.known_location_ids
    ]
    candidates.extend(
        conn.connection_id for conn in exploration.connections_of(area.area_id)
        if conn.connection_id not in player.known_connection_ids
    )
    return sorted(candidates)


def survey_candidates(state: WorldState) -> list[Connection]:
    """Connections of the current area leading to unknown areas."""
    exploration = state.exploration
    player = exploration.player
    return [
        conn for conn in exploration.connections_of(player.current_area_id)
        if conn.other(player.current_area_id) not in player.known_area_ids
    ]


# =============================================================================
# Rolling and luck
# =============================================================================

def roll_until_success(
    state: WorldState,
    chance: float,
    interval: float,
    label: str,
    log: list[RngRoll],
) -> tuple[bool, int]:
    """
    Roll every interval until a success or the session runs out.

    Returns (success, whole ticks consumed). On failure every remaining
    tick is consumed.
    """
    remaining = state.time.session_remaining_ticks
    elapsed = 0.0
    while True:
        elapsed += interval
        ticks = math.floor(elapsed + 1e-9)
        if ticks > remaining:
            return False, remaining
        if state.rng.roll(chance, label, log):
            return True, ticks


def record_luck(state: WorldState, expected: float, actual: int) -> int | None:
    """
    Update cumulative luck and the signed streak.

    Positive deltas mean the discovery came sooner than expected.
    """
    if math.isinf(expected):
        return None

    player = state.exploration.player
    delta = round(expected - actual)
    player.total_luck_delta += delta

    if delta > 0:
        player.current_streak = player.current_streak + 1 if player.current_streak > 0 else 1
    elif delta < 0:
        player.current_streak = player.current_streak - 1 if player.current_streak < 0 else -1
    return delta
