"""
Skill progression - XP curve and level-ups.

Advancing from level L to L + 1 costs (L + 1) ** 2 XP. XP is stored
relative to the current level, so SkillState.xp always reads as
"progress toward the next level".
"""

from __future__ import annotations

from .state import PlayerState, Skill, SkillState


def xp_for_next_level(level: int) -> int:
    return (level + 1) ** 2


def total_xp_for_level(level: int) -> int:
    """
    Cumulative XP earned to reach a level.

    Level 1 is the enrolled baseline and counts as 0 XP.
    """
    return sum(xp_for_next_level(lvl) for lvl in range(1, level))


def get_total_xp(skill_state: SkillState) -> int:
    return total_xp_for_level(skill_state.level) + skill_state.xp


def add_xp(player: PlayerState, skill: Skill, amount: int) -> list[tuple[str, int]]:
    """
    Grant XP to a skill.

    Returns (skill, new_level) for every level gained.
    """
    skill_state = player.skills.setdefault(skill, SkillState())
    skill_state.xp += amount

    level_ups = []
    while skill_state.xp >= xp_for_next_level(skill_state.level):
        skill_state.xp -= xp_for_next_level(skill_state.level)
        skill_state.level += 1
        level_ups.append((skill.value, skill_state.level))
    return level_ups
