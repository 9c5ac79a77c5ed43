"""
Reducer - Executes one action against a live WorldState.

The reducer is the single point of state mutation.
All gameplay changes must go through execute_action().

Design principles:
- One action in, one ActionLog out
- Preconditions come from checks.check_action, shared with the evaluator
- Failed preconditions cost nothing and change nothing
- RNG failures consume the full planned time, never a partial amount
- Successful actions train at most one skill by exactly 1 XP, then the
  contract ledger runs
"""

from __future__ import annotations
from dataclasses import dataclass
import logging

from .action import (
    Action, ActionLog, ActionType, ExplorationLog, FailureType,
)
from .checks import ActionCheck, check_action
from .effects import apply_effects, consume_time
from .ledger import check_contract_completions
from .progression import add_xp
from .rng import RngRoll
from .state import Skill, SkillGain, TOWN_AREA_ID, WorldState, connection_key
from ..world import exploration as odds
from ..world.generator import area_count, area_id_for
from ..world.visibility import discover_area, discover_connection, discover_location

logger = logging.getLogger(__name__)


@dataclass
class Reducer:
    """
    Reducer applies actions to world state.

    Stateless - all state is in WorldState, including the RNG position.
    """

    def execute(self, state: WorldState, action: Action) -> ActionLog:
        """
        Execute an action, mutating state.

        Returns the ActionLog describing exactly what happened.
        """
        tick_before = state.time.current_tick
        check = check_action(state, action)
        if not check.valid:
            log = self._failure(action, tick_before, check.failure_type, check.failure_reason)
        else:
            handler = self._get_handler(action.action_type)
            log = handler(state, action, check, tick_before)

        logger.debug(
            "tick %d %s -> %s (%d ticks)",
            tick_before,
            action.action_type.value,
            "ok" if log.success else log.failure_type.value,
            log.time_consumed,
        )
        return log

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.MOVE: self._handle_deterministic,
            ActionType.GATHER: self._handle_gather,
            ActionType.FIGHT: self._handle_fight,
            ActionType.CRAFT: self._handle_deterministic,
            ActionType.STORE: self._handle_deterministic,
            ActionType.DROP: self._handle_deterministic,
            ActionType.ACCEPT_CONTRACT: self._handle_deterministic,
            ActionType.ENROL: self._handle_enrol,
            ActionType.EXPLORE: self._handle_explore,
            ActionType.SURVEY: self._handle_survey,
            ActionType.APPRAISE: self._handle_deterministic,
            ActionType.TURN_IN_COMBAT_TOKEN: self._handle_deterministic,
        }
        return handlers[action_type]

    # =========================================================================
    # Log builders
    # =========================================================================

    def _failure(
        self,
        action: Action,
        tick_before: int,
        failure_type: FailureType,
        reason: str | None,
        time_consumed: int = 0,
        rolls: list[RngRoll] | None = None,
        exploration: ExplorationLog | None = None,
    ) -> ActionLog:
        return ActionLog(
            tick_before=tick_before,
            action_type=action.action_type,
            parameters=action.parameters(),
            success=False,
            time_consumed=time_consumed,
            failure_type=failure_type,
            failure_reason=reason,
            rng_rolls=tuple(rolls or ()),
            state_delta_summary=reason or "",
            exploration=exploration,
        )

    def _commit(
        self,
        state: WorldState,
        action: Action,
        check: ActionCheck,
        tick_before: int,
        summary: str,
        rolls: list[RngRoll] | None = None,
        exploration: ExplorationLog | None = None,
    ) -> ActionLog:
        """Grant XP, run the contract ledger and build the success log."""
        skill_gained = None
        level_ups = []
        if check.xp_skill is not None:
            level_ups = add_xp(state.player, check.xp_skill, 1)
            skill_gained = SkillGain(check.xp_skill, 1)

        completions = check_contract_completions(state)
        if completions:
            done = ", ".join(c.contract_id for c in completions)
            summary = f"{summary}; completed {done}" if summary else f"Completed {done}"

        return ActionLog(
            tick_before=tick_before,
            action_type=action.action_type,
            parameters=action.parameters(),
            success=True,
            time_consumed=state.time.current_tick - tick_before,
            skill_gained=skill_gained,
            level_ups=tuple(level_ups),
            rng_rolls=tuple(rolls or ()),
            state_delta_summary=summary,
            contracts_completed=tuple(completions),
            exploration=exploration,
        )

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handle_deterministic(self, state, action, check, tick_before) -> ActionLog:
        consume_time(state, check.time_cost)
        summary = apply_effects(state, action, check)
        return self._commit(state, action, check, tick_before, summary)

    def _handle_enrol(self, state, action, check, tick_before) -> ActionLog:
        consume_time(state, check.time_cost)
        summary = apply_effects(state, action, check)

        if check.context["skill"] == Skill.EXPLORATION:
            revealed = self._reveal_starting_area(state)
            if revealed:
                summary = f"{summary}, learned the way to {revealed}"

        return self._commit(state, action, check, tick_before, summary)

    def _reveal_starting_area(self, state: WorldState) -> str | None:
        """Exploration guild benefit: one unknown distance-1 area and its road."""
        unknown = [
            area_id_for(1, i) for i in range(area_count(1))
            if area_id_for(1, i) not in state.exploration.player.known_area_ids
        ]
        if not unknown:
            return None
        pick = unknown[min(len(unknown) - 1, int(state.rng.draw_float() * len(unknown)))]
        discover_area(state, pick)
        discover_connection(state, connection_key(TOWN_AREA_ID, pick))
        return pick

    def _handle_gather(self, state, action, check, tick_before) -> ActionLog:
        rolls: list[RngRoll] = []
        consume_time(state, check.time_cost)
        if not state.rng.roll(check.success_probability, f"gather:{action.node_id}", rolls):
            return self._failure(
                action, tick_before, FailureType.GATHER_FAILURE,
                f"Failed to gather from {action.node_id}",
                time_consumed=check.time_cost, rolls=rolls,
            )
        summary = apply_effects(state, action, check)
        return self._commit(state, action, check, tick_before, summary, rolls)

    def _handle_fight(self, state, action, check, tick_before) -> ActionLog:
        rolls: list[RngRoll] = []
        consume_time(state, check.time_cost)
        enemy = state.world.enemies[check.context["enemy_id"]]
        if not state.rng.roll(check.success_probability, f"fight:{enemy.enemy_id}", rolls):
            return self._failure(
                action, tick_before, FailureType.COMBAT_FAILURE,
                f"Lost the fight against {enemy.enemy_id}",
                time_consumed=check.time_cost, rolls=rolls,
            )

        loot = None
        if enemy.loot_table:
            item_id = state.rng.roll_weighted(
                [(entry.item_id, entry.weight) for entry in enemy.loot_table],
                f"loot:{enemy.enemy_id}",
                rolls,
            )
            loot = next(entry for entry in enemy.loot_table if entry.item_id == item_id)

        summary = apply_effects(state, action, check, loot=loot)
        return self._commit(state, action, check, tick_before, summary, rolls)

    def _roll_discovery(self, state, action, check, tick_before, label):
        """Shared roll loop for Explore and Survey. Returns (rolls, ticks, log or None)."""
        rolls: list[RngRoll] = []
        chance = check.context["chance"]
        interval = check.context["interval"]
        success, ticks = odds.roll_until_success(state, chance, interval, label, rolls)
        consume_time(state, ticks)
        if success:
            return rolls, ticks, None
        return rolls, ticks, self._failure(
            action, tick_before, FailureType.SESSION_ENDED,
            f"{label.capitalize()} interrupted, session ended",
            time_consumed=ticks, rolls=rolls,
            exploration=ExplorationLog(
                success_chance=chance,
                roll_interval=interval,
                expected_ticks=check.context["expected_ticks"],
                actual_ticks=ticks,
            ),
        )

    def _handle_explore(self, state, action, check, tick_before) -> ActionLog:
        rolls, ticks, failed = self._roll_discovery(state, action, check, tick_before, "explore")
        if failed is not None:
            return failed

        candidates = odds.explore_candidates(state)
        found = state.rng.roll_weighted([(c, 1.0) for c in candidates], "explore:target", rolls)
        location_id = None
        connection_id = None
        if found in state.exploration.locations:
            discover_location(state, found)
            location_id = found
        else:
            discover_connection(state, found)
            connection_id = found

        expected = check.context["expected_ticks"]
        exploration = ExplorationLog(
            success_chance=check.context["chance"],
            roll_interval=check.context["interval"],
            expected_ticks=expected,
            actual_ticks=ticks,
            luck_delta=odds.record_luck(state, expected, ticks),
            discovered_location_id=location_id,
            discovered_connection_id=connection_id,
        )
        return self._commit(state, action, check, tick_before, f"Discovered {found}", rolls, exploration)

    def _handle_survey(self, state, action, check, tick_before) -> ActionLog:
        rolls, ticks, failed = self._roll_discovery(state, action, check, tick_before, "survey")
        if failed is not None:
            return failed

        current = state.current_area_id
        by_id = {conn.connection_id: conn for conn in odds.survey_candidates(state)}
        connection_id = state.rng.roll_weighted(
            [(cid, 1.0) for cid in sorted(by_id)], "survey:target", rolls,
        )
        area_id = by_id[connection_id].other(current)
        discover_area(state, area_id)
        discover_connection(state, connection_id)

        expected = check.context["expected_ticks"]
        exploration = ExplorationLog(
            success_chance=check.context["chance"],
            roll_interval=check.context["interval"],
            expected_ticks=expected,
            actual_ticks=ticks,
            luck_delta=odds.record_luck(state, expected, ticks),
            discovered_area_id=area_id,
            discovered_connection_id=connection_id,
        )
        return self._commit(state, action, check, tick_before, f"Discovered area {area_id}", rolls, exploration)


_DEFAULT_REDUCER = Reducer()


def execute_action(state: WorldState, action: Action) -> ActionLog:
    """Convenience function to execute an action with the default reducer."""
    return _DEFAULT_REDUCER.execute(state, action)
