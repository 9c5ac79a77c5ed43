"""
Tests for state snapshots.

Tests:
- Lossless round trip
- JSON compatibility
- Resuming from a snapshot continues the same stream
- Malformed snapshots are rejected
"""

import json

import pytest
from pydantic import ValidationError

from ..engine_core.action import Enrol, Explore, Gather, Move
from ..engine_core.reducer import execute_action
from ..engine_core.snapshot import state_from_dict, state_to_dict
from ..engine_core.state import Skill


def _advance(state):
    for action in (Enrol(Skill.EXPLORATION), Enrol(Skill.MINING), Explore(), Move("MINE"), Gather("iron-node")):
        execute_action(state, action)
    return state


class TestSnapshot:
    """Tests for state_to_dict / state_from_dict."""

    def test_round_trip(self, world):
        _advance(world)
        assert state_from_dict(state_to_dict(world)) == world

    def test_json_compatible(self, world):
        data = state_to_dict(_advance(world))
        assert json.loads(json.dumps(data)) == data

    def test_sets_are_sorted(self, world):
        data = state_to_dict(_advance(world))
        known = data["exploration"]["player"]["known_location_ids"]
        assert known == sorted(known)
        assert data["player"]["skills"]["Mining"]["level"] == 1

    def test_resume_continues_identically(self, world):
        """A restored state produces the same next logs as the original."""
        _advance(world)
        restored = state_from_dict(state_to_dict(world))

        for action in (Gather("iron-node"), Gather("iron-node"), Move("TOWN"), Explore()):
            assert execute_action(restored, action).to_dict() == execute_action(world, action).to_dict()

    def test_rejects_malformed(self, world):
        data = state_to_dict(world)
        data["time"]["current_tick"] = "soon"
        with pytest.raises(ValidationError):
            state_from_dict(data)

    def test_rejects_missing_sections(self):
        with pytest.raises(ValidationError):
            state_from_dict({"time": {"current_tick": 0}})
