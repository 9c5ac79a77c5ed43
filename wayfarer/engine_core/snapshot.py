"""
Snapshots - Lossless WorldState <-> plain data conversion.

Uses a pydantic TypeAdapter over the state dataclasses, so the dict form is
JSON compatible (sets become sorted lists, enums become their values)
and decoding validates every field.
"""

from __future__ import annotations
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter

from .state import WorldState


@lru_cache(maxsize=1)
def _adapter() -> TypeAdapter:
    return TypeAdapter(WorldState)


def state_to_dict(state: WorldState) -> dict[str, Any]:
    """JSON-compatible dict holding the complete state, RNG position included."""
    data = _adapter().dump_python(state, mode="json")
    # Sets carry no order; sort them so equal states dump identically
    exploration_player = data["exploration"]["player"]
    for key in ("known_area_ids", "known_location_ids", "known_connection_ids"):
        exploration_player[key] = sorted(exploration_player[key])
    data["exploration"]["linked_area_ids"] = sorted(data["exploration"]["linked_area_ids"])
    data["player"]["appraised_node_ids"] = sorted(data["player"]["appraised_node_ids"])
    return data


def state_from_dict(data: dict[str, Any]) -> WorldState:
    """
    Rebuild a WorldState from state_to_dict output.

    Raises pydantic.ValidationError on malformed input.
    """
    return _adapter().validate_python(data)
