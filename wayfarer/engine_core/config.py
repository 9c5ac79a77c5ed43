"""
World Configuration - Explicit settings passed at world construction.

The core never reads process environment. Callers that want env-driven
settings (the HTTP app, the CLI) build a WorldConfig and pass it in.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class WorldConfig:
    """Tunable parameters for a single simulation instance."""
    session_ticks: int = 200
    inventory_capacity: int = 10

    # Ticks per unit of connection travel multiplier
    base_travel_time: int = 10

    # Areas beyond this distance are never generated
    max_generated_distance: int = 8


DEFAULT_CONFIG = WorldConfig()
