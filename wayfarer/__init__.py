"""
Wayfarer - Deterministic Progression Simulation Engine

A rules-first simulation of a single agent progressing through a procedurally
generated world. The engine provides:
- Seeded, fully logged randomness
- Lazily generated areas behind discovery-gated visibility
- One mutation path (execute_action) producing an ActionLog per turn
- A non-mutating plan evaluator sharing the engine's rules
"""

from .engine_core import WorldConfig, execute_action
from .world import create_world
from .bots import evaluate_action, evaluate_plan, get_observation

__version__ = "0.1.0"

__all__ = [
    "WorldConfig",
    "create_world",
    "execute_action",
    "evaluate_action",
    "evaluate_plan",
    "get_observation",
]
