"""
World - Starter content, procedural generation and the knowledge ledger.
"""

from .starter import create_world
from .visibility import VisibilityTier, get_visibility_tier, player_node_view

__all__ = [
    "create_world",
    "VisibilityTier",
    "get_visibility_tier",
    "player_node_view",
]
