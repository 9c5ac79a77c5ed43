"""
Session Management - In-memory simulation sessions.
"""

from .manager import SessionManager, SimulationSession, SessionState

__all__ = [
    "SessionManager",
    "SimulationSession",
    "SessionState",
]
