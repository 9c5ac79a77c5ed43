"""
Session Manager - Creates and manages simulation sessions.

LIFECYCLE:
1. Caller creates a session from a seed (and optional WorldConfig)
2. Actions are executed one at a time; each returns an ActionLog
3. Plans may be evaluated at any point without touching the session state
4. Session ends -> removed from memory

PERSISTENCE RULES:
- Sessions are in-memory only
- Each session owns exactly one WorldState; nothing is shared between sessions
- A session can be exported with state_to_dict and recreated from it
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import time
import uuid

from ..engine_core.action import Action, ActionLog
from ..engine_core.config import WorldConfig
from ..engine_core.reducer import execute_action
from ..engine_core.snapshot import state_from_dict
from ..engine_core.state import WorldState
from ..world.starter import create_world

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a simulation session."""
    ACTIVE = "active"
    FINISHED = "finished"  # Session clock ran out
    ABANDONED = "abandoned"


@dataclass
class SimulationSession:
    """
    An ephemeral simulation session.

    Contains the seed, the live WorldState and every ActionLog produced so far.
    """
    session_id: str
    seed: str
    world_state: WorldState
    created_at: float
    state: SessionState = SessionState.ACTIVE
    logs: list[ActionLog] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    def execute(self, action: Action) -> ActionLog:
        """Execute one action against this session's state."""
        log = execute_action(self.world_state, action)
        self.logs.append(log)
        if self.world_state.time.session_remaining_ticks <= 0:
            self.state = SessionState.FINISHED
        return log


class SessionManager:
    """
    Manages simulation sessions.

    No persistence - sessions are in-memory only.
    """

    def __init__(self):
        self._sessions: dict[str, SimulationSession] = {}

    def create_session(
        self,
        seed: str,
        config: WorldConfig | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> SimulationSession:
        """Create a session around a freshly bootstrapped world."""
        return self._register(seed, create_world(seed, config), metadata)

    def restore_session(
        self,
        snapshot: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> SimulationSession:
        """Create a session from a state_to_dict snapshot."""
        world_state = state_from_dict(snapshot)
        return self._register(world_state.rng.seed, world_state, metadata)

    def _register(
        self,
        seed: str,
        world_state: WorldState,
        metadata: dict[str, Any] | None,
    ) -> SimulationSession:
        session = SimulationSession(
            session_id=str(uuid.uuid4()),
            seed=seed,
            world_state=world_state,
            created_at=time.time(),
            metadata=metadata or {},
        )
        self._sessions[session.session_id] = session
        logger.info("Created session %s (seed=%r)", session.session_id, seed)
        return session

    def get_session(self, session_id: str) -> SimulationSession | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> SimulationSession | None:
        """
        End a session and drop it from memory.

        Returns the removed session, or None if it did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if session:
            if session.state == SessionState.ACTIVE and reason != "completed":
                session.state = SessionState.ABANDONED
            elif session.state == SessionState.ACTIVE:
                session.state = SessionState.FINISHED
            logger.info("Ended session %s (%s)", session_id, reason)
        return session

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Drop sessions older than max_age that are no longer active.

        Returns how many were removed.
        """
        current_time = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return len(stale)
