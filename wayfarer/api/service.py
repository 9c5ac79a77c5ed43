"""
API Service - Business logic layer between the HTTP app and the engine.

The service:
1. Translates API requests to engine calls
2. Manages sessions
3. Formats engine records as response models

This layer is framework-agnostic (can be used with FastAPI, a CLI, tests).
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace

from .schemas import (
    ActionLogResponse,
    ActionRequest,
    CreateSessionRequest,
    EvaluationResponse,
    ObservationResponse,
    PlanEvaluationResponse,
    PlanRequest,
    RestoreSessionRequest,
    SessionResponse,
    SessionStatus,
    SnapshotResponse,
)
from ..bots import evaluate_action, evaluate_plan, get_observation
from ..engine_core.action import action_from_dict
from ..engine_core.config import WorldConfig
from ..engine_core.snapshot import state_to_dict
from ..session import SessionManager, SimulationSession


class SessionNotFoundError(KeyError):
    """Raised when a session id is unknown or the session has ended."""

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session {self.session_id} not found"


@dataclass
class SimulationService:
    """
    Main API service.

    Usage:
        service = SimulationService()

        session = service.create_session(CreateSessionRequest(seed="seed"))
        log = service.execute_action(session.session_id, ActionRequest(action={...}))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    default_config: WorldConfig = field(default_factory=WorldConfig)

    def _get(self, session_id: str) -> SimulationSession:
        session = self.session_manager.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _session_response(self, session: SimulationSession) -> SessionResponse:
        return SessionResponse(
            session_id=session.session_id,
            seed=session.seed,
            status=SessionStatus(session.state.value),
            current_tick=session.world_state.time.current_tick,
            remaining_ticks=session.world_state.time.session_remaining_ticks,
            actions_executed=len(session.logs),
        )

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        overrides = {}
        if request.session_ticks is not None:
            overrides["session_ticks"] = request.session_ticks
        if request.inventory_capacity is not None:
            overrides["inventory_capacity"] = request.inventory_capacity
        config = replace(self.default_config, **overrides)

        session = self.session_manager.create_session(request.seed, config)
        return self._session_response(session)

    def restore_session(self, request: RestoreSessionRequest) -> SessionResponse:
        """Raises pydantic.ValidationError for a malformed snapshot."""
        session = self.session_manager.restore_session(request.state)
        return self._session_response(session)

    def get_session(self, session_id: str) -> SessionResponse:
        return self._session_response(self._get(session_id))

    def end_session(self, session_id: str) -> bool:
        return self.session_manager.end_session(session_id, reason="ended_by_client") is not None

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Engine operations
    # =========================================================================

    def execute_action(self, session_id: str, request: ActionRequest) -> ActionLogResponse:
        """Raises ActionParseError for a malformed action."""
        session = self._get(session_id)
        action = action_from_dict(request.action)
        log = session.execute(action)
        return ActionLogResponse.model_validate(log.to_dict())

    def evaluate_action(self, session_id: str, request: ActionRequest) -> EvaluationResponse:
        session = self._get(session_id)
        action = action_from_dict(request.action)
        evaluation = evaluate_action(session.world_state, action)
        return EvaluationResponse.model_validate(evaluation, from_attributes=True)

    def evaluate_plan(self, session_id: str, request: PlanRequest) -> PlanEvaluationResponse:
        session = self._get(session_id)
        actions = [action_from_dict(data) for data in request.actions]
        evaluation = evaluate_plan(session.world_state, actions)
        return PlanEvaluationResponse.model_validate(evaluation, from_attributes=True)

    def get_observation(self, session_id: str) -> ObservationResponse:
        session = self._get(session_id)
        observation = get_observation(session.world_state)
        return ObservationResponse.model_validate(observation, from_attributes=True)

    def get_snapshot(self, session_id: str) -> SnapshotResponse:
        session = self._get(session_id)
        return SnapshotResponse(session_id=session_id, state=state_to_dict(session.world_state))
