"""
FastAPI Application - REST API over simulation sessions.

Endpoints:
    GET    /health                                Liveness and version
    POST   /api/v1/sessions                       Create a session from a seed
    POST   /api/v1/sessions/restore               Recreate a session from a snapshot
    GET    /api/v1/sessions                       List active sessions
    GET    /api/v1/sessions/{id}                  Session summary
    DELETE /api/v1/sessions/{id}                  End session
    POST   /api/v1/sessions/{id}/actions          Execute one action
    POST   /api/v1/sessions/{id}/evaluate         Evaluate one action (no mutation)
    POST   /api/v1/sessions/{id}/plan             Evaluate a plan (no mutation)
    GET    /api/v1/sessions/{id}/observation      Discovery-filtered observation
    GET    /api/v1/sessions/{id}/snapshot         Full state for save/resume

All responses are JSON with explicit Pydantic schemas.
"""

import logging
import os

from pydantic import ValidationError

from .. import __version__
from ..engine_core.action import ActionParseError
from ..engine_core.config import WorldConfig

# Environment configuration
WAYFARER_ENV = os.getenv("WAYFARER_ENV", "development")
WAYFARER_SESSION_TICKS = int(os.getenv("WAYFARER_SESSION_TICKS", "200"))
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional SimulationService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Request
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import SimulationService, SessionNotFoundError
    from .schemas import (
        # Request models
        CreateSessionRequest,
        RestoreSessionRequest,
        ActionRequest,
        PlanRequest,
        # Response models
        SessionResponse,
        ActionLogResponse,
        EvaluationResponse,
        PlanEvaluationResponse,
        ObservationResponse,
        SnapshotResponse,
        SessionListResponse,
        EndSessionResponse,
        HealthResponse,
        ErrorResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Wayfarer Simulation API",
        description="""
Deterministic progression simulation. Every action returns its ActionLog,
including every random draw that decided it.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist or has ended |
| `INVALID_ACTION` | Action payload could not be parsed |
| `VALIDATION_ERROR` | Request or snapshot failed validation |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or SimulationService(
        default_config=WorldConfig(session_ticks=WAYFARER_SESSION_TICKS),
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: dict | None = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(SessionNotFoundError)
    async def handle_session_not_found(request: Request, exc: SessionNotFoundError):
        return make_error_response(ErrorCode.SESSION_NOT_FOUND, str(exc), status_code=404)

    @app.exception_handler(ActionParseError)
    async def handle_invalid_action(request: Request, exc: ActionParseError):
        return make_error_response(ErrorCode.INVALID_ACTION, str(exc))

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Validation failed",
            status_code=422,
            details={"errors": exc.errors(include_url=False, include_context=False)},
        )

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health() -> HealthResponse:
        return HealthResponse(version=__version__, environment=WAYFARER_ENV)

    # =========================================================================
    # Sessions
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        status_code=201,
        tags=["Sessions"],
        summary="Create a simulation session",
    )
    def create_session(request: CreateSessionRequest) -> SessionResponse:
        return api_service.create_session(request)

    @app.post(
        "/api/v1/sessions/restore",
        response_model=SessionResponse,
        status_code=201,
        responses={422: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Recreate a session from a snapshot",
    )
    def restore_session(request: RestoreSessionRequest) -> SessionResponse:
        return api_service.restore_session(request)

    @app.get("/api/v1/sessions", response_model=SessionListResponse, tags=["Sessions"])
    def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
    )
    def get_session(session_id: str) -> SessionResponse:
        return api_service.get_session(session_id)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
    )
    def end_session(session_id: str):
        if not api_service.end_session(session_id):
            return make_error_response(
                ErrorCode.SESSION_NOT_FOUND,
                f"Session {session_id} not found",
                status_code=404,
            )
        return EndSessionResponse(success=True, message="Session ended")

    # =========================================================================
    # Engine
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/actions",
        response_model=ActionLogResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Engine"],
        summary="Execute one action",
    )
    def execute_action(session_id: str, request: ActionRequest) -> ActionLogResponse:
        """
        Execute an action and return its ActionLog.

        Domain failures (wrong location, missing items, ...) are successful
        requests whose log has success=false.
        """
        return api_service.execute_action(session_id, request)

    @app.post(
        "/api/v1/sessions/{session_id}/evaluate",
        response_model=EvaluationResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Engine"],
    )
    def evaluate_action(session_id: str, request: ActionRequest) -> EvaluationResponse:
        return api_service.evaluate_action(session_id, request)

    @app.post(
        "/api/v1/sessions/{session_id}/plan",
        response_model=PlanEvaluationResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Engine"],
    )
    def evaluate_plan(session_id: str, request: PlanRequest) -> PlanEvaluationResponse:
        return api_service.evaluate_plan(session_id, request)

    @app.get(
        "/api/v1/sessions/{session_id}/observation",
        response_model=ObservationResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Engine"],
    )
    def get_observation(session_id: str) -> ObservationResponse:
        return api_service.get_observation(session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/snapshot",
        response_model=SnapshotResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Engine"],
    )
    def get_snapshot(session_id: str) -> SnapshotResponse:
        return api_service.get_snapshot(session_id)

    logger.info("Wayfarer API created (env=%s)", WAYFARER_ENV)
    return app


# For running directly: uvicorn wayfarer.api.app:app
app = create_app()
