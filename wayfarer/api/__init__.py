"""
API Layer - HTTP access to simulation sessions.

Provides:
- Pydantic request/response schemas
- SimulationService (framework-agnostic)
- FastAPI app factory (optional dependency)

Usage:
    from wayfarer.api import create_app
    app = create_app()
"""

from .schemas import (
    ActionRequest,
    CreateSessionRequest,
    ErrorCode,
    PlanRequest,
    SessionStatus,
)
from .service import SimulationService, SessionNotFoundError
from .app import create_app

__all__ = [
    "ActionRequest",
    "CreateSessionRequest",
    "ErrorCode",
    "PlanRequest",
    "SessionStatus",
    "SimulationService",
    "SessionNotFoundError",
    "create_app",
]
