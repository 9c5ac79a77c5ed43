"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the wire contract between HTTP clients and the engine.
Engine dataclasses are converted with from_attributes, so the field names
here mirror the engine's.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- INVALID_ACTION: Action payload could not be parsed
- VALIDATION_ERROR: Request or snapshot failed validation
- INTERNAL_ERROR: Unexpected engine error
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    FINISHED = "finished"
    ABANDONED = "abandoned"


class VisibilityLevel(str, Enum):
    """How much of a node the player can see."""
    NONE = "none"
    MATERIALS = "materials"
    FULL = "full"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_ACTION = "INVALID_ACTION"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class ItemQuantity(BaseModel):
    item_id: str
    quantity: int

    model_config = {"from_attributes": True}


class SkillGainInfo(BaseModel):
    skill: str
    amount: int


class RngRollInfo(BaseModel):
    """One logged random draw."""
    label: str
    probability: float
    result: bool
    counter_before: int


class ContractCompletionInfo(BaseModel):
    contract_id: str
    items_consumed: list[ItemQuantity] = Field(default_factory=list)
    rewards_granted: list[ItemQuantity] = Field(default_factory=list)
    reputation_gained: int = 0
    xp_gained: Optional[SkillGainInfo] = None


class LevelUpInfo(BaseModel):
    skill: str
    level: int


class ExplorationInfo(BaseModel):
    """Discovery and luck details of an Explore or Survey action."""
    success_chance: float
    roll_interval: float
    expected_ticks: Optional[float] = Field(None, description="None when discovery is impossible")
    actual_ticks: int
    luck_delta: Optional[int] = None
    discovered_area_id: Optional[str] = None
    discovered_location_id: Optional[str] = None
    discovered_connection_id: Optional[str] = None


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to start a simulation."""
    seed: str = Field(..., min_length=1, description="World seed")
    session_ticks: Optional[int] = Field(None, ge=1, description="Override session length")
    inventory_capacity: Optional[int] = Field(None, ge=1, description="Override inventory slots")


class ActionRequest(BaseModel):
    """A single action in wire form."""
    action: dict[str, Any] = Field(
        ...,
        description='Action object, e.g. {"type": "Gather", "node_id": "iron-node"}',
    )


class PlanRequest(BaseModel):
    """An ordered list of actions to evaluate."""
    actions: list[dict[str, Any]] = Field(default_factory=list)


class RestoreSessionRequest(BaseModel):
    """Recreate a session from a snapshot."""
    state: dict[str, Any]


# =============================================================================
# Response Models
# =============================================================================

class ActionLogResponse(BaseModel):
    """The canonical record of one executed action."""
    tick_before: int
    action_type: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    success: bool
    failure_type: Optional[str] = None
    failure_reason: Optional[str] = None
    time_consumed: int
    skill_gained: Optional[SkillGainInfo] = None
    level_ups: list[LevelUpInfo] = Field(default_factory=list)
    rng_rolls: list[RngRollInfo] = Field(default_factory=list)
    state_delta_summary: str = ""
    contracts_completed: list[ContractCompletionInfo] = Field(default_factory=list)
    exploration: Optional[ExplorationInfo] = None


class SessionResponse(BaseModel):
    """Session summary."""
    session_id: str
    seed: str
    status: SessionStatus
    current_tick: int
    remaining_ticks: int
    actions_executed: int = 0


class EvaluationResponse(BaseModel):
    expected_time: float
    expected_xp: float
    success_probability: float

    model_config = {"from_attributes": True}


class PlanViolationInfo(BaseModel):
    action_index: int
    reason: str

    model_config = {"from_attributes": True}


class PlanEvaluationResponse(BaseModel):
    expected_time: float
    expected_xp: float
    violations: list[PlanViolationInfo] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class MaterialInfo(BaseModel):
    material_id: str
    tier: int
    required_level: int
    remaining_units: Optional[int] = None

    model_config = {"from_attributes": True}


class NodeInfo(BaseModel):
    node_id: str
    node_type: str
    skill: str
    visibility: VisibilityLevel
    depleted: Optional[bool] = None
    materials: list[MaterialInfo] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class LocationInfo(BaseModel):
    location_id: str
    area_id: str
    kind: str
    node: Optional[NodeInfo] = None
    enemy_id: Optional[str] = None

    model_config = {"from_attributes": True}


class AreaInfo(BaseModel):
    area_id: str
    distance: int
    travel_ticks: Optional[int] = None
    known_location_ids: list[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ConnectionInfo(BaseModel):
    connection_id: str
    area_a: str
    area_b: str
    travel_ticks: int

    model_config = {"from_attributes": True}


class ContractInfo(BaseModel):
    contract_id: str
    guild_location_id: str
    requirements: list[ItemQuantity] = Field(default_factory=list)
    kill_requirements: dict[str, int] = Field(default_factory=dict)
    kill_progress: dict[str, int] = Field(default_factory=dict)
    rewards: list[ItemQuantity] = Field(default_factory=list)
    reputation_reward: int = 0
    active: bool = False

    model_config = {"from_attributes": True}


class ObservationResponse(BaseModel):
    """Discovery-filtered view of the world."""
    current_tick: int
    remaining_ticks: int
    current_area_id: str
    current_location_id: Optional[str] = None
    inventory: list[ItemQuantity] = Field(default_factory=list)
    inventory_capacity: int
    storage: list[ItemQuantity] = Field(default_factory=list)
    skills: dict[str, int] = Field(default_factory=dict)
    guild_reputation: int = 0
    equipped_weapon: Optional[str] = None
    areas: list[AreaInfo] = Field(default_factory=list)
    connections: list[ConnectionInfo] = Field(default_factory=list)
    locations: list[LocationInfo] = Field(default_factory=list)
    frontier_area_ids: list[str] = Field(default_factory=list)
    contracts: list[ContractInfo] = Field(default_factory=list)
    enemy_ids: list[str] = Field(default_factory=list)
    recipe_ids: list[str] = Field(default_factory=list)
    total_luck_delta: int = 0
    current_streak: int = 0

    model_config = {"from_attributes": True}


class SnapshotResponse(BaseModel):
    """Complete, round-trippable world state."""
    session_id: str
    state: dict[str, Any]


class SessionListResponse(BaseModel):
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    environment: str


class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None
