"""
Pydantic Schemas - request/response contract for the match orchestrator.

These models define the exact contract between an orchestrator (lobby,
network layer, bot runner) and the engine. Each player intent has one
request model; every intent answers with an ActionResponse.

Error Codes:
- Every engine ErrorKind value (INVALID_PHASE_ACTION, NOT_ENOUGH_REQUIREMENT, ...)
- MATCH_NOT_FOUND: Match does not exist or has been closed
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ..engine_core.state import GamePhase, TurnPhase
from .snapshot import DevelopmentCardModel, LeaderModel, MarketModel, ResourceModel


# =============================================================================
# Enums
# =============================================================================

class ServiceErrorCode(str, Enum):
    """Error codes raised by the service itself rather than by the rules."""
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"


class ProductionKind(str, Enum):
    """Which production a production request selects."""
    BASE = "base"
    DEVELOPMENT = "development"
    LEADER = "leader"


# =============================================================================
# Request Models
# =============================================================================

class CreateMatchRequest(BaseModel):
    """Request to create a new match."""
    player_names: list[str] = Field(..., min_length=1, max_length=4, description="Turn order")
    leader_deck: list[LeaderModel] = Field(
        default_factory=list, description="Leaders to shuffle and deal"
    )
    random_seed: Optional[int] = Field(None, description="Seed for reproducible matches")


class PlayerRequest(BaseModel):
    """Intent that only names its player (end turn, stop production, discard)."""
    player_id: str


class SetupResourcesRequest(PlayerRequest):
    resources: list[ResourceModel] = Field(..., description="Starting resources chosen")


class LeaderRequest(PlayerRequest):
    """Activate, discard or set-up-discard a leader."""
    leader_index: int = Field(..., ge=0)


class MarketActionRequest(PlayerRequest):
    selection: int = Field(..., ge=0, description="Row or column index")
    is_row: bool = True


class WhiteMarbleConversionRequest(PlayerRequest):
    """Assign some of the drawn white marbles to one marble leader."""
    effect_index: int = Field(..., ge=0, description="Index of the leader in the hand")
    count: int = Field(..., ge=1, description="White marbles assigned to it")


class StorageRequest(PlayerRequest):
    """Place a resource from the buffer into a depot, or pay one from a depot."""
    resource: ResourceModel
    depot_index: int = Field(..., ge=0)
    is_leader_depot: bool = False


class StrongboxRequest(PlayerRequest):
    resource: ResourceModel


class SwitchDepotsRequest(PlayerRequest):
    from_index: int = Field(..., ge=0)
    from_is_leader_depot: bool = False
    to_index: int = Field(..., ge=0)
    to_is_leader_depot: bool = False


class AnyConversionRequest(PlayerRequest):
    """Declare concrete resources for an outstanding wildcard amount."""
    declared_resources: list[ResourceModel]


class BuyDevelopmentRequest(PlayerRequest):
    card: DevelopmentCardModel
    slot: int = Field(..., ge=0)


class ProductionRequest(PlayerRequest):
    kind: ProductionKind
    index: Optional[int] = Field(None, ge=0, description="Slot or leader index")

    @model_validator(mode="after")
    def check_index(self) -> "ProductionRequest":
        if self.kind != ProductionKind.BASE and self.index is None:
            raise ValueError(f"A {self.kind.value} production needs an index")
        return self


class SetPlayerActiveRequest(PlayerRequest):
    active: bool


# =============================================================================
# Response Models
# =============================================================================

class WhiteMarbleChoiceModel(BaseModel):
    """White marbles still to assign and what each marble leader turns one into."""
    white_marbles: int
    effects: dict[int, list[ResourceModel]] = Field(default_factory=dict)


class ActionResponse(BaseModel):
    """Outcome of one intent."""
    match_id: str
    success: bool
    error: Optional[str] = Field(None, description="Human-readable error message")
    error_code: Optional[str] = Field(None, description="Machine-readable error code")
    changes: list[str] = Field(default_factory=list)
    turn_phase: Optional[TurnPhase] = Field(None, description="Acting player's phase afterwards")
    buffer: list[ResourceModel] = Field(default_factory=list)
    market: Optional[MarketModel] = None
    pending_choice: Optional[WhiteMarbleChoiceModel] = None
    api_version: str = "v1"


class PlayerSummary(BaseModel):
    player_id: str
    name: str
    phase: TurnPhase
    active: bool
    faith_position: int = 0
    is_current_turn: bool = False


class MatchResponse(BaseModel):
    """Public overview of a match."""
    match_id: str
    phase: GamePhase
    turn_number: int
    current_player_id: Optional[str] = None
    players: list[PlayerSummary] = Field(default_factory=list)
    market: MarketModel
    api_version: str = "v1"


class LegalActionsResponse(BaseModel):
    match_id: str
    player_id: str
    phase: TurnPhase
    allowed: list[str] = Field(default_factory=list, description="Intent types allowed now")
