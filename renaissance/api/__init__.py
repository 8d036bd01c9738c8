"""
API Module - Orchestrator interface.

Exposes the engine to whatever runs the match (lobby, network layer, bots):
1. Creates matches and keeps them in memory
2. Accepts one request model per player intent
3. Answers with the outcome, the acting player's buffer and the market
4. Exports and restores versioned snapshots for resume

Transport and persistence stay outside the package.
"""

from .schemas import (
    # Requests
    CreateMatchRequest,
    PlayerRequest,
    SetupResourcesRequest,
    LeaderRequest,
    MarketActionRequest,
    WhiteMarbleConversionRequest,
    StorageRequest,
    StrongboxRequest,
    SwitchDepotsRequest,
    AnyConversionRequest,
    BuyDevelopmentRequest,
    ProductionRequest,
    SetPlayerActiveRequest,
    # Responses
    ActionResponse,
    MatchResponse,
    LegalActionsResponse,
    # Enums
    ProductionKind,
    ServiceErrorCode,
)
from .snapshot import SNAPSHOT_VERSION, GameSnapshot, encode_state, decode_state, dumps, loads
from .service import MatchService

__all__ = [
    # Requests
    "CreateMatchRequest",
    "PlayerRequest",
    "SetupResourcesRequest",
    "LeaderRequest",
    "MarketActionRequest",
    "WhiteMarbleConversionRequest",
    "StorageRequest",
    "StrongboxRequest",
    "SwitchDepotsRequest",
    "AnyConversionRequest",
    "BuyDevelopmentRequest",
    "ProductionRequest",
    "SetPlayerActiveRequest",
    # Responses
    "ActionResponse",
    "MatchResponse",
    "LegalActionsResponse",
    # Enums
    "ProductionKind",
    "ServiceErrorCode",
    # Snapshots
    "SNAPSHOT_VERSION",
    "GameSnapshot",
    "encode_state",
    "decode_state",
    "dumps",
    "loads",
    # Service
    "MatchService",
]
