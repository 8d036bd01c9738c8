"""
Engine Core - Deterministic match state management and rule enforcement.

The engine is the runtime that:
1. Sets up a match (market, player boards, leader hands)
2. Manages GameState
3. Checks intents against the turn state machine
4. Applies actions via the reducer
5. Resolves leader effects
"""

from .state import GameState, PlayerState, GamePhase, TurnPhase
from .action import Action, ActionType, ActionPayload, ActionResult, WhiteMarbleChoice
from .reducer import Reducer, apply_action
from .action_generator import ActionGenerator, allowed_action_types, legal_actions
from .effect_resolver import EffectResolver
from .errors import ErrorKind, RuleViolation
from .resources import Resource, ResourceType
from .setup import setup_match

__all__ = [
    "GameState",
    "PlayerState",
    "GamePhase",
    "TurnPhase",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "WhiteMarbleChoice",
    "Reducer",
    "apply_action",
    "ActionGenerator",
    "allowed_action_types",
    "legal_actions",
    "EffectResolver",
    "ErrorKind",
    "RuleViolation",
    "Resource",
    "ResourceType",
    "setup_match",
]
