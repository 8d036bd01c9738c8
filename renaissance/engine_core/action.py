"""
Action System - Actions, payloads, and results.

Actions represent:
1. Player intents (market, storage, buy, produce, leaders, conversions)
2. Setup intents (leader discard, starting resources)
3. Orchestrator commands (forced end of turn, player connectivity)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import ErrorKind
from .resources import Resource


class ActionType(str, Enum):
    """Types of actions in the system."""
    # Setup
    DISCARD_LEADER_SETUP = "discard_leader_setup"
    SETUP_RESOURCES = "setup_resources"

    # Leaders
    ACTIVATE_LEADER = "activate_leader"
    DISCARD_LEADER = "discard_leader"

    # Market
    MARKET_ACTION = "market_action"
    WHITE_MARBLE_CONVERSION = "white_marble_conversion"
    DISCARD_MARKET_RESOURCES = "discard_market_resources"

    # Storage
    DEPOT_MODIFY = "depot_modify"
    STRONGBOX_SUB = "strongbox_sub"
    SWITCH_DEPOTS = "switch_depots"

    # Development cards
    BUY_DEVELOPMENT = "buy_development"

    # Production
    BASE_PRODUCTION = "base_production"
    DEVELOPMENT_PRODUCTION = "development_production"
    LEADER_PRODUCTION = "leader_production"
    STOP_PRODUCTION = "stop_production"

    # Wildcard resolution
    ANY_CONVERSION = "any_conversion"

    END_TURN = "end_turn"

    # Orchestrator actions
    FORCE_END_TURN = "force_end_turn"
    SET_PLAYER_ACTIVE = "set_player_active"


SYSTEM_ACTIONS = frozenset({ActionType.FORCE_END_TURN, ActionType.SET_PLAYER_ACTIVE})
SETUP_ACTIONS = frozenset({ActionType.DISCARD_LEADER_SETUP, ActionType.SETUP_RESOURCES})


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields; validation happens in
    the reducer.
    """
    player_id: str | None = None

    # Row/column, leader, slot or depot index depending on the action
    index: int | None = None
    is_row: bool = True
    is_leader_depot: bool = False

    # Second depot for switches
    to_index: int | None = None
    to_is_leader_depot: bool = False

    resource: Resource | None = None
    resources: list[Resource] = field(default_factory=list)
    count: int = 0

    # Development card being bought
    card: Any | None = None

    active: bool = True


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Actions are:
    - Logged for replay
    - Validated against the turn state machine before application
    - Applied atomically by the reducer
    """
    action_type: ActionType
    payload: ActionPayload
    timestamp: float | None = None

    @classmethod
    def market(cls, player_id: str, index: int, is_row: bool) -> Action:
        return cls(
            action_type=ActionType.MARKET_ACTION,
            payload=ActionPayload(player_id=player_id, index=index, is_row=is_row),
        )

    @classmethod
    def white_marble_conversion(cls, player_id: str, leader_index: int, count: int) -> Action:
        return cls(
            action_type=ActionType.WHITE_MARBLE_CONVERSION,
            payload=ActionPayload(player_id=player_id, index=leader_index, count=count),
        )

    @classmethod
    def depot_modify(
        cls,
        player_id: str,
        resource: Resource,
        index: int,
        is_leader_depot: bool = False,
    ) -> Action:
        """Add to (positioning) or remove from (paying) a depot, via the buffer."""
        return cls(
            action_type=ActionType.DEPOT_MODIFY,
            payload=ActionPayload(
                player_id=player_id,
                resource=resource,
                index=index,
                is_leader_depot=is_leader_depot,
            ),
        )

    @classmethod
    def strongbox_sub(cls, player_id: str, resource: Resource) -> Action:
        return cls(
            action_type=ActionType.STRONGBOX_SUB,
            payload=ActionPayload(player_id=player_id, resource=resource),
        )

    @classmethod
    def switch_depots(
        cls,
        player_id: str,
        from_index: int,
        from_is_leader: bool,
        to_index: int,
        to_is_leader: bool,
    ) -> Action:
        return cls(
            action_type=ActionType.SWITCH_DEPOTS,
            payload=ActionPayload(
                player_id=player_id,
                index=from_index,
                is_leader_depot=from_is_leader,
                to_index=to_index,
                to_is_leader_depot=to_is_leader,
            ),
        )

    @classmethod
    def any_conversion(cls, player_id: str, resources: list[Resource]) -> Action:
        return cls(
            action_type=ActionType.ANY_CONVERSION,
            payload=ActionPayload(player_id=player_id, resources=list(resources)),
        )

    @classmethod
    def buy_development(cls, player_id: str, card: Any, slot: int) -> Action:
        return cls(
            action_type=ActionType.BUY_DEVELOPMENT,
            payload=ActionPayload(player_id=player_id, card=card, index=slot),
        )

    @classmethod
    def leader(cls, action_type: ActionType, player_id: str, leader_index: int) -> Action:
        """Factory for leader activation, discard and leader production."""
        return cls(
            action_type=action_type,
            payload=ActionPayload(player_id=player_id, index=leader_index),
        )

    @classmethod
    def simple(cls, action_type: ActionType, player_id: str | None = None, **kwargs: Any) -> Action:
        """Factory for actions that need at most a few payload fields."""
        return cls(
            action_type=action_type,
            payload=ActionPayload(player_id=player_id, **kwargs),
        )


@dataclass
class WhiteMarbleChoice:
    """
    Pending request for the player to split white marbles between leaders.

    ``effects`` maps leader index to the bundle one white marble becomes.
    """
    white_marbles: int
    effects: dict[int, tuple[Resource, ...]] = field(default_factory=dict)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Error and its kind (if failed)
    - Side effects for the orchestrator
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: ErrorKind | None = None

    state_changes: list[str] = field(default_factory=list)

    # Set when the action left the player with a choice to make
    pending_choice: WhiteMarbleChoice | None = None

    @classmethod
    def failure(cls, error: str, error_code: ErrorKind | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        pending_choice: WhiteMarbleChoice | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            pending_choice=pending_choice,
        )
