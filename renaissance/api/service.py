"""
API Service - Business logic layer between an orchestrator and the engine.

The service:
1. Keeps the registry of running matches
2. Translates request models into engine actions
3. Applies them through the reducer and keeps the new state on success
4. Formats responses, including snapshots for resume

This layer is transport-agnostic; whatever carries the requests (sockets,
HTTP, a local bot runner) lives outside the package.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
import logging
import time

from ..config import RulesConfig
from ..engine_core.action import Action, ActionResult, ActionType
from ..engine_core.action_generator import allowed_action_types
from ..engine_core.reducer import Reducer
from ..engine_core.resources import to_resources
from ..engine_core.setup import setup_match
from ..engine_core.state import GameState
from . import snapshot
from .schemas import (
    ActionResponse,
    AnyConversionRequest,
    BuyDevelopmentRequest,
    CreateMatchRequest,
    LeaderRequest,
    LegalActionsResponse,
    MarketActionRequest,
    MatchResponse,
    PlayerRequest,
    PlayerSummary,
    ProductionKind,
    ProductionRequest,
    ServiceErrorCode,
    SetPlayerActiveRequest,
    SetupResourcesRequest,
    StorageRequest,
    StrongboxRequest,
    SwitchDepotsRequest,
    WhiteMarbleChoiceModel,
    WhiteMarbleConversionRequest,
)
from .snapshot import MarketModel, ResourceModel

logger = logging.getLogger(__name__)

PRODUCTION_ACTIONS = {
    ProductionKind.BASE: ActionType.BASE_PRODUCTION,
    ProductionKind.DEVELOPMENT: ActionType.DEVELOPMENT_PRODUCTION,
    ProductionKind.LEADER: ActionType.LEADER_PRODUCTION,
}


@dataclass
class MatchService:
    """
    Match registry and intent entry point.

    Usage:
        service = MatchService()
        match = service.create_match(CreateMatchRequest(player_names=["ada", "bo"]))
        response = service.market_action(match.match_id, MarketActionRequest(...))

    Matches are kept in memory only; export_snapshot/restore_snapshot are
    the hooks for an external persistence layer.
    """
    config: RulesConfig = field(default_factory=RulesConfig)
    reducer: Reducer = field(default_factory=Reducer)

    _matches: dict[str, GameState] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def create_match(self, request: CreateMatchRequest) -> MatchResponse:
        state = setup_match(
            request.player_names,
            leader_deck=[l.to_leader() for l in request.leader_deck],
            config=self.config,
            random_seed=request.random_seed,
        )
        self._matches[state.game_id] = state
        logger.info("Match %s created for %s", state.game_id, ", ".join(request.player_names))
        return self._match_response(state)

    def get_match(self, match_id: str) -> Optional[MatchResponse]:
        state = self._matches.get(match_id)
        return self._match_response(state) if state else None

    def get_state(self, match_id: str) -> Optional[GameState]:
        return self._matches.get(match_id)

    def close_match(self, match_id: str) -> bool:
        state = self._matches.pop(match_id, None)
        if state:
            logger.info("Match %s closed after %d turn(s)", match_id, state.turn_number)
        return state is not None

    def list_matches(self) -> list[str]:
        return list(self._matches.keys())

    def export_snapshot(self, match_id: str) -> Optional[str]:
        state = self._matches.get(match_id)
        return snapshot.dumps(state) if state else None

    def restore_snapshot(self, text: str) -> MatchResponse:
        """Register a match from a snapshot; raises ValueError on a bad version."""
        state = snapshot.loads(text)
        self._matches[state.game_id] = state
        logger.info("Match %s restored at turn %d", state.game_id, state.turn_number)
        return self._match_response(state)

    def legal_actions(self, match_id: str, player_id: str) -> Optional[LegalActionsResponse]:
        state = self._matches.get(match_id)
        if state is None:
            return None
        player = next((p for p in state.players if p.player_id == player_id), None)
        if player is None:
            return None
        return LegalActionsResponse(
            match_id=match_id,
            player_id=player_id,
            phase=player.phase,
            allowed=sorted(a.value for a in allowed_action_types(player.phase)),
        )

    # ------------------------------------------------------------------
    # Setup intents
    # ------------------------------------------------------------------

    def discard_leader_setup(self, match_id: str, request: LeaderRequest) -> ActionResponse:
        action = Action.leader(
            ActionType.DISCARD_LEADER_SETUP, request.player_id, request.leader_index
        )
        return self._apply(match_id, action)

    def setup_resources(self, match_id: str, request: SetupResourcesRequest) -> ActionResponse:
        action = Action.simple(
            ActionType.SETUP_RESOURCES,
            request.player_id,
            resources=[r.to_resource() for r in request.resources],
        )
        return self._apply(match_id, action)

    # ------------------------------------------------------------------
    # Turn intents
    # ------------------------------------------------------------------

    def activate_leader(self, match_id: str, request: LeaderRequest) -> ActionResponse:
        action = Action.leader(ActionType.ACTIVATE_LEADER, request.player_id, request.leader_index)
        return self._apply(match_id, action)

    def discard_leader(self, match_id: str, request: LeaderRequest) -> ActionResponse:
        action = Action.leader(ActionType.DISCARD_LEADER, request.player_id, request.leader_index)
        return self._apply(match_id, action)

    def market_action(self, match_id: str, request: MarketActionRequest) -> ActionResponse:
        action = Action.market(request.player_id, request.selection, request.is_row)
        return self._apply(match_id, action)

    def white_marble_conversion(
        self, match_id: str, request: WhiteMarbleConversionRequest
    ) -> ActionResponse:
        action = Action.white_marble_conversion(
            request.player_id, request.effect_index, request.count
        )
        return self._apply(match_id, action)

    def discard_market_resources(self, match_id: str, request: PlayerRequest) -> ActionResponse:
        return self._apply(
            match_id, Action.simple(ActionType.DISCARD_MARKET_RESOURCES, request.player_id)
        )

    def depot_modify(self, match_id: str, request: StorageRequest) -> ActionResponse:
        action = Action.depot_modify(
            request.player_id,
            request.resource.to_resource(),
            request.depot_index,
            request.is_leader_depot,
        )
        return self._apply(match_id, action)

    def strongbox_sub(self, match_id: str, request: StrongboxRequest) -> ActionResponse:
        action = Action.strongbox_sub(request.player_id, request.resource.to_resource())
        return self._apply(match_id, action)

    def switch_depots(self, match_id: str, request: SwitchDepotsRequest) -> ActionResponse:
        action = Action.switch_depots(
            request.player_id,
            request.from_index,
            request.from_is_leader_depot,
            request.to_index,
            request.to_is_leader_depot,
        )
        return self._apply(match_id, action)

    def buy_development(self, match_id: str, request: BuyDevelopmentRequest) -> ActionResponse:
        action = Action.buy_development(request.player_id, request.card.to_card(), request.slot)
        return self._apply(match_id, action)

    def production(self, match_id: str, request: ProductionRequest) -> ActionResponse:
        action = Action.simple(
            PRODUCTION_ACTIONS[request.kind], request.player_id, index=request.index
        )
        return self._apply(match_id, action)

    def stop_production(self, match_id: str, request: PlayerRequest) -> ActionResponse:
        return self._apply(match_id, Action.simple(ActionType.STOP_PRODUCTION, request.player_id))

    def any_conversion(self, match_id: str, request: AnyConversionRequest) -> ActionResponse:
        action = Action.any_conversion(
            request.player_id, [r.to_resource() for r in request.declared_resources]
        )
        return self._apply(match_id, action)

    def end_turn(self, match_id: str, request: PlayerRequest) -> ActionResponse:
        return self._apply(match_id, Action.simple(ActionType.END_TURN, request.player_id))

    # ------------------------------------------------------------------
    # Orchestrator commands
    # ------------------------------------------------------------------

    def force_end_turn(self, match_id: str, player_id: Optional[str] = None) -> ActionResponse:
        """End the current turn, or complete ``player_id``'s setup during setup."""
        return self._apply(match_id, Action.simple(ActionType.FORCE_END_TURN, player_id))

    def set_player_active(self, match_id: str, request: SetPlayerActiveRequest) -> ActionResponse:
        action = Action.simple(
            ActionType.SET_PLAYER_ACTIVE, request.player_id, active=request.active
        )
        return self._apply(match_id, action)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _apply(self, match_id: str, action: Action) -> ActionResponse:
        state = self._matches.get(match_id)
        if state is None:
            return ActionResponse(
                match_id=match_id,
                success=False,
                error=f"Match {match_id} not found",
                error_code=ServiceErrorCode.MATCH_NOT_FOUND.value,
            )

        action.timestamp = time.time()
        result = self.reducer.apply(state, action)
        if not result.success:
            return self._failure_response(match_id, state, action, result)

        new_state: GameState = result.new_state
        self._matches[match_id] = new_state
        if new_state.current_player_idx != state.current_player_idx or (
            new_state.turn_number != state.turn_number
        ):
            logger.info(
                "Match %s: turn %d, %s to play",
                match_id,
                new_state.turn_number,
                new_state.current_player.name,
            )
        return self._success_response(match_id, new_state, action, result)

    def _failure_response(
        self,
        match_id: str,
        state: GameState,
        action: Action,
        result: ActionResult,
    ) -> ActionResponse:
        return ActionResponse(
            match_id=match_id,
            success=False,
            error=result.error,
            error_code=result.error_code.value if result.error_code else None,
            turn_phase=self._phase_of(state, action.payload.player_id),
        )

    def _success_response(
        self,
        match_id: str,
        state: GameState,
        action: Action,
        result: ActionResult,
    ) -> ActionResponse:
        player_id = action.payload.player_id
        buffer: list[ResourceModel] = []
        if player_id is not None:
            buffer = [
                ResourceModel.from_resource(r)
                for r in to_resources(state.get_player(player_id).resources.buffer)
            ]

        pending = None
        if result.pending_choice:
            pending = WhiteMarbleChoiceModel(
                white_marbles=result.pending_choice.white_marbles,
                effects={
                    i: [ResourceModel.from_resource(r) for r in bundle]
                    for i, bundle in result.pending_choice.effects.items()
                },
            )

        return ActionResponse(
            match_id=match_id,
            success=True,
            changes=result.state_changes,
            turn_phase=self._phase_of(state, player_id),
            buffer=buffer,
            market=MarketModel.from_market(state.market),
            pending_choice=pending,
        )

    def _phase_of(self, state: GameState, player_id: Optional[str]):
        if player_id is None:
            return None
        for p in state.players:
            if p.player_id == player_id:
                return p.phase
        return None

    def _match_response(self, state: GameState) -> MatchResponse:
        current = state.current_player.player_id if state.players else None
        return MatchResponse(
            match_id=state.game_id,
            phase=state.phase,
            turn_number=state.turn_number,
            current_player_id=current,
            players=[
                PlayerSummary(
                    player_id=p.player_id,
                    name=p.name,
                    phase=p.phase,
                    active=p.active,
                    faith_position=p.faith.position,
                    is_current_turn=p.player_id == current,
                )
                for p in state.players
            ],
            market=MarketModel.from_market(state.market),
        )
