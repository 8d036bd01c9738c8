"""
Action Generator - the turn state machine.

PHASE_ACTIONS is the authoritative table of which intents a player may send
in each turn phase. The reducer asks check_legal() before touching any
state; an intent outside the table fails with INVALID_PHASE_ACTION and the
phase does not move.

The generator also enumerates concrete legal actions for the current
player, for orchestrators and bots. Intents whose parameters are open
ended (which resource goes to which depot, wildcard declarations, which
development card to buy) are listed by type only via allowed_action_types().
"""

from __future__ import annotations
from dataclasses import dataclass

from .action import Action, ActionType, SETUP_ACTIONS, SYSTEM_ACTIONS
from .cards import BASE_PRODUCTION
from .effects import EffectKind
from .errors import InvalidPhaseAction, NotYourTurn
from .state import GamePhase, GameState, PlayerState, TurnPhase


PHASE_ACTIONS: dict[TurnPhase, frozenset[ActionType]] = {
    TurnPhase.SETUP_LEADER: frozenset({ActionType.DISCARD_LEADER_SETUP}),
    TurnPhase.SETUP_RESOURCE: frozenset({ActionType.SETUP_RESOURCES}),
    TurnPhase.SETUP_DONE: frozenset(),
    TurnPhase.IDLE: frozenset(),
    TurnPhase.LEADER_MANAGE_BEFORE: frozenset({
        ActionType.ACTIVATE_LEADER,
        ActionType.DISCARD_LEADER,
        ActionType.SWITCH_DEPOTS,
        ActionType.MARKET_ACTION,
        ActionType.BUY_DEVELOPMENT,
        ActionType.BASE_PRODUCTION,
        ActionType.DEVELOPMENT_PRODUCTION,
        ActionType.LEADER_PRODUCTION,
    }),
    TurnPhase.WHITE_MARBLE_CONVERSION: frozenset({ActionType.WHITE_MARBLE_CONVERSION}),
    TurnPhase.MARKET_RESOURCE_POSITIONING: frozenset({
        ActionType.DEPOT_MODIFY,
        ActionType.SWITCH_DEPOTS,
        ActionType.DISCARD_MARKET_RESOURCES,
    }),
    TurnPhase.ANY_BUY_DEV_CONVERSION: frozenset({ActionType.ANY_CONVERSION}),
    TurnPhase.BUY_DEV_RESOURCE_REMOVING: frozenset({
        ActionType.DEPOT_MODIFY,
        ActionType.STRONGBOX_SUB,
        ActionType.SWITCH_DEPOTS,
    }),
    TurnPhase.PRODUCTION_SELECTION: frozenset({
        ActionType.BASE_PRODUCTION,
        ActionType.DEVELOPMENT_PRODUCTION,
        ActionType.LEADER_PRODUCTION,
        ActionType.STOP_PRODUCTION,
    }),
    TurnPhase.ANY_PRODUCE_COST_CONVERSION: frozenset({ActionType.ANY_CONVERSION}),
    TurnPhase.ANY_PRODUCE_PROFIT_CONVERSION: frozenset({ActionType.ANY_CONVERSION}),
    TurnPhase.PRODUCTION_RESOURCE_REMOVING: frozenset({
        ActionType.DEPOT_MODIFY,
        ActionType.STRONGBOX_SUB,
        ActionType.SWITCH_DEPOTS,
    }),
    TurnPhase.LEADER_MANAGE_AFTER: frozenset({
        ActionType.ACTIVATE_LEADER,
        ActionType.DISCARD_LEADER,
        ActionType.SWITCH_DEPOTS,
        ActionType.END_TURN,
    }),
}


def allowed_action_types(phase: TurnPhase) -> frozenset[ActionType]:
    return PHASE_ACTIONS[phase]


def check_legal(state: GameState, action: Action) -> PlayerState | None:
    """
    Check an intent against the state machine.

    Returns the acting player (None for orchestrator actions that name no
    player). Raises NotYourTurn / InvalidPhaseAction / UnknownPlayer.
    """
    action_type = action.action_type
    player_id = action.payload.player_id

    if action_type in SYSTEM_ACTIONS:
        return state.get_player(player_id) if player_id is not None else None

    player = state.get_player(player_id)

    if state.phase == GamePhase.SETUP:
        if action_type not in SETUP_ACTIONS:
            raise InvalidPhaseAction("Match not started - only setup actions allowed")
    else:
        if action_type in SETUP_ACTIONS:
            raise InvalidPhaseAction("Setup is over")
        if player.player_id != state.current_player.player_id:
            raise NotYourTurn(f"Not {player_id}'s turn")

    if action_type not in PHASE_ACTIONS[player.phase]:
        raise InvalidPhaseAction(
            f"{action_type.value} is not allowed during {player.phase.value}"
        )
    return player


@dataclass
class ActionGenerator:
    """Enumerates fully-specified legal actions."""

    def generate(self, state: GameState) -> list[Action]:
        if state.phase == GamePhase.SETUP:
            actions = []
            for player in state.players:
                actions.extend(self.generate_for_player(state, player))
            return actions
        return self.generate_for_player(state, state.current_player)

    def generate_for_player(self, state: GameState, player: PlayerState) -> list[Action]:
        allowed = PHASE_ACTIONS[player.phase]
        pid = player.player_id
        actions: list[Action] = []

        if ActionType.DISCARD_LEADER_SETUP in allowed:
            actions.extend(
                Action.leader(ActionType.DISCARD_LEADER_SETUP, pid, i)
                for i in range(len(player.cards.leaders))
            )

        if ActionType.MARKET_ACTION in allowed:
            actions.extend(Action.market(pid, r, True) for r in range(state.market.rows))
            actions.extend(Action.market(pid, c, False) for c in range(state.market.cols))

        if ActionType.WHITE_MARBLE_CONVERSION in allowed:
            remaining = state.market.white_marble_drew
            for i, _ in player.cards.active_leaders(EffectKind.MARBLE):
                actions.extend(
                    Action.white_marble_conversion(pid, i, n) for n in range(1, remaining + 1)
                )

        if ActionType.ACTIVATE_LEADER in allowed:
            actions.extend(
                Action.leader(ActionType.ACTIVATE_LEADER, pid, i)
                for i, leader in enumerate(player.cards.leaders)
                if not leader.active
            )
        if ActionType.DISCARD_LEADER in allowed:
            actions.extend(
                Action.leader(ActionType.DISCARD_LEADER, pid, i)
                for i in range(len(player.cards.leaders))
            )

        actions.extend(self._production_actions(player, allowed))

        for action_type in (
            ActionType.DISCARD_MARKET_RESOURCES,
            ActionType.STOP_PRODUCTION,
            ActionType.END_TURN,
        ):
            if action_type in allowed:
                actions.append(Action.simple(action_type, pid))

        return actions

    def _production_actions(
        self,
        player: PlayerState,
        allowed: frozenset[ActionType],
    ) -> list[Action]:
        used = player.cards.used_productions
        actions: list[Action] = []
        if ActionType.BASE_PRODUCTION in allowed and BASE_PRODUCTION not in used:
            actions.append(Action.simple(ActionType.BASE_PRODUCTION, player.player_id))
        if ActionType.DEVELOPMENT_PRODUCTION in allowed:
            actions.extend(
                Action.simple(ActionType.DEVELOPMENT_PRODUCTION, player.player_id, index=slot)
                for slot, stack in enumerate(player.cards.slots)
                if stack and f"slot:{slot}" not in used
            )
        if ActionType.LEADER_PRODUCTION in allowed:
            actions.extend(
                Action.leader(ActionType.LEADER_PRODUCTION, player.player_id, i)
                for i, _ in player.cards.active_leaders(EffectKind.PRODUCTION)
                if f"leader:{i}" not in used
            )
        return actions


def legal_actions(state: GameState) -> list[Action]:
    """Convenience function to enumerate legal actions."""
    return ActionGenerator().generate(state)
