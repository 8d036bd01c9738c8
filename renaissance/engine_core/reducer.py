"""
Reducer - Applies actions to game state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- (state, action) -> ActionResult; the input state is never modified
- Validates the intent against the turn state machine before applying
- Works on a clone and keeps it only on success, so a failed action leaves
  the match exactly as it was and the player can retry
- Rule violations become failures carrying their ErrorKind
- Delegates leader effects to EffectResolver
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging

from .action import Action, ActionResult, ActionType, WhiteMarbleChoice
from .action_generator import check_legal
from .cards import BASE_PRODUCTION, DevelopmentCard
from .effect_resolver import EffectResolver
from .effects import EffectKind, ProductionRecipe
from .errors import (
    DepotCapacityExceeded,
    InvalidCardPlacement,
    InvalidPhaseAction,
    InvalidSelection,
    RuleViolation,
    WildcardConversionMismatch,
)
from .resources import Resource, ResourceType, format_counts, to_counts, total
from .setup import grant_setup_bonus, start_match_if_ready
from .state import GamePhase, GameState, PlayerState, TurnPhase

logger = logging.getLogger(__name__)

Handler = Callable[[GameState, PlayerState, Action], ActionResult]


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless - all state is in GameState.
    """
    resolver: EffectResolver = field(default_factory=EffectResolver)

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        try:
            actor = check_legal(state, action)
        except RuleViolation as e:
            logger.info("Rejected %s: %s", action.action_type.value, e)
            return ActionResult.failure(str(e), error_code=e.kind)

        new_state = state.clone()
        player = new_state.get_player(actor.player_id) if actor else None
        handler = self._get_handler(action.action_type)

        try:
            result = handler(new_state, player, action)
        except RuleViolation as e:
            logger.info("Failed %s: %s", action.action_type.value, e)
            return ActionResult.failure(str(e), error_code=e.kind)

        new_state.action_history.append(action)
        logger.debug("Applied %s: %s", action.action_type.value, "; ".join(result.state_changes))
        return result

    def _get_handler(self, action_type: ActionType) -> Handler:
        handlers: dict[ActionType, Handler] = {
            ActionType.DISCARD_LEADER_SETUP: self._handle_discard_leader_setup,
            ActionType.SETUP_RESOURCES: self._handle_setup_resources,
            ActionType.ACTIVATE_LEADER: self._handle_activate_leader,
            ActionType.DISCARD_LEADER: self._handle_discard_leader,
            ActionType.MARKET_ACTION: self._handle_market,
            ActionType.WHITE_MARBLE_CONVERSION: self._handle_white_marble_conversion,
            ActionType.DISCARD_MARKET_RESOURCES: self._handle_discard_market_resources,
            ActionType.DEPOT_MODIFY: self._handle_depot_modify,
            ActionType.STRONGBOX_SUB: self._handle_strongbox_sub,
            ActionType.SWITCH_DEPOTS: self._handle_switch_depots,
            ActionType.BUY_DEVELOPMENT: self._handle_buy_development,
            ActionType.BASE_PRODUCTION: self._handle_base_production,
            ActionType.DEVELOPMENT_PRODUCTION: self._handle_development_production,
            ActionType.LEADER_PRODUCTION: self._handle_leader_production,
            ActionType.STOP_PRODUCTION: self._handle_stop_production,
            ActionType.ANY_CONVERSION: self._handle_any_conversion,
            ActionType.END_TURN: self._handle_end_turn,
            ActionType.FORCE_END_TURN: self._handle_force_end_turn,
            ActionType.SET_PLAYER_ACTIVE: self._handle_set_player_active,
        }
        return handlers[action_type]

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _handle_discard_leader_setup(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        leader = player.cards.discard_leader_setup(action.payload.index)
        changes = [f"{player.name} discarded leader {leader.leader_id}"]
        if len(player.cards.leaders) <= state.config.leaders_kept:
            changes.extend(self._finish_leader_setup(state, player))
        return ActionResult.success_with_state(state, changes=changes)

    def _finish_leader_setup(self, state: GameState, player: PlayerState) -> list[str]:
        self._vatican_reports(state, grant_setup_bonus(state, player))
        changes = [f"{player.name} starts at faith {player.faith.position}"]
        if player.setup_resources_owed:
            changes.append(
                f"{player.name} must choose {player.setup_resources_owed} starting resource(s)"
            )
        changes.extend(self._maybe_start_match(state))
        return changes

    def _handle_setup_resources(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        resources = action.payload.resources
        if any(not r.type.is_storable for r in resources):
            raise WildcardConversionMismatch("Starting resources must be concrete goods")
        counts = to_counts(resources)
        if total(counts) != player.setup_resources_owed:
            raise WildcardConversionMismatch(
                f"Choose exactly {player.setup_resources_owed} starting resource(s)"
            )
        self._place_setup_resources(player, counts)
        player.setup_resources_owed = 0
        player.phase = TurnPhase.SETUP_DONE
        changes = [f"{player.name} took {format_counts(counts)}"]
        changes.extend(self._maybe_start_match(state))
        return ActionResult.success_with_state(state, changes=changes)

    def _place_setup_resources(self, player: PlayerState, counts: dict) -> None:
        """Put each starting type in the smallest empty depot that fits it."""
        warehouse = player.resources.warehouse
        for rtype, amount in sorted(counts.items(), key=lambda kv: kv[1]):
            for i, depot in enumerate(warehouse.depots):
                if depot.is_empty and depot.capacity >= amount:
                    warehouse.add(i, Resource(rtype, amount))
                    break
            else:
                raise DepotCapacityExceeded(f"No depot can hold {amount} {rtype.value}")

    def _maybe_start_match(self, state: GameState) -> list[str]:
        if not start_match_if_ready(state):
            return []
        return [f"Match started. First player: {state.current_player.name}"]

    # ------------------------------------------------------------------
    # Leaders
    # ------------------------------------------------------------------

    def _handle_activate_leader(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        leader = self.resolver.activate_leader(state, player, action.payload.index)
        return ActionResult.success_with_state(
            state, changes=[f"{player.name} activated leader {leader.leader_id}"]
        )

    def _handle_discard_leader(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        leader = self.resolver.discard_leader(state, player, action.payload.index)
        self._move_faith(state, player, 1)
        return ActionResult.success_with_state(
            state, changes=[f"{player.name} discarded leader {leader.leader_id} for 1 faith"]
        )

    # ------------------------------------------------------------------
    # Market
    # ------------------------------------------------------------------

    def _handle_market(self, state: GameState, player: PlayerState, action: Action) -> ActionResult:
        market = state.market
        index = action.payload.index
        if action.payload.is_row:
            market.insert_row(index)
            changes = [f"{player.name} took market row {index}"]
        else:
            market.insert_col(index)
            changes = [f"{player.name} took market column {index}"]

        white = market.white_marble_drew
        marble_leaders = player.cards.active_leaders(EffectKind.MARBLE)

        if white and len(marble_leaders) >= 2:
            player.phase = TurnPhase.WHITE_MARBLE_CONVERSION
            choice = WhiteMarbleChoice(
                white_marbles=white,
                effects={i: leader.effect.transform_into for i, leader in marble_leaders},
            )
            changes.append(f"{white} white marble(s) to assign between leaders")
            return ActionResult.success_with_state(state, changes=changes, pending_choice=choice)

        if white and marble_leaders:
            player.phase = TurnPhase.WHITE_MARBLE_CONVERSION
            index, _ = marble_leaders[0]
            self.resolver.fire(state, player, index, count=white)
            changes.append(f"{white} white marble(s) converted by leader")
        elif white:
            market.discard_white_marbles()

        changes.extend(self._collect_market(state, player))
        return ActionResult.success_with_state(state, changes=changes)

    def _handle_white_marble_conversion(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        leader = player.cards.get_leader(action.payload.index)
        if not leader.has_live_effect(EffectKind.MARBLE):
            raise InvalidSelection(f"Leader {leader.leader_id} cannot convert white marbles")
        count = action.payload.count
        self.resolver.fire(state, player, action.payload.index, count=count)
        changes = [f"{player.name} assigned {count} white marble(s) to {leader.leader_id}"]

        remaining = state.market.white_marble_drew
        if remaining:
            choice = WhiteMarbleChoice(
                white_marbles=remaining,
                effects={
                    i: l.effect.transform_into
                    for i, l in player.cards.active_leaders(EffectKind.MARBLE)
                },
            )
            return ActionResult.success_with_state(state, changes=changes, pending_choice=choice)

        changes.extend(self._collect_market(state, player))
        return ActionResult.success_with_state(state, changes=changes)

    def _collect_market(self, state: GameState, player: PlayerState) -> list[str]:
        """Hand the market output to the player and open resource positioning."""
        gained = state.market.get_resources_to_send()
        player.resources.resource_from_market(gained)
        state.market.reset()
        player.phase = TurnPhase.MARKET_RESOURCE_POSITIONING
        changes = [f"{player.name} received {format_counts(to_counts(gained))}"]
        changes.extend(self._control_buffer_status(state, player))
        return changes

    def _handle_discard_market_resources(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        discarded = player.resources.discard_resources_from_market()
        for other in state.other_players(player.player_id):
            self._move_faith(state, other, discarded)
        changes = [f"{player.name} discarded {discarded} resource(s)"]
        changes.extend(self._control_buffer_status(state, player))
        return ActionResult.success_with_state(state, changes=changes)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def _handle_depot_modify(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        payload = action.payload
        rm = player.resources
        rm.sub_to_buffer(payload.resource)
        if player.phase == TurnPhase.MARKET_RESOURCE_POSITIONING:
            rm.add_to_warehouse(payload.index, payload.resource, payload.is_leader_depot)
            verb = "stored"
        else:
            rm.sub_to_warehouse(payload.index, payload.resource, payload.is_leader_depot)
            verb = "paid"
        changes = [f"{player.name} {verb} {payload.resource} using depot {payload.index}"]
        changes.extend(self._control_buffer_status(state, player))
        return ActionResult.success_with_state(state, changes=changes)

    def _handle_strongbox_sub(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        resource = action.payload.resource
        player.resources.sub_to_buffer(resource)
        player.resources.sub_to_strongbox(resource)
        changes = [f"{player.name} paid {resource} from the strongbox"]
        changes.extend(self._control_buffer_status(state, player))
        return ActionResult.success_with_state(state, changes=changes)

    def _handle_switch_depots(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        p = action.payload
        player.resources.switch_depots(p.index, p.is_leader_depot, p.to_index, p.to_is_leader_depot)
        return ActionResult.success_with_state(
            state, changes=[f"{player.name} switched depots {p.index} and {p.to_index}"]
        )

    def _control_buffer_status(self, state: GameState, player: PlayerState) -> list[str]:
        """Complete the running action once its buffer is empty."""
        rm = player.resources
        if rm.buffer_size or rm.any_required:
            return []

        if player.phase == TurnPhase.MARKET_RESOURCE_POSITIONING:
            self._apply_faith(state, player)
            change = f"{player.name} finished placing resources"
        elif player.phase == TurnPhase.BUY_DEV_RESOURCE_REMOVING:
            card = player.cards.place_pending_card()
            change = f"{player.name} placed {card.card_id}"
        elif player.phase == TurnPhase.PRODUCTION_RESOURCE_REMOVING:
            produced = rm.do_production()
            self._apply_faith(state, player)
            change = f"{player.name} produced {format_counts(produced)}"
        else:
            return []

        rm.restore()
        player.phase = TurnPhase.LEADER_MANAGE_AFTER
        return [change]

    # ------------------------------------------------------------------
    # Development cards
    # ------------------------------------------------------------------

    def _handle_buy_development(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        card = action.payload.card
        if not isinstance(card, DevelopmentCard):
            raise InvalidSelection("No development card given")
        slot = action.payload.index
        if card.level > state.config.max_development_level:
            raise InvalidCardPlacement(
                f"Card level {card.level} is above the maximum {state.config.max_development_level}"
            )
        player.cards.check_placement(card, slot)
        any_owed = player.resources.require(card.cost, is_buy_development=True)
        player.cards.set_pending_card(card, slot)

        player.phase = (
            TurnPhase.ANY_BUY_DEV_CONVERSION if any_owed else TurnPhase.BUY_DEV_RESOURCE_REMOVING
        )
        changes = [f"{player.name} is buying {card.card_id} for slot {slot}"]
        changes.extend(self._control_buffer_status(state, player))
        return ActionResult.success_with_state(state, changes=changes)

    # ------------------------------------------------------------------
    # Production
    # ------------------------------------------------------------------

    def _select_production(self, player: PlayerState, key: str, recipe: ProductionRecipe) -> None:
        player.cards.check_production_unused(key)
        player.resources.add_production(recipe.cost, recipe.profit)
        player.cards.mark_production(key)
        player.phase = TurnPhase.PRODUCTION_SELECTION

    def _handle_base_production(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        config = state.config
        recipe = ProductionRecipe(
            cost=(Resource(ResourceType.ANY, config.base_production_cost),),
            profit=(Resource(ResourceType.ANY, config.base_production_profit),),
        )
        self._select_production(player, BASE_PRODUCTION, recipe)
        return ActionResult.success_with_state(
            state, changes=[f"{player.name} selected the base production"]
        )

    def _handle_development_production(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        slot = action.payload.index
        recipe = player.cards.slot_production(slot)
        self._select_production(player, f"slot:{slot}", recipe)
        return ActionResult.success_with_state(
            state, changes=[f"{player.name} selected the production in slot {slot}"]
        )

    def _handle_leader_production(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        index = action.payload.index
        leader = player.cards.get_leader(index)
        if not leader.has_live_effect(EffectKind.PRODUCTION):
            raise InvalidSelection(f"Leader {leader.leader_id} has no active production")
        self.resolver.fire(state, player, index)
        player.phase = TurnPhase.PRODUCTION_SELECTION
        return ActionResult.success_with_state(
            state, changes=[f"{player.name} selected the production of {leader.leader_id}"]
        )

    def _handle_stop_production(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        rm = player.resources
        any_cost = rm.stop_production()
        if any_cost:
            player.phase = TurnPhase.ANY_PRODUCE_COST_CONVERSION
        elif rm.any_to_produce:
            player.phase = TurnPhase.ANY_PRODUCE_PROFIT_CONVERSION
        else:
            player.phase = TurnPhase.PRODUCTION_RESOURCE_REMOVING
        changes = [f"{player.name} must pay {format_counts(rm.buffer)}"]
        changes.extend(self._control_buffer_status(state, player))
        return ActionResult.success_with_state(state, changes=changes)

    # ------------------------------------------------------------------
    # Wildcards
    # ------------------------------------------------------------------

    def _handle_any_conversion(
        self, state: GameState, player: PlayerState, action: Action
    ) -> ActionResult:
        rm = player.resources
        resources = action.payload.resources

        if player.phase == TurnPhase.ANY_PRODUCE_COST_CONVERSION:
            rm.convert_any_requirement(resources, is_buy_development=False)
            player.phase = (
                TurnPhase.ANY_PRODUCE_PROFIT_CONVERSION
                if rm.any_to_produce
                else TurnPhase.PRODUCTION_RESOURCE_REMOVING
            )
        elif player.phase == TurnPhase.ANY_PRODUCE_PROFIT_CONVERSION:
            rm.convert_any_production_profit(resources)
            player.phase = TurnPhase.PRODUCTION_RESOURCE_REMOVING
        elif player.phase == TurnPhase.ANY_BUY_DEV_CONVERSION:
            rm.convert_any_requirement(resources, is_buy_development=True)
            player.phase = TurnPhase.BUY_DEV_RESOURCE_REMOVING
        else:
            raise InvalidPhaseAction(f"Nothing to convert during {player.phase.value}")

        changes = [f"{player.name} declared {format_counts(to_counts(resources))}"]
        changes.extend(self._control_buffer_status(state, player))
        return ActionResult.success_with_state(state, changes=changes)

    # ------------------------------------------------------------------
    # Turn management
    # ------------------------------------------------------------------

    def _handle_end_turn(self, state: GameState, player: PlayerState, action: Action) -> ActionResult:
        return ActionResult.success_with_state(state, changes=self._next_turn(state))

    def _handle_force_end_turn(
        self, state: GameState, player: PlayerState | None, action: Action
    ) -> ActionResult:
        """
        Orchestrator escape hatch for idle or disconnected players.

        During setup it completes the named player's setup with default
        choices; during play it abandons the current player's action and
        passes the turn.
        """
        if state.phase == GamePhase.SETUP:
            if player is None:
                raise InvalidSelection("Name the player whose setup to complete")
            return ActionResult.success_with_state(state, changes=self._auto_setup(state, player))

        current = state.current_player
        if current.phase == TurnPhase.WHITE_MARBLE_CONVERSION:
            state.market.reset()
        current.restore()
        changes = [f"{current.name}'s turn was ended"]
        changes.extend(self._next_turn(state))
        return ActionResult.success_with_state(state, changes=changes)

    def _auto_setup(self, state: GameState, player: PlayerState) -> list[str]:
        changes = []
        if player.phase == TurnPhase.SETUP_LEADER:
            while len(player.cards.leaders) > state.config.leaders_kept:
                player.cards.discard_leader_setup(0)
            changes.extend(self._finish_leader_setup(state, player))
        if player.phase == TurnPhase.SETUP_RESOURCE:
            owed = player.setup_resources_owed
            self._place_setup_resources(player, {ResourceType.COIN: owed})
            player.setup_resources_owed = 0
            player.phase = TurnPhase.SETUP_DONE
            changes.append(f"{player.name} took coin:{owed}")
            changes.extend(self._maybe_start_match(state))
        return changes

    def _handle_set_player_active(
        self, state: GameState, player: PlayerState | None, action: Action
    ) -> ActionResult:
        if player is None:
            raise InvalidSelection("No player given")
        player.active = action.payload.active
        status = "active" if player.active else "inactive"
        return ActionResult.success_with_state(state, changes=[f"{player.name} is now {status}"])

    def _next_active_index(self, state: GameState, after: int) -> int:
        for step in range(1, state.num_players + 1):
            idx = (after + step) % state.num_players
            if state.players[idx].active:
                return idx
        raise InvalidSelection("No active players left")

    def _next_turn(self, state: GameState) -> list[str]:
        current = state.current_player
        current.restore()
        current.phase = TurnPhase.IDLE
        state.current_player_idx = self._next_active_index(state, state.current_player_idx)
        state.turn_number += 1
        self._begin_turn(state)
        return [f"Turn ended. Next player: {state.current_player.name}"]

    def _begin_turn(self, state: GameState) -> None:
        player = state.current_player
        player.restore()
        player.phase = TurnPhase.LEADER_MANAGE_BEFORE

    # ------------------------------------------------------------------
    # Faith
    # ------------------------------------------------------------------

    def _apply_faith(self, state: GameState, player: PlayerState) -> None:
        reached = player.resources.apply_faith_points(player.faith)
        self._vatican_reports(state, reached)

    def _move_faith(self, state: GameState, player: PlayerState, steps: int) -> None:
        self._vatican_reports(state, player.faith.move(steps))

    def _vatican_reports(self, state: GameState, reached: list[int]) -> None:
        for report_id in reached:
            if report_id in state.vatican_reports:
                continue
            state.vatican_reports.append(report_id)
            for p in state.players:
                p.faith.resolve_report(report_id)
            logger.info("Vatican report %d triggered in %s", report_id, state.game_id)


def apply_action(state: GameState, action: Action) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    return Reducer().apply(state, action)
