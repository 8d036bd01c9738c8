"""
Effect Resolver - activates, fires and discards leader effects.

Effects are plain data; this module gives them behaviour. Dispatch is on
the effect's ``kind`` discriminator and on the player's turn phase:
- on activation, standing effects (discount, depot) register their
  contribution with the player's resource manager
- firing applies a one-shot effect (marble transform, extra production)
  and is only legal in the phases listed in FIRING_PHASES
- on discard, whatever the effect contributed is withdrawn

The market and resource manager are looked up from the game state at the
moment of use; effects never hold them.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable

from .effects import (
    DepotEffect,
    DiscountEffect,
    EffectKind,
    Leader,
    MarbleEffect,
    ProductionEffect,
)
from .errors import InvalidPhaseAction, InvalidSelection
from .resources import Counts, to_counts
from .state import GameState, PlayerState, TurnPhase


FIRING_PHASES: dict[EffectKind, frozenset[TurnPhase]] = {
    EffectKind.MARBLE: frozenset({TurnPhase.WHITE_MARBLE_CONVERSION}),
    EffectKind.PRODUCTION: frozenset({
        TurnPhase.LEADER_MANAGE_BEFORE,
        TurnPhase.PRODUCTION_SELECTION,
    }),
}


@dataclass
class EffectResolver:
    """Stateless helper; all state lives in GameState."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def activate_leader(self, state: GameState, player: PlayerState, index: int) -> Leader:
        """
        Activate a leader after checking its requirements.

        Resource requirements are only checked, never spent.
        """
        leader = player.cards.get_leader(index)
        if leader.active:
            raise InvalidSelection(f"Leader {leader.leader_id} is already active")

        player.resources.can_i_afford(leader.resource_requirements)
        player.cards.check_leader_requirements(leader)

        handlers: dict[EffectKind, Callable[[GameState, PlayerState, Leader], None]] = {
            EffectKind.DISCOUNT: self._activate_discount,
            EffectKind.DEPOT: self._activate_depot,
        }
        handler = handlers.get(leader.effect_kind)
        if handler:
            handler(state, player, leader)
        leader.active = True
        return leader

    def discard_leader(self, state: GameState, player: PlayerState, index: int) -> Leader:
        """
        Remove a leader from the hand, withdrawing its effect if it was live.

        A depot leader can only be discarded once its depot is empty.
        """
        leader = player.cards.get_leader(index)
        if leader.active:
            handlers: dict[EffectKind, Callable[[GameState, PlayerState, Leader], None]] = {
                EffectKind.DISCOUNT: self._discard_discount,
                EffectKind.DEPOT: self._discard_depot,
            }
            handler = handlers.get(leader.effect_kind)
            if handler:
                handler(state, player, leader)
            leader.active = False
        player.cards.leaders.pop(index)
        return leader

    def _activate_discount(self, state: GameState, player: PlayerState, leader: Leader) -> None:
        effect: DiscountEffect = leader.effect
        player.resources.add_discount(effect.discount)

    def _activate_depot(self, state: GameState, player: PlayerState, leader: Leader) -> None:
        effect: DepotEffect = leader.effect
        capacity = effect.capacity or state.config.leader_depot_capacity
        leader.depot_index = player.resources.add_leader_depot(effect.resource_type, capacity)

    def _discard_discount(self, state: GameState, player: PlayerState, leader: Leader) -> None:
        effect: DiscountEffect = leader.effect
        player.resources.remove_discount(effect.discount)

    def _discard_depot(self, state: GameState, player: PlayerState, leader: Leader) -> None:
        removed = leader.depot_index
        player.resources.remove_leader_depot(removed)
        leader.depot_index = None
        # Later leader depots shift down by one
        for other in player.cards.leaders:
            if other.depot_index is not None and other.depot_index > removed:
                other.depot_index -= 1

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------

    def fire(
        self,
        state: GameState,
        player: PlayerState,
        index: int,
        **params: Any,
    ) -> Counts:
        """
        Fire an active leader's one-shot effect in the player's current phase.

        Returns the resources the effect produced or queued.
        """
        leader = player.cards.get_leader(index)
        if not leader.active or leader.effect is None:
            raise InvalidSelection(f"Leader {leader.leader_id} has no active effect")

        kind = leader.effect_kind
        if kind not in FIRING_PHASES:
            raise InvalidSelection(f"{kind.value} effects apply on their own")
        if player.phase not in FIRING_PHASES[kind]:
            raise InvalidPhaseAction(
                f"{kind.value} effects cannot be used during {player.phase.value}"
            )

        handlers: dict[EffectKind, Callable[..., Counts]] = {
            EffectKind.MARBLE: self._fire_marble,
            EffectKind.PRODUCTION: self._fire_production,
        }
        return handlers[kind](state, player, index, leader, **params)

    def _fire_marble(
        self,
        state: GameState,
        player: PlayerState,
        index: int,
        leader: Leader,
        count: int = 0,
    ) -> Counts:
        effect: MarbleEffect = leader.effect
        return state.market.convert_white_marbles(count, effect.transform_into)

    def _fire_production(
        self,
        state: GameState,
        player: PlayerState,
        index: int,
        leader: Leader,
    ) -> Counts:
        effect: ProductionEffect = leader.effect
        key = f"leader:{index}"
        player.cards.check_production_unused(key)
        player.resources.add_production(effect.recipe.cost, effect.recipe.profit)
        player.cards.mark_production(key)
        return to_counts(effect.recipe.profit)
