"""
Pytest fixtures for Renaissance tests.
"""

import pytest

from ..config import RulesConfig
from ..engine_core.action import Action, ActionType
from ..engine_core.effect_resolver import EffectResolver
from ..engine_core.effects import (
    DepotEffect,
    DiscountEffect,
    Leader,
    MarbleEffect,
    ProductionEffect,
    ProductionRecipe,
)
from ..engine_core.market import Marble, Market
from ..engine_core.reducer import apply_action
from ..engine_core.resource_manager import ResourceManager
from ..engine_core.resources import Resource, ResourceType
from ..engine_core.setup import setup_match
from ..engine_core.state import GameState

W, B, G, Y, P, R = (
    Marble.WHITE, Marble.BLUE, Marble.GREY, Marble.YELLOW, Marble.PURPLE, Marble.RED
)


def make_market() -> Market:
    """
    A known 3x4 market.

        row 0: white  blue   grey   yellow
        row 1: purple white  white  red
        row 2: blue   grey   yellow purple
        spare: white
    """
    return Market(
        grid=[
            [W, B, G, Y],
            [P, W, W, R],
            [B, G, Y, P],
        ],
        spare=W,
    )


def marble_leader(leader_id: str, rtype: ResourceType, active: bool = True) -> Leader:
    return Leader(leader_id, effect=MarbleEffect(transform_into=(Resource(rtype),)), active=active)


def discount_leader(leader_id: str, rtype: ResourceType) -> Leader:
    return Leader(leader_id, effect=DiscountEffect(discount=(Resource(rtype),)))


def depot_leader(leader_id: str, rtype: ResourceType) -> Leader:
    return Leader(leader_id, effect=DepotEffect(resource_type=rtype))


def production_leader(leader_id: str, cost: ResourceType) -> Leader:
    recipe = ProductionRecipe(
        cost=(Resource(cost),),
        profit=(Resource(ResourceType.ANY), Resource(ResourceType.FAITH)),
    )
    return Leader(leader_id, effect=ProductionEffect(recipe=recipe))


def give_leader(state: GameState, player_id: str, leader: Leader, activate: bool = True) -> int:
    """Put a leader in a player's hand, activating it through the resolver."""
    player = state.get_player(player_id)
    leader.active = False
    player.cards.leaders.append(leader)
    index = len(player.cards.leaders) - 1
    if activate:
        EffectResolver().activate_leader(state, player, index)
    return index


def act(state: GameState, action: Action) -> GameState:
    """Apply an action that must succeed and return the new state."""
    result = apply_action(state, action)
    assert result.success, result.error
    return result.new_state


@pytest.fixture
def config() -> RulesConfig:
    return RulesConfig()


@pytest.fixture
def rm() -> ResourceManager:
    """An empty resource manager with depots of capacity 1, 2, 3."""
    return ResourceManager()


@pytest.fixture
def market() -> Market:
    return make_market()


@pytest.fixture
def leader_deck() -> list[Leader]:
    """Sixteen interchangeable leaders, enough for four players."""
    return [marble_leader(f"leader_{i}", ResourceType.COIN, active=False) for i in range(16)]


@pytest.fixture
def setup_state(leader_deck) -> GameState:
    """A four-player match at the start of setup."""
    return setup_match(["ada", "bo", "cy", "di"], leader_deck=leader_deck, random_seed=7)


@pytest.fixture
def playing_state() -> GameState:
    """
    A two-player match past setup, with ada to play and the known market.

    bo took one stone as starting resource; nobody holds leaders.
    """
    state = setup_match(["ada", "bo"], random_seed=3, game_id="test_match")
    state = act(
        state,
        Action.simple(ActionType.SETUP_RESOURCES, "bo", resources=[Resource(ResourceType.STONE)]),
    )
    state.market = make_market()
    return state
