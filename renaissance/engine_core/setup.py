"""
Match Setup - Creates the initial game state.

This module handles:
- Shuffling the marble bag into the market, with a seed for determinism
- Creating one board per player from the rules config
- Dealing leaders from a shuffled leader deck

Players then play the setup phase through the reducer: discard leaders
down to the configured hand size, then choose their starting resources.
"""

from __future__ import annotations
import logging
import random
import uuid

from ..config import RulesConfig
from .cards import CardManager
from .effects import Leader
from .faith_track import FaithTrack
from .market import Market
from .resource_manager import ResourceManager
from .state import GamePhase, GameState, PlayerState, TurnPhase
from .storage import Warehouse

logger = logging.getLogger(__name__)

MIN_PLAYERS = 1
MAX_PLAYERS = 4


def setup_match(
    player_names: list[str],
    leader_deck: list[Leader] | None = None,
    config: RulesConfig | None = None,
    random_seed: int | None = None,
    game_id: str | None = None,
) -> GameState:
    """
    Set up a new match.

    Args:
        player_names: Names in turn order; player ids are derived from them
        leader_deck: Leaders to shuffle and deal (none dealt if omitted)
        config: Rules constants (standard rules if omitted)
        random_seed: Seed for the market and leader shuffles
        game_id: Match id (random if omitted)

    Returns:
        GameState in the setup phase
    """
    config = config or RulesConfig()
    if not MIN_PLAYERS <= len(player_names) <= MAX_PLAYERS:
        raise ValueError(f"A match needs {MIN_PLAYERS}-{MAX_PLAYERS} players")
    if len(set(player_names)) != len(player_names):
        raise ValueError("Player names must be unique")
    if len(player_names) > len(config.setup_resources):
        raise ValueError("Rules config has no setup bonus for every position")

    seed = random_seed if random_seed is not None else random.randrange(1_000_000)
    rng = random.Random(seed)

    market = Market.create(config.marbles, config.market_rows, config.market_cols, rng)
    hands = _deal_leaders(leader_deck or [], len(player_names), config.leaders_dealt, rng)
    players = [
        _create_player(name, hand, config) for name, hand in zip(player_names, hands)
    ]
    state = GameState(
        game_id=game_id or str(uuid.uuid4()),
        market=market,
        config=config,
        phase=GamePhase.SETUP,
        players=players,
        random_seed=seed,
    )
    for player in players:
        if len(player.cards.leaders) <= config.leaders_kept:
            # Nothing to discard
            grant_setup_bonus(state, player)
    start_match_if_ready(state)
    logger.info("Created match %s for %d player(s)", state.game_id, len(players))
    return state


def _create_player(name: str, leaders: list[Leader], config: RulesConfig) -> PlayerState:
    return PlayerState(
        player_id=name,
        name=name,
        resources=ResourceManager(warehouse=Warehouse.with_capacities(config.depot_capacities)),
        cards=CardManager(
            slots=[[] for _ in range(config.development_slots)],
            leaders=leaders,
        ),
        faith=FaithTrack(length=config.faith_track_length, sections=config.vatican_sections),
        phase=TurnPhase.SETUP_LEADER,
    )


def _deal_leaders(
    deck: list[Leader],
    num_players: int,
    per_player: int,
    rng: random.Random,
) -> list[list[Leader]]:
    """Shuffle a copy of the deck and deal ``per_player`` leaders to each player."""
    cards = list(deck)
    rng.shuffle(cards)
    if cards and len(cards) < num_players * per_player:
        raise ValueError(
            f"Leader deck has {len(cards)} cards, {num_players * per_player} needed"
        )
    return [cards[i * per_player:(i + 1) * per_player] for i in range(num_players)]


def grant_setup_bonus(state: GameState, player: PlayerState) -> list[int]:
    """
    Give a player the faith and wildcard resources of their seat.

    Moves the player to SETUP_RESOURCE, or to SETUP_DONE when nothing is
    owed. Returns the pope spaces reached by the starting faith.
    """
    position = state.player_position(player.player_id)
    resources, faith = state.config.setup_bonus(position)
    reached = player.faith.move(faith)
    player.setup_resources_owed = resources
    player.phase = TurnPhase.SETUP_RESOURCE if resources else TurnPhase.SETUP_DONE
    return reached


def start_match_if_ready(state: GameState) -> bool:
    """Leave the setup phase once every player is done with it."""
    if state.phase != GamePhase.SETUP:
        return False
    if any(p.phase != TurnPhase.SETUP_DONE for p in state.players):
        return False

    state.phase = GamePhase.PLAYING
    for p in state.players:
        p.phase = TurnPhase.IDLE
    active = [i for i, p in enumerate(state.players) if p.active]
    state.current_player_idx = active[0] if active else 0
    state.turn_number = 1
    first = state.current_player
    first.restore()
    first.phase = TurnPhase.LEADER_MANAGE_BEFORE
    logger.info("Match %s started, %s plays first", state.game_id, first.name)
    return True
