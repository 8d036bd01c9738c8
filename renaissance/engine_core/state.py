"""
Game State - the complete state of one match.

Design principles:
- Players are addressed by player_id through the match; nothing in a
  player's board points back at the market or at other players
- The reducer clones the state before applying an action and keeps the
  clone only on success
- Serializable: api.snapshot turns it into a versioned document
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from copy import deepcopy
from enum import Enum

from ..config import RulesConfig
from .cards import CardManager
from .errors import UnknownPlayer
from .faith_track import FaithTrack
from .market import Market
from .resource_manager import ResourceManager


class GamePhase(str, Enum):
    """High-level match phases."""
    SETUP = "setup"
    PLAYING = "playing"


class TurnPhase(str, Enum):
    """What kind of input a player is expected to send next."""
    # Setup, played by everyone at once
    SETUP_LEADER = "setup_leader"
    SETUP_RESOURCE = "setup_resource"
    SETUP_DONE = "setup_done"

    # Not this player's turn
    IDLE = "idle"

    # Start of turn: leaders may be managed, one main action may be taken
    LEADER_MANAGE_BEFORE = "leader_manage_before"

    # Market action
    WHITE_MARBLE_CONVERSION = "white_marble_conversion"
    MARKET_RESOURCE_POSITIONING = "market_resource_positioning"

    # Buy development card
    ANY_BUY_DEV_CONVERSION = "any_buy_dev_conversion"
    BUY_DEV_RESOURCE_REMOVING = "buy_dev_resource_removing"

    # Production
    PRODUCTION_SELECTION = "production_selection"
    ANY_PRODUCE_COST_CONVERSION = "any_produce_cost_conversion"
    ANY_PRODUCE_PROFIT_CONVERSION = "any_produce_profit_conversion"
    PRODUCTION_RESOURCE_REMOVING = "production_resource_removing"

    # Main action done: leaders may be managed, then the turn ends
    LEADER_MANAGE_AFTER = "leader_manage_after"


@dataclass
class PlayerState:
    """
    One player's board.

    resources/cards/faith are the three sub-boards; ``phase`` is the
    player's position in the turn state machine.
    """
    player_id: str
    name: str
    resources: ResourceManager = field(default_factory=ResourceManager)
    cards: CardManager = field(default_factory=CardManager)
    faith: FaithTrack = field(default_factory=FaithTrack)
    phase: TurnPhase = TurnPhase.SETUP_LEADER
    active: bool = True

    # Wildcard resources still to be declared during setup
    setup_resources_owed: int = 0

    def restore(self) -> None:
        """Clear per-turn leftovers at the start of a turn."""
        self.resources.restore()
        self.cards.restore()


@dataclass
class GameState:
    """
    Complete state of a match.

    This is the canonical state the engine operates on.
    All state changes go through the reducer.
    """
    game_id: str
    market: Market
    config: RulesConfig = field(default_factory=RulesConfig)

    phase: GamePhase = GamePhase.SETUP
    turn_number: int = 0
    current_player_idx: int = 0

    players: list[PlayerState] = field(default_factory=list)

    # Vatican reports already triggered in this match
    vatican_reports: list[int] = field(default_factory=list)

    # History (for replay and logging)
    action_history: list[Any] = field(default_factory=list)

    random_seed: int = 0

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_player_idx]

    @property
    def num_players(self) -> int:
        return len(self.players)

    def get_player(self, player_id: str) -> PlayerState:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        raise UnknownPlayer(f"Player {player_id} not found")

    def player_position(self, player_id: str) -> int:
        for i, p in enumerate(self.players):
            if p.player_id == player_id:
                return i
        raise UnknownPlayer(f"Player {player_id} not found")

    def other_players(self, player_id: str) -> list[PlayerState]:
        return [p for p in self.players if p.player_id != player_id]

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
