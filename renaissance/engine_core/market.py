"""
Marble Market - shared grid of coloured marbles.

Taking a line pushes the spare marble in at the leading end; every marble
shifts one step toward the trailing end and the one pushed out becomes the
new spare. The other marbles of the line are collected:
- coloured marbles become resources
- red marbles become faith
- white marbles are only counted; leader marble effects decide what they are

The per-insertion tallies stay on the market until reset(), so a white
marble conversion can be completed by a later action.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import random
from typing import Iterable

from .errors import InvalidSelection, WildcardConversionMismatch
from .resources import Counts, Resource, ResourceType, add_counts, to_counts, to_resources


class Marble(str, Enum):
    WHITE = "white"
    BLUE = "blue"
    GREY = "grey"
    YELLOW = "yellow"
    PURPLE = "purple"
    RED = "red"

    @property
    def resource_type(self) -> ResourceType | None:
        """What the marble yields; None for white marbles."""
        return MARBLE_RESOURCES[self]


MARBLE_RESOURCES: dict[Marble, ResourceType | None] = {
    Marble.WHITE: None,
    Marble.BLUE: ResourceType.SHIELD,
    Marble.GREY: ResourceType.STONE,
    Marble.YELLOW: ResourceType.COIN,
    Marble.PURPLE: ResourceType.SERVANT,
    Marble.RED: ResourceType.FAITH,
}


@dataclass
class Market:
    """R x C grid of marbles plus the spare marble."""
    grid: list[list[Marble]]
    spare: Marble

    # Per-insertion tallies, cleared by reset()
    resources_to_send: Counts = field(default_factory=dict)
    white_marble_drew: int = 0

    @classmethod
    def create(
        cls,
        marbles: dict[str, int],
        rows: int,
        cols: int,
        rng: random.Random | None = None,
    ) -> Market:
        """Shuffle a marble bag into a fresh market."""
        rng = rng or random.Random()
        bag = [Marble(color) for color, count in marbles.items() for _ in range(count)]
        if len(bag) != rows * cols + 1:
            raise ValueError(f"Need {rows * cols + 1} marbles, got {len(bag)}")
        rng.shuffle(bag)
        grid = [bag[r * cols:(r + 1) * cols] for r in range(rows)]
        return cls(grid=grid, spare=bag[-1])

    @property
    def rows(self) -> int:
        return len(self.grid)

    @property
    def cols(self) -> int:
        return len(self.grid[0]) if self.grid else 0

    def _collect(self, marbles: Iterable[Marble]) -> None:
        for marble in marbles:
            rtype = marble.resource_type
            if rtype is None:
                self.white_marble_drew += 1
            else:
                self.resources_to_send[rtype] = self.resources_to_send.get(rtype, 0) + 1

    def _push(self, line: list[Marble]) -> tuple[list[Marble], Marble]:
        """Return (new line, pushed-out marble) after inserting the spare."""
        return [self.spare] + line[:-1], line[-1]

    def insert_row(self, row: int) -> None:
        if not 0 <= row < self.rows:
            raise InvalidSelection(f"Row must be between 0 and {self.rows - 1}")
        line = self.grid[row]
        new_line, pushed_out = self._push(line)
        self._collect(line[:-1])
        self.grid[row] = new_line
        self.spare = pushed_out

    def insert_col(self, col: int) -> None:
        if not 0 <= col < self.cols:
            raise InvalidSelection(f"Column must be between 0 and {self.cols - 1}")
        line = [self.grid[r][col] for r in range(self.rows)]
        new_line, pushed_out = self._push(line)
        self._collect(line[:-1])
        for r, marble in enumerate(new_line):
            self.grid[r][col] = marble
        self.spare = pushed_out

    def insert_leader_resources(self, resources: Iterable[Resource]) -> None:
        self.resources_to_send = add_counts(self.resources_to_send, to_counts(resources))

    def convert_white_marbles(self, count: int, transform_into: Iterable[Resource]) -> Counts:
        """
        Turn ``count`` of the drawn white marbles into a leader's bundle.

        Returns the resources added to the pending output.
        """
        if count <= 0:
            raise WildcardConversionMismatch("Must convert at least one white marble")
        if count > self.white_marble_drew:
            raise WildcardConversionMismatch(
                f"Only {self.white_marble_drew} white marbles left to convert"
            )
        produced = to_counts(r.scaled(count) for r in transform_into)
        self.insert_leader_resources(to_resources(produced))
        self.white_marble_drew -= count
        return produced

    def discard_white_marbles(self) -> None:
        self.white_marble_drew = 0

    def get_resources_to_send(self) -> list[Resource]:
        return to_resources(self.resources_to_send)

    def reset(self) -> None:
        self.resources_to_send = {}
        self.white_marble_drew = 0
