"""
Rules configuration.

All numeric rule constants live here so a match can be created with
house rules or a smaller board in tests. Values can be loaded from a
JSON file; missing keys fall back to the standard rules.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
import json


DEFAULT_MARBLES: dict[str, int] = {
    "white": 4,
    "blue": 2,
    "grey": 2,
    "yellow": 2,
    "purple": 2,
    "red": 1,
}


@dataclass
class RulesConfig:
    """
    Rule constants for a match.

    The marble bag must fill exactly rows * cols cells plus the spare marble.
    """
    # Market
    market_rows: int = 3
    market_cols: int = 4
    marbles: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_MARBLES))

    # Warehouse
    depot_capacities: tuple[int, ...] = (1, 2, 3)
    leader_depot_capacity: int = 2

    # Faith track: (section_start, pope_space) per vatican report
    faith_track_length: int = 24
    vatican_sections: tuple[tuple[int, int], ...] = ((5, 8), (12, 16), (19, 24))

    # Leaders
    leaders_dealt: int = 4
    leaders_kept: int = 2

    # Setup bonuses indexed by turn order position
    setup_resources: tuple[int, ...] = (0, 1, 1, 2)
    setup_faith: tuple[int, ...] = (0, 0, 1, 1)

    # Development board
    development_slots: int = 3
    max_development_level: int = 3

    # Base production: ANY x in -> ANY x out
    base_production_cost: int = 2
    base_production_profit: int = 1

    def __post_init__(self):
        if self.market_rows < 1 or self.market_cols < 1:
            raise ValueError("Market must have at least one row and one column")
        expected = self.market_rows * self.market_cols + 1
        if sum(self.marbles.values()) != expected:
            raise ValueError(
                f"Marble bag holds {sum(self.marbles.values())} marbles, "
                f"market needs {expected}"
            )
        if any(c < 1 for c in self.depot_capacities):
            raise ValueError("Depot capacities must be positive")
        if self.leaders_kept > self.leaders_dealt:
            raise ValueError("Cannot keep more leaders than are dealt")
        # JSON gives lists back
        self.depot_capacities = tuple(self.depot_capacities)
        self.vatican_sections = tuple(tuple(s) for s in self.vatican_sections)
        self.setup_resources = tuple(self.setup_resources)
        self.setup_faith = tuple(self.setup_faith)

    def setup_bonus(self, position: int) -> tuple[int, int]:
        """Return (wildcard resources, faith steps) for a turn order position."""
        resources = self.setup_resources[position] if position < len(self.setup_resources) else 0
        faith = self.setup_faith[position] if position < len(self.setup_faith) else 0
        return resources, faith

    def to_dict(self) -> dict:
        return asdict(self)


def load_rules_config(path: Path | str) -> RulesConfig:
    """Load rules from a JSON file, or return the standard rules if not found."""
    path = Path(path)
    if not path.exists():
        return RulesConfig()

    with open(path, "r", encoding="utf-8") as f:
        saved = json.load(f)

    known = {f.name for f in fields(RulesConfig)}
    unknown = set(saved) - known
    if unknown:
        raise ValueError(f"Unknown rules keys: {sorted(unknown)}")
    return RulesConfig(**saved)
