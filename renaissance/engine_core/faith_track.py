"""
Faith Track - per-player progress track.

The track is a collaborator of the resource model: faith points gathered
during an action are moved onto the track when the action completes.
Pope spaces trigger vatican reports; the report outcome for each player is
recorded as a favour tile status. Victory points are not tracked here.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class FavorStatus(str, Enum):
    """Status of a player's papal favour tile for one vatican report."""
    PENDING = "pending"
    ACTIVE = "active"
    DISCARDED = "discarded"


@dataclass
class FaithTrack:
    """
    A player's marker position plus one favour tile per vatican section.

    ``sections`` holds (section_start, pope_space) pairs, in track order.
    """
    length: int = 24
    sections: tuple[tuple[int, int], ...] = ((5, 8), (12, 16), (19, 24))
    position: int = 0
    favors: list[FavorStatus] = field(default_factory=list)

    def __post_init__(self):
        if not self.favors:
            self.favors = [FavorStatus.PENDING for _ in self.sections]

    def move(self, steps: int) -> list[int]:
        """
        Advance the marker, clamped to the end of the track.

        Returns the report ids of every pope space reached or passed by this move.
        """
        if steps <= 0:
            return []
        before = self.position
        self.position = min(self.length, self.position + steps)
        return [
            report_id
            for report_id, (_, pope_space) in enumerate(self.sections)
            if before < pope_space <= self.position
        ]

    def is_in_section(self, report_id: int) -> bool:
        start, _ = self.sections[report_id]
        return self.position >= start

    def resolve_report(self, report_id: int) -> FavorStatus:
        """Flip or discard this player's favour tile for a triggered report."""
        if self.favors[report_id] == FavorStatus.PENDING:
            self.favors[report_id] = (
                FavorStatus.ACTIVE if self.is_in_section(report_id) else FavorStatus.DISCARDED
            )
        return self.favors[report_id]
