"""
Resources - typed, fungible counters.

A Resource is a (type, amount) pair. Collections of resources are handled
as plain ``dict[ResourceType, int]`` counts; the helpers below keep those
dicts free of zero entries so equality checks stay meaningful.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class ResourceType(str, Enum):
    """Resource kinds. ANY is a wildcard, FAITH is never stored."""
    COIN = "coin"
    SERVANT = "servant"
    SHIELD = "shield"
    STONE = "stone"
    FAITH = "faith"
    ANY = "any"

    @property
    def is_storable(self) -> bool:
        """Only concrete goods may enter a depot, the strongbox or the buffer."""
        return self in STORABLE_TYPES


STORABLE_TYPES = frozenset({
    ResourceType.COIN,
    ResourceType.SERVANT,
    ResourceType.SHIELD,
    ResourceType.STONE,
})


@dataclass(frozen=True)
class Resource:
    """An amount of a single resource type."""
    type: ResourceType
    amount: int = 1

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"Resource amount must be >= 0, got {self.amount}")

    def scaled(self, factor: int) -> Resource:
        return Resource(self.type, self.amount * factor)

    def __str__(self) -> str:
        return f"{self.type.value}:{self.amount}"


Counts = dict[ResourceType, int]


def to_counts(resources: Iterable[Resource]) -> Counts:
    """Sum a list of resources into per-type counts."""
    counts: Counts = {}
    for r in resources:
        if r.amount:
            counts[r.type] = counts.get(r.type, 0) + r.amount
    return counts


def to_resources(counts: Counts) -> list[Resource]:
    """Inverse of to_counts, in enum order."""
    return [Resource(t, counts[t]) for t in ResourceType if counts.get(t)]


def add_counts(a: Counts, b: Counts) -> Counts:
    result = dict(a)
    for t, n in b.items():
        if n:
            result[t] = result.get(t, 0) + n
    return result


def total(counts: Counts) -> int:
    return sum(counts.values())


def format_counts(counts: Counts) -> str:
    if not counts:
        return "nothing"
    return ", ".join(str(r) for r in to_resources(counts))
