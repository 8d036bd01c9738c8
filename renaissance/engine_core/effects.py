"""
Leader effects - a closed set of tagged variants.

Each variant carries only the data it needs and a ``kind`` discriminator.
Effects hold no reference to the market or to a resource manager; the
EffectResolver looks those up in the game state when an effect fires.

Variants:
- MarbleEffect: each white marble becomes ``transform_into``
- ProductionEffect: an extra production recipe
- DiscountEffect: standing discount on development card costs
- DepotEffect: an extra depot of a fixed type
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from .resources import Resource, ResourceType


class EffectKind(str, Enum):
    MARBLE = "marble"
    PRODUCTION = "production"
    DISCOUNT = "discount"
    DEPOT = "depot"


@dataclass(frozen=True)
class ProductionRecipe:
    """Resources consumed and produced by one production."""
    cost: tuple[Resource, ...] = ()
    profit: tuple[Resource, ...] = ()


@dataclass(frozen=True)
class MarbleEffect:
    kind: ClassVar[EffectKind] = EffectKind.MARBLE
    transform_into: tuple[Resource, ...]


@dataclass(frozen=True)
class ProductionEffect:
    kind: ClassVar[EffectKind] = EffectKind.PRODUCTION
    recipe: ProductionRecipe


@dataclass(frozen=True)
class DiscountEffect:
    kind: ClassVar[EffectKind] = EffectKind.DISCOUNT
    discount: tuple[Resource, ...]


@dataclass(frozen=True)
class DepotEffect:
    kind: ClassVar[EffectKind] = EffectKind.DEPOT
    resource_type: ResourceType
    # None uses the rules config leader depot capacity
    capacity: int | None = None


Effect = Union[MarbleEffect, ProductionEffect, DiscountEffect, DepotEffect]


@dataclass(frozen=True)
class CardRequirement:
    """Owned development cards needed to activate a leader."""
    color: str
    min_level: int = 1
    count: int = 1


@dataclass
class Leader:
    """
    A leader card: activation requirements plus at most one effect.

    ``depot_index`` remembers which leader depot a DepotEffect created so it
    can be removed again on discard.
    """
    leader_id: str
    effect: Effect | None = None
    resource_requirements: tuple[Resource, ...] = ()
    card_requirements: tuple[CardRequirement, ...] = ()
    active: bool = False
    depot_index: int | None = None

    @property
    def effect_kind(self) -> EffectKind | None:
        return self.effect.kind if self.effect is not None else None

    def has_live_effect(self, kind: EffectKind) -> bool:
        return self.active and self.effect_kind == kind
