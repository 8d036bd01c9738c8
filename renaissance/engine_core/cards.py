"""
Cards - development cards, leader hand and production selection.

The CardManager is the per-player card board:
- development slots (stacks where each card is one level above the last)
- the leader hand
- the card bought this turn, waiting for its cost to be paid
- the productions already chosen this turn
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .effects import CardRequirement, EffectKind, Leader, ProductionRecipe
from .errors import InvalidCardPlacement, InvalidSelection, NotEnoughRequirement
from .resources import Resource


BASE_PRODUCTION = "base"


@dataclass(frozen=True)
class DevelopmentCard:
    card_id: str
    color: str
    level: int
    cost: tuple[Resource, ...] = ()
    production: ProductionRecipe = field(default_factory=ProductionRecipe)


@dataclass
class CardManager:
    slots: list[list[DevelopmentCard]] = field(default_factory=lambda: [[], [], []])
    leaders: list[Leader] = field(default_factory=list)

    # Card bought this turn, placed once its cost is paid
    pending_card: DevelopmentCard | None = None
    pending_slot: int | None = None

    # Production keys chosen this turn: "base", "slot:<i>", "leader:<i>"
    used_productions: list[str] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Development slots
    # ------------------------------------------------------------------

    def top_card(self, slot: int) -> DevelopmentCard | None:
        self._check_slot(slot)
        stack = self.slots[slot]
        return stack[-1] if stack else None

    def _check_slot(self, slot: int) -> None:
        if slot is None or not 0 <= slot < len(self.slots):
            raise InvalidSelection(f"No development slot {slot}")

    def check_placement(self, card: DevelopmentCard, slot: int) -> None:
        top = self.top_card(slot)
        expected = top.level + 1 if top else 1
        if card.level != expected:
            raise InvalidCardPlacement(
                f"Slot {slot} needs a level {expected} card, got level {card.level}"
            )

    def set_pending_card(self, card: DevelopmentCard, slot: int) -> None:
        self.check_placement(card, slot)
        self.pending_card = card
        self.pending_slot = slot

    def place_pending_card(self) -> DevelopmentCard:
        card, slot = self.pending_card, self.pending_slot
        if card is None or slot is None:
            raise InvalidSelection("No development card waiting to be placed")
        self.slots[slot].append(card)
        self.pending_card = None
        self.pending_slot = None
        return card

    def development_cards(self) -> list[DevelopmentCard]:
        return [card for stack in self.slots for card in stack]

    def meets(self, requirements: tuple[CardRequirement, ...]) -> bool:
        owned = self.development_cards()
        for req in requirements:
            matching = [c for c in owned if c.color == req.color and c.level >= req.min_level]
            if len(matching) < req.count:
                return False
        return True

    # ------------------------------------------------------------------
    # Leaders
    # ------------------------------------------------------------------

    def get_leader(self, index: int) -> Leader:
        if index is None or not 0 <= index < len(self.leaders):
            raise InvalidSelection(f"No leader at index {index}")
        return self.leaders[index]

    def check_leader_requirements(self, leader: Leader) -> None:
        if not self.meets(leader.card_requirements):
            raise NotEnoughRequirement(
                f"Development cards required by {leader.leader_id} are missing"
            )

    def discard_leader_setup(self, index: int) -> Leader:
        self.get_leader(index)
        return self.leaders.pop(index)

    def active_leaders(self, kind: EffectKind) -> list[tuple[int, Leader]]:
        return [
            (i, leader) for i, leader in enumerate(self.leaders)
            if leader.has_live_effect(kind)
        ]

    def how_many_marble_effects(self) -> int:
        return len(self.active_leaders(EffectKind.MARBLE))

    # ------------------------------------------------------------------
    # Productions
    # ------------------------------------------------------------------

    def check_production_unused(self, key: str) -> None:
        if key in self.used_productions:
            raise InvalidSelection(f"Production {key} already used this turn")

    def mark_production(self, key: str) -> None:
        self.check_production_unused(key)
        self.used_productions.append(key)

    def slot_production(self, slot: int) -> ProductionRecipe:
        top = self.top_card(slot)
        if top is None:
            raise InvalidSelection(f"Development slot {slot} is empty")
        return top.production

    def restore(self) -> None:
        self.pending_card = None
        self.pending_slot = None
        self.used_productions = []
