"""
Resource Manager - a player's complete resource model.

Owns the warehouse, the strongbox and the transient buffer, plus the
bookkeeping for an in-flight action:
- discounts granted by leaders
- the wildcard amount still owed for a staged cost
- the production queue and its wildcard profit
- faith points gathered but not yet moved on the track

Buffer protocol: resources gained go to the buffer and are then placed
into storage one by one; for a cost, the resources to pay are loaded into
the buffer and then removed from storage one by one. An action is only
complete once the buffer is empty.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable

from .errors import (
    NegativeResource,
    NotEnoughRequirement,
    WildcardConversionMismatch,
)
from .faith_track import FaithTrack
from .resources import (
    Counts,
    Resource,
    ResourceType,
    add_counts,
    to_counts,
    to_resources,
    total,
)
from .storage import Strongbox, Warehouse


@dataclass
class Affordability:
    """Outcome of a successful can_i_afford check."""
    concrete: Counts  # cost per concrete type after discounts
    any_amount: int  # wildcard part still to be declared


@dataclass
class ResourceManager:
    warehouse: Warehouse = field(default_factory=lambda: Warehouse.with_capacities((1, 2, 3)))
    strongbox: Strongbox = field(default_factory=Strongbox)
    buffer: Counts = field(default_factory=dict)

    discounts: Counts = field(default_factory=dict)
    any_required: int = 0
    requirement_is_buy_development: bool = False

    production_cost: Counts = field(default_factory=dict)
    resources_to_produce: Counts = field(default_factory=dict)
    any_to_produce: int = 0

    faith_points: int = 0

    # ------------------------------------------------------------------
    # Strongbox / warehouse
    # ------------------------------------------------------------------

    def add_to_strongbox(self, resource: Resource) -> None:
        self.strongbox.add(resource)

    def sub_to_strongbox(self, resource: Resource) -> None:
        self.strongbox.sub(resource)

    def add_to_warehouse(self, index: int, resource: Resource, is_leader: bool = False) -> None:
        self.warehouse.add(index, resource, is_leader)

    def sub_to_warehouse(self, index: int, resource: Resource, is_leader: bool = False) -> None:
        self.warehouse.sub(index, resource, is_leader)

    def switch_depots(
        self,
        from_index: int,
        from_is_leader: bool,
        to_index: int,
        to_is_leader: bool,
    ) -> None:
        self.warehouse.switch(from_index, from_is_leader, to_index, to_is_leader)

    def add_leader_depot(self, resource_type: ResourceType, capacity: int) -> int:
        return self.warehouse.add_leader_depot(resource_type, capacity)

    def remove_leader_depot(self, index: int) -> None:
        self.warehouse.remove_leader_depot(index)

    # ------------------------------------------------------------------
    # Buffer
    # ------------------------------------------------------------------

    def add_to_buffer(self, resource: Resource) -> None:
        if not resource.type.is_storable:
            raise WildcardConversionMismatch(
                f"{resource.type.value} cannot enter the buffer"
            )
        if resource.amount:
            self.buffer[resource.type] = self.buffer.get(resource.type, 0) + resource.amount

    def sub_to_buffer(self, resource: Resource) -> None:
        have = self.buffer.get(resource.type, 0)
        if resource.amount > have:
            raise NegativeResource(
                f"Buffer holds {have} {resource.type.value}, cannot take {resource.amount}"
            )
        remaining = have - resource.amount
        if remaining:
            self.buffer[resource.type] = remaining
        else:
            self.buffer.pop(resource.type, None)

    @property
    def buffer_size(self) -> int:
        return total(self.buffer)

    def resource_from_market(self, resources: Iterable[Resource]) -> None:
        """Take market output: goods into the buffer, faith into pending points."""
        for r in resources:
            if r.type == ResourceType.FAITH:
                self.faith_points += r.amount
            else:
                self.add_to_buffer(r)

    def discard_resources_from_market(self) -> int:
        """Drop everything in the buffer. Returns how many units were discarded."""
        discarded = self.buffer_size
        self.buffer.clear()
        return discarded

    # ------------------------------------------------------------------
    # Costs
    # ------------------------------------------------------------------

    def stock(self) -> Counts:
        """Everything the player owns in storage."""
        return add_counts(self.warehouse.counts(), self.strongbox.counts())

    def add_discount(self, resources: Iterable[Resource]) -> None:
        self.discounts = add_counts(self.discounts, to_counts(resources))

    def remove_discount(self, resources: Iterable[Resource]) -> None:
        for t, n in to_counts(resources).items():
            left = self.discounts.get(t, 0) - n
            if left > 0:
                self.discounts[t] = left
            else:
                self.discounts.pop(t, None)

    def can_i_afford(
        self,
        cost: Iterable[Resource],
        is_buy_development: bool = False,
    ) -> Affordability:
        """
        Check a cost against current stock without changing anything.

        Discounts only apply to development card purchases. Concrete costs
        are matched type by type; the wildcard part must fit in whatever
        stock is left over.
        """
        counts = to_counts(cost)
        any_amount = counts.pop(ResourceType.ANY, 0)
        counts.pop(ResourceType.FAITH, None)

        concrete: Counts = {}
        for t, n in counts.items():
            if is_buy_development:
                n = max(0, n - self.discounts.get(t, 0))
            if n:
                concrete[t] = n

        stock = self.stock()
        leftover = 0
        for t, have in stock.items():
            need = concrete.get(t, 0)
            if need > have:
                raise NotEnoughRequirement(
                    f"Need {need} {t.value}, have {have}"
                )
            leftover += have - need
        missing = [t for t in concrete if t not in stock]
        if missing:
            raise NotEnoughRequirement(
                f"Need {concrete[missing[0]]} {missing[0].value}, have 0"
            )
        if any_amount > leftover:
            raise NotEnoughRequirement(
                f"Need {any_amount} resources of any type, only {leftover} left"
            )
        return Affordability(concrete=concrete, any_amount=any_amount)

    def require(self, cost: Iterable[Resource], is_buy_development: bool = False) -> int:
        """
        Stage a cost to be paid.

        The concrete part is loaded into the buffer; the wildcard part is
        remembered until convert_any_requirement. Returns the wildcard owed.
        """
        affordable = self.can_i_afford(cost, is_buy_development)
        self.buffer = add_counts(self.buffer, affordable.concrete)
        self.any_required = affordable.any_amount
        self.requirement_is_buy_development = is_buy_development
        return affordable.any_amount

    def _check_declaration(self, resources: list[Resource], owed: int) -> Counts:
        if owed <= 0:
            raise WildcardConversionMismatch("No wildcard resources to convert")
        for r in resources:
            if not r.type.is_storable:
                raise WildcardConversionMismatch(
                    f"Cannot convert into {r.type.value}"
                )
        declared = to_counts(resources)
        if total(declared) != owed:
            raise WildcardConversionMismatch(
                f"Declared {total(declared)} resources, {owed} required"
            )
        return declared

    def convert_any_requirement(
        self,
        resources: Iterable[Resource],
        is_buy_development: bool = False,
    ) -> None:
        """Resolve the staged wildcard cost into concrete resources to pay."""
        resources = list(resources)
        if is_buy_development != self.requirement_is_buy_development:
            raise WildcardConversionMismatch("No wildcard cost staged for this action")
        declared = self._check_declaration(resources, self.any_required)

        to_pay = add_counts(self.buffer, declared)
        stock = self.stock()
        for t, n in to_pay.items():
            if n > stock.get(t, 0):
                raise NotEnoughRequirement(
                    f"Need {n} {t.value}, have {stock.get(t, 0)}"
                )

        self.buffer = to_pay
        self.any_required = 0

    # ------------------------------------------------------------------
    # Production
    # ------------------------------------------------------------------

    def add_production(self, cost: Iterable[Resource], profit: Iterable[Resource]) -> None:
        """Select one more production; the running total cost must stay affordable."""
        running = add_counts(self.production_cost, to_counts(cost))
        self.can_i_afford(to_resources(running))
        self.production_cost = running
        self.add_to_resources_to_produce(profit)

    def stop_production(self) -> int:
        """Stage the total cost of the selected productions. Returns wildcard owed."""
        any_owed = self.require(to_resources(self.production_cost))
        self.production_cost = {}
        return any_owed

    def add_to_resources_to_produce(self, resources: Iterable[Resource]) -> None:
        counts = to_counts(resources)
        self.any_to_produce += counts.pop(ResourceType.ANY, 0)
        self.resources_to_produce = add_counts(self.resources_to_produce, counts)

    def convert_any_production_profit(self, resources: Iterable[Resource]) -> None:
        declared = self._check_declaration(list(resources), self.any_to_produce)
        self.resources_to_produce = add_counts(self.resources_to_produce, declared)
        self.any_to_produce = 0

    def do_production(self) -> Counts:
        """Commit the production queue to the strongbox and clear it."""
        if self.any_to_produce:
            raise WildcardConversionMismatch(
                f"{self.any_to_produce} produced resources still to be chosen"
            )
        produced = self.resources_to_produce
        for t, n in produced.items():
            if t == ResourceType.FAITH:
                self.faith_points += n
            else:
                self.strongbox.add(Resource(t, n))
        self.resources_to_produce = {}
        return produced

    # ------------------------------------------------------------------
    # Faith / lifecycle
    # ------------------------------------------------------------------

    def apply_faith_points(self, faith_track: FaithTrack) -> list[int]:
        """Move gathered faith onto the track. Returns pope spaces reached."""
        reached = faith_track.move(self.faith_points)
        self.faith_points = 0
        return reached

    def restore(self) -> None:
        """Reset transient per-action bookkeeping."""
        self.buffer.clear()
        self.any_required = 0
        self.requirement_is_buy_development = False
        self.production_cost = {}
        self.resources_to_produce = {}
        self.any_to_produce = 0
        self.faith_points = 0
