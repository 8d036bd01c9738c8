"""
Storage - depots, warehouse and strongbox.

Invariants:
- A depot holds at most one resource type and never more than its capacity
- Two base depots never hold the same type (leader depots are exempt)
- A leader depot's type is fixed when the depot is created
- Strongbox counts are never negative

Every mutating method validates first and only then mutates, so a raised
RuleViolation leaves the storage untouched.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .errors import (
    DepotCapacityExceeded,
    DepotTypeMismatch,
    InvalidSelection,
    InvalidWarehouseOrganization,
    NegativeResource,
)
from .resources import Counts, Resource, ResourceType


def _check_storable(resource: Resource) -> None:
    if not resource.type.is_storable:
        raise DepotTypeMismatch(f"{resource.type.value} cannot be stored")


@dataclass
class Depot:
    """
    A fixed-capacity single-type slot.

    Base depots take the type of whatever is put in them and forget it once
    emptied. Leader depots have ``fixed_type`` set at creation.
    """
    capacity: int
    resource_type: ResourceType | None = None
    amount: int = 0
    fixed_type: bool = False

    @classmethod
    def leader(cls, resource_type: ResourceType, capacity: int) -> Depot:
        return cls(capacity=capacity, resource_type=resource_type, fixed_type=True)

    @property
    def is_empty(self) -> bool:
        return self.amount == 0

    @property
    def content_type(self) -> ResourceType | None:
        """Type currently held, None when empty."""
        return self.resource_type if self.amount else None

    def check_add(self, resource: Resource) -> None:
        _check_storable(resource)
        if self.fixed_type and resource.type != self.resource_type:
            raise DepotTypeMismatch(
                f"Leader depot only accepts {self.resource_type.value}"
            )
        if self.amount and resource.type != self.resource_type:
            raise DepotTypeMismatch(
                f"Depot holds {self.resource_type.value}, cannot add {resource.type.value}"
            )
        if self.amount + resource.amount > self.capacity:
            raise DepotCapacityExceeded(
                f"Depot capacity is {self.capacity}, "
                f"cannot hold {self.amount + resource.amount}"
            )

    def check_sub(self, resource: Resource) -> None:
        _check_storable(resource)
        if self.amount and resource.type != self.resource_type:
            raise DepotTypeMismatch(
                f"Depot holds {self.resource_type.value}, cannot remove {resource.type.value}"
            )
        if resource.amount > self.amount:
            raise NegativeResource(
                f"Depot holds {self.amount}, cannot remove {resource.amount}"
            )

    def add(self, resource: Resource) -> None:
        self.check_add(resource)
        if resource.amount:
            self.resource_type = resource.type
        self.amount += resource.amount

    def sub(self, resource: Resource) -> None:
        self.check_sub(resource)
        self.amount -= resource.amount
        if self.amount == 0 and not self.fixed_type:
            self.resource_type = None

    def counts(self) -> Counts:
        return {self.resource_type: self.amount} if self.amount else {}


@dataclass
class Warehouse:
    """Ordered base depots plus zero or more leader depots."""
    depots: list[Depot] = field(default_factory=list)
    leader_depots: list[Depot] = field(default_factory=list)

    @classmethod
    def with_capacities(cls, capacities: tuple[int, ...]) -> Warehouse:
        return cls(depots=[Depot(capacity=c) for c in capacities])

    def get_depot(self, index: int, is_leader: bool = False) -> Depot:
        depots = self.leader_depots if is_leader else self.depots
        if not 0 <= index < len(depots):
            kind = "leader depot" if is_leader else "depot"
            raise InvalidSelection(f"No {kind} at index {index}")
        return depots[index]

    def _check_organization(self, contents: list[ResourceType | None]) -> None:
        present = [t for t in contents if t is not None]
        if len(present) != len(set(present)):
            raise InvalidWarehouseOrganization(
                "Two depots of the warehouse cannot hold the same resource"
            )

    def add(self, index: int, resource: Resource, is_leader: bool = False) -> None:
        depot = self.get_depot(index, is_leader)
        depot.check_add(resource)
        if not is_leader and resource.amount:
            contents = [d.content_type for d in self.depots]
            contents[index] = resource.type
            self._check_organization(contents)
        depot.add(resource)

    def sub(self, index: int, resource: Resource, is_leader: bool = False) -> None:
        self.get_depot(index, is_leader).sub(resource)

    def switch(
        self,
        from_index: int,
        from_is_leader: bool,
        to_index: int,
        to_is_leader: bool,
    ) -> None:
        """
        Move or swap the contents of two depots.

        Same-type contents (only possible with a leader depot) are moved in
        full into the destination; anything else is swapped. Both depots are
        re-validated against the post-move layout before anything changes.
        """
        source = self.get_depot(from_index, from_is_leader)
        target = self.get_depot(to_index, to_is_leader)
        if source is target:
            raise InvalidSelection("Cannot switch a depot with itself")

        src_type, dst_type = source.content_type, target.content_type
        if src_type is not None and src_type == dst_type:
            new_source = (None, 0)
            new_target = (src_type, source.amount + target.amount)
        else:
            new_source = (dst_type, target.amount)
            new_target = (src_type, source.amount)

        for depot, (rtype, amount) in ((source, new_source), (target, new_target)):
            if amount > depot.capacity:
                raise DepotCapacityExceeded(
                    f"Depot capacity is {depot.capacity}, cannot hold {amount}"
                )
            if rtype is not None and depot.fixed_type and rtype != depot.resource_type:
                raise DepotTypeMismatch(
                    f"Leader depot only accepts {depot.resource_type.value}"
                )

        contents = [d.content_type for d in self.depots]
        if not from_is_leader:
            contents[from_index] = new_source[0]
        if not to_is_leader:
            contents[to_index] = new_target[0]
        self._check_organization(contents)

        for depot, (rtype, amount) in ((source, new_source), (target, new_target)):
            depot.amount = amount
            if not depot.fixed_type:
                depot.resource_type = rtype if amount else None

    def add_leader_depot(self, resource_type: ResourceType, capacity: int) -> int:
        self.leader_depots.append(Depot.leader(resource_type, capacity))
        return len(self.leader_depots) - 1

    def remove_leader_depot(self, index: int) -> Depot:
        """Remove an empty leader depot."""
        depot = self.get_depot(index, is_leader=True)
        if not depot.is_empty:
            raise InvalidSelection(
                f"Leader depot {index} still holds {depot.amount} {depot.resource_type.value}"
            )
        return self.leader_depots.pop(index)

    def counts(self) -> Counts:
        result: Counts = {}
        for depot in self.depots + self.leader_depots:
            if depot.amount:
                result[depot.resource_type] = result.get(depot.resource_type, 0) + depot.amount
        return result


@dataclass
class Strongbox:
    """Unbounded store of concrete resources."""
    resources: Counts = field(default_factory=dict)

    def how_many(self, resource_type: ResourceType) -> int:
        return self.resources.get(resource_type, 0)

    def add(self, resource: Resource) -> None:
        _check_storable(resource)
        if resource.amount:
            self.resources[resource.type] = self.how_many(resource.type) + resource.amount

    def sub(self, resource: Resource) -> None:
        _check_storable(resource)
        have = self.how_many(resource.type)
        if resource.amount > have:
            raise NegativeResource(
                f"Strongbox holds {have} {resource.type.value}, cannot remove {resource.amount}"
            )
        remaining = have - resource.amount
        if remaining:
            self.resources[resource.type] = remaining
        else:
            self.resources.pop(resource.type, None)

    def counts(self) -> Counts:
        return dict(self.resources)
