"""
Tests for depots, the warehouse and the strongbox.

Tests:
- Capacity and type purity of depots
- Warehouse organization (no duplicate types across base depots)
- Depot switching
- Strongbox non-negativity
"""

import pytest

from ..engine_core.errors import (
    DepotCapacityExceeded,
    DepotTypeMismatch,
    InvalidSelection,
    InvalidWarehouseOrganization,
    NegativeResource,
)
from ..engine_core.resources import Resource, ResourceType
from ..engine_core.storage import Depot, Strongbox, Warehouse

COIN = ResourceType.COIN
SHIELD = ResourceType.SHIELD
SERVANT = ResourceType.SERVANT
STONE = ResourceType.STONE


class TestDepot:
    """Tests for a single depot."""

    def test_capacity_exceeded_leaves_depot_empty(self):
        """Adding servant:3 to an empty depot of capacity 2 fails and changes nothing."""
        depot = Depot(capacity=2)

        with pytest.raises(DepotCapacityExceeded):
            depot.add(Resource(SERVANT, 3))

        assert depot.is_empty
        assert depot.resource_type is None

    def test_type_mismatch_leaves_depot_unchanged(self):
        """Adding shield to a depot holding coin:1 fails and keeps coin:1."""
        depot = Depot(capacity=3)
        depot.add(Resource(COIN))

        with pytest.raises(DepotTypeMismatch):
            depot.add(Resource(SHIELD))

        assert depot.counts() == {COIN: 1}

    def test_emptied_depot_forgets_type(self):
        """A base depot accepts any type again once it is emptied."""
        depot = Depot(capacity=2)
        depot.add(Resource(COIN, 2))
        depot.sub(Resource(COIN, 2))

        depot.add(Resource(STONE))
        assert depot.counts() == {STONE: 1}

    def test_sub_more_than_held(self):
        """Removing more than the depot holds is a negative-resource error."""
        depot = Depot(capacity=2)
        depot.add(Resource(COIN))

        with pytest.raises(NegativeResource):
            depot.sub(Resource(COIN, 2))
        assert depot.amount == 1

    def test_leader_depot_keeps_fixed_type(self):
        """A leader depot only ever accepts its own type, even when empty."""
        depot = Depot.leader(SHIELD, 2)

        with pytest.raises(DepotTypeMismatch):
            depot.add(Resource(COIN))

        depot.add(Resource(SHIELD, 2))
        depot.sub(Resource(SHIELD, 2))
        assert depot.resource_type == SHIELD

    def test_zero_amount_leaves_depot_untyped(self):
        """Adding nothing does not claim an empty depot for a type."""
        depot = Depot(capacity=2)
        depot.add(Resource(COIN, 0))
        assert depot.resource_type is None
        assert depot.is_empty

    def test_zero_amount_ignores_organization(self):
        """An empty add never counts as a duplicate type."""
        warehouse = Warehouse.with_capacities((1, 2, 3))
        warehouse.add(1, Resource(COIN, 2))
        warehouse.add(0, Resource(COIN, 0))
        assert warehouse.counts() == {COIN: 2}

    def test_wildcards_cannot_be_stored(self):
        """ANY and FAITH never enter storage."""
        depot = Depot(capacity=3)
        with pytest.raises(DepotTypeMismatch):
            depot.add(Resource(ResourceType.ANY))
        with pytest.raises(DepotTypeMismatch):
            depot.add(Resource(ResourceType.FAITH))


class TestWarehouse:
    """Tests for the warehouse."""

    def test_same_type_in_two_base_depots_rejected(self):
        """Two base depots cannot hold the same resource type."""
        warehouse = Warehouse.with_capacities((1, 2, 3))
        warehouse.add(0, Resource(COIN))

        with pytest.raises(InvalidWarehouseOrganization):
            warehouse.add(2, Resource(COIN))
        assert warehouse.depots[2].is_empty

    def test_leader_depot_exempt_from_organization(self):
        """A leader depot may hold the same type as a base depot."""
        warehouse = Warehouse.with_capacities((1, 2, 3))
        warehouse.add(0, Resource(COIN))
        index = warehouse.add_leader_depot(COIN, 2)

        warehouse.add(index, Resource(COIN, 2), is_leader=True)
        assert warehouse.counts() == {COIN: 3}

    def test_bad_index(self):
        """Unknown depot indices are an invalid selection."""
        warehouse = Warehouse.with_capacities((1, 2, 3))
        with pytest.raises(InvalidSelection):
            warehouse.add(3, Resource(COIN))
        with pytest.raises(InvalidSelection):
            warehouse.add(0, Resource(COIN), is_leader=True)

    def test_switch_swaps_contents(self):
        """Switching two base depots swaps what they hold."""
        warehouse = Warehouse.with_capacities((1, 2, 3))
        warehouse.add(1, Resource(COIN))
        warehouse.add(2, Resource(STONE, 2))

        warehouse.switch(1, False, 2, False)

        assert warehouse.depots[1].counts() == {STONE: 2}
        assert warehouse.depots[2].counts() == {COIN: 1}

    def test_switch_over_capacity_changes_nothing(self):
        """A swap that would overflow a depot fails and leaves both depots intact."""
        warehouse = Warehouse.with_capacities((1, 2, 3))
        warehouse.add(0, Resource(COIN))
        warehouse.add(2, Resource(STONE, 3))

        with pytest.raises(DepotCapacityExceeded):
            warehouse.switch(2, False, 0, False)

        assert warehouse.depots[0].counts() == {COIN: 1}
        assert warehouse.depots[2].counts() == {STONE: 3}

    def test_switch_moves_into_matching_leader_depot(self):
        """Same-type contents are moved in full into the destination."""
        warehouse = Warehouse.with_capacities((1, 2, 3))
        warehouse.add(1, Resource(SHIELD, 2))
        index = warehouse.add_leader_depot(SHIELD, 2)

        warehouse.switch(1, False, index, True)

        assert warehouse.depots[1].is_empty
        assert warehouse.leader_depots[index].counts() == {SHIELD: 2}

    def test_switch_into_wrong_leader_depot(self):
        """Moving a type into a leader depot of another type fails."""
        warehouse = Warehouse.with_capacities((1, 2, 3))
        warehouse.add(1, Resource(COIN, 2))
        index = warehouse.add_leader_depot(SHIELD, 2)

        with pytest.raises(DepotTypeMismatch):
            warehouse.switch(1, False, index, True)
        assert warehouse.depots[1].counts() == {COIN: 2}

    def test_switch_with_itself(self):
        """A depot cannot be switched with itself."""
        warehouse = Warehouse.with_capacities((1, 2, 3))
        with pytest.raises(InvalidSelection):
            warehouse.switch(1, False, 1, False)

    def test_remove_leader_depot_keeps_contents(self):
        """A leader depot that still holds resources cannot be removed."""
        warehouse = Warehouse.with_capacities((1, 2, 3))
        index = warehouse.add_leader_depot(STONE, 2)
        warehouse.add(index, Resource(STONE), is_leader=True)

        with pytest.raises(InvalidSelection):
            warehouse.remove_leader_depot(index)
        assert warehouse.counts() == {STONE: 1}

        warehouse.sub(index, Resource(STONE), is_leader=True)
        warehouse.remove_leader_depot(index)
        assert warehouse.leader_depots == []


class TestStrongbox:
    """Tests for the strongbox."""

    def test_sub_scenario(self):
        """coin:5, remove 3 -> coin:2; remove 10 fails and keeps coin:2."""
        strongbox = Strongbox()
        strongbox.add(Resource(COIN, 5))

        strongbox.sub(Resource(COIN, 3))
        assert strongbox.counts() == {COIN: 2}

        with pytest.raises(NegativeResource):
            strongbox.sub(Resource(COIN, 10))
        assert strongbox.counts() == {COIN: 2}

    def test_unbounded(self):
        """The strongbox has no capacity limit."""
        strongbox = Strongbox()
        strongbox.add(Resource(STONE, 100))
        strongbox.add(Resource(STONE, 100))
        assert strongbox.how_many(STONE) == 200

    def test_sub_missing_type(self):
        """Removing a type that is not there fails."""
        with pytest.raises(NegativeResource):
            Strongbox().sub(Resource(SERVANT))
