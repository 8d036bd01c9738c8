"""
Tests for the per-player resource manager.

Tests:
- Buffer bookkeeping
- Affordability (discounts, wildcards, purity of the check)
- Wildcard conversion
- Production queue
- Conservation of resources across storage operations
"""

import pytest

from ..engine_core.errors import (
    DepotCapacityExceeded,
    NegativeResource,
    NotEnoughRequirement,
    WildcardConversionMismatch,
)
from ..engine_core.faith_track import FaithTrack
from ..engine_core.resources import Resource, ResourceType, total

COIN = ResourceType.COIN
SHIELD = ResourceType.SHIELD
SERVANT = ResourceType.SERVANT
STONE = ResourceType.STONE
ANY = ResourceType.ANY
FAITH = ResourceType.FAITH


def grand_total(rm) -> int:
    return total(rm.warehouse.counts()) + total(rm.strongbox.counts()) + rm.buffer_size


class TestBuffer:
    """Tests for the transient buffer."""

    def test_add_and_sub(self, rm):
        """Buffer counts go up and down per type."""
        rm.add_to_buffer(Resource(COIN, 2))
        rm.sub_to_buffer(Resource(COIN))
        assert rm.buffer == {COIN: 1}

    def test_sub_more_than_held(self, rm):
        """Taking more than the buffer holds fails and keeps the buffer."""
        rm.add_to_buffer(Resource(COIN))
        with pytest.raises(NegativeResource):
            rm.sub_to_buffer(Resource(COIN, 2))
        assert rm.buffer == {COIN: 1}

    def test_wildcard_rejected(self, rm):
        """ANY never enters the buffer."""
        with pytest.raises(WildcardConversionMismatch):
            rm.add_to_buffer(Resource(ANY))

    def test_market_faith_goes_to_faith_points(self, rm):
        """Faith from the market is counted, not buffered."""
        rm.resource_from_market([Resource(COIN), Resource(FAITH, 2)])
        assert rm.buffer == {COIN: 1}
        assert rm.faith_points == 2

    def test_discard_from_market(self, rm):
        """Discarding empties the buffer and reports how much was dropped."""
        rm.resource_from_market([Resource(COIN), Resource(SHIELD, 2)])
        assert rm.discard_resources_from_market() == 3
        assert rm.buffer_size == 0


class TestCanIAfford:
    """Tests for the affordability check."""

    def test_concrete_cost(self, rm):
        """A cost within stock is affordable."""
        rm.add_to_strongbox(Resource(COIN, 2))
        rm.add_to_warehouse(0, Resource(STONE))

        result = rm.can_i_afford([Resource(COIN, 2), Resource(STONE)])
        assert result.concrete == {COIN: 2, STONE: 1}
        assert result.any_amount == 0

    def test_missing_type(self, rm):
        """A cost in a type the player does not own fails."""
        rm.add_to_strongbox(Resource(COIN, 2))
        with pytest.raises(NotEnoughRequirement):
            rm.can_i_afford([Resource(SERVANT)])

    def test_wildcard_uses_leftover(self, rm):
        """ANY is covered by whatever stock is left after concrete costs."""
        rm.add_to_strongbox(Resource(COIN, 2))
        rm.add_to_strongbox(Resource(STONE, 1))

        assert rm.can_i_afford([Resource(COIN), Resource(ANY, 2)]).any_amount == 2
        with pytest.raises(NotEnoughRequirement):
            rm.can_i_afford([Resource(COIN), Resource(ANY, 3)])

    def test_discount_only_for_development(self, rm):
        """Discounts reduce development costs and nothing else."""
        rm.add_discount([Resource(COIN)])
        rm.add_to_strongbox(Resource(COIN))

        result = rm.can_i_afford([Resource(COIN, 2)], is_buy_development=True)
        assert result.concrete == {COIN: 1}
        with pytest.raises(NotEnoughRequirement):
            rm.can_i_afford([Resource(COIN, 2)])

    def test_discount_clipped_at_zero(self, rm):
        """A discount larger than the cost makes that type free."""
        rm.add_discount([Resource(COIN, 3)])
        result = rm.can_i_afford([Resource(COIN)], is_buy_development=True)
        assert result.concrete == {}

    def test_check_is_pure(self, rm):
        """can_i_afford changes nothing, whether it passes or fails."""
        rm.add_to_strongbox(Resource(COIN, 2))
        rm.can_i_afford([Resource(COIN), Resource(ANY)])
        with pytest.raises(NotEnoughRequirement):
            rm.can_i_afford([Resource(ANY, 5)])

        assert rm.buffer == {}
        assert rm.any_required == 0
        assert rm.strongbox.counts() == {COIN: 2}


class TestWildcardConversion:
    """Tests for converting staged wildcard amounts."""

    def test_require_stages_cost(self, rm):
        """require loads the concrete part into the buffer and remembers the wildcard."""
        rm.add_to_strongbox(Resource(COIN, 3))

        owed = rm.require([Resource(COIN), Resource(ANY, 2)])

        assert owed == 2
        assert rm.buffer == {COIN: 1}
        assert rm.any_required == 2

    def test_exact_declaration(self, rm):
        """Declaring exactly the owed amount moves it into the buffer."""
        rm.add_to_strongbox(Resource(COIN, 3))
        rm.require([Resource(COIN), Resource(ANY, 2)])

        rm.convert_any_requirement([Resource(COIN, 2)])

        assert rm.buffer == {COIN: 3}
        assert rm.any_required == 0

    @pytest.mark.parametrize("declared", [
        [Resource(COIN)],
        [Resource(COIN, 3)],
        [Resource(ANY, 2)],
        [Resource(COIN), Resource(FAITH)],
    ])
    def test_bad_declaration(self, rm, declared):
        """Wrong totals and non-concrete types are rejected and nothing changes."""
        rm.add_to_strongbox(Resource(COIN, 5))
        rm.require([Resource(ANY, 2)])

        with pytest.raises(WildcardConversionMismatch):
            rm.convert_any_requirement(declared)

        assert rm.any_required == 2
        assert rm.buffer == {}

    def test_declaration_must_be_owned(self, rm):
        """Declared resources must be in stock on top of the concrete cost."""
        rm.add_to_strongbox(Resource(COIN, 2))
        rm.add_to_strongbox(Resource(STONE, 1))
        rm.require([Resource(COIN), Resource(ANY)])

        with pytest.raises(NotEnoughRequirement):
            rm.convert_any_requirement([Resource(SERVANT)])

        rm.convert_any_requirement([Resource(STONE)])
        assert rm.buffer == {COIN: 1, STONE: 1}

    def test_flag_must_match(self, rm):
        """A production wildcard cannot be settled as a development purchase."""
        rm.add_to_strongbox(Resource(COIN, 2))
        rm.require([Resource(ANY)], is_buy_development=False)

        with pytest.raises(WildcardConversionMismatch):
            rm.convert_any_requirement([Resource(COIN)], is_buy_development=True)

    def test_nothing_owed(self, rm):
        """Converting with nothing owed fails."""
        with pytest.raises(WildcardConversionMismatch):
            rm.convert_any_requirement([])

    def test_profit_conversion(self, rm):
        """Wildcard profit is replaced by the declared resources."""
        rm.add_to_resources_to_produce([Resource(ANY, 2), Resource(COIN)])

        with pytest.raises(WildcardConversionMismatch):
            rm.convert_any_production_profit([Resource(SHIELD)])

        rm.convert_any_production_profit([Resource(SHIELD), Resource(COIN)])
        assert rm.resources_to_produce == {COIN: 2, SHIELD: 1}
        assert rm.any_to_produce == 0


class TestProduction:
    """Tests for the production queue."""

    def test_running_cost_must_stay_affordable(self, rm):
        """Each selection re-checks the total cost of all selections."""
        rm.add_to_strongbox(Resource(STONE, 2))
        rm.add_production([Resource(STONE, 2)], [Resource(COIN)])

        with pytest.raises(NotEnoughRequirement):
            rm.add_production([Resource(STONE)], [Resource(COIN)])
        assert rm.production_cost == {STONE: 2}

    def test_do_production(self, rm):
        """Produced goods go to the strongbox, faith to the faith points."""
        rm.add_to_resources_to_produce([Resource(COIN, 2), Resource(FAITH)])

        produced = rm.do_production()

        assert produced == {COIN: 2, FAITH: 1}
        assert rm.strongbox.counts() == {COIN: 2}
        assert rm.faith_points == 1
        assert rm.resources_to_produce == {}

    def test_do_production_with_unresolved_wildcard(self, rm):
        """Production cannot be committed while wildcard profit is undecided."""
        rm.add_to_resources_to_produce([Resource(ANY)])
        with pytest.raises(WildcardConversionMismatch):
            rm.do_production()

    def test_apply_faith_points(self, rm):
        """Gathered faith moves the track and is then cleared."""
        track = FaithTrack()
        rm.faith_points = 9

        reached = rm.apply_faith_points(track)

        assert track.position == 9
        assert reached == [0]
        assert rm.faith_points == 0


class TestConservation:
    """Resources never appear or vanish through storage operations."""

    def test_positioning_and_paying(self, rm):
        """Moving resources between buffer, depots and strongbox keeps the total."""
        rm.resource_from_market([Resource(COIN, 2), Resource(STONE)])
        start = grand_total(rm)

        rm.sub_to_buffer(Resource(COIN, 2))
        rm.add_to_warehouse(1, Resource(COIN, 2))
        rm.sub_to_buffer(Resource(STONE))
        rm.add_to_warehouse(0, Resource(STONE))
        rm.switch_depots(1, False, 2, False)
        assert grand_total(rm) == start

    def test_paying_removes_exactly_the_cost(self, rm):
        """Paying a staged cost removes exactly that cost from stock."""
        rm.add_to_warehouse(2, Resource(COIN, 2))
        rm.add_to_strongbox(Resource(SHIELD, 4))
        start = total(rm.stock())

        rm.require([Resource(COIN), Resource(SHIELD, 2)])
        rm.sub_to_buffer(Resource(COIN))
        rm.sub_to_warehouse(2, Resource(COIN))
        rm.sub_to_buffer(Resource(SHIELD, 2))
        rm.sub_to_strongbox(Resource(SHIELD, 2))

        assert rm.buffer_size == 0
        assert total(rm.stock()) == start - 3

    def test_failed_operations_keep_total(self, rm):
        """Failed adds and subs leave every count where it was."""
        rm.add_to_warehouse(0, Resource(COIN))
        rm.add_to_strongbox(Resource(STONE, 2))
        before = (rm.warehouse.counts(), rm.strongbox.counts())

        with pytest.raises(DepotCapacityExceeded):
            rm.add_to_warehouse(0, Resource(COIN))
        with pytest.raises(NegativeResource):
            rm.sub_to_strongbox(Resource(STONE, 3))
        with pytest.raises(NegativeResource):
            rm.sub_to_warehouse(0, Resource(COIN, 2))

        assert (rm.warehouse.counts(), rm.strongbox.counts()) == before

    def test_restore_clears_transient_state(self, rm):
        """restore drops the buffer and all staged bookkeeping."""
        rm.add_to_strongbox(Resource(COIN, 3))
        rm.require([Resource(COIN), Resource(ANY)])
        rm.faith_points = 2

        rm.restore()

        assert rm.buffer == {}
        assert rm.any_required == 0
        assert rm.faith_points == 0
        assert rm.strongbox.counts() == {COIN: 3}
