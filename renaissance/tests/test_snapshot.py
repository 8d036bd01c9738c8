"""
Tests for versioned match snapshots.

Validates that:
- A snapshot restores the exact match, including an action in flight
- Leaders, leader depots and development slots survive the round trip
- Unknown versions are refused
"""

import json

import pytest

from ..api.snapshot import (
    SNAPSHOT_VERSION,
    EffectModel,
    GameSnapshot,
    decode_state,
    dumps,
    encode_state,
    loads,
)
from ..engine_core.action import Action
from ..engine_core.cards import DevelopmentCard
from ..engine_core.effects import ProductionRecipe
from ..engine_core.reducer import apply_action
from ..engine_core.resources import Resource, ResourceType
from ..engine_core.state import TurnPhase
from .conftest import (
    act,
    depot_leader,
    discount_leader,
    give_leader,
    marble_leader,
    production_leader,
)

COIN = ResourceType.COIN
SHIELD = ResourceType.SHIELD


@pytest.fixture
def busy_state(playing_state):
    """ada mid-way through a white marble split, with every kind of leader."""
    ada = playing_state.get_player("ada")
    ada.resources.add_to_strongbox(Resource(ResourceType.STONE, 4))
    ada.cards.slots[0].append(DevelopmentCard(
        "g1", "green", 1,
        cost=(Resource(COIN, 2),),
        production=ProductionRecipe(cost=(Resource(COIN),), profit=(Resource(ResourceType.FAITH),)),
    ))
    give_leader(playing_state, "ada", marble_leader("m1", COIN))
    give_leader(playing_state, "ada", marble_leader("m2", SHIELD))
    give_leader(playing_state, "ada", depot_leader("d", SHIELD))
    give_leader(playing_state, "ada", discount_leader("s", COIN), activate=False)
    ada.resources.add_to_warehouse(0, Resource(SHIELD, 2), is_leader=True)
    ada.faith.position = 3
    return act(playing_state, Action.market("ada", 1, True))


class TestRoundTrip:
    """Tests for encode/decode."""

    def test_json_round_trip(self, busy_state):
        """dumps/loads reproduces the same snapshot."""
        restored = loads(dumps(busy_state))
        assert encode_state(restored) == encode_state(busy_state)

    def test_restored_fields(self, busy_state):
        """Market, storage, leaders and phase come back as they were."""
        restored = loads(dumps(busy_state))
        ada = restored.get_player("ada")

        assert restored.market.grid == busy_state.market.grid
        assert restored.market.spare == busy_state.market.spare
        assert restored.market.white_marble_drew == 2
        assert ada.phase == TurnPhase.WHITE_MARBLE_CONVERSION
        assert ada.resources.strongbox.counts() == {ResourceType.STONE: 4}
        assert ada.resources.warehouse.leader_depots[0].counts() == {SHIELD: 2}
        assert [l.leader_id for l in ada.cards.leaders] == ["m1", "m2", "d", "s"]
        assert [l.active for l in ada.cards.leaders] == [True, True, True, False]
        assert ada.cards.leaders[2].depot_index == 0
        assert ada.cards.slots[0][0].card_id == "g1"
        assert ada.faith.position == 3
        assert restored.current_player.player_id == "ada"

    def test_restored_match_continues(self, busy_state):
        """The split can be finished on the restored match."""
        restored = loads(dumps(busy_state))

        result = apply_action(restored, Action.white_marble_conversion("ada", 1, 2))

        assert result.success
        assert result.new_state.get_player("ada").resources.buffer == {
            ResourceType.SERVANT: 1, SHIELD: 2,
        }

    def test_decode_builds_equal_objects(self, busy_state):
        """decode_state rebuilds equal leaders and cards."""
        restored = decode_state(encode_state(busy_state))
        assert restored.get_player("ada").cards == busy_state.get_player("ada").cards
        assert restored.config == busy_state.config

    @pytest.mark.parametrize("leader", [
        marble_leader("m", COIN),
        production_leader("p", COIN),
        discount_leader("d", SHIELD),
        depot_leader("x", SHIELD),
    ])
    def test_every_effect_kind(self, leader):
        """Each effect variant survives the model conversion."""
        assert EffectModel.from_effect(leader.effect).to_effect() == leader.effect


class TestVersioning:
    """Tests for version checks."""

    def test_version_written(self, playing_state):
        """Snapshots carry the current version."""
        assert json.loads(dumps(playing_state))["version"] == SNAPSHOT_VERSION

    def test_unknown_version_refused(self, playing_state):
        """Loading another version fails instead of guessing."""
        data = json.loads(dumps(playing_state))
        data["version"] = SNAPSHOT_VERSION + 1

        with pytest.raises(ValueError):
            loads(json.dumps(data))

    def test_decode_checks_version(self, playing_state):
        """decode_state refuses snapshots of another version too."""
        snapshot = encode_state(playing_state)
        old = GameSnapshot(**{**snapshot.model_dump(), "version": 0})

        with pytest.raises(ValueError):
            decode_state(old)
