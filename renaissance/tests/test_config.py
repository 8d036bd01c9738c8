"""
Tests for rules configuration loading.
"""

import json

import pytest

from ..config import DEFAULT_MARBLES, RulesConfig, load_rules_config
from ..engine_core.setup import setup_match


class TestRulesConfig:
    """Tests for RulesConfig validation."""

    def test_standard_rules(self):
        """Defaults describe the standard board."""
        config = RulesConfig()
        assert config.market_rows * config.market_cols + 1 == sum(config.marbles.values())
        assert config.depot_capacities == (1, 2, 3)
        assert config.leaders_kept == 2

    def test_bag_must_fill_market(self):
        """A marble bag that does not fill the grid is rejected."""
        with pytest.raises(ValueError):
            RulesConfig(marbles={**DEFAULT_MARBLES, "white": 5})

    def test_smaller_market(self):
        """A smaller grid is fine with a matching bag."""
        config = RulesConfig(market_rows=2, market_cols=2, marbles={"white": 3, "red": 2})
        assert config.market_cols == 2

    def test_keep_more_than_dealt(self):
        """Keeping more leaders than dealt is rejected."""
        with pytest.raises(ValueError):
            RulesConfig(leaders_dealt=2, leaders_kept=3)

    def test_lists_become_tuples(self):
        """Sequences read from JSON are stored as tuples."""
        config = RulesConfig(depot_capacities=[1, 2, 3], vatican_sections=[[5, 8]])
        assert config.depot_capacities == (1, 2, 3)
        assert config.vatican_sections == ((5, 8),)

    @pytest.mark.parametrize("position,expected", [
        (0, (0, 0)),
        (1, (1, 0)),
        (2, (1, 1)),
        (3, (2, 1)),
        (7, (0, 0)),
    ])
    def test_setup_bonus(self, position, expected):
        """Later players start with more resources and faith."""
        assert RulesConfig().setup_bonus(position) == expected


class TestLoadRulesConfig:
    """Tests for loading rules from JSON."""

    def test_missing_file(self, tmp_path):
        """A missing file gives the standard rules."""
        assert load_rules_config(tmp_path / "nope.json") == RulesConfig()

    def test_override(self, tmp_path):
        """Keys in the file replace the defaults, the rest stay."""
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"leaders_kept": 1, "depot_capacities": [2, 2, 3]}))

        config = load_rules_config(path)

        assert config.leaders_kept == 1
        assert config.depot_capacities == (2, 2, 3)
        assert config.faith_track_length == 24

    def test_unknown_key(self, tmp_path):
        """Unknown keys are an error, not silently ignored."""
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"market_size": 9}))

        with pytest.raises(ValueError):
            load_rules_config(str(path))

    def test_round_trip_dict(self):
        """to_dict feeds back into RulesConfig."""
        config = RulesConfig(leaders_kept=1)
        assert RulesConfig(**config.to_dict()) == config

    def test_config_reaches_match(self):
        """A loaded config shapes the boards of a new match."""
        config = RulesConfig(depot_capacities=(2, 2, 3), leaders_dealt=0, leaders_kept=0)
        state = setup_match(["ada"], config=config, random_seed=1)
        capacities = [d.capacity for d in state.get_player("ada").resources.warehouse.depots]
        assert capacities == [2, 2, 3]
