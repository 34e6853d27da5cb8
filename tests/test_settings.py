"""
Unit tests for settings loading.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from engine.pools import BandedPoolSizing
from engine.seeding import append_in_rank_order, append_in_reverse_pool_order
from settings import (extra_rank_policy, get_default_settings, load_settings, make_pool_policy, make_rng,
                      settings_path)


class TestLoadSettings:
    """Tests for reading settings files."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(str(tmp_path / "nope.yaml")) == get_default_settings()

    def test_empty_file_gives_defaults(self, settings_file):
        assert load_settings() == get_default_settings()

    def test_values_override_defaults(self, write_settings):
        write_settings({'fixture_type': 'pool_knockout', 'advance_per_pool': 1})
        settings = load_settings()
        assert settings['fixture_type'] == 'pool_knockout'
        assert settings['advance_per_pool'] == 1
        assert settings['seed_order'] == 'as-given'

    def test_pool_sizing_is_merged(self, write_settings):
        write_settings({'pool_sizing': {'ideal_pool_size': 5}})
        sizing = load_settings()['pool_sizing']
        assert sizing['ideal_pool_size'] == 5
        assert sizing['max_pool_size'] == 6

    def test_non_mapping_is_rejected(self, settings_file):
        settings_file.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_settings()

    def test_settings_path_from_environment(self, settings_file):
        assert settings_path() == str(settings_file)


class TestSettingsHelpers:
    """Tests for objects built from settings."""

    def test_seeded_rng_is_repeatable(self):
        assert make_rng(5).random() == make_rng(5).random()

    def test_pool_policy(self):
        settings = get_default_settings()
        settings['pool_sizing']['single_pool_max'] = 8
        policy = make_pool_policy(settings)
        assert isinstance(policy, BandedPoolSizing)
        assert policy(8) == 1

    def test_extra_rank_policy(self):
        settings = get_default_settings()
        assert extra_rank_policy(settings) is append_in_rank_order
        settings['extra_rank_order'] = 'reverse_pool_order'
        assert extra_rank_policy(settings) is append_in_reverse_pool_order

    def test_unknown_extra_rank_policy(self):
        settings = get_default_settings()
        settings['extra_rank_order'] = 'shuffled'
        with pytest.raises(ValueError):
            extra_rank_policy(settings)
