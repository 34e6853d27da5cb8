"""
Engine settings: defaults merged with an optional YAML file.
"""
import os
import random

import yaml

from engine.pools import BandedPoolSizing
from engine.seeding import EXTRA_RANK_POLICIES

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))


def get_default_settings():
    """Return default settings."""
    return {
        'fixture_type': 'single_elim',
        'seed_order': 'as-given',
        'random_seed': None,
        'auto_advance_byes': True,
        'number_of_pools': None,  # None lets pool_sizing decide
        'advance_per_pool': 2,
        'qualifier_seeding': 'cross_pool',
        'extra_rank_order': 'rank_order',
        'pool_sizing': {
            'single_pool_max': 6,
            'min_pool_size': 3,
            'max_pool_size': 6,
            'ideal_pool_size': 4,
        },
    }


def settings_path():
    return os.environ.get('TOURNAMENT_SETTINGS_FILE', os.path.join(DATA_DIR, 'settings.yaml'))


def load_settings(path=None):
    """Load settings from YAML file, merging with defaults."""
    settings = get_default_settings()
    path = path or settings_path()
    if not os.path.exists(path):
        return settings
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if not data:
        return settings
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of settings")
    for key, value in data.items():
        if key == 'pool_sizing' and isinstance(value, dict):
            settings['pool_sizing'].update(value)
        else:
            settings[key] = value
    return settings


def make_rng(seed=None):
    """A private random source; seeded when ``seed`` is given."""
    return random.Random(seed)


def make_pool_policy(settings):
    return BandedPoolSizing(**settings['pool_sizing'])


def extra_rank_policy(settings):
    name = settings.get('extra_rank_order', 'rank_order')
    if name not in EXTRA_RANK_POLICIES:
        raise ValueError(f"Unknown extra_rank_order: {name}")
    return EXTRA_RANK_POLICIES[name]
