"""
Shared pytest fixtures for the fixture engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset (skips loops over bracket sizes)
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from engine.models import Pool
from engine.round_robin import generate_round_robin_matches


@pytest.fixture
def settings_file(tmp_path, monkeypatch):
    """Point the settings loader at an empty temporary settings file."""
    path = tmp_path / "settings.yaml"
    path.write_text("")
    monkeypatch.setenv('TOURNAMENT_SETTINGS_FILE', str(path))
    return path


@pytest.fixture
def write_settings(settings_file):
    """Write a settings mapping to the temporary settings file."""
    def _write(data):
        settings_file.write_text(yaml.dump(data, default_flow_style=False))
        return settings_file
    return _write


@pytest.fixture
def client(settings_file):
    """Create a test client that reads settings from a temporary file."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def eight_teams():
    return [f"Team {i}" for i in range(1, 9)]


@pytest.fixture
def play_pool():
    """
    Play every match of a pool; ``order`` lists members from strongest to
    weakest and the stronger member always wins 21-15.
    """
    def _play(pool, order=None, start_position=0):
        order = order or pool.members
        strength = {member: i for i, member in enumerate(order)}
        matches = generate_round_robin_matches(pool.members, pool.name, start_position=start_position)
        for match in matches:
            stronger = min(match.slot_a, match.slot_b, key=strength.get)
            match.status = 'completed'
            match.winner = stronger
            match.sets = [[21, 15]] if stronger == match.slot_a else [[15, 21]]
        return matches
    return _play


@pytest.fixture
def two_complete_pools(play_pool):
    """Pool A and Pool B of three, fully played, members ranked in list order."""
    pool_a = Pool("Pool A", ["A1", "A2", "A3"], 2)
    pool_b = Pool("Pool B", ["B1", "B2", "B3"], 2)
    matches = play_pool(pool_a) + play_pool(pool_b, start_position=3)
    return [pool_a, pool_b], matches
