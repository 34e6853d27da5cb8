"""
Unit tests for round-robin match generation.
"""
import pytest
import sys
import os
from itertools import combinations

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from engine.errors import InsufficientParticipantsError
from engine.round_robin import generate_round_robin_matches


class TestRoundRobin:
    """Tests for pool play match generation."""

    def test_three_members(self):
        """3 members produce 3 matches in member order."""
        matches = generate_round_robin_matches(["Team A", "Team B", "Team C"], "Pool A")
        assert [(m.slot_a, m.slot_b) for m in matches] == [
            ("Team A", "Team B"), ("Team A", "Team C"), ("Team B", "Team C")]
        for match in matches:
            assert match.round == 1
            assert match.pool == "Pool A"
            assert match.status == 'pending'
            assert match.next_match_position is None

    def test_every_pair_once(self):
        members = [f"Team {i}" for i in range(6)]
        matches = generate_round_robin_matches(members)
        pairs = [frozenset((m.slot_a, m.slot_b)) for m in matches]
        assert len(matches) == 15
        assert len(set(pairs)) == 15
        assert set(pairs) == {frozenset(p) for p in combinations(members, 2)}

    def test_positions_start_at_offset(self):
        matches = generate_round_robin_matches(["X", "Y", "Z"], "Pool B", start_position=7)
        assert [m.bracket_position for m in matches] == [7, 8, 9]

    def test_two_members(self):
        matches = generate_round_robin_matches(["X", "Y"])
        assert len(matches) == 1

    def test_too_few_members(self):
        with pytest.raises(InsufficientParticipantsError):
            generate_round_robin_matches(["X"], "Pool A")
