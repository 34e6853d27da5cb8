"""
Tests for the Flask JSON API.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from engine.errors import BracketConstructionInvariant
from engine.operations import build_bracket


def teams(n):
    return [f"Team {i}" for i in range(1, n + 1)]


@pytest.fixture
def played_pools(two_complete_pools):
    pools, matches = two_complete_pools
    return {
        'pools': [p.to_dict() for p in pools],
        'matches': [m.to_dict() for m in matches],
    }


class TestSettingsRoute:
    """Tests for GET /api/settings."""

    def test_defaults(self, client):
        response = client.get('/api/settings')
        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['settings']['fixture_type'] == 'single_elim'

    def test_reads_settings_file(self, client, write_settings):
        write_settings({'qualifier_seeding': 'pool_rank_order'})
        data = client.get('/api/settings').get_json()
        assert data['settings']['qualifier_seeding'] == 'pool_rank_order'


class TestBracketRoute:
    """Tests for POST /api/bracket."""

    def test_build_bracket(self, client):
        response = client.post('/api/bracket', json={'participants': teams(5)})
        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['errors'] == []
        assert len(data['matches']) == 7
        assert data['matches'][4]['slot_a'] == "Team 1"

    def test_without_bye_advancement(self, client):
        response = client.post('/api/bracket', json={'participants': teams(5), 'auto_advance_byes': False})
        assert response.get_json()['matches'][4]['slot_a'] is None

    def test_randomized_seed_is_repeatable(self, client):
        body = {'participants': teams(8), 'seeding': 'randomized', 'random_seed': 11}
        first = client.post('/api/bracket', json=body).get_json()
        second = client.post('/api/bracket', json=body).get_json()
        assert first['matches'] == second['matches']

    def test_too_few_participants(self, client):
        response = client.post('/api/bracket', json={'participants': ["Team 1"]})
        assert response.status_code == 400
        data = response.get_json()
        assert data['success'] is False
        assert data['errors'][0]['code'] == 'InsufficientParticipants'

    def test_unknown_seeding(self, client):
        response = client.post('/api/bracket', json={'participants': teams(4), 'seeding': 'by-rating'})
        assert response.status_code == 400
        assert 'seeding' in response.get_json()['error']

    def test_body_must_be_json_object(self, client):
        response = client.post('/api/bracket', data='not json', content_type='text/plain')
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_auto_advance_byes_must_be_boolean(self, client):
        """The string "false" is not mistaken for a true value."""
        body = {'participants': teams(5), 'auto_advance_byes': "false"}
        response = client.post('/api/bracket', json=body)
        assert response.status_code == 400
        assert 'auto_advance_byes' in response.get_json()['error']

    def test_participants_must_be_a_list(self, client):
        response = client.post('/api/bracket', json={'participants': "Team 1"})
        assert response.status_code == 400


class TestPoolRoutes:
    """Tests for pool stage, standings, qualifiers and knockout routes."""

    def test_pool_stage(self, client):
        response = client.post('/api/pool-stage', json={'participants': teams(8), 'number_of_pools': 2})
        data = response.get_json()
        assert response.status_code == 200
        assert [p['name'] for p in data['pools']] == ["Pool A", "Pool B"]
        assert len(data['matches']) == 12

    def test_pool_stage_uses_pool_sizing_settings(self, client, write_settings):
        write_settings({'pool_sizing': {'single_pool_max': 12}})
        data = client.post('/api/pool-stage', json={'participants': teams(12)}).get_json()
        assert len(data['pools']) == 1

    def test_pool_stage_warning(self, client):
        body = {'participants': teams(5), 'number_of_pools': 3, 'advance_per_pool': 1}
        data = client.post('/api/pool-stage', json=body).get_json()
        assert data['success'] is True
        assert data['unassigned'] == ["Team 5"]
        assert len(data['warnings']) == 1

    def test_pool_stage_bad_pool_count(self, client):
        response = client.post('/api/pool-stage', json={'participants': teams(6), 'number_of_pools': 'two'})
        assert response.status_code == 400

    def test_standings(self, client, played_pools):
        body = {'pool': played_pools['pools'][0], 'matches': played_pools['matches']}
        data = client.post('/api/standings', json=body).get_json()
        assert data['success'] is True
        assert data['is_complete'] is True
        assert [s['participant'] for s in data['standings']] == ["A1", "A2", "A3"]
        assert data['standings'][0]['advances'] is True

    def test_qualifiers(self, client, played_pools):
        data = client.post('/api/qualifiers', json=played_pools).get_json()
        assert data['seeds'] == ["A1", "B2", "B1", "A2"]

    def test_qualifiers_strategy(self, client, played_pools):
        body = dict(played_pools, strategy='pool_rank_order')
        data = client.post('/api/qualifiers', json=body).get_json()
        assert data['seeds'] == ["A1", "B1", "A2", "B2"]

    def test_qualifiers_unknown_strategy(self, client, played_pools):
        body = dict(played_pools, strategy='coin_toss')
        assert client.post('/api/qualifiers', json=body).status_code == 400

    def test_qualifiers_incomplete(self, client, played_pools):
        played_pools['matches'][0]['status'] = 'pending'
        played_pools['matches'][0]['winner'] = None
        response = client.post('/api/qualifiers', json=played_pools)
        assert response.status_code == 400
        assert response.get_json()['errors'][0]['code'] == 'PoolsIncomplete'

    def test_qualifiers_bad_pool(self, client, played_pools):
        played_pools['pools'][0] = {'name': "Pool A", 'members': ["A1"], 'advance': 1}
        response = client.post('/api/qualifiers', json=played_pools)
        assert response.status_code == 400
        assert response.get_json()['errors'][0]['code'] == 'InsufficientParticipants'

    def test_knockout(self, client, played_pools):
        data = client.post('/api/knockout', json=played_pools).get_json()
        assert data['success'] is True
        round1 = [m for m in data['matches'] if m['round'] == 1]
        assert [(m['slot_a'], m['slot_b']) for m in round1] == [("A1", "B2"), ("B1", "A2")]


class TestResultRoutes:
    """Tests for bye advancement and result recording."""

    def test_advance_byes(self, client):
        raw = build_bracket(teams(3), auto_advance_byes=False).matches
        data = client.post('/api/advance-byes', json={'matches': [m.to_dict() for m in raw]}).get_json()
        assert data['matches'][2]['slot_a'] == "Team 1"

    def test_record_result(self, client):
        matches = [m.to_dict() for m in build_bracket(teams(4)).matches]
        body = {'matches': matches, 'position': 1, 'winner': "Team 4", 'sets': [[21, 17], [21, 19]]}
        data = client.post('/api/results', json=body).get_json()
        assert data['success'] is True
        assert data['matches'][1]['winner'] == "Team 4"
        assert data['matches'][1]['sets'] == [[21, 17], [21, 19]]
        assert data['matches'][2]['slot_b'] == "Team 4"

    def test_record_result_wrong_winner(self, client):
        matches = [m.to_dict() for m in build_bracket(teams(4)).matches]
        response = client.post('/api/results', json={'matches': matches, 'position': 1, 'winner': "Team 1"})
        assert response.status_code == 400
        data = response.get_json()
        assert data['errors'][0]['code'] == 'InvalidResult'
        assert data['matches'] == matches

    def test_record_result_needs_position(self, client):
        matches = [m.to_dict() for m in build_bracket(teams(4)).matches]
        response = client.post('/api/results', json={'matches': matches, 'winner': "Team 1"})
        assert response.status_code == 400
        assert 'position' in response.get_json()['error']

    def test_invalid_match_payload(self, client):
        response = client.post('/api/advance-byes', json={'matches': [{'round': 1}]})
        assert response.status_code == 400

    def test_duplicate_positions_are_bad_request(self, client):
        matches = [
            {'round': 1, 'bracket_position': 0, 'slot_a': "A", 'slot_b': "B"},
            {'round': 1, 'bracket_position': 0, 'slot_a': "C", 'slot_b': "D"},
        ]
        response = client.post('/api/advance-byes', json={'matches': matches})
        assert response.status_code == 400
        assert response.get_json()['errors'][0]['code'] == 'InvalidBracket'

    def test_dangling_link_is_bad_request(self, client):
        matches = [{'round': 1, 'bracket_position': 0, 'slot_a': "Team A", 'slot_b': None,
                    'status': 'completed', 'winner': "Team A", 'next_match_position': 99}]
        response = client.post('/api/advance-byes', json={'matches': matches})
        assert response.status_code == 400
        data = response.get_json()
        assert data['success'] is False
        assert data['errors'][0]['code'] == 'InvalidBracket'

    def test_record_result_on_inconsistent_bracket(self, client):
        matches = [m.to_dict() for m in build_bracket(teams(3), auto_advance_byes=False).matches]
        matches[2]['slot_a'] = "Team 9"
        body = {'matches': matches, 'position': 1, 'winner': "Team 2"}
        response = client.post('/api/results', json=body)
        assert response.status_code == 400
        assert response.get_json()['errors'][0]['code'] == 'InvalidBracket'

    def test_construction_invariant_is_server_error(self, client, monkeypatch):
        """A fault inside the engine is a 500, not a caller error."""
        import app as app_module

        def broken(*args, **kwargs):
            raise BracketConstructionInvariant("Round 1 pair 0 has no participants")

        monkeypatch.setattr(app_module, 'build_bracket', broken)
        response = client.post('/api/bracket', json={'participants': teams(4)})
        assert response.status_code == 500
        assert response.get_json()['errors'][0]['code'] == 'BracketConstructionInvariant'


class TestFixturesRoute:
    """Tests for POST /api/fixtures."""

    def test_single_elimination_divisions(self, client):
        body = {'divisions': {'Open': teams(4), 'Juniors': ["Solo"]}}
        response = client.post('/api/fixtures', json=body)
        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is False
        assert data['fixture_type'] == 'single_elim'
        assert data['divisions']['Open']['success'] is True
        assert len(data['divisions']['Open']['matches']) == 3
        assert data['divisions']['Juniors']['errors'][0]['code'] == 'InsufficientParticipants'

    def test_pool_knockout_from_settings(self, client, write_settings):
        write_settings({'fixture_type': 'pool_knockout', 'number_of_pools': 2})
        data = client.post('/api/fixtures', json={'divisions': {'Open': teams(8)}}).get_json()
        assert data['success'] is True
        assert len(data['divisions']['Open']['pools']) == 2

    def test_double_elimination(self, client):
        body = {'divisions': {'Open': teams(4)}, 'fixture_type': 'double_elim'}
        data = client.post('/api/fixtures', json=body).get_json()
        assert data['divisions']['Open']['errors'][0]['code'] == 'UnsupportedFormat'

    def test_randomized_division_ignores_other_divisions(self, client):
        body = {'divisions': {'Open': teams(8)}, 'seeding': 'randomized', 'random_seed': 3}
        alone = client.post('/api/fixtures', json=body).get_json()
        body['divisions'] = {'Juniors': teams(8), 'Open': teams(8)}
        together = client.post('/api/fixtures', json=body).get_json()
        assert alone['divisions']['Open']['matches'] == together['divisions']['Open']['matches']

    def test_auto_advance_byes_zero_is_rejected(self, client):
        body = {'divisions': {'Open': teams(4)}, 'auto_advance_byes': 0}
        assert client.post('/api/fixtures', json=body).status_code == 400

    def test_divisions_must_be_mapping(self, client):
        response = client.post('/api/fixtures', json={'divisions': teams(4)})
        assert response.status_code == 400
