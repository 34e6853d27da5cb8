"""
Flask JSON service for the tournament scheduling engine.

The service is stateless: callers send participant lists, pools and matches,
and get generated structures back. Persisting them is the caller's job.
"""
from flask import Flask, request, jsonify
from werkzeug.exceptions import BadRequest

from engine.errors import BracketConstructionInvariant
from engine.models import SEEDING_MODES, Match, Pool
from engine.operations import (advance_byes, build_bracket, build_knockout_stage, build_pool_stage,
                               compute_standings, generate_fixtures, record_result, seed_qualifiers)
from engine.seeding import STRATEGIES
from settings import extra_rank_policy, load_settings, make_pool_policy, make_rng

app = Flask(__name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest('Request body must be a JSON object.')
    return data


def _list_field(data: dict, key: str) -> list:
    value = data.get(key)
    if not isinstance(value, list):
        raise BadRequest(f"'{key}' must be a list.")
    return value


def _int_field(data: dict, key: str, default=None):
    value = data.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f"'{key}' must be an integer.")


def _bool_field(data: dict, key: str, default=None):
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise BadRequest(f"'{key}' must be true or false.")
    return value


def _parse_matches(raw: list) -> list:
    try:
        return [Match.from_dict(m) for m in raw]
    except (KeyError, TypeError, ValueError) as e:
        raise BadRequest(f'Invalid match: {e}')


def _parse_pool(raw) -> Pool:
    try:
        return Pool.from_dict(raw)
    except (KeyError, TypeError, ValueError) as e:
        raise BadRequest(f'Invalid pool: {e}')


def _seeding(data: dict, settings: dict) -> str:
    seeding = data.get('seeding', settings['seed_order'])
    if seeding not in SEEDING_MODES:
        raise BadRequest(f"'seeding' must be one of {', '.join(SEEDING_MODES)}.")
    return seeding


def _strategy(data: dict, settings: dict) -> str:
    strategy = data.get('strategy', settings['qualifier_seeding'])
    if strategy not in STRATEGIES:
        raise BadRequest(f"'strategy' must be one of {', '.join(STRATEGIES)}.")
    return strategy


def _pool_results(data: dict):
    """
    Standings for every pool in the request, in request order.

    Returns ``(pool_results, None)``, or ``(None, failed_result)`` for the
    first pool that cannot be ranked.
    """
    matches = _parse_matches(_list_field(data, 'matches'))
    results = []
    for raw_pool in _list_field(data, 'pools'):
        standings = compute_standings(_parse_pool(raw_pool), matches)
        if not standings.ok:
            return None, standings
        results.append(standings.pool_result)
    return results, None


def _respond(result, **extra):
    payload = result.to_dict()
    payload['success'] = result.ok
    payload.update(extra)
    if not result.ok:
        app.logger.warning(f'{request.path} rejected: {result.errors}')
        return jsonify(payload), 400
    return jsonify(payload)


@app.errorhandler(BadRequest)
def handle_bad_request(e):
    return jsonify({'success': False, 'error': e.description}), 400


@app.errorhandler(BracketConstructionInvariant)
def handle_construction_invariant(e):
    app.logger.error(f'Bracket construction invariant violated on {request.path}: {e}', exc_info=e)
    return jsonify({'success': False, 'errors': [{'code': e.code, 'message': str(e)}]}), 500


@app.route('/api/settings', methods=['GET'])
def api_settings():
    return jsonify({'success': True, 'settings': load_settings()})


@app.route('/api/bracket', methods=['POST'])
def api_bracket():
    """Build a single elimination bracket from a participant list."""
    settings = load_settings()
    data = _json_body()
    participants = _list_field(data, 'participants')
    result = build_bracket(
        participants,
        _seeding(data, settings),
        rng=make_rng(data.get('random_seed', settings['random_seed'])),
        auto_advance_byes=_bool_field(data, 'auto_advance_byes', settings['auto_advance_byes']),
    )
    if result.ok:
        app.logger.info(f'Built bracket: {len(participants)} participants, {len(result.matches)} matches')
    return _respond(result)


@app.route('/api/pool-stage', methods=['POST'])
def api_pool_stage():
    """Split participants into pools and generate their round-robin matches."""
    settings = load_settings()
    data = _json_body()
    participants = _list_field(data, 'participants')
    pool_count = _int_field(data, 'number_of_pools', settings['number_of_pools'])
    result = build_pool_stage(
        participants,
        pool_count=pool_count,
        policy=None if pool_count else make_pool_policy(settings),
        advance_per_pool=_int_field(data, 'advance_per_pool', settings['advance_per_pool']),
    )
    for warning in result.warnings:
        app.logger.warning(warning)
    if result.ok:
        app.logger.info(f'Built pool stage: {len(result.pools)} pools, {len(result.matches)} matches')
    return _respond(result)


@app.route('/api/standings', methods=['POST'])
def api_standings():
    data = _json_body()
    pool = _parse_pool(data.get('pool'))
    matches = _parse_matches(_list_field(data, 'matches'))
    return _respond(compute_standings(pool, matches))


@app.route('/api/qualifiers', methods=['POST'])
def api_qualifiers():
    """Ordered knockout seed list from completed pools."""
    settings = load_settings()
    data = _json_body()
    pool_results, failure = _pool_results(data)
    if failure is not None:
        return _respond(failure)
    result = seed_qualifiers(
        pool_results,
        advance_per_pool=_int_field(data, 'advance_per_pool'),
        strategy=_strategy(data, settings),
        extra_rank_policy=extra_rank_policy(settings),
    )
    return _respond(result)


@app.route('/api/knockout', methods=['POST'])
def api_knockout():
    """Seed the qualifiers of completed pools and build their bracket."""
    settings = load_settings()
    data = _json_body()
    pool_results, failure = _pool_results(data)
    if failure is not None:
        return _respond(failure)
    result = build_knockout_stage(
        pool_results,
        advance_per_pool=_int_field(data, 'advance_per_pool'),
        strategy=_strategy(data, settings),
        extra_rank_policy=extra_rank_policy(settings),
        auto_advance_byes=_bool_field(data, 'auto_advance_byes', settings['auto_advance_byes']),
    )
    if result.ok:
        app.logger.info(f'Built knockout stage from {len(pool_results)} pools: {len(result.matches)} matches')
    return _respond(result)


@app.route('/api/advance-byes', methods=['POST'])
def api_advance_byes():
    data = _json_body()
    return _respond(advance_byes(_parse_matches(_list_field(data, 'matches'))))


@app.route('/api/results', methods=['POST'])
def api_results():
    """Record the winner of a match and advance them through the bracket."""
    data = _json_body()
    matches = _parse_matches(_list_field(data, 'matches'))
    position = _int_field(data, 'position')
    if position is None:
        raise BadRequest("'position' is required.")
    return _respond(record_result(matches, position, data.get('winner'), data.get('sets')))


@app.route('/api/fixtures', methods=['POST'])
def api_fixtures():
    """Generate fixtures for several divisions, each independently."""
    settings = load_settings()
    data = _json_body()
    divisions = data.get('divisions')
    if not isinstance(divisions, dict) or not all(isinstance(v, list) for v in divisions.values()):
        raise BadRequest("'divisions' must map division names to participant lists.")

    pool_count = _int_field(data, 'number_of_pools', settings['number_of_pools'])
    fixture_type = data.get('fixture_type', settings['fixture_type'])
    results = generate_fixtures(
        divisions,
        fixture_type=fixture_type,
        seeding=_seeding(data, settings),
        random_seed=data.get('random_seed', settings['random_seed']),
        auto_advance_byes=_bool_field(data, 'auto_advance_byes', settings['auto_advance_byes']),
        pool_count=pool_count,
        policy=None if pool_count else make_pool_policy(settings),
        advance_per_pool=_int_field(data, 'advance_per_pool', settings['advance_per_pool']),
    )

    payload = {}
    for division, result in results.items():
        if result.ok:
            app.logger.info(f'{division}: generated {fixture_type} fixtures')
        else:
            app.logger.warning(f'{division}: {result.errors}')
        payload[division] = dict(result.to_dict(), success=result.ok)
    return jsonify({
        'success': all(r.ok for r in results.values()),
        'fixture_type': fixture_type,
        'divisions': payload,
    })


if __name__ == '__main__':
    app.run(debug=True)
