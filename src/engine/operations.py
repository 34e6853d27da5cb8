"""
Request/response boundary of the scheduling engine.

Every operation returns a result object instead of raising for caller
mistakes: ``result.errors`` holds ``{'code', 'message'}`` entries and
``result.ok`` tells whether anything went wrong. BracketConstructionInvariant
is not caught here and reaches the caller as an exception.
"""
import random
from typing import Callable, Dict, Optional, Sequence

from engine.byes import cascade_byes, record_result as _record_result
from engine.elimination import generate_bracket, validate_bracket
from engine.errors import EngineError, InsufficientParticipantsError, InvalidBracketError, UnsupportedFormatError
from engine.models import SEEDING_AS_GIVEN, Match, Pool, PoolResult
from engine.pools import allocate_pools
from engine.round_robin import generate_round_robin_matches
from engine.seeding import CROSS_POOL, seed_qualifiers as _seed_qualifiers
from engine.standings import pool_result

SINGLE_ELIMINATION = 'single_elim'
POOL_KNOCKOUT = 'pool_knockout'
DOUBLE_ELIMINATION = 'double_elim'
FIXTURE_TYPES = (SINGLE_ELIMINATION, POOL_KNOCKOUT)


class OperationResult:
    def __init__(self, errors=None):
        self.errors = errors or []

    @property
    def ok(self):
        return not self.errors

    def to_dict(self):
        return {'errors': list(self.errors)}


class BracketResult(OperationResult):
    def __init__(self, matches=None, errors=None):
        super().__init__(errors)
        self.matches = matches or []

    def to_dict(self):
        data = super().to_dict()
        data['matches'] = [m.to_dict() for m in self.matches]
        return data


class PoolStageResult(OperationResult):
    def __init__(self, pools=None, matches=None, unassigned=None, warnings=None, errors=None):
        super().__init__(errors)
        self.pools = pools or []
        self.matches = matches or []
        self.unassigned = unassigned or []
        self.warnings = warnings or []

    def to_dict(self):
        data = super().to_dict()
        data.update({
            'pools': [p.to_dict() for p in self.pools],
            'matches': [m.to_dict() for m in self.matches],
            'unassigned': list(self.unassigned),
            'warnings': list(self.warnings),
        })
        return data


class StandingsResult(OperationResult):
    def __init__(self, pool_result=None, errors=None):
        super().__init__(errors)
        self.pool_result = pool_result

    @property
    def standings(self):
        return self.pool_result.standings if self.pool_result else []

    @property
    def is_complete(self):
        return bool(self.pool_result and self.pool_result.is_complete)

    def to_dict(self):
        data = super().to_dict()
        if self.pool_result is not None:
            data.update(self.pool_result.to_dict())
        return data


class SeedResult(OperationResult):
    def __init__(self, seeds=None, errors=None):
        super().__init__(errors)
        self.seeds = seeds or []

    def to_dict(self):
        data = super().to_dict()
        data['seeds'] = list(self.seeds)
        return data


def build_bracket(participants: Sequence, seeding: str = SEEDING_AS_GIVEN,
                  rng: Optional[random.Random] = None, auto_advance_byes: bool = True,
                  start_position: int = 0) -> BracketResult:
    try:
        matches = generate_bracket(participants, seeding, rng=rng, start_position=start_position)
    except EngineError as e:
        return BracketResult(errors=[e.to_dict()])
    if auto_advance_byes:
        matches = cascade_byes(matches)
    return BracketResult(matches)


def build_pool_stage(participants: Sequence, pool_count: Optional[int] = None,
                     policy: Optional[Callable[[int], int]] = None,
                     advance_per_pool: int = 2) -> PoolStageResult:
    try:
        allocation = allocate_pools(participants, pool_count=pool_count, policy=policy,
                                    advance_per_pool=advance_per_pool)
        matches = []
        for pool in allocation.pools:
            matches.extend(generate_round_robin_matches(pool.members, pool.name, start_position=len(matches)))
    except EngineError as e:
        return PoolStageResult(errors=[e.to_dict()])
    return PoolStageResult(allocation.pools, matches, allocation.unassigned, allocation.warnings)


def compute_standings(pool: Pool, matches: Sequence[Match]) -> StandingsResult:
    if len(pool.members) < 2:
        error = InsufficientParticipantsError(f"{pool.name} has fewer than 2 members")
        return StandingsResult(errors=[error.to_dict()])
    try:
        pool.validate()
    except EngineError as e:
        return StandingsResult(errors=[e.to_dict()])
    return StandingsResult(pool_result(pool, matches))


def seed_qualifiers(pool_results: Sequence[PoolResult], advance_per_pool: Optional[int] = None,
                    strategy: str = CROSS_POOL, extra_rank_policy: Optional[Callable] = None) -> SeedResult:
    try:
        seeds = _seed_qualifiers(pool_results, advance_per_pool, strategy, extra_rank_policy)
    except EngineError as e:
        return SeedResult(errors=[e.to_dict()])
    return SeedResult(seeds)


def build_knockout_stage(pool_results: Sequence[PoolResult], advance_per_pool: Optional[int] = None,
                         strategy: str = CROSS_POOL, extra_rank_policy: Optional[Callable] = None,
                         auto_advance_byes: bool = True, start_position: int = 0) -> BracketResult:
    """Seed the qualifiers of a division and build their bracket."""
    seeded = seed_qualifiers(pool_results, advance_per_pool, strategy, extra_rank_policy)
    if not seeded.ok:
        return BracketResult(errors=seeded.errors)
    return build_bracket(seeded.seeds, SEEDING_AS_GIVEN, auto_advance_byes=auto_advance_byes,
                         start_position=start_position)


def _check_match_set(matches: Sequence[Match]):
    """Reject a caller-supplied match set that is not a consistent bracket."""
    problems = validate_bracket(matches)
    if problems:
        raise InvalidBracketError("; ".join(problems))


def advance_byes(matches: Sequence[Match]) -> BracketResult:
    try:
        _check_match_set(matches)
    except EngineError as e:
        return BracketResult(list(matches), errors=[e.to_dict()])
    return BracketResult(cascade_byes(matches))


def record_result(matches: Sequence[Match], position: int, winner, sets=None) -> BracketResult:
    try:
        _check_match_set(matches)
        updated = _record_result(matches, position, winner, sets)
    except EngineError as e:
        return BracketResult(list(matches), errors=[e.to_dict()])
    return BracketResult(updated)


def division_rng(random_seed, division) -> random.Random:
    """Random source of one division; seeded from ``random_seed`` and the division name when given."""
    if random_seed is None:
        return random.Random()
    return random.Random(f"{random_seed}:{division}")


def generate_fixtures(divisions: Dict[str, Sequence], fixture_type: str = SINGLE_ELIMINATION,
                      seeding: str = SEEDING_AS_GIVEN, random_seed=None,
                      auto_advance_byes: bool = True, pool_count: Optional[int] = None,
                      policy: Optional[Callable[[int], int]] = None,
                      advance_per_pool: int = 2) -> Dict[str, OperationResult]:
    """
    Generate fixtures for every division independently.

    Each division is its own generation run: bracket positions and pool
    names start over, randomized seeding draws from the division's own
    random source, and a failure in one division leaves the others intact.
    """
    results = {}
    for division, participants in divisions.items():
        if fixture_type == SINGLE_ELIMINATION:
            results[division] = build_bracket(participants, seeding, rng=division_rng(random_seed, division),
                                              auto_advance_byes=auto_advance_byes)
        elif fixture_type == POOL_KNOCKOUT:
            results[division] = build_pool_stage(participants, pool_count=pool_count, policy=policy,
                                                 advance_per_pool=advance_per_pool)
        else:
            if fixture_type == DOUBLE_ELIMINATION:
                error = UnsupportedFormatError("Double elimination is not supported")
            else:
                error = UnsupportedFormatError(f"Unknown fixture type: {fixture_type}")
            results[division] = OperationResult(errors=[error.to_dict()])
    return results
