"""
Pool standings.

Ranking: wins -> point differential -> points for. Members still level after
that keep their order in the pool, so the ranking never depends on chance.
"""
from typing import List, Sequence

from engine.models import PoolResult, PoolStanding, Match, Pool


def _set_points(match: Match):
    points_a = 0
    points_b = 0
    for set_score in match.sets:
        if len(set_score) >= 2 and set_score[0] is not None and set_score[1] is not None:
            points_a += set_score[0]
            points_b += set_score[1]
    return points_a, points_b


def is_pool_complete(matches: Sequence[Match]) -> bool:
    """True once the pool has matches and every one of them is completed."""
    return bool(matches) and all(m.is_completed for m in matches)


def calculate_pool_standings(pool: Pool, matches: Sequence[Match]) -> List[PoolStanding]:
    """Rank every member of ``pool`` from its completed matches."""
    stats = {member: PoolStanding(member) for member in pool.members}

    for match in matches:
        if not match.is_completed:
            continue
        if match.slot_a not in stats or match.slot_b not in stats:
            continue

        team_a = stats[match.slot_a]
        team_b = stats[match.slot_b]
        points_a, points_b = _set_points(match)

        team_a.matches_played += 1
        team_a.points_for += points_a
        team_a.points_against += points_b
        team_b.matches_played += 1
        team_b.points_for += points_b
        team_b.points_against += points_a

        # Use stored winner from result
        if match.winner == match.slot_a:
            team_a.wins += 1
            team_b.losses += 1
        elif match.winner == match.slot_b:
            team_b.wins += 1
            team_a.losses += 1

    ordered = sorted(
        (stats[member] for member in pool.members),
        key=lambda s: (-s.wins, -s.point_differential, -s.points_for),
    )
    for rank, standing in enumerate(ordered, start=1):
        standing.rank = rank
        standing.advances = rank <= pool.advance_count
    return ordered


def pool_result(pool: Pool, matches: Sequence[Match]) -> PoolResult:
    """Standings plus completion counts for one pool."""
    members = set(pool.members)
    own = [m for m in matches
           if m.pool == pool.name or (m.pool is None and m.slot_a in members and m.slot_b in members)]
    return PoolResult(
        pool,
        calculate_pool_standings(pool, own),
        total_matches=len(own),
        completed_matches=sum(1 for m in own if m.is_completed),
    )
