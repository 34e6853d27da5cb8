"""
Knockout seeding from pool results.

Qualifiers are grouped by finishing position: all pool winners (toppers),
then all runners-up, then any further advancing positions. The default
``cross_pool`` strategy interleaves toppers with runners-up from other pools
so first-round knockout pairs come from different pools wherever possible.
"""
from collections import namedtuple
from typing import Callable, List, Optional, Sequence

from engine.errors import InsufficientQualifiersError, PoolsIncompleteError
from engine.models import PoolResult

CROSS_POOL = 'cross_pool'
POOL_RANK_ORDER = 'pool_rank_order'
POINT_DIFFERENTIAL = 'point_differential'
STRATEGIES = (CROSS_POOL, POOL_RANK_ORDER, POINT_DIFFERENTIAL)

Qualifier = namedtuple('Qualifier', ['participant', 'pool_name', 'pool_index', 'rank', 'standing'])


def append_in_rank_order(groups: Sequence[Sequence[Qualifier]]) -> List[Qualifier]:
    """Third places in pool order, then fourth places, and so on."""
    return [q for group in groups for q in group]


def append_in_reverse_pool_order(groups: Sequence[Sequence[Qualifier]]) -> List[Qualifier]:
    """Like rank order, but every group runs from the last pool to the first."""
    return [q for group in groups for q in reversed(group)]


EXTRA_RANK_POLICIES = {
    'rank_order': append_in_rank_order,
    'reverse_pool_order': append_in_reverse_pool_order,
}


def group_qualifiers_by_rank(pool_results: Sequence[PoolResult],
                             advance_per_pool: Optional[int] = None) -> List[List[Qualifier]]:
    """One list per finishing position, each in pool order."""
    advance_counts = [result.pool.validate(advance_per_pool) for result in pool_results]

    groups = []
    for rank in range(1, max(advance_counts, default=0) + 1):
        group = []
        for pool_index, (result, advance) in enumerate(zip(pool_results, advance_counts)):
            if rank > advance:
                continue
            for standing in result.standings:
                if standing.rank == rank:
                    group.append(Qualifier(standing.participant, result.pool.name, pool_index, rank, standing))
                    break
        if group:
            groups.append(group)
    return groups


def interleave_toppers(toppers: Sequence[Qualifier], runners_up: Sequence[Qualifier],
                       pool_count: int) -> List[Qualifier]:
    """
    Pair each topper with a runner-up from another pool.

    With one topper and one runner-up per pool, topper ``i`` meets the
    runner-up of pool ``i + 1`` (wrapping around). Otherwise topper ``i``
    starts looking at runner-up ``(i + pool_count // 2) % len(runners_up)``
    and takes the first unused one from a different pool, or the first unused
    one if every remaining runner-up shares its pool.
    """
    if not runners_up:
        return list(toppers)
    if len(toppers) == len(runners_up) == pool_count:
        seeds = []
        for i, topper in enumerate(toppers):
            seeds.extend([topper, runners_up[(i + 1) % pool_count]])
        return seeds

    offset = pool_count // 2
    used = set()
    seeds = []
    unpaired = []
    for i, topper in enumerate(toppers):
        if len(used) == len(runners_up):
            unpaired.append(topper)
            continue
        start = (i + offset) % len(runners_up)
        free = [idx for idx in ((start + k) % len(runners_up) for k in range(len(runners_up)))
                if idx not in used]
        choice = next((idx for idx in free if runners_up[idx].pool_name != topper.pool_name), free[0])
        used.add(choice)
        seeds.extend([topper, runners_up[choice]])

    seeds.extend(unpaired)
    seeds.extend(r for idx, r in enumerate(runners_up) if idx not in used)
    return seeds


def order_qualifiers(pool_results: Sequence[PoolResult], advance_per_pool: Optional[int] = None,
                     strategy: str = CROSS_POOL,
                     extra_rank_policy: Optional[Callable] = None) -> List[Qualifier]:
    """Ordered qualifiers, best seed first. See ``seed_qualifiers``."""
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown seeding strategy: {strategy}")

    incomplete = [r.pool.name for r in pool_results if not r.is_complete]
    if incomplete:
        raise PoolsIncompleteError(f"Pools still have matches to play: {', '.join(incomplete)}")

    groups = group_qualifiers_by_rank(pool_results, advance_per_pool)
    total = sum(len(g) for g in groups)
    if total < 2:
        raise InsufficientQualifiersError(f"Not enough qualifiers ({total}) to build a knockout stage")

    if strategy == POOL_RANK_ORDER:
        return append_in_rank_order(groups)
    if strategy == POINT_DIFFERENTIAL:
        flat = append_in_rank_order(groups)
        return sorted(flat, key=lambda q: (-q.standing.point_differential, q.rank, q.pool_index))

    if len(groups) == 1:
        return list(groups[0])
    if extra_rank_policy is None:
        extra_rank_policy = append_in_rank_order
    seeds = interleave_toppers(groups[0], groups[1], len(pool_results))
    seeds.extend(extra_rank_policy(groups[2:]))
    return seeds


def seed_qualifiers(pool_results: Sequence[PoolResult], advance_per_pool: Optional[int] = None,
                    strategy: str = CROSS_POOL, extra_rank_policy: Optional[Callable] = None) -> List:
    """
    Seed list for the knockout stage of one division.

    Every pool must be complete. The list is handed to the bracket builder
    as-is, which pairs consecutive seeds and gives byes to the first ones.
    """
    return [q.participant for q in order_qualifiers(pool_results, advance_per_pool, strategy, extra_rank_policy)]
