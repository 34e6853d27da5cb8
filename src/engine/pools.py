"""
Partitioning participants into pools.
"""
import math
from typing import Callable, List, Optional, Sequence

from engine.errors import InsufficientParticipantsError, InvalidPoolConfigurationError
from engine.models import Pool

MIN_MEMBERS_PER_POOL = 2


class FixedPoolCount:
    """Sizing policy that always asks for the same number of pools."""

    def __init__(self, count):
        self.count = count

    def __call__(self, participant_count):
        return self.count

    def __repr__(self):
        return f"FixedPoolCount(count={self.count})"


class BandedPoolSizing:
    """
    Choose the pool count from the participant count.

    Small fields play a single pool. Larger fields get the pool count whose
    average pool size falls inside ``[min_pool_size, max_pool_size]`` and is
    closest to ``ideal_pool_size``.
    """

    def __init__(self, single_pool_max=6, min_pool_size=3, max_pool_size=6, ideal_pool_size=4):
        self.single_pool_max = single_pool_max
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.ideal_pool_size = ideal_pool_size

    def __call__(self, participant_count):
        if participant_count <= self.single_pool_max:
            return 1

        best_pools = 2
        best_diff = None
        for num_pools in range(2, math.ceil(participant_count / self.min_pool_size) + 1):
            avg_size = participant_count / num_pools
            if self.min_pool_size <= avg_size <= self.max_pool_size:
                diff = abs(avg_size - self.ideal_pool_size)
                if best_diff is None or diff < best_diff:
                    best_diff = diff
                    best_pools = num_pools
        return best_pools

    def __repr__(self):
        return (f"BandedPoolSizing(single_pool_max={self.single_pool_max}, min={self.min_pool_size}, "
                f"max={self.max_pool_size}, ideal={self.ideal_pool_size})")


class PoolAllocation:
    def __init__(self, pools, unassigned=None, warnings=None):
        self.pools = pools
        self.unassigned = unassigned or []
        self.warnings = warnings or []

    def __repr__(self):
        return (f"PoolAllocation(pools={[p.name for p in self.pools]}, "
                f"unassigned={self.unassigned}, warnings={len(self.warnings)})")


def pool_name(index: int) -> str:
    """0 -> 'Pool A', 25 -> 'Pool Z', 26 -> 'Pool AA'."""
    letters = ''
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return f"Pool {letters}"


def split_evenly(participants: Sequence, pool_count: int) -> List[list]:
    """Contiguous blocks whose sizes differ by at most one, larger blocks first."""
    base, extra = divmod(len(participants), pool_count)
    blocks = []
    start = 0
    for i in range(pool_count):
        size = base + 1 if i < extra else base
        blocks.append(list(participants[start:start + size]))
        start += size
    return blocks


def allocate_pools(participants: Sequence, pool_count: Optional[int] = None,
                   policy: Optional[Callable[[int], int]] = None,
                   advance_per_pool: int = 2) -> PoolAllocation:
    """
    Split ``participants`` into balanced pools.

    Either ``pool_count`` or a sizing ``policy`` picks the number of pools;
    with neither, ``BandedPoolSizing`` is used. Pools that end up with fewer
    than two members are dropped and their members reported as unassigned.
    """
    if len(participants) < MIN_MEMBERS_PER_POOL:
        raise InsufficientParticipantsError(
            f"Need at least {MIN_MEMBERS_PER_POOL} participants for a pool stage, got {len(participants)}")
    if pool_count is not None:
        policy = FixedPoolCount(pool_count)
    elif policy is None:
        policy = BandedPoolSizing()

    count = policy(len(participants))
    if count is None or count < 1:
        raise InvalidPoolConfigurationError(f"Sizing policy {policy!r} produced {count} pools")
    if advance_per_pool < 1:
        raise InvalidPoolConfigurationError(f"advance_per_pool must be at least 1, got {advance_per_pool}")

    pools = []
    unassigned = []
    warnings = []
    for index, members in enumerate(split_evenly(participants, count)):
        name = pool_name(index)
        if len(members) < MIN_MEMBERS_PER_POOL:
            unassigned.extend(members)
            warnings.append(
                f"{name} has fewer than {MIN_MEMBERS_PER_POOL} members ({len(members)} found: {members}); "
                f"members left unassigned")
            continue
        pool = Pool(name, members, advance_per_pool)
        pool.validate()
        pools.append(pool)

    if not pools:
        raise InvalidPoolConfigurationError(
            f"{count} pools for {len(participants)} participants leaves no pool with "
            f"{MIN_MEMBERS_PER_POOL} or more members")
    return PoolAllocation(pools, unassigned, warnings)
