from itertools import combinations
from typing import List, Sequence

from engine.errors import InsufficientParticipantsError
from engine.models import Match


def generate_round_robin_matches(members: Sequence, pool_name=None, start_position: int = 0) -> List[Match]:
    """
    Pair every member of a pool with every other member exactly once.

    Slots follow member order, so ``members[i]`` is always slot A against
    ``members[j]`` for ``i < j``.
    """
    if len(members) < 2:
        raise InsufficientParticipantsError(
            f"Pool {pool_name} needs at least 2 members for round-robin, got {len(members)}")

    matches = []
    for position, (member_a, member_b) in enumerate(combinations(members, 2), start=start_position):
        matches.append(Match(round=1, bracket_position=position, slot_a=member_a, slot_b=member_b,
                             pool=pool_name))
    return matches
