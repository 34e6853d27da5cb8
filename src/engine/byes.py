"""
Winner propagation through a linked bracket.

Both bye resolution and recorded results push winners forward with the same
explicit work queue, so arbitrarily long chains of byes are resolved without
recursion.
"""
from collections import deque
from typing import Dict, List, Optional, Sequence, Set

from engine.elimination import feeder_map
from engine.errors import BracketConstructionInvariant, InvalidResultError
from engine.models import COMPLETED, Match


def _arena(matches: Sequence[Match]) -> Dict[int, Match]:
    arena = {m.bracket_position: m.copy() for m in matches}
    if len(arena) != len(matches):
        raise BracketConstructionInvariant("Match set contains duplicate bracket positions")
    return arena


def _vacant_positions(arena: Dict[int, Match], feeders: Dict[int, List[int]]) -> Set[int]:
    """Positions of matches that can never produce a winner."""
    vacant = set()
    for match in sorted(arena.values(), key=lambda m: (m.round, m.bracket_position)):
        if match.participants or match.winner is not None:
            continue
        if all(p in vacant for p in feeders.get(match.bracket_position, [])):
            vacant.add(match.bracket_position)
    return vacant


def _slot_is_dead(target: Match, slot_index: int, feeders: Dict[int, List[int]], vacant: Set[int]) -> bool:
    # a lone feeder fills slot A, so slot B has no source at all
    sources = feeders.get(target.bracket_position, [])
    if slot_index >= len(sources):
        return True
    return sources[slot_index] in vacant


def _propagate(arena: Dict[int, Match], queue: deque) -> None:
    feeders = feeder_map(list(arena.values()))
    vacant = _vacant_positions(arena, feeders)
    seen = set()

    while queue:
        match = queue.popleft()
        if match.bracket_position in seen:
            continue
        seen.add(match.bracket_position)
        if match.next_match_position is None:
            continue

        target = arena.get(match.next_match_position)
        if target is None:
            raise BracketConstructionInvariant(
                f"Match {match.bracket_position} links to unknown position {match.next_match_position}")

        slot_index = feeders[target.bracket_position].index(match.bracket_position)
        attr = 'slot_a' if slot_index == 0 else 'slot_b'
        current = getattr(target, attr)
        if current is None:
            setattr(target, attr, match.winner)
        elif current != match.winner:
            raise BracketConstructionInvariant(
                f"Match {target.bracket_position} {attr} already holds {current}, "
                f"cannot place {match.winner}")

        if target.is_completed or not target.is_bye:
            continue
        if _slot_is_dead(target, 1 - slot_index, feeders, vacant):
            target.status = COMPLETED
            target.winner = target.participants[0]
            queue.append(target)


def cascade_byes(matches: Sequence[Match]) -> List[Match]:
    """
    Push every known winner forward and resolve the byes this creates.

    Returns a new, position-ordered list; the input matches are left untouched.
    Applying it to an already resolved set changes nothing.
    """
    arena = _arena(matches)
    resolved = sorted(
        (m for m in arena.values() if m.is_completed and m.winner is not None),
        key=lambda m: (m.round, m.bracket_position),
    )
    _propagate(arena, deque(resolved))
    return sorted(arena.values(), key=lambda m: m.bracket_position)


def record_result(matches: Sequence[Match], position: int, winner,
                  sets: Optional[Sequence[Sequence[int]]] = None) -> List[Match]:
    """Complete the contest at ``position`` and advance its winner."""
    arena = _arena(matches)
    match = arena.get(position)
    if match is None:
        raise InvalidResultError(f"No match at position {position}")
    if match.is_completed:
        raise InvalidResultError(f"Match {position} is already completed")
    if len(match.participants) != 2:
        raise InvalidResultError(f"Match {position} does not have two participants yet")
    if winner not in match.participants:
        raise InvalidResultError(f"{winner} did not play in match {position}")

    match.status = COMPLETED
    match.winner = winner
    if sets:
        match.sets = [list(s) for s in sets]
    _propagate(arena, deque([match]))
    return sorted(arena.values(), key=lambda m: m.bracket_position)
