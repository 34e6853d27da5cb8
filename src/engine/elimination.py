"""
Single elimination bracket generation.

Positions are allocated round by round, so the match at round-relative index
``i`` of round ``r`` sits at ``start + matches_before(r) + i`` and feeds
index ``i // 2`` of round ``r + 1``.
"""
import math
import random
from typing import Dict, List, Optional, Sequence, Tuple

from engine.errors import BracketConstructionInvariant, InsufficientParticipantsError
from engine.models import COMPLETED, PENDING, SEEDING_AS_GIVEN, SEEDING_MODES, SEEDING_RANDOMIZED, Match


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of teams."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def round_name_for(round_number: int, total_rounds: int) -> str:
    """Name of ``round_number`` in a bracket with ``total_rounds`` rounds."""
    return get_round_name(2 ** (total_rounds - round_number + 1))


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_teams))


def calculate_byes(num_teams: int) -> int:
    """Calculate number of byes needed."""
    bracket_size = calculate_bracket_size(num_teams)
    return bracket_size - num_teams


def _matches_before_round(bracket_size: int, round_number: int) -> int:
    return bracket_size - bracket_size // 2 ** (round_number - 1)


def _pad_with_byes(seeds: Sequence, bracket_size: int) -> List:
    """
    Lay the seeds out over ``bracket_size`` slots.

    Each bye slot is placed directly after one of the earliest seeds, so the
    highest seeds receive the byes and no pair ever holds two empty slots.
    """
    byes = bracket_size - len(seeds)
    slots = []
    for seed in seeds[:byes]:
        slots.extend([seed, None])
    slots.extend(seeds[byes:])
    return slots


def generate_bracket(participants: Sequence, seeding: str = SEEDING_AS_GIVEN,
                     rng: Optional[random.Random] = None, start_position: int = 0) -> List[Match]:
    """
    Build every match of a single elimination bracket.

    Round 1 holds the seeded pairs, with byes already completed; later rounds
    are placeholders linked through ``next_match_position``. Byes are not
    propagated here, see ``engine.byes.cascade_byes``.
    """
    if seeding not in SEEDING_MODES:
        raise ValueError(f"Unknown seeding mode: {seeding}")
    if len(participants) < 2:
        raise InsufficientParticipantsError(
            f"Need at least 2 participants for a bracket, got {len(participants)}")

    seeds = list(participants)
    if seeding == SEEDING_RANDOMIZED:
        if rng is None:
            rng = random.Random()
        rng.shuffle(seeds)

    bracket_size = calculate_bracket_size(len(seeds))
    total_rounds = int(math.log2(bracket_size))
    slots = _pad_with_byes(seeds, bracket_size)

    matches = []
    for index in range(bracket_size // 2):
        slot_a, slot_b = slots[2 * index], slots[2 * index + 1]
        match = Match(round=1, bracket_position=start_position + index, slot_a=slot_a, slot_b=slot_b)
        if match.is_placeholder:
            raise BracketConstructionInvariant(
                f"Round 1 pair {index} has no participants (bracket size {bracket_size}, "
                f"{len(seeds)} participants)")
        if match.is_bye:
            match.status = COMPLETED
            match.winner = match.participants[0]
        matches.append(match)

    for round_number in range(2, total_rounds + 1):
        offset = start_position + _matches_before_round(bracket_size, round_number)
        for index in range(bracket_size // 2 ** round_number):
            matches.append(Match(round=round_number, bracket_position=offset + index, status=PENDING))

    for match in matches:
        if match.round < total_rounds:
            index = match.bracket_position - start_position - _matches_before_round(bracket_size, match.round)
            next_offset = start_position + _matches_before_round(bracket_size, match.round + 1)
            match.next_match_position = next_offset + index // 2

    problems = validate_bracket(matches)
    if problems:
        raise BracketConstructionInvariant("; ".join(problems))
    return matches


def feeder_map(matches: Sequence[Match]) -> Dict[int, List[int]]:
    """Map each target position to the positions feeding it, lowest first."""
    feeders = {}
    for match in matches:
        if match.next_match_position is not None:
            feeders.setdefault(match.next_match_position, []).append(match.bracket_position)
    for positions in feeders.values():
        positions.sort()
    return feeders


def next_match_slot(matches: Sequence[Match], position: int) -> Optional[Tuple[str, int]]:
    """
    Return ``(slot, next_position)`` for the winner of the match at ``position``.

    ``slot`` is ``'a'`` for the lower-positioned feeder and ``'b'`` for the
    other one. Returns None for the final or an unknown position.
    """
    by_position = {m.bracket_position: m for m in matches}
    match = by_position.get(position)
    if match is None or match.next_match_position is None:
        return None
    siblings = feeder_map(matches)[match.next_match_position]
    slot = 'a' if siblings.index(position) == 0 else 'b'
    return slot, match.next_match_position


def validate_bracket(matches: Sequence[Match]) -> List[str]:
    """Check the structural rules of a linked bracket. Returns a list of problems."""
    problems = []
    by_position = {}
    for match in matches:
        if match.bracket_position in by_position:
            problems.append(f"Duplicate bracket position {match.bracket_position}")
        by_position[match.bracket_position] = match

    for match in matches:
        pos = match.bracket_position
        if match.next_match_position is not None:
            target = by_position.get(match.next_match_position)
            if target is None:
                problems.append(f"Match {pos} links to unknown position {match.next_match_position}")
            elif target.round != match.round + 1:
                problems.append(
                    f"Match {pos} in round {match.round} links to round {target.round}")
        if match.round == 1:
            if match.is_placeholder:
                problems.append(f"Match {pos} in round 1 has no participants")
            elif match.is_bye and (match.status != COMPLETED or match.winner not in match.participants):
                problems.append(f"Bye at position {pos} is not completed with its participant as winner")
        if match.status == COMPLETED and match.winner is not None and match.winner not in match.participants:
            problems.append(f"Match {pos} winner {match.winner} did not play in it")

    feeders = feeder_map(matches)
    for target, positions in feeders.items():
        if len(positions) != 2:
            problems.append(f"Match {target} is fed by {len(positions)} matches instead of 2")

    for match in matches:
        target = by_position.get(match.next_match_position)
        if target is None or not match.is_completed or match.winner is None:
            continue
        attr = 'slot_a' if feeders[target.bracket_position].index(match.bracket_position) == 0 else 'slot_b'
        current = getattr(target, attr)
        if current is not None and current != match.winner:
            problems.append(
                f"Match {target.bracket_position} {attr} holds {current}, "
                f"but match {match.bracket_position} was won by {match.winner}")
    return problems
