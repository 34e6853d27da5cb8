from engine.errors import InvalidPoolConfigurationError

PENDING = 'pending'
COMPLETED = 'completed'
MATCH_STATUSES = (PENDING, COMPLETED)

SEEDING_AS_GIVEN = 'as-given'
SEEDING_RANDOMIZED = 'randomized'
SEEDING_MODES = (SEEDING_AS_GIVEN, SEEDING_RANDOMIZED)


class Match:
    def __init__(self, round, bracket_position, slot_a=None, slot_b=None, status=PENDING,
                 winner=None, next_match_position=None, pool=None, sets=None):
        if status not in MATCH_STATUSES:
            raise ValueError(f"Unknown match status: {status}")
        self.round = round
        self.bracket_position = bracket_position
        self.slot_a = slot_a
        self.slot_b = slot_b
        self.status = status
        self.winner = winner
        self.next_match_position = next_match_position
        self.pool = pool  # None for knockout matches
        self.sets = [list(s) for s in sets] if sets else []

    @property
    def participants(self):
        return [p for p in (self.slot_a, self.slot_b) if p is not None]

    @property
    def is_bye(self):
        return len(self.participants) == 1

    @property
    def is_placeholder(self):
        return self.slot_a is None and self.slot_b is None

    @property
    def is_completed(self):
        return self.status == COMPLETED

    def copy(self):
        return Match.from_dict(self.to_dict())

    def to_dict(self):
        return {
            'round': self.round,
            'bracket_position': self.bracket_position,
            'slot_a': self.slot_a,
            'slot_b': self.slot_b,
            'status': self.status,
            'winner': self.winner,
            'next_match_position': self.next_match_position,
            'pool': self.pool,
            'sets': [list(s) for s in self.sets],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            round=int(data['round']),
            bracket_position=int(data['bracket_position']),
            slot_a=data.get('slot_a'),
            slot_b=data.get('slot_b'),
            status=data.get('status', PENDING),
            winner=data.get('winner'),
            next_match_position=data.get('next_match_position'),
            pool=data.get('pool'),
            sets=data.get('sets'),
        )

    def __eq__(self, other):
        if not isinstance(other, Match):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Match(round={self.round}, position={self.bracket_position}, "
                f"{self.slot_a} vs {self.slot_b}, status={self.status}, winner={self.winner}, "
                f"next={self.next_match_position})")


class Pool:
    def __init__(self, name, members, advance_count=2):
        self.name = name
        self.members = list(members)
        self.advance_count = advance_count

    def validate(self, advance_count=None):
        """
        Check that the pool advances at least one member and never all of them.

        Returns the advance count in force (``advance_count`` overrides the
        pool's own), or raises InvalidPoolConfigurationError.
        """
        advance = self.advance_count if advance_count is None else advance_count
        if advance < 1 or advance >= len(self.members):
            raise InvalidPoolConfigurationError(
                f"{self.name} has {len(self.members)} members, cannot advance {advance}")
        return advance

    def to_dict(self):
        return {'name': self.name, 'members': list(self.members), 'advance': self.advance_count}

    @classmethod
    def from_dict(cls, data):
        return cls(data['name'], data.get('members', []), int(data.get('advance', 2)))

    def __eq__(self, other):
        if not isinstance(other, Pool):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Pool(name={self.name}, members={self.members}, advance={self.advance_count})"


class PoolStanding:
    def __init__(self, participant, wins=0, losses=0, matches_played=0, points_for=0,
                 points_against=0, rank=None, advances=False):
        self.participant = participant
        self.wins = wins
        self.losses = losses
        self.matches_played = matches_played
        self.points_for = points_for
        self.points_against = points_against
        self.rank = rank
        self.advances = advances

    @property
    def point_differential(self):
        return self.points_for - self.points_against

    @property
    def win_percentage(self):
        if not self.matches_played:
            return 0.0
        return self.wins / self.matches_played * 100

    def to_dict(self):
        return {
            'participant': self.participant,
            'wins': self.wins,
            'losses': self.losses,
            'matches_played': self.matches_played,
            'points_for': self.points_for,
            'points_against': self.points_against,
            'point_differential': self.point_differential,
            'win_percentage': self.win_percentage,
            'rank': self.rank,
            'advances': self.advances,
        }

    def __repr__(self):
        return (f"PoolStanding(participant={self.participant}, rank={self.rank}, wins={self.wins}, "
                f"diff={self.point_differential}, advances={self.advances})")


class PoolResult:
    """A pool together with its ranked standings and completion state."""

    def __init__(self, pool, standings, total_matches=0, completed_matches=0):
        self.pool = pool
        self.standings = standings
        self.total_matches = total_matches
        self.completed_matches = completed_matches

    @property
    def is_complete(self):
        return self.total_matches > 0 and self.completed_matches == self.total_matches

    def qualifiers(self, advance_count=None):
        """Standings of the members that advance, best first."""
        if advance_count is None:
            advance_count = self.pool.advance_count
        ranked = sorted(self.standings, key=lambda s: s.rank)
        return ranked[:advance_count]

    def to_dict(self):
        return {
            'pool': self.pool.to_dict(),
            'standings': [s.to_dict() for s in self.standings],
            'is_complete': self.is_complete,
            'total_matches': self.total_matches,
            'completed_matches': self.completed_matches,
        }

    def __repr__(self):
        return (f"PoolResult(pool={self.pool.name}, complete={self.is_complete}, "
                f"standings={len(self.standings)})")
