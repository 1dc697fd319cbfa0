SCHEDULED = 'scheduled'
IN_PROGRESS = 'in_progress'
COMPLETED = 'completed'

GAME_STATUSES = (SCHEDULED, IN_PROGRESS, COMPLETED)


def _team_id(value):
    """Extract a team id from a plain id or a nested team record."""
    # Nested selects can come back as a one-element list
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if isinstance(value, dict):
        return value.get('id')
    return value


class Game:
    def __init__(self, id, tournament_id, team_a, team_b, date=None, rink=None,
                 status=SCHEDULED, score_a=None, score_b=None):
        self.id = id
        self.tournament_id = tournament_id
        self.team_a = team_a
        self.team_b = team_b
        self.date = date
        self.rink = rink
        self.status = status
        self.score_a = score_a
        self.score_b = score_b

    @classmethod
    def from_dict(cls, record):
        """Build a Game from a stored record.

        Team fields may be plain ids or nested ``{'id': ..., 'name': ...}``
        records; ``team_a_id``/``team_b_id`` keys are accepted as well.
        """
        team_a = record.get('team_a', record.get('team_a_id'))
        team_b = record.get('team_b', record.get('team_b_id'))
        return cls(
            id=record.get('id'),
            tournament_id=record.get('tournament_id'),
            team_a=_team_id(team_a),
            team_b=_team_id(team_b),
            date=record.get('date'),
            rink=record.get('rink') or None,
            status=record.get('status') or SCHEDULED,
            score_a=record.get('score_a'),
            score_b=record.get('score_b'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'team_a': self.team_a,
            'team_b': self.team_b,
            'date': self.date,
            'rink': self.rink,
            'status': self.status,
            'score_a': self.score_a,
            'score_b': self.score_b,
        }

    @property
    def is_completed(self):
        return self.status == COMPLETED

    def __repr__(self):
        return (f"Game(id={self.id}, {self.team_a} vs {self.team_b}, "
                f"status={self.status}, score={self.score_a}-{self.score_b})")


class StandingRow:
    FIELDS = ('team_id', 'team_name', 'games_played', 'wins', 'losses', 'ties',
              'goals_for', 'goals_against', 'goal_difference', 'points')

    def __init__(self, team_id, team_name, games_played=0, wins=0, losses=0, ties=0,
                 goals_for=0, goals_against=0, goal_difference=0, points=0):
        self.team_id = team_id
        self.team_name = team_name
        self.games_played = games_played
        self.wins = wins
        self.losses = losses
        self.ties = ties
        self.goals_for = goals_for
        self.goals_against = goals_against
        self.goal_difference = goal_difference
        self.points = points

    def to_dict(self):
        return {field: getattr(self, field) for field in self.FIELDS}

    def __eq__(self, other):
        if not isinstance(other, StandingRow):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"StandingRow(team={self.team_name}, gp={self.games_played}, "
                f"w={self.wins}, l={self.losses}, t={self.ties}, "
                f"gf={self.goals_for}, ga={self.goals_against}, pts={self.points})")
