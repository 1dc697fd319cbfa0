from rink.models import Game, StandingRow, COMPLETED


class ValidationError(ValueError):
    """Raised when a game record cannot be used to compute standings."""

    def __init__(self, message, game_id=None):
        super().__init__(message)
        self.game_id = game_id


class ScoringRules:
    """Points awarded per result. Defaults to 2 for a win, 1 for a tie, 0 for a loss."""

    def __init__(self, win=2, tie=1, loss=0):
        for label, value in (('win', win), ('tie', tie), ('loss', loss)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f'Points for a {label} must be a non-negative integer, got {value!r}')
        self.win = win
        self.tie = tie
        self.loss = loss

    @classmethod
    def from_settings(cls, settings):
        """Build rules from a settings dict with points_for_win/tie/loss keys."""
        settings = settings or {}
        return cls(
            win=settings.get('points_for_win', 2),
            tie=settings.get('points_for_tie', 1),
            loss=settings.get('points_for_loss', 0),
        )

    def to_dict(self):
        return {'points_for_win': self.win, 'points_for_tie': self.tie, 'points_for_loss': self.loss}

    def __repr__(self):
        return f"ScoringRules(win={self.win}, tie={self.tie}, loss={self.loss})"


def _valid_score(value):
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _validate_game(tournament_id, game):
    if game.team_a is None or game.team_b is None:
        raise ValidationError(f'Game {game.id} is missing a team', game_id=game.id)
    if game.team_a == game.team_b:
        raise ValidationError(f'Game {game.id} has team {game.team_a} playing itself', game_id=game.id)
    if game.tournament_id is not None and game.tournament_id != tournament_id:
        raise ValidationError(
            f'Game {game.id} belongs to tournament {game.tournament_id}, not {tournament_id}',
            game_id=game.id)
    if game.status == COMPLETED:
        for label, score in (('score_a', game.score_a), ('score_b', game.score_b)):
            if not _valid_score(score):
                raise ValidationError(
                    f'Completed game {game.id} has invalid {label}: {score!r}', game_id=game.id)


def compute_standings(tournament_id, games, team_names=None, scoring=None):
    """
    Calculate the standings table for one tournament from its games.

    ``games`` may hold Game objects or raw game dicts and may include games
    that are not completed yet; only completed games count. ``team_names``
    maps team id to display name. ``scoring`` is a ScoringRules instance or
    a settings dict.

    Returns: [StandingRow, ...] ordered by rank, one row per team with at
    least one completed game.

    Ranking: points -> goal_difference -> goals_for -> team name -> team id

    Raises ValidationError on the first malformed game; no partial table is
    returned.
    """
    team_names = team_names or {}
    if scoring is None:
        rules = ScoringRules()
    elif isinstance(scoring, ScoringRules):
        rules = scoring
    else:
        rules = ScoringRules.from_settings(scoring)

    parsed = [g if isinstance(g, Game) else Game.from_dict(g) for g in games]
    for game in parsed:
        _validate_game(tournament_id, game)

    team_stats = {}

    def stats_for(team_id):
        if team_id not in team_stats:
            team_stats[team_id] = {
                'team_id': team_id,
                'team_name': team_names.get(team_id, str(team_id)),
                'games_played': 0,
                'wins': 0,
                'losses': 0,
                'ties': 0,
                'goals_for': 0,
                'goals_against': 0,
            }
        return team_stats[team_id]

    for game in parsed:
        if game.status != COMPLETED:
            continue

        stats_a = stats_for(game.team_a)
        stats_b = stats_for(game.team_b)

        stats_a['games_played'] += 1
        stats_a['goals_for'] += game.score_a
        stats_a['goals_against'] += game.score_b

        stats_b['games_played'] += 1
        stats_b['goals_for'] += game.score_b
        stats_b['goals_against'] += game.score_a

        if game.score_a > game.score_b:
            stats_a['wins'] += 1
            stats_b['losses'] += 1
        elif game.score_b > game.score_a:
            stats_b['wins'] += 1
            stats_a['losses'] += 1
        else:
            stats_a['ties'] += 1
            stats_b['ties'] += 1

    rows = []
    for stats in team_stats.values():
        stats['goal_difference'] = stats['goals_for'] - stats['goals_against']
        stats['points'] = (stats['wins'] * rules.win
                           + stats['ties'] * rules.tie
                           + stats['losses'] * rules.loss)
        rows.append(StandingRow(**stats))

    # Sort teams by: points (desc), goal_difference (desc), goals_for (desc), name, id
    return sorted(
        rows,
        key=lambda r: (-r.points, -r.goal_difference, -r.goals_for, r.team_name, str(r.team_id))
    )


def standings_summary(rows):
    """Aggregate totals for a standings table.

    Returns: {'teams': n, 'games': n, 'goals': n, 'leader': name or None}
    """
    # Every game is counted once per participating team
    games = sum(r.games_played for r in rows) // 2
    goals = sum(r.goals_for for r in rows)
    return {
        'teams': len(rows),
        'games': games,
        'goals': goals,
        'leader': rows[0].team_name if rows else None,
    }
