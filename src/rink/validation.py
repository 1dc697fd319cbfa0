"""
Input validation for tournament, team, game and post forms.

Each validator returns a list of error messages; an empty list means the
input is valid.
"""
from datetime import datetime

TEAM_NAME_MIN = 2
TEAM_NAME_MAX = 50
TOURNAMENT_NAME_MIN = 3
TOURNAMENT_NAME_MAX = 100
PLAYER_NAME_MAX = 50
POST_CONTENT_MAX = 500


def _parse_date(value):
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


def _parse_time(value):
    try:
        return datetime.strptime(value, '%H:%M').time()
    except (TypeError, ValueError):
        return None


def _length_errors(label, value, min_len, max_len):
    if value is not None and not isinstance(value, str):
        return [f'{label} must be text.']
    value = (value or '').strip()
    if len(value) < min_len:
        if min_len == 1:
            return [f'{label} is required.']
        return [f'{label} must be at least {min_len} characters.']
    if len(value) > max_len:
        return [f'{label} must be at most {max_len} characters.']
    return []


def validate_team_name(name):
    return _length_errors('Team name', name, TEAM_NAME_MIN, TEAM_NAME_MAX)


def validate_tournament(data):
    """Validate a tournament creation payload (name, start_date, end_date, location)."""
    errors = _length_errors('Tournament name', data.get('name'),
                            TOURNAMENT_NAME_MIN, TOURNAMENT_NAME_MAX)
    start = _parse_date(data.get('start_date'))
    end = _parse_date(data.get('end_date'))
    if start is None:
        errors.append('Start date must be in YYYY-MM-DD format.')
    if end is None:
        errors.append('End date must be in YYYY-MM-DD format.')
    if start and end and end < start:
        errors.append('End date cannot be before start date.')
    location = data.get('location')
    if not isinstance(location, str) or not location.strip():
        errors.append('Location is required.')
    return errors


def validate_new_game(data, registered_team_ids):
    """Validate a game creation payload (date, time, team_a_id, team_b_id, rink)."""
    errors = []
    if not data.get('date') or not data.get('time') or not data.get('team_a_id') or not data.get('team_b_id'):
        return ['Please fill in all required fields.']
    if not isinstance(data['team_a_id'], str) or not isinstance(data['team_b_id'], str):
        return ['Team ids must be text.']
    if _parse_date(data['date']) is None:
        errors.append('Date must be in YYYY-MM-DD format.')
    if _parse_time(data['time']) is None:
        errors.append('Time must be in HH:MM format.')
    if data['team_a_id'] == data['team_b_id']:
        errors.append('A team cannot play against itself.')
    for key in ('team_a_id', 'team_b_id'):
        if data[key] not in registered_team_ids:
            errors.append(f'Team "{data[key]}" is not registered in this tournament.')
    return errors


def parse_score(value):
    """Parse a submitted score. Returns an int, or None if the value is not a non-negative integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value.isdecimal():
            return None
        try:
            return int(value)
        except ValueError:
            return None
    if isinstance(value, int) and value >= 0:
        return value
    return None


def validate_scores(score_a, score_b):
    if score_a is None or score_a == '' or score_b is None or score_b == '':
        return ['Both scores must be filled.']
    if parse_score(score_a) is None or parse_score(score_b) is None:
        return ['Scores must be non-negative whole numbers.']
    return []


def validate_player_name(name):
    return _length_errors('Player name', name, 1, PLAYER_NAME_MAX)


def validate_post(data):
    errors = _length_errors('Author', data.get('author'), 1, PLAYER_NAME_MAX)
    errors += _length_errors('Content', data.get('content'), 1, POST_CONTENT_MAX)
    return errors
