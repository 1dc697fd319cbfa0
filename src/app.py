"""
Flask web application for Rink Relay.
"""
import os
import csv
import io
import re
import shutil
import uuid
import yaml
from datetime import datetime
from filelock import FileLock
from flask import Flask, request, jsonify, Response
from rink.models import Game, SCHEDULED, IN_PROGRESS, COMPLETED
from rink.standings import compute_standings, standings_summary, ScoringRules, ValidationError
from rink.join_codes import generate_join_code, normalize_join_code, is_valid_join_code
from rink.validation import (validate_team_name, validate_tournament, validate_new_game,
                             validate_scores, parse_score, validate_player_name, validate_post)
from rink.settings import get_default_settings, merge_settings
from generate_games import generate_round_robin_games

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('RINK_DATA_DIR', os.path.join(BASE_DIR, 'data'))

TOURNAMENTS_FILE = os.path.join(DATA_DIR, 'tournaments.yaml')
TEAMS_FILE = os.path.join(DATA_DIR, 'teams.yaml')
TOURNAMENTS_DIR = os.path.join(DATA_DIR, 'tournaments')

TOURNAMENT_ID_PATTERN = re.compile(r'^[a-z0-9][a-z0-9-]*$')


def ensure_data_structure():
    """Ensure the data directories exist."""
    os.makedirs(TOURNAMENTS_DIR, exist_ok=True)


ensure_data_structure()
_data_lock = FileLock(os.path.join(DATA_DIR, '.lock'), timeout=10)


def _slugify(name: str) -> str:
    """Convert tournament name to filesystem-safe slug."""
    slug = name.lower().strip()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'[\s-]+', '-', slug)
    slug = slug.strip('-')
    return slug or 'tournament'


def _tournament_dir(tournament_id: str) -> str:
    return os.path.join(TOURNAMENTS_DIR, tournament_id)


def _tournament_file(tournament_id: str, filename: str) -> str:
    return os.path.join(_tournament_dir(tournament_id), filename)


def _read_yaml(path: str):
    if not os.path.exists(path):
        return None
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


def _write_yaml(path: str, data):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(data, f, default_flow_style=False, allow_unicode=True)


def load_tournaments() -> list:
    """Load the tournament registry."""
    try:
        data = _read_yaml(TOURNAMENTS_FILE)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {TOURNAMENTS_FILE}: {e}')
        return []
    if not data:
        return []
    return data.get('tournaments', [])


def save_tournaments(tournaments: list):
    _write_yaml(TOURNAMENTS_FILE, {'tournaments': tournaments})


def load_teams() -> list:
    """Load all teams."""
    try:
        data = _read_yaml(TEAMS_FILE)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {TEAMS_FILE}: {e}')
        return []
    if not data:
        return []
    teams = data.get('teams', [])
    for team in teams:
        if 'players' not in team:
            team['players'] = []
    return teams


def save_teams(teams: list):
    _write_yaml(TEAMS_FILE, {'teams': teams})


def load_games(tournament_id: str) -> list:
    """Load a tournament's games, ordered by date."""
    data = _read_yaml(_tournament_file(tournament_id, 'games.yaml'))
    if not data or 'games' not in data:
        return []
    return sorted(data['games'], key=lambda g: (g.get('date') or '', g.get('id') or ''))


def save_games(tournament_id: str, games: list):
    _write_yaml(_tournament_file(tournament_id, 'games.yaml'), {'games': games})


def load_registrations(tournament_id: str) -> list:
    """Load ids of teams registered in a tournament."""
    data = _read_yaml(_tournament_file(tournament_id, 'registrations.yaml'))
    if not data:
        return []
    return data.get('teams', [])


def save_registrations(tournament_id: str, team_ids: list):
    _write_yaml(_tournament_file(tournament_id, 'registrations.yaml'), {'teams': team_ids})


def load_settings(tournament_id: str) -> dict:
    """Load tournament settings, merging with defaults."""
    return merge_settings(_read_yaml(_tournament_file(tournament_id, 'settings.yaml')))


def save_settings(tournament_id: str, settings: dict):
    _write_yaml(_tournament_file(tournament_id, 'settings.yaml'), settings)


def load_posts(tournament_id: str) -> list:
    data = _read_yaml(_tournament_file(tournament_id, 'posts.yaml'))
    if not data or 'posts' not in data:
        return []
    return data['posts']


def save_posts(tournament_id: str, posts: list):
    _write_yaml(_tournament_file(tournament_id, 'posts.yaml'), {'posts': posts})


def find_tournament(tournament_id: str):
    """Return the tournament record, or None for unknown or malformed ids."""
    if not tournament_id or not TOURNAMENT_ID_PATTERN.match(tournament_id):
        return None
    for t in load_tournaments():
        if t['id'] == tournament_id:
            return t
    return None


def find_team(team_id: str, teams: list = None):
    teams = teams if teams is not None else load_teams()
    return next((t for t in teams if t['id'] == team_id), None)


def team_name_map() -> dict:
    return {t['id']: t['name'] for t in load_teams()}


def calculate_tournament_standings(tournament_id: str) -> list:
    """Compute the standings table for a tournament from its stored games.

    Raises ValidationError if any stored game is malformed.
    """
    return compute_standings(
        tournament_id,
        load_games(tournament_id),
        team_names=team_name_map(),
        scoring=ScoringRules.from_settings(load_settings(tournament_id)),
    )


def refresh_standings_cache(tournament_id: str) -> list:
    """Recompute standings and save them next to the games."""
    rows = calculate_tournament_standings(tournament_id)
    _write_yaml(_tournament_file(tournament_id, 'standings.yaml'), {
        'computed': datetime.now().isoformat(),
        'standings': [r.to_dict() for r in rows],
    })
    return rows


def _game_for_display(game: dict, names: dict) -> dict:
    """Attach team names to a stored game record."""
    display = dict(game)
    display['team_a_name'] = names.get(game['team_a'], game['team_a'])
    display['team_b_name'] = names.get(game['team_b'], game['team_b'])
    return display


def _not_found(what: str):
    return jsonify({'error': f'{what} not found'}), 404


def _optional_text(value) -> str:
    return value.strip() if isinstance(value, str) else ''


@app.route('/api/health')
def api_health():
    return jsonify({'status': 'ok'})


@app.route('/api/dashboard')
def api_dashboard():
    """Overview of all tournaments with progress and current leaders."""
    tournaments = load_tournaments()
    names = team_name_map()
    overview = []
    for t in tournaments:
        games = load_games(t['id'])
        completed = sum(1 for g in games if g.get('status') == COMPLETED)
        try:
            summary = standings_summary(compute_standings(
                t['id'], games, team_names=names,
                scoring=ScoringRules.from_settings(load_settings(t['id']))))
        except ValidationError as e:
            app.logger.error(f'Standings unavailable for {t["id"]}: {e}')
            summary = None
        overview.append({
            'id': t['id'],
            'name': t['name'],
            'teams': len(load_registrations(t['id'])),
            'games_total': len(games),
            'games_completed': completed,
            'leader': summary['leader'] if summary else None,
            'goals': summary['goals'] if summary else None,
        })
    return jsonify({
        'tournaments': overview,
        'total_tournaments': len(tournaments),
        'total_teams': len(names),
    })


@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    return jsonify({'tournaments': load_tournaments()})


@app.route('/api/tournaments', methods=['POST'])
def api_create_tournament():
    """Create a new tournament with its own join code."""
    data = request.get_json(silent=True) or {}
    errors = validate_tournament(data)
    if errors:
        return jsonify({'error': errors[0], 'errors': errors}), 400

    name = data['name'].strip()
    with _data_lock:
        tournaments = load_tournaments()
        taken_ids = {t['id'] for t in tournaments}
        base = _slugify(name)
        tournament_id = base
        suffix = 2
        while tournament_id in taken_ids:
            tournament_id = f'{base}-{suffix}'
            suffix += 1

        existing_codes = [t['join_code'] for t in tournaments]
        tournament = {
            'id': tournament_id,
            'name': name,
            'start_date': data['start_date'],
            'end_date': data['end_date'],
            'location': data['location'].strip(),
            'organizer': _optional_text(data.get('organizer')),
            'join_code': generate_join_code(existing=existing_codes),
            'created': datetime.now().isoformat(),
        }
        os.makedirs(_tournament_dir(tournament_id), exist_ok=True)
        save_settings(tournament_id, get_default_settings())
        tournaments.append(tournament)
        save_tournaments(tournaments)

    app.logger.info(f'Tournament "{name}" created as {tournament_id}')
    return jsonify({'success': True, 'tournament': tournament}), 201


@app.route('/api/tournaments/<tournament_id>')
def api_get_tournament(tournament_id):
    """Tournament details with registered teams and game progress."""
    tournament = find_tournament(tournament_id)
    if not tournament:
        return _not_found('Tournament')
    teams = load_teams()
    registered = [find_team(team_id, teams) for team_id in load_registrations(tournament_id)]
    games = load_games(tournament_id)
    return jsonify({
        'tournament': tournament,
        'teams': [{'id': t['id'], 'name': t['name']} for t in registered if t],
        'games_total': len(games),
        'games_completed': sum(1 for g in games if g.get('status') == COMPLETED),
    })


@app.route('/api/tournaments/<tournament_id>/delete', methods=['POST'])
def api_delete_tournament(tournament_id):
    """Delete a tournament and all of its data."""
    with _data_lock:
        tournament = find_tournament(tournament_id)
        if not tournament:
            return _not_found('Tournament')
        tournaments = [t for t in load_tournaments() if t['id'] != tournament_id]
        save_tournaments(tournaments)
        tournament_path = _tournament_dir(tournament_id)
        if os.path.isdir(tournament_path):
            shutil.rmtree(tournament_path)
    app.logger.info(f'Tournament {tournament_id} deleted')
    return jsonify({'success': True})


@app.route('/api/tournaments/<tournament_id>/settings', methods=['GET'])
def api_get_settings(tournament_id):
    if not find_tournament(tournament_id):
        return _not_found('Tournament')
    return jsonify({'settings': load_settings(tournament_id)})


@app.route('/api/tournaments/<tournament_id>/settings', methods=['POST'])
def api_update_settings(tournament_id):
    """Update scoring rules and default game length."""
    if not find_tournament(tournament_id):
        return _not_found('Tournament')
    data = request.get_json(silent=True) or {}

    with _data_lock:
        settings = load_settings(tournament_id)
        for key in ('points_for_win', 'points_for_tie', 'points_for_loss', 'game_minutes'):
            if key in data:
                settings[key] = data[key]
        try:
            ScoringRules.from_settings(settings)
        except ValidationError as e:
            return jsonify({'error': str(e)}), 400
        minutes = settings['game_minutes']
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
            return jsonify({'error': 'Game length must be a positive number of minutes'}), 400
        save_settings(tournament_id, settings)
        try:
            rows = refresh_standings_cache(tournament_id)
        except ValidationError as e:
            app.logger.error(f'Standings not updated for {tournament_id}: {e}')
            return jsonify({'error': 'Unable to compute standings', 'detail': str(e),
                            'game_id': e.game_id, 'settings': settings}), 400

    return jsonify({'success': True, 'settings': settings,
                    'standings': [r.to_dict() for r in rows]})


@app.route('/api/teams', methods=['GET'])
def api_list_teams():
    return jsonify({'teams': load_teams()})


@app.route('/api/teams', methods=['POST'])
def api_create_team():
    """Create a team with its own join code."""
    data = request.get_json(silent=True) or {}
    errors = validate_team_name(data.get('name'))
    if errors:
        return jsonify({'error': errors[0]}), 400

    with _data_lock:
        teams = load_teams()
        existing_codes = [t['join_code'] for t in teams]
        team = {
            'id': uuid.uuid4().hex[:8],
            'name': data['name'].strip(),
            'coach': _optional_text(data.get('coach')),
            'join_code': generate_join_code(existing=existing_codes),
            'players': [],
            'created': datetime.now().isoformat(),
        }
        teams.append(team)
        save_teams(teams)

    app.logger.info(f'Team "{team["name"]}" created as {team["id"]}')
    return jsonify({'success': True, 'team': team}), 201


@app.route('/api/teams/<team_id>')
def api_get_team(team_id):
    """Team details with roster and the tournaments it plays in."""
    team = find_team(team_id)
    if not team:
        return _not_found('Team')
    tournaments = [
        {'id': t['id'], 'name': t['name'], 'start_date': t['start_date'],
         'end_date': t['end_date'], 'location': t['location']}
        for t in load_tournaments()
        if team_id in load_registrations(t['id'])
    ]
    return jsonify({'team': team, 'tournaments': tournaments})


@app.route('/api/teams/join', methods=['POST'])
def api_join_team():
    """Add a player to a team roster using the team's join code."""
    data = request.get_json(silent=True) or {}
    code = normalize_join_code(data.get('join_code'))
    if not code:
        return jsonify({'error': 'Please enter a join code.'}), 400
    errors = validate_player_name(data.get('player_name'))
    if errors:
        return jsonify({'error': errors[0]}), 400
    player_name = data['player_name'].strip()

    with _data_lock:
        teams = load_teams()
        team = next((t for t in teams if t['join_code'] == code), None) if is_valid_join_code(code) else None
        if not team:
            return jsonify({'error': 'Invalid join code.'}), 404
        if any(p['name'].lower() == player_name.lower() for p in team['players']):
            return jsonify({'error': 'You are already in this team.'}), 409
        team['players'].append({'name': player_name, 'joined': datetime.now().isoformat()})
        save_teams(teams)

    return jsonify({'success': True, 'message': f'Successfully joined {team["name"]}!',
                    'team': {'id': team['id'], 'name': team['name']}})


@app.route('/api/teams/<team_id>/join-tournament', methods=['POST'])
def api_join_tournament(team_id):
    """Register a team in a tournament using the tournament's join code."""
    data = request.get_json(silent=True) or {}
    code = normalize_join_code(data.get('join_code'))
    if not code:
        return jsonify({'error': 'Please enter a tournament join code.'}), 400

    with _data_lock:
        team = find_team(team_id)
        if not team:
            return _not_found('Team')
        tournament = None
        if is_valid_join_code(code):
            tournament = next((t for t in load_tournaments() if t['join_code'] == code), None)
        if not tournament:
            return jsonify({'error': 'Invalid tournament join code.'}), 404
        registrations = load_registrations(tournament['id'])
        if team_id in registrations:
            return jsonify({'error': 'Team is already registered in this tournament.'}), 409
        registrations.append(team_id)
        save_registrations(tournament['id'], registrations)

    app.logger.info(f'Team {team_id} registered in {tournament["id"]}')
    return jsonify({'success': True,
                    'message': f'Successfully joined tournament: {tournament["name"]}!',
                    'tournament': {'id': tournament['id'], 'name': tournament['name']}})


@app.route('/api/tournaments/<tournament_id>/games', methods=['GET'])
def api_list_games(tournament_id):
    if not find_tournament(tournament_id):
        return _not_found('Tournament')
    names = team_name_map()
    return jsonify({'games': [_game_for_display(g, names) for g in load_games(tournament_id)]})


@app.route('/api/tournaments/<tournament_id>/games', methods=['POST'])
def api_create_game(tournament_id):
    """Schedule a game between two registered teams."""
    if not find_tournament(tournament_id):
        return _not_found('Tournament')
    data = request.get_json(silent=True) or {}

    with _data_lock:
        errors = validate_new_game(data, load_registrations(tournament_id))
        if errors:
            return jsonify({'error': errors[0], 'errors': errors}), 400
        game = Game(
            id=uuid.uuid4().hex[:12],
            tournament_id=tournament_id,
            team_a=data['team_a_id'],
            team_b=data['team_b_id'],
            date=f"{data['date']}T{data['time']}",
            rink=_optional_text(data.get('rink')) or None,
            status=SCHEDULED,
        ).to_dict()
        games = load_games(tournament_id)
        games.append(game)
        save_games(tournament_id, games)

    return jsonify({'success': True, 'game': _game_for_display(game, team_name_map())}), 201


@app.route('/api/tournaments/<tournament_id>/games/<game_id>/start', methods=['POST'])
def api_start_game(tournament_id, game_id):
    """Mark a scheduled game as in progress."""
    if not find_tournament(tournament_id):
        return _not_found('Tournament')
    with _data_lock:
        games = load_games(tournament_id)
        game = next((g for g in games if g['id'] == game_id), None)
        if not game:
            return _not_found('Game')
        if game['status'] != SCHEDULED:
            return jsonify({'error': f'Game is already {game["status"]}'}), 409
        game['status'] = IN_PROGRESS
        save_games(tournament_id, games)
    return jsonify({'success': True, 'game': game})


@app.route('/api/tournaments/<tournament_id>/games/<game_id>/score', methods=['POST'])
def api_record_score(tournament_id, game_id):
    """Record or correct the final score of a game and recalculate standings."""
    if not find_tournament(tournament_id):
        return _not_found('Tournament')
    data = request.get_json(silent=True) or {}
    errors = validate_scores(data.get('score_a'), data.get('score_b'))
    if errors:
        return jsonify({'error': errors[0]}), 400

    with _data_lock:
        games = load_games(tournament_id)
        game = next((g for g in games if g['id'] == game_id), None)
        if not game:
            return _not_found('Game')
        corrected = game['status'] == COMPLETED
        game['score_a'] = parse_score(data['score_a'])
        game['score_b'] = parse_score(data['score_b'])
        game['status'] = COMPLETED
        save_games(tournament_id, games)
        try:
            rows = refresh_standings_cache(tournament_id)
        except ValidationError as e:
            app.logger.error(f'Standings not updated for {tournament_id}: {e}')
            return jsonify({'success': True, 'game': game, 'standings': None,
                            'error': 'Unable to compute standings'})

    action = 'corrected' if corrected else 'recorded'
    app.logger.info(f'Score {action} for {game_id}: {game["score_a"]}-{game["score_b"]}')
    return jsonify({'success': True, 'game': game, 'standings': [r.to_dict() for r in rows]})


@app.route('/api/tournaments/<tournament_id>/round-robin', methods=['POST'])
def api_generate_round_robin(tournament_id):
    """Generate a full round-robin schedule for the registered teams."""
    if not find_tournament(tournament_id):
        return _not_found('Tournament')
    data = request.get_json(silent=True) or {}
    try:
        start = datetime.strptime(f"{data.get('date', '')}T{data.get('time', '')}", '%Y-%m-%dT%H:%M')
    except ValueError:
        return jsonify({'error': 'Start date and time are required (YYYY-MM-DD, HH:MM)'}), 400
    rinks = data.get('rinks') or []
    if isinstance(rinks, str):
        rinks = [rinks]
    if not isinstance(rinks, list):
        return jsonify({'error': 'Rinks must be a list of names'}), 400
    rinks = [r.strip() for r in rinks if isinstance(r, str) and r.strip()]

    with _data_lock:
        team_ids = load_registrations(tournament_id)
        if len(team_ids) < 2:
            return jsonify({'error': 'At least two registered teams are needed'}), 400
        existing = load_games(tournament_id)
        if existing and not data.get('replace'):
            return jsonify({'error': 'Games already exist for this tournament'}), 409
        if any(g.get('status') in (IN_PROGRESS, COMPLETED) for g in existing):
            return jsonify({'error': 'Cannot replace a schedule with started or completed games'}), 409
        settings = load_settings(tournament_id)
        games = generate_round_robin_games(tournament_id, team_ids, start,
                                           game_minutes=settings['game_minutes'], rinks=rinks)
        save_games(tournament_id, games)

    names = team_name_map()
    return jsonify({'success': True, 'games': [_game_for_display(g, names) for g in games]}), 201


@app.route('/api/tournaments/<tournament_id>/standings')
def api_standings(tournament_id):
    """Standings table computed from completed games."""
    if not find_tournament(tournament_id):
        return _not_found('Tournament')
    try:
        rows = calculate_tournament_standings(tournament_id)
    except ValidationError as e:
        app.logger.error(f'Standings validation failed for {tournament_id}: {e}')
        return jsonify({'error': 'Unable to compute standings', 'detail': str(e),
                        'game_id': e.game_id}), 400
    standings = []
    for position, row in enumerate(rows, start=1):
        entry = row.to_dict()
        entry['position'] = position
        standings.append(entry)
    return jsonify({'standings': standings, 'summary': standings_summary(rows)})


@app.route('/api/tournaments/<tournament_id>/schedule.csv')
def api_export_schedule_csv(tournament_id):
    """Export the schedule as CSV."""
    tournament = find_tournament(tournament_id)
    if not tournament:
        return _not_found('Tournament')
    names = team_name_map()

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(['Date', 'Rink', 'Team A', 'Team B', 'Status', 'Score A', 'Score B'])
    for game in load_games(tournament_id):
        completed = game.get('status') == COMPLETED
        writer.writerow([
            game.get('date', ''),
            game.get('rink') or '',
            names.get(game['team_a'], game['team_a']),
            names.get(game['team_b'], game['team_b']),
            game.get('status', SCHEDULED),
            game.get('score_a') if completed else '',
            game.get('score_b') if completed else '',
        ])

    csv_content = output.getvalue()
    output.close()

    return Response(
        csv_content,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={tournament_id}-schedule.csv'},
    )


@app.route('/api/tournaments/<tournament_id>/feed')
def api_feed(tournament_id):
    """Tournament posts, newest first, with the linked game when there is one."""
    if not find_tournament(tournament_id):
        return _not_found('Tournament')
    names = team_name_map()
    games = {g['id']: g for g in load_games(tournament_id)}
    feed = []
    for post in sorted(load_posts(tournament_id), key=lambda p: p['created'], reverse=True):
        entry = dict(post)
        game = games.get(post.get('game_id'))
        entry['game'] = _game_for_display(game, names) if game else None
        feed.append(entry)
    return jsonify({'posts': feed})


@app.route('/api/tournaments/<tournament_id>/posts', methods=['POST'])
def api_create_post(tournament_id):
    """Add a post to the tournament feed."""
    if not find_tournament(tournament_id):
        return _not_found('Tournament')
    data = request.get_json(silent=True) or {}
    errors = validate_post(data)
    if errors:
        return jsonify({'error': errors[0]}), 400

    with _data_lock:
        game_id = data.get('game_id') or None
        if game_id and not any(g['id'] == game_id for g in load_games(tournament_id)):
            return jsonify({'error': 'Game not found in this tournament'}), 400
        post = {
            'id': uuid.uuid4().hex[:12],
            'author': data['author'].strip(),
            'content': data['content'].strip(),
            'game_id': game_id,
            'created': datetime.now().isoformat(),
        }
        posts = load_posts(tournament_id)
        posts.append(post)
        save_posts(tournament_id, posts)

    return jsonify({'success': True, 'post': post}), 201


if __name__ == '__main__':
    app.run(debug=True, port=5000)
