# Command-line standings table for a tournament stored in the data directory

import argparse
import os
import sys
import yaml
from rink.standings import compute_standings, ValidationError
from rink.settings import merge_settings


def load_yaml(file_path):
    if not os.path.exists(file_path):
        return {}
    with open(file_path, mode='r', encoding='utf-8') as file:
        return yaml.safe_load(file) or {}


def load_tournament_data(data_dir, tournament_id):
    """Return (tournament, games, team_names, settings) or None if the tournament is unknown."""
    registry = load_yaml(os.path.join(data_dir, 'tournaments.yaml'))
    tournament = next((t for t in registry.get('tournaments', []) if t['id'] == tournament_id), None)
    if tournament is None:
        return None
    tournament_dir = os.path.join(data_dir, 'tournaments', tournament_id)
    games = load_yaml(os.path.join(tournament_dir, 'games.yaml')).get('games', [])
    settings = merge_settings(load_yaml(os.path.join(tournament_dir, 'settings.yaml')))
    teams = load_yaml(os.path.join(data_dir, 'teams.yaml')).get('teams', [])
    team_names = {t['id']: t['name'] for t in teams}
    return tournament, games, team_names, settings


def format_standings(rows):
    lines = [f"{'Pos':>3}  {'Team':<24} {'GP':>3} {'W':>3} {'L':>3} {'T':>3} "
             f"{'GF':>4} {'GA':>4} {'+/-':>4} {'PTS':>4}"]
    for position, row in enumerate(rows, start=1):
        diff = f"+{row.goal_difference}" if row.goal_difference > 0 else str(row.goal_difference)
        lines.append(f"{position:>3}  {row.team_name:<24} {row.games_played:>3} {row.wins:>3} "
                     f"{row.losses:>3} {row.ties:>3} {row.goals_for:>4} {row.goals_against:>4} "
                     f"{diff:>4} {row.points:>4}")
    return '\n'.join(lines)


def main(argv=None):
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    parser = argparse.ArgumentParser(description='Print the standings table for a tournament.')
    parser.add_argument('tournament_id')
    parser.add_argument('--data-dir', default=os.environ.get('RINK_DATA_DIR', os.path.join(base_dir, 'data')))
    args = parser.parse_args(argv)

    loaded = load_tournament_data(args.data_dir, args.tournament_id)
    if loaded is None:
        print(f"Tournament '{args.tournament_id}' not found in {args.data_dir}", file=sys.stderr)
        return 1
    tournament, games, team_names, settings = loaded

    try:
        rows = compute_standings(args.tournament_id, games, team_names=team_names, scoring=settings)
    except ValidationError as e:
        print(f"Unable to compute standings: {e}", file=sys.stderr)
        return 1

    print(f"\n--- {tournament['name']} Standings ---")
    if rows:
        print(format_standings(rows))
    else:
        print("No completed games yet.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
