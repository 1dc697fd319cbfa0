"""
Shared pytest fixtures for Rink Relay tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from rink.models import Game, SCHEDULED, COMPLETED


@pytest.fixture
def client():
    """Create a test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app at an empty temporary data directory."""
    import app as app_module

    tournaments_dir = tmp_path / "tournaments"
    tournaments_dir.mkdir()

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setattr(app_module, 'TOURNAMENTS_FILE', str(tmp_path / "tournaments.yaml"))
    monkeypatch.setattr(app_module, 'TEAMS_FILE', str(tmp_path / "teams.yaml"))
    monkeypatch.setattr(app_module, 'TOURNAMENTS_DIR', str(tournaments_dir))

    return tmp_path


@pytest.fixture
def seeded_tournament(temp_data_dir):
    """A tournament 'winter-cup' with three registered teams and no games."""
    (temp_data_dir / "tournaments.yaml").write_text(yaml.dump({'tournaments': [{
        'id': 'winter-cup',
        'name': 'Winter Cup',
        'start_date': '2026-01-10',
        'end_date': '2026-01-12',
        'location': 'Civic Arena',
        'organizer': 'Dana',
        'join_code': 'WCUP26',
        'created': '2026-01-01T10:00:00',
    }]}, default_flow_style=False))
    (temp_data_dir / "teams.yaml").write_text(yaml.dump({'teams': [
        {'id': 'hawks', 'name': 'Hawks', 'coach': 'Sam', 'join_code': 'HAWK01', 'players': []},
        {'id': 'bears', 'name': 'Bears', 'coach': 'Lee', 'join_code': 'BEAR02', 'players': []},
        {'id': 'wolves', 'name': 'Wolves', 'coach': 'Kim', 'join_code': 'WOLF03', 'players': []},
    ]}, default_flow_style=False))
    tournament_dir = temp_data_dir / "tournaments" / "winter-cup"
    tournament_dir.mkdir()
    (tournament_dir / "registrations.yaml").write_text(yaml.dump({
        'teams': ['hawks', 'bears', 'wolves']
    }, default_flow_style=False))
    return tournament_dir


@pytest.fixture
def make_game():
    """Factory for completed games in tournament 't1'."""
    counter = {'n': 0}

    def _make(team_a, team_b, score_a=None, score_b=None, status=COMPLETED, tournament_id='t1'):
        counter['n'] += 1
        return Game(
            id=f"g{counter['n']}",
            tournament_id=tournament_id,
            team_a=team_a,
            team_b=team_b,
            date=f"2026-01-10T{8 + counter['n']:02d}:00",
            status=status,
            score_a=score_a,
            score_b=score_b,
        )
    return _make


@pytest.fixture
def sample_games(make_game):
    """A small round robin: A beats B, B ties C, C beats A, plus one scheduled game."""
    return [
        make_game('A', 'B', 3, 1),
        make_game('B', 'C', 2, 2),
        make_game('C', 'A', 4, 0),
        make_game('A', 'D', status=SCHEDULED),
    ]
