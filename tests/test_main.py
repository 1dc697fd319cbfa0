"""
Tests for the command-line standings table.
"""
import pytest
import sys
import os
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from main import main, format_standings, load_tournament_data
from rink.models import StandingRow


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / 'tournaments.yaml').write_text(yaml.dump({'tournaments': [
        {'id': 'spring-classic', 'name': 'Spring Classic'}
    ]}))
    (tmp_path / 'teams.yaml').write_text(yaml.dump({'teams': [
        {'id': 'hawks', 'name': 'Hawks'}, {'id': 'bears', 'name': 'Bears'},
    ]}))
    tournament_dir = tmp_path / 'tournaments' / 'spring-classic'
    tournament_dir.mkdir(parents=True)
    (tournament_dir / 'games.yaml').write_text(yaml.dump({'games': [
        {'id': 'g1', 'tournament_id': 'spring-classic', 'team_a': 'hawks', 'team_b': 'bears',
         'status': 'completed', 'score_a': 1, 'score_b': 4},
    ]}))
    return tmp_path


class TestLoadTournamentData:

    def test_unknown_tournament(self, data_dir):
        assert load_tournament_data(str(data_dir), 'nope') is None

    def test_loads_games_and_names(self, data_dir):
        tournament, games, team_names, settings = load_tournament_data(str(data_dir), 'spring-classic')
        assert tournament['name'] == 'Spring Classic'
        assert len(games) == 1
        assert team_names == {'hawks': 'Hawks', 'bears': 'Bears'}
        assert settings['points_for_win'] == 2
        assert settings['game_minutes'] == 60


class TestFormatStandings:

    def test_positive_difference_has_sign(self):
        rows = [StandingRow('a', 'Hawks', 1, 1, 0, 0, 3, 1, 2, 2)]
        lines = format_standings(rows).splitlines()
        assert 'PTS' in lines[0]
        assert lines[1].split() == ['1', 'Hawks', '1', '1', '0', '0', '3', '1', '+2', '2']


class TestMain:

    def test_prints_standings(self, data_dir, capsys):
        assert main(['spring-classic', '--data-dir', str(data_dir)]) == 0
        out = capsys.readouterr().out
        assert 'Spring Classic' in out
        assert out.index('Bears') < out.index('Hawks')

    def test_unknown_tournament_exit_code(self, data_dir, capsys):
        assert main(['nope', '--data-dir', str(data_dir)]) == 1
        assert 'not found' in capsys.readouterr().err

    def test_malformed_game_exit_code(self, data_dir, capsys):
        games_file = data_dir / 'tournaments' / 'spring-classic' / 'games.yaml'
        games_file.write_text(yaml.dump({'games': [
            {'id': 'g1', 'tournament_id': 'spring-classic', 'team_a': 'hawks', 'team_b': 'hawks',
             'status': 'completed', 'score_a': 1, 'score_b': 0},
        ]}))
        assert main(['spring-classic', '--data-dir', str(data_dir)]) == 1
        assert 'Unable to compute standings' in capsys.readouterr().err

    def test_no_completed_games(self, data_dir, capsys):
        (data_dir / 'tournaments' / 'spring-classic' / 'games.yaml').write_text('')
        assert main(['spring-classic', '--data-dir', str(data_dir)]) == 0
        assert 'No completed games yet.' in capsys.readouterr().out

    def test_env_scoring_without_settings_file(self, data_dir, capsys, monkeypatch):
        monkeypatch.setenv('RINK_POINTS_FOR_WIN', '3')
        assert main(['spring-classic', '--data-dir', str(data_dir)]) == 0
        bears = next(line for line in capsys.readouterr().out.splitlines() if 'Bears' in line)
        assert bears.split()[-1] == '3'

    def test_settings_file_overrides_env(self, data_dir, capsys, monkeypatch):
        monkeypatch.setenv('RINK_POINTS_FOR_WIN', '3')
        settings_file = data_dir / 'tournaments' / 'spring-classic' / 'settings.yaml'
        settings_file.write_text(yaml.dump({'points_for_win': 5}))
        assert main(['spring-classic', '--data-dir', str(data_dir)]) == 0
        bears = next(line for line in capsys.readouterr().out.splitlines() if 'Bears' in line)
        assert bears.split()[-1] == '5'
