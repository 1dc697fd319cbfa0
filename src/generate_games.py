import sys
import uuid
from datetime import timedelta
from rink.models import Game, SCHEDULED


def generate_round_robin_pairings(team_ids):
    """
    Pair every team with every other team exactly once (circle method).

    Returns: list of rounds, each a list of (team_a, team_b) tuples. With an
    odd number of teams one team sits out each round.
    """
    teams = list(dict.fromkeys(team_ids))
    if len(teams) < 2:
        return []
    if len(teams) % 2:
        teams.append(None)  # bye

    n = len(teams)
    rounds = []
    for round_index in range(n - 1):
        pairs = []
        for i in range(n // 2):
            home = teams[i]
            away = teams[n - 1 - i]
            if home is None or away is None:
                continue
            # Alternate who is listed first so the fixed team isn't always team_a
            if i == 0 and round_index % 2:
                home, away = away, home
            pairs.append((home, away))
        rounds.append(pairs)
        # Keep the first team fixed and rotate the rest
        teams = [teams[0], teams[-1]] + teams[1:-1]
    return rounds


def generate_round_robin_games(tournament_id, team_ids, start, game_minutes=60, rinks=None):
    """
    Build scheduled games for a single round robin.

    Args:
        tournament_id: Tournament the games belong to.
        team_ids: Registered team ids.
        start: datetime of the first time slot.
        game_minutes: Length of one time slot.
        rinks: Optional list of rink names; games in a round are spread over
            them, extra games spill into the next time slot.

    Returns:
        List of game dicts in storage shape, ordered by date.
    """
    rinks = list(rinks) if rinks else [None]
    games = []
    slot = start
    for pairs in generate_round_robin_pairings(team_ids):
        for offset in range(0, len(pairs), len(rinks)):
            for (team_a, team_b), rink in zip(pairs[offset:offset + len(rinks)], rinks):
                games.append(Game(
                    id=uuid.uuid4().hex[:12],
                    tournament_id=tournament_id,
                    team_a=team_a,
                    team_b=team_b,
                    date=slot.isoformat(timespec='minutes'),
                    rink=rink,
                    status=SCHEDULED,
                ).to_dict())
            slot += timedelta(minutes=game_minutes)
    return games


def main():
    teams = sys.argv[1:]
    if len(teams) < 2:
        print("Usage: generate_games.py TEAM TEAM [TEAM ...]")
        return

    for number, pairs in enumerate(generate_round_robin_pairings(teams), start=1):
        print(f"# Round {number}")
        for team_a, team_b in pairs:
            print(f"{team_a} vs {team_b}")
        print()


if __name__ == '__main__':
    main()
