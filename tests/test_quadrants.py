import pytest

from hoops_ratings.quadrants import QuadrantCutoffs, compute_quadrant_records
from hoops_ratings.resume import build_team_records


def test_cutoffs_scale_with_team_count() -> None:
    cutoffs = QuadrantCutoffs.for_team_count(100)

    assert cutoffs.home == (8, 21, 44)
    assert cutoffs.away == (21, 37, 66)


def test_cutoffs_stay_strictly_increasing_for_tiny_leagues() -> None:
    cutoffs = QuadrantCutoffs.for_team_count(5)

    assert cutoffs.home == (1, 2, 3)
    assert cutoffs.away == (1, 2, 3)


@pytest.mark.parametrize(
    ("opponent_rank", "is_home", "quadrant"),
    [
        (8, True, 1),
        (9, True, 2),
        (21, False, 1),
        (22, False, 2),
        (44, True, 3),
        (45, True, 4),
        (66, False, 3),
        (67, False, 4),
    ],
)
def test_quadrant_depends_on_location(opponent_rank, is_home, quadrant) -> None:
    assert QuadrantCutoffs.for_team_count(100).quadrant(opponent_rank, is_home) == quadrant


def test_each_game_counts_once_for_winner_and_loser(round_robin) -> None:
    strengths = {t: 20 - 3 * t for t in range(1, 9)}
    games = round_robin(strengths)
    records = build_team_records(list(strengths), games)
    ranks = {t: t for t in strengths}

    quads = compute_quadrant_records(records, ranks, team_count=len(strengths))

    wins = sum(q.q1_wins + q.q2_wins + q.q3_wins + q.q4_wins for q in quads.values())
    losses = sum(q.q1_losses + q.q2_losses + q.q3_losses + q.q4_losses for q in quads.values())
    assert wins == losses == len(games)
    # With 8 teams only rank 1 is Q1 at home, ranks 1-2 are Q1 on the road.
    assert quads[1].q1_wins == 1
    assert quads[2].q1_losses == 2
    assert sum(getattr(quads[1], f"q{q}_losses") for q in range(1, 5)) == 0


def test_home_and_away_meetings_land_in_different_quadrants(make_game) -> None:
    games = [make_game(1, 1, 20, 80, 70), make_game(2, 20, 1, 70, 80)]
    records = build_team_records([1, 20], games)
    ranks = {1: 15, 20: 10}

    quads = compute_quadrant_records(records, ranks, team_count=100)

    # Rank 10 opponent: Q2 at home, Q1 on the road.
    assert (quads[1].q1_wins, quads[1].q2_wins) == (1, 1)
    # Rank 15 opponent: Q2 at home, Q1 on the road.
    assert (quads[20].q1_losses, quads[20].q2_losses) == (1, 1)


def test_tied_game_is_a_road_quadrant_win(make_game) -> None:
    records = build_team_records([1, 2], [make_game(1, 1, 2, 70, 70)])

    quads = compute_quadrant_records(records, {1: 1, 2: 2}, team_count=2)

    # Home team 1 faces rank 2 (Q2 at home); road team 2 faces rank 1 (Q1).
    assert (quads[1].q2_wins, quads[1].q2_losses) == (0, 1)
    assert (quads[2].q1_wins, quads[2].q1_losses) == (1, 0)
