import pytest

from hoops_ratings.efficiency import AdjustedEfficiency
from hoops_ratings.resume import ScheduledGame, TeamRecord
from hoops_ratings.wab import bubble_team_margin, bubble_win_prob, compute_wab


def _eff(adj_em: float) -> AdjustedEfficiency:
    return AdjustedEfficiency(adj_o=100.0, adj_d=100.0 - adj_em, adj_em=adj_em, adj_tempo=68.0)


def _league(team_count: int) -> tuple[dict[int, AdjustedEfficiency], dict[int, int]]:
    efficiencies = {t: _eff(float(100 - t)) for t in range(1, team_count + 1)}
    ranks = {t: t for t in range(1, team_count + 1)}
    return efficiencies, ranks


def _logistic(margin: float) -> float:
    return 1.0 / (1.0 + 10.0 ** (-margin / 15.0))


def test_bubble_margin_averages_rank_window() -> None:
    efficiencies, ranks = _league(40)

    assert bubble_team_margin(efficiencies, ranks, team_count=40) == pytest.approx(67.0)


def test_bubble_window_is_capped_by_team_count() -> None:
    efficiencies, ranks = _league(33)

    assert bubble_team_margin(efficiencies, ranks, team_count=33) == pytest.approx(69.5)


def test_bubble_margin_defaults_to_zero_for_small_leagues() -> None:
    efficiencies, ranks = _league(10)

    assert bubble_team_margin(efficiencies, ranks, team_count=10) == 0.0


def test_win_prob_uses_subject_team_location() -> None:
    home = bubble_win_prob(0.0, 0.0, is_home=True, home_court_adv=1.4)
    away = bubble_win_prob(0.0, 0.0, is_home=False, home_court_adv=1.4)

    assert home == pytest.approx(_logistic(0.7))
    assert away == pytest.approx(_logistic(-0.7))
    assert home + away == pytest.approx(1.0)


def test_wab_with_empty_bubble_window() -> None:
    record = TeamRecord()
    record.add(ScheduledGame(opponent_id=2, is_home=True, points_for=80, points_against=70))
    record.add(ScheduledGame(opponent_id=3, is_home=False, points_for=60, points_against=75))
    efficiencies = {1: _eff(2.0), 2: _eff(4.0), 3: _eff(-6.0)}

    wab = compute_wab({1: record, 2: TeamRecord()}, efficiencies, bubble_margin=0.0)

    expected = 1 - (_logistic(0.0 - 4.0 + 0.7) + _logistic(0.0 + 6.0 - 0.7))
    assert wab[1] == round(expected, 2)
    assert wab[2] is None


def test_wab_schedule_includes_ineligible_opponents() -> None:
    record = TeamRecord()
    record.add(ScheduledGame(opponent_id=2, is_home=True, points_for=80, points_against=70))
    season_record = TeamRecord()
    season_record.add(ScheduledGame(opponent_id=2, is_home=True, points_for=80, points_against=70))
    season_record.add(ScheduledGame(opponent_id=99, is_home=False, points_for=90, points_against=60))
    efficiencies = {1: _eff(2.0), 2: _eff(4.0)}

    wab = compute_wab({1: record}, efficiencies, bubble_margin=1.0, season_records={1: season_record})

    expected = 1 - (_logistic(1.0 - 4.0 + 0.7) + _logistic(1.0 - 0.7))
    assert wab[1] == round(expected, 2)
