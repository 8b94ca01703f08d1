import math
import random

from hoops_ratings.models import TeamSeasonMetrics
from hoops_ratings.ranking import RankSpec, apply_ranks, rank_field, rank_teams


def test_descending_rank_puts_largest_first() -> None:
    values = {1: 3.5, 2: 9.0, 3: -1.0}

    assert rank_teams([1, 2, 3], values.get) == {2: 1, 1: 2, 3: 3}


def test_ascending_rank_puts_smallest_first() -> None:
    values = {1: 0.18, 2: 0.15, 3: 0.21}

    assert rank_teams([1, 2, 3], values.get, ascending=True) == {2: 1, 1: 2, 3: 3}


def test_missing_and_non_finite_values_get_no_rank() -> None:
    values = {1: 4.0, 2: None, 3: math.nan, 4: math.inf, 5: 1.0}

    ranks = rank_teams([1, 2, 3, 4, 5], values.get)

    assert ranks == {1: 1, 2: None, 3: None, 4: None, 5: 2}


def test_ties_take_sequential_ranks_in_input_order() -> None:
    values = {5: 1.0, 3: 1.0, 9: 2.0}

    assert rank_teams([5, 3, 9], values.get) == {9: 1, 5: 2, 3: 3}
    assert rank_teams([5, 3, 9], values.get, ascending=True) == {5: 1, 3: 2, 9: 3}


def test_non_null_ranks_form_a_permutation() -> None:
    rng = random.Random(11)
    team_ids = list(range(1, 61))
    values = {t: (None if t % 7 == 0 else round(rng.uniform(-20, 20), 1)) for t in team_ids}

    ranks = rank_teams(team_ids, values.get)

    assigned = [r for r in ranks.values() if r is not None]
    expected_count = sum(v is not None for v in values.values())
    assert sorted(assigned) == list(range(1, expected_count + 1))


def test_rank_field_reads_attributes() -> None:
    records = {
        1: TeamSeasonMetrics(season=2025, team_id=1, tor_off=0.2),
        2: TeamSeasonMetrics(season=2025, team_id=2, tor_off=0.1),
    }

    assert rank_field([1, 2, 3], records, "tor_off", ascending=True) == {2: 1, 1: 2, 3: None}


def test_apply_ranks_returns_updated_copies() -> None:
    records = {
        1: TeamSeasonMetrics(season=2025, team_id=1, rpi=0.55, wab=-1.0),
        2: TeamSeasonMetrics(season=2025, team_id=2, rpi=0.61, wab=None),
    }

    ranked = apply_ranks([1, 2], records, [RankSpec("rpi", "rank_rpi"), RankSpec("wab", "rank_wab")])

    assert (ranked[1].rank_rpi, ranked[2].rank_rpi) == (2, 1)
    assert (ranked[1].rank_wab, ranked[2].rank_wab) == (1, None)
    assert records[1].rank_rpi is None
