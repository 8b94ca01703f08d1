from __future__ import annotations

from collections.abc import Mapping

from hoops_ratings.efficiency import HCA_POINTS, AdjustedEfficiency
from hoops_ratings.resume import TeamRecord

WAB_SCALING_FACTOR = 15.0
BUBBLE_RANK_START = 28
BUBBLE_RANK_END = 38


def bubble_team_margin(
    efficiencies: Mapping[int, AdjustedEfficiency],
    em_ranks: Mapping[int, int | None],
    team_count: int,
    rank_start: int = BUBBLE_RANK_START,
    rank_end: int = BUBBLE_RANK_END,
) -> float:
    last_rank = min(rank_end, team_count)
    margins = [
        efficiencies[team_id].adj_em
        for team_id, rank in em_ranks.items()
        if rank is not None and rank_start <= rank <= last_rank and team_id in efficiencies
    ]
    return sum(margins) / len(margins) if margins else 0.0


def bubble_win_prob(
    bubble_margin: float,
    opponent_margin: float,
    is_home: bool,
    home_court_adv: float = HCA_POINTS,
    scale: float = WAB_SCALING_FACTOR,
) -> float:
    # Location is the subject team's, not the bubble team's.
    location = home_court_adv / 2.0 if is_home else -home_court_adv / 2.0
    margin = bubble_margin - opponent_margin + location
    return 1.0 / (1.0 + 10.0 ** (-margin / scale))


def compute_wab(
    records: Mapping[int, TeamRecord],
    efficiencies: Mapping[int, AdjustedEfficiency],
    bubble_margin: float,
    season_records: Mapping[int, TeamRecord] | None = None,
    home_court_adv: float = HCA_POINTS,
    scale: float = WAB_SCALING_FACTOR,
) -> dict[int, float | None]:
    """Wins above bubble.

    Actual wins come from ``records``. The bubble team plays the schedule in
    ``season_records`` when given, so games against ineligible opponents count
    at opponent margin 0.
    """
    schedules = season_records if season_records is not None else records
    out: dict[int, float | None] = {}
    for team_id, record in records.items():
        schedule = schedules[team_id].schedule if team_id in schedules else []
        if not schedule:
            out[team_id] = None
            continue
        expected_bubble_wins = 0.0
        for game in schedule:
            opp = efficiencies.get(game.opponent_id)
            opponent_margin = opp.adj_em if opp is not None else 0.0
            expected_bubble_wins += bubble_win_prob(
                bubble_margin,
                opponent_margin,
                is_home=game.is_home,
                home_court_adv=home_court_adv,
                scale=scale,
            )
        out[team_id] = round(record.wins - expected_bubble_wins, 2)
    return out
