from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from hoops_ratings.models import LeagueBaselines, QualifyingGame

logger = logging.getLogger(__name__)

HCA_POINTS = 1.4
NUM_ITERATIONS = 15
DEFAULT_AVG_PPP = 100.0
DEFAULT_AVG_TEMPO = 65.0


@dataclass(frozen=True)
class GamePerformance:
    opponent_id: int
    off_eff: float
    opp_off_eff: float
    tempo: float
    location_factor: float
    team_poss: float
    opp_poss: float


@dataclass(frozen=True)
class RatingState:
    adj_o: float
    adj_d: float
    adj_t: float
    total_poss: float = 0.0


@dataclass(frozen=True)
class AdjustedEfficiency:
    adj_o: float
    adj_d: float
    adj_em: float
    adj_tempo: float


def compute_league_baselines(games: Iterable[QualifyingGame]) -> LeagueBaselines:
    total_points = 0.0
    total_poss = 0.0
    tempo_sum = 0.0
    game_count = 0
    for game in games:
        total_points += game.home.points + game.away.points
        total_poss += game.home.possessions + game.away.possessions
        tempo_sum += (game.home.possessions + game.away.possessions) / 2.0
        game_count += 1

    avg_ppp = (total_points / total_poss) * 100.0 if total_poss > 0 else DEFAULT_AVG_PPP
    avg_tempo = tempo_sum / game_count if game_count else DEFAULT_AVG_TEMPO
    return LeagueBaselines(avg_ppp=avg_ppp, avg_tempo=avg_tempo)


def build_game_performances(
    team_ids: Iterable[int],
    games: Iterable[QualifyingGame],
    home_court_adv: float = HCA_POINTS,
) -> dict[int, list[GamePerformance]]:
    eligible = set(team_ids)
    performances: dict[int, list[GamePerformance]] = defaultdict(list)
    for game in games:
        if game.home.team_id not in eligible or game.away.team_id not in eligible:
            continue
        tempo = (game.home.possessions + game.away.possessions) / 2.0
        for side, opp, is_home in game.perspectives():
            performances[side.team_id].append(
                GamePerformance(
                    opponent_id=opp.team_id,
                    off_eff=side.points * 100.0 / side.possessions,
                    opp_off_eff=opp.points * 100.0 / opp.possessions,
                    tempo=tempo,
                    location_factor=home_court_adv / 2.0 if is_home else -home_court_adv / 2.0,
                    team_poss=side.possessions,
                    opp_poss=opp.possessions,
                )
            )
    return dict(performances)


def _candidate_rating(
    games: list[GamePerformance],
    current: Mapping[int, RatingState],
    baselines: LeagueBaselines,
) -> RatingState:
    off_sum = 0.0
    off_poss = 0.0
    def_sum = 0.0
    def_poss = 0.0
    tempo_sum = 0.0
    for perf in games:
        opp = current[perf.opponent_id]
        off_sum += (perf.off_eff - (opp.adj_d - baselines.avg_ppp) - perf.location_factor) * perf.team_poss
        off_poss += perf.team_poss
        def_sum += (perf.opp_off_eff + (opp.adj_o - baselines.avg_ppp) + perf.location_factor) * perf.opp_poss
        def_poss += perf.opp_poss
        tempo_sum += perf.tempo - (opp.adj_t - baselines.avg_tempo)

    return RatingState(
        adj_o=off_sum / off_poss if off_poss > 0 else baselines.avg_ppp,
        adj_d=def_sum / def_poss if def_poss > 0 else baselines.avg_ppp,
        adj_t=tempo_sum / len(games),
        total_poss=off_poss,
    )


def weighted_league_averages(ratings: Mapping[int, RatingState]) -> tuple[float, float]:
    """Possession-weighted mean offense and defense; weight 1 for teams without possessions."""
    sum_o = 0.0
    sum_d = 0.0
    total_weight = 0.0
    for state in ratings.values():
        weight = state.total_poss if state.total_poss > 0 else 1.0
        sum_o += state.adj_o * weight
        sum_d += state.adj_d * weight
        total_weight += weight
    if total_weight <= 0:
        return 0.0, 0.0
    return sum_o / total_weight, sum_d / total_weight


def adjustment_step(
    current: Mapping[int, RatingState],
    performances: Mapping[int, list[GamePerformance]],
    baselines: LeagueBaselines,
) -> dict[int, RatingState]:
    """One fixed-point pass. Reads ``current`` only and returns a new table."""
    candidates: dict[int, RatingState] = {}
    for team_id in current:
        games = performances.get(team_id)
        if games:
            candidates[team_id] = _candidate_rating(games, current, baselines)

    # Teams without games stay pinned at the league average, so re-centering
    # the active teams re-centers the whole table.
    if candidates:
        avg_o, avg_d = weighted_league_averages(candidates)
        correction_o = baselines.avg_ppp - avg_o
        correction_d = baselines.avg_ppp - avg_d
    else:
        correction_o = correction_d = 0.0

    nxt: dict[int, RatingState] = {}
    for team_id, state in current.items():
        candidate = candidates.get(team_id)
        if candidate is None:
            nxt[team_id] = RatingState(adj_o=baselines.avg_ppp, adj_d=baselines.avg_ppp, adj_t=baselines.avg_tempo)
            continue
        nxt[team_id] = RatingState(
            adj_o=candidate.adj_o + correction_o,
            adj_d=candidate.adj_d + correction_d,
            adj_t=candidate.adj_t,
            total_poss=candidate.total_poss,
        )
    return nxt


def initial_ratings(team_ids: Iterable[int], baselines: LeagueBaselines) -> dict[int, RatingState]:
    return {
        team_id: RatingState(adj_o=baselines.avg_ppp, adj_d=baselines.avg_ppp, adj_t=baselines.avg_tempo)
        for team_id in team_ids
    }


def solve_adjusted_efficiencies(
    team_ids: Iterable[int],
    games: Iterable[QualifyingGame],
    baselines: LeagueBaselines,
    home_court_adv: float = HCA_POINTS,
    iterations: int = NUM_ITERATIONS,
) -> dict[int, AdjustedEfficiency]:
    team_ids = list(team_ids)
    performances = build_game_performances(team_ids, games, home_court_adv=home_court_adv)

    ratings = initial_ratings(team_ids, baselines)
    for _ in range(iterations):
        ratings = adjustment_step(ratings, performances, baselines)

    logger.info(
        "Adjusted efficiencies solved for %s teams (%s with games, iterations=%s)",
        len(ratings),
        len(performances),
        iterations,
    )
    return {
        team_id: AdjustedEfficiency(
            adj_o=round(state.adj_o, 2),
            adj_d=round(state.adj_d, 2),
            adj_em=round(state.adj_o - state.adj_d, 2),
            adj_tempo=round(state.adj_t, 1),
        )
        for team_id, state in ratings.items()
    }
