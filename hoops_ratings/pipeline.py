from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

import pandas as pd

from hoops_ratings.config import Settings
from hoops_ratings.efficiency import compute_league_baselines, solve_adjusted_efficiencies
from hoops_ratings.four_factors import compute_four_factors
from hoops_ratings.models import (
    NO_GAMES,
    NO_TEAMS,
    PERSISTENCE_ERROR,
    LeagueBaselines,
    QualifyingGame,
    RatingsRunResult,
    Team,
    TeamSeasonMetrics,
)
from hoops_ratings.quadrants import compute_quadrant_records
from hoops_ratings.ranking import RankSpec, apply_ranks, rank_teams
from hoops_ratings.resume import build_team_records, compute_resume_metrics
from hoops_ratings.storage import DuckDBStorage, MetricsPersistenceError
from hoops_ratings.wab import bubble_team_margin, compute_wab

logger = logging.getLogger(__name__)

FINAL_RANKS = (
    RankSpec("raw_sos", "rank_raw_sos"),
    RankSpec("rpi", "rank_rpi"),
    RankSpec("adj_sos", "rank_adj_sos"),
    RankSpec("efg_pct_off", "rank_efg_pct_off"),
    RankSpec("tor_off", "rank_tor_off", ascending=True),
    RankSpec("orb_pct_off", "rank_orb_pct_off"),
    RankSpec("ftr_off", "rank_ftr_off"),
    RankSpec("efg_pct_def", "rank_efg_pct_def", ascending=True),
    # Forcing more turnovers is better.
    RankSpec("tor_def", "rank_tor_def"),
    RankSpec("drb_pct_def", "rank_drb_pct_def"),
    RankSpec("ftr_def", "rank_ftr_def", ascending=True),
    RankSpec("sor", "rank_sor"),
    RankSpec("wab", "rank_wab"),
)


def compute_season_metrics(
    season: int,
    teams: list[Team],
    games: list[QualifyingGame],
    settings: Settings,
) -> tuple[dict[int, TeamSeasonMetrics], LeagueBaselines]:
    team_ids = [t.team_id for t in teams]
    baselines = compute_league_baselines(games)
    logger.info(
        "League averages for season=%s: ppp=%.2f tempo=%.1f",
        season,
        baselines.avg_ppp,
        baselines.avg_tempo,
    )

    efficiencies = solve_adjusted_efficiencies(
        team_ids,
        games,
        baselines,
        home_court_adv=settings.home_court_adv,
        iterations=settings.solver_iterations,
    )
    factors = compute_four_factors(team_ids, games)
    records = build_team_records(team_ids, games)
    season_records = build_team_records(team_ids, games, include_ineligible_opponents=True)
    resume = compute_resume_metrics(
        teams,
        records,
        efficiencies,
        season_records=season_records,
        pythagorean_exponent=settings.pythagorean_exponent,
    )

    def eff_value(field: str):
        return lambda team_id: getattr(efficiencies[team_id], field)

    rank_em = rank_teams(team_ids, eff_value("adj_em"))
    rank_o = rank_teams(team_ids, eff_value("adj_o"))
    rank_d = rank_teams(team_ids, eff_value("adj_d"), ascending=True)
    rank_t = rank_teams(team_ids, eff_value("adj_tempo"))

    bubble_margin = bubble_team_margin(
        efficiencies,
        rank_em,
        team_count=len(teams),
        rank_start=settings.bubble_rank_start,
        rank_end=settings.bubble_rank_end,
    )
    logger.info("Bubble team adjusted margin for season=%s: %.2f", season, bubble_margin)
    wab = compute_wab(
        records,
        efficiencies,
        bubble_margin,
        season_records=season_records,
        home_court_adv=settings.home_court_adv,
        scale=settings.wab_scaling_factor,
    )
    quadrants = compute_quadrant_records(records, rank_em, team_count=len(teams))

    assembled: dict[int, TeamSeasonMetrics] = {}
    for team_id in team_ids:
        assembled[team_id] = TeamSeasonMetrics(
            season=season,
            team_id=team_id,
            rank_adj_o=rank_o[team_id],
            rank_adj_d=rank_d[team_id],
            rank_adj_em=rank_em[team_id],
            rank_adj_tempo=rank_t[team_id],
            wab=wab[team_id],
            **asdict(efficiencies[team_id]),
            **asdict(factors[team_id]),
            **asdict(resume[team_id]),
            **asdict(quadrants[team_id]),
        )

    return apply_ranks(team_ids, assembled, FINAL_RANKS), baselines


def metrics_frame(metrics: dict[int, TeamSeasonMetrics]) -> pd.DataFrame:
    df = pd.DataFrame([asdict(m) for m in metrics.values()])
    if df.empty:
        return df
    rank_columns = [c for c in df.columns if c.startswith("rank_")]
    df = df.astype({c: "Int64" for c in rank_columns})
    return df.sort_values(["rank_adj_em", "team_id"], na_position="last").reset_index(drop=True)


def export_metrics_csv(metrics: dict[int, TeamSeasonMetrics], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    metrics_frame(metrics).to_csv(path, index=False)


def run_season_ratings(
    storage: DuckDBStorage,
    settings: Settings,
    season: int,
    export: bool = True,
) -> RatingsRunResult:
    logger.info("Starting ratings computation for season=%s", season)

    teams = storage.load_eligible_teams(season)
    if not teams:
        logger.warning("No non-JUCO teams for season=%s; nothing computed", season)
        return RatingsRunResult(
            success=False,
            season=season,
            message=f"No non-JUCO teams for season {season}.",
            reason=NO_TEAMS,
        )

    games = storage.load_qualifying_games(season, [t.team_id for t in teams])
    if not games:
        logger.warning("No qualifying game data for season=%s; nothing computed", season)
        return RatingsRunResult(
            success=False,
            season=season,
            message=f"No valid game data for season {season}.",
            reason=NO_GAMES,
        )

    metrics, baselines = compute_season_metrics(season, teams, games, settings)

    run_ts = datetime.utcnow()
    try:
        storage.write_season_metrics(
            season=season,
            run_ts=run_ts,
            metrics=list(metrics.values()),
            baselines=baselines,
            home_court_adv=settings.home_court_adv,
            iterations=settings.solver_iterations,
            game_count=len(games),
        )
    except MetricsPersistenceError as exc:
        logger.exception("Ratings for season=%s rolled back", season)
        return RatingsRunResult(
            success=False,
            season=season,
            message=str(exc),
            reason=PERSISTENCE_ERROR,
            baselines=baselines,
        )

    if export:
        export_metrics_csv(metrics, settings.gold_dir / f"team_season_metrics_{season}.csv")

    logger.info("Ratings pipeline complete for season=%s (teams=%s, games=%s)", season, len(metrics), len(games))
    return RatingsRunResult(
        success=True,
        season=season,
        message=f"All ratings calculated and saved for season {season}.",
        metrics=metrics,
        baselines=baselines,
    )
