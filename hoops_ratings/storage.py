from __future__ import annotations

import logging
from dataclasses import fields
from datetime import datetime
from pathlib import Path
from typing import Any

import duckdb

from hoops_ratings.models import (
    BoxTotals,
    Conference,
    LeagueBaselines,
    QualifyingGame,
    Team,
    TeamGameSide,
    TeamSeasonMetrics,
)

logger = logging.getLogger(__name__)

PLAYED = "PLAYED"

BOX_COLUMNS = [f.name for f in fields(BoxTotals)]
METRIC_COLUMNS = [f.name for f in fields(TeamSeasonMetrics)]


class MetricsPersistenceError(RuntimeError):
    pass


def _metrics_row(metrics: TeamSeasonMetrics, calculated_at: datetime) -> list[Any]:
    return [getattr(metrics, column) for column in METRIC_COLUMNS] + [calculated_at]


def _game_side(team_id: int, points: int, possessions: float | None, box_values: tuple[Any, ...]) -> TeamGameSide:
    # Rows without a stored possession count fall back to the box-score estimate.
    return TeamGameSide.from_box(
        team_id=team_id,
        points=points,
        box=BoxTotals(*box_values),
        possessions=float(possessions) if possessions is not None else None,
    )


class DuckDBStorage:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self.db_path))

    def _init_schema(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS conferences (
                    conference_id INTEGER PRIMARY KEY,
                    name VARCHAR,
                    is_juco BOOLEAN
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS teams (
                    season INTEGER,
                    team_id INTEGER,
                    name VARCHAR,
                    abbrev VARCHAR,
                    conference_id INTEGER,
                    PRIMARY KEY (season, team_id)
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS games (
                    season INTEGER,
                    game_id BIGINT,
                    playoffs BOOLEAN,
                    status VARCHAR,
                    home_team_id INTEGER,
                    away_team_id INTEGER,
                    home_score INTEGER,
                    away_score INTEGER,
                    PRIMARY KEY (season, game_id)
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS team_game_stats (
                    season INTEGER,
                    game_id BIGINT,
                    team_id INTEGER,
                    playoffs BOOLEAN,
                    possessions DOUBLE,
                    fgm INTEGER, fga INTEGER, tpm INTEGER, tpa INTEGER,
                    ftm INTEGER, fta INTEGER, orb INTEGER, drb INTEGER, tov INTEGER,
                    PRIMARY KEY (season, game_id, team_id)
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS team_season_metrics (
                    season INTEGER,
                    team_id INTEGER,
                    adj_o DOUBLE, rank_adj_o INTEGER,
                    adj_d DOUBLE, rank_adj_d INTEGER,
                    adj_em DOUBLE, rank_adj_em INTEGER,
                    adj_tempo DOUBLE, rank_adj_tempo INTEGER,
                    efg_pct_off DOUBLE, rank_efg_pct_off INTEGER,
                    tor_off DOUBLE, rank_tor_off INTEGER,
                    orb_pct_off DOUBLE, rank_orb_pct_off INTEGER,
                    ftr_off DOUBLE, rank_ftr_off INTEGER,
                    efg_pct_def DOUBLE, rank_efg_pct_def INTEGER,
                    tor_def DOUBLE, rank_tor_def INTEGER,
                    drb_pct_def DOUBLE, rank_drb_pct_def INTEGER,
                    ftr_def DOUBLE, rank_ftr_def INTEGER,
                    two_p_pct_off DOUBLE, three_p_pct_off DOUBLE, three_p_rate_off DOUBLE,
                    two_p_pct_def DOUBLE, three_p_pct_def DOUBLE, three_p_rate_def DOUBLE,
                    raw_sos DOUBLE, rank_raw_sos INTEGER,
                    rpi DOUBLE, rank_rpi INTEGER,
                    adj_sos DOUBLE, rank_adj_sos INTEGER,
                    adj_ncsos DOUBLE,
                    sor DOUBLE, rank_sor INTEGER,
                    luck DOUBLE,
                    wab DOUBLE, rank_wab INTEGER,
                    q1_wins INTEGER, q1_losses INTEGER,
                    q2_wins INTEGER, q2_losses INTEGER,
                    q3_wins INTEGER, q3_losses INTEGER,
                    q4_wins INTEGER, q4_losses INTEGER,
                    games_played INTEGER,
                    points_for INTEGER,
                    points_against INTEGER,
                    calculated_at TIMESTAMP
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS rating_runs (
                    season INTEGER,
                    run_ts TIMESTAMP,
                    avg_ppp DOUBLE,
                    avg_tempo DOUBLE,
                    home_court_adv DOUBLE,
                    iterations INTEGER,
                    team_count INTEGER,
                    game_count INTEGER
                );
                """
            )

    def upsert_conferences(self, conferences: list[Conference]) -> None:
        with self._connect() as con:
            con.executemany(
                "INSERT OR REPLACE INTO conferences(conference_id, name, is_juco) VALUES (?, ?, ?)",
                [(c.conference_id, c.name, c.is_juco) for c in conferences],
            )

    def upsert_teams(self, season: int, teams: list[Team]) -> None:
        with self._connect() as con:
            con.executemany(
                """
                INSERT OR REPLACE INTO teams(season, team_id, name, abbrev, conference_id)
                VALUES (?, ?, ?, ?, ?)
                """,
                [(season, t.team_id, t.name, t.abbrev, t.conference_id) for t in teams],
            )

    def upsert_games(self, games: list[QualifyingGame], status: str = PLAYED) -> None:
        game_rows = [
            (
                g.season,
                g.game_id,
                g.playoffs,
                status,
                g.home.team_id,
                g.away.team_id,
                g.home.points,
                g.away.points,
            )
            for g in games
        ]
        stat_rows = [
            (g.season, g.game_id, side.team_id, g.playoffs, side.possessions)
            + tuple(getattr(side.box, column) for column in BOX_COLUMNS)
            for g in games
            for side in (g.home, g.away)
        ]
        with self._connect() as con:
            con.executemany(
                """
                INSERT OR REPLACE INTO games(
                    season, game_id, playoffs, status, home_team_id, away_team_id, home_score, away_score
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                game_rows,
            )
            con.executemany(
                f"""
                INSERT OR REPLACE INTO team_game_stats(
                    season, game_id, team_id, playoffs, possessions, {", ".join(BOX_COLUMNS)}
                ) VALUES ({", ".join("?" for _ in range(5 + len(BOX_COLUMNS)))})
                """,
                stat_rows,
            )

    def load_eligible_teams(self, season: int) -> list[Team]:
        with self._connect() as con:
            rows = con.execute(
                """
                SELECT t.team_id, t.conference_id, c.is_juco, t.name, t.abbrev
                FROM teams t
                JOIN conferences c ON t.conference_id = c.conference_id
                WHERE t.season = ? AND NOT c.is_juco
                ORDER BY t.team_id
                """,
                [season],
            ).fetchall()
        logger.info("Found %s non-JUCO teams for season=%s", len(rows), season)
        return [
            Team(team_id=r[0], conference_id=r[1], is_juco=bool(r[2]), name=r[3] or "", abbrev=r[4] or "")
            for r in rows
        ]

    def load_qualifying_games(self, season: int, team_ids: list[int]) -> list[QualifyingGame]:
        if not team_ids:
            return []
        home_box = ", ".join(f"COALESCE(h.{c}, 0)" for c in BOX_COLUMNS)
        away_box = ", ".join(f"COALESCE(a.{c}, 0)" for c in BOX_COLUMNS)
        with self._connect() as con:
            rows = con.execute(
                f"""
                SELECT g.game_id, g.playoffs,
                       g.home_team_id, g.home_score, h.possessions, {home_box},
                       g.away_team_id, g.away_score, a.possessions, {away_box}
                FROM games g
                JOIN team_game_stats h
                  ON h.season = g.season AND h.game_id = g.game_id
                 AND h.team_id = g.home_team_id AND h.playoffs = g.playoffs
                JOIN team_game_stats a
                  ON a.season = g.season AND a.game_id = g.game_id
                 AND a.team_id = g.away_team_id AND a.playoffs = g.playoffs
                WHERE g.season = ?
                  AND NOT g.playoffs
                  AND g.status = ?
                  AND g.home_team_id >= 0 AND g.away_team_id >= 0
                  AND (list_contains(CAST(? AS INTEGER[]), g.home_team_id)
                       OR list_contains(CAST(? AS INTEGER[]), g.away_team_id))
                ORDER BY g.game_id
                """,
                [season, PLAYED, team_ids, team_ids],
            ).fetchall()

        n_box = len(BOX_COLUMNS)
        away_start = 5 + n_box
        games: list[QualifyingGame] = []
        for r in rows:
            home = _game_side(r[2], r[3], r[4], r[5 : 5 + n_box])
            away = _game_side(
                r[away_start],
                r[away_start + 1],
                r[away_start + 2],
                r[away_start + 3 : away_start + 3 + n_box],
            )
            if home.possessions <= 0 or away.possessions <= 0:
                continue
            games.append(QualifyingGame(season=season, game_id=r[0], home=home, away=away, playoffs=bool(r[1])))
        logger.info("Loaded %s qualifying games for season=%s", len(games), season)
        return games

    def write_season_metrics(
        self,
        season: int,
        run_ts: datetime,
        metrics: list[TeamSeasonMetrics],
        baselines: LeagueBaselines,
        home_court_adv: float,
        iterations: int,
        game_count: int,
    ) -> int:
        """Replace every metrics row for ``season`` in one transaction.

        Either all teams are written and the run is recorded, or the
        transaction is rolled back and prior rows stay untouched.
        """
        columns = METRIC_COLUMNS + ["calculated_at"]
        insert_sql = f"""
            INSERT INTO team_season_metrics({", ".join(columns)})
            VALUES ({", ".join("?" for _ in columns)})
        """
        with self._connect() as con:
            con.begin()
            try:
                con.execute("DELETE FROM team_season_metrics WHERE season = ?", [season])
                for row in metrics:
                    con.execute(insert_sql, _metrics_row(row, run_ts))
                con.execute("DELETE FROM rating_runs WHERE season = ?", [season])
                con.execute(
                    """
                    INSERT INTO rating_runs(
                        season, run_ts, avg_ppp, avg_tempo, home_court_adv, iterations, team_count, game_count
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        season,
                        run_ts,
                        baselines.avg_ppp,
                        baselines.avg_tempo,
                        home_court_adv,
                        iterations,
                        len(metrics),
                        game_count,
                    ],
                )
                con.commit()
            except duckdb.Error as exc:
                con.rollback()
                raise MetricsPersistenceError(f"Failed to save ratings for season={season}: {exc}") from exc

        logger.info("Saved advanced metrics for %s teams (season=%s)", len(metrics), season)
        return len(metrics)

    def load_season_metrics(self, season: int) -> dict[int, TeamSeasonMetrics]:
        with self._connect() as con:
            rows = con.execute(
                f"""
                SELECT {", ".join(METRIC_COLUMNS)}
                FROM team_season_metrics
                WHERE season = ?
                ORDER BY team_id
                """,
                [season],
            ).fetchall()
        return {r[1]: TeamSeasonMetrics(*r) for r in rows}
