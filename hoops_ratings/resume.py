"""Record-based résumé metrics: win percentages, RPI, schedule strength, luck and SOR."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from hoops_ratings.efficiency import AdjustedEfficiency
from hoops_ratings.models import QualifyingGame, Team

PYTHAGOREAN_EXPONENT = 13.91

RPI_WEIGHT_WP = 0.25
RPI_WEIGHT_OWP = 0.50
RPI_WEIGHT_OOWP = 0.25
RPI_WIN_HOME_WEIGHT = 0.6
RPI_WIN_AWAY_WEIGHT = 1.4
RPI_LOSS_HOME_WEIGHT = 1.4
RPI_LOSS_AWAY_WEIGHT = 0.6


@dataclass(frozen=True)
class ScheduledGame:
    opponent_id: int
    is_home: bool
    points_for: int
    points_against: int

    @property
    def won(self) -> bool:
        return self.points_for > self.points_against


@dataclass
class TeamRecord:
    wins: int = 0
    losses: int = 0
    weighted_wins: float = 0.0
    weighted_losses: float = 0.0
    points_for: int = 0
    points_against: int = 0
    schedule: list[ScheduledGame] = field(default_factory=list)

    @property
    def games_played(self) -> int:
        return self.wins + self.losses

    @property
    def win_pct(self) -> float:
        return self.wins / self.games_played if self.games_played else 0.0

    @property
    def weighted_win_pct(self) -> float:
        total = self.weighted_wins + self.weighted_losses
        return self.weighted_wins / total if total > 0 else 0.0

    def add(self, game: ScheduledGame) -> None:
        self.schedule.append(game)
        self.points_for += game.points_for
        self.points_against += game.points_against
        # A non-win (including a tie) counts as a loss.
        if game.won:
            self.wins += 1
            self.weighted_wins += RPI_WIN_HOME_WEIGHT if game.is_home else RPI_WIN_AWAY_WEIGHT
        else:
            self.losses += 1
            self.weighted_losses += RPI_LOSS_HOME_WEIGHT if game.is_home else RPI_LOSS_AWAY_WEIGHT


@dataclass(frozen=True)
class ResumeMetrics:
    raw_sos: float | None = None
    rpi: float | None = None
    adj_sos: float | None = None
    adj_ncsos: float | None = None
    sor: float | None = None
    luck: float | None = None


def build_team_records(
    team_ids: Iterable[int],
    games: Iterable[QualifyingGame],
    include_ineligible_opponents: bool = False,
) -> dict[int, TeamRecord]:
    """Season records for the eligible teams.

    By default only games in which both teams are eligible count. With
    ``include_ineligible_opponents`` every corpus game an eligible team played
    is recorded (games against JUCO opponents included).
    """
    records = {team_id: TeamRecord() for team_id in team_ids}
    for game in games:
        both_eligible = game.home.team_id in records and game.away.team_id in records
        if not both_eligible and not include_ineligible_opponents:
            continue
        for side, opp, is_home in game.perspectives():
            if side.team_id not in records:
                continue
            records[side.team_id].add(
                ScheduledGame(
                    opponent_id=opp.team_id,
                    is_home=is_home,
                    points_for=side.points,
                    points_against=opp.points,
                )
            )
    return records


def opponents_win_pct(records: Mapping[int, TeamRecord]) -> dict[int, float | None]:
    # Opponents' records still include their games against the subject team.
    out: dict[int, float | None] = {}
    for team_id, record in records.items():
        if not record.schedule:
            out[team_id] = None
            continue
        values = [records[g.opponent_id].win_pct for g in record.schedule]
        out[team_id] = sum(values) / len(values)
    return out


def opponents_opponents_win_pct(
    records: Mapping[int, TeamRecord],
    owp: Mapping[int, float | None],
) -> dict[int, float | None]:
    out: dict[int, float | None] = {}
    for team_id, record in records.items():
        values = [owp[g.opponent_id] for g in record.schedule if owp.get(g.opponent_id) is not None]
        out[team_id] = sum(values) / len(values) if values else None
    return out


def raw_sos(owp: float, oowp: float) -> float:
    return (2.0 / 3.0 * owp) + (1.0 / 3.0 * oowp)


def rpi(weighted_wp: float, owp: float, oowp: float) -> float:
    return weighted_wp * RPI_WEIGHT_WP + owp * RPI_WEIGHT_OWP + oowp * RPI_WEIGHT_OOWP


def pythagorean_win_pct(points_for: float, points_against: float, exponent: float = PYTHAGOREAN_EXPONENT) -> float:
    points_for = max(points_for, 0)
    points_against = max(points_against, 0)
    if points_for == 0 and points_against == 0:
        return 0.5
    if points_against == 0:
        return 1.0
    if points_for == 0:
        return 0.0
    # Divide through by points_for**exponent to keep large totals from overflowing.
    return 1.0 / (1.0 + (points_against / points_for) ** exponent)


def luck(
    record: TeamRecord,
    season_record: TeamRecord | None = None,
    exponent: float = PYTHAGOREAN_EXPONENT,
) -> float | None:
    """Wins over Pythagorean expectation.

    Wins and games come from ``record``; the point totals come from
    ``season_record`` when given (every game played, ineligible opponents
    included) and from ``record`` otherwise.
    """
    if record.games_played == 0:
        return None
    totals = season_record if season_record is not None else record
    expected_wins = pythagorean_win_pct(totals.points_for, totals.points_against, exponent) * record.games_played
    return record.wins - expected_wins


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def adjusted_sos(
    team: Team,
    record: TeamRecord,
    efficiencies: Mapping[int, AdjustedEfficiency],
    conferences: Mapping[int, int],
) -> tuple[float | None, float | None]:
    all_opps: list[float] = []
    non_conf: list[float] = []
    for game in record.schedule:
        eff = efficiencies.get(game.opponent_id)
        if eff is None:
            continue
        all_opps.append(eff.adj_em)
        if conferences.get(game.opponent_id) != team.conference_id:
            non_conf.append(eff.adj_em)

    adj = _mean(all_opps)
    ncsos = _mean(non_conf)
    return (
        round(adj, 2) if adj is not None else None,
        round(ncsos, 2) if ncsos is not None else None,
    )


def simplified_sor(record: TeamRecord, efficiencies: Mapping[int, AdjustedEfficiency]) -> float | None:
    if record.games_played == 0:
        return None
    beaten: list[float] = []
    lost_to: list[float] = []
    for game in record.schedule:
        eff = efficiencies.get(game.opponent_id)
        if eff is None:
            continue
        (beaten if game.won else lost_to).append(eff.adj_em)
    return round((_mean(beaten) or 0.0) - (_mean(lost_to) or 0.0), 2)


def compute_resume_metrics(
    teams: Iterable[Team],
    records: Mapping[int, TeamRecord],
    efficiencies: Mapping[int, AdjustedEfficiency],
    season_records: Mapping[int, TeamRecord] | None = None,
    pythagorean_exponent: float = PYTHAGOREAN_EXPONENT,
) -> dict[int, ResumeMetrics]:
    teams = list(teams)
    conferences = {team.team_id: team.conference_id for team in teams}
    owp = opponents_win_pct(records)
    oowp = opponents_opponents_win_pct(records, owp)

    out: dict[int, ResumeMetrics] = {}
    for team in teams:
        record = records[team.team_id]
        team_owp = owp[team.team_id]
        team_oowp = oowp[team.team_id]
        if record.games_played == 0 or team_owp is None or team_oowp is None:
            out[team.team_id] = ResumeMetrics()
            continue

        adj, ncsos = adjusted_sos(team, record, efficiencies, conferences)
        season_record = season_records.get(team.team_id) if season_records is not None else None
        team_luck = luck(record, season_record, exponent=pythagorean_exponent)
        out[team.team_id] = ResumeMetrics(
            raw_sos=round(raw_sos(team_owp, team_oowp), 4),
            rpi=round(rpi(record.weighted_win_pct, team_owp, team_oowp), 4),
            adj_sos=adj,
            adj_ncsos=ncsos,
            sor=simplified_sor(record, efficiencies),
            luck=round(team_luck, 2) if team_luck is not None else None,
        )
    return out
