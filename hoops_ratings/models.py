from __future__ import annotations

from dataclasses import dataclass, field

NO_TEAMS = "no_teams"
NO_GAMES = "no_games"
PERSISTENCE_ERROR = "persistence_error"


@dataclass(frozen=True)
class Conference:
    conference_id: int
    name: str
    is_juco: bool = False


@dataclass(frozen=True)
class Team:
    team_id: int
    conference_id: int
    is_juco: bool = False
    name: str = ""
    abbrev: str = ""


@dataclass(frozen=True)
class BoxTotals:
    fgm: int = 0
    fga: int = 0
    tpm: int = 0
    tpa: int = 0
    ftm: int = 0
    fta: int = 0
    orb: int = 0
    drb: int = 0
    tov: int = 0

    @property
    def estimated_possessions(self) -> float:
        return self.fga - self.orb + self.tov + 0.44 * self.fta


@dataclass(frozen=True)
class TeamGameSide:
    team_id: int
    points: int
    possessions: float
    box: BoxTotals = field(default_factory=BoxTotals)

    @staticmethod
    def from_box(team_id: int, points: int, box: BoxTotals, possessions: float | None = None) -> "TeamGameSide":
        if possessions is None:
            possessions = box.estimated_possessions
        return TeamGameSide(team_id=team_id, points=points, possessions=possessions, box=box)


@dataclass(frozen=True)
class QualifyingGame:
    season: int
    game_id: int
    home: TeamGameSide
    away: TeamGameSide
    playoffs: bool = False

    def perspectives(self) -> tuple[tuple[TeamGameSide, TeamGameSide, bool], ...]:
        """(team side, opponent side, team is home) for both teams."""
        return ((self.home, self.away, True), (self.away, self.home, False))


@dataclass(frozen=True)
class TeamSeasonMetrics:
    season: int
    team_id: int

    adj_o: float | None = None
    rank_adj_o: int | None = None
    adj_d: float | None = None
    rank_adj_d: int | None = None
    adj_em: float | None = None
    rank_adj_em: int | None = None
    adj_tempo: float | None = None
    rank_adj_tempo: int | None = None

    efg_pct_off: float | None = None
    rank_efg_pct_off: int | None = None
    tor_off: float | None = None
    rank_tor_off: int | None = None
    orb_pct_off: float | None = None
    rank_orb_pct_off: int | None = None
    ftr_off: float | None = None
    rank_ftr_off: int | None = None
    efg_pct_def: float | None = None
    rank_efg_pct_def: int | None = None
    tor_def: float | None = None
    rank_tor_def: int | None = None
    drb_pct_def: float | None = None
    rank_drb_pct_def: int | None = None
    ftr_def: float | None = None
    rank_ftr_def: int | None = None

    two_p_pct_off: float | None = None
    three_p_pct_off: float | None = None
    three_p_rate_off: float | None = None
    two_p_pct_def: float | None = None
    three_p_pct_def: float | None = None
    three_p_rate_def: float | None = None

    raw_sos: float | None = None
    rank_raw_sos: int | None = None
    rpi: float | None = None
    rank_rpi: int | None = None
    adj_sos: float | None = None
    rank_adj_sos: int | None = None
    adj_ncsos: float | None = None
    sor: float | None = None
    rank_sor: int | None = None
    luck: float | None = None
    wab: float | None = None
    rank_wab: int | None = None

    q1_wins: int = 0
    q1_losses: int = 0
    q2_wins: int = 0
    q2_losses: int = 0
    q3_wins: int = 0
    q3_losses: int = 0
    q4_wins: int = 0
    q4_losses: int = 0

    games_played: int = 0
    points_for: int = 0
    points_against: int = 0


@dataclass(frozen=True)
class LeagueBaselines:
    avg_ppp: float
    avg_tempo: float


@dataclass(frozen=True)
class RatingsRunResult:
    success: bool
    season: int
    message: str
    reason: str | None = None
    metrics: dict[int, TeamSeasonMetrics] = field(default_factory=dict)
    baselines: LeagueBaselines | None = None
