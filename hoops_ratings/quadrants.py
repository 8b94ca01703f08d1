from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

from hoops_ratings.resume import ScheduledGame, TeamRecord


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _quadrant_win(game: ScheduledGame) -> bool:
    # A tied game is a road win so every game has exactly one quadrant winner.
    return game.won or (game.points_for == game.points_against and not game.is_home)


@dataclass(frozen=True)
class QuadrantCutoffs:
    """Highest opponent rank that still falls in Q1, Q2 and Q3, per location."""

    home: tuple[int, int, int]
    away: tuple[int, int, int]

    @staticmethod
    def for_team_count(team_count: int) -> "QuadrantCutoffs":
        q1_home = max(1, _round_half_up(team_count * 0.08))
        q1_away = max(1, _round_half_up(team_count * 0.21))
        q2_home = max(q1_home + 1, _round_half_up(team_count * 0.21))
        q2_away = max(q1_away + 1, _round_half_up(team_count * 0.37))
        q3_home = max(q2_home + 1, _round_half_up(team_count * 0.44))
        q3_away = max(q2_away + 1, _round_half_up(team_count * 0.66))
        return QuadrantCutoffs(home=(q1_home, q2_home, q3_home), away=(q1_away, q2_away, q3_away))

    def quadrant(self, opponent_rank: int, is_home: bool) -> int:
        limits = self.home if is_home else self.away
        for quadrant, limit in enumerate(limits, start=1):
            if opponent_rank <= limit:
                return quadrant
        return 4


@dataclass
class QuadrantRecord:
    q1_wins: int = 0
    q1_losses: int = 0
    q2_wins: int = 0
    q2_losses: int = 0
    q3_wins: int = 0
    q3_losses: int = 0
    q4_wins: int = 0
    q4_losses: int = 0

    def record(self, quadrant: int, won: bool) -> None:
        attr = f"q{quadrant}_{'wins' if won else 'losses'}"
        setattr(self, attr, getattr(self, attr) + 1)


def compute_quadrant_records(
    records: Mapping[int, TeamRecord],
    em_ranks: Mapping[int, int | None],
    team_count: int,
) -> dict[int, QuadrantRecord]:
    cutoffs = QuadrantCutoffs.for_team_count(team_count)
    out: dict[int, QuadrantRecord] = {}
    for team_id, record in records.items():
        quad = QuadrantRecord()
        if em_ranks.get(team_id) is not None:
            for game in record.schedule:
                opponent_rank = em_ranks.get(game.opponent_id)
                if opponent_rank is None:
                    continue
                quad.record(cutoffs.quadrant(opponent_rank, game.is_home), _quadrant_win(game))
        out[team_id] = quad
    return out
