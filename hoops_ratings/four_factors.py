from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from hoops_ratings.models import BoxTotals, QualifyingGame


@dataclass
class _SeasonAggregate:
    fgm: int = 0
    fga: int = 0
    tpm: int = 0
    tpa: int = 0
    ftm: int = 0
    fta: int = 0
    orb: int = 0
    drb: int = 0
    tov: int = 0
    points: int = 0
    possessions: float = 0.0

    def add(self, box: BoxTotals, points: int, possessions: float) -> None:
        self.fgm += box.fgm
        self.fga += box.fga
        self.tpm += box.tpm
        self.tpa += box.tpa
        self.ftm += box.ftm
        self.fta += box.fta
        self.orb += box.orb
        self.drb += box.drb
        self.tov += box.tov
        self.points += points
        self.possessions += possessions


@dataclass(frozen=True)
class FourFactors:
    efg_pct_off: float = 0.0
    tor_off: float = 0.0
    orb_pct_off: float = 0.0
    ftr_off: float = 0.0
    efg_pct_def: float = 0.0
    tor_def: float = 0.0
    drb_pct_def: float = 0.0
    ftr_def: float = 0.0
    two_p_pct_off: float = 0.0
    three_p_pct_off: float = 0.0
    three_p_rate_off: float = 0.0
    two_p_pct_def: float = 0.0
    three_p_pct_def: float = 0.0
    three_p_rate_def: float = 0.0
    games_played: int = 0
    points_for: int = 0
    points_against: int = 0


def _ratio(numerator: float, denominator: float) -> float:
    return round(numerator / denominator, 3) if denominator > 0 else 0.0


def _shooting_splits(agg: _SeasonAggregate) -> tuple[float, float, float]:
    two_p_pct = _ratio(agg.fgm - agg.tpm, agg.fga - agg.tpa)
    three_p_pct = _ratio(agg.tpm, agg.tpa)
    three_p_rate = _ratio(agg.tpa, agg.fga)
    return two_p_pct, three_p_pct, three_p_rate


def compute_four_factors(team_ids: Iterable[int], games: Iterable[QualifyingGame]) -> dict[int, FourFactors]:
    team_ids = list(team_ids)
    offense = {team_id: _SeasonAggregate() for team_id in team_ids}
    defense = {team_id: _SeasonAggregate() for team_id in team_ids}
    game_counts = {team_id: 0 for team_id in team_ids}

    for game in games:
        for side, opp, _ in game.perspectives():
            if side.team_id not in offense:
                continue
            offense[side.team_id].add(side.box, side.points, side.possessions)
            defense[side.team_id].add(opp.box, opp.points, opp.possessions)
            game_counts[side.team_id] += 1

    out: dict[int, FourFactors] = {}
    for team_id in team_ids:
        if game_counts[team_id] == 0:
            out[team_id] = FourFactors()
            continue
        off = offense[team_id]
        allowed = defense[team_id]
        two_off, three_off, rate_off = _shooting_splits(off)
        two_def, three_def, rate_def = _shooting_splits(allowed)
        out[team_id] = FourFactors(
            efg_pct_off=_ratio(off.fgm + 0.5 * off.tpm, off.fga),
            tor_off=_ratio(off.tov, off.possessions),
            orb_pct_off=_ratio(off.orb, off.orb + allowed.drb),
            ftr_off=_ratio(off.ftm, off.fga),
            efg_pct_def=_ratio(allowed.fgm + 0.5 * allowed.tpm, allowed.fga),
            tor_def=_ratio(allowed.tov, allowed.possessions),
            drb_pct_def=_ratio(off.drb, off.drb + allowed.orb),
            ftr_def=_ratio(allowed.ftm, allowed.fga),
            two_p_pct_off=two_off,
            three_p_pct_off=three_off,
            three_p_rate_off=rate_off,
            two_p_pct_def=two_def,
            three_p_pct_def=three_def,
            three_p_rate_def=rate_def,
            games_played=game_counts[team_id],
            points_for=off.points,
            points_against=allowed.points,
        )
    return out
