"""Metric -> rank transform shared by every ranked column.

Ranks are 1..K over the K teams with a finite value. Ties are not shared: equal
values keep the order of ``team_ids`` (the sort is stable), so two teams with
the same value receive consecutive ranks.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RankSpec:
    field: str
    rank_field: str
    ascending: bool = False


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def rank_teams(
    team_ids: Iterable[int],
    value_of: Callable[[int], Any],
    ascending: bool = False,
) -> dict[int, int | None]:
    team_ids = list(team_ids)
    valued = [(team_id, value_of(team_id)) for team_id in team_ids]
    valued = [(team_id, value) for team_id, value in valued if _is_finite_number(value)]
    valued.sort(key=lambda item: item[1], reverse=not ascending)

    ranks: dict[int, int | None] = {team_id: None for team_id in team_ids}
    for position, (team_id, _) in enumerate(valued, start=1):
        ranks[team_id] = position
    return ranks


def rank_field(
    team_ids: Iterable[int],
    records: Mapping[int, Any],
    field: str,
    ascending: bool = False,
) -> dict[int, int | None]:
    return rank_teams(
        team_ids,
        lambda team_id: getattr(records[team_id], field, None) if team_id in records else None,
        ascending=ascending,
    )


def apply_ranks(team_ids: Sequence[int], records: Mapping[int, T], specs: Iterable[RankSpec]) -> dict[int, T]:
    out = dict(records)
    for spec in specs:
        ranks = rank_field(team_ids, out, spec.field, ascending=spec.ascending)
        for team_id in team_ids:
            out[team_id] = replace(out[team_id], **{spec.rank_field: ranks[team_id]})
    return out
