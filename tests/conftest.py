from pathlib import Path

import pytest

from hoops_ratings.config import Settings
from hoops_ratings.models import BoxTotals, QualifyingGame, TeamGameSide
from hoops_ratings.storage import DuckDBStorage


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    data_dir = tmp_path / "data"
    return Settings(
        project_root=tmp_path,
        data_dir=data_dir,
        gold_dir=data_dir / "gold",
        db_path=data_dir / "test.duckdb",
        home_court_adv=1.4,
        solver_iterations=15,
        pythagorean_exponent=13.91,
        wab_scaling_factor=15.0,
        bubble_rank_start=28,
        bubble_rank_end=38,
    )


@pytest.fixture
def storage(settings: Settings) -> DuckDBStorage:
    return DuckDBStorage(db_path=settings.db_path)


@pytest.fixture
def make_game():
    def _make_game(
        game_id: int,
        home_id: int,
        away_id: int,
        home_pts: int,
        away_pts: int,
        home_poss: float = 70.0,
        away_poss: float = 70.0,
        home_box: BoxTotals | None = None,
        away_box: BoxTotals | None = None,
        season: int = 2025,
        playoffs: bool = False,
    ) -> QualifyingGame:
        return QualifyingGame(
            season=season,
            game_id=game_id,
            home=TeamGameSide(team_id=home_id, points=home_pts, possessions=home_poss, box=home_box or BoxTotals()),
            away=TeamGameSide(team_id=away_id, points=away_pts, possessions=away_poss, box=away_box or BoxTotals()),
            playoffs=playoffs,
        )

    return _make_game


@pytest.fixture
def round_robin(make_game):
    """Home-and-away round robin where each game's score follows fixed team strengths."""

    def _round_robin(strengths: dict[int, int], first_game_id: int = 1, possessions: float = 70.0):
        games = []
        game_id = first_game_id
        for home_id, home_strength in strengths.items():
            for away_id, away_strength in strengths.items():
                if home_id == away_id:
                    continue
                games.append(
                    make_game(
                        game_id,
                        home_id,
                        away_id,
                        home_pts=70 + home_strength - away_strength,
                        away_pts=70 + away_strength - home_strength,
                        home_poss=possessions,
                        away_poss=possessions,
                    )
                )
                game_id += 1
        return games

    return _round_robin
