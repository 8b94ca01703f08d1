from datetime import datetime
from pathlib import Path

from hoops_ratings.config import Settings, infer_season


def test_infer_season_rolls_over_in_october() -> None:
    assert infer_season(datetime(2025, 9, 30)) == 2025
    assert infer_season(datetime(2025, 10, 1)) == 2026
    assert infer_season(datetime(2026, 3, 15)) == 2026


def test_settings_defaults(monkeypatch) -> None:
    for name in (
        "RATINGS_DB_PATH",
        "RATINGS_HCA_POINTS",
        "RATINGS_ITERATIONS",
        "RATINGS_PYTHAGOREAN_EXPONENT",
        "RATINGS_WAB_SCALE",
        "RATINGS_BUBBLE_RANK_START",
        "RATINGS_BUBBLE_RANK_END",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.home_court_adv == 1.4
    assert settings.solver_iterations == 15
    assert settings.pythagorean_exponent == 13.91
    assert settings.wab_scaling_factor == 15.0
    assert (settings.bubble_rank_start, settings.bubble_rank_end) == (28, 38)
    assert settings.db_path == settings.data_dir / "league.duckdb"
    assert settings.gold_dir == settings.data_dir / "gold"


def test_settings_read_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RATINGS_DB_PATH", str(tmp_path / "other.duckdb"))
    monkeypatch.setenv("RATINGS_HCA_POINTS", "3.0")
    monkeypatch.setenv("RATINGS_ITERATIONS", "40")

    settings = Settings.from_env()

    assert settings.db_path == tmp_path / "other.duckdb"
    assert settings.home_court_adv == 3.0
    assert settings.solver_iterations == 40
