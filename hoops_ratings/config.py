from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    project_root: Path
    data_dir: Path
    gold_dir: Path
    db_path: Path
    home_court_adv: float
    solver_iterations: int
    pythagorean_exponent: float
    wab_scaling_factor: float
    bubble_rank_start: int
    bubble_rank_end: int

    @staticmethod
    def from_env() -> "Settings":
        project_root = Path(__file__).resolve().parent.parent
        data_dir = project_root / "data"
        db_path = os.getenv("RATINGS_DB_PATH")
        return Settings(
            project_root=project_root,
            data_dir=data_dir,
            gold_dir=data_dir / "gold",
            db_path=Path(db_path) if db_path else data_dir / "league.duckdb",
            home_court_adv=float(os.getenv("RATINGS_HCA_POINTS", "1.4")),
            solver_iterations=int(os.getenv("RATINGS_ITERATIONS", "15")),
            pythagorean_exponent=float(os.getenv("RATINGS_PYTHAGOREAN_EXPONENT", "13.91")),
            wab_scaling_factor=float(os.getenv("RATINGS_WAB_SCALE", "15")),
            bubble_rank_start=int(os.getenv("RATINGS_BUBBLE_RANK_START", "28")),
            bubble_rank_end=int(os.getenv("RATINGS_BUBBLE_RANK_END", "38")),
        )


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def load_settings() -> Settings:
    settings = Settings.from_env()
    load_dotenv(dotenv_path=settings.project_root / ".env", override=False)
    load_dotenv(override=False)
    settings = Settings.from_env()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.gold_dir.mkdir(parents=True, exist_ok=True)
    return settings


def infer_season(today: datetime | None = None) -> int:
    now = today or datetime.utcnow()
    return now.year if now.month < 10 else now.year + 1
