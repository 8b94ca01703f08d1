from __future__ import annotations

import argparse
import sys

from hoops_ratings.config import configure_logging, infer_season, load_settings
from hoops_ratings.pipeline import run_season_ratings
from hoops_ratings.storage import DuckDBStorage


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute adjusted ratings and résumé metrics for a season")
    parser.add_argument("season", type=int, nargs="?", default=None, help="Season year (default inferred)")
    parser.add_argument("--no-export", action="store_true", help="Skip writing the gold CSV export")
    return parser.parse_args()


def main() -> int:
    configure_logging()
    settings = load_settings()
    args = parse_args()

    season = args.season if args.season is not None else infer_season()

    try:
        storage = DuckDBStorage(db_path=settings.db_path)
        result = run_season_ratings(storage=storage, settings=settings, season=season, export=not args.no_export)
    except Exception as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if not result.success:
        print(f"ERROR [{result.reason}]: {result.message}", file=sys.stderr)
        return 1
    print(result.message)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
