"""Opponent-adjusted team ratings and résumé metrics for a basketball league season."""

__all__ = [
    "config",
    "efficiency",
    "four_factors",
    "models",
    "pipeline",
    "quadrants",
    "ranking",
    "resume",
    "storage",
    "wab",
]
