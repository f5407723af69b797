"""
Roundsight - CS2 Round-Level Performance Scoring

Turns parsed match histories into corrected aggregate statistics, a composite
per-round rating, seven 0-100 ability scores and a role archetype.

Usage:
    from roundsight import build_player_profile, load_history

    history = load_history(payload)
    profile = build_player_profile("76561198000000001", history, "CT")

    print(f"{profile.role.name}: {profile.overall.rating:.2f}")
"""

__version__ = "0.1.0"
__author__ = "Roundsight Contributors"


def __getattr__(name):
    """Lazy import so the CLI's dependencies are not pulled in by the library."""
    if name == "load_history":
        from roundsight.core.schemas import load_history
        return load_history
    elif name == "PerformanceEngine":
        from roundsight.engine import PerformanceEngine
        return PerformanceEngine
    elif name == "query_stats":
        from roundsight.engine import query_stats
        return query_stats
    elif name == "query_scores":
        from roundsight.engine import query_scores
        return query_scores
    elif name == "query_role":
        from roundsight.engine import query_role
        return query_role
    elif name == "build_player_profile":
        from roundsight.engine import build_player_profile
        return build_player_profile
    elif name == "MatchRater":
        from roundsight.analysis.rating import MatchRater
        return MatchRater
    elif name == "SideFilter":
        from roundsight.core.constants import SideFilter
        return SideFilter
    raise AttributeError(f"module 'roundsight' has no attribute '{name}'")


__all__ = [
    # Version
    "__version__",
    # Queries
    "load_history",
    "PerformanceEngine",
    "query_stats",
    "query_scores",
    "query_role",
    "build_player_profile",
    # Rating
    "MatchRater",
    "SideFilter",
]
