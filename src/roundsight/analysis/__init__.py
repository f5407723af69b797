"""
Roundsight Analysis - Reconstruction, aggregation, rating and scoring.

This module contains:
- timeline: Per-round fact reconstruction from the event timeline
- aggregator: Filtered accumulation of round records into AggregatedStats
- rating: Per-round composite rating and the match re-rater
- abilities: The seven 0-100 ability scores
- roles: Nearest-archetype role classification
"""

from roundsight.analysis.abilities import score_abilities
from roundsight.analysis.aggregator import RoundAggregator, resolve_player
from roundsight.analysis.models import (
    AbilityScores,
    AggregatedStats,
    OverallRatings,
    PlayerProfile,
    RoleArchetype,
    RoundFacts,
)
from roundsight.analysis.rating import MatchRater, RatingEngine, RoundPerformance
from roundsight.analysis.roles import ROLE_CATALOG, RoleClassifier
from roundsight.analysis.timeline import TimelineReconstructor

__all__: list[str] = [
    "AbilityScores",
    "AggregatedStats",
    "MatchRater",
    "OverallRatings",
    "PlayerProfile",
    "ROLE_CATALOG",
    "RatingEngine",
    "RoleArchetype",
    "RoleClassifier",
    "RoundAggregator",
    "RoundFacts",
    "RoundPerformance",
    "TimelineReconstructor",
    "resolve_player",
    "score_abilities",
]
