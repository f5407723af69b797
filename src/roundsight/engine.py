"""
Roundsight Query Engine

Public entry points used by the reporting layer:
- stats query: (player, history, side filter) -> AggregatedStats
- scoring query: same inputs -> AbilityScores
- role query: scores + stats -> RoleArchetype
- player profile: all of the above plus overall ratings and sub-metric details

Every query is a pure function of its inputs. Components are built from a
RoundsightConfig at construction; no state is carried between calls.
"""

import logging
from collections.abc import Iterable
from types import MappingProxyType

from roundsight.core.config import RoundsightConfig
from roundsight.core.constants import Side, SideFilter
from roundsight.core.schemas import HistoryEntry
from roundsight.core.utils import safe_divide
from roundsight.analysis.abilities import ability_details, score_abilities
from roundsight.analysis.aggregator import RoundAggregator, iter_valid_rounds, resolve_player
from roundsight.analysis.models import (
    AbilityScores,
    AggregatedStats,
    OverallRatings,
    PlayerProfile,
    RoleArchetype,
)
from roundsight.analysis.roles import RoleClassifier

logger = logging.getLogger(__name__)


class PerformanceEngine:
    """
    Wires the aggregator, scorers and role classifier together.

    Example:
        engine = PerformanceEngine()
        profile = engine.build_player_profile("76561198000000001", history, "CT")
    """

    def __init__(
        self,
        config: RoundsightConfig | None = None,
        classifier: RoleClassifier | None = None,
    ):
        self.config = config or RoundsightConfig()
        self.aggregator = RoundAggregator(self.config.engine)
        self.classifier = classifier or RoleClassifier()

    def query_stats(
        self,
        player_id: str,
        history: Iterable[HistoryEntry],
        side_filter: SideFilter | str = SideFilter.ALL,
    ) -> AggregatedStats:
        return self.aggregator.aggregate(player_id, list(history), SideFilter(side_filter))

    def query_scores(
        self,
        player_id: str,
        history: Iterable[HistoryEntry],
        side_filter: SideFilter | str = SideFilter.ALL,
    ) -> AbilityScores:
        stats = self.query_stats(player_id, history, side_filter)
        return self.score(stats)

    def score(self, stats: AggregatedStats) -> AbilityScores:
        return score_abilities(stats, self.config.engine.subscore_ratio_cap)

    def query_role(self, scores: AbilityScores, stats: AggregatedStats) -> RoleArchetype:
        return self.classifier.classify(scores, stats)

    def overall_ratings(self, player_id: str, history: Iterable[HistoryEntry]) -> OverallRatings:
        """Overall, CT and T ratings over every valid round, ignoring any side filter."""
        sums = {Side.CT: 0.0, Side.T: 0.0}
        counts = {Side.CT: 0, Side.T: 0}

        for entry in history:
            player = resolve_player(player_id, entry.match, self.aggregator.aliases)
            if player is None:
                continue
            for _, record in iter_valid_rounds(entry.match, player.round_key):
                sums[record.side] += record.rating
                counts[record.side] += 1

        scale = self.config.engine.rating_scale
        total_rounds = counts[Side.CT] + counts[Side.T]
        return OverallRatings(
            rating=safe_divide(sums[Side.CT] + sums[Side.T], total_rounds) * scale,
            ct_rating=safe_divide(sums[Side.CT], counts[Side.CT]) * scale,
            t_rating=safe_divide(sums[Side.T], counts[Side.T]) * scale,
            rounds=total_rounds,
            ct_rounds=counts[Side.CT],
            t_rounds=counts[Side.T],
        )

    def build_player_profile(
        self,
        player_id: str,
        history: Iterable[HistoryEntry],
        side_filter: SideFilter | str = SideFilter.ALL,
    ) -> PlayerProfile:
        """
        Build the full profile for a player.

        Args:
            player_id: Player id, steam id or display name
            history: (match, player's summary stats) entries
            side_filter: ALL, CT or T

        Returns:
            PlayerProfile with overall ratings, filtered stats, scores and role
        """
        history = list(history)
        side_filter = SideFilter(side_filter)

        stats = self.query_stats(player_id, history, side_filter)
        scores = self.score(stats)
        role = self.query_role(scores, stats)
        logger.info(
            f"Profile {player_id} ({side_filter}): {stats.rounds_played} rounds, role={role.id}"
        )

        return PlayerProfile(
            player_id=player_id,
            side_filter=str(side_filter),
            overall=self.overall_ratings(player_id, history),
            stats=stats,
            scores=scores,
            role=role,
            details=MappingProxyType(ability_details(stats)),
        )


# =============================================================================
# Convenience functions
# =============================================================================


def query_stats(
    player_id: str,
    history: Iterable[HistoryEntry],
    side_filter: SideFilter | str = SideFilter.ALL,
    config: RoundsightConfig | None = None,
) -> AggregatedStats:
    return PerformanceEngine(config).query_stats(player_id, history, side_filter)


def query_scores(
    player_id: str,
    history: Iterable[HistoryEntry],
    side_filter: SideFilter | str = SideFilter.ALL,
    config: RoundsightConfig | None = None,
) -> AbilityScores:
    return PerformanceEngine(config).query_scores(player_id, history, side_filter)


def query_role(scores: AbilityScores, stats: AggregatedStats) -> RoleArchetype:
    return RoleClassifier().classify(scores, stats)


def build_player_profile(
    player_id: str,
    history: Iterable[HistoryEntry],
    side_filter: SideFilter | str = SideFilter.ALL,
    config: RoundsightConfig | None = None,
) -> PlayerProfile:
    return PerformanceEngine(config).build_player_profile(player_id, history, side_filter)
