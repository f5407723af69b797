"""
End-to-end tests for the query engine.
"""

import pytest

from factories import full_round, history_entry, make_match, sample_history
from roundsight import build_player_profile, query_scores, query_stats
from roundsight.analysis.models import AbilityScores
from roundsight.core.config import EngineConfig, RoundsightConfig
from roundsight.core.constants import Side, SideFilter
from roundsight.engine import PerformanceEngine


@pytest.fixture
def engine():
    return PerformanceEngine()


class TestQueries:
    """Tests for the stats and scoring queries."""

    def test_stats_over_sample_history(self, engine):
        """The inactive round is skipped, the rest is summed."""
        stats = engine.query_stats("p1", sample_history())
        assert stats.rounds_played == 3
        assert stats.kills == 3
        assert stats.deaths == 1
        assert stats.damage == pytest.approx(310.0)
        assert stats.clutch_points == 2
        assert stats.saved_by_teammate == 1
        assert stats.flash_assists == 1
        assert stats.sniper_kills == 1

    def test_side_filtered_query(self, engine):
        """The T query only sees the T round."""
        stats = engine.query_stats("p1", sample_history(), SideFilter.T)
        assert stats.rounds_played == 1
        assert stats.entry_deaths == 1
        assert stats.clutch_points == 0

    def test_scores_are_bounded(self, engine):
        """Scores over real-looking data are 0-100 ints."""
        scores = engine.query_scores("p1", sample_history())
        assert isinstance(scores, AbilityScores)
        for value in scores.as_features().values():
            assert 0 <= value <= 100

    def test_rating_scale_from_config(self):
        """The averaged rating uses the configured scale."""
        history = [history_entry(make_match([full_round(1, rating=1.0)]))]
        config = RoundsightConfig(engine=EngineConfig(rating_scale=1.0))
        assert PerformanceEngine(config).query_stats("p1", history).rating == pytest.approx(1.0)
        assert PerformanceEngine().query_stats("p1", history).rating == pytest.approx(1.3)

    def test_module_level_helpers(self):
        """The convenience functions match the engine methods."""
        history = sample_history()
        assert query_stats("p1", history) == PerformanceEngine().query_stats("p1", history)
        assert query_scores("p1", history, "CT") == PerformanceEngine().query_scores(
            "p1", history, "CT"
        )


class TestZeroHistory:
    """A player with no valid rounds."""

    def test_empty_history(self, engine):
        """Zero stats, zero scores and the fallback role, without raising."""
        profile = engine.build_player_profile("p1", [])
        assert profile.stats.rounds_played == 0
        assert profile.stats.rating == 0.0
        assert profile.scores == AbilityScores()
        assert profile.role.id == "all_rounder"
        assert profile.overall.rating == 0.0

    def test_unknown_player(self, engine):
        """A player in none of the matches behaves like an empty history."""
        profile = engine.build_player_profile("nobody", sample_history())
        assert profile.stats.rounds_played == 0
        assert profile.role.id == "all_rounder"


class TestPlayerProfile:
    """Tests for the combined profile query."""

    def test_overall_ignores_side_filter(self, engine):
        """Overall ratings cover both sides whatever the filter."""
        history = sample_history()
        ct_profile = engine.build_player_profile("p1", history, "CT")
        t_profile = engine.build_player_profile("p1", history, "T")

        assert ct_profile.overall == t_profile.overall
        assert ct_profile.overall.rounds == 3
        assert ct_profile.overall.ct_rounds == 2
        assert ct_profile.overall.t_rounds == 1
        assert ct_profile.overall.ct_rating == pytest.approx((1.2 + 1.6) / 2 * 1.3)
        assert ct_profile.overall.t_rating == pytest.approx(0.4 * 1.3)
        assert ct_profile.stats.rounds_played == 2
        assert t_profile.stats.rounds_played == 1

    def test_profile_contents(self, engine):
        """The profile carries the filter, details and a role."""
        profile = engine.build_player_profile("p1", sample_history(), SideFilter.CT)
        assert profile.side_filter == "CT"
        assert "pistol_rating" in profile.details
        assert profile.role.id

    def test_details_are_read_only(self, engine):
        """Profile details cannot be mutated by callers."""
        profile = engine.build_player_profile("p1", sample_history())
        with pytest.raises(TypeError):
            profile.details["pistol_rating"] = 9.9

    def test_idempotent(self):
        """Two identical queries return equal profiles."""
        history = sample_history()
        first = build_player_profile("p1", history, "ALL")
        second = build_player_profile("p1", history, "ALL")
        assert first.stats == second.stats
        assert first.scores == second.scores
        assert first.role == second.role
        assert dict(first.details) == dict(second.details)

    def test_history_is_not_consumed(self, engine):
        """A generator history is materialized once and reused."""
        history = sample_history()
        profile = engine.build_player_profile("p1", (entry for entry in history))
        assert profile.stats.rounds_played == 3
        assert profile.overall.rounds == 3

    def test_t_side_round(self):
        """A T-side round keyed by the player id is counted on the T side."""
        history = [history_entry(make_match([full_round(13, side=Side.T, rating=0.9)]))]
        profile = PerformanceEngine().build_player_profile("p1", history)
        assert profile.overall.t_rounds == 1
        assert profile.overall.ct_rounds == 0
