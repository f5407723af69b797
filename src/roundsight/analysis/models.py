"""
Data Models for Round-Level Performance Analysis

Dataclasses shared by the timeline reconstruction, aggregation, scoring and
role classification stages.

Contains:
- RoundFacts: per-round facts inferred from the event timeline
- AggregatedStats: immutable running totals with derived rates
- AbilityScores: the seven 0-100 ability scores
- RoleArchetype: static role catalog entry
- OverallRatings / PlayerProfile: combined profile query result
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from types import MappingProxyType
from typing import Any

from roundsight.core.constants import RATING_SCALE
from roundsight.core.utils import safe_divide

# =============================================================================
# Timeline facts
# =============================================================================


@dataclass(frozen=True)
class RoundFacts:
    """Facts about one player in one round that the records do not carry."""

    saved_by_teammate: int = 0  # passive: a teammate killed someone hurting me
    teammates_saved: int = 0  # active: I killed someone hurting a teammate
    sniper_kills: int = 0
    sniper_multi_kill: bool = False
    sniper_opening_kill: bool = False
    utility_kills: int = 0
    flash_assists: int = 0
    last_alive: bool = False
    time_alive: float = 0.0


# =============================================================================
# Aggregated statistics
# =============================================================================


@dataclass(frozen=True)
class AggregatedStats:
    """Running totals for one (player, match set, side filter) query.

    Built fresh per query and never mutated. Every derived rate guards its
    denominator, so a player with zero valid rounds reads as all zeros.
    """

    # General
    rounds_played: int = 0
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    damage: float = 0.0
    headshots: int = 0
    rating_sum: float = 0.0
    wpa_sum: float = 0.0
    impact_sum: float = 0.0

    # Firepower
    multi_kill_rounds: int = 0
    rounds_with_kills: int = 0
    kills_in_wins: int = 0
    damage_in_wins: float = 0.0
    rounds_won: int = 0
    rounds_lost: int = 0
    pistol_rating_sum: float = 0.0
    pistol_rounds_played: int = 0

    # Entry / trade / support
    entry_kills: int = 0
    entry_deaths: int = 0
    entry_deaths_traded: int = 0
    trade_kills: int = 0
    traded_deaths: int = 0
    support_rounds: int = 0
    rounds_won_after_entry: int = 0
    saved_by_teammate: int = 0
    teammates_saved: int = 0

    # Utility
    utility_damage: float = 0.0
    flash_assists: int = 0
    blind_duration: float = 0.0
    enemies_blinded: int = 0
    utility_kills: int = 0
    flashes_thrown: int = 0

    # Discipline / clutch
    kast_rounds: int = 0
    survived_rounds: int = 0
    saves_in_losses: int = 0
    rounds_last_alive: int = 0
    total_time_alive: float = 0.0
    clutch_points: int = 0
    w1v1: int = 0
    l1v1: int = 0

    # Sniper
    sniper_kills: int = 0
    sniper_multi_kill_rounds: int = 0
    sniper_opening_kills: int = 0
    rounds_with_sniper_kills: int = 0

    rating_scale: float = RATING_SCALE

    @classmethod
    def counter_names(cls) -> tuple[str, ...]:
        """Names of the summed counters (everything except the rating scale)."""
        return tuple(f.name for f in fields(cls) if f.name != "rating_scale")

    # -------------------------------------------------------------------------
    # Core rates
    # -------------------------------------------------------------------------

    @property
    def adr(self) -> float:
        """Average damage per round."""
        return safe_divide(self.damage, self.rounds_played)

    @property
    def kpr(self) -> float:
        return safe_divide(self.kills, self.rounds_played)

    @property
    def dpr(self) -> float:
        """Deaths per round."""
        return safe_divide(self.deaths, self.rounds_played)

    @property
    def apr(self) -> float:
        return safe_divide(self.assists, self.rounds_played)

    @property
    def kd_ratio(self) -> float:
        return safe_divide(self.kills, self.deaths)

    @property
    def kast_pct(self) -> float:
        """KAST percentage (0-100)."""
        return safe_divide(self.kast_rounds, self.rounds_played) * 100

    @property
    def survival_pct(self) -> float:
        return safe_divide(self.survived_rounds, self.rounds_played) * 100

    @property
    def headshot_pct(self) -> float:
        return safe_divide(self.headshots, self.kills) * 100

    @property
    def rating(self) -> float:
        """Averaged per-round rating scaled by the rating constant."""
        return safe_divide(self.rating_sum, self.rounds_played) * self.rating_scale

    @property
    def pistol_rating(self) -> float:
        return safe_divide(self.pistol_rating_sum, self.pistol_rounds_played) * self.rating_scale

    @property
    def wpa_avg(self) -> float:
        return safe_divide(self.wpa_sum, self.rounds_played)

    @property
    def impact_per_round(self) -> float:
        return safe_divide(self.impact_sum, self.rounds_played)

    # -------------------------------------------------------------------------
    # Firepower rates
    # -------------------------------------------------------------------------

    @property
    def multi_kill_rate(self) -> float:
        """Percentage of rounds with two or more kills."""
        return safe_divide(self.multi_kill_rounds, self.rounds_played) * 100

    @property
    def rounds_with_kill_pct(self) -> float:
        return safe_divide(self.rounds_with_kills, self.rounds_played) * 100

    @property
    def kills_per_round_win(self) -> float:
        return safe_divide(self.kills_in_wins, self.rounds_won)

    @property
    def damage_per_round_win(self) -> float:
        return safe_divide(self.damage_in_wins, self.rounds_won)

    # -------------------------------------------------------------------------
    # Entry / opening / trade rates
    # -------------------------------------------------------------------------

    @property
    def opening_attempts(self) -> int:
        return self.entry_kills + self.entry_deaths

    @property
    def attacks_per_round(self) -> float:
        """Opening duels taken per round."""
        return safe_divide(self.opening_attempts, self.rounds_played)

    @property
    def opening_success_rate(self) -> float:
        return safe_divide(self.entry_kills, self.opening_attempts)

    @property
    def opening_deaths_traded_rate(self) -> float:
        return safe_divide(self.entry_deaths_traded, self.entry_deaths)

    @property
    def traded_deaths_rate(self) -> float:
        return safe_divide(self.traded_deaths, self.deaths)

    @property
    def trade_kill_rate(self) -> float:
        return safe_divide(self.trade_kills, self.kills)

    @property
    def win_rate_after_opening(self) -> float:
        return safe_divide(self.rounds_won_after_entry, self.entry_kills)

    # -------------------------------------------------------------------------
    # Utility / clutch / sniper rates
    # -------------------------------------------------------------------------

    @property
    def flash_assists_per_round(self) -> float:
        return safe_divide(self.flash_assists, self.rounds_played)

    @property
    def win_1v1_rate(self) -> float:
        return safe_divide(self.w1v1, self.w1v1 + self.l1v1)

    @property
    def sniper_kill_share(self) -> float:
        """Fraction of kills made with a sniper-class weapon."""
        return safe_divide(self.sniper_kills, self.kills)

    @property
    def sniper_kill_pct(self) -> float:
        return self.sniper_kill_share * 100

    def rates(self) -> dict[str, float]:
        """Derived-rates view used by reports."""
        return {
            "adr": self.adr,
            "kpr": self.kpr,
            "dpr": self.dpr,
            "kd_ratio": self.kd_ratio,
            "kast_pct": self.kast_pct,
            "rating": self.rating,
            "wpa_avg": self.wpa_avg,
            "impact_per_round": self.impact_per_round,
            "multi_kill_rate": self.multi_kill_rate,
            "survival_pct": self.survival_pct,
            "headshot_pct": self.headshot_pct,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert totals to a dictionary for JSON serialization."""
        data = asdict(self)
        data.pop("rating_scale")
        return data


# =============================================================================
# Scores and roles
# =============================================================================


@dataclass(frozen=True)
class AbilityScores:
    """Seven calibrated 0-100 ability scores."""

    firepower: int = 0
    entry: int = 0
    trade: int = 0
    opening: int = 0
    clutch: int = 0
    sniper: int = 0
    utility: int = 0
    is_utility_broken: bool = False

    def as_features(self) -> dict[str, float]:
        """Scores keyed by role feature name."""
        return {
            "firepower": float(self.firepower),
            "entry": float(self.entry),
            "trade": float(self.trade),
            "opening": float(self.opening),
            "clutch": float(self.clutch),
            "sniper": float(self.sniper),
            "utility": float(self.utility),
        }

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RoleArchetype:
    """A named role with a partial ideal profile on the 0-100 feature space."""

    id: str
    category: str
    name: str
    description: str
    profile: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def is_sniper(self) -> bool:
        return self.category == "sniper"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "name": self.name,
            "description": self.description,
        }


@dataclass(frozen=True)
class OverallRatings:
    """Ratings over every valid round, independent of the side filter."""

    rating: float = 0.0
    ct_rating: float = 0.0
    t_rating: float = 0.0
    rounds: int = 0
    ct_rounds: int = 0
    t_rounds: int = 0


@dataclass(frozen=True)
class PlayerProfile:
    """Everything the player detail view needs, from one query."""

    player_id: str
    side_filter: str
    overall: OverallRatings
    stats: AggregatedStats
    scores: AbilityScores
    role: RoleArchetype
    details: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
