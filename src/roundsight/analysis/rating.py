"""
Round Rating Calculator

Composite per-round rating built from seven terms:

Rating = Kill + Survival + Damage + Impact + KAST + Economy + Trade

Where:
- Kill: kills / 0.75 * 0.25
- Survival: 0.30 if the player survived
- Damage: damage / 80 * 0.15
- Impact: multi-kill value (1 -> 1.0, 2 -> 2.2, 3+ -> 3.5, +0.5 entry) / 1.3 * 0.25
- KAST: 0.20 if kill, assist, survived, traded or was traded
- Economy: log2(1 + value generated / (start loadout + 500)) * 0.10
- Trade: +0.15 for a trade kill, -0.10 for dying untraded

Per-round ratings are averaged into match and career ratings as
rating_sum / rounds * 1.30 (see AggregatedStats.rating).

MatchRater folds the RatingEngine and an EconomyTracker over a match's rounds
and returns a re-rated copy of the match.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from roundsight.core.config import RatingConfig
from roundsight.core.constants import (
    IMPACT_BY_KILLS,
    ROUND_RATING_COEFFICIENTS,
    WEAPON_VALUES,
    EventKind,
    Side,
)
from roundsight.core.schemas import Match, RoundPlayerRecord, RoundRecord, TimelineEvent
from roundsight.core.utils import timed
from roundsight.domains.economy import EconomyTracker, InventoryManager

logger = logging.getLogger(__name__)


@dataclass
class RoundPerformance:
    """What one player did in one round, as the rating formula sees it."""

    kills: int = 0
    deaths: int = 0
    assists: int = 0
    damage: float = 0.0
    survived: bool = True
    is_entry_kill: bool = False
    traded: bool = False  # traded a teammate's death
    was_traded: bool = False
    value_generated: int = 0  # start loadout value of every victim
    start_value: int = 0


@dataclass
class RoundRatingResult:
    """Result of a round rating with component breakdown."""

    rating: float
    impact: float
    components: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"rating": self.rating, "impact": self.impact, **self.components}


def impact_value(kills: int, is_entry_kill: bool, entry_bonus: float = 0.5) -> float:
    """Non-linear multi-kill value plus the entry bonus."""
    value = IMPACT_BY_KILLS[min(max(kills, 0), len(IMPACT_BY_KILLS) - 1)]
    if is_entry_kill:
        value += entry_bonus
    return value


def is_half_start(round_number: int, half_length: int = 12, overtime_half_length: int = 3) -> bool:
    """
    Is this round the first of a half (inventories and loss bonus reset)?

    Regulation halves start at rounds 1 and half_length + 1; overtime halves
    start every overtime_half_length rounds after regulation.
    """
    if round_number in (1, half_length + 1):
        return True
    regulation = 2 * half_length
    if round_number > regulation:
        return (round_number - regulation - 1) % overtime_half_length == 0
    return False


def get_rating_tier(rating: float) -> str:
    """
    Get a descriptive tier for an averaged (scaled) rating.

    Args:
        rating: Averaged rating (rating_sum / rounds * 1.30)

    Returns:
        String description of the rating tier
    """
    if rating >= 1.60:
        return "Exceptional"
    if rating >= 1.40:
        return "Elite"
    if rating >= 1.25:
        return "Very Good"
    if rating >= 1.10:
        return "Good"
    if rating >= 0.95:
        return "Average"
    if rating >= 0.80:
        return "Below Average"
    return "Poor"


def get_rating_style(rating: float) -> str:
    """Rich style name for displaying a rating."""
    if rating >= 1.40:
        return "green"
    if rating >= 1.20:
        return "cyan"
    if rating >= 1.00:
        return "yellow"
    return "red"


class RatingEngine:
    """Computes the composite rating for a single round."""

    def __init__(
        self,
        config: RatingConfig | None = None,
        coefficients: Mapping[str, float] = ROUND_RATING_COEFFICIENTS,
    ):
        self.config = config or RatingConfig()
        self.coefficients = coefficients

    def rate_round(self, perf: RoundPerformance) -> RoundRatingResult:
        """
        Rate one player's round.

        Args:
            perf: The player's round performance

        Returns:
            RoundRatingResult with the rating (3 decimals, floored at 0), the
            impact term and every component
        """
        c = self.coefficients

        kill = perf.kills / c["kill_baseline"] * c["kill_weight"]
        survival = c["survival"] if perf.survived else 0.0
        damage = perf.damage / c["damage_baseline"] * c["damage_weight"]
        impact = (
            impact_value(perf.kills, perf.is_entry_kill, c["entry_impact_bonus"])
            / c["impact_baseline"]
            * c["impact_weight"]
        )

        is_kast = (
            perf.kills > 0 or perf.assists > 0 or perf.survived or perf.traded or perf.was_traded
        )
        kast = c["kast"] if is_kast else 0.0

        economy = 0.0
        if perf.value_generated > 0:
            invested = perf.start_value + self.config.loadout_base
            economy = math.log2(1 + perf.value_generated / invested) * c["economy_weight"]

        trade = 0.0
        if perf.traded:
            trade += self.config.trade_kill_bonus
        if not perf.survived and not perf.was_traded:
            trade -= self.config.untraded_death_penalty

        total = kill + survival + damage + impact + kast + economy + trade
        return RoundRatingResult(
            rating=max(0.0, round(total, 3)),
            impact=impact,
            components={
                "kill": kill,
                "survival": survival,
                "damage": damage,
                "impact": impact,
                "kast": kast,
                "economy": economy,
                "trade": trade,
            },
        )

    def tragedy_penalty(self, t_loss_bonus: int) -> float:
        """Rating lost by a T player who dies with gear after CT won the round."""
        return t_loss_bonus / self.config.tragedy_penalty_divisor


# =============================================================================
# Match replay
# =============================================================================


@dataclass
class _RoundReplay:
    """Mutable scratch state for one round of the match fold."""

    performances: dict[str, RoundPerformance] = field(default_factory=dict)
    recent_deaths: list[tuple[str, str, float]] = field(default_factory=list)  # victim, killer, t
    first_kill_seen: bool = False
    post_round: bool = False
    tragedies: list[str] = field(default_factory=list)
    dead_after_round: set[str] = field(default_factory=set)

    def perf(self, key: str) -> RoundPerformance:
        return self.performances.setdefault(key, RoundPerformance())


class MatchRater:
    """
    Re-rates every round of a match.

    A fresh EconomyTracker is created per call and threaded through the
    rounds in order; nothing is shared between calls.
    """

    def __init__(
        self,
        config: RatingConfig | None = None,
        engine: RatingEngine | None = None,
        prices: Mapping[str, int] = WEAPON_VALUES,
    ):
        self.config = config or RatingConfig()
        self.engine = engine or RatingEngine(self.config)
        self.prices = prices

    @timed
    def rate_match(self, match: Match) -> Match:
        """
        Recompute rating and impact for every round record.

        Args:
            match: Parsed match

        Returns:
            A new Match whose round records carry the recomputed ratings
        """
        economy = EconomyTracker(inventory=InventoryManager(self.prices))
        survivors: set[str] = set()
        rounds: list[RoundRecord] = []

        for round_record in match.rounds:
            player_keys = list(round_record.player_stats)
            economy.begin_round(
                survivors,
                is_half_start(
                    round_record.round_number,
                    self.config.half_length,
                    self.config.overtime_half_length,
                ),
                round_record.items,
                player_keys,
            )

            replay = self._replay(round_record, economy)
            economy.end_round(round_record.winner_side)

            penalty = 0.0
            if replay.tragedies:
                penalty = self.engine.tragedy_penalty(economy.loss_bonus.loss_bonus(Side.T))

            updated: dict[str, RoundPlayerRecord] = {}
            for key, record in round_record.player_stats.items():
                perf = replay.performances.get(key) or RoundPerformance()
                perf.start_value = economy.start_value(key)
                result = self.engine.rate_round(perf)
                rating = result.rating
                if key in replay.tragedies:
                    rating = max(0.0, round(rating - penalty, 3))
                    logger.debug(
                        f"Round {round_record.round_number}: post-round death penalty "
                        f"{penalty:.3f} for {key}"
                    )
                updated[key] = record.model_copy(update={"rating": rating, "impact": result.impact})

            survivors = {
                key
                for key in player_keys
                if replay.perf(key).survived and key not in replay.dead_after_round
            }
            rounds.append(round_record.model_copy(update={"player_stats": updated}))

        logger.info(f"Rated {len(rounds)} rounds for match {match.id}")
        return match.model_copy(update={"rounds": tuple(rounds)})

    def _replay(self, round_record: RoundRecord, economy: EconomyTracker) -> _RoundReplay:
        """Replay the timeline into per-player round performances."""
        replay = _RoundReplay()
        for key in round_record.player_stats:
            replay.perf(key)

        if not round_record.timeline:
            # Nothing to replay: rate from the recorded round stats
            for key, record in round_record.player_stats.items():
                replay.performances[key] = RoundPerformance(
                    kills=record.kills,
                    deaths=record.deaths,
                    assists=record.assists,
                    damage=record.damage,
                    survived=record.survived,
                    is_entry_kill=record.is_entry_kill,
                    traded=record.traded,
                    was_traded=record.was_traded,
                )
            return replay

        for event in round_record.timeline:
            if event.kind == EventKind.ROUND_END:
                replay.post_round = True
            elif event.kind == EventKind.DAMAGE and not replay.post_round:
                self._on_damage(event, replay)
            elif event.kind == EventKind.ASSIST and not replay.post_round:
                if event.subject is not None and event.subject.key:
                    replay.perf(event.subject.key).assists += 1
            elif event.kind == EventKind.KILL:
                self._on_kill(event, round_record, replay, economy)
        return replay

    @staticmethod
    def _on_damage(event: TimelineEvent, replay: _RoundReplay) -> None:
        if event.subject is None or event.target is None:
            return
        attacker, victim = event.subject.key, event.target.key
        if attacker and attacker != victim:
            replay.perf(attacker).damage += event.damage

    def _on_kill(
        self,
        event: TimelineEvent,
        round_record: RoundRecord,
        replay: _RoundReplay,
        economy: EconomyTracker,
    ) -> None:
        if event.target is None or not event.target.key:
            return
        victim = event.target.key
        if replay.post_round:
            self._on_post_round_death(victim, event, round_record, replay, economy)
            return

        victim_perf = replay.perf(victim)
        victim_perf.deaths += 1
        victim_perf.survived = False
        economy.record_death(victim)

        killer = event.subject.key if event.subject is not None else ""
        if not killer or killer == victim:
            return

        killer_perf = replay.perf(killer)
        killer_perf.kills += 1
        killer_perf.value_generated += economy.start_value(victim)

        if not replay.first_kill_seen:
            killer_perf.is_entry_kill = True
            replay.first_kill_seen = True

        avenged = next(
            (
                death
                for death in replay.recent_deaths
                if death[1] == victim
                and event.seconds - death[2] <= self.config.trade_window_seconds
            ),
            None,
        )
        if avenged is not None:
            killer_perf.traded = True
            replay.perf(avenged[0]).was_traded = True

        replay.recent_deaths.append((victim, killer, event.seconds))

    def _on_post_round_death(
        self,
        victim: str,
        event: TimelineEvent,
        round_record: RoundRecord,
        replay: _RoundReplay,
        economy: EconomyTracker,
    ) -> None:
        """
        Deaths after round_end only cost gear and, for T in a CT win, rating.

        The round's kills, deaths, survival and trades are already settled.
        """
        if round_record.winner_side == Side.CT:
            victim_record = round_record.player_stats.get(victim)
            victim_side = victim_record.side if victim_record else event.target.side
            if (
                victim_side == Side.T
                and economy.end_value(victim) > self.config.tragedy_equipment_threshold
            ):
                replay.tragedies.append(victim)
        replay.dead_after_round.add(victim)
        economy.record_death(victim)
