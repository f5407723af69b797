"""
Ability Scores

Seven independent formulas that turn AggregatedStats into calibrated 0-100
scores. Calibration targets represent a professional average of about 50.

Every sub-score is min(observed / target, cap) * weight, with weights per
formula summing to 100. Special cases:
- Trade: damage per kill is scored on a 80 -> 120 linear ramp (lower is better)
- Opening: success rate scores nothing at or below a 30% floor
- Clutch: with no 1v1 attempts the 1v1 term is dropped and the rest re-normalized
- Sniper: zero when the player has no kills
- Utility: broken flash telemetry drops the blind term and re-normalizes

Final scores are clamped to [0, 100] and rounded half up. Zero valid rounds
scores 0 everywhere.
"""

import logging
from collections.abc import Collection, Mapping

from roundsight.core.constants import (
    CLUTCH_TARGETS,
    DAMAGE_PER_KILL_BEST,
    DAMAGE_PER_KILL_NO_KILLS,
    DAMAGE_PER_KILL_WORST,
    ENTRY_TARGETS,
    FIREPOWER_TARGETS,
    OPENING_SUCCESS_FLOOR,
    OPENING_TARGETS,
    SNIPER_TARGETS,
    SUBSCORE_RATIO_CAP,
    TRADE_TARGETS,
    UTILITY_TARGETS,
)
from roundsight.core.utils import clamp, round_half_up, safe_divide
from roundsight.analysis.models import AbilityScores, AggregatedStats

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================


def _term(observed: float, target: float, weight: float, cap: float) -> float:
    return min(safe_divide(observed, target), cap) * weight


def _weighted_sum(
    metrics: Mapping[str, float],
    targets: Mapping[str, tuple[float, float]],
    cap: float,
    skip: Collection[str] = (),
) -> float:
    """Sum of capped ratio terms for every metric not in skip."""
    return sum(
        _term(metrics[name], target, weight, cap)
        for name, (target, weight) in targets.items()
        if name not in skip
    )


def _renormalize(total: float, targets: Mapping[str, tuple[float, float]], dropped: str) -> float:
    """Scale a total so the remaining weights count as 100."""
    remaining = 100 - targets[dropped][1]
    return total * 100 / remaining


def _finalize(total: float) -> int:
    return round_half_up(clamp(total, 0.0, 100.0))


def damage_per_kill_score(damage: float, kills: int, weight: float) -> float:
    """Full weight at or below 80 damage per kill, nothing at or above 120."""
    dpk = safe_divide(damage, kills, default=DAMAGE_PER_KILL_NO_KILLS)
    if dpk <= DAMAGE_PER_KILL_BEST:
        return weight
    if dpk >= DAMAGE_PER_KILL_WORST:
        return 0.0
    return weight * (DAMAGE_PER_KILL_WORST - dpk) / (DAMAGE_PER_KILL_WORST - DAMAGE_PER_KILL_BEST)


def opening_success_score(success_rate: float, target: float, weight: float) -> float:
    """Zero at or below the success floor, linear up to the target, capped at weight."""
    if success_rate <= OPENING_SUCCESS_FLOOR:
        return 0.0
    ramp = (success_rate - OPENING_SUCCESS_FLOOR) / (target - OPENING_SUCCESS_FLOOR)
    return min(weight, ramp * weight)


def is_utility_broken(stats: AggregatedStats) -> bool:
    """
    Detect flash telemetry an upstream parser failed to record.

    Flashes thrown with nobody ever blinded, or flash assists with no blind
    time, cannot both be true of real data.
    """
    return (stats.flashes_thrown > 0 and stats.enemies_blinded == 0) or (
        stats.flash_assists > 0 and stats.blind_duration == 0
    )


# =============================================================================
# Metrics
# =============================================================================


def firepower_metrics(stats: AggregatedStats) -> dict[str, float]:
    return {
        "rating": stats.rating,
        "kills_per_round_win": stats.kills_per_round_win,
        "damage_per_round_win": stats.damage_per_round_win,
        "kills_per_round": stats.kpr,
        "multi_kill_rate": stats.multi_kill_rate,
        "rounds_with_kill_pct": stats.rounds_with_kill_pct,
    }


def entry_metrics(stats: AggregatedStats) -> dict[str, float]:
    rounds = stats.rounds_played
    return {
        "opening_deaths_traded_pct": stats.opening_deaths_traded_rate,
        "traded_deaths_pct": stats.traded_deaths_rate,
        "traded_deaths_per_round": safe_divide(stats.traded_deaths, rounds),
        "saved_by_teammate_per_round": safe_divide(stats.saved_by_teammate, rounds),
        "support_rounds_pct": safe_divide(stats.support_rounds, rounds),
    }


def trade_metrics(stats: AggregatedStats) -> dict[str, float]:
    return {
        "trade_kills_per_round": safe_divide(stats.trade_kills, stats.rounds_played),
        "trade_kills_pct": stats.trade_kill_rate,
        "teammates_saved_per_round": safe_divide(stats.teammates_saved, stats.rounds_played),
        "damage_per_kill": safe_divide(
            stats.damage, stats.kills, default=DAMAGE_PER_KILL_NO_KILLS
        ),
        "assists_per_kill": safe_divide(stats.assists, stats.kills),
    }


def opening_metrics(stats: AggregatedStats) -> dict[str, float]:
    return {
        "success_rate": stats.opening_success_rate,
        "attempts_per_round": stats.attacks_per_round,
        "opening_kills_per_round": safe_divide(stats.entry_kills, stats.rounds_played),
        "win_rate_after_opening": stats.win_rate_after_opening,
    }


def clutch_metrics(stats: AggregatedStats) -> dict[str, float]:
    rounds = stats.rounds_played
    return {
        "clutch_points_per_round": safe_divide(stats.clutch_points, rounds),
        "win_1v1_rate": stats.win_1v1_rate,
        "last_alive_rate": safe_divide(stats.rounds_last_alive, rounds),
        "time_alive_per_round": safe_divide(stats.total_time_alive, rounds),
        "saves_per_loss": safe_divide(stats.saves_in_losses, stats.rounds_lost),
    }


def sniper_metrics(stats: AggregatedStats) -> dict[str, float]:
    rounds = stats.rounds_played
    return {
        "sniper_kill_share": stats.sniper_kill_share,
        "sniper_kills_per_round": safe_divide(stats.sniper_kills, rounds),
        "rounds_with_sniper_kill_rate": safe_divide(stats.rounds_with_sniper_kills, rounds),
        "sniper_multi_kill_rate": safe_divide(stats.sniper_multi_kill_rounds, rounds),
        "sniper_opening_kills_per_round": safe_divide(stats.sniper_opening_kills, rounds),
    }


def utility_metrics(stats: AggregatedStats) -> dict[str, float]:
    rounds = stats.rounds_played
    return {
        "utility_damage_per_round": safe_divide(stats.utility_damage, rounds),
        "flash_assists_per_round": stats.flash_assists_per_round,
        "blind_duration_per_round": safe_divide(stats.blind_duration, rounds),
        "utility_kills_per_round": safe_divide(stats.utility_kills, rounds),
        "flashes_per_round": safe_divide(stats.flashes_thrown, rounds),
    }


# =============================================================================
# Scorers
# =============================================================================


def score_firepower(stats: AggregatedStats, cap: float = SUBSCORE_RATIO_CAP) -> int:
    """Raw fragging output: rating, kills and damage in wins, multi-kills, consistency."""
    if stats.rounds_played == 0:
        return 0
    return _finalize(_weighted_sum(firepower_metrics(stats), FIREPOWER_TARGETS, cap))


def score_entry(stats: AggregatedStats, cap: float = SUBSCORE_RATIO_CAP) -> int:
    """Sacrificial entry: deaths that get traded and rounds spent enabling teammates."""
    if stats.rounds_played == 0:
        return 0
    return _finalize(_weighted_sum(entry_metrics(stats), ENTRY_TARGETS, cap))


def score_trade(stats: AggregatedStats, cap: float = SUBSCORE_RATIO_CAP) -> int:
    if stats.rounds_played == 0:
        return 0
    metrics = trade_metrics(stats)
    total = _weighted_sum(metrics, TRADE_TARGETS, cap, skip=("damage_per_kill",))
    total += damage_per_kill_score(stats.damage, stats.kills, TRADE_TARGETS["damage_per_kill"][1])
    return _finalize(total)


def score_opening(stats: AggregatedStats, cap: float = SUBSCORE_RATIO_CAP) -> int:
    if stats.rounds_played == 0:
        return 0
    metrics = opening_metrics(stats)
    target, weight = OPENING_TARGETS["success_rate"]
    total = opening_success_score(metrics["success_rate"], target, weight)
    total += _weighted_sum(metrics, OPENING_TARGETS, cap, skip=("success_rate",))
    return _finalize(total)


def score_clutch(stats: AggregatedStats, cap: float = SUBSCORE_RATIO_CAP) -> int:
    """
    Late-round impact. A player who never played a 1v1 is scored on the
    remaining terms only, re-weighted to a 100 basis.
    """
    if stats.rounds_played == 0:
        return 0
    metrics = clutch_metrics(stats)
    if stats.w1v1 + stats.l1v1 == 0:
        total = _weighted_sum(metrics, CLUTCH_TARGETS, cap, skip=("win_1v1_rate",))
        return _finalize(_renormalize(total, CLUTCH_TARGETS, "win_1v1_rate"))
    return _finalize(_weighted_sum(metrics, CLUTCH_TARGETS, cap))


def score_sniper(stats: AggregatedStats, cap: float = SUBSCORE_RATIO_CAP) -> int:
    if stats.rounds_played == 0 or stats.kills == 0:
        return 0
    return _finalize(_weighted_sum(sniper_metrics(stats), SNIPER_TARGETS, cap))


def score_utility(stats: AggregatedStats, cap: float = SUBSCORE_RATIO_CAP) -> tuple[int, bool]:
    """
    Utility usage score.

    Returns:
        (score, is_utility_broken). When the flash telemetry looks broken the
        blind duration term is dropped and the remaining weights re-normalized.
    """
    if stats.rounds_played == 0:
        return 0, False

    metrics = utility_metrics(stats)
    if is_utility_broken(stats):
        logger.debug("Flash telemetry looks broken, dropping blind duration term")
        total = _weighted_sum(metrics, UTILITY_TARGETS, cap, skip=("blind_duration_per_round",))
        return _finalize(_renormalize(total, UTILITY_TARGETS, "blind_duration_per_round")), True
    return _finalize(_weighted_sum(metrics, UTILITY_TARGETS, cap)), False


def score_abilities(stats: AggregatedStats, cap: float = SUBSCORE_RATIO_CAP) -> AbilityScores:
    """Run all seven scorers."""
    utility, broken = score_utility(stats, cap)
    return AbilityScores(
        firepower=score_firepower(stats, cap),
        entry=score_entry(stats, cap),
        trade=score_trade(stats, cap),
        opening=score_opening(stats, cap),
        clutch=score_clutch(stats, cap),
        sniper=score_sniper(stats, cap),
        utility=utility,
        is_utility_broken=broken,
    )


def ability_details(stats: AggregatedStats) -> dict[str, float]:
    """Every sub-metric the scorers consume, plus pistol rating, in one flat view."""
    details: dict[str, float] = {"pistol_rating": stats.pistol_rating}
    for metrics in (
        firepower_metrics(stats),
        entry_metrics(stats),
        trade_metrics(stats),
        opening_metrics(stats),
        clutch_metrics(stats),
        sniper_metrics(stats),
        utility_metrics(stats),
    ):
        details.update(metrics)
    return details
