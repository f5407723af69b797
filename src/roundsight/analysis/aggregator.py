"""
Round Aggregator

Folds a player's round records across a match history into AggregatedStats.

Pipeline per match:
1. Clutch tallies from the match summary's clutch history (side-filtered)
2. Resolve the player's round key (player id, then steam id, then display name)
3. For each round: drop ghost rounds, apply the side filter, skip the
   did-not-participate sentinel, accumulate the record and the facts
   reconstructed from the timeline

Aggregation is stateless: every call builds its totals from scratch.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from roundsight.core.config import EngineConfig
from roundsight.core.constants import NAME_ALIASES, ClutchResult, SideFilter
from roundsight.core.schemas import (
    HistoryEntry,
    Match,
    PlayerMatchStats,
    RoundPlayerRecord,
    RoundRecord,
)
from roundsight.core.utils import resolve_name, timed
from roundsight.analysis.models import AggregatedStats
from roundsight.analysis.timeline import TimelineReconstructor

logger = logging.getLogger(__name__)


def resolve_player(
    player_id: str, match: Match, aliases: Mapping[str, str] = NAME_ALIASES
) -> PlayerMatchStats | None:
    """
    Find a player's summary entry in a match.

    Ids are tried in priority order across both rosters: exact player id,
    then steam id, then display name (falling back to the player id when
    the entry has no name). Both sides of the name comparison go through the
    alias table. Only the first tier that matches anyone is used, so a name
    collision can never shadow an id.
    """
    roster = match.all_players
    wanted = resolve_name(player_id, aliases)
    for candidate in (
        lambda p: p.player_id == player_id,
        lambda p: p.steamid is not None and p.steamid == player_id,
        lambda p: resolve_name(p.name or p.player_id, aliases) == wanted,
    ):
        found = next((p for p in roster if candidate(p)), None)
        if found is not None:
            return found
    return None


def passes_side_filter(record: RoundPlayerRecord, side_filter: SideFilter) -> bool:
    return side_filter == SideFilter.ALL or record.side == side_filter


def iter_valid_rounds(
    match: Match, round_key: str, side_filter: SideFilter = SideFilter.ALL
) -> Iterable[tuple[RoundRecord, RoundPlayerRecord]]:
    """Yield (round, player record) for every round that counts toward the player."""
    for round_record in match.rounds:
        if round_record.is_ghost:
            logger.debug(f"Match {match.id}: dropping ghost round {round_record.round_number}")
            continue
        record = round_record.player_stats.get(round_key)
        if record is None or record.is_inactive:
            continue
        if not passes_side_filter(record, side_filter):
            continue
        yield round_record, record


class RoundAggregator:
    """Accumulates a player's filtered rounds into AggregatedStats."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        reconstructor: TimelineReconstructor | None = None,
        aliases: Mapping[str, str] = NAME_ALIASES,
    ):
        self.config = config or EngineConfig()
        self.reconstructor = reconstructor or TimelineReconstructor(
            self.config.save_window_seconds
        )
        self.aliases = aliases

    @timed
    def aggregate(
        self,
        player_id: str,
        history: Iterable[HistoryEntry],
        side_filter: SideFilter = SideFilter.ALL,
    ) -> AggregatedStats:
        """
        Aggregate a player's stats over a match history.

        Args:
            player_id: Player id, steam id or display name
            history: (match, player's summary stats) entries
            side_filter: ALL, CT or T

        Returns:
            AggregatedStats for the query
        """
        side_filter = SideFilter(side_filter)
        totals: dict[str, Any] = dict.fromkeys(AggregatedStats.counter_names(), 0)

        for entry in history:
            self._add_clutches(totals, entry.stats, side_filter)

            player = resolve_player(player_id, entry.match, self.aliases)
            if player is None:
                logger.debug(f"Player {player_id} not found in match {entry.match.id}, skipping")
                continue

            for round_record, record in iter_valid_rounds(
                entry.match, player.round_key, side_filter
            ):
                self._add_round(totals, round_record, record, player.round_key)

        logger.debug(
            f"Aggregated {totals['rounds_played']} rounds for {player_id} (side={side_filter})"
        )
        return AggregatedStats(**totals, rating_scale=self.config.rating_scale)

    # =========================================================================
    # Accumulation
    # =========================================================================

    @staticmethod
    def _add_clutches(
        totals: dict[str, Any], summary: PlayerMatchStats, side_filter: SideFilter
    ) -> None:
        for clutch in summary.clutch_history:
            if side_filter != SideFilter.ALL and clutch.side != side_filter:
                continue
            if clutch.result == ClutchResult.WON:
                totals["clutch_points"] += clutch.opponent_count
                if clutch.opponent_count == 1:
                    totals["w1v1"] += 1
            elif clutch.result == ClutchResult.LOST and clutch.opponent_count == 1:
                totals["l1v1"] += 1

    def _add_round(
        self,
        totals: dict[str, Any],
        round_record: RoundRecord,
        record: RoundPlayerRecord,
        round_key: str,
    ) -> None:
        totals["rounds_played"] += 1
        totals["kills"] += record.kills
        totals["deaths"] += record.deaths
        totals["assists"] += record.assists
        totals["damage"] += record.damage
        totals["headshots"] += record.headshots
        totals["rating_sum"] += record.rating
        totals["wpa_sum"] += record.win_probability_added
        totals["impact_sum"] += record.impact

        if record.kills >= 2:
            totals["multi_kill_rounds"] += 1
        if record.kills > 0:
            totals["rounds_with_kills"] += 1

        if round_record.winner_side == record.side:
            totals["rounds_won"] += 1
            totals["kills_in_wins"] += record.kills
            totals["damage_in_wins"] += record.damage
            if record.is_entry_kill:
                totals["rounds_won_after_entry"] += 1
        else:
            totals["rounds_lost"] += 1
            if record.survived:
                totals["saves_in_losses"] += 1

        if round_record.round_number in self.config.pistol_rounds:
            totals["pistol_rating_sum"] += record.rating
            totals["pistol_rounds_played"] += 1

        if record.is_entry_kill:
            totals["entry_kills"] += 1
        if record.is_entry_death:
            totals["entry_deaths"] += 1
            if record.was_traded:
                totals["entry_deaths_traded"] += 1
        if record.traded:
            totals["trade_kills"] += 1
        if record.was_traded:
            totals["traded_deaths"] += 1
        if record.survived:
            totals["survived_rounds"] += 1
        if record.kills > 0 or record.assists > 0 or record.survived or record.was_traded:
            totals["kast_rounds"] += 1

        facts = self.reconstructor.reconstruct(round_record, round_key)

        # Flash assists only count when the player actually threw a flash
        utility = record.utility
        round_flash_assists = 0
        if utility is not None and utility.flashes_thrown > 0:
            round_flash_assists = facts.flash_assists
            totals["flash_assists"] += round_flash_assists

        if record.assists > 0 or round_flash_assists > 0 or record.was_traded:
            totals["support_rounds"] += 1

        if utility is not None:
            totals["utility_damage"] += utility.he_damage + utility.molotov_damage
            totals["blind_duration"] += utility.blind_duration
            totals["enemies_blinded"] += utility.enemies_blinded
            totals["flashes_thrown"] += utility.flashes_thrown
        else:
            totals["utility_damage"] += record.utility_damage

        totals["saved_by_teammate"] += facts.saved_by_teammate
        totals["teammates_saved"] += facts.teammates_saved
        totals["utility_kills"] += facts.utility_kills
        totals["sniper_kills"] += facts.sniper_kills
        if facts.sniper_kills > 0:
            totals["rounds_with_sniper_kills"] += 1
        if facts.sniper_multi_kill:
            totals["sniper_multi_kill_rounds"] += 1
        if facts.sniper_opening_kill:
            totals["sniper_opening_kills"] += 1
        if facts.last_alive:
            totals["rounds_last_alive"] += 1
        totals["total_time_alive"] += facts.time_alive
