"""
Round Timeline Reconstruction

Replays a round's ordered event list to infer facts the per-round records do
not carry as flags:

- Passive saves: an enemy who damaged the player is killed by a teammate
  within the save window
- Active saves: the player kills an enemy who just damaged a teammate
- Sniper facts: sniper kills, sniper multi-kill round, sniper opening kill
- Utility kills and flash assists credited to the player
- Last alive and time alive

Reconstruction is a pure function of one RoundRecord and a resolved player
key. A missing or malformed timeline yields empty facts, never an error.
"""

import logging

from roundsight.core.constants import SAVE_WINDOW_SECONDS, EventKind, Side
from roundsight.core.schemas import PlayerRef, RoundRecord, TimelineEvent
from roundsight.core.utils import is_sniper_weapon, is_utility_damage_weapon
from roundsight.analysis.models import RoundFacts

logger = logging.getLogger(__name__)


def _matches(ref: PlayerRef | None, player_key: str) -> bool:
    """Does an event participant refer to the player (stable id or name)?"""
    if ref is None or not player_key:
        return False
    return ref.id == player_key or ref.name == player_key


class TimelineReconstructor:
    """Infers per-round facts for one player from the event timeline."""

    def __init__(self, save_window_seconds: float = SAVE_WINDOW_SECONDS):
        self.save_window = save_window_seconds

    def reconstruct(self, round_record: RoundRecord, player_key: str) -> RoundFacts:
        """
        Reconstruct facts for a player in a round.

        Args:
            round_record: The round to replay
            player_key: Resolved key of the player in round_record.player_stats

        Returns:
            RoundFacts for the player (empty if the player has no record)
        """
        record = round_record.player_stats.get(player_key)
        if record is None:
            return RoundFacts()

        side = record.side
        timeline = round_record.timeline
        if not timeline:
            logger.debug(f"Round {round_record.round_number}: empty timeline")

        saved_by_teammate, teammates_saved = self._count_saves(round_record, player_key, side)

        player_kills = [
            e for e in timeline if e.kind == EventKind.KILL and _matches(e.subject, player_key)
        ]
        sniper_kills = sum(1 for e in player_kills if is_sniper_weapon(e.weapon))
        utility_kills = sum(1 for e in player_kills if is_utility_damage_weapon(e.weapon))
        flash_assists = sum(
            1
            for e in timeline
            if e.kind == EventKind.FLASH_ASSIST and _matches(e.subject, player_key)
        )

        return RoundFacts(
            saved_by_teammate=saved_by_teammate,
            teammates_saved=teammates_saved,
            sniper_kills=sniper_kills,
            sniper_multi_kill=sniper_kills >= 2,
            sniper_opening_kill=self._is_sniper_opening(
                timeline, player_kills, record.is_entry_kill
            ),
            utility_kills=utility_kills,
            flash_assists=flash_assists,
            last_alive=self._is_last_alive(round_record, player_key, side, record.survived),
            time_alive=self._time_alive(round_record, player_key, record.survived),
        )

    # =========================================================================
    # Saves
    # =========================================================================

    def _side_of(self, round_record: RoundRecord, ref: PlayerRef | None) -> Side | None:
        """Side of an event participant, preferring the round record."""
        if ref is None:
            return None
        record = round_record.player_stats.get(ref.key)
        if record is not None:
            return record.side
        return ref.side

    def _count_saves(
        self, round_record: RoundRecord, player_key: str, side: Side
    ) -> tuple[int, int]:
        """Single scan for passive (saved by teammate) and active (saved teammate) saves."""
        threats: dict[str, float] = {}  # enemy key -> last time they damaged the player
        last_hit: dict[str, tuple[str, float]] = {}  # enemy key -> (victim key, time)
        saved_by_teammate = 0
        teammates_saved = 0

        for event in round_record.timeline:
            if event.subject is None or event.target is None:
                continue
            subject_key = event.subject.key
            target_key = event.target.key
            if not subject_key or not target_key:
                continue

            if event.kind == EventKind.DAMAGE:
                attacker_side = self._side_of(round_record, event.subject)
                if attacker_side == side:
                    continue
                if _matches(event.target, player_key):
                    threats[subject_key] = event.seconds
                last_hit[subject_key] = (target_key, event.seconds)

            elif event.kind == EventKind.KILL:
                killer_is_player = _matches(event.subject, player_key)

                hurt_at = threats.get(target_key)
                if (
                    hurt_at is not None
                    and event.seconds - hurt_at <= self.save_window
                    and not killer_is_player
                    and self._side_of(round_record, event.subject) == side
                ):
                    saved_by_teammate += 1
                    del threats[target_key]

                hit = last_hit.get(target_key)
                if killer_is_player and hit is not None:
                    victim_key, hit_at = hit
                    victim = round_record.player_stats.get(victim_key)
                    if (
                        victim is not None
                        and victim.side == side
                        and victim_key != player_key
                        and event.seconds - hit_at <= self.save_window
                    ):
                        teammates_saved += 1
                        del last_hit[target_key]

        return saved_by_teammate, teammates_saved

    # =========================================================================
    # Sniper / survival facts
    # =========================================================================

    @staticmethod
    def _is_sniper_opening(
        timeline: tuple[TimelineEvent, ...],
        player_kills: list[TimelineEvent],
        is_entry_kill: bool,
    ) -> bool:
        """Player's first kill opened the round and was made with a sniper."""
        if not is_entry_kill or not player_kills:
            return False
        first_kill = next((e for e in timeline if e.kind == EventKind.KILL), None)
        return first_kill is player_kills[0] and is_sniper_weapon(first_kill.weapon)

    @staticmethod
    def _death_time(round_record: RoundRecord, player_key: str) -> float | None:
        for event in round_record.timeline:
            if event.kind == EventKind.KILL and _matches(event.target, player_key):
                return event.seconds
        return None

    def _time_alive(self, round_record: RoundRecord, player_key: str, survived: bool) -> float:
        """Round duration if survived, else the time of the player's death."""
        if survived:
            return round_record.duration
        death_time = self._death_time(round_record, player_key)
        return round_record.duration if death_time is None else death_time

    def _is_last_alive(
        self, round_record: RoundRecord, player_key: str, side: Side, survived: bool
    ) -> bool:
        """
        Was the player the last one standing on their side?

        Either the player survived while every teammate died, or the whole
        side died and the player's death came strictly after every
        teammate's death.
        """
        teammates = {
            key: rec
            for key, rec in round_record.player_stats.items()
            if rec.side == side and key != player_key
        }

        if survived:
            return all(not rec.survived for rec in teammates.values())

        if any(rec.survived for rec in teammates.values()):
            return False

        my_death = self._death_time(round_record, player_key)
        if my_death is None:
            return False

        teammate_deaths = [
            event.seconds
            for event in round_record.timeline
            if event.kind == EventKind.KILL
            and event.target is not None
            and event.target.key in teammates
        ]
        return all(my_death > t for t in teammate_deaths)
