"""
Economy Tracking for Round Ratings

Implements the stateful economy side-channel used by the round rating:
- Per-player loadout value from buy / pickup / drop events (InventoryManager)
- Per-side consecutive-loss counter and loss bonus ladder (LossBonusTracker)
- Win probability lookup from alive counts

Trackers are plain accumulator objects owned by one rating pass. Create a
fresh EconomyTracker per match; never share one across players or calls.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from roundsight.core.constants import (
    BASE_LOSS_BONUS,
    DEFAULT_PISTOL_VALUE,
    LOSS_BONUS_INCREMENT,
    MAX_LOSS_COUNT,
    MIN_LOSS_COUNT,
    WEAPON_VALUES,
    WIN_PROBABILITY_MATRIX,
    ItemAction,
    Side,
)
from roundsight.core.schemas import ItemEvent
from roundsight.core.utils import clean_weapon_name

logger = logging.getLogger(__name__)

# Grenades missing from the price table are valued at a flat rate
_UNKNOWN_GRENADE_VALUE = 300
_GRENADE_HINTS = ("grenade", "flash", "smoke", "molotov")


def calculate_loss_bonus(consecutive_losses: int) -> int:
    """
    Calculate loss bonus based on the consecutive-loss counter.

    CS2 Loss Bonus System (MR12):
    - 0: $1400
    - 1: $1900
    - 2: $2400
    - 3: $2900
    - 4+: $3400 (capped)

    Args:
        consecutive_losses: Loss counter (clamped to 0-4)

    Returns:
        Loss bonus amount in dollars ($1400-$3400)
    """
    losses = max(MIN_LOSS_COUNT, min(consecutive_losses, MAX_LOSS_COUNT))
    return BASE_LOSS_BONUS + losses * LOSS_BONUS_INCREMENT


def win_probability(
    t_alive: int,
    ct_alive: int,
    matrix: Sequence[Sequence[float]] = WIN_PROBABILITY_MATRIX,
) -> float:
    """
    T-side win probability for an alive-count state.

    Args:
        t_alive: Terrorists alive (clamped to 0-5)
        ct_alive: Counter-terrorists alive (clamped to 0-5)
        matrix: (T alive, CT alive) -> T win probability table

    Returns:
        Probability in [0, 1]
    """
    if t_alive <= 0:
        return 0.0
    if ct_alive <= 0:
        return 1.0
    size = len(matrix) - 1
    return matrix[min(t_alive, size)][min(ct_alive, size)]


def estimate_item_value(item: str, prices: Mapping[str, int] = WEAPON_VALUES) -> int:
    """Market value of an inventory item by name."""
    name = clean_weapon_name(item)
    if name in prices:
        return prices[name]
    if any(hint in name for hint in _GRENADE_HINTS):
        return _UNKNOWN_GRENADE_VALUE
    return 0


class InventoryManager:
    """
    Tracks each player's carried items from item events.

    Inventory slots are not modeled; every purchase or pickup is appended and a
    drop removes one matching entry. Approximate value tracking is all the
    rating's economy term needs.
    """

    def __init__(self, prices: Mapping[str, int] = WEAPON_VALUES):
        self._prices = prices
        self._items: dict[str, list[str]] = {}

    def reset(self) -> None:
        self._items.clear()

    def clear_player(self, player_id: str) -> None:
        """Drop everything a player carries (death, side switch)."""
        self._items[player_id] = []

    def start_round(self, survivors: Iterable[str], is_side_switch: bool) -> None:
        """
        Apply round-start carry-over rules.

        Survivors keep their gear, everyone else restarts empty. A side
        switch clears all inventories.
        """
        if is_side_switch:
            self._items.clear()
            return

        keep = set(survivors)
        for player_id in list(self._items):
            if player_id not in keep:
                self._items[player_id] = []

    def handle(self, event: ItemEvent) -> None:
        """Apply a purchase, pickup or drop event."""
        item = clean_weapon_name(event.item)
        if not item or not event.player_id:
            return

        items = self._items.setdefault(event.player_id, [])
        if event.action in (ItemAction.PURCHASE, ItemAction.PICKUP):
            items.append(item)
        elif event.action == ItemAction.DROP and item in items:
            items.remove(item)

    def loadout_value(self, player_id: str) -> int:
        """
        Current loadout value for a player.

        Untracked players and players below the default pistol value are
        assumed to carry the spawn pistol.
        """
        items = self._items.get(player_id)
        if not items:
            return DEFAULT_PISTOL_VALUE
        value = sum(estimate_item_value(item, self._prices) for item in items)
        return max(value, DEFAULT_PISTOL_VALUE)


@dataclass
class LossBonusTracker:
    """
    Consecutive-loss counters per side.

    A loss increments the loser's counter (max 4); a win decays the
    winner's counter by one (min 0).

    Usage:
        tracker = LossBonusTracker()
        for round_info in rounds:
            t_bonus = tracker.loss_bonus(Side.T)
            # ... rate the round ...
            tracker.update(round_info.winner_side)
    """

    losses: dict[Side, int] = field(
        default_factory=lambda: {Side.CT: MIN_LOSS_COUNT, Side.T: MIN_LOSS_COUNT}
    )

    def reset(self) -> None:
        """Reset both counters at match start, half-time or OT start."""
        self.losses = {Side.CT: MIN_LOSS_COUNT, Side.T: MIN_LOSS_COUNT}

    def update(self, winner: Side | None) -> None:
        """Update counters after a round completes."""
        if winner is None:
            return
        loser = Side.CT if winner == Side.T else Side.T
        self.losses[winner] = max(MIN_LOSS_COUNT, self.losses[winner] - 1)
        self.losses[loser] = min(MAX_LOSS_COUNT, self.losses[loser] + 1)

    def loss_bonus(self, side: Side) -> int:
        """Loss bonus ladder value for a side's current counter."""
        return calculate_loss_bonus(self.losses[side])


@dataclass
class EconomyTracker:
    """Inventory and loss bonus state for one rating pass over one match."""

    inventory: InventoryManager = field(default_factory=InventoryManager)
    loss_bonus: LossBonusTracker = field(default_factory=LossBonusTracker)
    start_values: dict[str, int] = field(default_factory=dict)

    def begin_round(
        self,
        survivors: Iterable[str],
        is_half_start: bool,
        items: Iterable[ItemEvent],
        player_ids: Iterable[str],
    ) -> None:
        """Apply carry-over, replay item events and snapshot start values."""
        if is_half_start:
            self.loss_bonus.reset()
        self.inventory.start_round(survivors, is_side_switch=is_half_start)
        for event in items:
            self.inventory.handle(event)
        self.start_values = {pid: self.inventory.loadout_value(pid) for pid in player_ids}

    def start_value(self, player_id: str) -> int:
        """Loadout value a player started the current round with."""
        if player_id in self.start_values:
            return self.start_values[player_id]
        return self.inventory.loadout_value(player_id)

    def end_value(self, player_id: str) -> int:
        """Loadout value a player currently carries."""
        return self.inventory.loadout_value(player_id)

    def record_death(self, player_id: str) -> None:
        """A killed player's gear is gone for carry-over purposes."""
        self.inventory.clear_player(player_id)

    def end_round(self, winner: Side | None) -> None:
        self.loss_bonus.update(winner)
