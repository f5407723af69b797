"""
Roundsight Core - Foundation modules for the scoring engine.

This module contains the fundamental components:
- constants: Game constants, enums, lookup tables and calibration values
- config: Application configuration management
- utils: General utility functions
- schemas: Data contracts for the match history input
"""

from roundsight.core.constants import (
    PISTOL_ROUNDS,
    RATING_SCALE,
    SAVE_WINDOW_SECONDS,
    TRADE_WINDOW_SECONDS,
    ClutchResult,
    EventKind,
    ItemAction,
    Side,
    SideFilter,
)
from roundsight.core.schemas import (
    ClutchAttempt,
    HistoryEntry,
    ItemEvent,
    Match,
    PlayerMatchStats,
    PlayerRef,
    RoundPlayerRecord,
    RoundRecord,
    TimelineEvent,
    UtilityRecord,
    load_history,
)

__all__ = [
    # Constants
    "PISTOL_ROUNDS",
    "RATING_SCALE",
    "SAVE_WINDOW_SECONDS",
    "TRADE_WINDOW_SECONDS",
    "ClutchResult",
    "EventKind",
    "ItemAction",
    "Side",
    "SideFilter",
    # Schemas
    "ClutchAttempt",
    "HistoryEntry",
    "ItemEvent",
    "Match",
    "PlayerMatchStats",
    "PlayerRef",
    "RoundPlayerRecord",
    "RoundRecord",
    "TimelineEvent",
    "UtilityRecord",
    "load_history",
]
