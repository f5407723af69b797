"""
Roundsight - Constants

Game constants, lookup tables and calibration values for the scoring engine.
Tables are immutable (MappingProxyType / tuples) and are injected into the
components that use them rather than read as ambient state.
"""

from enum import StrEnum
from types import MappingProxyType


class Side(StrEnum):
    """Team side for a round."""

    CT = "CT"
    T = "T"


class SideFilter(StrEnum):
    """Side filter applied to aggregation queries."""

    ALL = "ALL"
    CT = "CT"
    T = "T"


class EventKind(StrEnum):
    """Kinds of timeline events produced by the match import pipeline."""

    KILL = "kill"
    ASSIST = "assist"
    FLASH_ASSIST = "flash_assist"
    DAMAGE = "damage"
    PLANT = "plant"
    DEFUSE = "defuse"
    EXPLODE = "explode"
    ROUND_END = "round_end"


class ItemAction(StrEnum):
    """Inventory item events."""

    PURCHASE = "purchase"
    PICKUP = "pickup"
    DROP = "drop"


class ClutchResult(StrEnum):
    WON = "won"
    LOST = "lost"
    SAVED = "saved"


# =============================================================================
# Windows and scaling
# =============================================================================

# Damage -> teammate kill window for save detection (seconds)
SAVE_WINDOW_SECONDS = 5.0

# Trade window in seconds (industry standard from Leetify/Stratbook)
TRADE_WINDOW_SECONDS = 5.0

# Applied uniformly when averaging per-round ratings: ratingSum / rounds * 1.30
RATING_SCALE = 1.30

# Round numbers treated as pistol rounds (MR12)
PISTOL_ROUNDS = (1, 13)

# MR12 regulation half and MR3 overtime half lengths
HALF_LENGTH = 12
OVERTIME_HALF_LENGTH = 3

# =============================================================================
# Weapons
# =============================================================================

SNIPER_WEAPONS = ("awp", "ssg08", "scar20", "g3sg1")

# 'inferno' is the weapon name parsers report for molotov/incendiary damage
UTILITY_DAMAGE_WEAPONS = ("hegrenade", "molotov", "incendiary", "inferno")


# Market value per item, keyed by the parser's internal name without prefix
WEAPON_VALUES = MappingProxyType(
    {
        # Pistols
        "glock": 200,
        "hkp2000": 200,
        "usp_silencer": 200,
        "p250": 300,
        "cz75a": 600,
        "tec9": 500,
        "fiveseven": 500,
        "deagle": 700,
        "revolver": 600,
        "elite": 300,
        # SMGs
        "mac10": 1050,
        "mp9": 1250,
        "ump45": 1200,
        "mp7": 1400,
        "mp5sd": 1400,
        "bizon": 1300,
        "p90": 2350,
        # Rifles
        "galilar": 1800,
        "famas": 1950,
        "ak47": 2700,
        "m4a1": 2900,
        "m4a4": 2900,
        "m4a1_silencer": 2900,
        "ssg08": 1700,
        "awp": 4750,
        "aug": 3300,
        "sg553": 3000,
        "scar20": 5000,
        "g3sg1": 5000,
        # Heavy
        "nova": 1050,
        "xm1014": 2000,
        "sawedoff": 1100,
        "mag7": 1300,
        "m249": 5200,
        "negev": 1700,
        # Grenades
        "flashbang": 200,
        "smokegrenade": 300,
        "hegrenade": 300,
        "molotov": 400,
        "incendiarygrenade": 500,
        "incgrenade": 500,
        "decoy": 50,
        # Gear
        "kevlar": 650,
        "assaultsuit": 1000,
        "defuser": 400,
        "taser": 200,
    }
)

# Value of the default spawn pistol
DEFAULT_PISTOL_VALUE = 200

# =============================================================================
# Economy
# =============================================================================

# CS2 loss bonus ladder: 0 losses = $1400 ... 4+ losses = $3400
BASE_LOSS_BONUS = 1400
LOSS_BONUS_INCREMENT = 500
MIN_LOSS_COUNT = 0
MAX_LOSS_COUNT = 4

# (T alive, CT alive) -> T win probability. Rows: T count 0-5, cols: CT count 0-5
WIN_PROBABILITY_MATRIX = (
    (0.00, 0.00, 0.00, 0.00, 0.00, 0.00),
    (1.00, 0.50, 0.28, 0.16, 0.10, 0.06),
    (1.00, 0.72, 0.50, 0.34, 0.23, 0.15),
    (1.00, 0.84, 0.66, 0.50, 0.36, 0.25),
    (1.00, 0.90, 0.77, 0.64, 0.50, 0.38),
    (1.00, 0.94, 0.85, 0.75, 0.62, 0.50),
)

# =============================================================================
# Round rating coefficients
# =============================================================================

ROUND_RATING_COEFFICIENTS = MappingProxyType(
    {
        "kill_baseline": 0.75,
        "kill_weight": 0.25,
        "survival": 0.30,
        "damage_baseline": 80.0,
        "damage_weight": 0.15,
        "impact_baseline": 1.3,
        "impact_weight": 0.25,
        "entry_impact_bonus": 0.5,
        "kast": 0.20,
        "economy_weight": 0.10,
    }
)

# Impact value by kill count (1, 2, 3+)
IMPACT_BY_KILLS = (0.0, 1.0, 2.2, 3.5)

# Signed trade adjustment
TRADE_KILL_BONUS = 0.15
UNTRADED_DEATH_PENALTY = 0.10

# Added to the start loadout value so pistol rounds do not skew the ROI term
LOADOUT_BASE = 500

# Post-round death penalty: equipment threshold and loss-bonus divisor
TRAGEDY_EQUIPMENT_THRESHOLD = 2000
TRAGEDY_PENALTY_DIVISOR = 7000

# =============================================================================
# Ability score calibration ("professional average ~ 50")
# =============================================================================

# Per-term ratio cap: min(observed / target, cap) * weight
SUBSCORE_RATIO_CAP = 2.0

# Each entry: metric -> (target, weight). Weights per formula sum to 100.
FIREPOWER_TARGETS = MappingProxyType(
    {
        "rating": (1.70, 30),
        "kills_per_round_win": (1.80, 20),
        "damage_per_round_win": (135.0, 15),
        "kills_per_round": (1.40, 15),
        "multi_kill_rate": (35.0, 10),
        "rounds_with_kill_pct": (90.0, 10),
    }
)

ENTRY_TARGETS = MappingProxyType(
    {
        "opening_deaths_traded_pct": (0.70, 30),
        "traded_deaths_pct": (0.60, 20),
        "traded_deaths_per_round": (0.25, 20),
        "saved_by_teammate_per_round": (0.20, 15),
        "support_rounds_pct": (0.40, 15),
    }
)

TRADE_TARGETS = MappingProxyType(
    {
        "trade_kills_per_round": (0.25, 35),
        "trade_kills_pct": (0.35, 25),
        "teammates_saved_per_round": (0.20, 20),
        "damage_per_kill": (80.0, 10),
        "assists_per_kill": (0.50, 10),
    }
)

# Damage per kill: <= best scores full weight, >= worst scores zero
DAMAGE_PER_KILL_BEST = 80.0
DAMAGE_PER_KILL_WORST = 120.0
DAMAGE_PER_KILL_NO_KILLS = 100.0

OPENING_TARGETS = MappingProxyType(
    {
        "success_rate": (0.75, 30),
        "attempts_per_round": (0.35, 30),
        "opening_kills_per_round": (0.25, 25),
        "win_rate_after_opening": (0.90, 15),
    }
)

# Opening success below this floor scores nothing
OPENING_SUCCESS_FLOOR = 0.30

CLUTCH_TARGETS = MappingProxyType(
    {
        "clutch_points_per_round": (0.15, 50),
        "win_1v1_rate": (0.90, 30),
        "last_alive_rate": (0.30, 10),
        "time_alive_per_round": (110.0, 5),
        "saves_per_loss": (0.40, 5),
    }
)

SNIPER_TARGETS = MappingProxyType(
    {
        "sniper_kill_share": (0.80, 30),
        "sniper_kills_per_round": (0.60, 30),
        "rounds_with_sniper_kill_rate": (0.40, 15),
        "sniper_multi_kill_rate": (0.20, 15),
        "sniper_opening_kills_per_round": (0.15, 10),
    }
)

UTILITY_TARGETS = MappingProxyType(
    {
        "utility_damage_per_round": (55.0, 35),
        "flash_assists_per_round": (0.20, 35),
        "blind_duration_per_round": (5.0, 20),
        "utility_kills_per_round": (0.12, 5),
        "flashes_per_round": (2.0, 5),
    }
)

# =============================================================================
# Role classification
# =============================================================================

# Feature normalizers: value / max * 100, clamped to [0, 100]
FEATURE_NORMALIZERS = MappingProxyType(
    {
        "adr": 110.0,
        "impact": 1.8,
        "aggression": 0.35,
        "flash": 0.15,
        "multi_kill": 25.0,
    }
)

# Sniper archetypes are candidates only above either threshold
SNIPER_KILL_SHARE_GATE = 20.0
SNIPER_SCORE_GATE = 40.0

# Missing profile features are compared against "average"
PROFILE_DEFAULT_VALUE = 50.0

FALLBACK_ROLE_ID = "all_rounder"

# Display-name aliases: raw in-game name -> canonical profile id
NAME_ALIASES = MappingProxyType(
    {
        "forsakenN": "F1oyd",
        "冥医": "Sanatio",
        "addd_233": "addd",
        "𝐚𝐝𝐝𝐝": "addd",
        "ClayDEN": "Ser1EN",
    }
)
