"""
Utility functions for Roundsight.

This module provides:
- Performance timing decorator
- Safe numeric helpers (division, clamping, NaN sanitizing, rounding)
- Weapon name classification
- Display name resolution
"""

import logging
import math
import re
import time
from collections.abc import Callable, Mapping
from functools import wraps
from typing import Any, TypeVar

from roundsight.core.constants import NAME_ALIASES, SNIPER_WEAPONS, UTILITY_DAMAGE_WEAPONS

logger = logging.getLogger(__name__)

# Type variable for generic decorators
F = TypeVar("F", bound=Callable[..., Any])

_ZERO_WIDTH = re.compile(r"[\u200b-\u200d\u2060-\u2064\ufeff]")


def timed(func: F) -> F:
    """
    Decorator to measure and log function execution time.

    Usage:
        @timed
        def my_function():
            ...
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start_time
        logger.debug(f"{func.__name__} completed in {elapsed:.3f}s")
        return result

    return wrapper  # type: ignore


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, returning default if denominator is 0.

    Args:
        numerator: Top of fraction
        denominator: Bottom of fraction
        default: Value to return if denominator is 0

    Returns:
        Result of division or default
    """
    if denominator == 0:
        return default
    return numerator / denominator


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value to a range."""
    return max(min_val, min(value, max_val))


def finite_or_zero(value: Any) -> float:
    """Coerce None, NaN, infinities and non-numeric values to 0.0."""
    if value is None or isinstance(value, bool):
        return float(value or 0)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def clean_weapon_name(weapon: str | None) -> str:
    """Lowercase a weapon name and strip the weapon_/item_ prefix."""
    if not weapon:
        return ""
    name = weapon.lower().strip()
    for prefix in ("weapon_", "item_"):
        if name.startswith(prefix):
            name = name[len(prefix) :]
    return name


def is_sniper_weapon(weapon: str | None) -> bool:
    """Sniper-class weapon check; tolerant of skin suffixes and prefixes."""
    name = clean_weapon_name(weapon)
    if not name:
        return False
    return any(sniper in name for sniper in SNIPER_WEAPONS)


def is_utility_damage_weapon(weapon: str | None) -> bool:
    """HE / molotov / incendiary damage source check."""
    name = clean_weapon_name(weapon)
    if not name:
        return False
    return any(source in name for source in UTILITY_DAMAGE_WEAPONS)


def resolve_name(raw_name: str | None, aliases: Mapping[str, str] = NAME_ALIASES) -> str:
    """
    Resolve a display name to its canonical form.

    Strips zero-width characters that some clients inject into names and
    applies the alias table.

    Args:
        raw_name: Name as recorded in the match
        aliases: Raw name -> canonical name mapping

    Returns:
        Canonical name, or "Unknown" for empty input
    """
    if not raw_name:
        return "Unknown"
    clean = _ZERO_WIDTH.sub("", str(raw_name)).strip()
    return aliases.get(clean, clean)
