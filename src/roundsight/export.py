"""
Export Functionality for Roundsight

Turns engine output into serializable forms for report generators:
- JSON-ready dictionaries (profiles, stats, scores)
- pandas DataFrames, one row per player / side context
- CSV via the DataFrame
"""

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd

from roundsight.analysis.models import AggregatedStats, PlayerProfile
from roundsight.analysis.rating import get_rating_tier

logger = logging.getLogger(__name__)


# ============================================================================
# Data Conversion Utilities
# ============================================================================


def to_serializable(obj: Any, precision: int | None = None) -> Any:
    """Convert dataclasses, mappings and enums to plain JSON types."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_serializable(getattr(obj, f.name), precision) for f in fields(obj)}
    if isinstance(obj, Mapping):
        return {str(k): to_serializable(v, precision) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_serializable(item, precision) for item in obj]
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, float) and precision is not None:
        return round(obj, precision)
    return obj


def flatten_dict(d: Mapping[str, Any], parent_key: str = "", sep: str = "_") -> dict[str, Any]:
    """Flatten a nested dictionary."""
    items: list[tuple[str, Any]] = []
    for k, v in d.items():
        new_key = f"{parent_key}{sep}{k}" if parent_key else k
        if isinstance(v, Mapping):
            items.extend(flatten_dict(v, new_key, sep).items())
        else:
            items.append((new_key, v))
    return dict(items)


def stats_to_dict(stats: AggregatedStats, precision: int = 3) -> dict[str, Any]:
    """Totals plus the derived-rates view."""
    return {
        "totals": to_serializable(stats.to_dict(), precision),
        "rates": to_serializable(stats.rates(), precision),
    }


def profile_to_dict(profile: PlayerProfile, precision: int = 3) -> dict[str, Any]:
    """
    Convert a PlayerProfile to a JSON-ready dictionary.

    Layout mirrors the player detail view: overall ratings, the filtered
    view (rates, scores, details) and the role.
    """
    stats = profile.stats
    return {
        "player_id": profile.player_id,
        "side_filter": profile.side_filter,
        "overall": {
            **to_serializable(profile.overall, precision),
            "tier": get_rating_tier(profile.overall.rating),
        },
        "filtered": {
            "rounds_played": stats.rounds_played,
            "adr": round(stats.adr, precision),
            "kd_ratio": round(stats.kd_ratio, precision),
            "dpr": round(stats.dpr, precision),
            "kast_pct": round(stats.kast_pct, precision),
            "impact": round(stats.impact_per_round, precision),
            "wpa_sum": round(stats.wpa_sum, precision),
            "wpa_avg": round(stats.wpa_avg, precision),
            "multi_kill_rate": round(stats.multi_kill_rate, precision),
            "scores": profile.scores.to_dict(),
            "details": to_serializable(profile.details, precision),
        },
        "role": profile.role.to_dict(),
    }


# ============================================================================
# DataFrame Export
# ============================================================================


def profiles_to_dataframe(profiles: Iterable[PlayerProfile], precision: int = 3) -> pd.DataFrame:
    """One row per profile with overall ratings, filtered rates, scores and role."""
    rows = []
    for profile in profiles:
        data = profile_to_dict(profile, precision)
        row = {
            "player_id": data["player_id"],
            "side_filter": data["side_filter"],
            "role": data["role"]["id"],
            "role_category": data["role"]["category"],
        }
        row.update(flatten_dict(data["overall"], "overall"))
        filtered = {k: v for k, v in data["filtered"].items() if k != "details"}
        row.update(flatten_dict(filtered))
        rows.append(row)

    df = pd.DataFrame(rows)
    logger.debug(f"Built profile DataFrame with {len(df)} rows")
    return df


def export_profiles_to_csv(
    profiles: Iterable[PlayerProfile], output_path: Path | None = None, precision: int = 3
) -> str:
    """Export profiles as CSV (one row per profile)."""
    csv_str = profiles_to_dataframe(profiles, precision).to_csv(index=False)
    if output_path:
        output_path.write_text(csv_str)
        logger.info(f"Exported CSV to: {output_path}")
    return csv_str


# ============================================================================
# JSON Export
# ============================================================================


def export_to_json(
    data: Any,
    output_path: Path | None = None,
    indent: int = 2,
    include_metadata: bool = False,
) -> str:
    """
    Export engine output to JSON.

    Args:
        data: Dictionary, dataclass or list of either
        output_path: Optional path to write the file
        indent: JSON indentation level
        include_metadata: Whether to wrap the data with export metadata

    Returns:
        JSON string
    """
    export_data = to_serializable(data)

    if include_metadata:
        export_data = {
            "_metadata": {
                "exported_at": datetime.now().isoformat(),
                "format": "roundsight_json",
                "version": "1.0",
            },
            "data": export_data,
        }

    json_str = json.dumps(export_data, indent=indent, default=str)

    if output_path:
        output_path.write_text(json_str)
        logger.info(f"Exported JSON to: {output_path}")

    return json_str
