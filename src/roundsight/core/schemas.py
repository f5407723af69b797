"""
Roundsight Data Contracts

Input records supplied by the match import pipeline. EVERY structure the engine
reads from upstream is defined here; the engine never touches raw dicts.

Payloads arrive as camelCase JSON (``winProbabilityAdded``, ``playerStats``);
fields are snake_case in Python and accept either spelling.

Numeric fields are sanitized on the way in: None, NaN and infinities become 0
so a single bad value cannot poison an aggregate. Anything that is not
structurally a match still raises ``pydantic.ValidationError``.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from roundsight.core.constants import ClutchResult, EventKind, ItemAction, Side
from roundsight.core.utils import finite_or_zero


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ============================================================
# ROUND-LEVEL PLAYER RECORDS
# ============================================================


class UtilityRecord(_Record):
    """Per-round utility usage for one player."""

    flashes_thrown: int = 0
    he_damage: float = 0.0
    molotov_damage: float = 0.0
    blind_duration: float = 0.0  # seconds of enemy blind time caused
    enemies_blinded: int = 0

    @field_validator("*", mode="before")
    @classmethod
    def _sanitize(cls, v: Any) -> Any:
        return finite_or_zero(v)


class ClutchAttempt(_Record):
    """One 1vN clutch situation from the match summary."""

    opponent_count: int = Field(ge=0)
    result: ClutchResult
    side: Side
    round: int = 0
    kills: int = 0


class RoundPlayerRecord(_Record):
    """
    One player's stats in one round.

    A record with rating = damage = kills = deaths = assists = 0 means the
    player did not meaningfully participate; see ``is_inactive``.
    """

    side: Side
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    damage: float = 0.0
    headshots: int = 0
    rating: float = 0.0
    impact: float = 0.0
    survived: bool = False
    traded: bool = False  # this player traded a teammate's death
    was_traded: bool = False  # this player's death was avenged
    is_entry_kill: bool = False
    is_entry_death: bool = False
    utility: UtilityRecord | None = None
    utility_damage: float = 0.0  # legacy flat field, used when utility is absent
    win_probability_added: float = Field(
        default=0.0,
        validation_alias=AliasChoices("winProbabilityAdded", "wpa", "win_probability_added"),
    )

    @field_validator(
        "kills",
        "deaths",
        "assists",
        "damage",
        "headshots",
        "rating",
        "impact",
        "utility_damage",
        "win_probability_added",
        mode="before",
    )
    @classmethod
    def _sanitize(cls, v: Any) -> Any:
        return finite_or_zero(v)

    @field_validator(
        "survived", "traded", "was_traded", "is_entry_kill", "is_entry_death", mode="before"
    )
    @classmethod
    def _none_to_false(cls, v: Any) -> Any:
        return False if v is None else v

    @property
    def is_inactive(self) -> bool:
        """Did-not-participate sentinel."""
        return (
            self.rating == 0
            and self.damage == 0
            and self.kills == 0
            and self.deaths == 0
            and self.assists == 0
        )


# ============================================================
# TIMELINE
# ============================================================


class PlayerRef(_Record):
    """Subject or target of a timeline event."""

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "steamid"))
    side: Side | None = None
    name: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        if v is None or v == "" or v == 0:
            return None
        return str(v)

    @property
    def key(self) -> str:
        """Identity used for round lookups: stable id first, then name."""
        return self.id or self.name or ""


class TimelineEvent(_Record):
    """An ordered event within a round, timestamped from round start."""

    kind: EventKind = Field(validation_alias=AliasChoices("kind", "type"))
    seconds: float = 0.0
    subject: PlayerRef | None = None
    target: PlayerRef | None = None
    weapon: str | None = None
    damage: float = 0.0
    is_headshot: bool = False
    is_wallbang: bool = False
    is_blind: bool = False
    is_smoke: bool = False

    @field_validator("seconds", "damage", mode="before")
    @classmethod
    def _sanitize(cls, v: Any) -> Any:
        return finite_or_zero(v)


class ItemEvent(_Record):
    """Buy / pickup / drop event used for loadout tracking."""

    action: ItemAction
    player_id: str
    item: str

    @field_validator("player_id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        return str(v)


class RoundRecord(_Record):
    """A single round: outcome, ordered timeline and per-player records."""

    round_number: int
    duration: float = 0.0
    winner_side: Side | None = None
    win_reason: int | str | None = None
    timeline: tuple[TimelineEvent, ...] = ()
    items: tuple[ItemEvent, ...] = ()
    player_stats: dict[str, RoundPlayerRecord] = Field(default_factory=dict)

    @field_validator("duration", mode="before")
    @classmethod
    def _sanitize(cls, v: Any) -> Any:
        return finite_or_zero(v)

    @field_validator("timeline", "items", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return () if v is None else v

    @property
    def is_ghost(self) -> bool:
        """Every record is the inactive sentinel: a parsing artifact."""
        return all(record.is_inactive for record in self.player_stats.values())


# ============================================================
# MATCH
# ============================================================


class PlayerMatchStats(_Record):
    """Per-match summary stats for one player."""

    player_id: str
    steamid: str | None = None
    name: str | None = None
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    adr: float = 0.0
    rating: float = 0.0
    clutch_history: tuple[ClutchAttempt, ...] = ()

    @field_validator("player_id", mode="before")
    @classmethod
    def _stringify_player_id(cls, v: Any) -> Any:
        return str(v)

    @field_validator("steamid", mode="before")
    @classmethod
    def _stringify_steamid(cls, v: Any) -> Any:
        if v is None or v == "" or v == 0:
            return None
        return str(v)

    @field_validator("adr", "rating", mode="before")
    @classmethod
    def _sanitize(cls, v: Any) -> Any:
        return finite_or_zero(v)

    @field_validator("clutch_history", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return () if v is None else v

    @property
    def round_key(self) -> str:
        """Key of this player's entries in RoundRecord.player_stats."""
        return self.steamid or self.player_id


class MatchScore(_Record):
    us: int = 0
    them: int = 0


class Match(_Record):
    """A complete, already-parsed match."""

    id: str
    date: str | None = None
    map_id: str | None = None
    source: str | None = None
    score: MatchScore = Field(default_factory=MatchScore)
    players: tuple[PlayerMatchStats, ...] = ()
    enemy_players: tuple[PlayerMatchStats, ...] = ()
    rounds: tuple[RoundRecord, ...] = ()

    @field_validator("players", "enemy_players", "rounds", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return () if v is None else v

    @property
    def all_players(self) -> tuple[PlayerMatchStats, ...]:
        return self.players + self.enemy_players


class HistoryEntry(_Record):
    """A match paired with the queried player's summary stats in it."""

    match: Match
    stats: PlayerMatchStats


def load_history(payload: list[dict[str, Any]]) -> list[HistoryEntry]:
    """Validate a raw match-history payload (list of {match, stats})."""
    return [HistoryEntry.model_validate(entry) for entry in payload]
