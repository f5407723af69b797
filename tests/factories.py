"""Builders for synthetic match histories used across the test suite."""

from roundsight.core.constants import ClutchResult, EventKind, ItemAction, Side
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
)

CT_PLAYERS = ("p1", "p2")
T_PLAYERS = ("e1", "e2")


def opposite(side: Side) -> Side:
    return Side.T if side == Side.CT else Side.CT


def ref(key: str, side: Side | None = None) -> PlayerRef:
    return PlayerRef(id=key, side=side, name=key)


def record(side: Side = Side.CT, **kwargs) -> RoundPlayerRecord:
    """Round record; defaults to a participating player (rating 1.0)."""
    kwargs.setdefault("rating", 1.0)
    return RoundPlayerRecord(side=side, **kwargs)


def inactive(side: Side = Side.CT) -> RoundPlayerRecord:
    """The did-not-participate sentinel."""
    return RoundPlayerRecord(side=side)


def utility(**kwargs) -> UtilityRecord:
    return UtilityRecord(**kwargs)


def kill(
    seconds: float,
    killer: str,
    victim: str,
    weapon: str = "ak47",
    killer_side: Side = Side.CT,
) -> TimelineEvent:
    return TimelineEvent(
        kind=EventKind.KILL,
        seconds=seconds,
        subject=ref(killer, killer_side),
        target=ref(victim, opposite(killer_side)),
        weapon=weapon,
    )


def damage(
    seconds: float,
    attacker: str,
    victim: str,
    amount: float = 50.0,
    attacker_side: Side = Side.T,
    weapon: str = "ak47",
) -> TimelineEvent:
    return TimelineEvent(
        kind=EventKind.DAMAGE,
        seconds=seconds,
        subject=ref(attacker, attacker_side),
        target=ref(victim, opposite(attacker_side)),
        weapon=weapon,
        damage=amount,
    )


def flash_assist(seconds: float, player: str, side: Side = Side.CT) -> TimelineEvent:
    return TimelineEvent(kind=EventKind.FLASH_ASSIST, seconds=seconds, subject=ref(player, side))


def round_end(seconds: float) -> TimelineEvent:
    return TimelineEvent(kind=EventKind.ROUND_END, seconds=seconds)


def purchase(player: str, item: str) -> ItemEvent:
    return ItemEvent(action=ItemAction.PURCHASE, player_id=player, item=item)


def make_round(
    number: int,
    stats: dict[str, RoundPlayerRecord],
    timeline: tuple[TimelineEvent, ...] = (),
    winner: Side | None = Side.CT,
    duration: float = 115.0,
    items: tuple[ItemEvent, ...] = (),
) -> RoundRecord:
    return RoundRecord(
        round_number=number,
        duration=duration,
        winner_side=winner,
        timeline=timeline,
        items=items,
        player_stats=stats,
    )


def make_match(
    rounds: list[RoundRecord] | tuple[RoundRecord, ...],
    match_id: str = "m1",
    players: tuple[PlayerMatchStats, ...] | None = None,
    enemies: tuple[PlayerMatchStats, ...] | None = None,
) -> Match:
    if players is None:
        players = tuple(PlayerMatchStats(player_id=p) for p in CT_PLAYERS)
    if enemies is None:
        enemies = tuple(PlayerMatchStats(player_id=p) for p in T_PLAYERS)
    return Match(
        id=match_id,
        map_id="de_mirage",
        players=players,
        enemy_players=enemies,
        rounds=tuple(rounds),
    )


def clutch(opponents: int, result: ClutchResult, side: Side = Side.CT) -> ClutchAttempt:
    return ClutchAttempt(opponent_count=opponents, result=result, side=side)


def history_entry(
    match: Match, player_id: str = "p1", clutches: tuple[ClutchAttempt, ...] = ()
) -> HistoryEntry:
    return HistoryEntry(
        match=match, stats=PlayerMatchStats(player_id=player_id, clutch_history=clutches)
    )


def full_round(number: int, winner: Side = Side.CT, **p1_overrides) -> RoundRecord:
    """A round where everyone participated; p1's record can be overridden."""
    p1 = dict(kills=1, damage=100.0, rating=1.0, survived=True)
    p1.update(p1_overrides)
    side = p1.pop("side", Side.CT)
    return make_round(
        number,
        {
            "p1": record(side, **p1),
            "p2": record(side, kills=1, damage=80.0, deaths=1),
            "e1": record(opposite(side), kills=1, damage=90.0, deaths=1),
            "e2": record(opposite(side), damage=40.0, deaths=1),
        },
        winner=winner,
    )


def sample_history() -> list[HistoryEntry]:
    """Two matches with a realistic mix of CT and T rounds for p1."""
    timeline = (
        damage(10.0, "e1", "p1", 40.0),
        kill(12.0, "p2", "e1"),
        kill(20.0, "p1", "e2", weapon="awp"),
        flash_assist(20.0, "p1"),
        round_end(40.0),
    )
    first = make_match(
        [
            make_round(
                1,
                {
                    "p1": record(
                        Side.CT,
                        kills=1,
                        damage=100.0,
                        rating=1.2,
                        survived=True,
                        utility=utility(flashes_thrown=2, enemies_blinded=2, blind_duration=3.5),
                        win_probability_added=0.12,
                    ),
                    "p2": record(Side.CT, kills=1, damage=100.0, rating=1.1, survived=True),
                    "e1": record(Side.T, damage=40.0, deaths=1, rating=0.2),
                    "e2": record(Side.T, deaths=1, rating=0.1),
                },
                timeline=timeline,
                winner=Side.CT,
            ),
            make_round(2, {p: inactive(Side.CT) for p in ("p1", "p2")}),
            make_round(
                13,
                {
                    "p1": record(Side.T, deaths=1, damage=30.0, rating=0.4, is_entry_death=True),
                    "p2": record(Side.T, kills=1, damage=120.0, rating=1.3, traded=True),
                    "e1": record(Side.CT, kills=1, damage=100.0, rating=1.0),
                    "e2": record(Side.CT, deaths=1, rating=0.2),
                },
                timeline=(kill(15.0, "e1", "p1", killer_side=Side.CT), kill(17.0, "p2", "e1", killer_side=Side.T)),
                winner=Side.CT,
            ),
        ],
        match_id="m1",
    )
    second = make_match([full_round(1, kills=2, damage=180.0, rating=1.6)], match_id="m2")
    return [
        history_entry(first, clutches=(clutch(2, ClutchResult.WON),)),
        history_entry(second),
    ]
