"""
Tests for round timeline reconstruction.
"""

import pytest

from factories import damage, flash_assist, kill, make_round, record
from roundsight.analysis.models import RoundFacts
from roundsight.analysis.timeline import TimelineReconstructor
from roundsight.core.constants import EventKind, Side
from roundsight.core.schemas import TimelineEvent


def _round(timeline, **overrides):
    stats = {
        "p1": record(Side.CT, damage=50.0),
        "p2": record(Side.CT, damage=50.0),
        "e1": record(Side.T, damage=50.0),
        "e2": record(Side.T, damage=50.0),
    }
    stats.update(overrides)
    return make_round(4, stats, timeline=tuple(timeline), duration=100.0)


@pytest.fixture
def reconstructor():
    return TimelineReconstructor()


class TestPassiveSaves:
    """An enemy who hurt the player is killed by a teammate soon after."""

    def test_save_within_window(self, reconstructor):
        """Damage at t=10 and teammate kill at t=13 is one save."""
        facts = reconstructor.reconstruct(
            _round([damage(10.0, "e1", "p1"), kill(13.0, "p2", "e1")]), "p1"
        )
        assert facts.saved_by_teammate == 1

    def test_kill_outside_window(self, reconstructor):
        """A teammate kill at t=20 is too late to count."""
        facts = reconstructor.reconstruct(
            _round([damage(10.0, "e1", "p1"), kill(20.0, "p2", "e1")]), "p1"
        )
        assert facts.saved_by_teammate == 0

    def test_window_boundary_is_inclusive(self, reconstructor):
        """Exactly five seconds still counts."""
        facts = reconstructor.reconstruct(
            _round([damage(10.0, "e1", "p1"), kill(15.0, "p2", "e1")]), "p1"
        )
        assert facts.saved_by_teammate == 1

    def test_repeated_damage_counts_once(self, reconstructor):
        """Several hits from the same enemy are a single save."""
        facts = reconstructor.reconstruct(
            _round(
                [
                    damage(10.0, "e1", "p1"),
                    damage(11.0, "e1", "p1"),
                    kill(13.0, "p2", "e1"),
                ]
            ),
            "p1",
        )
        assert facts.saved_by_teammate == 1

    def test_own_kill_is_not_a_save(self, reconstructor):
        """Killing your own attacker is not being saved."""
        facts = reconstructor.reconstruct(
            _round([damage(10.0, "e1", "p1"), kill(12.0, "p1", "e1")]), "p1"
        )
        assert facts.saved_by_teammate == 0

    def test_teammate_damage_is_not_a_threat(self, reconstructor):
        """Friendly fire does not create a threat."""
        facts = reconstructor.reconstruct(
            _round(
                [
                    damage(10.0, "p2", "p1", attacker_side=Side.CT),
                    kill(11.0, "p2", "e1"),
                ]
            ),
            "p1",
        )
        assert facts.saved_by_teammate == 0

    def test_custom_window(self):
        """The save window is injectable."""
        facts = TimelineReconstructor(save_window_seconds=12.0).reconstruct(
            _round([damage(10.0, "e1", "p1"), kill(20.0, "p2", "e1")]), "p1"
        )
        assert facts.saved_by_teammate == 1


class TestActiveSaves:
    """The player kills an enemy who just damaged a teammate."""

    def test_saving_a_teammate(self, reconstructor):
        """Kill within the window of the enemy hurting a teammate."""
        facts = reconstructor.reconstruct(
            _round([damage(30.0, "e1", "p2"), kill(32.0, "p1", "e1")]), "p1"
        )
        assert facts.teammates_saved == 1

    def test_enemy_hurt_the_player_not_a_teammate(self, reconstructor):
        """Damage to the player themself is not a teammate save."""
        facts = reconstructor.reconstruct(
            _round([damage(30.0, "e1", "p1"), kill(32.0, "p1", "e1")]), "p1"
        )
        assert facts.teammates_saved == 0

    def test_outside_window(self, reconstructor):
        """A late kill does not count."""
        facts = reconstructor.reconstruct(
            _round([damage(30.0, "e1", "p2"), kill(40.0, "p1", "e1")]), "p1"
        )
        assert facts.teammates_saved == 0


class TestSniperAndUtilityFacts:
    """Tests for sniper and utility kill facts."""

    def test_sniper_multi_kill_and_opening(self, reconstructor):
        """Two AWP kills, the first opening the round."""
        round_record = _round(
            [kill(8.0, "p1", "e1", weapon="weapon_awp"), kill(15.0, "p1", "e2", weapon="awp")],
            p1=record(Side.CT, kills=2, damage=200.0, is_entry_kill=True, survived=True),
        )
        facts = reconstructor.reconstruct(round_record, "p1")
        assert facts.sniper_kills == 2
        assert facts.sniper_multi_kill
        assert facts.sniper_opening_kill

    def test_opening_kill_by_teammate(self, reconstructor):
        """Not an opening pick when someone else got the first kill."""
        round_record = _round(
            [kill(5.0, "p2", "e2"), kill(8.0, "p1", "e1", weapon="awp")],
            p1=record(Side.CT, kills=1, damage=100.0, is_entry_kill=True),
        )
        facts = reconstructor.reconstruct(round_record, "p1")
        assert facts.sniper_kills == 1
        assert not facts.sniper_multi_kill
        assert not facts.sniper_opening_kill

    def test_rifle_opening_is_not_sniper_opening(self, reconstructor):
        """The opening kill must be made with a sniper."""
        round_record = _round(
            [kill(5.0, "p1", "e1", weapon="ak47")],
            p1=record(Side.CT, kills=1, damage=100.0, is_entry_kill=True),
        )
        assert not reconstructor.reconstruct(round_record, "p1").sniper_opening_kill

    def test_utility_kills_and_flash_assists(self, reconstructor):
        """HE and molotov kills are utility kills; flash assists are counted."""
        round_record = _round(
            [
                kill(20.0, "p1", "e1", weapon="hegrenade"),
                flash_assist(25.0, "p1"),
                kill(25.0, "p2", "e2"),
                kill(30.0, "p1", "e2", weapon="inferno"),
            ]
        )
        facts = reconstructor.reconstruct(round_record, "p1")
        assert facts.utility_kills == 2
        assert facts.flash_assists == 1


class TestSurvivalFacts:
    """Tests for last alive and time alive."""

    def test_survivor_with_dead_team_is_last_alive(self, reconstructor):
        """Surviving while every teammate died."""
        round_record = _round(
            [kill(30.0, "e1", "p2", killer_side=Side.T)],
            p1=record(Side.CT, damage=50.0, survived=True),
            p2=record(Side.CT, deaths=1),
        )
        assert reconstructor.reconstruct(round_record, "p1").last_alive

    def test_survivor_with_living_teammate(self, reconstructor):
        """Not last alive when a teammate also survived."""
        round_record = _round(
            [],
            p1=record(Side.CT, damage=50.0, survived=True),
            p2=record(Side.CT, damage=50.0, survived=True),
        )
        assert not reconstructor.reconstruct(round_record, "p1").last_alive

    def test_died_last(self, reconstructor):
        """Whole side dead, player died after every teammate."""
        round_record = _round(
            [
                kill(30.0, "e1", "p2", killer_side=Side.T),
                kill(55.0, "e1", "p1", killer_side=Side.T),
            ],
            p1=record(Side.CT, deaths=1),
            p2=record(Side.CT, deaths=1),
        )
        assert reconstructor.reconstruct(round_record, "p1").last_alive
        assert not reconstructor.reconstruct(round_record, "p2").last_alive

    def test_died_without_death_event(self, reconstructor):
        """A recorded death with no kill event cannot be placed in time."""
        round_record = _round(
            [kill(30.0, "e1", "p2", killer_side=Side.T)],
            p1=record(Side.CT, deaths=1),
            p2=record(Side.CT, deaths=1),
        )
        assert not reconstructor.reconstruct(round_record, "p1").last_alive

    def test_time_alive(self, reconstructor):
        """Survivors get the round duration, the dead their death time."""
        round_record = _round(
            [kill(42.5, "e1", "p2", killer_side=Side.T)],
            p1=record(Side.CT, damage=50.0, survived=True),
            p2=record(Side.CT, deaths=1),
        )
        assert reconstructor.reconstruct(round_record, "p1").time_alive == 100.0
        assert reconstructor.reconstruct(round_record, "p2").time_alive == 42.5

    def test_time_alive_without_death_event(self, reconstructor):
        """A death that is not on the timeline falls back to the duration."""
        round_record = _round([], p1=record(Side.CT, deaths=1))
        assert reconstructor.reconstruct(round_record, "p1").time_alive == 100.0


class TestDegenerateInput:
    """Missing players and empty timelines never raise."""

    def test_unknown_player(self, reconstructor):
        """A player without a record gets empty facts."""
        assert reconstructor.reconstruct(_round([]), "ghost") == RoundFacts()

    def test_empty_timeline(self, reconstructor):
        """No events means no timeline-derived facts."""
        facts = reconstructor.reconstruct(_round([]), "p1")
        assert facts.saved_by_teammate == 0
        assert facts.teammates_saved == 0
        assert facts.sniper_kills == 0
        assert facts.time_alive == 100.0

    def test_events_without_participants(self, reconstructor):
        """Events missing a subject or target are skipped."""
        round_record = _round(
            [
                TimelineEvent(kind=EventKind.DAMAGE, seconds=5.0, damage=20.0),
                TimelineEvent(kind=EventKind.KILL, seconds=6.0),
            ]
        )
        facts = reconstructor.reconstruct(round_record, "p1")
        assert facts.saved_by_teammate == 0
        assert facts.teammates_saved == 0
