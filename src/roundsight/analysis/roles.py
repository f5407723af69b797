"""
Role Classification

Matches a player to the nearest role archetype on a 0-100 feature space.

Features:
- The seven ability scores, verbatim
- survival: survival percentage
- kast: KAST percentage
- adr: ADR / 110
- impact: impact per round / 1.8
- aggression: opening duels per round / 0.35
- flash: flash assists per round / 0.15
- multi_kill: multi-kill rate / 25

Sniper archetypes are only candidates when the player's sniper kill share
exceeds 20% or the Sniper score exceeds 40. Distance is the root-mean-square
difference over the features each archetype names; a feature the archetype
leaves out does not count toward its distance.
"""

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType

import numpy as np

from roundsight.core.constants import (
    FALLBACK_ROLE_ID,
    FEATURE_NORMALIZERS,
    PROFILE_DEFAULT_VALUE,
    SNIPER_KILL_SHARE_GATE,
    SNIPER_SCORE_GATE,
)
from roundsight.core.utils import clamp, safe_divide
from roundsight.analysis.models import AbilityScores, AggregatedStats, RoleArchetype

logger = logging.getLogger(__name__)

FEATURE_NAMES = (
    "firepower",
    "entry",
    "opening",
    "trade",
    "sniper",
    "clutch",
    "utility",
    "survival",
    "kast",
    "adr",
    "impact",
    "aggression",
    "flash",
    "multi_kill",
)


def _role(
    role_id: str, category: str, name: str, description: str, **profile: float
) -> RoleArchetype:
    return RoleArchetype(
        id=role_id,
        category=category,
        name=name,
        description=description,
        profile=MappingProxyType(profile),
    )


# fmt: off
ROLE_CATALOG: tuple[RoleArchetype, ...] = (
    # Entry
    _role("entry_machine", "entry", "Entry Machine",
          "Relentless first man through the door who tears the defense open.",
          entry=85, opening=75, aggression=80, survival=30, firepower=60),
    _role("opening_duelist", "entry", "Opening Duelist",
          "Hunts the first kill of the round to hand the team a numbers advantage.",
          opening=85, entry=70, aggression=75, firepower=70, trade=40),
    _role("space_creator", "entry", "Space Creator",
          "Spends their own life to stretch the defense; low K/D, high tactical value.",
          entry=80, aggression=90, survival=20, firepower=40),
    _role("aggressive_pusher", "entry", "Aggressive Pusher",
          "Takes fights early even on defense and keeps opponents under pressure.",
          aggression=85, opening=65, entry=65, survival=40),
    _role("aim_entry", "entry", "Aim Entry",
          "Breaks sites on raw aim and wins head-on duels.",
          entry=75, firepower=85, adr=85, opening=60),
    _role("first_contact", "entry", "First Contact",
          "First to meet the enemy and bring back information.",
          opening=70, aggression=60, survival=40, entry=50),

    # Trader
    _role("trade_king", "trader", "Trade King",
          "Stays glued to teammates and punishes every opening death.",
          trade=85, kast=80, entry=30, survival=60),
    _role("damage_dealer", "trader", "Damage Dealer",
          "Very high ADR, the team's most reliable source of damage.",
          adr=90, firepower=85, trade=65, entry=40),
    _role("multi_fragger", "trader", "Multi Fragger",
          "Regularly converts rounds into multi-kills.",
          multi_kill=85, firepower=85, impact=85),
    _role("bodyguard", "trader", "Bodyguard",
          "Survives and trades efficiently, protecting the team's key players.",
          trade=75, survival=75, kast=85, entry=20),
    _role("second_entry", "trader", "Second Entry",
          "Follows the entry in, cleans up and secures the site.",
          trade=75, entry=65, opening=40, firepower=70),
    _role("clean_up", "trader", "Clean Up",
          "Finishes weakened enemies and locks in won fights.",
          trade=70, clutch=60, survival=60, kast=75),

    # Lurker
    _role("lurker", "lurker", "Lurker",
          "Plays away from the pack, cutting rotations and catching flanks.",
          survival=85, opening=15, aggression=15, clutch=65, trade=40),
    _role("anchor", "lurker", "Anchor",
          "Holds a site alone on defense and watches the flank on attack.",
          survival=80, kast=75, entry=15, utility=55),
    _role("flanker", "lurker", "Flanker",
          "Finds the path behind the enemy for the decisive kill.",
          survival=65, aggression=30, impact=70, trade=50),
    _role("clutch_minister", "lurker", "Clutch Minister",
          "Gets better the fewer players are left; high clutch conversion.",
          clutch=85, survival=75, impact=80),
    _role("guerrilla", "lurker", "Guerrilla",
          "Active lurker who keeps moving and wins on positioning.",
          aggression=50, survival=65, entry=40, impact=65),
    _role("silent_killer", "lurker", "Silent Killer",
          "Hides in corners and rarely misses once they shoot.",
          survival=90, aggression=10, firepower=50, opening=10),

    # Sniper
    _role("awp_god", "sniper", "AWP God",
          "High sniper kill share and the AWP is the enemy's nightmare.",
          sniper=90, firepower=85, opening=60),
    _role("opening_awp", "sniper", "Opening AWP",
          "Uses the sniper to find the round's first pick.",
          sniper=80, opening=85, aggression=70),
    _role("aggressive_awp", "sniper", "Aggressive AWP",
          "Pushes and entries with the sniper rifle.",
          sniper=75, entry=70, aggression=75, survival=35),
    _role("turret_awp", "sniper", "Turret AWP",
          "Locks an angle and nobody gets through.",
          sniper=80, survival=75, aggression=15, entry=10),
    _role("hybrid_awp", "sniper", "Hybrid AWP",
          "Equally dangerous with rifles, adapts to any economy.",
          sniper=60, firepower=80, entry=50),
    _role("mobile_awp", "sniper", "Mobile AWP",
          "Roams the map like a lurker looking for picks.",
          sniper=75, survival=65, aggression=50, clutch=55),

    # Support
    _role("utility_master", "support", "Utility Master",
          "Creates advantages for teammates with precise utility.",
          utility=80, flash=70, adr=40, entry=15),
    _role("flash_assist", "support", "Flash Assist",
          "Pops flashes for teammates and racks up flash assists.",
          flash=85, utility=70),
    _role("tactician", "support", "Tactician",
          "Keeps the team running through utility and trades; high KAST.",
          utility=70, kast=75, firepower=35, trade=55),
    _role("support_anchor", "support", "Support Anchor",
          "Delays with utility on defense and is the team's shield.",
          utility=65, survival=75, kast=80, entry=10),
    _role("best_teammate", "support", "Best Teammate",
          "Very high KAST and always contributes to the round.",
          kast=90, trade=75, utility=60),
    _role("sacrifice", "support", "Sacrifice",
          "Gives up their own numbers to do the team's dirty work.",
          utility=70, entry=50, survival=20, adr=35),

    # Flex
    _role("hexagon", "flex", "Hexagon",
          "Top numbers everywhere with no weak side.",
          firepower=75, entry=70, trade=70, clutch=70, utility=70, survival=65),
    _role("impact_player", "flex", "Impact Player",
          "Steps up in decisive moments; very high impact.",
          impact=90, firepower=80, clutch=65, multi_kill=65),
    _role("system_player", "flex", "System Player",
          "Fits the system perfectly; steady rather than flashy.",
          kast=85, trade=65, utility=65, adr=65, survival=55),
    _role("carry", "flex", "Carry",
          "The team's core who leads every stat line.",
          firepower=90, impact=90, adr=90),
    _role("star_rifler", "flex", "Star Rifler",
          "Top-tier rifle control and game sense; the team's main output."),
    _role("all_rounder", "flex", "All-Rounder",
          "Balanced and solid everywhere, can play any position.",
          firepower=65, entry=55, trade=55, utility=55, clutch=55),
)
# fmt: on


def normalize_feature(value: float, maximum: float) -> float:
    """Scale value so maximum maps to 100, clamped to [0, 100]."""
    return clamp(safe_divide(value, maximum) * 100, 0.0, 100.0)


def build_feature_vector(scores: AbilityScores, stats: AggregatedStats) -> dict[str, float]:
    """Player feature vector keyed by FEATURE_NAMES."""
    features = scores.as_features()
    features.update(
        {
            "survival": clamp(stats.survival_pct, 0.0, 100.0),
            "kast": clamp(stats.kast_pct, 0.0, 100.0),
            "adr": normalize_feature(stats.adr, FEATURE_NORMALIZERS["adr"]),
            "impact": normalize_feature(stats.impact_per_round, FEATURE_NORMALIZERS["impact"]),
            "aggression": normalize_feature(
                stats.attacks_per_round, FEATURE_NORMALIZERS["aggression"]
            ),
            "flash": normalize_feature(stats.flash_assists_per_round, FEATURE_NORMALIZERS["flash"]),
            "multi_kill": normalize_feature(
                stats.multi_kill_rate, FEATURE_NORMALIZERS["multi_kill"]
            ),
        }
    )
    return {name: features[name] for name in FEATURE_NAMES}


def is_sniper_player(scores: AbilityScores, stats: AggregatedStats) -> bool:
    """Sniper archetypes are only eligible past either gate."""
    return stats.sniper_kill_pct > SNIPER_KILL_SHARE_GATE or scores.sniper > SNIPER_SCORE_GATE


class RoleClassifier:
    """Nearest-archetype classifier over an injected role catalog."""

    def __init__(
        self,
        catalog: Sequence[RoleArchetype] = ROLE_CATALOG,
        fallback_id: str = FALLBACK_ROLE_ID,
        default_value: float = PROFILE_DEFAULT_VALUE,
    ):
        self.catalog = tuple(catalog)
        self.fallback_id = fallback_id
        self.default_value = default_value

    @property
    def fallback(self) -> RoleArchetype:
        for role in self.catalog:
            if role.id == self.fallback_id:
                return role
        return next(r for r in ROLE_CATALOG if r.id == FALLBACK_ROLE_ID)

    def candidates(self, sniper_eligible: bool) -> list[RoleArchetype]:
        """Roles with a profile that pass the sniper gate."""
        return [
            role
            for role in self.catalog
            if role.profile and (sniper_eligible or not role.is_sniper)
        ]

    def profile_matrix(self, roles: Sequence[RoleArchetype]) -> np.ndarray:
        """
        (roles x features) ideal values.

        Features a role leaves out are NaN; a zero ideal value reads as the
        default.
        """
        rows = [
            [
                (role.profile[name] or self.default_value) if name in role.profile else np.nan
                for name in FEATURE_NAMES
            ]
            for role in roles
        ]
        return np.array(rows, dtype=float).reshape(len(rows), len(FEATURE_NAMES))

    def distances(
        self, features: Mapping[str, float], roles: Sequence[RoleArchetype]
    ) -> np.ndarray:
        """
        Root-mean-square distance from the player to each role.

        Only the features a role names are compared. Roles with an empty
        profile get an infinite distance.
        """
        player = np.array([features.get(name, 0.0) for name in FEATURE_NAMES], dtype=float)
        matrix = self.profile_matrix(roles)
        mask = ~np.isnan(matrix)
        squared = np.where(mask, (matrix - player) ** 2, 0.0)
        counts = mask.sum(axis=1)
        mean = np.divide(
            squared.sum(axis=1),
            counts,
            out=np.full(len(roles), np.inf),
            where=counts > 0,
        )
        return np.sqrt(mean)

    def classify(self, scores: AbilityScores, stats: AggregatedStats) -> RoleArchetype:
        """
        Return the closest archetype for a player.

        Falls back to the all-rounder for an empty history or when no
        archetype is a candidate.
        """
        if stats.rounds_played == 0:
            return self.fallback

        sniper_eligible = is_sniper_player(scores, stats)
        roles = self.candidates(sniper_eligible)
        if not roles:
            logger.debug("No role candidates, using fallback archetype")
            return self.fallback
        if not sniper_eligible:
            logger.debug("Sniper archetypes gated out")

        distances = self.distances(build_feature_vector(scores, stats), roles)
        best = roles[int(np.argmin(distances))]
        logger.debug(f"Classified as {best.id} (distance {float(distances.min()):.2f})")
        return best
