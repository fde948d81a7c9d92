"""Procedural area names.

Names come from a RandomState derived from the world seed and the area id, so
naming never moves the live counter. The candidate sequence for an area is
fixed, but which candidate survives depends on the names already taken, so
the final name can vary with generation order.
"""

from __future__ import annotations

from expedition.models import Area, LocationType, Skill
from expedition.rng import RandomState

FALLBACK_NAME = "Unnamed Wilds"
MAX_NAME_ATTEMPTS = 3

_NEAR_ADJECTIVES = ["Quiet", "Green", "Gentle", "Sunlit", "Mossy", "Amber", "Low", "Bright"]
_FAR_ADJECTIVES = ["Ashen", "Hollow", "Broken", "Silent", "Frozen", "Shrouded", "Bleak", "Sunken"]
_PLAIN_NOUNS = ["Meadow", "Fields", "Vale", "Reach", "Heath", "Steppe", "Downs", "Moor"]
_STONE_NOUNS = ["Quarry", "Crags", "Ridge", "Scarp", "Tors", "Cliffs"]
_TIMBER_NOUNS = ["Woods", "Thicket", "Grove", "Pines", "Copse", "Weald"]
_DANGER_NOUNS = ["Den", "Warren", "Hollows", "Lair", "Barrens"]


def _nouns_for(area: Area) -> list[str]:
    skills = {location.skill for location in area.locations if location.is_gathering_node}
    nouns: list[str] = []
    if Skill.MINING in skills:
        nouns.extend(_STONE_NOUNS)
    if Skill.WOODCUTTING in skills:
        nouns.extend(_TIMBER_NOUNS)
    if any(location.type is LocationType.MOB_CAMP for location in area.locations):
        nouns.extend(_DANGER_NOUNS)
    return nouns or _PLAIN_NOUNS


def candidate_name(area: Area, rng: RandomState) -> str:
    adjectives = _NEAR_ADJECTIVES if area.distance <= 2 else _FAR_ADJECTIVES
    adjective = rng.choice(adjectives, "name-adjective")
    noun = rng.choice(_nouns_for(area), "name-noun")
    return f"{adjective} {noun}"


def name_area(area: Area, *, seed: str, taken: set[str]) -> str:
    """Pick a name not in ``taken``, retrying a few times before giving up."""
    rng = RandomState(seed=f"{seed}:name:{area.id}")
    for _ in range(MAX_NAME_ATTEMPTS):
        name = candidate_name(area, rng)
        if name not in taken:
            return name
    return FALLBACK_NAME
