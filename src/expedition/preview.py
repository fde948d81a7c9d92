"""Shadow rolls: predict how long a discovery takes without committing it."""

from __future__ import annotations

from expedition.discovery import (
    EXPLORE_ROLL,
    SURVEY_ROLL,
    Discoverable,
    attempt_chance,
    current_interval,
    explore_discoverables,
    precondition_failure,
    run_rolls,
    survey_discoverables,
)
from expedition.errors import WorldInvariantError
from expedition.models import Area, World
from expedition.rng import RandomState


def shadow_roll(
    forked: RandomState,
    discoverables: list[Discoverable],
    interval: float,
    ticks_available: int,
    *,
    label: str = SURVEY_ROLL,
) -> int | None:
    """Ticks the roll loop would spend on ``forked``, or None if time runs out first."""
    if not discoverables:
        return None
    run = run_rolls(
        forked,
        chance=attempt_chance(discoverables),
        interval=interval,
        ticks_available=ticks_available,
        label=label,
    )
    return run.ticks if run.succeeded else None


def _previewable_area(world: World) -> Area | None:
    if precondition_failure(world) is not None:
        return None
    area = world.current_area
    if not area.generated:
        # Generation would consume draws the fork cannot account for.
        raise WorldInvariantError(f"Cannot preview from ungenerated area {area.id}")
    return area


def preview_survey(world: World) -> int | None:
    area = _previewable_area(world)
    if area is None:
        return None
    return shadow_roll(
        world.rng.fork(),
        survey_discoverables(world, area),
        current_interval(world),
        world.clock.remaining_ticks,
        label=SURVEY_ROLL,
    )


def preview_explore(world: World) -> int | None:
    area = _previewable_area(world)
    if area is None:
        return None
    return shadow_roll(
        world.rng.fork(),
        explore_discoverables(world, area),
        current_interval(world),
        world.clock.remaining_ticks,
        label=EXPLORE_ROLL,
    )
