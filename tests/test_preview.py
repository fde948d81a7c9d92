from __future__ import annotations

import pytest

from expedition.config import Settings
from expedition.discovery import (
    SURVEY_ROLL,
    attempt_chance,
    current_interval,
    enrol_exploration_guild,
    explore_once,
    run_rolls,
    survey_discoverables,
    survey_once,
)
from expedition.errors import WorldInvariantError
from expedition.generation import create_world
from expedition.models import World
from expedition.preview import preview_explore, preview_survey, shadow_roll


def _guild_world(seed: str, session_ticks: int = 100_000) -> World:
    world = create_world(seed, config=Settings(telemetry_enabled=False, session_ticks=session_ticks))
    enrol_exploration_guild(world)
    return world


def _snapshot(world: World) -> tuple:
    return (
        world.rng.counter,
        world.clock.current_tick,
        tuple(world.player.known_area_ids),
        tuple(world.player.known_connection_ids),
        tuple(world.player.known_location_ids),
        len(world.roll_history),
    )


@pytest.mark.parametrize("seed", ["preview-a", "preview-b", "preview-c", "preview-d", "preview-e"])
def test_survey_preview_matches_commit(seed: str) -> None:
    world = _guild_world(seed)
    for _ in range(4):
        before = _snapshot(world)
        predicted = preview_survey(world)
        assert _snapshot(world) == before

        outcome = survey_once(world)
        if predicted is not None:
            assert outcome.success is True
            assert outcome.ticks_consumed == predicted


@pytest.mark.parametrize("seed", ["explore-a", "explore-b", "explore-c"])
def test_explore_preview_matches_commit(seed: str) -> None:
    world = _guild_world(seed)
    for _ in range(4):
        before = _snapshot(world)
        predicted = preview_explore(world)
        assert _snapshot(world) == before

        outcome = explore_once(world)
        if predicted is not None:
            assert outcome.success is True
            assert outcome.ticks_consumed == predicted


def test_preview_is_none_when_time_would_run_out() -> None:
    world = _guild_world("too-short", session_ticks=1)

    assert preview_survey(world) is None
    outcome = survey_once(world)
    assert outcome.success is False
    assert outcome.ticks_consumed == 1


def test_preview_is_none_without_guild() -> None:
    world = create_world("no-guild", config=Settings(telemetry_enabled=False))

    assert preview_survey(world) is None
    assert preview_explore(world) is None


def test_preview_refuses_ungenerated_current_area() -> None:
    world = _guild_world("ungenerated")
    world.player.current_area_id = "area-d2-i0"

    with pytest.raises(WorldInvariantError):
        preview_survey(world)


def test_shadow_roll_on_fork_matches_live_roll_loop() -> None:
    world = _guild_world("shadow")
    area = world.current_area
    items = survey_discoverables(world, area)
    interval = current_interval(world)

    predicted = shadow_roll(world.rng.fork(), items, interval, world.clock.remaining_ticks)
    live = run_rolls(
        world.rng,
        chance=attempt_chance(items),
        interval=interval,
        ticks_available=world.clock.remaining_ticks,
        label=SURVEY_ROLL,
    )

    assert predicted == live.ticks
    assert shadow_roll(world.rng.fork(), [], interval, 100) is None
