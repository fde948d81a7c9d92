from __future__ import annotations

import pytest

from expedition.config import Settings
from expedition.discovery import enrol_exploration_guild, survey_once
from expedition.errors import StaleDiscoveryError, WorldInvariantError
from expedition.generation import create_world
from expedition.session import DiscoveryKind, DiscoverySession


def _session(seed: str = "session", session_ticks: int = 100_000) -> DiscoverySession:
    world = create_world(seed, config=Settings(telemetry_enabled=False, session_ticks=session_ticks))
    enrol_exploration_guild(world)
    return DiscoverySession(world)


def test_commit_consumes_exactly_the_previewed_ticks() -> None:
    session = _session()
    pending = session.begin(DiscoveryKind.SURVEY)
    assert pending is not None

    outcome = session.commit(pending)

    assert outcome.success is True
    assert outcome.ticks_consumed == pending.ticks
    assert session.world.clock.current_tick == pending.ticks
    assert session.state.committed == 1
    assert session.state.pending is None


def test_cancel_charges_elapsed_ticks_only() -> None:
    session = _session("cancel")
    world = session.world
    known = list(world.player.known_area_ids)
    counter = world.rng.counter
    pending = session.begin(DiscoveryKind.EXPLORE)
    assert pending is not None

    charged = session.cancel(pending, elapsed_ticks=pending.ticks + 50)

    assert charged == pending.ticks
    assert world.clock.current_tick == pending.ticks
    assert world.player.known_area_ids == known
    assert world.rng.counter == counter
    assert session.state.cancelled == 1


def test_cancel_with_partial_progress() -> None:
    session = _session("partial")
    pending = session.begin(DiscoveryKind.SURVEY)

    assert session.cancel(pending, elapsed_ticks=1) == min(1, pending.ticks)


def test_commit_after_cancel_is_rejected() -> None:
    session = _session("twice")
    pending = session.begin(DiscoveryKind.SURVEY)
    session.cancel(pending, elapsed_ticks=0)

    with pytest.raises(StaleDiscoveryError):
        session.commit(pending)


def test_commit_rejects_a_world_that_moved_on() -> None:
    session = _session("moved")
    pending = session.begin(DiscoveryKind.SURVEY)
    survey_once(session.world)

    with pytest.raises(StaleDiscoveryError):
        session.commit(pending)


def test_only_one_discovery_may_be_pending() -> None:
    session = _session("one")
    session.begin(DiscoveryKind.SURVEY)

    with pytest.raises(WorldInvariantError):
        session.begin(DiscoveryKind.EXPLORE)


def test_begin_returns_none_when_time_would_run_out() -> None:
    session = _session("short", session_ticks=1)

    assert session.begin(DiscoveryKind.SURVEY) is None
    assert session.state.pending is None
