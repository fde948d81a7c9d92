"""Preview, then commit or cancel, for callers that animate a discovery."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from expedition.discovery import explore_once, survey_once
from expedition.errors import StaleDiscoveryError, WorldInvariantError
from expedition.models import ExploreOutcome, SurveyOutcome, World
from expedition.preview import preview_explore, preview_survey


class DiscoveryKind(str, Enum):
    SURVEY = "survey"
    EXPLORE = "explore"


@dataclass(slots=True)
class PendingDiscovery:
    kind: DiscoveryKind
    ticks: int
    rng_counter: int
    started_tick: int


@dataclass(slots=True)
class SessionState:
    pending: PendingDiscovery | None = None
    committed: int = 0
    cancelled: int = 0
    ticks_cancelled: int = 0
    history: list[SurveyOutcome | ExploreOutcome] = field(default_factory=list)


class DiscoverySession:
    """Calls the engine at most twice per discovery: once to preview, once to commit.

    Cancelling charges the ticks that visibly elapsed as a single clock
    advance and leaves knowledge and the random counter untouched.
    """

    def __init__(self, world: World, *, logger: logging.Logger | None = None) -> None:
        self._world = world
        self._logger = logger or logging.getLogger("expedition.session")
        self._state = SessionState()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def world(self) -> World:
        return self._world

    def begin(self, kind: DiscoveryKind) -> PendingDiscovery | None:
        """Preview a discovery; None means it cannot finish in the remaining time."""
        if self._state.pending is not None:
            raise WorldInvariantError("A discovery is already pending")
        previewer = preview_survey if kind is DiscoveryKind.SURVEY else preview_explore
        ticks = previewer(self._world)
        if ticks is None:
            return None
        pending = PendingDiscovery(
            kind=kind,
            ticks=ticks,
            rng_counter=self._world.rng.counter,
            started_tick=self._world.clock.current_tick,
        )
        self._state.pending = pending
        self._logger.info("discovery_previewed", extra={"kind": kind.value, "ticks": ticks})
        return pending

    def commit(self, pending: PendingDiscovery) -> SurveyOutcome | ExploreOutcome:
        self._check_current(pending)
        self._state.pending = None
        outcome = survey_once(self._world) if pending.kind is DiscoveryKind.SURVEY else explore_once(self._world)
        if outcome.ticks_consumed != pending.ticks:
            raise WorldInvariantError(
                f"Preview promised {pending.ticks} ticks but the {pending.kind.value} took {outcome.ticks_consumed}"
            )
        self._state.committed += 1
        self._state.history.append(outcome)
        self._logger.info("discovery_committed", extra={"kind": pending.kind.value, "ticks": outcome.ticks_consumed})
        return outcome

    def cancel(self, pending: PendingDiscovery, elapsed_ticks: int) -> int:
        """Abandon a pending discovery, charging at most the previewed ticks."""
        self._check_current(pending)
        self._state.pending = None
        charged = max(0, min(elapsed_ticks, pending.ticks, self._world.clock.remaining_ticks))
        self._world.clock.advance(charged)
        self._state.cancelled += 1
        self._state.ticks_cancelled += charged
        self._logger.info("discovery_cancelled", extra={"kind": pending.kind.value, "charged": charged})
        return charged

    def _check_current(self, pending: PendingDiscovery) -> None:
        if self._state.pending is not pending:
            raise StaleDiscoveryError("Discovery is not the one pending in this session")
        world = self._world
        if world.rng.counter != pending.rng_counter or world.clock.current_tick != pending.started_tick:
            self._state.pending = None
            raise StaleDiscoveryError("World changed between preview and commit")
