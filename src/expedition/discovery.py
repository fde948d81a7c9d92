"""Survey and Explore: probability-gated discovery that spends session ticks.

Both actions share one roll loop. Each attempt adds the roll interval to a
fractional accumulator, spends the whole ticks it yields, then draws once.
The loop is a pure function of the random state, the per-attempt chance, the
interval, and the ticks available, which is what lets a forked state predict
the live result exactly.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from expedition.errors import WorldInvariantError
from expedition.generation import area_count_for_distance, ensure_generated
from expedition.models import (
    HUB_AREA_ID,
    Area,
    DiscoveryFailure,
    ExploreOutcome,
    LocationType,
    Skill,
    SurveyOutcome,
    World,
)
from expedition.rng import RandomState, RollRecord

logger = logging.getLogger("expedition.discovery")

SURVEY_ROLL = "survey-roll"
SURVEY_PICK = "survey-pick"
EXPLORE_ROLL = "explore-roll"
EXPLORE_PICK = "explore-pick"

UNGUILDED_CHANCE = 0.01


class DiscoverableKind(str, Enum):
    NEW_AREA = "new_area"
    LOCATION = "location"
    HARD_LOCATION = "hard_location"
    KNOWN_AREA_CONNECTION = "known_area_connection"
    UNKNOWN_AREA_CONNECTION = "unknown_area_connection"


# Explore thresholds are the base chance scaled by these.
EXPLORE_MULTIPLIERS = {
    DiscoverableKind.KNOWN_AREA_CONNECTION: 1.0,
    DiscoverableKind.LOCATION: 0.5,
    DiscoverableKind.UNKNOWN_AREA_CONNECTION: 0.25,
    DiscoverableKind.HARD_LOCATION: 0.05,
}


@dataclass(slots=True)
class Discoverable:
    """A not-yet-found thing; rebuilt for every action, never stored."""

    kind: DiscoverableKind
    target_id: str
    probability: float
    connection_id: str | None = None
    weight: float = 1.0


@dataclass(slots=True)
class KnowledgeParams:
    connected_known_areas: int
    non_connected_known_areas: int
    total_areas_at_distance: int


@dataclass(slots=True)
class RollRun:
    succeeded: bool
    ticks: int
    attempts: int
    value: float | None = None


@dataclass(slots=True)
class RemainingDiscoveries:
    easy: int
    hard: int
    expected_hard_ticks: float | None


def roll_interval(level: int) -> float:
    """Ticks per attempt: 2.0, shrinking 0.1 every ten levels, floored at 1.0."""
    return max(1.0, round(2.0 - (level // 10) * 0.1, 10))


def success_chance(
    *,
    level: int,
    distance: int,
    connected_known_areas: int,
    non_connected_known_areas: int,
    total_areas_at_distance: int,
) -> float:
    if level == 0:
        return UNGUILDED_CHANCE
    ratio = non_connected_known_areas / total_areas_at_distance if total_areas_at_distance > 0 else 0.0
    chance = (
        0.05
        + (level - 1) * 0.05
        - (distance - 1) * 0.05
        + connected_known_areas * 0.05
        + 0.2 * ratio
    )
    return max(0.0, min(1.0, chance))


def expected_ticks(chance: float, interval: float) -> float:
    if chance <= 0:
        return math.inf
    return interval / chance


def knowledge_params(world: World, area: Area) -> KnowledgeParams:
    player = world.player
    connected = 0
    linked: set[str] = set()
    for connection in world.connections_from(area.id):
        if not player.knows_connection(connection):
            continue
        other = connection.other(area.id)
        linked.add(other)
        if player.knows_area(other):
            connected += 1

    non_connected = 0
    for known_id in player.known_area_ids:
        known = world.area(known_id)
        if known.distance == area.distance and known.id != area.id and known.id not in linked:
            non_connected += 1

    return KnowledgeParams(
        connected_known_areas=connected,
        non_connected_known_areas=non_connected,
        total_areas_at_distance=area_count_for_distance(area.distance),
    )


def base_chance(world: World, area: Area) -> float:
    params = knowledge_params(world, area)
    return success_chance(
        level=world.skill(Skill.EXPLORATION).level,
        distance=area.distance,
        connected_known_areas=params.connected_known_areas,
        non_connected_known_areas=params.non_connected_known_areas,
        total_areas_at_distance=params.total_areas_at_distance,
    )


def current_interval(world: World) -> float:
    return roll_interval(world.skill(Skill.EXPLORATION).level)


def attempt_chance(discoverables: list[Discoverable]) -> float:
    return max((item.probability for item in discoverables), default=0.0)


def run_rolls(
    rng: RandomState,
    *,
    chance: float,
    interval: float,
    ticks_available: int,
    label: str,
    history: list[RollRecord] | None = None,
) -> RollRun:
    """Roll until a draw lands under ``chance`` or the available ticks run out."""
    accumulated = 0.0
    ticks = 0
    attempts = 0
    while ticks < ticks_available:
        accumulated += interval
        step = math.floor(accumulated)
        accumulated -= step
        if step > 0:
            if ticks_available - ticks < step:
                # The partial attempt still burns what was left.
                ticks = ticks_available
                break
            ticks += step

        attempts += 1
        hit, value = rng.roll(chance, label, history)
        if hit:
            return RollRun(succeeded=True, ticks=ticks, attempts=attempts, value=value)
    return RollRun(succeeded=False, ticks=ticks, attempts=attempts)


def survey_discoverables(world: World, area: Area) -> list[Discoverable]:
    chance = base_chance(world, area)
    items: list[Discoverable] = []
    for connection in world.connections_from(area.id):
        other_id = connection.other(area.id)
        if world.player.knows_area(other_id):
            continue
        other = world.area(other_id)
        items.append(
            Discoverable(
                kind=DiscoverableKind.NEW_AREA,
                target_id=other_id,
                probability=chance,
                connection_id=connection.id,
                weight=1.0 if other.distance <= area.distance else 0.5,
            )
        )
    return items


def explore_discoverables(world: World, area: Area) -> list[Discoverable]:
    chance = base_chance(world, area)
    player = world.player
    items: list[Discoverable] = []

    for location in area.locations:
        if player.knows_location(location.id):
            continue
        kind = DiscoverableKind.LOCATION
        if location.type is LocationType.GATHERING_NODE and location.skill is not None:
            if world.skill(location.skill).level == 0:
                kind = DiscoverableKind.HARD_LOCATION
        items.append(Discoverable(kind=kind, target_id=location.id, probability=chance * EXPLORE_MULTIPLIERS[kind]))

    for connection in world.connections_from(area.id):
        if player.knows_connection(connection):
            continue
        other_id = connection.other(area.id)
        kind = (
            DiscoverableKind.KNOWN_AREA_CONNECTION
            if player.knows_area(other_id)
            else DiscoverableKind.UNKNOWN_AREA_CONNECTION
        )
        items.append(
            Discoverable(
                kind=kind,
                target_id=other_id,
                probability=chance * EXPLORE_MULTIPLIERS[kind],
                connection_id=connection.id,
            )
        )
    return items


def remaining_discoveries(world: World) -> RemainingDiscoveries:
    items = explore_discoverables(world, world.current_area)
    hard = [item for item in items if item.kind is DiscoverableKind.HARD_LOCATION]
    expected_hard = None
    if hard:
        expected_hard = expected_ticks(attempt_chance(hard), current_interval(world))
    return RemainingDiscoveries(easy=len(items) - len(hard), hard=len(hard), expected_hard_ticks=expected_hard)


def _grant_exploration_xp(world: World, amount: int) -> list[int]:
    levels = world.skill(Skill.EXPLORATION).add_xp(amount)
    if levels:
        logger.info("exploration_level_up", extra={"levels": levels})
    return levels


def _luck_delta(expected: float, actual: int) -> int | None:
    if math.isinf(expected):
        return None
    return round(expected - actual)


def precondition_failure(world: World) -> DiscoveryFailure | None:
    if world.skill(Skill.EXPLORATION).level == 0:
        return DiscoveryFailure.NOT_IN_EXPLORATION_GUILD
    if world.clock.ended:
        return DiscoveryFailure.SESSION_ENDED
    return None


def survey_once(world: World) -> SurveyOutcome:
    """Roll for a new area joined to the current one."""
    failure = precondition_failure(world)
    if failure is not None:
        return SurveyOutcome(success=False, ticks_consumed=0, failure=failure)

    area = ensure_generated(world, world.player.current_area_id)
    candidates = survey_discoverables(world, area)
    if not candidates:
        return SurveyOutcome(success=False, ticks_consumed=0, failure=DiscoveryFailure.NO_UNDISCOVERED_AREAS)

    chance = attempt_chance(candidates)
    interval = current_interval(world)
    expected = expected_ticks(chance, interval)
    run = run_rolls(
        world.rng,
        chance=chance,
        interval=interval,
        ticks_available=world.clock.remaining_ticks,
        label=SURVEY_ROLL,
        history=world.roll_history,
    )
    world.clock.advance(run.ticks)

    if not run.succeeded:
        logger.info("survey_session_ended", extra={"area_id": area.id, "ticks": run.ticks})
        return SurveyOutcome(
            success=False,
            ticks_consumed=run.ticks,
            expected_ticks=expected,
            actual_ticks=run.ticks,
            failure=DiscoveryFailure.SESSION_ENDED,
        )

    picked = candidates[world.rng.weighted_index([item.weight for item in candidates], SURVEY_PICK)]
    connection = world.connection(picked.connection_id)
    world.player.learn_area(picked.target_id)
    world.player.learn_connection(connection)
    ensure_generated(world, picked.target_id)

    xp = run.ticks * (area.distance + 1)
    levels = _grant_exploration_xp(world, xp)
    delta = _luck_delta(expected, run.ticks)
    if delta is not None:
        world.player.record_luck(delta)

    world.telemetry.emit(
        "survey_succeeded",
        {"area_id": picked.target_id, "connection_id": connection.id, "ticks": run.ticks, "expected": expected},
    )
    return SurveyOutcome(
        success=True,
        ticks_consumed=run.ticks,
        discovered_area_id=picked.target_id,
        discovered_connection_id=connection.id,
        expected_ticks=expected,
        actual_ticks=run.ticks,
        xp_gained=xp,
        levels_gained=levels,
        luck_delta=delta,
    )


def explore_once(world: World) -> ExploreOutcome:
    """Roll for something new inside the current area."""
    failure = precondition_failure(world)
    if failure is not None:
        return ExploreOutcome(success=False, ticks_consumed=0, failure=failure)

    area = ensure_generated(world, world.player.current_area_id)
    items = explore_discoverables(world, area)
    if not items:
        return ExploreOutcome(
            success=False,
            ticks_consumed=0,
            failure=DiscoveryFailure.AREA_FULLY_EXPLORED,
            area_fully_explored=True,
        )

    chance = attempt_chance(items)
    interval = current_interval(world)
    expected = expected_ticks(chance, interval)
    run = run_rolls(
        world.rng,
        chance=chance,
        interval=interval,
        ticks_available=world.clock.remaining_ticks,
        label=EXPLORE_ROLL,
        history=world.roll_history,
    )
    world.clock.advance(run.ticks)

    if not run.succeeded:
        logger.info("explore_session_ended", extra={"area_id": area.id, "ticks": run.ticks})
        return ExploreOutcome(
            success=False,
            ticks_consumed=run.ticks,
            failure=DiscoveryFailure.SESSION_ENDED,
            expected_ticks=expected,
        )

    hits = [item for item in items if run.value < item.probability]
    picked = world.rng.choice(hits, EXPLORE_PICK)
    outcome = ExploreOutcome(success=True, ticks_consumed=run.ticks, expected_ticks=expected)

    if picked.connection_id is None:
        world.player.learn_location(picked.target_id)
        outcome.discovered_location_id = picked.target_id
    else:
        connection = world.connection(picked.connection_id)
        world.player.learn_connection(connection)
        outcome.discovered_connection_id = connection.id
        outcome.connection_to_unknown_area = not world.player.knows_area(picked.target_id)

    xp = run.ticks * (area.distance + 1)
    if not explore_discoverables(world, area):
        outcome.area_fully_explored = True
        if world.player.mark_fully_explored(area.id):
            outcome.bonus_awarded = True
            xp += world.settings.full_exploration_bonus_xp * (area.distance + 1)

    outcome.xp_gained = xp
    outcome.levels_gained = _grant_exploration_xp(world, xp)
    outcome.luck_delta = _luck_delta(expected, run.ticks)
    if outcome.luck_delta is not None:
        world.player.record_luck(outcome.luck_delta)

    world.telemetry.emit(
        "explore_succeeded",
        {
            "area_id": area.id,
            "location_id": outcome.discovered_location_id,
            "connection_id": outcome.discovered_connection_id,
            "ticks": run.ticks,
            "bonus": outcome.bonus_awarded,
        },
    )
    return outcome


def enrol_exploration_guild(world: World) -> str | None:
    """Join the Exploration guild and learn one distance-1 area with its hub road.

    Returns the granted area id, or None when the player is already a member.
    """
    skill = world.skill(Skill.EXPLORATION)
    if skill.level > 0:
        return None
    skill.level = 1
    skill.xp = 0

    spokes = world.areas_at(1)
    granted = world.rng.choice(spokes, "guild-grant")
    connection = world.connection_between(HUB_AREA_ID, granted.id)
    if connection is None:
        raise WorldInvariantError(f"Hub has no road to {granted.id}")
    world.player.learn_area(granted.id)
    world.player.learn_connection(connection)
    ensure_generated(world, granted.id)

    world.telemetry.emit("guild_enrolled", {"skill": Skill.EXPLORATION.value, "granted_area_id": granted.id})
    return granted.id
