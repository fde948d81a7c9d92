"""Lazy, seed-driven area and connection generation."""

from __future__ import annotations

import logging

from expedition.config import Settings, settings as default_settings
from expedition.models import (
    HUB_AREA_ID,
    Area,
    Connection,
    Location,
    LocationType,
    SessionClock,
    Skill,
    World,
)
from expedition.naming import name_area
from expedition.rng import RandomState, create_rng
from expedition.telemetry import Telemetry, build_telemetry

logger = logging.getLogger("expedition.generation")

HUB_NAME = "Town"
GATHERING_SKILLS = (Skill.MINING, Skill.WOODCUTTING)

# Cumulative thresholds for 0/1/2/3 connections and x1/x2/x3/x4 multipliers (15/35/35/15).
_BUCKET_THRESHOLDS = (0.15, 0.50, 0.85)

_NODE_CHANCE = {Skill.MINING: 0.30, Skill.WOODCUTTING: 0.30}
_MOB_CAMP_CHANCE = 0.25


def _fibonacci(n: int) -> int:
    a, b = 0, 1
    for _ in range(n):
        a, b = b, a + b
    return a


def area_count_for_distance(distance: int) -> int:
    """1 for the hub, then 5, 8, 13, 21, 34, ... for distances 1, 2, 3, ..."""
    if distance < 0:
        raise ValueError("distance must be non-negative")
    if distance == 0:
        return 1
    return _fibonacci(distance + 4)


def area_id(distance: int, index: int) -> str:
    if distance == 0:
        return HUB_AREA_ID
    return f"area-d{distance}-i{index}"


def _bucket(value: float) -> int:
    for bucket, threshold in enumerate(_BUCKET_THRESHOLDS):
        if value < threshold:
            return bucket
    return len(_BUCKET_THRESHOLDS)


def roll_connection_count(rng: RandomState) -> int:
    return _bucket(rng.draw("connection-count"))


def roll_travel_multiplier(rng: RandomState) -> int:
    return _bucket(rng.draw("travel-multiplier")) + 1


def ensure_band(world: World, distance: int) -> list[Area]:
    """Create placeholder areas for ``distance`` if that band does not exist yet."""
    existing = world.areas_at(distance)
    if existing or distance < 1:
        return existing
    for index in range(area_count_for_distance(distance)):
        world.add_area(Area(id=area_id(distance, index), distance=distance, index=index))
    logger.debug("band_created", extra={"distance": distance, "areas": area_count_for_distance(distance)})
    return world.areas_at(distance)


def _hub_area(player_known_locations: list[str]) -> Area:
    hub = Area(id=HUB_AREA_ID, distance=0, index=0, generated=True, name=HUB_NAME)
    for number, skill in enumerate(Skill):
        location = Location(
            id=f"{HUB_AREA_ID}-loc-{number}",
            area_id=HUB_AREA_ID,
            type=LocationType.GUILD_HALL,
            skill=skill,
        )
        hub.locations.append(location)
        player_known_locations.append(location.id)
    return hub


def create_world(
    seed: str,
    *,
    config: Settings | None = None,
    telemetry: Telemetry | None = None,
) -> World:
    """Build a fresh world: the hub, placeholder bands, and hub spokes to distance 1."""
    config = config or default_settings
    world = World(
        settings=config,
        rng=create_rng(seed),
        clock=SessionClock(remaining_ticks=config.session_ticks),
        telemetry=telemetry or build_telemetry(config.telemetry_enabled),
    )
    world.add_area(_hub_area(world.player.known_location_ids))
    world.player.learn_area(HUB_AREA_ID)

    for distance in range(1, config.initial_distance_bands + 1):
        ensure_band(world, distance)

    for spoke in world.areas_at(1):
        world.add_connection(
            Connection(
                from_area_id=HUB_AREA_ID,
                to_area_id=spoke.id,
                travel_multiplier=roll_travel_multiplier(world.rng),
            )
        )

    logger.info("world_created", extra={"seed": seed, "areas": len(world.areas)})
    return world


def _roll_locations(world: World, area: Area) -> list[Location]:
    rng = world.rng
    locations: list[Location] = []

    def _next_id() -> str:
        return f"{area.id}-loc-{len(locations)}"

    for skill in GATHERING_SKILLS:
        if rng.draw(f"location-{skill.value.lower()}") < _NODE_CHANCE[skill]:
            locations.append(Location(id=_next_id(), area_id=area.id, type=LocationType.GATHERING_NODE, skill=skill))

    if rng.draw("location-mob-camp") < _MOB_CAMP_CHANCE:
        offset = round(rng.uniform(-3.0, 3.0, "mob-difficulty"))
        locations.append(
            Location(
                id=_next_id(),
                area_id=area.id,
                type=LocationType.MOB_CAMP,
                skill=Skill.COMBAT,
                difficulty=max(1, area.distance + offset),
            )
        )

    _backfill_gathering_nodes(world, area, locations)
    return locations


def _has_node(locations: list[Location], skill: Skill) -> bool:
    return any(location.is_gathering_node and location.skill is skill for location in locations)


def _backfill_gathering_nodes(world: World, area: Area, locations: list[Location]) -> None:
    minimum = world.settings.min_gathering_nodes_per_band
    if minimum <= 0:
        return
    band = [other for other in world.areas_at(area.distance) if other.id != area.id]
    # Areas still able to host nodes, counting the one being generated.
    open_slots = 1 + sum(1 for other in band if not other.generated)
    for skill in GATHERING_SKILLS:
        if _has_node(locations, skill):
            continue
        present = sum(1 for other in band if other.generated and _has_node(other.locations, skill))
        shortfall = minimum - present
        if shortfall > 0 and open_slots <= shortfall:
            locations.append(
                Location(
                    id=f"{area.id}-loc-{len(locations)}",
                    area_id=area.id,
                    type=LocationType.GATHERING_NODE,
                    skill=skill,
                )
            )
            logger.debug("gathering_node_backfilled", extra={"area_id": area.id, "skill": skill.value})


def _roll_connections(world: World, area: Area) -> list[Connection]:
    rng = world.rng
    created: list[Connection] = []
    for target_distance in (area.distance - 1, area.distance, area.distance + 1):
        if target_distance < 1:
            continue
        candidates = [other for other in ensure_band(world, target_distance) if other.id != area.id]
        if not candidates:
            continue
        wanted = roll_connection_count(rng)
        for target in rng.shuffle(candidates, "connection-shuffle")[:wanted]:
            if world.connection_between(area.id, target.id) is not None:
                continue
            connection = Connection(
                from_area_id=area.id,
                to_area_id=target.id,
                travel_multiplier=roll_travel_multiplier(rng),
            )
            world.add_connection(connection)
            created.append(connection)

    if not world.connections_from(area.id):
        inward = [other for other in world.areas_at(area.distance - 1) if other.id != area.id]
        target = rng.choice(inward, "connection-backfill")
        connection = Connection(
            from_area_id=area.id,
            to_area_id=target.id,
            travel_multiplier=roll_travel_multiplier(rng),
        )
        world.add_connection(connection)
        created.append(connection)
        logger.debug("connection_backfilled", extra={"area_id": area.id, "connection_id": connection.id})
    return created


def ensure_generated(world: World, target_area_id: str) -> Area:
    """Materialise an area's content on first touch; later calls are no-ops."""
    area = world.area(target_area_id)
    if area.generated:
        return area

    for distance in (area.distance - 1, area.distance, area.distance + 1):
        ensure_band(world, distance)

    area.locations = _roll_locations(world, area)
    created = _roll_connections(world, area)
    area.generated = True
    taken = {other.name for other in world.areas.values() if other.name}
    area.name = name_area(area, seed=world.rng.seed, taken=taken)

    logger.info(
        "area_generated",
        extra={
            "area_id": area.id,
            "area_name": area.name,
            "locations": len(area.locations),
            "connections": len(created),
            "rng_counter": world.rng.counter,
        },
    )
    return area
