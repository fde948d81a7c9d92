"""Routing and travel over the connections the player knows.

Travel cost is ``base_travel_time * travel_multiplier`` everywhere; nothing
else computes a travel time.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass

from expedition.config import Settings
from expedition.generation import ensure_generated
from expedition.models import Connection, Path, TravelFailure, TravelOutcome, World

logger = logging.getLogger("expedition.pathfinding")


@dataclass(slots=True)
class Destination:
    area_id: str
    area_name: str | None
    distance: int
    travel_ticks: int
    hops: int


def travel_cost(connection: Connection, config: Settings) -> int:
    return config.base_travel_time * connection.travel_multiplier


def find_path(world: World, from_area_id: str, to_area_id: str) -> Path | None:
    """Cheapest route over known connections (Dijkstra).

    Equal-cost routes resolve in favour of connections created earlier, so the
    answer only depends on the world, never on dict or set ordering.
    """
    if from_area_id not in world.areas or to_area_id not in world.areas:
        # Ungenerated areas cannot be known, so no known route reaches them.
        return None
    if from_area_id == to_area_id:
        return Path(area_ids=[from_area_id], connection_ids=[], total_ticks=0)

    known = world.known_connections()
    # (cost, tie-break sequence, area id, route areas, route connections)
    frontier: list[tuple[int, tuple[int, ...], str, list[str], list[str]]] = [
        (0, (), from_area_id, [from_area_id], [])
    ]
    settled: set[str] = set()

    while frontier:
        cost, order, area_id, route, via = heapq.heappop(frontier)
        if area_id in settled:
            continue
        if area_id == to_area_id:
            return Path(area_ids=route, connection_ids=via, total_ticks=cost)
        settled.add(area_id)

        for position, connection in enumerate(known):
            if not connection.touches(area_id):
                continue
            neighbour = connection.other(area_id)
            if neighbour in settled:
                continue
            heapq.heappush(
                frontier,
                (
                    cost + travel_cost(connection, world.settings),
                    order + (position,),
                    neighbour,
                    route + [neighbour],
                    via + [connection.id],
                ),
            )
    return None


def reachable_areas(world: World) -> list[Destination]:
    """Every known area reachable from the current one, cheapest first."""
    origin = world.player.current_area_id
    destinations: list[Destination] = []
    for area_id in world.player.known_area_ids:
        if area_id == origin:
            continue
        path = find_path(world, origin, area_id)
        if path is None:
            continue
        area = world.area(area_id)
        destinations.append(
            Destination(
                area_id=area_id,
                area_name=area.name,
                distance=area.distance,
                travel_ticks=path.total_ticks,
                hops=len(path.connection_ids),
            )
        )
    destinations.sort(key=lambda item: (item.travel_ticks, item.hops))
    return destinations


def _failed(destination: str, failure: TravelFailure) -> TravelOutcome:
    return TravelOutcome(success=False, ticks_consumed=0, destination_area_id=destination, failure=failure)


def _arrive(world: World, path: Path) -> TravelOutcome:
    destination = path.area_ids[-1]
    if path.total_ticks > world.clock.remaining_ticks:
        return _failed(destination, TravelFailure.SESSION_ENDED)

    world.clock.advance(path.total_ticks)
    discovered = world.player.learn_area(destination)
    ensure_generated(world, destination)
    world.player.current_area_id = destination
    world.telemetry.emit(
        "travelled",
        {"to": destination, "ticks": path.total_ticks, "hops": len(path.connection_ids), "discovered": discovered},
    )
    return TravelOutcome(
        success=True,
        ticks_consumed=path.total_ticks,
        destination_area_id=destination,
        path=path,
        discovered_area=discovered,
    )


def travel(world: World, destination: str) -> TravelOutcome:
    """Take one known connection out of the current area.

    The far end may still be unknown; arriving there makes it known.
    """
    origin = world.player.current_area_id
    world.area(destination)
    if destination == origin:
        return _failed(destination, TravelFailure.ALREADY_IN_AREA)
    if world.clock.ended:
        return _failed(destination, TravelFailure.SESSION_ENDED)

    connection = world.connection_between(origin, destination)
    if connection is None or not world.player.knows_connection(connection):
        return _failed(destination, TravelFailure.NO_PATH_TO_DESTINATION)

    path = Path(
        area_ids=[origin, destination],
        connection_ids=[connection.id],
        total_ticks=travel_cost(connection, world.settings),
    )
    return _arrive(world, path)


def far_travel(world: World, destination: str) -> TravelOutcome:
    """Multi-hop travel to a known area along the cheapest known route."""
    origin = world.player.current_area_id
    world.area(destination)
    if destination == origin:
        return _failed(destination, TravelFailure.ALREADY_IN_AREA)
    if not world.player.knows_area(destination):
        return _failed(destination, TravelFailure.AREA_NOT_KNOWN)
    if world.clock.ended:
        return _failed(destination, TravelFailure.SESSION_ENDED)

    path = find_path(world, origin, destination)
    if path is None:
        logger.info("no_known_route", extra={"from_area": origin, "to_area": destination})
        return _failed(destination, TravelFailure.NO_PATH_TO_DESTINATION)
    return _arrive(world, path)
