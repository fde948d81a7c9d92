from __future__ import annotations

from expedition.config import Settings
from expedition.discovery import enrol_exploration_guild
from expedition.generation import create_world
from expedition.models import Area, Connection, TravelFailure, World
from expedition.pathfinding import far_travel, find_path, reachable_areas, travel, travel_cost
from expedition.rng import create_rng


def _graph(edges: list[tuple[str, str, int]], *, known: set[str] | None = None) -> World:
    world = World(settings=Settings(base_travel_time=10, telemetry_enabled=False), rng=create_rng("graph"))
    names = sorted({name for edge in edges for name in edge[:2]})
    for index, name in enumerate(names):
        world.add_area(Area(id=name, distance=1, index=index, generated=True))
        world.player.learn_area(name)
    for first, second, multiplier in edges:
        connection = Connection(from_area_id=first, to_area_id=second, travel_multiplier=multiplier)
        world.add_connection(connection)
        if known is None or connection.id in known:
            world.player.learn_connection(connection)
    return world


def test_multi_hop_path_sums_travel_costs() -> None:
    world = _graph([("A", "B", 1), ("B", "C", 2)])

    path = find_path(world, "A", "C")

    assert path is not None
    assert path.area_ids == ["A", "B", "C"]
    assert path.connection_ids == ["A->B", "B->C"]
    assert path.total_ticks == 30


def test_unknown_connection_breaks_the_route() -> None:
    world = _graph([("A", "B", 1), ("B", "C", 2)], known={"A->B"})

    assert find_path(world, "A", "C") is None


def test_connections_work_in_both_directions() -> None:
    world = _graph([("A", "B", 1), ("B", "C", 2)])

    path = find_path(world, "C", "A")

    assert path.area_ids == ["C", "B", "A"]
    assert path.total_ticks == 30


def test_cheaper_detour_beats_direct_edge() -> None:
    world = _graph([("A", "C", 4), ("A", "B", 1), ("B", "C", 2)])

    path = find_path(world, "A", "C")

    assert path.area_ids == ["A", "B", "C"]
    assert path.total_ticks == 30


def test_equal_cost_routes_follow_connection_order() -> None:
    first = _graph([("A", "B", 1), ("B", "C", 1), ("A", "D", 1), ("D", "C", 1)])
    second = _graph([("A", "D", 1), ("D", "C", 1), ("A", "B", 1), ("B", "C", 1)])

    assert find_path(first, "A", "C").area_ids == ["A", "B", "C"]
    assert find_path(second, "A", "C").area_ids == ["A", "D", "C"]


def test_path_to_self_is_free() -> None:
    world = _graph([("A", "B", 3)])

    path = find_path(world, "A", "A")

    assert path.area_ids == ["A"]
    assert path.total_ticks == 0


def test_travel_cost_uses_configured_base() -> None:
    connection = Connection(from_area_id="A", to_area_id="B", travel_multiplier=3)

    assert travel_cost(connection, Settings(base_travel_time=10)) == 30
    assert travel_cost(connection, Settings(base_travel_time=7)) == 21


def _guild_world(seed: str) -> tuple[World, str]:
    world = create_world(seed, config=Settings(telemetry_enabled=False, session_ticks=1_000))
    granted = enrol_exploration_guild(world)
    return world, granted


def test_direct_travel_moves_player_and_charges_cost() -> None:
    world, granted = _guild_world("travel")
    connection = world.connection_between("TOWN", granted)

    outcome = travel(world, granted)

    assert outcome.success is True
    assert outcome.ticks_consumed == 10 * connection.travel_multiplier
    assert world.clock.current_tick == outcome.ticks_consumed
    assert world.player.current_area_id == granted


def test_direct_travel_reaches_unknown_area_over_known_connection() -> None:
    world, granted = _guild_world("travel-unknown")
    travel(world, granted)
    target = next(area.id for area in world.areas_at(2) if world.connection_between(granted, area.id) is None)
    outward = Connection(from_area_id=granted, to_area_id=target, travel_multiplier=2)
    world.add_connection(outward)
    world.player.learn_connection(outward)

    outcome = travel(world, target)

    assert outcome.success is True
    assert outcome.discovered_area is True
    assert outcome.ticks_consumed == 20
    assert world.player.knows_area(target)
    assert world.area(target).generated is True


def test_travel_failures_cost_nothing() -> None:
    world, granted = _guild_world("travel-fail")
    stranger = next(area.id for area in world.areas_at(1) if area.id != granted)

    assert travel(world, "TOWN").failure is TravelFailure.ALREADY_IN_AREA
    assert travel(world, stranger).failure is TravelFailure.NO_PATH_TO_DESTINATION
    assert far_travel(world, stranger).failure is TravelFailure.AREA_NOT_KNOWN
    assert world.clock.current_tick == 0


def test_far_travel_takes_the_cheapest_known_route() -> None:
    world, granted = _guild_world("far")
    expected = find_path(world, "TOWN", granted)

    outcome = far_travel(world, granted)

    assert outcome.success is True
    assert outcome.path == expected
    assert outcome.ticks_consumed == expected.total_ticks
    assert far_travel(world, granted).failure is TravelFailure.ALREADY_IN_AREA


def test_reachable_areas_lists_known_destinations() -> None:
    world, granted = _guild_world("reachable")

    destinations = reachable_areas(world)

    assert [item.area_id for item in destinations] == [granted]
    assert destinations[0].hops == 1


def test_path_to_ungenerated_area_is_none() -> None:
    world = create_world("lazy", config=Settings(telemetry_enabled=False))

    assert "area-d5-i0" not in world.areas
    assert find_path(world, "TOWN", "area-d5-i0") is None
    assert find_path(world, "area-d5-i0", "TOWN") is None
