from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from expedition.config import Settings
from expedition.errors import WorldInvariantError
from expedition.rng import RandomState, RollRecord
from expedition.telemetry import NullTelemetry, Telemetry

HUB_AREA_ID = "TOWN"


class Skill(str, Enum):
    EXPLORATION = "Exploration"
    MINING = "Mining"
    WOODCUTTING = "Woodcutting"
    COMBAT = "Combat"


class LocationType(str, Enum):
    GATHERING_NODE = "gathering_node"
    MOB_CAMP = "mob_camp"
    GUILD_HALL = "guild_hall"


class DiscoveryFailure(str, Enum):
    """Tagged reasons a discovery action returned without finding anything."""

    NOT_IN_EXPLORATION_GUILD = "NOT_IN_EXPLORATION_GUILD"
    SESSION_ENDED = "SESSION_ENDED"
    NO_UNDISCOVERED_AREAS = "NO_UNDISCOVERED_AREAS"
    AREA_FULLY_EXPLORED = "AREA_FULLY_EXPLORED"


class TravelFailure(str, Enum):
    SESSION_ENDED = "SESSION_ENDED"
    ALREADY_IN_AREA = "ALREADY_IN_AREA"
    AREA_NOT_KNOWN = "AREA_NOT_KNOWN"
    NO_PATH_TO_DESTINATION = "NO_PATH_TO_DESTINATION"


@dataclass(slots=True)
class Location:
    id: str
    area_id: str
    type: LocationType
    skill: Skill | None = None
    difficulty: int | None = None

    @property
    def is_gathering_node(self) -> bool:
        return self.type is LocationType.GATHERING_NODE


@dataclass(slots=True)
class Area:
    """A world-graph node; ``generated`` flips to True exactly once."""

    id: str
    distance: int
    index: int
    generated: bool = False
    name: str | None = None
    locations: list[Location] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Connection:
    """Undirected, immutable edge; ``id`` keeps the direction it was created in."""

    from_area_id: str
    to_area_id: str
    travel_multiplier: int

    @property
    def id(self) -> str:
        return f"{self.from_area_id}->{self.to_area_id}"

    def touches(self, area_id: str) -> bool:
        return area_id in (self.from_area_id, self.to_area_id)

    def other(self, area_id: str) -> str:
        if area_id == self.from_area_id:
            return self.to_area_id
        if area_id == self.to_area_id:
            return self.from_area_id
        raise WorldInvariantError(f"Connection {self.id} does not touch {area_id}")


def connection_key(first: str, second: str) -> tuple[str, str]:
    return (first, second) if first <= second else (second, first)


@dataclass(slots=True)
class SkillState:
    level: int = 0
    xp: int = 0

    def add_xp(self, amount: int) -> list[int]:
        """Add XP and return every level reached; (level + 1)^2 XP buys the next level."""
        self.xp += amount
        reached: list[int] = []
        threshold = (self.level + 1) ** 2
        while self.xp >= threshold:
            self.xp -= threshold
            self.level += 1
            reached.append(self.level)
            threshold = (self.level + 1) ** 2
        return reached


@dataclass(slots=True)
class SessionClock:
    current_tick: int = 0
    remaining_ticks: int = 0

    @property
    def ended(self) -> bool:
        return self.remaining_ticks <= 0

    def advance(self, ticks: int) -> None:
        if ticks < 0:
            raise ValueError("ticks must be non-negative")
        if ticks > self.remaining_ticks:
            raise WorldInvariantError(f"Cannot advance {ticks} ticks with {self.remaining_ticks} remaining")
        self.current_tick += ticks
        self.remaining_ticks -= ticks


@dataclass(slots=True)
class PlayerKnowledge:
    """What the player has found; every collection only ever grows."""

    current_area_id: str = HUB_AREA_ID
    known_area_ids: list[str] = field(default_factory=list)
    known_connection_ids: list[str] = field(default_factory=list)
    known_location_ids: list[str] = field(default_factory=list)
    fully_explored_area_ids: list[str] = field(default_factory=list)
    total_luck_delta: int = 0
    current_streak: int = 0

    def learn_area(self, area_id: str) -> bool:
        return _append_new(self.known_area_ids, area_id)

    def learn_connection(self, connection: Connection) -> bool:
        return _append_new(self.known_connection_ids, connection.id)

    def learn_location(self, location_id: str) -> bool:
        return _append_new(self.known_location_ids, location_id)

    def mark_fully_explored(self, area_id: str) -> bool:
        return _append_new(self.fully_explored_area_ids, area_id)

    def knows_area(self, area_id: str) -> bool:
        return area_id in self.known_area_ids

    def knows_connection(self, connection: Connection) -> bool:
        return connection.id in self.known_connection_ids

    def knows_location(self, location_id: str) -> bool:
        return location_id in self.known_location_ids

    def record_luck(self, delta: int) -> None:
        self.total_luck_delta += delta
        if delta > 0:
            self.current_streak = self.current_streak + 1 if self.current_streak > 0 else 1
        elif delta < 0:
            self.current_streak = self.current_streak - 1 if self.current_streak < 0 else -1


def _append_new(values: list[str], value: str) -> bool:
    if value in values:
        return False
    values.append(value)
    return True


@dataclass(slots=True)
class World:
    """Explicitly owned world context; engine entry points are its only mutators."""

    settings: Settings
    rng: RandomState
    areas: dict[str, Area] = field(default_factory=dict)
    connections: list[Connection] = field(default_factory=list)
    player: PlayerKnowledge = field(default_factory=PlayerKnowledge)
    skills: dict[Skill, SkillState] = field(default_factory=lambda: {skill: SkillState() for skill in Skill})
    clock: SessionClock = field(default_factory=SessionClock)
    roll_history: list[RollRecord] = field(default_factory=list)
    telemetry: Telemetry = field(default_factory=NullTelemetry)
    _connection_index: dict[tuple[str, str], Connection] = field(default_factory=dict, init=False, repr=False)

    @property
    def current_area(self) -> Area:
        return self.area(self.player.current_area_id)

    def area(self, area_id: str) -> Area:
        try:
            return self.areas[area_id]
        except KeyError:
            raise WorldInvariantError(f"Unknown area id: {area_id}") from None

    def skill(self, skill: Skill) -> SkillState:
        return self.skills[skill]

    def add_area(self, area: Area) -> None:
        if area.id in self.areas:
            raise WorldInvariantError(f"Area {area.id} already exists")
        self.areas[area.id] = area

    def areas_at(self, distance: int) -> list[Area]:
        return sorted((area for area in self.areas.values() if area.distance == distance), key=lambda a: a.index)

    def add_connection(self, connection: Connection) -> None:
        for area_id in (connection.from_area_id, connection.to_area_id):
            if area_id not in self.areas:
                raise WorldInvariantError(f"Connection {connection.id} references missing area {area_id}")
        key = connection_key(connection.from_area_id, connection.to_area_id)
        if key in self._connection_index:
            raise WorldInvariantError(f"Areas {key[0]} and {key[1]} are already connected")
        self._connection_index[key] = connection
        self.connections.append(connection)

    def connection_between(self, first: str, second: str) -> Connection | None:
        return self._connection_index.get(connection_key(first, second))

    def connection(self, connection_id: str) -> Connection:
        """Resolve an id in either direction."""
        first, sep, second = connection_id.partition("->")
        found = self.connection_between(first, second) if sep else None
        if found is None:
            raise WorldInvariantError(f"Unknown connection id: {connection_id}")
        return found

    def connections_from(self, area_id: str) -> list[Connection]:
        return [conn for conn in self.connections if conn.touches(area_id)]

    def known_connections(self) -> list[Connection]:
        return [conn for conn in self.connections if self.player.knows_connection(conn)]


@dataclass(slots=True)
class SurveyOutcome:
    success: bool
    ticks_consumed: int
    discovered_area_id: str | None = None
    discovered_connection_id: str | None = None
    expected_ticks: float | None = None
    actual_ticks: int = 0
    failure: DiscoveryFailure | None = None
    xp_gained: int = 0
    levels_gained: list[int] = field(default_factory=list)
    luck_delta: int | None = None


@dataclass(slots=True)
class ExploreOutcome:
    success: bool
    ticks_consumed: int
    discovered_location_id: str | None = None
    discovered_connection_id: str | None = None
    connection_to_unknown_area: bool = False
    bonus_awarded: bool = False
    failure: DiscoveryFailure | None = None
    expected_ticks: float | None = None
    xp_gained: int = 0
    levels_gained: list[int] = field(default_factory=list)
    luck_delta: int | None = None
    area_fully_explored: bool = False


@dataclass(slots=True)
class Path:
    area_ids: list[str]
    connection_ids: list[str]
    total_ticks: int


@dataclass(slots=True)
class TravelOutcome:
    success: bool
    ticks_consumed: int
    destination_area_id: str
    path: Path | None = None
    failure: TravelFailure | None = None
    discovered_area: bool = False
