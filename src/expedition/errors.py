"""Exception types for the expedition engine.

Gameplay failures (no path, session over, nothing left to find) are reported
through outcome records. The exceptions here are reserved for corrupted world
state, which would otherwise silently desynchronise seeded replay.
"""


class ExpeditionError(RuntimeError):
    """Base class for engine faults."""


class WorldInvariantError(ExpeditionError):
    """The world model references something that does not exist or was built twice."""


class StaleDiscoveryError(ExpeditionError):
    """A previewed discovery was committed after the world moved on."""
