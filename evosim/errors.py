"""
Simulation Errors

Typed failures raised at the public boundaries of the engine:
- ConfigError: invalid construction parameters
- StateError: corrupt or incompatible snapshot
- CreatureNotFound: unknown creature id
- ResourceExhausted: no free cell could be found
- OccupiedSpaceError: a mutator tried to overwrite a creature cell
- EarlyExit: a multi-step run stopped because the population died out
"""


class SimulationError(Exception):
    """Base class for every error raised by the engine."""


class ConfigError(SimulationError, ValueError):
    """Invalid parameters. Raised before any environment is built."""


class StateError(SimulationError, ValueError):
    """Serialized state could not be loaded. Current state is left untouched."""


class CreatureNotFound(SimulationError, LookupError):
    """No live creature carries the requested id."""

    def __init__(self, creature_id: int):
        super().__init__(f"Invalid creature id: {creature_id}")
        self.creature_id = creature_id


class ResourceExhausted(SimulationError):
    """A bounded search for a blank cell came up empty."""


class InvariantViolation(SimulationError):
    """An operation would break a grid occupancy invariant."""


class OccupiedSpaceError(InvariantViolation):
    """Attempt to overwrite a cell that holds a creature."""

    def __init__(self, x: int, y: int, creature_id: int):
        super().__init__(
            f"Space ({x}, {y}) is occupied by creature {creature_id}"
        )
        self.x = x
        self.y = y
        self.creature_id = creature_id


class EarlyExit(SimulationError):
    """Raised by run_n_steps when every creature has died."""

    def __init__(self, steps_run: int):
        super().__init__(
            f"Stopping simulation after {steps_run} steps because there are no creatures left"
        )
        self.steps_run = steps_run


__all__ = [
    'SimulationError',
    'ConfigError',
    'StateError',
    'CreatureNotFound',
    'ResourceExhausted',
    'InvariantViolation',
    'OccupiedSpaceError',
    'EarlyExit',
]
