# EvoSim - Evolving creatures on a grid
#
# Creatures carry a small feed-forward brain, eat, fight and reproduce.
# Offspring inherit a mutated copy of the parent's brain. No training,
# no crossover: selection does all the work.
#
# ARCHITECTURE:
# ├── neural_net.py    - Dense ReLU network, random init, overwrite mutation
# ├── dna.py           - Brain: network + sensor/action slot mapping
# ├── creature.py      - Agent state and sense -> decide -> act
# ├── vision.py        - Straight-line raycast
# ├── environment.py   - Grid, tick engine, mutators, stats
# ├── layouts.py       - Built-in 64x64 wall layouts
# ├── persistence.py   - JSON snapshots and partial load
# ├── space.py         - Position, Orientation, SpaceState, Color
# ├── config.py        - Constants and parameter dataclasses
# └── errors.py        - Typed failures

# =============================================================================
# PRIMARY EXPORTS: Environment
# =============================================================================

from .environment import (
    Environment,
    EnvironmentStats,
    CreatureView,
)

from .config import (
    EnvironmentParams,
    CreatureParams,
)

# =============================================================================
# SUPPORTING MODULES
# =============================================================================

# Agents and brains
from .creature import Creature, VisionReading
from .dna import Brain, CreatureAction, SensorType, ENABLED_ACTIONS, ENABLED_SENSORS
from .neural_net import NeuralNet

# Grid primitives
from .space import Position, Orientation, SpaceKind, SpaceState, Color

# Vision and layouts
from .vision import look
from .layouts import NUM_PRESETS, preset_walls, preset_names

# Persistence
from .persistence import (
    FORMAT_VERSION,
    LoadOptions,
    save_environment,
    load_environment,
    load_environment_into,
)

# Errors
from .errors import (
    SimulationError,
    ConfigError,
    StateError,
    CreatureNotFound,
    ResourceExhausted,
    InvariantViolation,
    OccupiedSpaceError,
    EarlyExit,
)

__version__ = "1.0.0"

# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    # Environment
    'Environment',
    'EnvironmentStats',
    'CreatureView',
    'EnvironmentParams',
    'CreatureParams',

    # Agents
    'Creature',
    'VisionReading',
    'Brain',
    'CreatureAction',
    'SensorType',
    'ENABLED_ACTIONS',
    'ENABLED_SENSORS',
    'NeuralNet',

    # Grid
    'Position',
    'Orientation',
    'SpaceKind',
    'SpaceState',
    'Color',
    'look',
    'NUM_PRESETS',
    'preset_walls',
    'preset_names',

    # Persistence
    'FORMAT_VERSION',
    'LoadOptions',
    'save_environment',
    'load_environment',
    'load_environment_into',

    # Errors
    'SimulationError',
    'ConfigError',
    'StateError',
    'CreatureNotFound',
    'ResourceExhausted',
    'InvariantViolation',
    'OccupiedSpaceError',
    'EarlyExit',
]
