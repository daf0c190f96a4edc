"""
Simulation Configuration

Module-level constants for creatures, brains and the environment, plus the
parameter dataclasses handed to Environment construction.

Anything a front-end may want to tweak lives on EnvironmentParams; the
constants below are fixed properties of the simulation rules.
"""

from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Tuple

from .errors import ConfigError


# =============================================================================
# CREATURE CONSTANTS
# =============================================================================

DEFAULT_ENERGY_LEVEL = 40           # Energy a creature is "born" with
MAX_ENERGY = 200                    # Energy cap
MAX_AGE = 200                       # Creature dies when it reaches this age

# Energy must be strictly above this to trigger a reproduce event
REPRODUCE_ENERGY_THRESHOLD = DEFAULT_ENERGY_LEVEL + 1
DEFAULT_REPRODUCE_ENERGY_COST = DEFAULT_ENERGY_LEVEL

DEFAULT_MOVE_ENERGY_COST = 1
DEFAULT_ROTATE_ENERGY_COST = 1
DEFAULT_KILL_ENERGY_COST = 1

DEFAULT_CREATURE_COLOR: Tuple[int, int, int] = (0, 75, 255)   # Blue

# Sensor value used for every vision input when nothing is in view
VISION_INVALID_VALUE = -1e6

MIN_COLOR_DEVIATION = -100
MAX_COLOR_DEVIATION = 100
MIN_COLOR_BRIGHTNESS = 255          # r + g + b floor after mutation
KILLER_COLOR_SHIFT = 10


# =============================================================================
# BRAIN CONSTANTS
# =============================================================================

BRAIN_HIDDEN_LAYERS: Tuple[int, ...] = (10, 10)
BRAIN_MIN_INIT_VALUE = -50.0
BRAIN_MAX_INIT_VALUE = 50.0


# =============================================================================
# ENVIRONMENT CONSTANTS
# =============================================================================

DEFAULT_ENERGY_PER_FOOD = 40
DEFAULT_ENERGY_PER_KILL = 30        # Less than food to encourage scavenging
DEFAULT_MUTATION_PROB = 0.02
DEFAULT_NEW_FOOD_PER_TICK = 1.0
DEFAULT_MAX_OFFSPRING = 2

MAX_OFFSPRING_SPAWN_DIST = 3        # Offspring land within this many cells of the parent
MAX_VIEW_DISTANCE = 5

FOOD_COLOR: Tuple[int, int, int] = (40, 255, 40)
WALL_COLOR: Tuple[int, int, int] = (200, 200, 200)

FIGHT_PERSISTENCE_STEPS = 20
RANDOM_SPACE_ATTEMPTS = 10_000
MAX_ENV_SIZE = 1024

PRESET_ENV_COLS = 64
PRESET_ENV_ROWS = 64


# =============================================================================
# PARAMETER OBJECTS
# =============================================================================

def _from_known_fields(cls, data: Dict[str, Any]):
    """Build a dataclass from a dict, ignoring unknown keys."""
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class CreatureParams:
    """Per-creature energy economics. Copied from parent to offspring."""
    reproduce_energy_cost: int = DEFAULT_REPRODUCE_ENERGY_COST
    move_energy_cost: int = DEFAULT_MOVE_ENERGY_COST
    rotate_energy_cost: int = DEFAULT_ROTATE_ENERGY_COST
    kill_energy_cost: int = DEFAULT_KILL_ENERGY_COST
    starting_energy: int = DEFAULT_ENERGY_LEVEL
    violence_color_mode: bool = False   # Colour tracks violence instead of drifting

    def validate(self):
        for name in ('reproduce_energy_cost', 'move_energy_cost',
                     'rotate_energy_cost', 'kill_energy_cost'):
            value = getattr(self, name)
            if value < 0:
                raise ConfigError(f"{name} must be >= 0 (got {value})")
        if not 1 <= self.starting_energy <= MAX_ENERGY:
            raise ConfigError(
                f"starting_energy must be in [1, {MAX_ENERGY}] (got {self.starting_energy})"
            )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> 'CreatureParams':
        return _from_known_fields(cls, d)


@dataclass
class EnvironmentParams:
    """
    Everything that can be specified when creating a new environment.

    Sizes are in grid spaces. `avg_new_food_per_tick` below 1 is treated as a
    per-tick probability of one new food piece.
    """
    env_x_size: int = 50
    env_y_size: int = 50
    num_start_creatures: int = 100
    num_start_food: int = 150
    num_start_walls: int = 200
    energy_per_food_piece: int = DEFAULT_ENERGY_PER_FOOD
    energy_per_kill: int = DEFAULT_ENERGY_PER_KILL
    max_offspring_per_reproduce: int = DEFAULT_MAX_OFFSPRING
    mutation_prob: float = DEFAULT_MUTATION_PROB
    avg_new_food_per_tick: float = DEFAULT_NEW_FOOD_PER_TICK

    creature_repro_energy_cost: int = DEFAULT_REPRODUCE_ENERGY_COST
    creature_starting_energy: int = DEFAULT_ENERGY_LEVEL
    creature_move_energy_cost: int = DEFAULT_MOVE_ENERGY_COST
    creature_rotate_energy_cost: int = DEFAULT_ROTATE_ENERGY_COST
    creature_kill_energy_cost: int = DEFAULT_KILL_ENERGY_COST
    violence_color_mode: bool = False

    @property
    def area(self) -> int:
        return self.env_x_size * self.env_y_size

    def creature_params(self) -> CreatureParams:
        """Energy economics handed to every creature spawned from these params."""
        return CreatureParams(
            reproduce_energy_cost=self.creature_repro_energy_cost,
            move_energy_cost=self.creature_move_energy_cost,
            rotate_energy_cost=self.creature_rotate_energy_cost,
            kill_energy_cost=self.creature_kill_energy_cost,
            starting_energy=self.creature_starting_energy,
            violence_color_mode=self.violence_color_mode,
        )

    def validate(self):
        """Raise ConfigError if these parameters cannot build an environment."""
        for name in ('env_x_size', 'env_y_size'):
            value = getattr(self, name)
            if not 1 <= value <= MAX_ENV_SIZE:
                raise ConfigError(f"{name} must be in [1, {MAX_ENV_SIZE}] (got {value})")

        if not 0.0 <= self.mutation_prob <= 1.0:
            raise ConfigError(f"mutation_prob must be in [0, 1] (got {self.mutation_prob})")
        if self.avg_new_food_per_tick < 0:
            raise ConfigError(
                f"avg_new_food_per_tick must be >= 0 (got {self.avg_new_food_per_tick})"
            )
        if self.max_offspring_per_reproduce < 1:
            raise ConfigError(
                f"max_offspring_per_reproduce must be >= 1 (got {self.max_offspring_per_reproduce})"
            )

        counts = {
            'num_start_creatures': self.num_start_creatures,
            'num_start_food': self.num_start_food,
            'num_start_walls': self.num_start_walls,
        }
        for name, value in counts.items():
            if value < 0:
                raise ConfigError(f"{name} must be >= 0 (got {value})")
            if value > self.area:
                raise ConfigError(f"{name} ({value}) exceeds the number of spaces ({self.area})")
        if sum(counts.values()) > self.area:
            raise ConfigError(
                f"Starting creatures, food and walls ({sum(counts.values())}) "
                f"exceed the number of spaces ({self.area})"
            )

        for name in ('energy_per_food_piece', 'energy_per_kill'):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0 (got {getattr(self, name)})")

        self.creature_params().validate()

    @classmethod
    def console_defaults(cls) -> 'EnvironmentParams':
        """Parameters sized for the 64x64 preset layouts."""
        return cls(
            env_x_size=PRESET_ENV_COLS,
            env_y_size=PRESET_ENV_ROWS,
            num_start_creatures=100,
            num_start_food=150,
            num_start_walls=200,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> 'EnvironmentParams':
        """Missing keys fall back to defaults so older snapshots still load."""
        return _from_known_fields(cls, d)


__all__ = [
    'CreatureParams',
    'EnvironmentParams',
    'DEFAULT_ENERGY_LEVEL',
    'MAX_ENERGY',
    'MAX_AGE',
    'REPRODUCE_ENERGY_THRESHOLD',
    'VISION_INVALID_VALUE',
    'MAX_VIEW_DISTANCE',
    'FIGHT_PERSISTENCE_STEPS',
]
