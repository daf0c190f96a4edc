"""
Grid Primitives

Value types shared by the environment, creatures and vision:
- Position: integer grid coordinates
- Orientation: which way a creature faces, with rotation
- SpaceKind / SpaceState: the tagged contents of one grid cell
- Color: 8-bit RGB with inheritance drift

Coordinate system:
- (0,0) is top-left
- x increases right
- y increases down
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np

from .config import (
    MIN_COLOR_DEVIATION,
    MAX_COLOR_DEVIATION,
    MIN_COLOR_BRIGHTNESS,
)


# =============================================================================
# POSITION & ORIENTATION
# =============================================================================

@dataclass(frozen=True)
class Position:
    x: int
    y: int

    def to_list(self) -> list:
        return [self.x, self.y]

    @classmethod
    def from_list(cls, v) -> 'Position':
        return cls(int(v[0]), int(v[1]))


class Orientation(Enum):
    """Facing direction. Clockwise order is UP -> RIGHT -> DOWN -> LEFT."""
    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"

    def rotate_cw(self) -> 'Orientation':
        return _CW_ORDER[(_CW_ORDER.index(self) + 1) % 4]

    def rotate_ccw(self) -> 'Orientation':
        return _CW_ORDER[(_CW_ORDER.index(self) - 1) % 4]

    @property
    def delta(self) -> Tuple[int, int]:
        """Unit step (dx, dy) in the facing direction."""
        return _DELTAS[self]

    @property
    def code(self) -> float:
        """Numeric value fed to the brain."""
        return _ORIENTATION_CODES[self]

    @classmethod
    def random(cls, rng: np.random.Generator) -> 'Orientation':
        return _CW_ORDER[int(rng.integers(0, 4))]


_CW_ORDER = (Orientation.UP, Orientation.RIGHT, Orientation.DOWN, Orientation.LEFT)

_DELTAS = {
    Orientation.UP: (0, -1),
    Orientation.RIGHT: (1, 0),
    Orientation.DOWN: (0, 1),
    Orientation.LEFT: (-1, 0),
}

_ORIENTATION_CODES = {
    Orientation.UP: 0.0,
    Orientation.LEFT: 1.0,
    Orientation.DOWN: 2.0,
    Orientation.RIGHT: 3.0,
}


# =============================================================================
# SPACE STATES
# =============================================================================

class SpaceKind(Enum):
    """What occupies a grid cell."""
    BLANK = "B"
    CREATURE = "C"      # value = creature id
    FOOD = "F"
    WALL = "W"
    FIGHT = "X"         # value = remaining steps before the marker clears


@dataclass(frozen=True)
class SpaceState:
    """
    Contents of a single cell.

    Creature cells store only the id of the occupant; the environment resolves
    it to the live creature with an id lookup.
    """
    kind: SpaceKind = SpaceKind.BLANK
    value: int = 0

    @classmethod
    def blank(cls) -> 'SpaceState':
        return _BLANK

    @classmethod
    def food(cls) -> 'SpaceState':
        return _FOOD

    @classmethod
    def wall(cls) -> 'SpaceState':
        return _WALL

    @classmethod
    def creature(cls, creature_id: int) -> 'SpaceState':
        return cls(SpaceKind.CREATURE, int(creature_id))

    @classmethod
    def fight(cls, ttl: int) -> 'SpaceState':
        return cls(SpaceKind.FIGHT, int(ttl))

    @property
    def is_blank(self) -> bool:
        return self.kind == SpaceKind.BLANK

    @property
    def is_creature(self) -> bool:
        return self.kind == SpaceKind.CREATURE

    @property
    def creature_id(self) -> int:
        if self.kind != SpaceKind.CREATURE:
            raise ValueError(f"{self} does not hold a creature")
        return self.value

    @property
    def is_passable(self) -> bool:
        """Blank and fight spaces can be walked into and seen through."""
        return self.kind in (SpaceKind.BLANK, SpaceKind.FIGHT)

    def to_token(self) -> str:
        """Compact string form: 'B', 'F', 'W', 'C<id>', 'X<ttl>'."""
        if self.kind in (SpaceKind.CREATURE, SpaceKind.FIGHT):
            return f"{self.kind.value}{self.value}"
        return self.kind.value

    @classmethod
    def from_token(cls, token: str) -> 'SpaceState':
        if not isinstance(token, str) or not token:
            raise ValueError(f"Invalid space token: {token!r}")
        kind = SpaceKind(token[0])
        if kind in (SpaceKind.CREATURE, SpaceKind.FIGHT):
            value = int(token[1:])
            if value < 0:
                raise ValueError(f"Invalid space token: {token!r}")
            return cls(kind, value)
        if len(token) != 1:
            raise ValueError(f"Invalid space token: {token!r}")
        return {SpaceKind.BLANK: _BLANK, SpaceKind.FOOD: _FOOD, SpaceKind.WALL: _WALL}[kind]

    def __repr__(self) -> str:
        return f"SpaceState({self.to_token()})"


_BLANK = SpaceState(SpaceKind.BLANK)
_FOOD = SpaceState(SpaceKind.FOOD)
_WALL = SpaceState(SpaceKind.WALL)


# =============================================================================
# COLOR
# =============================================================================

@dataclass(frozen=True)
class Color:
    red: int
    green: int
    blue: int

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.red, self.green, self.blue)

    @classmethod
    def from_seq(cls, v) -> 'Color':
        r, g, b = (int(c) for c in v)
        for c in (r, g, b):
            if not 0 <= c <= 255:
                raise ValueError(f"Color channel out of range: {c}")
        return cls(r, g, b)

    def shifted(self, red: int = 0, green: int = 0, blue: int = 0) -> 'Color':
        """Saturating per-channel add."""
        return Color(
            _clip_channel(self.red + red),
            _clip_channel(self.green + green),
            _clip_channel(self.blue + blue),
        )

    def mutated(self, mutation_prob: float, rng: np.random.Generator) -> 'Color':
        """
        Return an inherited colour.

        Each channel independently drifts by a random amount in
        [MIN_COLOR_DEVIATION, MAX_COLOR_DEVIATION] with probability
        `mutation_prob`. Colours too dark to see are brightened so the sum of
        channels reaches the floor.
        """
        channels = [self.red, self.green, self.blue]
        for i in range(3):
            if rng.random() < mutation_prob:
                deviation = int(rng.integers(MIN_COLOR_DEVIATION, MAX_COLOR_DEVIATION + 1))
                channels[i] = _clip_channel(channels[i] + deviation)

        total = sum(channels)
        if total < MIN_COLOR_BRIGHTNESS:
            boost = (MIN_COLOR_BRIGHTNESS - total) // 3
            channels = [c + boost for c in channels]

        return Color(*channels)


def _clip_channel(v: int) -> int:
    return max(0, min(255, v))


__all__ = [
    'Position',
    'Orientation',
    'SpaceKind',
    'SpaceState',
    'Color',
]
