"""
Environment - the grid world and its tick engine

The Environment owns:
- The grid: grid[x][y] of SpaceState, fixed size for the life of the board
- The ordered list of live creatures
- World counters (time step, kills, natural deaths, running id total)

Every grid write goes through _set_space(), which keeps the per-kind space
counters in step with the grid. A full rescan re-audits them at the start
and end of every tick.

TICK ORDER (advance_step):
    1. Rescan the grid; age every fight marker, clearing expired ones
    2. Each creature in list order senses, decides and acts
    3.   Moves resolve against the grid (wrapping at the edges)
    4.   Kills resolve against the creature's vision reading
    5.   Reproduction queues offspring (placed in step 7)
    6. Dead creatures are removed (fight marker or blank cell)
    7. Queued offspring are placed near their parent, or dropped
    8. New food is scattered
    9. Every creature's vision is recomputed
    10. time_step advances

All randomness comes from the single numpy Generator in self.rng, so a
seeded environment replays identically.
"""

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

import numpy as np

from .config import (
    EnvironmentParams,
    FIGHT_PERSISTENCE_STEPS,
    MAX_OFFSPRING_SPAWN_DIST,
    MAX_VIEW_DISTANCE,
    RANDOM_SPACE_ATTEMPTS,
    MAX_AGE,
    MAX_ENERGY,
)
from .creature import Creature
from .dna import CreatureAction
from .errors import (
    ConfigError,
    CreatureNotFound,
    EarlyExit,
    InvariantViolation,
    OccupiedSpaceError,
    ResourceExhausted,
)
from .layouts import check_preset_size, preset_walls
from .space import Color, Orientation, Position, SpaceKind, SpaceState
from .vision import look


# Offspring placement tries this many random nearby cells before giving up
OFFSPRING_PLACEMENT_ATTEMPTS = 9


# =============================================================================
# READ-ONLY SNAPSHOTS
# =============================================================================

@dataclass(frozen=True)
class CreatureView:
    """What a front-end needs to draw or list one creature."""
    id: int
    position: Position
    orientation: Orientation
    energy: int
    age: int
    color: Color
    last_action: CreatureAction
    kills: int


@dataclass(frozen=True)
class EnvironmentStats:
    """Point-in-time summary of the world."""
    time_step: int
    num_creatures: int
    num_food: int
    num_walls: int
    num_blank: int
    num_fight: int
    num_total_creatures: int
    num_kills: int
    num_natural_deaths: int
    mean_energy: float
    mean_age: float
    max_creature_id: Optional[int]

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# ENVIRONMENT
# =============================================================================

class Environment:
    """
    2D grid world populated by creatures, food, walls and fight markers.

    Coordinate system:
    - (0,0) is top-left
    - x increases right
    - y increases down

    Use Environment.new_random() to build a populated board; the constructor
    alone produces an empty (all blank) board.
    """

    def __init__(self,
                 params: Optional[EnvironmentParams] = None,
                 rng: Optional[np.random.Generator] = None,
                 verbose: bool = False):
        self.params = params or EnvironmentParams()
        self.params.validate()

        self.rng = rng if rng is not None else np.random.default_rng()
        self.verbose = verbose

        self.grid: List[List[SpaceState]] = _blank_grid(self.width, self.height)
        self.creatures: List[Creature] = []

        self.time_step = 0
        self.num_total_creatures = 0     # Running id total; ids are never reused
        self.num_kills = 0
        self.num_natural_deaths = 0

        self._counts: Dict[SpaceKind, int] = {}
        self._count_spaces()

    @classmethod
    def new_random(cls,
                   params: Optional[EnvironmentParams] = None,
                   preset: Optional[int] = None,
                   seed: Optional[int] = None,
                   rng: Optional[np.random.Generator] = None,
                   verbose: bool = False) -> 'Environment':
        """
        Build a populated environment.

        Args:
            params: board size, starting counts and energy economics
            preset: index of a built-in wall layout (replaces random walls)
            seed: seed for a fresh numpy Generator (ignored if rng is given)
            rng: Generator to use for every random decision
            verbose: print diagnostics

        Raises:
            ConfigError: invalid params, preset index or preset board size
        """
        params = params or EnvironmentParams()
        params.validate()

        walls: Optional[List[Position]] = None
        if preset is not None:
            check_preset_size(params.env_x_size, params.env_y_size)
            walls = preset_walls(preset)
            needed = len(walls) + params.num_start_food + params.num_start_creatures
            if needed > params.area:
                raise ConfigError(
                    f"Preset {preset} leaves no room for {params.num_start_food} food "
                    f"and {params.num_start_creatures} creatures"
                )

        if rng is None:
            rng = np.random.default_rng(seed)

        env = cls(params, rng=rng, verbose=verbose)

        if walls is not None:
            for position in walls:
                env._set_space(position, SpaceState.wall())
        else:
            for _ in range(params.num_start_walls):
                env._set_space(env.get_rand_blank_space(), SpaceState.wall())

        for _ in range(params.num_start_food):
            env._set_space(env.get_rand_blank_space(), SpaceState.food())

        for _ in range(params.num_start_creatures):
            env.spawn_creature(env.get_rand_blank_space(), Orientation.random(env.rng))

        env.update_creature_vision()
        env._log(f"Created {env.width}x{env.height} board: {env.num_creatures} creatures, "
                 f"{env.num_food} food, {env.num_walls} walls")
        return env

    # ============= SHAPE & COUNTERS ================

    @property
    def width(self) -> int:
        return self.params.env_x_size

    @property
    def height(self) -> int:
        return self.params.env_y_size

    @property
    def num_blank(self) -> int:
        return self._counts[SpaceKind.BLANK]

    @property
    def num_food(self) -> int:
        return self._counts[SpaceKind.FOOD]

    @property
    def num_walls(self) -> int:
        return self._counts[SpaceKind.WALL]

    @property
    def num_creatures(self) -> int:
        return self._counts[SpaceKind.CREATURE]

    @property
    def num_fight(self) -> int:
        return self._counts[SpaceKind.FIGHT]

    def _count_spaces(self) -> bool:
        """Recount every kind from the grid. Returns True if the tracked counts had drifted."""
        counts = {kind: 0 for kind in SpaceKind}
        for column in self.grid:
            for space in column:
                counts[space.kind] += 1
        drifted = bool(self._counts) and counts != self._counts
        self._counts = counts
        return drifted

    def _refresh_spaces(self):
        """Tick step 1: audit counters and age fight markers."""
        self._count_spaces()
        for x, column in enumerate(self.grid):
            for y, space in enumerate(column):
                if space.kind == SpaceKind.FIGHT:
                    ttl = space.value - 1
                    self._set_space(Position(x, y),
                                    SpaceState.fight(ttl) if ttl > 0 else SpaceState.blank())

    def _set_space(self, position: Position, state: SpaceState):
        """Single write path for grid cells."""
        old = self.grid[position.x][position.y]
        self._counts[old.kind] -= 1
        self._counts[state.kind] += 1
        self.grid[position.x][position.y] = state

    # ============= LOOKUPS ================

    def in_bounds(self, position: Position) -> bool:
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def _check_bounds(self, position: Position):
        if not self.in_bounds(position):
            raise IndexError(
                f"Position ({position.x}, {position.y}) is outside the "
                f"{self.width}x{self.height} board"
            )

    def get_space(self, position: Position) -> SpaceState:
        self._check_bounds(position)
        return self.grid[position.x][position.y]

    def get_creature_index_from_id(self, creature_id: int) -> int:
        """
        Index of the creature with `creature_id` in self.creatures.

        Raises:
            CreatureNotFound: no live creature has that id
        """
        for idx, creature in enumerate(self.creatures):
            if creature.id == creature_id:
                return idx
        raise CreatureNotFound(creature_id)

    def get_creature(self, creature_id: int) -> Creature:
        return self.creatures[self.get_creature_index_from_id(creature_id)]

    def creature_views(self) -> List[CreatureView]:
        return [
            CreatureView(
                id=c.id,
                position=c.position,
                orientation=c.orientation,
                energy=c.energy,
                age=c.age,
                color=c.color,
                last_action=c.last_action,
                kills=c.kills,
            )
            for c in self.creatures
        ]

    def stats(self) -> EnvironmentStats:
        n = len(self.creatures)
        return EnvironmentStats(
            time_step=self.time_step,
            num_creatures=self.num_creatures,
            num_food=self.num_food,
            num_walls=self.num_walls,
            num_blank=self.num_blank,
            num_fight=self.num_fight,
            num_total_creatures=self.num_total_creatures,
            num_kills=self.num_kills,
            num_natural_deaths=self.num_natural_deaths,
            mean_energy=sum(c.energy for c in self.creatures) / n if n else 0.0,
            mean_age=sum(c.age for c in self.creatures) / n if n else 0.0,
            max_creature_id=max((c.id for c in self.creatures), default=None),
        )

    # ============= SINGLE-CELL MUTATORS ================

    def _check_not_creature(self, position: Position):
        self._check_bounds(position)
        space = self.grid[position.x][position.y]
        if space.is_creature:
            raise OccupiedSpaceError(position.x, position.y, space.creature_id)

    def add_food_space(self, position: Position):
        self._check_not_creature(position)
        self._set_space(position, SpaceState.food())

    def add_wall_space(self, position: Position):
        self._check_not_creature(position)
        self._set_space(position, SpaceState.wall())

    def add_blank_space(self, position: Position):
        self._check_not_creature(position)
        self._set_space(position, SpaceState.blank())

    def add_creature(self, creature: Creature):
        """
        Put `creature` on the board at its stored position.

        Whatever non-creature space was there is replaced.

        Raises:
            IndexError: position outside the board
            OccupiedSpaceError: another creature holds that cell
            InvariantViolation: a creature with the same id already exists
        """
        self._check_not_creature(creature.position)
        if any(c.id == creature.id for c in self.creatures):
            raise InvariantViolation(f"Creature id {creature.id} already exists")

        self._set_space(creature.position, SpaceState.creature(creature.id))
        self.creatures.append(creature)
        self.num_total_creatures = max(self.num_total_creatures, creature.id + 1)

    def spawn_creature(self,
                       position: Position,
                       orientation: Optional[Orientation] = None) -> Creature:
        """Create a creature with a random brain and the next free id."""
        if orientation is None:
            orientation = Orientation.random(self.rng)
        creature = Creature.new(self.num_total_creatures, self.params.creature_params(),
                                self.rng, position=position, orientation=orientation)
        self.add_creature(creature)
        return creature

    # ============= PLACEMENT ================

    def get_rand_blank_space(self) -> Position:
        """
        Uniformly random blank cell.

        Tries RANDOM_SPACE_ATTEMPTS random draws, then falls back to choosing
        among every remaining blank cell.

        Raises:
            ResourceExhausted: the board has no blank cells
        """
        if self.num_blank == 0:
            raise ResourceExhausted("No blank spaces left on the board")

        for _ in range(RANDOM_SPACE_ATTEMPTS):
            x = int(self.rng.integers(0, self.width))
            y = int(self.rng.integers(0, self.height))
            if self.grid[x][y].is_blank:
                return Position(x, y)

        blanks = [Position(x, y)
                  for x, column in enumerate(self.grid)
                  for y, space in enumerate(column) if space.is_blank]
        if not blanks:
            raise ResourceExhausted("No blank spaces left on the board")
        return blanks[int(self.rng.integers(0, len(blanks)))]

    def _get_blank_space_near(self, center: Position) -> Position:
        """Random blank cell within MAX_OFFSPRING_SPAWN_DIST of `center`, clamped to the board."""
        for _ in range(OFFSPRING_PLACEMENT_ATTEMPTS):
            dx, dy = self.rng.integers(-MAX_OFFSPRING_SPAWN_DIST, MAX_OFFSPRING_SPAWN_DIST + 1, size=2)
            x = min(max(center.x + int(dx), 0), self.width - 1)
            y = min(max(center.y + int(dy), 0), self.height - 1)
            if self.grid[x][y].is_blank:
                return Position(x, y)
        raise ResourceExhausted(f"No blank space near ({center.x}, {center.y})")

    def _next_position(self,
                       position: Position,
                       orientation: Orientation,
                       action: CreatureAction) -> Position:
        """Cell a move action targets. Moves are relative to the creature and wrap at the edges."""
        if action == CreatureAction.MOVE_FORWARDS:
            dx, dy = orientation.delta
        elif action == CreatureAction.MOVE_BACKWARDS:
            dx, dy = orientation.delta
            dx, dy = -dx, -dy
        elif action == CreatureAction.MOVE_RIGHT:
            dx, dy = orientation.rotate_cw().delta
        elif action == CreatureAction.MOVE_LEFT:
            dx, dy = orientation.rotate_ccw().delta
        else:
            return position
        return Position((position.x + dx) % self.width, (position.y + dy) % self.height)

    # ============= TICK ================

    def advance_step(self):
        """Advance the world by one tick."""
        self._refresh_spaces()

        offspring: List[Creature] = []
        for creature in self.creatures:
            if creature.is_dead:
                continue

            creature.sense_surroundings()
            action = creature.perform_next_action()

            if action.is_move:
                self._resolve_move(creature, action)
            elif action == CreatureAction.KILL:
                self._resolve_kill(creature)
            elif action == CreatureAction.REPRODUCE:
                offspring.extend(self._reproduce(creature))

        self._remove_dead_creatures()
        self._place_offspring(offspring)
        self._add_new_food_pieces()
        self.update_creature_vision()

        if self._count_spaces():
            self._log(f"Space counters drifted during step {self.time_step}; recounted")

        self.time_step += 1

    def run_n_steps(self, num_steps: int):
        """
        Run up to `num_steps` ticks.

        Raises:
            EarlyExit: every creature died; carries the number of ticks run
        """
        for step in range(num_steps):
            self.advance_step()
            if not self.creatures:
                self._log(f"Stopping after {step + 1} steps: no creatures left")
                raise EarlyExit(step + 1)

    def _resolve_move(self, creature: Creature, action: CreatureAction):
        target = self._next_position(creature.position, creature.orientation, action)
        space = self.grid[target.x][target.y]

        if space.kind == SpaceKind.FOOD:
            creature.eat_food(self.params.energy_per_food_piece)
        elif not space.is_passable:
            # Walls and other creatures block; the move cost is not refunded
            return

        self._set_space(creature.position, SpaceState.blank())
        self._set_space(target, SpaceState.creature(creature.id))
        creature.set_position(target.x, target.y)

    def _resolve_kill(self, attacker: Creature):
        vision = attacker.vision
        if not (vision.in_view and vision.distance == 1 and vision.space.is_creature):
            return

        try:
            victim = self.get_creature(vision.space.creature_id)
        except CreatureNotFound:
            return
        if victim.is_dead:
            return

        victim.kill()
        attacker.eat_food(self.params.energy_per_kill)
        attacker.set_killer()

    def _reproduce(self, parent: Creature) -> List[Creature]:
        """Queue 1..max_offspring_per_reproduce mutated children of `parent`."""
        count = int(self.rng.integers(1, self.params.max_offspring_per_reproduce + 1))
        children = []
        for _ in range(count):
            child_id = self.num_total_creatures
            self.num_total_creatures += 1
            children.append(
                Creature.new_offspring(child_id, parent, self.params.mutation_prob, self.rng)
            )
        return children

    def _remove_dead_creatures(self):
        survivors = []
        for creature in self.creatures:
            if not creature.is_dead:
                survivors.append(creature)
                continue

            position = creature.position
            if creature.was_killed:
                self._set_space(position, SpaceState.fight(FIGHT_PERSISTENCE_STEPS))
                self.num_kills += 1
            else:
                self._set_space(position, SpaceState.blank())
                self.num_natural_deaths += 1
        self.creatures = survivors

    def _place_offspring(self, offspring: List[Creature]):
        for child in offspring:
            try:
                position = self._get_blank_space_near(child.position)
            except ResourceExhausted:
                self._log(f"No room for offspring {child.id}; dropped")
                continue
            child.set_position(position.x, position.y)
            self.add_creature(child)

    def _add_new_food_pieces(self):
        avg = self.params.avg_new_food_per_tick
        if avg < 1.0:
            count = 1 if self.rng.random() < avg else 0
        else:
            count = int(round(self.rng.uniform(0.0, 2.0 * avg)))

        for _ in range(count):
            try:
                position = self.get_rand_blank_space()
            except ResourceExhausted:
                # Full board
                break
            self._set_space(position, SpaceState.food())

    def update_creature_vision(self):
        colors = {c.id: c.color for c in self.creatures}
        for creature in self.creatures:
            creature.set_vision(
                look(self.grid, creature.position, creature.orientation,
                     colors.__getitem__, MAX_VIEW_DISTANCE)
            )

    # ============= CONSISTENCY ================

    def check_invariants(self):
        """
        Verify occupancy, conservation and bounds.

        Raises:
            InvariantViolation: describing the first problem found
        """
        seen_ids = set()
        for creature in self.creatures:
            if creature.id in seen_ids:
                raise InvariantViolation(f"Duplicate creature id {creature.id}")
            seen_ids.add(creature.id)

            if not self.in_bounds(creature.position):
                raise InvariantViolation(f"{creature} is off the board")
            space = self.grid[creature.position.x][creature.position.y]
            if space != SpaceState.creature(creature.id):
                raise InvariantViolation(f"{creature} stands on {space}")
            if not 0 <= creature.energy <= MAX_ENERGY:
                raise InvariantViolation(f"{creature} energy out of range")
            if not 0 <= creature.age <= MAX_AGE:
                raise InvariantViolation(f"{creature} age out of range")

        creature_cells = sum(1 for column in self.grid for s in column if s.is_creature)
        if creature_cells != len(self.creatures):
            raise InvariantViolation(
                f"{creature_cells} creature cells but {len(self.creatures)} creatures"
            )
        if sum(self._counts.values()) != self.width * self.height:
            raise InvariantViolation("Space counters do not add up to the board area")

    # ============= SERIALIZATION ================

    def to_dict(self) -> dict:
        from .persistence import environment_to_dict
        return environment_to_dict(self)

    @classmethod
    def from_dict(cls, data: dict, verbose: bool = False) -> 'Environment':
        from .persistence import environment_from_dict
        return environment_from_dict(data, verbose=verbose)

    def to_json(self, indent: Optional[int] = None) -> str:
        from .persistence import environment_to_json
        return environment_to_json(self, indent=indent)

    @classmethod
    def from_json(cls, text: str, verbose: bool = False) -> 'Environment':
        from .persistence import environment_from_json
        return environment_from_json(text, verbose=verbose)

    def load_from_json(self, text: str, options=None):
        """Import selected parts of a snapshot into this environment. See persistence.LoadOptions."""
        from .persistence import load_into_from_json
        load_into_from_json(self, text, options)

    # ============= DIAGNOSTICS ================

    def _log(self, message: str):
        if self.verbose:
            print(f"[Environment] {message}")

    def show(self) -> str:
        """Text picture of the board: creature ids mod 1000, '#' food, '|-|' walls, ' x ' fights."""
        lines = ['-' * (self.width * 3 + 2)]
        for y in range(self.height):
            row = []
            for x in range(self.width):
                space = self.grid[x][y]
                if space.kind == SpaceKind.CREATURE:
                    row.append(f"{space.value % 1000:3}")
                else:
                    row.append(_SHOW_GLYPHS[space.kind])
            lines.append('|' + ''.join(row) + '|')
        lines.append('-' * (self.width * 3 + 2))
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return (f"Environment({self.width}x{self.height}, step={self.time_step}, "
                f"creatures={len(self.creatures)}, food={self.num_food}, walls={self.num_walls})")


_SHOW_GLYPHS = {
    SpaceKind.BLANK: '   ',
    SpaceKind.FOOD: ' # ',
    SpaceKind.WALL: '|-|',
    SpaceKind.FIGHT: ' x ',
}


def _blank_grid(width: int, height: int) -> List[List[SpaceState]]:
    return [[SpaceState.blank() for _ in range(height)] for _ in range(width)]


__all__ = [
    'Environment',
    'EnvironmentStats',
    'CreatureView',
    'OFFSPRING_PLACEMENT_ATTEMPTS',
]
