"""
Environment Persistence

JSON snapshots of a whole Environment, plus selective import of parts of a
snapshot into a live board.

SNAPSHOT FORMAT:
    {
        "version": "1.0",
        "params": {...EnvironmentParams...},
        "grid": [["B", "C12", "F", "W", "X7", ...], ...],   # grid[x][y]
        "creatures": [{...Creature...}, ...],               # list order kept
        "counters": {"num_total_creatures": .., "num_kills": .., "num_natural_deaths": ..},
        "time_step": 0,
        "rng_state": {...numpy bit generator state...}
    }

Snapshots are checked completely before anything is changed: a snapshot
that fails to parse or validate raises StateError and the target is left
as it was.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np

from .config import EnvironmentParams
from .creature import Creature
from .environment import Environment
from .errors import ConfigError, StateError
from .space import SpaceKind, SpaceState


FORMAT_VERSION = "1.0"

_BIT_GENERATORS = ('PCG64', 'PCG64DXSM', 'MT19937', 'Philox', 'SFC64')


# =============================================================================
# LOAD OPTIONS
# =============================================================================

@dataclass
class LoadOptions:
    """
    Which parts of a snapshot to import into an existing environment.

    load_all replaces the environment wholesale (including counters,
    time step and RNG state). Otherwise the selected parts are applied in the
    order parameters -> walls -> food -> creatures; a creature always wins a
    cell it shares with an imported wall or food piece.
    """
    load_all: bool = False
    load_parameters: bool = False
    load_creatures: bool = False
    load_walls: bool = False
    load_food: bool = False

    @classmethod
    def everything(cls) -> 'LoadOptions':
        return cls(load_all=True)

    @property
    def selects_anything(self) -> bool:
        return (self.load_all or self.load_parameters or self.load_creatures
                or self.load_walls or self.load_food)


# =============================================================================
# SERIALIZE
# =============================================================================

def environment_to_dict(env: Environment) -> Dict[str, Any]:
    return {
        'version': FORMAT_VERSION,
        'params': env.params.to_dict(),
        'grid': [[space.to_token() for space in column] for column in env.grid],
        'creatures': [c.to_dict() for c in env.creatures],
        'counters': {
            'num_total_creatures': env.num_total_creatures,
            'num_kills': env.num_kills,
            'num_natural_deaths': env.num_natural_deaths,
        },
        'time_step': env.time_step,
        'rng_state': env.rng.bit_generator.state,
    }


def environment_to_json(env: Environment, indent: Optional[int] = None) -> str:
    return json.dumps(environment_to_dict(env), indent=indent)


# =============================================================================
# PARSE & VALIDATE
# =============================================================================

def _check_version(data: Dict[str, Any]):
    """Same major version is compatible."""
    if not isinstance(data, dict):
        raise StateError("Snapshot must be a JSON object")
    version = data.get('version')
    if not isinstance(version, str):
        raise StateError("Snapshot has no format version")
    try:
        major = int(version.split('.')[0])
    except ValueError:
        raise StateError(f"Unreadable snapshot version: {version!r}")
    if major != int(FORMAT_VERSION.split('.')[0]):
        raise StateError(f"Incompatible snapshot version: {version}")


def _parse_params(data: Dict[str, Any]) -> EnvironmentParams:
    try:
        params = EnvironmentParams.from_dict(data['params'])
        params.validate()
    except ConfigError as e:
        raise StateError(f"Snapshot parameters are invalid: {e}") from e
    except (AttributeError, KeyError, TypeError) as e:
        raise StateError(f"Snapshot parameters are malformed: {e}") from e
    return params


def _parse_grid(raw: Any, width: int, height: int) -> List[List[SpaceState]]:
    if not isinstance(raw, list) or len(raw) != width:
        raise StateError(f"Snapshot grid must have {width} columns")

    grid = []
    for x, column in enumerate(raw):
        if not isinstance(column, list) or len(column) != height:
            raise StateError(f"Snapshot grid column {x} must have {height} cells")
        try:
            grid.append([SpaceState.from_token(token) for token in column])
        except (ValueError, TypeError) as e:
            raise StateError(f"Malformed cell in grid column {x}: {e}") from e
    return grid


def _parse_creatures(raw: Any) -> List[Creature]:
    if not isinstance(raw, list):
        raise StateError("Snapshot creatures must be a list")

    creatures = []
    seen = set()
    for i, entry in enumerate(raw):
        try:
            creature = Creature.from_dict(entry)
        except ConfigError as e:
            raise StateError(f"Creature entry {i} has invalid parameters: {e}") from e
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StateError(f"Creature entry {i} is malformed: {e}") from e
        if creature.id in seen:
            raise StateError(f"Duplicate creature id {creature.id} in snapshot")
        seen.add(creature.id)
        creatures.append(creature)
    return creatures


def _parse_rng(state: Any) -> np.random.Generator:
    name = state.get('bit_generator') if isinstance(state, dict) else None
    if name not in _BIT_GENERATORS:
        raise StateError(f"Unknown random bit generator: {name!r}")
    try:
        bit_generator = getattr(np.random, name)()
        bit_generator.state = state
    except (KeyError, TypeError, ValueError) as e:
        raise StateError(f"Snapshot RNG state is malformed: {e}") from e
    return np.random.Generator(bit_generator)


def _parse_whole_number(value: Any, name: str) -> int:
    """Non-negative JSON integer; floats, strings and bools are rejected."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise StateError(f"{name} must be an integer (got {value!r})")
    if value < 0:
        raise StateError(f"{name} is negative")
    return value


def _parse_counters(data: Dict[str, Any]) -> Dict[str, int]:
    counters = data.get('counters')
    if counters is None:
        counters = {}
    if not isinstance(counters, dict):
        raise StateError("Snapshot counters must be an object")
    return {
        name: _parse_whole_number(counters.get(name, 0), f"Counter {name}")
        for name in ('num_total_creatures', 'num_kills', 'num_natural_deaths')
    }


def _check_creature_cells(grid: List[List[SpaceState]], creatures: List[Creature]):
    """Every creature stands on its own cell and no creature cell is orphaned."""
    width, height = len(grid), len(grid[0])
    for creature in creatures:
        p = creature.position
        if not (0 <= p.x < width and 0 <= p.y < height):
            raise StateError(f"Creature {creature.id} at ({p.x}, {p.y}) is outside the board")
        if grid[p.x][p.y] != SpaceState.creature(creature.id):
            raise StateError(
                f"Creature {creature.id} at ({p.x}, {p.y}) does not match grid cell "
                f"{grid[p.x][p.y].to_token()}"
            )

    creature_cells = sum(1 for column in grid for space in column if space.is_creature)
    if creature_cells != len(creatures):
        raise StateError(
            f"Grid has {creature_cells} creature cells but snapshot lists {len(creatures)} creatures"
        )


def _decode(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise StateError(f"Snapshot is not valid JSON: {e}") from e
    _check_version(data)
    return data


# =============================================================================
# FULL RESTORE
# =============================================================================

def environment_from_dict(data: Dict[str, Any], verbose: bool = False) -> Environment:
    """
    Rebuild an Environment from environment_to_dict() output.

    Raises:
        StateError: snapshot is corrupt, inconsistent or of another major version
    """
    _check_version(data)
    try:
        params = _parse_params(data)
        grid = _parse_grid(data['grid'], params.env_x_size, params.env_y_size)
        creatures = _parse_creatures(data['creatures'])
        counters = _parse_counters(data)
        time_step = _parse_whole_number(data.get('time_step', 0), "time_step")
        rng = _parse_rng(data['rng_state']) if 'rng_state' in data else np.random.default_rng()
    except StateError:
        raise
    except KeyError as e:
        raise StateError(f"Snapshot is missing {e}") from e
    except (AttributeError, TypeError, ValueError) as e:
        raise StateError(f"Snapshot is malformed: {e}") from e

    _check_creature_cells(grid, creatures)

    env = Environment(params, rng=rng, verbose=verbose)
    env.grid = grid
    env.creatures = creatures
    env._count_spaces()
    env.time_step = time_step
    env.num_total_creatures = max([counters['num_total_creatures']] + [c.id + 1 for c in creatures])
    env.num_kills = counters['num_kills']
    env.num_natural_deaths = counters['num_natural_deaths']

    if verbose:
        print(f"[Persistence] Restored {env}")
    return env


def environment_from_json(text: str, verbose: bool = False) -> Environment:
    return environment_from_dict(_decode(text), verbose=verbose)


# =============================================================================
# PARTIAL LOAD
# =============================================================================

def load_into(env: Environment,
              data: Dict[str, Any],
              options: Optional[LoadOptions] = None):
    """
    Import the parts of `data` selected by `options` into `env`.

    If parameters are loaded and the board size changes, the board is
    cleared to blank before walls, food and creatures are re-applied.
    Current creatures that still fit are kept unless creatures are loaded.

    Raises:
        StateError: snapshot is invalid; `env` is unchanged
    """
    options = options or LoadOptions.everything()

    if options.load_all:
        restored = environment_from_dict(data, verbose=env.verbose)
        env.params = restored.params
        env.rng = restored.rng
        env.grid = restored.grid
        env.creatures = restored.creatures
        env.time_step = restored.time_step
        env.num_total_creatures = restored.num_total_creatures
        env.num_kills = restored.num_kills
        env.num_natural_deaths = restored.num_natural_deaths
        env._count_spaces()
        return

    if not options.selects_anything:
        if env.verbose:
            print("[Persistence] Nothing selected to load")
        return

    _check_version(data)
    try:
        src_params = _parse_params(data)
        src_grid = _parse_grid(data['grid'], src_params.env_x_size, src_params.env_y_size)
        src_creatures = _parse_creatures(data['creatures']) if options.load_creatures else []
        src_total = _parse_counters(data)['num_total_creatures'] if options.load_creatures else 0
    except KeyError as e:
        raise StateError(f"Snapshot is missing {e}") from e
    if options.load_creatures:
        _check_creature_cells(src_grid, src_creatures)

    params = src_params if options.load_parameters else env.params
    width, height = params.env_x_size, params.env_y_size
    resized = (width, height) != (env.width, env.height)

    if resized:
        grid = [[SpaceState.blank() for _ in range(height)] for _ in range(width)]
    else:
        grid = [list(column) for column in env.grid]
        # Creatures are re-applied last
        for column in grid:
            for y, space in enumerate(column):
                if space.is_creature:
                    column[y] = SpaceState.blank()

    if options.load_walls:
        _replace_kind(grid, src_grid, SpaceKind.WALL)
    if options.load_food:
        _replace_kind(grid, src_grid, SpaceKind.FOOD)

    if options.load_creatures:
        creatures = src_creatures
        for c in creatures:
            if not (0 <= c.position.x < width and 0 <= c.position.y < height):
                raise StateError(f"Creature {c.id} does not fit on a {width}x{height} board")
    else:
        creatures = [c for c in env.creatures
                     if 0 <= c.position.x < width and 0 <= c.position.y < height]

    for c in creatures:
        grid[c.position.x][c.position.y] = SpaceState.creature(c.id)

    # Nothing above touched env
    dropped = len(env.creatures) - len(creatures) if not options.load_creatures else 0
    env.params = params
    env.grid = grid
    env.creatures = creatures
    env.num_total_creatures = max([env.num_total_creatures, src_total]
                                  + [c.id + 1 for c in creatures])
    env._count_spaces()
    env.update_creature_vision()

    if env.verbose:
        if resized:
            print(f"[Persistence] Board resized to {width}x{height}; cleared before loading")
        if dropped:
            print(f"[Persistence] {dropped} creature(s) no longer fit and were removed")
        print(f"[Persistence] Loaded {options} -> {env}")


def _replace_kind(grid: List[List[SpaceState]],
                  src_grid: List[List[SpaceState]],
                  kind: SpaceKind):
    """Clear every `kind` cell in grid, then copy `kind` cells from src_grid that fit."""
    for column in grid:
        for y, space in enumerate(column):
            if space.kind == kind:
                column[y] = SpaceState.blank()

    width, height = len(grid), len(grid[0])
    for x, column in enumerate(src_grid[:width]):
        for y, space in enumerate(column[:height]):
            if space.kind == kind:
                grid[x][y] = space


def load_into_from_json(env: Environment, text: str, options: Optional[LoadOptions] = None):
    load_into(env, _decode(text), options)


# =============================================================================
# FILES
# =============================================================================

def save_environment(env: Environment,
                     filepath: Union[str, Path],
                     indent: Optional[int] = None) -> Path:
    """Write a JSON snapshot (UTF-8). Parent directories are created."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(environment_to_json(env, indent=indent), encoding='utf-8')
    if env.verbose:
        print(f"[Persistence] Saved step {env.time_step} to {path}")
    return path


def _read_snapshot(filepath: Union[str, Path]) -> str:
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Save file not found: {path}")
    return path.read_text(encoding='utf-8')


def load_environment(filepath: Union[str, Path], verbose: bool = False) -> Environment:
    """
    Read a snapshot written by save_environment().

    Raises:
        FileNotFoundError: no such file
        StateError: file content is not a valid snapshot
    """
    env = environment_from_json(_read_snapshot(filepath), verbose=verbose)
    if verbose:
        print(f"[Persistence] Loaded {filepath}")
    return env


def load_environment_into(env: Environment,
                          filepath: Union[str, Path],
                          options: Optional[LoadOptions] = None):
    load_into_from_json(env, _read_snapshot(filepath), options)


__all__ = [
    'FORMAT_VERSION',
    'LoadOptions',
    'environment_to_dict',
    'environment_from_dict',
    'environment_to_json',
    'environment_from_json',
    'load_into',
    'load_into_from_json',
    'save_environment',
    'load_environment',
    'load_environment_into',
]
