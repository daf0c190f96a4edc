"""
Preset Layouts - built-in wall arrangements

A small fixed catalogue of wall-only layouts, all drawn for a 64x64 board.
Presets only seed walls; food and creatures are always placed at random.

Layouts are generated procedurally (no data files) so the catalogue is
always identical across runs.
"""

from typing import Callable, List, Set, Tuple

from .config import PRESET_ENV_COLS, PRESET_ENV_ROWS
from .errors import ConfigError
from .space import Position


Cell = Tuple[int, int]

W = PRESET_ENV_COLS
H = PRESET_ENV_ROWS


# =============================================================================
# DRAWING HELPERS
# =============================================================================

def _hline(y: int, x0: int, x1: int) -> Set[Cell]:
    return {(x, y) for x in range(x0, x1 + 1)}


def _vline(x: int, y0: int, y1: int) -> Set[Cell]:
    return {(x, y) for y in range(y0, y1 + 1)}


def _rect(x0: int, y0: int, x1: int, y1: int) -> Set[Cell]:
    """Outline of the rectangle with corners (x0, y0) and (x1, y1)."""
    return _hline(y0, x0, x1) | _hline(y1, x0, x1) | _vline(x0, y0, y1) | _vline(x1, y0, y1)


def _block(x0: int, y0: int, x1: int, y1: int) -> Set[Cell]:
    return {(x, y) for x in range(x0, x1 + 1) for y in range(y0, y1 + 1)}


# =============================================================================
# LAYOUTS
# =============================================================================

def _border() -> Set[Cell]:
    """Single wall around the edge of the board."""
    return _rect(0, 0, W - 1, H - 1)


def _cross() -> Set[Cell]:
    """Plus sign through the centre with gaps near each end."""
    cells = _hline(H // 2, 4, W - 5) | _vline(W // 2, 4, H - 5)
    for gap in (10, 11, W - 12, W - 11):
        cells.discard((gap, H // 2))
        cells.discard((W // 2, gap))
    return cells


def _rooms() -> Set[Cell]:
    """Four rooms joined by doorways."""
    cells = _border() | _hline(H // 2, 0, W - 1) | _vline(W // 2, 0, H - 1)
    for door in (W // 4, 3 * W // 4):
        for d in (-1, 0, 1):
            cells.discard((door + d, H // 2))
            cells.discard((W // 2, door + d))
    return cells


def _stripes() -> Set[Cell]:
    """Horizontal bars alternating from the left and right edges."""
    cells: Set[Cell] = set()
    for i, y in enumerate(range(8, H - 4, 8)):
        if i % 2 == 0:
            cells |= _hline(y, 0, W - 12)
        else:
            cells |= _hline(y, 11, W - 1)
    return cells


def _islands() -> Set[Cell]:
    """Grid of small solid pillars."""
    cells: Set[Cell] = set()
    for cx in range(8, W - 4, 12):
        for cy in range(8, H - 4, 12):
            cells |= _block(cx, cy, cx + 2, cy + 2)
    return cells


def _ring() -> Set[Cell]:
    """Two concentric boxes with openings on opposite sides."""
    outer = _rect(6, 6, W - 7, H - 7)
    inner = _rect(20, 20, W - 21, H - 21)
    for d in range(-2, 3):
        outer.discard((W // 2 + d, 6))
        inner.discard((W // 2 + d, H - 21))
    return outer | inner


def _diagonals() -> Set[Cell]:
    """Two broken diagonals forming an X."""
    cells: Set[Cell] = set()
    for i in range(2, W - 2):
        if (i // 6) % 2 == 0:
            cells.add((i, i))
            cells.add((W - 1 - i, i))
    return cells


def _corridors() -> Set[Cell]:
    """Vertical walls with staggered gaps, making long corridors."""
    cells: Set[Cell] = set()
    for i, x in enumerate(range(8, W - 4, 8)):
        gap_y = 4 if i % 2 == 0 else H - 8
        cells |= _vline(x, 0, H - 1) - _block(x, gap_y, x, gap_y + 3)
    return cells


_LAYOUTS: List[Tuple[str, Callable[[], Set[Cell]]]] = [
    ('border', _border),
    ('cross', _cross),
    ('rooms', _rooms),
    ('stripes', _stripes),
    ('islands', _islands),
    ('ring', _ring),
    ('diagonals', _diagonals),
    ('corridors', _corridors),
]

NUM_PRESETS = len(_LAYOUTS)


# =============================================================================
# PUBLIC API
# =============================================================================

def preset_names() -> List[str]:
    return [name for name, _ in _LAYOUTS]


def preset_walls(index: int) -> List[Position]:
    """
    Wall positions of built-in layout `index`, sorted by (x, y).

    Raises:
        ConfigError: if `index` is not in the catalogue
    """
    if not 0 <= index < NUM_PRESETS:
        raise ConfigError(f"Invalid preset layout {index} (choose 0..{NUM_PRESETS - 1})")
    _, build = _LAYOUTS[index]
    return [Position(x, y) for x, y in sorted(build()) if 0 <= x < W and 0 <= y < H]


def check_preset_size(width: int, height: int):
    if (width, height) != (W, H):
        raise ConfigError(
            f"Preset layouts require a {W}x{H} environment (got {width}x{height})"
        )


__all__ = [
    'NUM_PRESETS',
    'preset_names',
    'preset_walls',
    'check_preset_size',
]
