"""
Vision - straight-line raycast from a creature

A creature looks along its facing direction one cell at a time, up to
MAX_VIEW_DISTANCE cells or the edge of the board. Unlike movement, vision
does not wrap around the edges. Blank and fight spaces are transparent; the
first food, wall or creature cell ends the scan.
"""

from typing import Callable, List, Sequence

from .config import FOOD_COLOR, MAX_VIEW_DISTANCE, WALL_COLOR
from .creature import VisionReading
from .space import Color, Orientation, Position, SpaceKind, SpaceState


_FOOD_COLOR = Color(*FOOD_COLOR)
_WALL_COLOR = Color(*WALL_COLOR)


def cells_in_view(width: int,
                  height: int,
                  position: Position,
                  orientation: Orientation,
                  max_distance: int = MAX_VIEW_DISTANCE) -> List[Position]:
    """Every cell the ray could inspect, nearest first. Stops at the board edge."""
    dx, dy = orientation.delta
    cells = []
    for distance in range(1, max_distance + 1):
        x = position.x + dx * distance
        y = position.y + dy * distance
        if not (0 <= x < width and 0 <= y < height):
            break
        cells.append(Position(x, y))
    return cells


def look(grid: Sequence[Sequence[SpaceState]],
         position: Position,
         orientation: Orientation,
         color_of: Callable[[int], Color],
         max_distance: int = MAX_VIEW_DISTANCE) -> VisionReading:
    """
    Cast a ray from `position` along `orientation`.

    Args:
        grid: grid[x][y] space states
        position: where the viewer stands (not inspected)
        orientation: direction to look in
        color_of: resolves a creature id to that creature's current colour
        max_distance: furthest cell to inspect

    Returns:
        VisionReading for the first opaque cell, or an empty reading.
    """
    width = len(grid)
    height = len(grid[0]) if width else 0

    for distance, cell in enumerate(
            cells_in_view(width, height, position, orientation, max_distance), start=1):
        space = grid[cell.x][cell.y]
        if space.kind == SpaceKind.FOOD:
            return VisionReading(True, distance, _FOOD_COLOR, space)
        if space.kind == SpaceKind.WALL:
            return VisionReading(True, distance, _WALL_COLOR, space)
        if space.kind == SpaceKind.CREATURE:
            return VisionReading(True, distance, color_of(space.value), space)

    return VisionReading()


__all__ = ['look', 'cells_in_view']
