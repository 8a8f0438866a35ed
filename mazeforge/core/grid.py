# mazeforge/core/grid.py
"""
Rectangular maze topology.

A ``Grid`` is a flat, index-addressed arena of ``Cell`` records rebuilt from
scratch for every generation.  Each cell carries four boundary flags
(``True`` = wall present).  Flags between two neighbouring cells are only ever
cleared in pairs, so the two sides of a shared boundary always agree.

Carving is an iterative depth-first backtracker that yields a spanning tree
(a *perfect* maze).  ``add_loops`` then clears a few extra boundaries; it can
only add connections, never remove them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set, Tuple

import numpy as np

from mazeforge.core.rng import SeededRNG

Coord = Tuple[int, int]
Vec3 = Tuple[float, float, float]

# Neighbour order matters for determinism: north, south, east, west.
DIRECTIONS = (
    ("north", 0, 1),
    ("south", 0, -1),
    ("east", 1, 0),
    ("west", -1, 0),
)
OPPOSITE = {"north": "south", "south": "north", "east": "west", "west": "east"}


@dataclass
class Cell:
    visited: bool = False
    north: bool = True
    south: bool = True
    east: bool = True
    west: bool = True

    def flags(self) -> Tuple[bool, bool, bool, bool]:
        return (self.north, self.south, self.east, self.west)


@dataclass
class Grid:
    width: int
    height: int
    cells: List[Cell] = field(default_factory=list)

    @classmethod
    def empty(cls, width: int, height: int) -> "Grid":
        if width < 1 or height < 1:
            raise ValueError(f"grid must be at least 1x1, got {width}x{height}")
        return cls(width, height, [Cell() for _ in range(width * height)])

    def idx(self, x: int, y: int) -> int:
        return x * self.height + y

    def cell(self, x: int, y: int) -> Cell:
        return self.cells[self.idx(x, y)]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def coords(self) -> Iterator[Coord]:
        """All cell coordinates, ``x`` outer and ``y`` inner."""
        for x in range(self.width):
            for y in range(self.height):
                yield (x, y)

    def unvisited_neighbors(self, x: int, y: int) -> List[Coord]:
        out = []
        for _, dx, dy in DIRECTIONS:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny) and not self.cell(nx, ny).visited:
                out.append((nx, ny))
        return out

    def remove_wall(self, a: Coord, b: Coord) -> None:
        """Clear the shared boundary between two orthogonal neighbours."""
        dx, dy = b[0] - a[0], b[1] - a[1]
        for name, ddx, ddy in DIRECTIONS:
            if (dx, dy) == (ddx, ddy):
                setattr(self.cell(*a), name, False)
                setattr(self.cell(*b), OPPOSITE[name], False)
                return
        raise ValueError(f"cells {a} and {b} are not orthogonal neighbours")

    def has_wall(self, x: int, y: int, direction: str) -> bool:
        return getattr(self.cell(x, y), direction)

    def open_neighbors(self, x: int, y: int) -> List[Coord]:
        """Neighbours reachable through a cleared boundary."""
        c = self.cell(x, y)
        return [
            (x + dx, y + dy)
            for name, dx, dy in DIRECTIONS
            if not getattr(c, name) and self.in_bounds(x + dx, y + dy)
        ]

    def cleared_boundaries(self) -> Set[Tuple[Coord, Coord]]:
        """Every cleared interior boundary, once, as ``(cell, east|north neighbour)``."""
        out = set()
        for x, y in self.coords():
            c = self.cell(x, y)
            if x + 1 < self.width and not c.east:
                out.add(((x, y), (x + 1, y)))
            if y + 1 < self.height and not c.north:
                out.add(((x, y), (x, y + 1)))
        return out

    def wall_flags(self) -> List[Tuple[bool, bool, bool, bool]]:
        return [self.cell(x, y).flags() for x, y in self.coords()]


# --------------------------------------------------------------------------
# Carving
# --------------------------------------------------------------------------
def carve(grid: Grid, rng: SeededRNG, start: Optional[Coord] = None) -> Coord:
    """
    Iterative backtracking carve.  Visits every cell exactly once, clearing
    one boundary per newly visited cell, so ``width*height - 1`` boundaries
    are cleared in total.  Returns the start cell.
    """
    if start is None:
        start = (rng.below(grid.width), rng.below(grid.height))

    grid.cell(*start).visited = True
    stack = [start]
    while stack:
        current = stack[-1]
        neighbors = grid.unvisited_neighbors(*current)
        if not neighbors:
            stack.pop()
            continue
        chosen = neighbors[rng.below(len(neighbors))]
        grid.remove_wall(current, chosen)
        grid.cell(*chosen).visited = True
        stack.append(chosen)
    return start


def add_loops(grid: Grid, rng: SeededRNG, loop_chance: float) -> int:
    """
    With probability *loop_chance* per cell, clear one more boundary: east
    when in bounds and a coin flip allows it, otherwise north.  Returns the
    number of boundaries touched (some may already have been open).
    """
    touched = 0
    for x, y in grid.coords():
        if rng.next_float() >= loop_chance:
            continue
        if x + 1 < grid.width and rng.next_float() > 0.5:
            grid.remove_wall((x, y), (x + 1, y))
            touched += 1
        elif y + 1 < grid.height:
            grid.remove_wall((x, y), (x, y + 1))
            touched += 1
    return touched


def generate_grid(width: int, height: int, rng: SeededRNG, loop_chance: float = 0.0) -> Grid:
    grid = Grid.empty(width, height)
    carve(grid, rng)
    add_loops(grid, rng, loop_chance)
    return grid


# --------------------------------------------------------------------------
# World-space anchor
# --------------------------------------------------------------------------
@dataclass(frozen=True)
class MazeAnchor:
    """Maps grid coordinates to world space.  Cell ``(0, 0)`` sits at *origin*."""

    origin: Vec3
    cell_size: float
    floor_z: float = 0.0

    @classmethod
    def around_spawn(cls, spawn: Vec3, width: int, height: int, cell_size: float,
                     floor_z: float = 0.0) -> "MazeAnchor":
        origin = (
            spawn[0] - width * cell_size * 0.5,
            spawn[1] - height * cell_size * 0.5,
            spawn[2],
        )
        return cls(origin, cell_size, floor_z)

    def cell_center(self, x: int, y: int) -> Vec3:
        ox, oy, oz = self.origin
        return (ox + x * self.cell_size, oy + y * self.cell_size, oz + self.floor_z)

    def cell_centers(self, grid: Grid) -> Tuple[List[Coord], np.ndarray]:
        coords = list(grid.coords())
        centers = np.array([self.cell_center(x, y) for x, y in coords], dtype=float)
        return coords, centers.reshape(-1, 3)
