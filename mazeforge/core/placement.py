# mazeforge/core/placement.py
"""
Turn a carved grid into world instances.

Floors, walls and decorations are placed in grid order (``x`` outer, ``y``
inner) with every random draw taken from the generation's single stream, so a
fixed seed reproduces the same instances.

Key changes compared to a naive "one wall per flag" build
---------------------------------------------------------
• Two neighbouring cells both report their shared boundary; a quantized
  ``(position, yaw)`` key makes sure only one wall is spawned for it.
• Nothing is placed inside ``spawn_clear_radius`` of the spawn anchor.
• Decorations keep ``decoration_spacing`` from each other and stay inside
  the walkable core of their cell.
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Set, Tuple

import numpy as np

from mazeforge.constants import (
    DECORATION_JITTER,
    FLOOR_TAG,
    QUANTIZE_DECIMALS,
    WALKABLE_FRACTION,
)
from mazeforge.core.assets import AssetPools, AssetSpec, Vec3
from mazeforge.core.calibration import DECORATION, WALL, OffsetCache
from mazeforge.core.grid import Grid, MazeAnchor
from mazeforge.core.rng import SeededRNG
from mazeforge.core.world import WorldBackend
from mazeforge.protocol import MazeParams, Placement

logger = logging.getLogger(__name__)

Key = Tuple[int, ...]


def quantize(position, decimals: int = QUANTIZE_DECIMALS) -> Key:
    """Integer-scaled key: each axis rounded to *decimals* places."""
    scale = 10 ** decimals
    return tuple(int(round(float(c) * scale)) for c in position)


def snapped_position(world: WorldBackend, position: Vec3, offset: float) -> Vec3:
    """Lift *position* by *offset*; rest on tagged floor geometry when the probe finds some."""
    x, y, z = position
    hit = world.probe_down(x, y, z)
    base = hit if hit is not None else z
    return (float(x), float(y), float(base + offset))


class PlacementPipeline:
    def __init__(
        self,
        world: WorldBackend,
        grid: Grid,
        anchor: MazeAnchor,
        rng: SeededRNG,
        offsets: OffsetCache,
        params: MazeParams,
        spawn: Vec3,
        spawned: Optional[List[int]] = None,
    ):
        self.world = world
        self.grid = grid
        self.anchor = anchor
        self.rng = rng
        self.offsets = offsets
        self.params = params
        self.spawn = tuple(float(v) for v in spawn)

        self.wall_keys: Set[Key] = set()
        self.floor_cells: Set[Tuple[int, int]] = set()
        self.decoration_positions: List[Vec3] = []
        self.placements: List[Placement] = []
        # shared with the owner; filled as bodies are spawned
        self.spawned: List[int] = spawned if spawned is not None else []
        self.decoration_target = 0

    def _in_spawn_zone(self, position: Vec3) -> bool:
        return math.dist(position, self.spawn) < self.params.spawn_clear_radius

    def _record(self, kind, asset: AssetSpec, cell, position, yaw=0.0, scale=(1.0, 1.0, 1.0), handle=None):
        pl = Placement(kind, asset.name, cell, position, float(yaw), tuple(float(s) for s in scale), handle)
        self.placements.append(pl)
        if handle is not None:
            self.spawned.append(handle)
        return pl

    # ------------------------------------------------------------------
    # Floors
    # ------------------------------------------------------------------
    def place_floors(self, pool: List[AssetSpec]) -> int:
        placed = 0
        cs = self.anchor.cell_size
        for x, y in self.grid.coords():
            if (x, y) in self.floor_cells:
                continue
            self.floor_cells.add((x, y))
            asset = self.rng.choice(pool)
            center = self.anchor.cell_center(x, y)
            scale = (cs, cs, 1.0)
            handle = self.world.spawn(asset, center, 0.0, scale, tag=FLOOR_TAG)
            self._record("floor", asset, (x, y), center, 0.0, scale, handle)
            placed += 1
        return placed

    # ------------------------------------------------------------------
    # Walls
    # ------------------------------------------------------------------
    def place_walls(self, pool: List[AssetSpec]) -> int:
        placed = 0
        half = self.anchor.cell_size * 0.5
        for x, y in self.grid.coords():
            cell = self.grid.cell(x, y)
            cx, cy, cz = self.anchor.cell_center(x, y)
            for present, dx, dy, yaw in (
                (cell.north, 0.0, half, 0.0),
                (cell.south, 0.0, -half, 0.0),
                (cell.east, half, 0.0, 90.0),
                (cell.west, -half, 0.0, 90.0),
            ):
                if present and self._try_spawn_wall(pool, (x, y), (cx + dx, cy + dy, cz), yaw):
                    placed += 1
        return placed

    def _try_spawn_wall(self, pool, cell, position: Vec3, yaw: float) -> bool:
        if self._in_spawn_zone(position):
            return False
        key = quantize(position) + (int(yaw),)
        if key in self.wall_keys:
            return False
        self.wall_keys.add(key)

        asset = self.rng.choice(pool)
        final = snapped_position(self.world, position, self.offsets.offset(WALL, asset))
        handle = self.world.spawn(asset, final, yaw)
        self._record("wall", asset, cell, final, yaw, handle=handle)
        return True

    # ------------------------------------------------------------------
    # Decorations
    # ------------------------------------------------------------------
    def _too_close_to_decoration(self, position: Vec3) -> bool:
        if not self.decoration_positions:
            return False
        dists = np.linalg.norm(np.asarray(self.decoration_positions) - np.asarray(position), axis=1)
        return bool(dists.min() < self.params.decoration_spacing)

    def _is_walkable(self, cell, position: Vec3) -> bool:
        cx, cy, _ = self.anchor.cell_center(*cell)
        buffer = self.anchor.cell_size * WALKABLE_FRACTION
        return abs(position[0] - cx) <= buffer and abs(position[1] - cy) <= buffer

    def place_decorations(self, pool: List[AssetSpec]) -> int:
        """
        Each cell gets one Bernoulli(density) attempt.  The target count
        ``round(width*height*density)`` caps the result but is not guaranteed.
        """
        params = self.params
        density = params.decoration_density
        self.decoration_target = round(self.grid.width * self.grid.height * density)
        cs = self.anchor.cell_size
        placed = 0
        for x, y in self.grid.coords():
            if placed >= self.decoration_target:
                break
            if self.rng.next_float() > density:
                continue

            cx, cy, cz = self.anchor.cell_center(x, y)
            jx = (self.rng.next_float() * 2 * DECORATION_JITTER - DECORATION_JITTER) * cs
            jy = (self.rng.next_float() * 2 * DECORATION_JITTER - DECORATION_JITTER) * cs
            position = (cx + jx, cy + jy, cz)

            if self._in_spawn_zone(position):
                continue
            if self._too_close_to_decoration(position):
                continue
            if not self._is_walkable((x, y), position):
                continue

            self._place_decoration(pool, (x, y), position)
            placed += 1

        logger.info(f"Placed {placed} decorations in the maze (target {self.decoration_target})")
        return placed

    def _place_decoration(self, pool, cell, position: Vec3) -> Placement:
        params = self.params
        asset = self.rng.choice(pool)
        yaw = self.rng.next_float() * params.max_decoration_rotation
        lo, hi = params.decoration_scale_range
        s = lo + (hi - lo) * self.rng.next_float()

        # offset was measured at unit scale
        final = snapped_position(self.world, position, self.offsets.offset(DECORATION, asset) * s)
        handle = self.world.spawn(asset, final, yaw, (s, s, s))
        self.decoration_positions.append(position)
        return self._record("decoration", asset, cell, final, yaw, (s, s, s), handle)

    def handles(self) -> List[Optional[int]]:
        return [pl.handle for pl in self.placements]
