# mazeforge/core/escape.py
"""
Escape objective placement and the one-shot relocation rule.

State machine::

    ARMED ──(player closer than threshold, candidate found)──► RELOCATED
      │
      └──(elapsed > move window)──► STABLE

``tick(now, player_position)`` advances it; ``now`` is seconds since the
generation that placed the objective.  Only ARMED evaluates anything, so the
objective moves at most once per generation.  A trigger with no candidate
cell far enough from the player leaves the state ARMED and the objective in
place; the next tick may try again.
"""
from __future__ import annotations

import enum
import logging
from typing import List, Optional, Tuple

import numpy as np

from mazeforge.core.assets import AssetSpec, Vec3
from mazeforge.core.calibration import ESCAPE, OffsetCache
from mazeforge.core.grid import Grid, MazeAnchor
from mazeforge.core.placement import snapped_position
from mazeforge.core.rng import SeededRNG
from mazeforge.core.world import WorldBackend
from mazeforge.protocol import MazeParams, Placement, RelocationEvent

logger = logging.getLogger(__name__)


class EscapeState(enum.Enum):
    ARMED = "armed"
    STABLE = "stable"
    RELOCATED = "relocated"


class NoEscapeCellError(RuntimeError):
    pass


class EscapeObjective:
    def __init__(
        self,
        world: WorldBackend,
        grid: Grid,
        anchor: MazeAnchor,
        rng: SeededRNG,
        offsets: OffsetCache,
        asset: AssetSpec,
        params: MazeParams,
    ):
        self.world = world
        self.grid = grid
        self.anchor = anchor
        self.rng = rng
        self.offsets = offsets
        self.asset = asset
        self.params = params

        self.handle: Optional[int] = None
        self.position: Optional[Vec3] = None
        self.cell: Optional[Tuple[int, int]] = None
        self.has_relocated = False
        self.elapsed_time = 0.0
        self.state = EscapeState.ARMED
        self._warned_no_candidates = False
        self._coords, self._centers = anchor.cell_centers(grid)

    @property
    def armed_until(self) -> float:
        return self.params.portal_move_window

    def candidates(self, reference: Vec3, min_distance: float) -> List[Tuple[int, int]]:
        """Cells whose centre is at least *min_distance* from *reference*."""
        dists = np.linalg.norm(self._centers - np.asarray(reference, dtype=float), axis=1)
        return [self._coords[i] for i in np.flatnonzero(dists >= min_distance)]

    def _instantiate(self, cell: Tuple[int, int]) -> Placement:
        center = self.anchor.cell_center(*cell)
        final = snapped_position(self.world, center, self.offsets.offset(ESCAPE, self.asset))
        self.handle = self.world.spawn(self.asset, final)
        self.position = final
        self.cell = cell
        return Placement("escape", self.asset.name, cell, final, handle=self.handle)

    def place(self, spawn: Vec3) -> Placement:
        cells = self.candidates(spawn, self.params.spawn_clear_radius)
        if not cells:
            raise NoEscapeCellError("No valid positions for escape objective found")
        cell = cells[self.rng.below(len(cells))]
        placement = self._instantiate(cell)
        self.has_relocated = False
        self.elapsed_time = 0.0
        self.state = EscapeState.ARMED
        self._warned_no_candidates = False
        logger.info(
            f"Escape objective placed at cell {cell}, distance from spawn: "
            f"{np.linalg.norm(np.subtract(self.position, spawn)):.2f} units"
        )
        return placement

    def tick(self, now: float, player_position: Optional[Vec3]) -> Optional[RelocationEvent]:
        self.elapsed_time = max(self.elapsed_time, float(now))
        if self.state is not EscapeState.ARMED:
            return None
        if self.elapsed_time > self.armed_until:
            self.state = EscapeState.STABLE
            logger.debug(f"Relocation window closed after {self.elapsed_time:.1f}s")
            return None
        if player_position is None or self.position is None:
            return None
        distance = float(np.linalg.norm(np.subtract(player_position, self.position)))
        if distance >= self.params.portal_proximity_threshold:
            return None
        return self.relocate(player_position)

    def relocate(self, player_position: Vec3) -> Optional[RelocationEvent]:
        cells = self.candidates(player_position, self.params.spawn_clear_radius * 2)
        if not cells:
            # retried on later ticks; warn once per placement
            if not self._warned_no_candidates:
                logger.warning("No valid cells found far enough from player for escape relocation")
                self._warned_no_candidates = True
            return None
        old_cell = self.cell
        if self.handle is not None:
            self.world.remove(self.handle)
        new_cell = cells[self.rng.below(len(cells))]
        self._instantiate(new_cell)
        self.has_relocated = True
        self.state = EscapeState.RELOCATED
        event = RelocationEvent(
            time=self.elapsed_time,
            from_cell=old_cell,
            to_cell=new_cell,
            position=self.position,
            player_position=tuple(float(v) for v in player_position),
        )
        logger.info(
            f"Escape objective relocated to cell {new_cell} at t={self.elapsed_time:.2f}s, new distance "
            f"from player: {np.linalg.norm(np.subtract(self.position, player_position)):.2f} units"
        )
        return event

    def discard(self) -> None:
        if self.handle is not None:
            self.world.remove(self.handle)
        self.handle = None
        self.position = None
        self.state = EscapeState.STABLE
