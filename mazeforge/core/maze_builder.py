# mazeforge/core/maze_builder.py
"""
Build a complete maze into a world and keep the escape objective alive.

``MazeGenerator.generate_maze()`` runs synchronously to completion:

1. look up the spawn anchor (missing → ``MazeGenerationError``, nothing touched)
2. seed the single random stream
3. discard the previous maze
4. rebuild the ground-calibration cache
5. carve the grid and inject loops
6. place floors, walls, decorations, then the escape objective

A failure in steps 4-6 removes whatever was spawned and leaves no layout.

``update(dt)`` is the per-frame hook for the relocation rule.  Calls must be
serialised by the caller: regeneration is not re-entrant.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from mazeforge.core.assets import AssetPools, Vec3
from mazeforge.core.calibration import OffsetCache
from mazeforge.core.escape import EscapeObjective, NoEscapeCellError
from mazeforge.core.grid import Grid, MazeAnchor, add_loops, carve
from mazeforge.core.placement import PlacementPipeline
from mazeforge.core.rng import SeededRNG
from mazeforge.core.world import WorldBackend
from mazeforge.protocol import MazeLayout, MazeParams, RelocationEvent

logger = logging.getLogger(__name__)

PositionLookup = Callable[[], Optional[Vec3]]

_UNSET = object()


class MazeGenerationError(RuntimeError):
    pass


class MazeGenerator:
    def __init__(
        self,
        world: WorldBackend,
        pools: AssetPools,
        params: Optional[MazeParams] = None,
        *,
        spawn_lookup: PositionLookup,
        player_lookup: Optional[PositionLookup] = None,
    ):
        self.world = world
        self.pools = pools
        self.params = params or MazeParams()
        self.spawn_lookup = spawn_lookup
        self.player_lookup = player_lookup

        self.offsets = OffsetCache()
        self.rng: Optional[SeededRNG] = None
        self.grid: Optional[Grid] = None
        self.anchor: Optional[MazeAnchor] = None
        self.layout: Optional[MazeLayout] = None
        self.escape: Optional[EscapeObjective] = None
        self.events: List[RelocationEvent] = []
        self._handles: List[int] = []
        self._clock = 0.0
        self._warned_no_player = False

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def origin(self) -> Optional[Vec3]:
        return self.anchor.origin if self.anchor is not None else None

    @property
    def escape_handle(self) -> Optional[int]:
        return self.escape.handle if self.escape is not None else None

    @property
    def escape_position(self) -> Optional[Vec3]:
        return self.escape.position if self.escape is not None else None

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def generate_maze(self, seed=_UNSET) -> MazeLayout:
        params = self.params
        params.validate()
        if seed is _UNSET:
            seed = params.seed

        spawn = self.spawn_lookup()
        if spawn is None:
            logger.error("No spawn anchor found; maze generation aborted.")
            raise MazeGenerationError("spawn anchor lookup returned nothing")
        spawn = tuple(float(v) for v in spawn)

        self.rng = SeededRNG(seed)
        self.clear()
        # the previous maze is gone from the world from here on
        self.layout = None
        self.grid = None
        self.anchor = None

        try:
            layout = self._build(spawn)
        except NoEscapeCellError as e:
            logger.error(str(e))
            self.clear()
            raise MazeGenerationError(str(e)) from e
        except Exception:
            logger.error("Maze generation failed; removing the partial maze.")
            self.clear()
            raise

        self.layout = layout
        logger.info(f"Maze generated: {layout.summary()}")
        return layout

    def _build(self, spawn: Vec3) -> MazeLayout:
        params = self.params
        self.offsets.rebuild(self.world, self.pools, params.wall_ground_level)

        grid = Grid.empty(params.width, params.height)
        carve(grid, self.rng)
        add_loops(grid, self.rng, params.loop_chance)
        anchor = MazeAnchor.around_spawn(spawn, params.width, params.height,
                                         params.cell_size, params.floor_z)

        pipeline = PlacementPipeline(self.world, grid, anchor, self.rng,
                                     self.offsets, params, spawn, spawned=self._handles)
        if self.pools.floors:
            pipeline.place_floors(self.pools.floors)
        else:
            logger.warning("Floor pool is empty; skipping floors.")
        if self.pools.walls:
            pipeline.place_walls(self.pools.walls)
        else:
            logger.warning("Wall pool is empty; skipping walls.")
        if not self.pools.decorations:
            logger.warning("Decoration pool is empty; skipping decorations.")
        elif params.decoration_density > 0:
            pipeline.place_decorations(self.pools.decorations)

        placements = list(pipeline.placements)
        escape_cell = None
        if self.pools.escape is not None:
            self.escape = EscapeObjective(self.world, grid, anchor, self.rng,
                                          self.offsets, self.pools.escape, params)
            placements.append(self.escape.place(spawn))
            escape_cell = self.escape.cell
        else:
            logger.warning("No escape asset configured; skipping escape objective.")

        self.grid = grid
        self.anchor = anchor
        return MazeLayout(
            seed=self.rng.seed,
            width=params.width,
            height=params.height,
            cell_size=params.cell_size,
            origin=anchor.origin,
            walls=grid.wall_flags(),
            placements=placements,
            escape_cell=escape_cell,
            decoration_target=pipeline.decoration_target,
        )

    def regenerate(self) -> MazeLayout:
        """Discard and rebuild everything; a fixed ``params.seed`` rebuilds the same maze."""
        return self.generate_maze()

    def clear(self) -> None:
        if self.escape is not None:
            self.escape.discard()
            self.escape = None
        for handle in self._handles:
            self.world.remove(handle)
        self._handles = []
        self.events = []
        self._clock = 0.0
        self._warned_no_player = False

    # ------------------------------------------------------------------
    # Per-frame update
    # ------------------------------------------------------------------
    def update(self, dt: float) -> Optional[RelocationEvent]:
        if self.escape is None:
            return None
        player = self.player_lookup() if self.player_lookup is not None else None
        if player is None:
            if not self._warned_no_player:
                logger.warning("No player found; escape relocation is skipped.")
                self._warned_no_player = True
            return None
        self._clock += dt
        event = self.escape.tick(self._clock, player)
        if event is not None:
            self.events.append(event)
        return event
