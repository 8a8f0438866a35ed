"""
Placement pipeline
==================

Floors, walls and decorations placed into the head-less world.  Every
check is made against the recorded placements and the world's bodies.
"""
from __future__ import annotations

import itertools
import math

import pytest

from mazeforge.constants import FLOOR_TAG, WALKABLE_FRACTION
from mazeforge.core.assets import box_asset, default_pools
from mazeforge.core.calibration import WALL, OffsetCache
from mazeforge.core.grid import MazeAnchor, generate_grid
from mazeforge.core.placement import PlacementPipeline, quantize
from mazeforge.core.rng import SeededRNG
from mazeforge.core.world import DryRunWorld
from mazeforge.protocol import MazeParams

SPAWN = (0.0, 0.0, 0.0)


# ---------------------------------------------------------------------
# Helper factories
# ---------------------------------------------------------------------
def make_pipeline(width=5, height=5, seed=3, pools=None, **overrides):
    params = MazeParams(width=width, height=height, seed=seed, **overrides)
    world = DryRunWorld()
    rng = SeededRNG(seed)
    grid = generate_grid(width, height, rng, params.loop_chance)
    anchor = MazeAnchor.around_spawn(SPAWN, width, height, params.cell_size, params.floor_z)
    pools = pools or default_pools(params.cell_size)
    offsets = OffsetCache()
    offsets.rebuild(world, pools, params.wall_ground_level)
    pipeline = PlacementPipeline(world, grid, anchor, rng, offsets, params, SPAWN)
    return world, pools, pipeline


def expected_wall_keys(pipeline) -> set:
    """Every boundary with a wall, once, outside the spawn clearance."""
    grid, anchor = pipeline.grid, pipeline.anchor
    half = anchor.cell_size / 2
    keys = set()
    for x, y in grid.coords():
        cx, cy, _ = anchor.cell_center(x, y)
        cell = grid.cell(x, y)
        for present, px, py, yaw in (
            (cell.north, cx, cy + half, 0),
            (cell.south, cx, cy - half, 0),
            (cell.east, cx + half, cy, 90),
            (cell.west, cx - half, cy, 90),
        ):
            if present and math.hypot(px - SPAWN[0], py - SPAWN[1]) >= pipeline.params.spawn_clear_radius:
                keys.add(quantize((px, py)) + (yaw,))
    return keys


def of_kind(pipeline, kind):
    return [pl for pl in pipeline.placements if pl.kind == kind]


# ---------------------------------------------------------------------
# quantize
# ---------------------------------------------------------------------
def test_quantize_rounds_to_two_decimals():
    assert quantize((1.234, 2.0, -3.456)) == (123, 200, -346)
    assert quantize((1.0001, 0.0, 0.0)) == quantize((0.9999, 0.0, 0.0))
    assert quantize((1.0, 0.0, 0.0)) != quantize((1.02, 0.0, 0.0))


# ---------------------------------------------------------------------
# Floors
# ---------------------------------------------------------------------
def test_one_floor_per_cell():
    world, pools, pipeline = make_pipeline()

    assert pipeline.place_floors(pools.floors) == 25
    floors = of_kind(pipeline, "floor")
    assert sorted(pl.cell for pl in floors) == sorted(pipeline.grid.coords())
    assert len(world.handles(FLOOR_TAG)) == 25
    assert all(pl.scale == (4.0, 4.0, 1.0) for pl in floors)

    # a second pass does not double up
    assert pipeline.place_floors(pools.floors) == 0


# ---------------------------------------------------------------------
# Walls
# ---------------------------------------------------------------------
@pytest.mark.parametrize("seed", [3, 21, 77])
def test_each_boundary_gets_exactly_one_wall(seed):
    world, pools, pipeline = make_pipeline(width=6, height=6, seed=seed, loop_chance=0.2)
    pipeline.place_floors(pools.floors)
    placed = pipeline.place_walls(pools.walls)

    walls = of_kind(pipeline, "wall")
    recorded = {quantize(pl.position[:2]) + (int(pl.yaw),) for pl in walls}

    assert placed == len(walls) == len(recorded)
    assert recorded == expected_wall_keys(pipeline)


def test_no_wall_inside_spawn_clearance():
    world, pools, pipeline = make_pipeline(width=6, height=6, seed=4)
    pipeline.place_walls(pools.walls)

    radius = pipeline.params.spawn_clear_radius
    for pl in of_kind(pipeline, "wall"):
        assert math.hypot(pl.position[0], pl.position[1]) >= radius


def test_walls_snap_to_tagged_floor():
    raised = box_asset("raised_tile", (1.0, 1.0, 0.1), offset=(0.0, 0.0, 0.05))
    pools = default_pools(4.0)
    pools.floors = [raised]
    world, pools, pipeline = make_pipeline(pools=pools)

    pipeline.place_floors(pools.floors)
    pipeline.place_walls(pools.walls)

    # tile top is at +0.1; every wall base must sit on it
    for pl in of_kind(pipeline, "wall"):
        offset = pipeline.offsets.offset(WALL, next(a for a in pools.walls if a.name == pl.asset))
        assert pl.position[2] == pytest.approx(0.1 + offset)


def test_walls_without_floor_keep_calibrated_height():
    world, pools, pipeline = make_pipeline()
    pipeline.place_walls(pools.walls)

    for pl in of_kind(pipeline, "wall"):
        (_, _, z0), _ = world.bodies[pl.handle].world_bounds()
        assert z0 == pytest.approx(0.0)


# ---------------------------------------------------------------------
# Decorations
# ---------------------------------------------------------------------
def test_decorations_respect_spacing_clearance_and_walkable_zone():
    world, pools, pipeline = make_pipeline(width=8, height=8, seed=12, decoration_density=1.0)
    pipeline.place_floors(pools.floors)
    placed = pipeline.place_decorations(pools.decorations)

    params, anchor = pipeline.params, pipeline.anchor
    decorations = of_kind(pipeline, "decoration")
    assert pipeline.decoration_target == 64
    assert 0 < placed == len(decorations) <= pipeline.decoration_target

    for a, b in itertools.combinations(decorations, 2):
        assert math.hypot(a.position[0] - b.position[0], a.position[1] - b.position[1]) >= params.decoration_spacing

    buffer = anchor.cell_size * WALKABLE_FRACTION
    lo, hi = params.decoration_scale_range
    for pl in decorations:
        assert math.hypot(pl.position[0], pl.position[1]) >= params.spawn_clear_radius
        cx, cy, _ = anchor.cell_center(*pl.cell)
        assert abs(pl.position[0] - cx) <= buffer
        assert abs(pl.position[1] - cy) <= buffer
        assert 0.0 <= pl.yaw < params.max_decoration_rotation
        assert lo <= pl.scale[0] <= hi


def test_decorations_rest_on_floor():
    world, pools, pipeline = make_pipeline(width=8, height=8, seed=30, decoration_density=0.5)
    pipeline.place_floors(pools.floors)
    pipeline.place_decorations(pools.decorations)

    decorations = of_kind(pipeline, "decoration")
    assert decorations
    for pl in decorations:
        (_, _, z0), _ = world.bodies[pl.handle].world_bounds()
        assert z0 == pytest.approx(0.0, abs=1e-9)


def test_zero_density_places_nothing():
    world, pools, pipeline = make_pipeline(decoration_density=0.0)
    assert pipeline.place_decorations(pools.decorations) == 0
    assert pipeline.decoration_target == 0


def test_same_seed_same_placements():
    def run():
        _, pools, pipeline = make_pipeline(width=7, height=7, seed=55, decoration_density=0.3)
        pipeline.place_floors(pools.floors)
        pipeline.place_walls(pools.walls)
        pipeline.place_decorations(pools.decorations)
        return [pl.as_record() for pl in pipeline.placements]

    assert run() == run()
