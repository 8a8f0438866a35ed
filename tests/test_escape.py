"""
Escape objective
================

Placement far from spawn and the one-shot relocation rule, driven tick by
tick the way ``MazeGenerator.update`` drives it.
"""
from __future__ import annotations

import math

import numpy as np
import pytest

from mazeforge.constants import SIM_DT
from mazeforge.core.assets import default_pools
from mazeforge.core.calibration import OffsetCache
from mazeforge.core.escape import EscapeObjective, EscapeState, NoEscapeCellError
from mazeforge.core.grid import MazeAnchor, generate_grid
from mazeforge.core.rng import SeededRNG
from mazeforge.core.world import DryRunWorld
from mazeforge.protocol import MazeParams

SPAWN = (0.0, 0.0, 0.0)


# ---------------------------------------------------------------------
# Helper factories
# ---------------------------------------------------------------------
def make_objective(width=10, height=10, seed=9, **overrides):
    params = MazeParams(width=width, height=height, seed=seed, **overrides)
    world = DryRunWorld()
    rng = SeededRNG(seed)
    grid = generate_grid(width, height, rng, params.loop_chance)
    anchor = MazeAnchor.around_spawn(SPAWN, width, height, params.cell_size, params.floor_z)
    pools = default_pools(params.cell_size)
    offsets = OffsetCache()
    offsets.rebuild(world, pools, params.wall_ground_level)
    objective = EscapeObjective(world, grid, anchor, rng, offsets, pools.escape, params)
    return world, objective


def offset_from(position, dx):
    return (position[0] + dx, position[1], position[2])


def dist(a, b):
    return float(np.linalg.norm(np.subtract(a, b)))


# ---------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------
def test_initial_cell_is_outside_spawn_clearance():
    world, objective = make_objective()
    placement = objective.place(SPAWN)

    center = objective.anchor.cell_center(*objective.cell)
    assert dist(center, SPAWN) >= objective.params.spawn_clear_radius
    assert placement.kind == "escape"
    assert objective.handle in world.bodies
    assert objective.state is EscapeState.ARMED


def test_objective_base_sits_on_ground_level():
    world, objective = make_objective()
    objective.place(SPAWN)

    (_, _, z0), _ = world.bodies[objective.handle].world_bounds()
    assert z0 == pytest.approx(objective.params.wall_ground_level)


def test_no_candidate_cell_raises():
    _, objective = make_objective(width=1, height=1)
    with pytest.raises(NoEscapeCellError):
        objective.place(SPAWN)


# ---------------------------------------------------------------------
# Relocation
# ---------------------------------------------------------------------
def test_relocates_once_when_player_comes_close():
    world, objective = make_objective()
    objective.place(SPAWN)
    first_handle = objective.handle
    first_position = objective.position

    # far away for the first 10 s
    steps = int(round(10.0 / SIM_DT))
    for i in range(1, steps + 1):
        assert objective.tick(i * SIM_DT, offset_from(first_position, 50.0)) is None
    assert objective.position == first_position

    player = offset_from(first_position, 5.0)
    event = objective.tick((steps + 1) * SIM_DT, player)

    assert event is not None
    assert event.time == pytest.approx(10.0, abs=2 * SIM_DT)
    assert objective.has_relocated
    assert objective.state is EscapeState.RELOCATED
    assert first_handle not in world.bodies
    assert objective.handle in world.bodies
    assert dist(objective.anchor.cell_center(*event.to_cell), player) >= 2 * objective.params.spawn_clear_radius

    # never moves again, however close the player gets
    second_position = objective.position
    assert objective.tick(20.0, offset_from(second_position, 5.0)) is None
    assert objective.tick(21.0, second_position) is None
    assert objective.position == second_position
    assert world.removed == [first_handle]


def test_window_closes_after_move_window():
    _, objective = make_objective()
    objective.place(SPAWN)
    position = objective.position

    assert objective.tick(objective.params.portal_move_window + 1.0, offset_from(position, 50.0)) is None
    assert objective.state is EscapeState.STABLE

    assert objective.tick(objective.params.portal_move_window + 2.0, position) is None
    assert not objective.has_relocated
    assert objective.position == position


def test_relocation_without_candidates_is_a_no_op(caplog):
    # 3x3 cells of 4 m: no cell centre is 10 m away from the middle of the maze
    world, objective = make_objective(width=3, height=3, seed=2)
    objective.place(SPAWN)
    handle, position = objective.handle, objective.position

    player = (-2.0, -2.0, 0.0)
    assert dist(player, position) < objective.params.portal_proximity_threshold
    assert objective.tick(1.0, player) is None

    assert not objective.has_relocated
    assert objective.state is EscapeState.ARMED
    assert objective.handle == handle and handle in world.bodies
    assert objective.position == position
    assert "far enough from player" in caplog.text


def test_missing_relocation_cells_warn_once(caplog):
    world, objective = make_objective(width=3, height=3, seed=2)
    objective.place(SPAWN)

    for step in range(1, 50):
        assert objective.tick(step * 0.02, (-2.0, -2.0, 0.0)) is None
    assert caplog.text.count("far enough from player") == 1

    # a fresh placement re-arms the warning
    objective.discard()
    objective.place(SPAWN)
    objective.tick(0.02, (-2.0, -2.0, 0.0))
    assert caplog.text.count("far enough from player") == 2


def test_missing_player_is_ignored():
    _, objective = make_objective()
    objective.place(SPAWN)
    assert objective.tick(1.0, None) is None
    assert objective.state is EscapeState.ARMED


def test_discard_removes_instance():
    world, objective = make_objective()
    objective.place(SPAWN)
    handle = objective.handle

    objective.discard()

    assert handle not in world.bodies
    assert objective.handle is None
    assert objective.tick(1.0, SPAWN) is None


def test_relocation_target_uses_current_player_position():
    _, objective = make_objective(width=12, height=12, seed=31)
    objective.place(SPAWN)
    player = offset_from(objective.position, 3.0)

    event = objective.relocate(player)

    assert event is not None
    assert event.player_position == player
    assert math.dist(objective.anchor.cell_center(*event.to_cell), player) >= 10.0
