# mazeforge/utils/env_factory.py
"""
Centralised creation of a ready-to-use pybullet world for maze generation.

The returned ``BulletWorld`` already has gravity and a ground plane, so a
``MazeGenerator`` can build into it immediately.
"""
from __future__ import annotations

import io
import time
import contextlib

import pybullet as p
import pybullet_data

from mazeforge.core.bullet_world import BulletWorld


def make_world(*, gui: bool = False, ground_plane: bool = True) -> BulletWorld:
    """
    Connect a pybullet client and wrap it.

    Parameters
    ----------
    gui          : bool  • open the pybullet viewer (default DIRECT)
    ground_plane : bool  • load ``plane.urdf`` below the maze
    """
    # Silence the pybullet banner when connecting
    with contextlib.redirect_stdout(io.StringIO()):
        cli = p.connect(p.GUI if gui else p.DIRECT)

    p.setAdditionalSearchPath(pybullet_data.getDataPath(), physicsClientId=cli)
    p.setGravity(0, 0, -9.81, physicsClientId=cli)

    if gui:
        for flag in (p.COV_ENABLE_SHADOWS, p.COV_ENABLE_GUI):
            p.configureDebugVisualizer(flag, 0, physicsClientId=cli)
            time.sleep(0.1)

    if ground_plane:
        # sits just below the floor tiles so downward probes hit a tile first
        with contextlib.redirect_stdout(io.StringIO()):
            p.loadURDF("plane.urdf", [0, 0, -0.2], physicsClientId=cli)

    return BulletWorld(cli)
