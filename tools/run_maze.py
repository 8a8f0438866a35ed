#!/usr/bin/env python3
"""
Generate a maze and walk a scripted player toward the escape objective.

Usage examples
──────────────
Head-less, bookkeeping world only:

    python tools/run_maze.py --dry-run --seed 7

pybullet viewer, two regenerations, events written to ./logs/events.log:

    python tools/run_maze.py --gui --regenerate 2 --events-dir logs

The scripted player walks in a straight line (walls are ignored); it exists
to trigger the one-shot relocation rule, not to solve the maze.
"""
from __future__ import annotations

import logging
import math
import sys
import time
from pathlib import Path
from typing import Optional

# allow running as a plain script from the repo root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from mazeforge.config import params_from_config, read_config
from mazeforge.constants import PLAYER_SPEED
from mazeforge.core.assets import AssetSpec, Part, default_pools
from mazeforge.core.maze_builder import MazeGenerationError, MazeGenerator
from mazeforge.core.world import DryRunWorld, WorldBackend
from mazeforge.utils.logging import ColoredLogger, setup_console_logging, setup_events_logger

PLAYER_ASSET = AssetSpec("player", (Part("sphere", radius=0.4),), (0.9, 0.2, 0.2, 1.0))
PLAYER_HEIGHT = 0.5
ESCAPE_REACH = 1.0


# ──────────────────────────────────────────────────────────────────────────────
# Scripted walk
# ──────────────────────────────────────────────────────────────────────────────
def _step_toward(pos, target, max_step):
    dx, dy = target[0] - pos[0], target[1] - pos[1]
    dist = math.hypot(dx, dy)
    if dist <= max_step or dist == 0.0:
        return (target[0], target[1], pos[2])
    k = max_step / dist
    return (pos[0] + dx * k, pos[1] + dy * k, pos[2])


def walk(generator: MazeGenerator, world: WorldBackend, player: int, *,
         seconds: float, dt: float, events_logger=None, gui_cli: Optional[int] = None) -> bool:
    """Return True when the player reached the objective before *seconds* ran out."""
    steps = int(round(seconds / dt))
    for i in range(steps):
        target = generator.escape_position
        if target is None:
            return False
        pos = _step_toward(world.position(player), target, PLAYER_SPEED * dt)
        world.move(player, pos)

        event = generator.update(dt)
        if event is not None:
            ColoredLogger.warning(
                f"Objective moved {event.from_cell} → {event.to_cell} at t={event.time:.2f}s"
            )
            if events_logger is not None:
                events_logger.event(
                    f"relocation t={event.time:.2f} from={event.from_cell} to={event.to_cell} "
                    f"player={tuple(round(v, 2) for v in event.player_position)}"
                )

        if gui_cli is not None:
            from mazeforge.utils.camera import track_body
            track_body(gui_cli, pos)
            time.sleep(dt)

        if math.hypot(pos[0] - target[0], pos[1] - target[1]) <= ESCAPE_REACH:
            ColoredLogger.success(f"Player reached the objective after {(i + 1) * dt:.2f}s")
            return True
    return False


# ──────────────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────────────
def main(argv=None) -> int:
    config = read_config(argv)
    setup_console_logging(config.log_level)
    params = params_from_config(config)

    gui_cli = None
    if config.dry_run:
        world = DryRunWorld()
    else:
        from mazeforge.utils.env_factory import make_world
        world = make_world(gui=config.gui)
        if config.gui:
            gui_cli = world.cli

    events_logger = setup_events_logger(config.events_dir) if config.events_dir else None

    spawn = tuple(config.spawn)
    player_ref = {"handle": None}

    def player_lookup():
        if player_ref["handle"] is None:
            return None
        return world.position(player_ref["handle"])

    generator = MazeGenerator(
        world,
        default_pools(params.cell_size),
        params,
        spawn_lookup=lambda: spawn,
        player_lookup=player_lookup,
    )

    try:
        for run in range(config.regenerate + 1):
            # the player body must not shadow floor probes while building
            if player_ref["handle"] is not None:
                world.remove(player_ref["handle"])
                player_ref["handle"] = None

            layout = generator.generate_maze() if run == 0 else generator.regenerate()
            ColoredLogger.info(f"Layout {run}: {layout.summary()}")
            ColoredLogger.info(f"Layout digest: {layout.digest}", color=ColoredLogger.CYAN)

            player_ref["handle"] = world.spawn(
                PLAYER_ASSET, (spawn[0], spawn[1], spawn[2] + PLAYER_HEIGHT)
            )

            if config.sim_seconds > 0:
                reached = walk(generator, world, player_ref["handle"],
                               seconds=config.sim_seconds, dt=config.sim_dt,
                               events_logger=events_logger, gui_cli=gui_cli)
                if not reached:
                    ColoredLogger.warning("Player did not reach the objective in time")
    except MazeGenerationError as e:
        ColoredLogger.error(f"Maze generation failed: {e}")
        return 1
    except ValueError as e:
        ColoredLogger.error(f"Invalid parameters: {e}")
        return 2
    finally:
        if gui_cli is not None:
            from mazeforge.utils.camera import safe_disconnect_gui
            safe_disconnect_gui(gui_cli)
        elif not config.dry_run:
            world.close()

    return 0


if __name__ == "__main__":
    code = main()
    logging.shutdown()
    sys.exit(code)
