import argparse
from typing import Optional, Sequence

from mazeforge.constants import (
    CELL_SIZE,
    DECORATION_DENSITY,
    DECORATION_SCALE_RANGE,
    DECORATION_SPACING,
    FLOOR_Z,
    HEIGHT,
    LOOP_CHANCE,
    MAX_DECORATION_ROTATION,
    PORTAL_MOVE_WINDOW,
    PORTAL_PROXIMITY_THRESHOLD,
    SIM_DT,
    SPAWN_CLEAR_RADIUS,
    WALL_GROUND_LEVEL,
    WIDTH,
)
from mazeforge.protocol import MazeParams

SIM_SECONDS = 40.0
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a seeded maze and run the escape objective.")

    parser.add_argument("--width", type=int, default=WIDTH, help="Grid columns")
    parser.add_argument("--height", type=int, default=HEIGHT, help="Grid rows")
    parser.add_argument("--cell-size", type=float, default=CELL_SIZE, help="World units per cell")
    parser.add_argument("--seed", type=int, default=None,
                        help="Maze seed; omit for a fresh seed on every generation")
    parser.add_argument("--loop-chance", type=float, default=LOOP_CHANCE,
                        help="Per-cell probability of removing one extra wall")
    parser.add_argument("--spawn-clear-radius", type=float, default=SPAWN_CLEAR_RADIUS)
    parser.add_argument("--floor-z", type=float, default=FLOOR_Z)
    parser.add_argument("--wall-ground-level", type=float, default=WALL_GROUND_LEVEL)
    parser.add_argument("--decoration-density", type=float, default=DECORATION_DENSITY)
    parser.add_argument("--decoration-spacing", type=float, default=DECORATION_SPACING)
    parser.add_argument("--max-decoration-rotation", type=float, default=MAX_DECORATION_ROTATION)
    parser.add_argument("--decoration-scale", type=float, nargs=2, metavar=("MIN", "MAX"),
                        default=list(DECORATION_SCALE_RANGE))
    parser.add_argument("--portal-move-window", type=float, default=PORTAL_MOVE_WINDOW,
                        help="Seconds after generation during which the objective may move")
    parser.add_argument("--portal-proximity-threshold", type=float, default=PORTAL_PROXIMITY_THRESHOLD)

    parser.add_argument("--spawn", type=float, nargs=3, metavar=("X", "Y", "Z"),
                        default=[0.0, 0.0, 0.0], help="Spawn anchor position")
    parser.add_argument("--dry-run", action="store_true",
                        help="Build into the headless bookkeeping world instead of pybullet")
    parser.add_argument("--gui", action="store_true", help="Open the pybullet viewer")
    parser.add_argument("--sim-seconds", type=float, default=SIM_SECONDS,
                        help="Length of the scripted walk; 0 disables it")
    parser.add_argument("--sim-dt", type=float, default=SIM_DT)
    parser.add_argument("--regenerate", type=int, default=0,
                        help="Extra regeneration passes after the first maze")
    parser.add_argument("--events-dir", type=str, default=None,
                        help="Write relocation events to <dir>/events.log")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default="INFO")

    return parser


def read_config(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def params_from_config(config: argparse.Namespace) -> MazeParams:
    return MazeParams(
        width=config.width,
        height=config.height,
        cell_size=config.cell_size,
        seed=config.seed,
        loop_chance=config.loop_chance,
        spawn_clear_radius=config.spawn_clear_radius,
        floor_z=config.floor_z,
        wall_ground_level=config.wall_ground_level,
        decoration_density=config.decoration_density,
        decoration_spacing=config.decoration_spacing,
        max_decoration_rotation=config.max_decoration_rotation,
        decoration_scale_range=tuple(config.decoration_scale),
        portal_move_window=config.portal_move_window,
        portal_proximity_threshold=config.portal_proximity_threshold,
    )
