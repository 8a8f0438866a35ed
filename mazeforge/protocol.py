# mazeforge/protocol.py
"""Plain dataclasses shared between the generator, the CLI and the tests.

``MazeLayout`` is the deterministic record of one generation pass.  It packs
to msgpack and carries a SHA-256 digest, so two runs with the same seed and
parameters can be compared with a single string.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import msgpack

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
    SPAWN_CLEAR_RADIUS,
    WALL_GROUND_LEVEL,
    WIDTH,
)

Vec3 = Tuple[float, float, float]


@dataclass
class MazeParams:
    width: int = WIDTH
    height: int = HEIGHT
    cell_size: float = CELL_SIZE
    seed: Optional[int] = None          # None → fresh seed on every generation
    loop_chance: float = LOOP_CHANCE
    spawn_clear_radius: float = SPAWN_CLEAR_RADIUS
    floor_z: float = FLOOR_Z
    wall_ground_level: float = WALL_GROUND_LEVEL
    decoration_density: float = DECORATION_DENSITY
    decoration_spacing: float = DECORATION_SPACING
    max_decoration_rotation: float = MAX_DECORATION_ROTATION
    decoration_scale_range: Tuple[float, float] = DECORATION_SCALE_RANGE
    portal_move_window: float = PORTAL_MOVE_WINDOW
    portal_proximity_threshold: float = PORTAL_PROXIMITY_THRESHOLD

    def validate(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError(f"maze must be at least 1x1, got {self.width}x{self.height}")
        if self.cell_size <= 0:
            raise ValueError("cell_size must be positive")
        for name in ("loop_chance", "decoration_density"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        for name in ("spawn_clear_radius", "decoration_spacing", "portal_move_window",
                     "portal_proximity_threshold"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        lo, hi = self.decoration_scale_range
        if lo <= 0 or hi < lo:
            raise ValueError(f"invalid decoration_scale_range {self.decoration_scale_range}")


@dataclass(slots=True)
class Placement:
    kind: str                           # floor | wall | decoration | escape
    asset: str
    cell: Tuple[int, int]
    position: Vec3
    yaw: float = 0.0
    scale: Vec3 = (1.0, 1.0, 1.0)
    handle: Optional[int] = None        # backend handle, never packed

    def as_record(self) -> list:
        return [self.kind, self.asset, list(self.cell), list(self.position), self.yaw, list(self.scale)]

    @staticmethod
    def from_record(rec) -> "Placement":
        kind, asset, cell, position, yaw, scale = rec
        return Placement(kind, asset, tuple(cell), tuple(position), yaw, tuple(scale))


@dataclass(slots=True)
class RelocationEvent:
    time: float
    from_cell: Tuple[int, int]
    to_cell: Tuple[int, int]
    position: Vec3
    player_position: Vec3


@dataclass(slots=True)
class MazeLayout:
    seed: int
    width: int
    height: int
    cell_size: float
    origin: Vec3
    walls: List[Tuple[bool, bool, bool, bool]]   # per cell, x outer / y inner
    placements: List[Placement] = field(default_factory=list)
    escape_cell: Optional[Tuple[int, int]] = None
    decoration_target: int = 0

    def of_kind(self, kind: str) -> List[Placement]:
        return [pl for pl in self.placements if pl.kind == kind]

    def summary(self) -> dict:
        return {
            "seed": self.seed,
            "size": f"{self.width}x{self.height}",
            "floors": len(self.of_kind("floor")),
            "walls": len(self.of_kind("wall")),
            "decorations": len(self.of_kind("decoration")),
            "decoration_target": self.decoration_target,
            "escape_cell": self.escape_cell,
        }

    def pack(self) -> bytes:
        return msgpack.packb(
            {
                "seed": self.seed,
                "width": self.width,
                "height": self.height,
                "cell_size": self.cell_size,
                "origin": list(self.origin),
                "walls": [list(w) for w in self.walls],
                "placements": [pl.as_record() for pl in self.placements],
                "escape_cell": list(self.escape_cell) if self.escape_cell is not None else None,
                "decoration_target": self.decoration_target,
            },
            use_bin_type=True,
        )

    @staticmethod
    def unpack(blob: bytes) -> "MazeLayout":
        obj = msgpack.unpackb(blob, raw=False)
        return MazeLayout(
            seed=obj["seed"],
            width=obj["width"],
            height=obj["height"],
            cell_size=obj["cell_size"],
            origin=tuple(obj["origin"]),
            walls=[tuple(w) for w in obj["walls"]],
            placements=[Placement.from_record(r) for r in obj["placements"]],
            escape_cell=tuple(obj["escape_cell"]) if obj["escape_cell"] is not None else None,
            decoration_target=obj["decoration_target"],
        )

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.pack()).hexdigest()
