# mazeforge/core/assets.py
"""
Placeable asset descriptors.

An ``AssetSpec`` is an immutable recipe made of one or more ``Part``
primitives (box, cylinder, sphere or mesh), each with a local frame offset.
Bounds are derived from the declared geometry, so calibration never needs to
inspect a live object.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

Vec3 = Tuple[float, float, float]
Bounds = Tuple[Vec3, Vec3]

SHAPES = ("box", "cylinder", "sphere", "mesh")

_mesh_bounds_cache: dict = {}


def _obj_vertex_bounds(path: str) -> Optional[Bounds]:
    """Min/max of the ``v`` records of a Wavefront OBJ file."""
    if path in _mesh_bounds_cache:
        return _mesh_bounds_cache[path]
    result = None
    if os.path.exists(path):
        mn = [float("inf")] * 3
        mx = [float("-inf")] * 3
        with open(path, "r") as f:
            for line in f:
                if not line.startswith("v "):
                    continue
                xyz = [float(v) for v in line.split()[1:4]]
                for i in range(3):
                    mn[i] = min(mn[i], xyz[i])
                    mx[i] = max(mx[i], xyz[i])
        if mn[0] != float("inf"):
            result = (tuple(mn), tuple(mx))
    _mesh_bounds_cache[path] = result
    return result


def union_bounds(boxes: List[Bounds]) -> Optional[Bounds]:
    if not boxes:
        return None
    mn = tuple(min(b[0][i] for b in boxes) for i in range(3))
    mx = tuple(max(b[1][i] for b in boxes) for i in range(3))
    return (mn, mx)


@dataclass(frozen=True)
class Part:
    shape: str
    half_extents: Vec3 = (0.5, 0.5, 0.5)
    radius: float = 0.5
    length: float = 1.0
    mesh_path: Optional[str] = None
    mesh_scale: Vec3 = (1.0, 1.0, 1.0)
    offset: Vec3 = (0.0, 0.0, 0.0)

    def __post_init__(self):
        if self.shape not in SHAPES:
            raise ValueError(f"unknown part shape {self.shape!r}")
        if self.shape == "mesh" and not self.mesh_path:
            raise ValueError("mesh parts need a mesh_path")

    def scaled(self, scale: Vec3) -> "Part":
        sx, sy, sz = scale
        return replace(
            self,
            half_extents=(self.half_extents[0] * sx, self.half_extents[1] * sy, self.half_extents[2] * sz),
            radius=self.radius * max(sx, sy) if self.shape == "cylinder" else self.radius * max(scale),
            length=self.length * sz,
            mesh_scale=(self.mesh_scale[0] * sx, self.mesh_scale[1] * sy, self.mesh_scale[2] * sz),
            offset=(self.offset[0] * sx, self.offset[1] * sy, self.offset[2] * sz),
        )

    def local_bounds(self) -> Optional[Bounds]:
        if self.shape == "box":
            ext = self.half_extents
        elif self.shape == "cylinder":
            ext = (self.radius, self.radius, self.length / 2)
        elif self.shape == "sphere":
            ext = (self.radius,) * 3
        else:
            raw = _obj_vertex_bounds(self.mesh_path)
            if raw is None:
                return None
            lo = [raw[0][i] * self.mesh_scale[i] + self.offset[i] for i in range(3)]
            hi = [raw[1][i] * self.mesh_scale[i] + self.offset[i] for i in range(3)]
            # negative scale flips an axis
            return (tuple(min(a, b) for a, b in zip(lo, hi)), tuple(max(a, b) for a, b in zip(lo, hi)))
        ox, oy, oz = self.offset
        return ((ox - ext[0], oy - ext[1], oz - ext[2]), (ox + ext[0], oy + ext[1], oz + ext[2]))


@dataclass(frozen=True)
class AssetSpec:
    name: str
    parts: Tuple[Part, ...] = ()
    rgba: Tuple[float, float, float, float] = (0.7, 0.7, 0.7, 1.0)

    def scaled_parts(self, scale: Vec3 = (1.0, 1.0, 1.0)) -> List[Part]:
        return [part.scaled(scale) for part in self.parts]

    def bounds(self, scale: Vec3 = (1.0, 1.0, 1.0)) -> Optional[Bounds]:
        """Union of the visual bounds of every part, relative to the asset origin."""
        boxes = [b for b in (p.local_bounds() for p in self.scaled_parts(scale)) if b is not None]
        return union_bounds(boxes)


@dataclass
class AssetPools:
    walls: List[AssetSpec] = field(default_factory=list)
    floors: List[AssetSpec] = field(default_factory=list)
    decorations: List[AssetSpec] = field(default_factory=list)
    escape: Optional[AssetSpec] = None


# --------------------------------------------------------------------------
# Builders
# --------------------------------------------------------------------------
def box_asset(name: str, size: Vec3, rgba=(0.7, 0.7, 0.7, 1.0), offset: Vec3 = (0.0, 0.0, 0.0)) -> AssetSpec:
    half = (size[0] / 2, size[1] / 2, size[2] / 2)
    return AssetSpec(name, (Part("box", half_extents=half, offset=offset),), tuple(rgba))


def default_pools(cell_size: float) -> AssetPools:
    """
    Primitive-only asset set.  Walls run along +x (rotated for east/west
    boundaries), floor tiles are unit squares whose top face sits at z=0 so
    they can be stretched to the cell size.  Most assets are centred on their
    origin on purpose: the calibration pass lifts them onto the ground.
    """
    wall_len = cell_size + 0.3
    walls = [
        box_asset("stone_wall", (wall_len, 0.3, 3.0), rgba=(0.55, 0.52, 0.48, 1.0)),
        box_asset("hedge_wall", (wall_len, 0.5, 2.6), rgba=(0.16, 0.42, 0.18, 1.0)),
    ]
    floors = [
        box_asset("floor_tile", (1.0, 1.0, 0.1), rgba=(0.35, 0.35, 0.38, 1.0), offset=(0.0, 0.0, -0.05)),
    ]
    decorations = [
        box_asset("crate", (0.6, 0.6, 0.6), rgba=(0.6, 0.42, 0.2, 1.0)),
        AssetSpec("stump", (Part("cylinder", radius=0.25, length=0.5),), (0.4, 0.28, 0.16, 1.0)),
        AssetSpec(
            "lamp",
            (
                Part("cylinder", radius=0.05, length=1.6, offset=(0.0, 0.0, 0.3)),
                Part("sphere", radius=0.15, offset=(0.0, 0.0, 1.2)),
            ),
            (0.9, 0.85, 0.5, 1.0),
        ),
    ]
    escape = AssetSpec(
        "escape_portal",
        (
            Part("box", half_extents=(0.15, 0.15, 1.25), offset=(-0.9, 0.0, 0.0)),
            Part("box", half_extents=(0.15, 0.15, 1.25), offset=(0.9, 0.0, 0.0)),
            Part("box", half_extents=(1.05, 0.15, 0.15), offset=(0.0, 0.0, 1.4)),
        ),
        (0.3, 0.2, 0.9, 1.0),
    )
    return AssetPools(walls=walls, floors=floors, decorations=decorations, escape=escape)
