# mazeforge/core/world.py
"""
Narrow interface between the maze core and whatever world hosts it.

The core only ever needs to: read an asset's visual bounds, spawn an asset
and get a handle back, remove that handle, read a handle's position and probe
straight down for tagged floor geometry.  ``DryRunWorld`` implements this
without a physics engine; ``mazeforge.core.bullet_world.BulletWorld`` does it
on a pybullet client.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from mazeforge.constants import FLOOR_TAG, PROBE_HEIGHT, PROBE_LENGTH
from mazeforge.core.assets import AssetSpec, Bounds, Vec3


class WorldBackend(ABC):
    @abstractmethod
    def visual_bounds(self, asset: AssetSpec) -> Optional[Bounds]:
        """Union AABB of *asset* at the origin, unscaled; ``None`` if it has no geometry."""

    @abstractmethod
    def spawn(
        self,
        asset: AssetSpec,
        position: Vec3,
        yaw_deg: float = 0.0,
        scale: Vec3 = (1.0, 1.0, 1.0),
        tag: Optional[str] = None,
    ) -> int:
        ...

    @abstractmethod
    def remove(self, handle: int) -> None:
        ...

    @abstractmethod
    def position(self, handle: int) -> Vec3:
        ...

    @abstractmethod
    def move(self, handle: int, position: Vec3) -> None:
        ...

    @abstractmethod
    def probe_down(self, x: float, y: float, z: float) -> Optional[float]:
        """
        Cast a ray from ``z + PROBE_HEIGHT`` down ``PROBE_LENGTH``.  Return the
        hit height when the first body hit is tagged ``FLOOR_TAG``.
        """


def transformed_bounds(local: Bounds, position: Vec3, yaw_deg: float) -> Bounds:
    """World AABB of a local AABB rotated about z by *yaw_deg* and translated."""
    (x0, y0, z0), (x1, y1, z1) = local
    c, s = math.cos(math.radians(yaw_deg)), math.sin(math.radians(yaw_deg))
    xs, ys = [], []
    for cx, cy in ((x0, y0), (x0, y1), (x1, y0), (x1, y1)):
        xs.append(cx * c - cy * s)
        ys.append(cx * s + cy * c)
    px, py, pz = position
    return (
        (px + min(xs), py + min(ys), pz + z0),
        (px + max(xs), py + max(ys), pz + z1),
    )


@dataclass
class Body:
    asset: AssetSpec
    position: Vec3
    yaw_deg: float
    scale: Vec3
    tag: Optional[str]
    local_bounds: Optional[Bounds]

    def world_bounds(self) -> Optional[Bounds]:
        if self.local_bounds is None:
            return None
        return transformed_bounds(self.local_bounds, self.position, self.yaw_deg)


class DryRunWorld(WorldBackend):
    """
    Bookkeeping-only world.  Bodies are axis-aligned boxes built from the
    declared asset geometry; the probe returns the top face of the highest
    body under the ray, and only counts it when that body is a tagged floor.
    """

    def __init__(self):
        self.bodies: Dict[int, Body] = {}
        self.removed: List[int] = []
        self._next_handle = 1

    def visual_bounds(self, asset: AssetSpec) -> Optional[Bounds]:
        return asset.bounds()

    def spawn(self, asset, position, yaw_deg=0.0, scale=(1.0, 1.0, 1.0), tag=None) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self.bodies[handle] = Body(
            asset=asset,
            position=tuple(float(v) for v in position),
            yaw_deg=float(yaw_deg),
            scale=tuple(scale),
            tag=tag,
            local_bounds=asset.bounds(tuple(scale)),
        )
        return handle

    def remove(self, handle: int) -> None:
        if self.bodies.pop(handle, None) is not None:
            self.removed.append(handle)

    def position(self, handle: int) -> Vec3:
        return self.bodies[handle].position

    def move(self, handle: int, position: Vec3) -> None:
        self.bodies[handle].position = tuple(float(v) for v in position)

    def probe_down(self, x: float, y: float, z: float) -> Optional[float]:
        top_z = z + PROBE_HEIGHT
        bottom_z = top_z - PROBE_LENGTH
        best: Optional[Tuple[float, Body]] = None
        for body in self.bodies.values():
            wb = body.world_bounds()
            if wb is None:
                continue
            (x0, y0, _), (x1, y1, z1) = wb
            if not (x0 <= x <= x1 and y0 <= y <= y1):
                continue
            if not (bottom_z <= z1 <= top_z):
                continue
            if best is None or z1 > best[0]:
                best = (z1, body)
        if best is None or best[1].tag != FLOOR_TAG:
            return None
        return best[0]

    def handles(self, tag: Optional[str] = None) -> List[int]:
        return [h for h, b in self.bodies.items() if tag is None or b.tag == tag]
