# mazeforge/core/bullet_world.py
"""
pybullet implementation of ``WorldBackend``.

Shapes are created once per ``(asset, scale)`` and reused for every body,
the same way the city generator caches its mesh shapes.  Single-part assets
use ``createVisualShape`` / ``createCollisionShape``; compound assets use the
``*Array`` variants so a whole asset is still one body and one handle.
"""
from __future__ import annotations

import math
from typing import Dict, Optional, Tuple

import pybullet as p

from mazeforge.constants import FLOOR_TAG, PROBE_HEIGHT, PROBE_LENGTH
from mazeforge.core.assets import AssetSpec, Bounds, Part, Vec3, union_bounds
from mazeforge.core.world import WorldBackend

_GEOM = {
    "box": p.GEOM_BOX,
    "cylinder": p.GEOM_CYLINDER,
    "sphere": p.GEOM_SPHERE,
    "mesh": p.GEOM_MESH,
}


class BulletWorld(WorldBackend):
    def __init__(self, cli: int):
        self.cli = cli
        self._shape_cache: Dict[tuple, Tuple[int, int]] = {}
        self._tags: Dict[int, str] = {}

    # ------------------------------------------------------------------
    # Shapes
    # ------------------------------------------------------------------
    def _single_shape(self, part: Part, rgba) -> Tuple[int, int]:
        kwargs = dict(shapeType=_GEOM[part.shape], physicsClientId=self.cli)
        if part.shape == "box":
            kwargs["halfExtents"] = list(part.half_extents)
        elif part.shape == "sphere":
            kwargs["radius"] = part.radius
        elif part.shape == "mesh":
            kwargs["fileName"] = part.mesh_path
            kwargs["meshScale"] = list(part.mesh_scale)
        else:
            kwargs["radius"] = part.radius

        vis_kwargs = dict(kwargs, rgbaColor=list(rgba), visualFramePosition=list(part.offset))
        col_kwargs = dict(kwargs, collisionFramePosition=list(part.offset))
        if part.shape == "cylinder":
            # visual shapes call it length, collision shapes height
            vis_kwargs["length"] = part.length
            col_kwargs["height"] = part.length
        vis = p.createVisualShape(**vis_kwargs)
        col = p.createCollisionShape(**col_kwargs)
        return vis, col

    def _compound_shape(self, parts) -> Tuple[int, int]:
        if any(part.shape == "mesh" for part in parts):
            raise ValueError("mesh parts are only supported in single-part assets")
        shape_types = [_GEOM[part.shape] for part in parts]
        half_extents = [list(part.half_extents) for part in parts]
        radii = [part.radius for part in parts]
        lengths = [part.length for part in parts]
        offsets = [list(part.offset) for part in parts]
        vis = p.createVisualShapeArray(
            shapeTypes=shape_types,
            halfExtents=half_extents,
            radii=radii,
            lengths=lengths,
            visualFramePositions=offsets,
            physicsClientId=self.cli,
        )
        col = p.createCollisionShapeArray(
            shapeTypes=shape_types,
            halfExtents=half_extents,
            radii=radii,
            lengths=lengths,
            collisionFramePositions=offsets,
            physicsClientId=self.cli,
        )
        return vis, col

    def _shapes(self, asset: AssetSpec, scale: Vec3) -> Tuple[int, int]:
        cache_key = (asset, tuple(scale))
        if cache_key not in self._shape_cache:
            parts = asset.scaled_parts(scale)
            if len(parts) == 1:
                self._shape_cache[cache_key] = self._single_shape(parts[0], asset.rgba)
            else:
                self._shape_cache[cache_key] = self._compound_shape(parts)
        return self._shape_cache[cache_key]

    # ------------------------------------------------------------------
    # WorldBackend
    # ------------------------------------------------------------------
    def visual_bounds(self, asset: AssetSpec) -> Optional[Bounds]:
        if not asset.parts:
            return None
        boxes = []
        for part in asset.parts:
            if part.shape != "mesh":
                boxes.append(part.local_bounds())
                continue
            # loader decides the mesh extent; measure a throwaway body
            single = AssetSpec(f"{asset.name}#bounds", (part,), asset.rgba)
            body_id = self.spawn(single, (0.0, 0.0, 0.0))
            mn, mx = p.getAABB(body_id, physicsClientId=self.cli)
            self.remove(body_id)
            boxes.append((tuple(mn), tuple(mx)))
        return union_bounds(boxes)

    def spawn(self, asset, position, yaw_deg=0.0, scale=(1.0, 1.0, 1.0), tag=None) -> int:
        # a part-less asset becomes an invisible, collision-free marker body
        vis_id, col_id = self._shapes(asset, scale) if asset.parts else (-1, -1)
        orn = p.getQuaternionFromEuler([0, 0, math.radians(yaw_deg)])
        body_id = p.createMultiBody(
            baseMass=0,
            baseCollisionShapeIndex=col_id,
            baseVisualShapeIndex=vis_id,
            basePosition=list(position),
            baseOrientation=orn,
            physicsClientId=self.cli,
        )
        if len(asset.parts) > 1:
            p.changeVisualShape(body_id, -1, rgbaColor=list(asset.rgba), physicsClientId=self.cli)
        if tag is not None:
            self._tags[body_id] = tag
        return body_id

    def remove(self, handle: int) -> None:
        p.removeBody(handle, physicsClientId=self.cli)
        self._tags.pop(handle, None)

    def position(self, handle: int) -> Vec3:
        pos, _ = p.getBasePositionAndOrientation(handle, physicsClientId=self.cli)
        return tuple(pos)

    def move(self, handle: int, position: Vec3) -> None:
        _, orn = p.getBasePositionAndOrientation(handle, physicsClientId=self.cli)
        p.resetBasePositionAndOrientation(handle, list(position), orn, physicsClientId=self.cli)

    def probe_down(self, x: float, y: float, z: float) -> Optional[float]:
        start = [x, y, z + PROBE_HEIGHT]
        end = [x, y, z + PROBE_HEIGHT - PROBE_LENGTH]
        uid, _link, _frac, hit_pos, _normal = p.rayTest(start, end, physicsClientId=self.cli)[0]
        if uid < 0 or self._tags.get(uid) != FLOOR_TAG:
            return None
        return float(hit_pos[2])

    def close(self) -> None:
        self._shape_cache.clear()
        self._tags.clear()
        p.disconnect(physicsClientId=self.cli)
