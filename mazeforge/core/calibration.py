# mazeforge/core/calibration.py
"""
Ground calibration: one vertical offset per (role, asset).

Walls and the escape objective are lifted so their lowest visual point sits
at ``wall_ground_level``; decorations are lifted so their lowest point sits
on the floor plane.  The cache is rebuilt at the start of every generation
and placement only reads from it.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from mazeforge.core.assets import AssetPools, AssetSpec
from mazeforge.core.world import WorldBackend

logger = logging.getLogger(__name__)

WALL = "wall"
DECORATION = "decoration"
ESCAPE = "escape"


class OffsetCache:
    def __init__(self):
        self._offsets: Dict[Tuple[str, AssetSpec], float] = {}
        self.warnings: List[str] = []

    def __len__(self) -> int:
        return len(self._offsets)

    def __contains__(self, key: Tuple[str, AssetSpec]) -> bool:
        return key in self._offsets

    def clear(self) -> None:
        self._offsets.clear()
        self.warnings.clear()

    def offset(self, role: str, asset: AssetSpec) -> float:
        return self._offsets[(role, asset)]

    def calibrate(self, world: WorldBackend, role: str, asset: AssetSpec,
                  ground_level: Optional[float]) -> float:
        """
        ``ground_level - local_min_z``, or ``-local_min_z`` when *ground_level*
        is ``None``.  Assets without geometry get 0.
        """
        bounds = world.visual_bounds(asset)
        if bounds is None:
            msg = f"{role} asset '{asset.name}' has no visual geometry. Offset set to 0."
            logger.warning(msg)
            self.warnings.append(msg)
            offset = 0.0
        else:
            local_min_z = bounds[0][2]
            offset = (ground_level if ground_level is not None else 0.0) - local_min_z
            logger.debug(f"{role} asset '{asset.name}': bounds min z = {local_min_z:.2f}, offset = {offset:.2f}")
        self._offsets[(role, asset)] = offset
        return offset

    def _calibrate_all(self, world: WorldBackend, role: str, assets: Iterable[AssetSpec],
                       ground_level: Optional[float]) -> None:
        for asset in assets:
            if asset is None or (role, asset) in self._offsets:
                continue
            self.calibrate(world, role, asset, ground_level)

    def rebuild(self, world: WorldBackend, pools: AssetPools, wall_ground_level: float) -> None:
        self.clear()
        self._calibrate_all(world, WALL, pools.walls, wall_ground_level)
        self._calibrate_all(world, DECORATION, pools.decorations, None)
        if pools.escape is not None:
            self._calibrate_all(world, ESCAPE, [pools.escape], wall_ground_level)
