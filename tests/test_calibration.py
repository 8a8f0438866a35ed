"""Ground-calibration offsets, measured against the head-less world."""
from __future__ import annotations

import pytest

from mazeforge.core.assets import AssetPools, AssetSpec, Part, box_asset, default_pools
from mazeforge.core.calibration import DECORATION, ESCAPE, WALL, OffsetCache
from mazeforge.core.world import DryRunWorld


def test_wall_offset_lifts_base_to_ground_level():
    world = DryRunWorld()
    wall = box_asset("w", (4.0, 0.3, 3.0))
    cache = OffsetCache()

    assert cache.calibrate(world, WALL, wall, 0.0) == pytest.approx(1.5)
    assert cache.calibrate(world, WALL, wall, 2.0) == pytest.approx(3.5)


def test_decoration_offset_uses_floor_plane():
    world = DryRunWorld()
    cache = OffsetCache()
    resting = box_asset("resting", (1.0, 1.0, 1.0), offset=(0.0, 0.0, 0.5))
    centred = box_asset("centred", (0.6, 0.6, 0.6))

    assert cache.calibrate(world, DECORATION, resting, None) == pytest.approx(0.0)
    assert cache.calibrate(world, DECORATION, centred, None) == pytest.approx(0.3)


def test_asset_without_geometry_gets_zero_and_a_warning(caplog):
    cache = OffsetCache()
    empty = AssetSpec("ghost")

    offset = cache.calibrate(DryRunWorld(), WALL, empty, 0.0)

    assert offset == 0.0
    assert len(cache.warnings) == 1
    assert "ghost" in caplog.text


def test_rebuild_keys_by_role_and_asset():
    shared = box_asset("shared", (1.0, 1.0, 2.0))
    pools = AssetPools(walls=[shared], decorations=[shared])
    cache = OffsetCache()

    cache.rebuild(DryRunWorld(), pools, wall_ground_level=1.0)

    assert len(cache) == 2
    assert cache.offset(WALL, shared) == pytest.approx(2.0)
    assert cache.offset(DECORATION, shared) == pytest.approx(1.0)
    with pytest.raises(KeyError):
        cache.offset(ESCAPE, shared)


def test_rebuild_clears_previous_entries():
    world = DryRunWorld()
    cache = OffsetCache()
    cache.rebuild(world, default_pools(4.0), 0.0)
    assert len(cache) == 2 + 3 + 1

    cache.rebuild(world, AssetPools(), 0.0)
    assert len(cache) == 0


def test_mesh_bounds_come_from_obj_vertices(tmp_path):
    obj = tmp_path / "arch.obj"
    obj.write_text("# arch\nv -1 -0.5 0\nv 1 0.5 0\nv 0 0 3\nf 1 2 3\n")
    arch = AssetSpec("arch", (Part("mesh", mesh_path=str(obj), mesh_scale=(2.0, 2.0, 0.5)),))

    assert arch.bounds() == ((-2.0, -1.0, 0.0), (2.0, 1.0, 1.5))
    assert OffsetCache().calibrate(DryRunWorld(), WALL, arch, 1.0) == pytest.approx(1.0)


def test_missing_mesh_file_counts_as_no_geometry():
    ghost = AssetSpec("ghost_mesh", (Part("mesh", mesh_path="/nonexistent/ghost.obj"),))
    cache = OffsetCache()
    assert cache.calibrate(DryRunWorld(), DECORATION, ghost, None) == 0.0
    assert cache.warnings
