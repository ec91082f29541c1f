"""Tests for the plan preview."""

import pytest

from roomviewer.scene.bounds import AABB
from roomviewer.scene.preview import render_plan
from roomviewer.scene.registry import PlacedObject, PlacementRegistry
from roomviewer.scene.room import RoomVolume
from roomviewer.scene.transform import Transform3D

pytest.importorskip("matplotlib")


def test_render_plan_writes_image(tmp_path):
    registry = PlacementRegistry()
    locked = PlacedObject(
        name="shelf",
        bounds_local=AABB.from_extents([1.0, 4.0, 2.0]),
        transform=Transform3D(position=(5.0, 0.0, -3.0)),
        locked=True,
    )
    registry.add(locked)
    selected = registry.add(PlacedObject(bounds_local=AABB.from_extents([2.0, 1.0, 2.0])))
    registry.select(selected)

    output = tmp_path / "plans" / "room.png"

    assert render_plan(registry, RoomVolume(), output) is True
    assert output.stat().st_size > 0


def test_render_empty_room(tmp_path):
    output = tmp_path / "empty.png"
    assert render_plan(PlacementRegistry(), RoomVolume(), output, title="Empty") is True
    assert output.exists()
