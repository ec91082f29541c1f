#!/usr/bin/env python3
"""Example: Place a couple of boxes in a room and reload them.

This script demonstrates the basic workflow for roomviewer:
1. Start a session backed by a scratch data directory
2. Load models and move them around (positions are clamped to the room)
3. Lock one object, then start a new session and restore the scene

Run with: python examples/furnish_room.py
"""

import math
import tempfile
from pathlib import Path

import trimesh

from roomviewer import EditorSession, RoomViewerConfig


def create_box(extents) -> bytes:
    """Create a box mesh as STL bytes."""
    return trimesh.creation.box(extents=list(extents)).export(file_type="stl")


def main():
    config = RoomViewerConfig.default()
    config.storage.data_dir = Path(tempfile.mkdtemp(prefix="roomviewer_"))

    print("roomviewer - Furnish Room Example")
    print("=" * 40)

    print("\n1. Starting session...")
    session = EditorSession.start(config)
    print(f"   {session.room!r}, data in {config.storage.data_dir}")

    print("\n2. Loading models...")
    table = session.import_payload(create_box((4.0, 1.0, 2.0)), "stl", name="table")
    shelf = session.import_payload(create_box((1.0, 6.0, 3.0)), "stl", name="shelf")
    print(f"   table: {table}")
    print(f"   shelf: {shelf}")

    print("\n3. Moving the shelf into the wall (it stops at the wall)...")
    session.translate(shelf, (25.0, 0.0, 0.0))
    print(f"   shelf position: {session.registry.get(shelf).transform.position}")

    print("\n4. Turning the table and locking it...")
    session.rotate(table, (0.0, math.pi / 4, 0.0))
    session.set_locked(table, True)
    moved = session.translate(table, (1.0, 0.0, 0.0))
    print(f"   move while locked accepted: {moved}")

    session.close()

    print("\n5. Restoring in a new session...")
    restored = EditorSession.start(config)
    for object_id, obj in restored.objects():
        lock = " (locked)" if obj.locked else ""
        print(f"   {object_id} {obj.name}: pos={obj.transform.position}{lock}")

    print("\n" + "=" * 40)
    print("Done!")


if __name__ == "__main__":
    main()
