"""Scene management for placing models inside a room.

This module provides the room volume, the placement registry with its
selection state, the containment resolver that keeps objects inside the
room, and the editor session tying them together.
"""

from .transform import Transform3D
from .bounds import AABB
from .room import RoomVolume
from .registry import PlacedObject, PlacementRegistry
from .containment import ContainmentResolver
from .picking import Ray, intersect_floor, pick, ray_from_screen
from .session import EditorSession

__all__ = [
    "Transform3D",
    "AABB",
    "RoomVolume",
    "PlacedObject",
    "PlacementRegistry",
    "ContainmentResolver",
    "Ray",
    "intersect_floor",
    "pick",
    "ray_from_screen",
    "EditorSession",
]
