"""roomviewer - Place 3D models inside a room.

A Python application for arranging 3D models inside a fixed rectangular
room: load model files, select, move, rotate, lock and delete them, with
the scene saved locally and restored on the next run.
"""

__version__ = "0.1.0"

from .core.config import RoomViewerConfig
from .scene import (
    ContainmentResolver,
    EditorSession,
    PlacedObject,
    PlacementRegistry,
    RoomVolume,
    Transform3D,
)
from .mesh.loader import ModelLoader
from .storage import SceneStorage

__all__ = [
    "RoomViewerConfig",
    "ModelLoader",
    "ContainmentResolver",
    "EditorSession",
    "PlacedObject",
    "PlacementRegistry",
    "RoomVolume",
    "Transform3D",
    "SceneStorage",
]
