"""Model loading modules for roomviewer."""

from .loader import (
    Failed,
    LoadEvent,
    Loaded,
    LoadedModel,
    ModelLoader,
    Progress,
    file_type_for,
)

__all__ = [
    "Failed",
    "LoadEvent",
    "Loaded",
    "LoadedModel",
    "ModelLoader",
    "Progress",
    "file_type_for",
]
