"""Core modules for roomviewer."""

from .config import EditingParams, RoomParams, RoomViewerConfig, StorageParams

__all__ = ["EditingParams", "RoomParams", "RoomViewerConfig", "StorageParams"]
