"""Local persistence for roomviewer scenes."""

from .persistence import (
    ReconstructionRequest,
    SceneEntry,
    SceneStorage,
    SerializedScene,
    dumps,
    load,
    loads,
    save,
)
from .store import JsonFileStore, KeyValueStore, MemoryPayloadStore, MemoryStore, PayloadStore

__all__ = [
    "ReconstructionRequest",
    "SceneEntry",
    "SceneStorage",
    "SerializedScene",
    "dumps",
    "load",
    "loads",
    "save",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryPayloadStore",
    "MemoryStore",
    "PayloadStore",
]
