"""Configuration management for roomviewer.

This module defines all configuration models using Pydantic for validation.
Configuration can be loaded from JSON files or constructed programmatically.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class RoomParams(BaseModel):
    """Room interior dimensions.

    The room is centered on the origin in X and Z with its floor at y = 0.
    """

    width: float = Field(default=20.0, gt=0, le=1000, description="Room extent along X")
    height: float = Field(default=10.0, gt=0, le=1000, description="Room extent along Y (floor to ceiling)")
    depth: float = Field(default=20.0, gt=0, le=1000, description="Room extent along Z")


class StorageParams(BaseModel):
    """Where scene state and model payloads are kept between sessions."""

    data_dir: Path = Field(
        default=Path(".roomviewer"),
        description="Directory holding the scene store and payload files"
    )
    store_file: str = Field(default="store.json", description="Key-value store file name")
    payload_dir: str = Field(default="payloads", description="Subdirectory for model payloads")
    scene_key: str = Field(default="roomviewer.scene", description="Store key for the saved scene")
    autosave: bool = Field(default=True, description="Save after every scene change")

    @property
    def store_path(self) -> Path:
        return self.data_dir / self.store_file

    @property
    def payload_path(self) -> Path:
        return self.data_dir / self.payload_dir


class EditingParams(BaseModel):
    """Defaults for interactive editing."""

    mode: Literal["translate", "rotate"] = Field(
        default="translate",
        description="Initial manipulation mode"
    )
    spawn_position: tuple[float, float, float] = Field(
        default=(0.0, 0.0, 0.0),
        description="Where newly loaded models are placed"
    )
    recenter_on_load: bool = Field(
        default=True,
        description="Center loaded geometry on X/Z and rest it on y = 0"
    )
    pick_fov_deg: float = Field(default=75.0, gt=0, lt=180, description="Camera field of view for screen picking")
    camera_position: tuple[float, float, float] = Field(
        default=(0.0, 5.0, 10.0),
        description="Camera eye position used for screen picking"
    )


class RoomViewerConfig(BaseModel):
    """Main configuration container."""

    room: RoomParams = Field(default_factory=RoomParams)
    storage: StorageParams = Field(default_factory=StorageParams)
    editing: EditingParams = Field(default_factory=EditingParams)

    @classmethod
    def from_file(cls, path: Path | str) -> RoomViewerConfig:
        """Load configuration from a JSON file."""
        path = Path(path)
        with open(path) as f:
            data = json.load(f)
        return cls.model_validate(data)

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)

    @classmethod
    def default(cls) -> RoomViewerConfig:
        """Create a default configuration."""
        return cls()
