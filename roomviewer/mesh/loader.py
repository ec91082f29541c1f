"""Model loading using trimesh.

This module decodes model payloads (STL, OBJ, PLY, glTF, etc.) into meshes,
computes their local bounding boxes, and reports the outcome of each load
as a tagged event: Progress, Loaded or Failed.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Union

import numpy as np
import trimesh

from ..scene.bounds import AABB

logger = logging.getLogger(__name__)


@dataclass
class LoadedModel:
    """A decoded model ready to be placed."""

    mesh: trimesh.Trimesh
    bounds_local: AABB
    file_type: str


@dataclass
class Progress:
    """Load progress in the range 0-1."""

    fraction: float


@dataclass
class Loaded:
    """The payload decoded successfully."""

    model: LoadedModel


@dataclass
class Failed:
    """The payload could not be decoded."""

    reason: str


LoadEvent = Union[Progress, Loaded, Failed]


def file_type_for(path: str | Path) -> str:
    """Return the trimesh file type for a path, e.g. ``"glb"``."""
    return Path(path).suffix.lower().lstrip(".")


class ModelLoader:
    """Decode model payloads and prepare them for placement."""

    SUPPORTED_FORMATS = {"stl", "obj", "ply", "off", "glb", "gltf"}
    REQUIRED_FORMATS = {"stl", "glb"}

    def __init__(self, recenter: bool = True):
        """Create a loader.

        Args:
            recenter: Center loaded geometry on X/Z and rest it on y = 0
        """
        self.recenter = recenter

    @classmethod
    def check_available(cls) -> None:
        """Verify trimesh can decode the formats the viewer depends on.

        Raises:
            RuntimeError: If a required loader is missing
        """
        available = set(trimesh.available_formats())
        missing = cls.REQUIRED_FORMATS - available
        if missing:
            raise RuntimeError(
                f"trimesh is missing loaders for: {sorted(missing)}. "
                "Reinstall trimesh with its default dependencies."
            )

    def decode(self, payload: bytes, file_type: str) -> LoadedModel:
        """Decode a payload into a placeable model.

        Args:
            payload: Raw model file contents
            file_type: Format name, e.g. ``"stl"`` or ``"glb"``

        Returns:
            LoadedModel with its local bounds

        Raises:
            ValueError: If the format is unsupported or holds no geometry
        """
        file_type = file_type.lower().lstrip(".")
        if file_type not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {file_type}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        loaded = trimesh.load(io.BytesIO(payload), file_type=file_type)

        # Handle scenes (multiple meshes) by concatenating
        if isinstance(loaded, trimesh.Scene):
            meshes = [
                geom for geom in loaded.geometry.values()
                if isinstance(geom, trimesh.Trimesh)
            ]
            if not meshes:
                raise ValueError("No valid meshes found in scene")
            mesh = trimesh.util.concatenate(meshes)
        elif isinstance(loaded, trimesh.Trimesh):
            mesh = loaded
        else:
            raise ValueError(f"Unexpected type from trimesh.load: {type(loaded).__name__}")

        if len(mesh.vertices) == 0:
            raise ValueError("Model contains no vertices")

        if self.recenter:
            rest_on_floor(mesh)

        return LoadedModel(mesh=mesh, bounds_local=AABB.from_mesh(mesh), file_type=file_type)

    def load(
        self,
        payload: bytes,
        file_type: str,
        on_event: Callable[[LoadEvent], None],
    ) -> None:
        """Decode a payload, reporting the outcome through ``on_event``.

        Emits ``Progress(0.0)`` and ``Progress(1.0)`` followed by exactly
        one ``Loaded`` or ``Failed`` event. Decoding errors never escape.
        """
        on_event(Progress(0.0))
        try:
            model = self.decode(payload, file_type)
        except Exception as e:
            logger.warning(f"Failed to load {file_type} model: {e}")
            on_event(Progress(1.0))
            on_event(Failed(str(e)))
            return
        on_event(Progress(1.0))
        on_event(Loaded(model))

    def read_file(self, path: str | Path) -> tuple[bytes, str]:
        """Read a model file from disk.

        Returns:
            Tuple of (payload bytes, file type)

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the extension is not a supported format
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Model file not found: {path}")

        file_type = file_type_for(path)
        if file_type not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )
        return path.read_bytes(), file_type


def rest_on_floor(mesh: trimesh.Trimesh) -> trimesh.Trimesh:
    """Center a mesh on X/Z and move its lowest point to y = 0 (in-place)."""
    lo, hi = mesh.bounds
    offset = np.array([-(lo[0] + hi[0]) / 2, -lo[1], -(lo[2] + hi[2]) / 2])
    mesh.vertices += offset
    return mesh
