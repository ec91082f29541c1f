"""Axis-aligned bounding boxes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field, model_validator

if TYPE_CHECKING:
    import trimesh

    from .transform import Transform3D


class AABB(BaseModel):
    """Axis-aligned bounding box given by its min and max corners."""

    min: tuple[float, float, float] = Field(description="Minimum XYZ corner")
    max: tuple[float, float, float] = Field(description="Maximum XYZ corner")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_order(self) -> AABB:
        for lo, hi in zip(self.min, self.max):
            if lo > hi:
                raise ValueError(f"AABB min {self.min} exceeds max {self.max}")
        return self

    @classmethod
    def from_points(cls, points: NDArray[np.float64]) -> AABB:
        """Create the smallest box enclosing an Nx3 array of points."""
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3 or len(points) == 0:
            raise ValueError(f"Points must be a non-empty Nx3 array, got shape {points.shape}")
        return cls(
            min=tuple(points.min(axis=0).tolist()),
            max=tuple(points.max(axis=0).tolist()),
        )

    @classmethod
    def from_mesh(cls, mesh: trimesh.Trimesh) -> AABB:
        """Create a box from a mesh's bounds."""
        return cls(
            min=tuple(mesh.bounds[0].tolist()),
            max=tuple(mesh.bounds[1].tolist()),
        )

    @classmethod
    def from_extents(
        cls,
        extents: Sequence[float],
        center: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> AABB:
        """Create a box of the given size around ``center``."""
        half = np.asarray(extents, dtype=np.float64) / 2
        c = np.asarray(center, dtype=np.float64)
        return cls(min=tuple((c - half).tolist()), max=tuple((c + half).tolist()))

    @property
    def size(self) -> tuple[float, float, float]:
        """Return box dimensions along each axis."""
        return tuple(hi - lo for lo, hi in zip(self.min, self.max))

    @property
    def center(self) -> tuple[float, float, float]:
        """Return box center point."""
        return tuple((lo + hi) / 2 for lo, hi in zip(self.min, self.max))

    def corners(self) -> NDArray[np.float64]:
        """Return the 8 corners as an 8x3 array."""
        (x0, y0, z0), (x1, y1, z1) = self.min, self.max
        return np.array([
            [x0, y0, z0],
            [x0, y0, z1],
            [x0, y1, z0],
            [x0, y1, z1],
            [x1, y0, z0],
            [x1, y0, z1],
            [x1, y1, z0],
            [x1, y1, z1],
        ], dtype=np.float64)

    def transformed(self, transform: Transform3D) -> AABB:
        """Return the world-space box enclosing this box under ``transform``.

        The 8 corners are transformed and re-boxed, so a rotated box grows
        to the axis-aligned box around its rotated corners.
        """
        return AABB.from_points(transform.apply_to_points(self.corners()))

    def translated(self, delta: Sequence[float]) -> AABB:
        """Return a copy shifted by ``delta``."""
        return AABB(
            min=tuple(float(v + d) for v, d in zip(self.min, delta)),
            max=tuple(float(v + d) for v, d in zip(self.max, delta)),
        )
