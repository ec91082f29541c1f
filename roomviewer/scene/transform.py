"""3D transformation utilities for placed objects.

Provides Transform3D for representing position, rotation, and per-axis
scale, with conversion to 4x4 homogeneous transformation matrices.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field
from scipy.spatial.transform import Rotation


class Transform3D(BaseModel):
    """3D transformation: position + rotation + scale.

    Attributes:
        position: XYZ position in room units (origin at floor center)
        rotation: XYZ Euler angles in radians (applied in XYZ order)
        scale: Per-axis scale factors
    """

    position: tuple[float, float, float] = Field(
        default=(0.0, 0.0, 0.0),
        description="XYZ position"
    )
    rotation: tuple[float, float, float] = Field(
        default=(0.0, 0.0, 0.0),
        description="XYZ rotation in radians (Euler angles)"
    )
    scale: tuple[float, float, float] = Field(
        default=(1.0, 1.0, 1.0),
        description="XYZ scale factors"
    )

    model_config = {"frozen": False, "allow_inf_nan": False}

    def to_matrix(self) -> NDArray[np.float64]:
        """Convert to 4x4 homogeneous transformation matrix.

        The transformation order is: Scale -> Rotate -> Translate
        This means the matrix is built as: T @ R @ S

        Returns:
            4x4 transformation matrix
        """
        s = np.diag([*self.scale, 1.0]).astype(np.float64)

        rot = Rotation.from_euler('xyz', self.rotation)
        r = np.eye(4, dtype=np.float64)
        r[:3, :3] = rot.as_matrix()

        t = np.eye(4, dtype=np.float64)
        t[:3, 3] = self.position

        return t @ r @ s

    def apply_to_points(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Apply transformation to an Nx3 array of points.

        Args:
            points: Nx3 array of XYZ coordinates

        Returns:
            Transformed Nx3 array of points
        """
        points = np.asarray(points, dtype=np.float64)
        matrix = self.to_matrix()

        ones = np.ones((len(points), 1), dtype=np.float64)
        homogeneous = np.hstack([points, ones])

        transformed = (matrix @ homogeneous.T).T
        return transformed[:, :3]

    def translated(self, delta: tuple[float, float, float]) -> Transform3D:
        """Return a copy moved by ``delta``."""
        position = tuple(float(p + d) for p, d in zip(self.position, delta))
        return self.model_copy(update={"position": position})

    def rotated(self, delta: tuple[float, float, float]) -> Transform3D:
        """Return a copy with ``delta`` radians added to each Euler angle."""
        rotation = tuple(float(r + d) for r, d in zip(self.rotation, delta))
        return self.model_copy(update={"rotation": rotation})

    def is_finite(self) -> bool:
        """Check that no component is NaN or infinite.

        Copies made with ``model_copy`` (``translated``, ``rotated``) are
        not validated on construction.
        """
        return bool(np.all(np.isfinite([self.position, self.rotation, self.scale])))

    def is_close(self, other: Transform3D, atol: float = 1e-6) -> bool:
        """Check whether two transforms match within ``atol``."""
        return bool(
            np.allclose(self.position, other.position, atol=atol)
            and np.allclose(self.rotation, other.rotation, atol=atol)
            and np.allclose(self.scale, other.scale, atol=atol)
        )

    @classmethod
    def identity(cls) -> Transform3D:
        """Return identity transform (no transformation)."""
        return cls()

    def __repr__(self) -> str:
        return (
            f"Transform3D(pos={self.position}, "
            f"rot={self.rotation}, scale={self.scale})"
        )
