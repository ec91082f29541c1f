"""Room volume: the legal placement region for objects."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from .bounds import AABB
from .transform import Transform3D

if TYPE_CHECKING:
    from ..core.config import RoomParams

# Protrusions smaller than this are treated as touching the wall.
CLAMP_TOLERANCE = 1e-9


class RoomVolume(BaseModel):
    """Axis-aligned room interior.

    The floor is the plane y = 0 and the room is centered on the origin
    in X and Z, so the interior spans x in [-width/2, width/2],
    y in [0, height] and z in [-depth/2, depth/2].
    """

    width: float = Field(default=20.0, gt=0, description="Extent along X")
    height: float = Field(default=10.0, gt=0, description="Extent along Y")
    depth: float = Field(default=20.0, gt=0, description="Extent along Z")

    model_config = {"frozen": True}

    @classmethod
    def from_params(cls, params: RoomParams) -> RoomVolume:
        """Create a RoomVolume from configured room dimensions."""
        return cls(width=params.width, height=params.height, depth=params.depth)

    @property
    def x_range(self) -> tuple[float, float]:
        return (-self.width / 2, self.width / 2)

    @property
    def y_range(self) -> tuple[float, float]:
        return (0.0, self.height)

    @property
    def z_range(self) -> tuple[float, float]:
        return (-self.depth / 2, self.depth / 2)

    @property
    def floor_y(self) -> float:
        return 0.0

    @property
    def bounds(self) -> AABB:
        """Return the interior as an AABB."""
        return AABB(
            min=(self.x_range[0], self.y_range[0], self.z_range[0]),
            max=(self.x_range[1], self.y_range[1], self.z_range[1]),
        )

    @property
    def size(self) -> tuple[float, float, float]:
        """Return room dimensions (width, height, depth)."""
        return (self.width, self.height, self.depth)

    @property
    def center(self) -> tuple[float, float, float]:
        """Return room center point."""
        return (0.0, self.height / 2, 0.0)

    def contains_point(self, x: float, y: float, z: float) -> bool:
        """Check if a point is inside the room."""
        return (
            self.x_range[0] <= x <= self.x_range[1] and
            self.y_range[0] <= y <= self.y_range[1] and
            self.z_range[0] <= z <= self.z_range[1]
        )

    def contains(self, box: AABB) -> bool:
        """Check if a bounding box lies fully inside the room."""
        room = self.bounds
        return all(
            room.min[axis] - CLAMP_TOLERANCE <= box.min[axis]
            and box.max[axis] <= room.max[axis] + CLAMP_TOLERANCE
            for axis in range(3)
        )

    def correction(self, box: AABB) -> tuple[float, float, float]:
        """Compute the minimal translation that moves ``box`` inside the room.

        Each axis is handled independently. A box that pokes through one
        face is pushed back until it touches that face. A box larger than
        the room on an axis is centered on that axis instead, since no
        translation can fit it.

        Args:
            box: World-space bounding box

        Returns:
            XYZ translation to apply to the object's position
        """
        room = self.bounds
        delta = [0.0, 0.0, 0.0]

        for axis in range(3):
            lo, hi = room.min[axis], room.max[axis]
            box_lo, box_hi = box.min[axis], box.max[axis]

            if box_hi - box_lo > hi - lo + CLAMP_TOLERANCE:
                shift = (lo + hi) / 2 - (box_lo + box_hi) / 2
            elif box_lo < lo - CLAMP_TOLERANCE:
                shift = lo - box_lo
            elif box_hi > hi + CLAMP_TOLERANCE:
                shift = hi - box_hi
            else:
                shift = 0.0

            if abs(shift) > CLAMP_TOLERANCE:
                delta[axis] = shift

        return (delta[0], delta[1], delta[2])

    def clamp(self, box: AABB, transform: Transform3D) -> Transform3D:
        """Return ``transform`` moved so that ``box`` fits inside the room.

        Only the position changes; rotation and scale are kept. Never
        raises and never moves an object that already fits.

        Args:
            box: World-space bounding box of the object under ``transform``
            transform: The object's current transform

        Returns:
            Corrected transform (a copy when a correction was needed)
        """
        delta = self.correction(box)
        if delta == (0.0, 0.0, 0.0):
            return transform
        return transform.translated(delta)

    def __repr__(self) -> str:
        return f"RoomVolume({self.width} x {self.height} x {self.depth})"
