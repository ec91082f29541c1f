"""Ray picking against placed objects.

Objects are first tested against their world-space bounding boxes using
the slab method. Boxes the ray enters are then confirmed against the
object's transformed mesh with trimesh's ray queries, so an empty box
corner never hides an object behind it. The nearest hit in front of the
ray origin wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    import trimesh

    from .bounds import AABB
    from .registry import PlacedObject, PlacementRegistry


@dataclass
class Ray:
    """A half-line from ``origin`` along unit ``direction``.

    Attributes:
        origin: XYZ start point
        direction: XYZ direction (normalized on construction)
    """

    origin: NDArray[np.float64]
    direction: NDArray[np.float64]

    def __post_init__(self) -> None:
        self.origin = np.asarray(self.origin, dtype=np.float64)
        self.direction = np.asarray(self.direction, dtype=np.float64)

        if self.origin.shape != (3,) or self.direction.shape != (3,):
            raise ValueError("Ray origin and direction must be XYZ vectors")
        if not (np.all(np.isfinite(self.origin)) and np.all(np.isfinite(self.direction))):
            raise ValueError("Ray origin and direction must be finite")

        length = np.linalg.norm(self.direction)
        if length < 1e-12:
            raise ValueError("Ray direction must be non-zero")
        self.direction = self.direction / length

    def at(self, distance: float) -> NDArray[np.float64]:
        """Return the point ``distance`` along the ray."""
        return self.origin + self.direction * distance


def intersect_aabb(ray: Ray, box: AABB) -> float | None:
    """Intersect a ray with a box.

    Returns:
        Distance along the ray to the entry point (0 if the origin is
        inside the box), or None if the ray misses
    """
    lo = np.asarray(box.min, dtype=np.float64)
    hi = np.asarray(box.max, dtype=np.float64)

    t_near = -np.inf
    t_far = np.inf

    for axis in range(3):
        d = ray.direction[axis]
        o = ray.origin[axis]
        if abs(d) < 1e-12:
            # Parallel to this slab: must already be between its planes
            if o < lo[axis] or o > hi[axis]:
                return None
            continue

        t1 = (lo[axis] - o) / d
        t2 = (hi[axis] - o) / d
        if t1 > t2:
            t1, t2 = t2, t1
        t_near = max(t_near, t1)
        t_far = min(t_far, t2)
        if t_near > t_far:
            return None

    if t_far < 0:
        return None
    return float(max(t_near, 0.0))


def intersect_mesh(ray: Ray, mesh: trimesh.Trimesh) -> float | None:
    """Intersect a ray with a world-space mesh.

    Returns:
        Distance along the ray to the nearest surface hit, or None
    """
    locations, _, _ = mesh.ray.intersects_location(
        ray_origins=ray.origin[np.newaxis, :],
        ray_directions=ray.direction[np.newaxis, :],
    )
    if len(locations) == 0:
        return None
    distances = (np.asarray(locations) - ray.origin) @ ray.direction
    distances = distances[distances >= 0]
    if len(distances) == 0:
        return None
    return float(distances.min())


def intersect_floor(ray: Ray, floor_y: float = 0.0) -> NDArray[np.float64] | None:
    """Return where the ray meets the horizontal plane ``y = floor_y``.

    Returns None when the ray runs parallel to the floor or points away
    from it.
    """
    dy = ray.direction[1]
    if abs(dy) < 1e-12:
        return None
    t = (floor_y - ray.origin[1]) / dy
    if t < 0:
        return None
    point = ray.at(t)
    point[1] = floor_y
    return point


def pick_nearest(ray: Ray, objects: Iterable[PlacedObject]) -> PlacedObject | None:
    """Return the object whose geometry the ray hits first.

    Objects without decoded geometry are hit-tested by their bounds alone.
    """
    candidates = []
    for obj in objects:
        t = intersect_aabb(ray, obj.world_bounds())
        if t is not None:
            candidates.append((t, obj))
    candidates.sort(key=lambda c: c[0])

    best: PlacedObject | None = None
    best_t = np.inf
    for box_t, obj in candidates:
        # Box entry is a lower bound on the surface hit
        if box_t >= best_t:
            break
        mesh = obj.world_mesh()
        t = box_t if mesh is None else intersect_mesh(ray, mesh)
        if t is not None and t < best_t:
            best, best_t = obj, t
    return best


def pick(ray: Ray, registry: PlacementRegistry) -> str | None:
    """Resolve a ray to the id of the nearest placed object, if any."""
    hit = pick_nearest(ray, registry)
    return hit.id if hit is not None else None


def ray_from_screen(
    ndc_x: float,
    ndc_y: float,
    eye: Sequence[float],
    target: Sequence[float] = (0.0, 0.0, 0.0),
    fov_deg: float = 75.0,
    aspect: float = 1.0,
    up: Sequence[float] = (0.0, 1.0, 0.0),
) -> Ray:
    """Build a picking ray from normalized device coordinates.

    Args:
        ndc_x: Horizontal position, -1 (left) to 1 (right)
        ndc_y: Vertical position, -1 (bottom) to 1 (top)
        eye: Camera position
        target: Point the camera looks at
        fov_deg: Vertical field of view in degrees
        aspect: Viewport width / height
        up: World up vector

    Returns:
        Ray from the camera through the given screen point

    Raises:
        ValueError: If the camera looks along ``up`` or ``eye`` equals ``target``
    """
    eye = np.asarray(eye, dtype=np.float64)
    forward = np.asarray(target, dtype=np.float64) - eye
    length = np.linalg.norm(forward)
    if length < 1e-12:
        raise ValueError("Camera eye and target must differ")
    forward /= length

    right = np.cross(forward, np.asarray(up, dtype=np.float64))
    length = np.linalg.norm(right)
    if length < 1e-12:
        raise ValueError("Camera view direction must not be parallel to up")
    right /= length
    true_up = np.cross(right, forward)

    half_h = np.tan(np.radians(fov_deg) / 2)
    half_w = half_h * aspect

    direction = forward + right * (ndc_x * half_w) + true_up * (ndc_y * half_h)
    return Ray(origin=eye, direction=direction)
