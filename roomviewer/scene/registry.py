"""Placed objects and the registry that owns them.

The registry maps stable identifiers to PlacedObject records, keeps them
in insertion order for listing, and tracks which object (if any) is
currently selected. Selection is stored as an identifier and resolved
through the registry on demand, so removing an object can never leave a
dangling selection behind.
"""

from __future__ import annotations

import logging
import time
from typing import Iterator, Literal

import trimesh
from pydantic import BaseModel, Field, PrivateAttr

from .bounds import AABB
from .transform import Transform3D

logger = logging.getLogger(__name__)

ID_PREFIX = "obj_"

SelectIntent = Literal["inspect", "manipulate"]


class PlacedObject(BaseModel):
    """A single model placed in the room.

    Stores the object's transform, its local-space bounding box (computed
    once when the model was loaded) and a reference to the original model
    payload so it can be rebuilt in a later session.
    """

    id: str = Field(default="", description="Unique identifier, assigned by the registry")
    name: str = Field(default="", description="Display name for the object")
    transform: Transform3D = Field(
        default_factory=Transform3D,
        description="Position, rotation, and scale"
    )
    bounds_local: AABB = Field(description="Bounding box in the object's local space")
    locked: bool = Field(default=False, description="Excluded from manipulation when True")
    payload_ref: str | None = Field(
        default=None,
        description="Reference to the stored source model payload"
    )
    file_type: str = Field(default="glb", description="Format of the source payload")

    # Decoded geometry (not serialized)
    _mesh: trimesh.Trimesh | None = PrivateAttr(default=None)

    model_config = {"frozen": False}

    @property
    def mesh(self) -> trimesh.Trimesh | None:
        return self._mesh

    def attach_mesh(self, mesh: trimesh.Trimesh) -> None:
        """Keep the decoded geometry alongside the record."""
        self._mesh = mesh

    def world_bounds(self) -> AABB:
        """Return the world-space bounding box under the current transform."""
        return self.bounds_local.transformed(self.transform)

    def world_mesh(self) -> trimesh.Trimesh | None:
        """Return a copy of the geometry under the current transform."""
        if self._mesh is None:
            return None
        mesh = self._mesh.copy()
        mesh.apply_transform(self.transform.to_matrix())
        return mesh


class IdGenerator:
    """Produce timestamp-based identifiers that never repeat.

    Identifiers are ``obj_<milliseconds>``. When two ids are requested in
    the same millisecond, or the clock goes backwards, the counter is
    bumped past the last issued value so ids stay strictly increasing.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self._last = 0

    def next_id(self) -> str:
        stamp = int(self._clock() * 1000)
        if stamp <= self._last:
            stamp = self._last + 1
        self._last = stamp
        return f"{ID_PREFIX}{stamp}"

    def observe(self, object_id: str) -> None:
        """Raise the floor past an id issued by an earlier session."""
        if not object_id.startswith(ID_PREFIX):
            return
        try:
            stamp = int(object_id[len(ID_PREFIX):])
        except ValueError:
            return
        self._last = max(self._last, stamp)


class PlacementRegistry:
    """Owns placed objects keyed by id and mediates selection."""

    def __init__(self, id_generator: IdGenerator | None = None):
        self._objects: dict[str, PlacedObject] = {}
        self._selected_id: str | None = None
        self._ids = id_generator or IdGenerator()

    def add(self, obj: PlacedObject) -> str:
        """Store a new object under a freshly generated id.

        Any id already set on ``obj`` is replaced.

        Returns:
            The assigned id
        """
        object_id = self._ids.next_id()
        while object_id in self._objects:
            object_id = self._ids.next_id()
        obj.id = object_id
        self._objects[object_id] = obj
        logger.debug(f"Added {object_id} ({obj.name})")
        return object_id

    def restore(self, obj: PlacedObject) -> bool:
        """Store an object under the id it already carries.

        Used when rebuilding a saved scene so that ids survive reloads.

        Returns:
            True if stored, False if the id is empty or already taken
        """
        if not obj.id or obj.id in self._objects:
            return False
        self._ids.observe(obj.id)
        self._objects[obj.id] = obj
        return True

    def get(self, object_id: str) -> PlacedObject | None:
        """Get an object by id, or None if absent."""
        return self._objects.get(object_id)

    def remove(self, object_id: str) -> bool:
        """Remove an object, clearing the selection if it was selected.

        Returns:
            True if the object was removed, False if not found
        """
        if self._objects.pop(object_id, None) is None:
            return False
        if self._selected_id == object_id:
            self._selected_id = None
        logger.debug(f"Removed {object_id}")
        return True

    def select(self, object_id: str, intent: SelectIntent = "inspect") -> bool:
        """Select an object.

        Inspecting is always allowed so that a locked object can still be
        picked and unlocked. Selecting a locked object with intent to
        manipulate it is refused.

        Returns:
            True if the selection changed
        """
        obj = self._objects.get(object_id)
        if obj is None:
            return False
        if intent == "manipulate" and obj.locked:
            return False
        if self._selected_id == object_id:
            return False
        self._selected_id = object_id
        return True

    def deselect(self) -> None:
        """Clear the selection."""
        self._selected_id = None

    def set_locked(self, object_id: str, locked: bool) -> bool:
        """Lock or unlock an object.

        Detaching manipulation handles from a newly locked selection is
        left to the caller.

        Returns:
            True if the object exists
        """
        obj = self._objects.get(object_id)
        if obj is None:
            return False
        obj.locked = locked
        return True

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def selected(self) -> PlacedObject | None:
        if self._selected_id is None:
            return None
        return self._objects.get(self._selected_id)

    def list(self) -> list[tuple[str, PlacedObject]]:
        """Return (id, object) pairs in insertion order."""
        return list(self._objects.items())

    def clear(self) -> None:
        """Remove every object and clear the selection."""
        self._objects.clear()
        self._selected_id = None

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._objects

    def __iter__(self) -> Iterator[PlacedObject]:
        return iter(list(self._objects.values()))

    def __repr__(self) -> str:
        return f"PlacementRegistry({len(self._objects)} objects, selected={self._selected_id})"
