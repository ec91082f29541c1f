"""Editor session: the state of one editing run.

EditorSession owns the room, the placement registry and the storage for a
single run. Every operation goes through it: loading models, picking,
selection, manipulation, locking and deletion. Each successful change is
followed by containment and, when autosave is on, by a save.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Literal

from ..mesh.loader import Failed, Loaded, LoadEvent, ModelLoader, Progress
from .containment import ContainmentResolver
from .registry import PlacedObject, PlacementRegistry
from .room import RoomVolume
from .transform import Transform3D

if TYPE_CHECKING:
    from ..core.config import RoomViewerConfig
    from ..storage.persistence import ReconstructionRequest, SceneStorage
    from .picking import Ray

logger = logging.getLogger(__name__)

Mode = Literal["translate", "rotate"]
MODES = ("translate", "rotate")


@dataclass
class PendingLoad:
    """Bookkeeping for one in-flight model load."""

    name: str
    payload: bytes
    file_type: str
    restore: ReconstructionRequest | None = None
    progress: float = 0.0
    object_id: str | None = None
    error: str | None = None


class EditorSession:
    """Explicit session state for editing a room scene."""

    def __init__(
        self,
        room: RoomVolume | None = None,
        storage: SceneStorage | None = None,
        loader: ModelLoader | None = None,
        registry: PlacementRegistry | None = None,
        spawn_position: tuple[float, float, float] = (0.0, 0.0, 0.0),
        mode: Mode = "translate",
        autosave: bool = True,
    ):
        """Create a session.

        Args:
            room: Room volume (default 20 x 10 x 20)
            storage: Where the scene is saved; None disables persistence
            loader: Model loader
            registry: Registry to edit (a new empty one by default)
            spawn_position: Where newly imported models are placed
            mode: Initial manipulation mode
            autosave: Save after every change
        """
        self.room = room or RoomVolume()
        self.storage = storage
        self.loader = loader or ModelLoader()
        self.registry = registry or PlacementRegistry()
        self.resolver = ContainmentResolver()
        self.spawn_position = spawn_position
        self.autosave = autosave
        self._mode: Mode = mode
        self._restoring = False

    @classmethod
    def start(cls, config: RoomViewerConfig) -> EditorSession:
        """Build a session from configuration and restore the saved scene.

        Raises:
            RuntimeError: If the model loader is missing required formats
        """
        from ..storage.persistence import SceneStorage
        from ..storage.store import JsonFileStore, PayloadStore

        ModelLoader.check_available()

        storage = SceneStorage(
            store=JsonFileStore(config.storage.store_path),
            payloads=PayloadStore(config.storage.payload_path),
            key=config.storage.scene_key,
        )
        session = cls(
            room=RoomVolume.from_params(config.room),
            storage=storage,
            loader=ModelLoader(recenter=config.editing.recenter_on_load),
            spawn_position=config.editing.spawn_position,
            mode=config.editing.mode,
            autosave=config.storage.autosave,
        )
        session.restore()
        return session

    def close(self) -> None:
        """Save a final time and drop all objects."""
        self.save()
        self.registry.clear()

    def __enter__(self) -> EditorSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def import_file(self, path: str | Path) -> str | None:
        """Load a model file from disk and place it.

        Returns:
            The new object's id, or None if the model failed to load

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the extension is not a supported format
        """
        path = Path(path)
        payload, file_type = self.loader.read_file(path)
        return self.import_payload(payload, file_type, name=path.stem)

    def import_payload(self, payload: bytes, file_type: str, name: str = "") -> str | None:
        """Load a model payload and place it at the spawn position.

        Returns:
            The new object's id, or None if the model failed to load
        """
        pending = PendingLoad(name=name, payload=payload, file_type=file_type)
        self.loader.load(payload, file_type, lambda event: self.handle_load_event(pending, event))
        return pending.object_id

    def handle_load_event(self, pending: PendingLoad, event: LoadEvent) -> None:
        """Consume one event from the model loader."""
        if isinstance(event, Progress):
            pending.progress = event.fraction
            logger.debug(f"Loading {pending.name or pending.file_type}: {event.fraction:.0%}")
        elif isinstance(event, Loaded):
            pending.object_id = self._place_loaded(pending, event)
        elif isinstance(event, Failed):
            pending.error = event.reason
            logger.warning(f"Could not load model '{pending.name}': {event.reason}")
        else:
            raise TypeError(f"Unknown load event: {event!r}")

    def _place_loaded(self, pending: PendingLoad, event: Loaded) -> str | None:
        model = event.model
        request = pending.restore

        if request is not None:
            obj = PlacedObject(
                id=request.id,
                name=request.name,
                transform=request.transform,
                bounds_local=model.bounds_local,
                locked=request.locked,
                payload_ref=request.payload_ref,
                file_type=model.file_type,
            )
            obj.attach_mesh(model.mesh)
            if not self.registry.restore(obj):
                logger.warning(f"Skipping saved object {request.id}: id already in use")
                return None
            return obj.id

        payload_ref = None
        if self.storage is not None:
            try:
                payload_ref = self.storage.payloads.put(pending.payload, model.file_type)
            except OSError as e:
                logger.warning(f"Failed to store model payload for '{pending.name}': {e}")

        obj = PlacedObject(
            name=pending.name,
            transform=Transform3D(position=self.spawn_position),
            bounds_local=model.bounds_local,
            payload_ref=payload_ref,
            file_type=model.file_type,
        )
        obj.attach_mesh(model.mesh)
        object_id = self.registry.add(obj)
        self.resolver.apply(obj, self.room)
        self.registry.select(object_id)
        logger.info(f"Placed '{obj.name}' as {object_id}")
        self._changed()
        return object_id

    def restore(self) -> int:
        """Rebuild the saved scene.

        Saved transforms are reapplied exactly. Entries that can't be
        resolved or decoded are skipped.

        Returns:
            Number of objects restored
        """
        if self.storage is None:
            return 0

        restored = 0
        self._restoring = True
        try:
            for request in self.storage.read():
                pending = PendingLoad(
                    name=request.name,
                    payload=request.payload,
                    file_type=request.file_type,
                    restore=request,
                )
                self.loader.load(
                    request.payload,
                    request.file_type,
                    lambda event, p=pending: self.handle_load_event(p, event),
                )
                if pending.object_id is not None:
                    restored += 1
        finally:
            self._restoring = False

        if restored:
            logger.info(f"Restored {restored} object(s)")
        return restored

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self._mode

    def set_mode(self, mode: Mode) -> None:
        """Switch between translate and rotate manipulation."""
        if mode not in MODES:
            raise ValueError(f"Unknown mode: {mode}. Known: {list(MODES)}")
        self._mode = mode

    @property
    def selected(self) -> PlacedObject | None:
        return self.registry.selected

    @property
    def handles_attached(self) -> bool:
        """Whether the selection can currently be manipulated."""
        obj = self.registry.selected
        return obj is not None and not obj.locked

    def pick(self, ray: Ray) -> str | None:
        """Select the object under ``ray``; clear the selection on a miss."""
        from .picking import pick

        object_id = pick(ray, self.registry)
        if object_id is None:
            self.registry.deselect()
        else:
            self.registry.select(object_id)
        return object_id

    def select(self, object_id: str) -> bool:
        return self.registry.select(object_id)

    def deselect(self) -> None:
        self.registry.deselect()

    # -------------------------------------------------------------------------
    # Manipulation
    # -------------------------------------------------------------------------

    def _mutate(self, object_id: str, transform: Transform3D) -> bool:
        obj = self.registry.get(object_id)
        if obj is None:
            return False
        if obj.locked:
            logger.debug(f"Ignoring change to locked object {object_id}")
            return False
        if not transform.is_finite():
            logger.warning(f"Rejected non-finite transform for {object_id}: {transform!r}")
            return False
        obj.transform = transform
        self.resolver.apply(obj, self.room)
        self._changed()
        return True

    def translate(self, object_id: str, delta: tuple[float, float, float]) -> bool:
        """Move an object by ``delta``; False if absent or locked."""
        obj = self.registry.get(object_id)
        if obj is None:
            return False
        return self._mutate(object_id, obj.transform.translated(delta))

    def rotate(self, object_id: str, delta: tuple[float, float, float]) -> bool:
        """Rotate an object by ``delta`` radians; False if absent or locked."""
        obj = self.registry.get(object_id)
        if obj is None:
            return False
        return self._mutate(object_id, obj.transform.rotated(delta))

    def set_transform(self, object_id: str, transform: Transform3D) -> bool:
        """Replace an object's transform; False if absent or locked."""
        return self._mutate(object_id, transform.model_copy())

    def drag(self, delta: tuple[float, float, float]) -> bool:
        """Apply a drag to the selection according to the current mode."""
        obj = self.registry.selected
        if obj is None:
            return False
        if self._mode == "rotate":
            return self.rotate(obj.id, delta)
        return self.translate(obj.id, delta)

    def place_at(self, ray: Ray) -> bool:
        """Move the selection to where ``ray`` meets the floor.

        Only the X/Z position changes; height, rotation and scale are kept.
        Works in translate mode only.

        Returns:
            False if nothing is selected, the mode is rotate, the selection
            is locked, or the ray never reaches the floor
        """
        from .picking import intersect_floor

        obj = self.registry.selected
        if obj is None or self._mode != "translate":
            return False
        point = intersect_floor(ray, self.room.floor_y)
        if point is None:
            logger.debug("Placement ray does not reach the floor")
            return False
        _, y, _ = obj.transform.position
        position = (float(point[0]), y, float(point[2]))
        return self._mutate(obj.id, obj.transform.model_copy(update={"position": position}))

    def reset_to_floor(self, object_id: str) -> bool:
        """Drop an object so its lowest point rests on the floor."""
        obj = self.registry.get(object_id)
        if obj is None:
            return False
        lift = self.room.floor_y - obj.world_bounds().min[1]
        return self._mutate(object_id, obj.transform.translated((0.0, lift, 0.0)))

    def reset_orientation(self, object_id: str) -> bool:
        """Clear an object's rotation."""
        obj = self.registry.get(object_id)
        if obj is None:
            return False
        return self._mutate(
            object_id, obj.transform.model_copy(update={"rotation": (0.0, 0.0, 0.0)})
        )

    # -------------------------------------------------------------------------
    # Lock / delete
    # -------------------------------------------------------------------------

    def set_locked(self, object_id: str, locked: bool) -> bool:
        """Lock or unlock an object."""
        if not self.registry.set_locked(object_id, locked):
            return False
        if locked and self.registry.selected_id == object_id:
            logger.debug(f"Detached manipulation handles from {object_id}")
        self._changed()
        return True

    def toggle_lock(self, object_id: str) -> bool | None:
        """Flip an object's lock state.

        Returns:
            The new lock state, or None if the object doesn't exist
        """
        obj = self.registry.get(object_id)
        if obj is None:
            return None
        self.set_locked(object_id, not obj.locked)
        return obj.locked

    def delete(self, object_id: str) -> bool:
        """Delete an object and its stored payload if nothing else uses it."""
        obj = self.registry.get(object_id)
        if obj is None:
            return False

        self.registry.remove(object_id)

        ref = obj.payload_ref
        if self.storage is not None and ref is not None:
            still_used = any(other.payload_ref == ref for other in self.registry)
            if not still_used:
                try:
                    self.storage.payloads.discard(ref)
                except OSError as e:
                    logger.warning(f"Failed to delete model payload {ref}: {e}")

        logger.info(f"Deleted {object_id}")
        self._changed()
        return True

    def clear(self) -> int:
        """Delete every object.

        Returns:
            Number of objects deleted
        """
        ids = [object_id for object_id, _ in self.registry.list()]
        for object_id in ids:
            self.delete(object_id)
        return len(ids)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def objects(self) -> list[tuple[str, PlacedObject]]:
        """Return placed objects in insertion order."""
        return self.registry.list()

    def save(self) -> bool:
        """Write the scene to storage."""
        if self.storage is None:
            return False
        return self.storage.write(self.registry, self.room)

    def _changed(self) -> None:
        if self.autosave and not self._restoring:
            self.save()

    def __repr__(self) -> str:
        return f"EditorSession({self.room!r}, {len(self.registry)} objects, mode={self._mode})"
