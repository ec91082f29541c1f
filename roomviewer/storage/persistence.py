"""Scene persistence round-trip.

The registry is saved as a SerializedScene: one entry per placed object
holding its id, transform and a reference to the stored model payload.
Loading turns each entry back into a ReconstructionRequest that carries
the payload bytes and the exact saved transform, ready to be handed to
the model loader.

Corruption is handled per entry: a malformed entry, or one whose payload
reference is missing or can't be resolved, is skipped with a warning and
the rest of the scene still loads.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from ..scene.transform import Transform3D

if TYPE_CHECKING:
    from ..scene.registry import PlacementRegistry
    from ..scene.room import RoomVolume
    from .store import KeyValueStore, PayloadStore

logger = logging.getLogger(__name__)

SCENE_FORMAT_VERSION = "1.0"


class SceneEntry(BaseModel):
    """Saved state of one placed object."""

    id: str = Field(min_length=1, description="Object identifier")
    name: str = Field(default="", description="Display name")
    position: tuple[float, float, float] = Field(description="XYZ position")
    rotation: tuple[float, float, float] = Field(description="XYZ rotation in radians")
    scale: tuple[float, float, float] = Field(default=(1.0, 1.0, 1.0), description="XYZ scale")
    locked: bool = Field(default=False, description="Lock state")
    payload_ref: str | None = Field(default=None, description="Stored model payload reference")
    file_type: str = Field(default="glb", description="Payload format")

    model_config = {"allow_inf_nan": False}

    @property
    def transform(self) -> Transform3D:
        return Transform3D(position=self.position, rotation=self.rotation, scale=self.scale)


class SerializedScene(BaseModel):
    """Saved scene document."""

    version: str = Field(default=SCENE_FORMAT_VERSION, description="Scene format version")
    saved_at: str = Field(
        default_factory=lambda: datetime.now().isoformat(),
        description="ISO timestamp of the save"
    )
    room: tuple[float, float, float] | None = Field(
        default=None,
        description="Room (width, height, depth) at save time, for reference"
    )
    entries: list[SceneEntry] = Field(default_factory=list)


@dataclass
class ReconstructionRequest:
    """Everything needed to rebuild one saved object."""

    id: str
    name: str
    transform: Transform3D
    locked: bool
    payload: bytes
    payload_ref: str
    file_type: str


def save(registry: PlacementRegistry, room: RoomVolume | None = None) -> SerializedScene:
    """Serialize every placed object in insertion order."""
    entries = [
        SceneEntry(
            id=object_id,
            name=obj.name,
            position=obj.transform.position,
            rotation=obj.transform.rotation,
            scale=obj.transform.scale,
            locked=obj.locked,
            payload_ref=obj.payload_ref,
            file_type=obj.file_type,
        )
        for object_id, obj in registry.list()
    ]
    return SerializedScene(
        room=room.size if room is not None else None,
        entries=entries,
    )


def load(serialized: SerializedScene, payloads: PayloadStore) -> list[ReconstructionRequest]:
    """Resolve saved entries into reconstruction requests.

    Entries whose payload reference is missing or unresolvable are
    skipped with a warning.
    """
    requests: list[ReconstructionRequest] = []
    seen: set[str] = set()

    for entry in serialized.entries:
        if entry.id in seen:
            logger.warning(f"Skipping duplicate scene entry {entry.id}")
            continue

        if not entry.payload_ref:
            logger.warning(f"Skipping scene entry {entry.id}: no model payload reference")
            continue

        payload = payloads.get(entry.payload_ref)
        if payload is None:
            logger.warning(
                f"Skipping scene entry {entry.id}: payload {entry.payload_ref} not found"
            )
            continue

        seen.add(entry.id)
        requests.append(ReconstructionRequest(
            id=entry.id,
            name=entry.name,
            transform=entry.transform,
            locked=entry.locked,
            payload=payload,
            payload_ref=entry.payload_ref,
            file_type=entry.file_type,
        ))

    return requests


def dumps(scene: SerializedScene) -> str:
    """Encode a scene as JSON text."""
    return json.dumps(scene.model_dump(mode="json"), indent=2)


def loads(text: str) -> SerializedScene:
    """Decode scene JSON text, dropping anything that can't be parsed.

    A document that isn't a JSON object yields an empty scene. Entries
    that fail validation are skipped individually.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Saved scene is not valid JSON, starting empty: {e}")
        return SerializedScene()

    if not isinstance(data, dict):
        logger.warning("Saved scene is not a JSON object, starting empty")
        return SerializedScene()

    raw_entries = data.get("entries", [])
    if not isinstance(raw_entries, list):
        logger.warning("Saved scene entries are not a list, ignoring them")
        raw_entries = []

    entries: list[SceneEntry] = []
    for index, raw in enumerate(raw_entries):
        try:
            entries.append(SceneEntry.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed scene entry #{index}: {e.error_count()} error(s)")

    header = {k: v for k, v in data.items() if k != "entries"}
    try:
        scene = SerializedScene.model_validate(header)
    except ValidationError:
        logger.warning("Saved scene header is malformed, using defaults")
        scene = SerializedScene()
    scene.entries = entries
    return scene


class SceneStorage:
    """Reads and writes the saved scene through a key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        payloads: PayloadStore,
        key: str = "roomviewer.scene",
    ):
        self.store = store
        self.payloads = payloads
        self.key = key

    def write(self, registry: PlacementRegistry, room: RoomVolume | None = None) -> bool:
        """Save the registry.

        Write failures are logged and reported as False, never raised.
        """
        try:
            self.store.set_item(self.key, dumps(save(registry, room)))
        except OSError as e:
            logger.warning(f"Failed to save scene: {e}")
            return False
        logger.debug(f"Saved {len(registry)} object(s) under '{self.key}'")
        return True

    def read(self) -> list[ReconstructionRequest]:
        """Load reconstruction requests for the saved scene (empty if none)."""
        try:
            text = self.store.get_item(self.key)
        except OSError as e:
            logger.warning(f"Failed to read saved scene: {e}")
            return []
        if text is None:
            return []
        return load(loads(text), self.payloads)

    def clear(self) -> None:
        """Forget the saved scene."""
        self.store.remove_item(self.key)
