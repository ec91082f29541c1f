"""Keep placed objects inside the room after every transform change."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .registry import PlacedObject
    from .room import RoomVolume

logger = logging.getLogger(__name__)


class ContainmentResolver:
    """Push objects back inside the room volume.

    Recomputes the object's world-space bounding box from its transform
    and local bounds, and writes a corrected position back onto the
    object. Running it twice in a row never moves the object again.
    """

    def apply(self, obj: PlacedObject, room: RoomVolume) -> bool:
        """Clamp ``obj`` into ``room``.

        Args:
            obj: Object to correct (mutated in place)
            room: Room the object must stay inside

        Returns:
            True if the object's position changed
        """
        corrected = room.clamp(obj.world_bounds(), obj.transform)
        if corrected is obj.transform:
            return False

        logger.debug(
            f"Clamped {obj.id} from {obj.transform.position} to {corrected.position}"
        )
        obj.transform = corrected
        return True

    def apply_all(self, objects, room: RoomVolume) -> list[str]:
        """Clamp every object, returning the ids that moved."""
        return [obj.id for obj in objects if self.apply(obj, room)]
