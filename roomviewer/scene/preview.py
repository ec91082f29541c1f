"""Top-down plan view of the room and its placed objects."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .registry import PlacementRegistry
    from .room import RoomVolume

logger = logging.getLogger(__name__)


def render_plan(
    registry: PlacementRegistry,
    room: RoomVolume,
    path: str | Path,
    title: str = "Room Plan",
) -> bool:
    """Draw the room outline and each object's footprint to an image file.

    Footprints are the X/Z extents of each object's world bounding box.
    Locked objects are drawn grey and the selection is highlighted.

    Args:
        registry: Objects to draw
        room: Room to outline
        path: Output image path (format from extension, e.g. ``.png``)
        title: Plot title

    Returns:
        True if the image was written, False if matplotlib is unavailable
    """
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        from matplotlib.patches import Rectangle
    except ImportError:
        logger.warning("matplotlib not available - plan preview disabled")
        return False

    fig, ax = plt.subplots(figsize=(8, 8))
    try:
        x0, x1 = room.x_range
        z0, z1 = room.z_range
        ax.add_patch(Rectangle((x0, z0), x1 - x0, z1 - z0, fill=False, lw=2, ec="black"))

        for object_id, obj in registry.list():
            box = obj.world_bounds()
            if object_id == registry.selected_id:
                color = "tab:red"
            elif obj.locked:
                color = "tab:gray"
            else:
                color = "tab:blue"
            ax.add_patch(Rectangle(
                (box.min[0], box.min[2]),
                box.size[0],
                box.size[2],
                alpha=0.4,
                fc=color,
                ec=color,
            ))
            ax.annotate(obj.name or object_id, (box.center[0], box.center[2]), ha="center", fontsize=8)

        margin = 0.05 * max(room.width, room.depth)
        ax.set_xlim(x0 - margin, x1 + margin)
        ax.set_ylim(z1 + margin, z0 - margin)  # Z grows toward the viewer
        ax.set_aspect('equal')
        ax.set_xlabel('X')
        ax.set_ylabel('Z')
        ax.set_title(f"{title} ({len(registry)} objects)")
        ax.grid(True, alpha=0.3)

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, bbox_inches="tight")
    finally:
        plt.close(fig)

    logger.info(f"Plan preview written to {path}")
    return True
