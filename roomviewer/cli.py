"""Command-line interface for roomviewer.

Usage:
    roomviewer room info
    roomviewer scene add model.glb [options]
    roomviewer scene list
    roomviewer scene move OBJECT_ID DX DY DZ
    roomviewer scene pick --origin X Y Z --direction X Y Z
    roomviewer scene place OBJECT_ID --screen NX NY
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.config import RoomViewerConfig
from .scene.session import EditorSession

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich output."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False)],
    )


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    default=None,
    help="Path to configuration file",
)
@click.option(
    "--data-dir", "-d",
    type=click.Path(),
    default=None,
    help="Directory for saved scene and models (default: ./.roomviewer)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config: str | None, data_dir: str | None) -> None:
    """roomviewer - Place 3D models inside a room."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)

    cfg = RoomViewerConfig.from_file(config) if config else RoomViewerConfig.default()
    if data_dir:
        cfg.storage.data_dir = Path(data_dir)
    ctx.obj["config"] = cfg


def _open_session(ctx: click.Context) -> EditorSession:
    """Start a session, reporting a missing loader capability once."""
    cfg: RoomViewerConfig = ctx.obj["config"]
    try:
        return EditorSession.start(cfg)
    except RuntimeError as e:
        raise click.ClickException(str(e))


def _require(session: EditorSession, object_id: str) -> None:
    if object_id not in session.registry:
        console.print(f"[red]Object {object_id} not found in scene[/red]")
        raise click.Abort()


def _report_refused(session: EditorSession, object_id: str) -> None:
    if session.registry.get(object_id).locked:
        console.print(f"[yellow]Object {object_id} is locked[/yellow]")
    else:
        console.print(f"[red]Rejected change to {object_id}: values must be finite[/red]")


def _build_ray(
    cfg: RoomViewerConfig,
    origin: tuple[float, float, float] | None,
    direction: tuple[float, float, float] | None,
    screen: tuple[float, float] | None,
):
    """Make a ray from --screen or from --origin/--direction."""
    from .scene.picking import Ray, ray_from_screen

    try:
        if screen is not None:
            return ray_from_screen(
                screen[0], screen[1],
                eye=cfg.editing.camera_position,
                fov_deg=cfg.editing.pick_fov_deg,
            )
        if origin is not None and direction is not None:
            return Ray(origin=origin, direction=direction)
    except ValueError as e:
        raise click.BadParameter(str(e))
    raise click.UsageError("Give either --screen or both --origin and --direction")


def _fmt(values: tuple[float, float, float], precision: int = 2) -> str:
    return "(" + ", ".join(f"{v:.{precision}f}" for v in values) + ")"


# -----------------------------------------------------------------------------
# Config commands
# -----------------------------------------------------------------------------

@main.group("config")
def config_group() -> None:
    """Configuration file helpers."""
    pass


@config_group.command("init")
@click.argument("output", type=click.Path())
@click.pass_context
def config_init(ctx: click.Context, output: str) -> None:
    """Write the current configuration to a JSON file.

    OUTPUT: Path for the new configuration file
    """
    cfg: RoomViewerConfig = ctx.obj["config"]
    cfg.to_file(output)
    console.print(f"[green]Wrote configuration: {output}[/green]")


# -----------------------------------------------------------------------------
# Room commands
# -----------------------------------------------------------------------------

@main.group()
def room() -> None:
    """Room volume information."""
    pass


@room.command("info")
@click.pass_context
def room_info(ctx: click.Context) -> None:
    """Show the room dimensions and placement limits."""
    from .scene.room import RoomVolume

    cfg: RoomViewerConfig = ctx.obj["config"]
    vol = RoomVolume.from_params(cfg.room)

    console.print(f"\n[bold]Room: {vol.width:g} x {vol.height:g} x {vol.depth:g}[/bold]\n")
    console.print(f"  X: {vol.x_range[0]:.1f} to {vol.x_range[1]:.1f}")
    console.print(f"  Y: {vol.y_range[0]:.1f} to {vol.y_range[1]:.1f} (floor at 0)")
    console.print(f"  Z: {vol.z_range[0]:.1f} to {vol.z_range[1]:.1f}")
    console.print(f"\n[dim]Data directory: {cfg.storage.data_dir}[/dim]")


# -----------------------------------------------------------------------------
# Scene commands
# -----------------------------------------------------------------------------

@main.group()
def scene() -> None:
    """Placed-object commands."""
    pass


@scene.command("add")
@click.argument("model_path", type=click.Path(exists=True))
@click.option("--name", "-n", default=None, help="Display name for the object")
@click.option(
    "--position", "-p",
    nargs=3, type=float,
    default=None,
    help="XYZ position (clamped to the room)",
)
@click.pass_context
def scene_add(
    ctx: click.Context,
    model_path: str,
    name: str | None,
    position: tuple[float, float, float] | None,
) -> None:
    """Load a model file and place it in the room.

    MODEL_PATH: Path to the model file (GLB/GLTF/STL/OBJ/PLY/OFF)
    """
    with _open_session(ctx) as session:
        with console.status(f"Loading {Path(model_path).name}..."):
            try:
                object_id = session.import_file(model_path)
            except (FileNotFoundError, ValueError) as e:
                raise click.ClickException(str(e))

        if object_id is None:
            console.print(f"[red]Failed to load {model_path}[/red]")
            raise click.Abort()

        if name:
            session.registry.get(object_id).name = name
        if position is not None:
            obj = session.registry.get(object_id)
            session.set_transform(
                object_id, obj.transform.model_copy(update={"position": tuple(position)})
            )

        obj = session.registry.get(object_id)
        console.print("[green]Added object to scene[/green]")
        console.print(f"  ID: {object_id}")
        console.print(f"  Name: {obj.name}")
        console.print(f"  Position: {_fmt(obj.transform.position)}")
        console.print(f"  Size: {_fmt(obj.world_bounds().size)}")
        console.print(f"\nScene now has {len(session.registry)} object(s)")


@scene.command("list")
@click.pass_context
def scene_list(ctx: click.Context) -> None:
    """List placed objects in insertion order."""
    with _open_session(ctx) as session:
        objects = session.objects()
        if not objects:
            console.print("[yellow]No objects in scene[/yellow]")
            return

        table = Table(title=f"Objects ({len(objects)})")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Position", style="green")
        table.add_column("Rotation (deg)", style="yellow")
        table.add_column("Scale", style="magenta")
        table.add_column("Locked")

        for object_id, obj in objects:
            rot = tuple(math.degrees(r) for r in obj.transform.rotation)
            table.add_row(
                object_id,
                obj.name,
                _fmt(obj.transform.position),
                _fmt(rot, 0),
                _fmt(obj.transform.scale),
                "yes" if obj.locked else "",
            )

        console.print(table)


@scene.command("move")
@click.argument("object_id")
@click.argument("delta", nargs=3, type=float)
@click.pass_context
def scene_move(ctx: click.Context, object_id: str, delta: tuple[float, float, float]) -> None:
    """Move an object by DX DY DZ (clamped to the room).

    OBJECT_ID: ID of the object to move
    """
    with _open_session(ctx) as session:
        _require(session, object_id)
        if not session.translate(object_id, tuple(delta)):
            _report_refused(session, object_id)
            raise click.Abort()
        pos = session.registry.get(object_id).transform.position
        console.print(f"[green]Moved {object_id} to {_fmt(pos)}[/green]")


@scene.command("rotate")
@click.argument("object_id")
@click.argument("delta", nargs=3, type=float)
@click.option("--radians", is_flag=True, help="Angles are in radians (default: degrees)")
@click.pass_context
def scene_rotate(
    ctx: click.Context,
    object_id: str,
    delta: tuple[float, float, float],
    radians: bool,
) -> None:
    """Rotate an object by RX RY RZ.

    OBJECT_ID: ID of the object to rotate
    """
    if not radians:
        delta = tuple(math.radians(d) for d in delta)

    with _open_session(ctx) as session:
        _require(session, object_id)
        if not session.rotate(object_id, delta):
            _report_refused(session, object_id)
            raise click.Abort()
        rot = tuple(math.degrees(r) for r in session.registry.get(object_id).transform.rotation)
        console.print(f"[green]Rotated {object_id} to {_fmt(rot, 1)} degrees[/green]")


@scene.command("reset")
@click.argument("object_id")
@click.option("--floor", "to_floor", is_flag=True, help="Drop the object onto the floor")
@click.option("--orientation", is_flag=True, help="Clear the object's rotation")
@click.pass_context
def scene_reset(ctx: click.Context, object_id: str, to_floor: bool, orientation: bool) -> None:
    """Reset an object's orientation and/or drop it to the floor.

    With neither flag, both resets are applied.

    OBJECT_ID: ID of the object to reset
    """
    if not to_floor and not orientation:
        to_floor = orientation = True

    with _open_session(ctx) as session:
        _require(session, object_id)
        ok = True
        if orientation:
            ok = session.reset_orientation(object_id) and ok
        if to_floor:
            ok = session.reset_to_floor(object_id) and ok
        if not ok:
            _report_refused(session, object_id)
            raise click.Abort()
        console.print(f"[green]Reset {object_id}[/green]")


@scene.command("lock")
@click.argument("object_id")
@click.pass_context
def scene_lock(ctx: click.Context, object_id: str) -> None:
    """Lock an object against manipulation."""
    with _open_session(ctx) as session:
        _require(session, object_id)
        session.set_locked(object_id, True)
        console.print(f"[green]Locked {object_id}[/green]")


@scene.command("unlock")
@click.argument("object_id")
@click.pass_context
def scene_unlock(ctx: click.Context, object_id: str) -> None:
    """Unlock an object."""
    with _open_session(ctx) as session:
        _require(session, object_id)
        session.set_locked(object_id, False)
        console.print(f"[green]Unlocked {object_id}[/green]")


@scene.command("remove")
@click.argument("object_id")
@click.pass_context
def scene_remove(ctx: click.Context, object_id: str) -> None:
    """Remove an object from the scene.

    OBJECT_ID: ID of the object to remove
    """
    with _open_session(ctx) as session:
        if session.delete(object_id):
            console.print(f"[green]Removed object {object_id}[/green]")
            console.print(f"Scene now has {len(session.registry)} object(s)")
        else:
            console.print(f"[red]Object {object_id} not found in scene[/red]")
            raise click.Abort()


@scene.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def scene_clear(ctx: click.Context, yes: bool) -> None:
    """Remove every object from the scene."""
    if not yes and not click.confirm("Remove all objects?"):
        raise click.Abort()

    with _open_session(ctx) as session:
        count = session.clear()
        console.print(f"[green]Removed {count} object(s)[/green]")


@scene.command("pick")
@click.option("--origin", nargs=3, type=float, default=None, help="Ray origin")
@click.option("--direction", nargs=3, type=float, default=None, help="Ray direction")
@click.option(
    "--screen",
    nargs=2, type=float,
    default=None,
    help="Normalized screen point (-1..1, -1..1) seen from the configured camera",
)
@click.pass_context
def scene_pick(
    ctx: click.Context,
    origin: tuple[float, float, float] | None,
    direction: tuple[float, float, float] | None,
    screen: tuple[float, float] | None,
) -> None:
    """Report which object a ray hits first."""
    ray = _build_ray(ctx.obj["config"], origin, direction, screen)

    with _open_session(ctx) as session:
        object_id = session.pick(ray)
        if object_id is None:
            console.print("[yellow]Nothing hit[/yellow]")
            return
        obj = session.registry.get(object_id)
        status = " (locked)" if obj.locked else ""
        console.print(f"[green]Hit {object_id}: {obj.name}{status}[/green]")


@scene.command("place")
@click.argument("object_id")
@click.option("--origin", nargs=3, type=float, default=None, help="Ray origin")
@click.option("--direction", nargs=3, type=float, default=None, help="Ray direction")
@click.option(
    "--screen",
    nargs=2, type=float,
    default=None,
    help="Normalized screen point (-1..1, -1..1) seen from the configured camera",
)
@click.pass_context
def scene_place(
    ctx: click.Context,
    object_id: str,
    origin: tuple[float, float, float] | None,
    direction: tuple[float, float, float] | None,
    screen: tuple[float, float] | None,
) -> None:
    """Move an object to the floor point under a ray (clamped to the room).

    OBJECT_ID: ID of the object to place
    """
    ray = _build_ray(ctx.obj["config"], origin, direction, screen)

    with _open_session(ctx) as session:
        _require(session, object_id)
        session.set_mode("translate")
        session.select(object_id)
        if not session.place_at(ray):
            if session.registry.get(object_id).locked:
                console.print(f"[yellow]Object {object_id} is locked[/yellow]")
            else:
                console.print("[red]The ray does not reach the floor[/red]")
            raise click.Abort()
        pos = session.registry.get(object_id).transform.position
        console.print(f"[green]Placed {object_id} at {_fmt(pos)}[/green]")


@scene.command("preview")
@click.argument("output", type=click.Path())
@click.pass_context
def scene_preview(ctx: click.Context, output: str) -> None:
    """Render a top-down plan of the room to an image file.

    OUTPUT: Image path (.png, .svg, ...)
    """
    from .scene.preview import render_plan

    with _open_session(ctx) as session:
        if not render_plan(session.registry, session.room, output):
            raise click.ClickException("Install matplotlib to render previews")
        console.print(f"[green]Wrote {output}[/green]")


if __name__ == "__main__":
    main()
