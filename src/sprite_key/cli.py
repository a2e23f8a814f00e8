"""
CLI for Sprite Key
==================

Command-line interface for keying flat-background videos into
transparent sprite frames.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from sprite_key import __version__
from sprite_key.core.buffer import Color
from sprite_key.core.config import PipelineConfig
from sprite_key.errors import ConfigError
from sprite_key.pipeline.loop import PipelineLoop, TickStatus
from sprite_key.pipeline.scheduler import CadenceScheduler, ManualScheduler
from sprite_key.pipeline.sources import open_source
from sprite_key.pipeline.surfaces import ImageSequenceSurface, MemorySurface
from sprite_key.utils.image import composite_over, save_image

console = Console()
logger = logging.getLogger(__name__)


KEYING_OPTIONS = [
    click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
                 help="JSON file with pipeline settings"),
    click.option("--size", type=int, help="Output edge length in pixels [140]"),
    click.option("--opacity", type=float, help="Final opacity 0-1 [0.9]"),
    click.option("--softness", type=float, help="Edge soften shift in pixels [0.6]"),
    click.option("--tolerance", type=int, help="Background color tolerance 0-255 [35]"),
    click.option("--warmup", type=float, help="Seconds of playback before sampling [0.03]"),
    click.option("--pattern", default="*.png", show_default=True,
                 help="Glob for image-sequence inputs"),
]


def keying_options(func):
    """Options shared by every command that builds a PipelineConfig."""
    for option in reversed(KEYING_OPTIONS):
        func = option(func)
    return func


def build_config(
    config_path: Optional[str],
    **overrides: Any,
) -> PipelineConfig:
    """Load the JSON config (if any) and apply command-line overrides."""
    data: Dict[str, Any] = {}
    if config_path:
        data.update(PipelineConfig.from_json(config_path).to_dict())

    renames = {"warmup": "warmup_seconds"}
    for key, value in overrides.items():
        if value is not None:
            data[renames.get(key, key)] = value

    return PipelineConfig.from_dict(data)


def fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="Sprite Key")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """
    Sprite Key - flat background removal for icon-sized video sprites.

    Detects the background color from the frame corners and keys it out,
    writing transparent RGBA frames.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@main.command()
@click.argument("input_path", type=click.Path(exists=True))
@click.option("-o", "--output", type=click.Path(file_okay=False), required=True,
              help="Output directory for PNG frames")
@click.option("--frames", type=int, help="Frames to render (default: one pass)")
@click.option("--fps", type=float, help="Tick rate (default: source rate)")
@click.option("--realtime/--no-realtime", default=False, help="Hold the tick cadence")
@keying_options
def render(
    input_path: str,
    output: str,
    frames: Optional[int],
    fps: Optional[float],
    realtime: bool,
    config_path: Optional[str],
    size: Optional[int],
    opacity: Optional[float],
    softness: Optional[float],
    tolerance: Optional[int],
    warmup: Optional[float],
    pattern: str,
):
    """
    Key a video or image sequence into transparent PNG frames.

    Examples:

        # Default 140px sprite
        sprite-key render mascot.mp4 -o frames/

        # Tighter tolerance, no softening
        sprite-key render mascot.mp4 -o frames/ --tolerance 20 --softness 0
    """
    try:
        config = build_config(
            config_path, size=size, opacity=opacity, softness=softness,
            tolerance=tolerance, warmup=warmup,
        )
    except ConfigError as e:
        fail(str(e))

    try:
        source = open_source(input_path, pattern=pattern, fps=fps or 24.0)
    except (RuntimeError, ValueError) as e:
        fail(str(e))

    total = frames or getattr(source, "frame_count", 0) or len(getattr(source, "paths", []))
    if total <= 0:
        fail(f"Cannot determine frame count for {input_path}; pass --frames")

    tick_rate = fps or getattr(source, "fps", 0.0) or 30.0
    output_dir = Path(output)
    logger.debug("Rendering %d frames at %.1f fps with %s", total, tick_rate, config.to_dict())

    console.print(Panel.fit(
        f"[bold blue]Sprite Key[/bold blue]\n"
        f"Input: {Path(input_path).name}\n"
        f"Size: {config.size}px  Tolerance: {config.tolerance}  "
        f"Softness: {config.softness}  Opacity: {config.opacity}",
        title="Configuration"
    ))

    scheduler = CadenceScheduler(fps=tick_rate, realtime=realtime)
    surface = ImageSequenceSurface(output_dir)
    loop = PipelineLoop(source, surface, scheduler, config)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Keying frames...", total=total)
            scheduler.run(
                max_ticks=total,
                on_result=lambda result: progress.update(task, advance=1),
            )
    finally:
        loop.cancel()
        if hasattr(source, "close"):
            source.close()

    stats = loop.stats()
    table = Table(title="Render Results")
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    table.add_row("Background", loop.background.to_hex() if loop.background else "not detected")
    for status in TickStatus:
        if stats[status.value]:
            table.add_row(f"Ticks {status.value}", str(stats[status.value]))
    table.add_row("Frames written", str(len(surface.written)))
    table.add_row("Output Directory", str(output_dir))
    console.print(table)

    if not surface.written:
        fail("No frames were presented")


@main.command()
@click.argument("input_path", type=click.Path(exists=True))
@click.option("--max-frames", type=int, default=120, show_default=True,
              help="Give up after this many frames")
@click.option("--block", type=int, help="Corner block edge length [6]")
@click.option("--margin", type=int, help="Corner block inset [2]")
@keying_options
def detect(
    input_path: str,
    max_frames: int,
    block: Optional[int],
    margin: Optional[int],
    config_path: Optional[str],
    size: Optional[int],
    opacity: Optional[float],
    softness: Optional[float],
    tolerance: Optional[int],
    warmup: Optional[float],
    pattern: str,
):
    """Estimate and print the background color of a video."""
    try:
        config = build_config(
            config_path, size=size, opacity=opacity, softness=softness,
            tolerance=tolerance, warmup=warmup, sample_block=block, sample_margin=margin,
        )
    except ConfigError as e:
        fail(str(e))

    color = _run_until_detected(input_path, config, pattern, max_frames)
    if color is None:
        fail(f"No background detected within {max_frames} frames")

    table = Table(title="Detected Background")
    table.add_column("Channel", style="cyan")
    table.add_column("Value")
    table.add_row("Hex", color.to_hex())
    table.add_row("R", str(color.r))
    table.add_row("G", str(color.g))
    table.add_row("B", str(color.b))
    console.print(table)


@main.command()
@click.argument("input_path", type=click.Path(exists=True))
@click.option("-o", "--output", type=click.Path(dir_okay=False), required=True,
              help="Output image path")
@click.option("--backdrop", default="#000000", show_default=True,
              help="Flat backdrop color to composite over")
@click.option("--max-frames", type=int, default=120, show_default=True)
@keying_options
def preview(
    input_path: str,
    output: str,
    backdrop: str,
    max_frames: int,
    config_path: Optional[str],
    size: Optional[int],
    opacity: Optional[float],
    softness: Optional[float],
    tolerance: Optional[int],
    warmup: Optional[float],
    pattern: str,
):
    """Key the first detectable frame and composite it over a backdrop."""
    try:
        config = build_config(
            config_path, size=size, opacity=opacity, softness=softness,
            tolerance=tolerance, warmup=warmup,
        )
        backdrop_color = Color.from_hex(backdrop)
    except ValueError as e:
        fail(str(e))

    surface = MemorySurface(maxlen=1)
    color = _run_until_detected(input_path, config, pattern, max_frames, surface=surface)
    if color is None or surface.last is None:
        fail(f"No background detected within {max_frames} frames")

    path = save_image(composite_over(surface.last, backdrop_color.as_tuple()), output)
    console.print(f"[bold green]Preview written to:[/bold green] {path}")
    console.print(f"  Background: {color.to_hex()}")


def _run_until_detected(
    input_path: str,
    config: PipelineConfig,
    pattern: str,
    max_frames: int,
    surface: Optional[MemorySurface] = None,
) -> Optional[Color]:
    """Tick a loop until it presents a keyed frame; returns the background."""
    try:
        source = open_source(input_path, pattern=pattern)
    except (RuntimeError, ValueError) as e:
        fail(str(e))

    scheduler = ManualScheduler()
    loop = PipelineLoop(source, surface or MemorySurface(maxlen=1), scheduler, config)
    try:
        with console.status("Sampling background..."):
            for _ in range(max_frames):
                result = scheduler.step()
                if result is not None and result.status is TickStatus.KEYED:
                    return loop.background
    finally:
        loop.cancel()
        if hasattr(source, "close"):
            source.close()
    return None


if __name__ == "__main__":
    main()
