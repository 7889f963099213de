import logging
import os
from pathlib import Path
from typing import List, NoReturn, Optional

import rich.traceback
import typer
from rich.console import Console
from rich.logging import RichHandler

from ccolors import display, settings
from ccolors.color_metric import BLACK, WHITE, Color, from_hex
from ccolors.errors import CopyColorsError, DecodeNotFound, InvalidFormat, ScanError
from ccolors.palette import extract_file, quantizer_for
from ccolors.quantize import METHODS
from ccolors.scanner import BatchRunner, scan


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def parse_excluded(exc_colors: Optional[List[str]]) -> List[Color]:
    if not exc_colors:
        return []
    if len(exc_colors) > settings.MAX_EXCLUDED:
        fail(f"Error: You can exclude up to {settings.MAX_EXCLUDED} colors, got {len(exc_colors)}.")
    excluded = []
    for hex_code in exc_colors:
        try:
            excluded.append(from_hex(hex_code))
        except InvalidFormat:
            fail(f"Error: {hex_code} is not a valid hexadecimal code.\nPlease provide a valid hex code, and try again!")
    return excluded


def contrast_reference(bcw: bool, bcb: bool) -> Optional[Color]:
    # --bcb wins when both are given
    if bcb:
        return BLACK
    if bcw:
        return WHITE
    return None


def show_palette(console: Console, palette, with_rgb: bool, canvas: bool) -> None:
    if not console.is_terminal:
        typer.echo(display.plain_text(palette, with_rgb))
    elif canvas:
        console.print(display.palette_canvas(palette, with_rgb))
    else:
        console.print(display.palette_text(palette, with_rgb))


def show_results(console: Console, results, root: str, with_rgb: bool) -> None:
    if not console.is_terminal:
        for path, result in results.items():
            name = os.path.relpath(path, root)
            if result.ok:
                typer.echo(f"{name}: {display.plain_text(result.palette, with_rgb)}")
            else:
                typer.echo(f"{name}: Error: {result.error}")
        return
    console.print(display.results_table(results, root, with_rgb))
    console.print(display.summary(results))


def copycolors_cli(
    file_path: str = typer.Argument(
        ...,
        metavar="DIR_OR_FILE_PATH",
        help="Local directory or local image path.",
    ),
    nb_colors: int = typer.Option(
        settings.DEFAULT_COLORS, "--nb-colors", "-n",
        min=settings.MIN_COLORS, max=settings.MAX_COLORS,
        help=f"Number of colors to extract ({settings.MIN_COLORS}-{settings.MAX_COLORS}).",
    ),
    rgb: bool = typer.Option(False, "--rgb", "-r", help="Print RGB codes instead of hexadecimal ones."),
    exc_colors: Optional[List[str]] = typer.Option(
        None, "--exc-colors", "-e",
        help="Color to exclude, in hexadecimal (e.g. -e '#000000' -e '#FFFFFF'). Up to 5.",
    ),
    canvas: bool = typer.Option(False, "--canvas", "-c", help="Show colors canvas."),
    bcw: bool = typer.Option(False, "--bcw", help="Order colors from the best contrasting with white to the least."),
    bcb: bool = typer.Option(
        False, "--bcb",
        help="Order colors from the best contrasting with black to the least. Wins over --bcw.",
    ),
    recursive: bool = typer.Option(False, "--recursive", "-R", help="Directory mode: include subdirectories."),
    pattern: Optional[str] = typer.Option(
        None, "--pattern", "-p", help="Directory mode: only process files whose name matches this regex."
    ),
    method: str = typer.Option("mediancut", "--method", help=f"Quantization method: {', '.join(METHODS)}."),
    threshold: Optional[float] = typer.Option(
        None, "--threshold", min=0.0, max=1.0,
        help=f"Exclusion threshold, as a fraction of the max color distance. Default: {settings.EXCLUDE_THRESHOLD}.",
    ),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Directory mode: worker threads. Default: CPU count."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print debug information."),
):
    """Fast dominant colors extraction CLI."""
    setup_logging(verbose)
    console = Console()

    if method not in METHODS:
        fail(f"Error: Unknown method '{method}'. Expected one of: {', '.join(METHODS)}.")
    excluded = parse_excluded(exc_colors)
    reference = contrast_reference(bcw, bcb)
    quantizer = quantizer_for(method)

    is_dir = Path(file_path).is_dir()
    try:
        threshold = settings.exclude_threshold(threshold)
        workers = settings.worker_count(workers) if is_dir else None
    except ValueError as e:
        fail(f"Error: {e}")

    if is_dir:
        try:
            paths = scan(file_path, pattern, recursive)
        except ScanError as e:
            fail(f"Error: {e}")
        if not paths:
            typer.secho(f"No image files in {file_path}.", fg=typer.colors.YELLOW)
            return

        runner = BatchRunner(paths, nb_colors, excluded, reference, workers, quantizer=quantizer, threshold=threshold)
        if console.is_terminal:
            with display.BatchProgress(len(paths), console=console) as bar:
                results = runner.run(bar.update)
        else:
            results = runner.run()
        if runner.quitting:
            typer.secho("Interrupted, showing the files processed so far.", fg=typer.colors.YELLOW)
        show_results(console, results, file_path, rgb)
        return

    # Image file case
    if not settings.IMAGE_NAME_RE.search(file_path):
        fail(
            "The path you entered is neither that of a valid directory, nor that of a valid image file "
            f"(with extension: {', '.join('.' + ext for ext in settings.IMAGE_EXTENSIONS)}). "
            "Please check it, and try again."
        )
    try:
        palette = extract_file(file_path, excluded, nb_colors, reference, quantizer, threshold)
    except DecodeNotFound:
        fail("File not found.\nPlease be sure you provide the correct path!")
    except CopyColorsError as e:
        fail(f"Error while extracting colors: {e}")
    show_palette(console, palette, rgb, canvas)


def main():
    rich.traceback.install(show_locals=False, suppress=[typer])
    typer.run(copycolors_cli)


if __name__ == "__main__":
    main()
