import os
from typing import Optional, Sequence

from rich.columns import Columns
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.style import Style
from rich.table import Table
from rich.text import Text

from ccolors.color_metric import BLACK, WHITE, Color, best_contrast, to_hex, to_rgb_string
from ccolors.progress import ProgressState, ScanResult

TEXT_COLORS = [BLACK, WHITE]
TERMINAL_GREEN = "rgb(124,252,0)"


def color_label(color: Color, with_rgb: bool = False) -> str:
    return to_rgb_string(color) if with_rgb else to_hex(color)


def rich_color(color: Color) -> str:
    return "rgb({},{},{})".format(*color)


def palette_text(palette: Sequence[Color], with_rgb: bool = False) -> Text:
    """Comma separated color codes, each printed on its own color."""
    text = Text()
    for idx, color in enumerate(palette):
        fg = best_contrast(color, TEXT_COLORS)
        text.append(color_label(color, with_rgb), style=Style(color=rich_color(fg), bgcolor=rich_color(color), bold=True))
        if idx < len(palette) - 1:
            text.append(",")
    return text


def swatch(color: Color, with_rgb: bool = False) -> Text:
    """A block of the color with its code underneath."""
    # RGB codes are twice as wide as hex ones, so are the squares
    side = 8 if with_rgb else 4
    block = Text()
    for _ in range(side):
        block.append(" " * (2 * side), style=Style(bgcolor=rich_color(color)))
        block.append("\n")
    block.append(color_label(color, with_rgb), style="bold")
    return block


def palette_canvas(palette: Sequence[Color], with_rgb: bool = False) -> Columns:
    return Columns([swatch(color, with_rgb) for color in palette], padding=(1, 2))


def plain_text(palette: Sequence[Color], with_rgb: bool = False) -> str:
    """Comma separated codes without styling, for non-terminal output."""
    return ",".join(color_label(color, with_rgb) for color in palette)


def results_table(results: ScanResult, root: Optional[str] = None, with_rgb: bool = False) -> Table:
    """One row per file: its palette, or the reason it failed."""
    table = Table(title="Extracted Colors")
    table.add_column("File", style="cyan", no_wrap=True)
    table.add_column("Colors")
    for path, result in results.items():
        name = os.path.relpath(path, root) if root else path
        if result.ok:
            table.add_row(name, palette_text(result.palette, with_rgb))
        else:
            table.add_row(name, Text(result.error, style="red"))
    return table


def summary(results: ScanResult) -> Text:
    failed = sum(1 for r in results.values() if not r.ok)
    text = Text(f"{len(results)} file(s) processed", style="bold")
    if failed:
        text.append(f", {failed} failed", style="bold red")
    return text


class BatchProgress:
    """rich progress bar fed with ProgressState snapshots."""

    def __init__(self, total: int, console: Optional[Console] = None):
        self.progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(complete_style=TERMINAL_GREEN),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("{task.fields[current]}", style="dim"),
            console=console,
            transient=True,
        )
        self.task: TaskID = self.progress.add_task("Loading, please wait ...", total=max(total, 1), current="")

    def __enter__(self) -> "BatchProgress":
        self.progress.start()
        return self

    def __exit__(self, *exc) -> None:
        self.progress.stop()

    def update(self, state: ProgressState) -> None:
        current = os.path.basename(state.last_path) if state.last_path else ""
        self.progress.update(self.task, completed=min(state.completed, state.total), current=current)
