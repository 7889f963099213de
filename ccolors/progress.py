import math
import threading
from types import MappingProxyType
from typing import Callable, Dict, Mapping, NamedTuple, Optional, Tuple

from ccolors import settings
from ccolors.color_metric import Color


class FileResult(NamedTuple):
    """Outcome for one file of a batch: a palette, or the error message."""
    palette: Optional[Tuple[Color, ...]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


ScanResult = Mapping[str, FileResult]


def percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 100
    return min(100, math.floor(completed / total * 100))


class ProgressState(NamedTuple):
    completed: int
    total: int
    last_path: Optional[str]

    @property
    def percent(self) -> int:
        return percentage(self.completed, self.total)


class ProgressSink:
    """
    Progress counter and result map shared by every batch worker.

    Both live behind one lock, taken only for the short update made when a
    worker finishes a file. `freeze()` ends the write phase and hands back the
    results sorted by path.
    """

    def __init__(self, total: int):
        self.total = total
        self._lock = threading.Lock()
        self._completed = 0
        self._last_path: Optional[str] = None
        self._results: Dict[str, FileResult] = {}
        self._frozen: Optional[ScanResult] = None

    def complete(self, path: str, result: FileResult) -> bool:
        """
        Record a finished file. Returns False when `path` already had a result
        (the first one is kept).
        """
        with self._lock:
            if self._frozen is not None:
                raise RuntimeError("Batch results are frozen; no more updates accepted.")
            self._completed += 1
            self._last_path = path
            if path in self._results:
                return False
            self._results[path] = result
            return True

    def snapshot(self) -> ProgressState:
        with self._lock:
            return ProgressState(self._completed, self.total, self._last_path)

    @property
    def percent(self) -> int:
        return self.snapshot().percent

    def freeze(self) -> ScanResult:
        with self._lock:
            if self._frozen is None:
                ordered = {path: self._results[path] for path in sorted(self._results)}
                self._frozen = MappingProxyType(ordered)
            return self._frozen


def refresh(
    sink: ProgressSink,
    finished: threading.Event,
    on_update: Callable[[ProgressState], None],
    rate: float = settings.REFRESH_HZ,
) -> ProgressState:
    """
    Poll `sink` about `rate` times per second and pass the latest state to
    `on_update`, until `finished` is set. Updates in between polls are simply
    coalesced. Returns the last state seen.
    """
    interval = 1.0 / rate
    while True:
        done = finished.wait(interval)
        state = sink.snapshot()
        on_update(state)
        if done:
            return state
