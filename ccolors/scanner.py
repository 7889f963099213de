import logging
import os
import re
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ccolors import settings
from ccolors.color_metric import Color
from ccolors.decode import decode_image
from ccolors.errors import CopyColorsError, InvalidPattern, ScanNotFound, ScanPermissionDenied
from ccolors.palette import Quantizer, check_excluded, extract_file
from ccolors.progress import FileResult, ProgressSink, ProgressState, ScanResult, refresh
from ccolors.quantize import quantize

log = logging.getLogger(__name__)


def compile_pattern(pattern: Optional[str]) -> Optional[re.Pattern]:
    if pattern is None:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPattern(f"Invalid file name pattern {pattern!r}: {e}") from None


def is_image_name(name: str, pattern: Optional[re.Pattern] = None) -> bool:
    if not settings.IMAGE_NAME_RE.search(name):
        return False
    return pattern is None or pattern.search(name) is not None


def scan(root: Union[str, Path], pattern: Optional[str] = None, recursive: bool = False) -> List[str]:
    """
    List the image files of a directory.

    Args:
        root (str | Path): Directory to look into.
        pattern (str, optional): Regex the file name must also match.
        recursive (bool): Walk the whole tree instead of direct children only.

    Returns:
        List[str]: Matching file paths, sorted. Empty if nothing matches.

    Raises:
        ScanNotFound, ScanPermissionDenied, InvalidPattern
    """
    name_re = compile_pattern(pattern)
    root = Path(root)
    if not root.exists():
        raise ScanNotFound(f"Directory not found: {root}")
    if not root.is_dir():
        raise ScanNotFound(f"Not a directory: {root}")

    errors: List[OSError] = []
    found: List[str] = []
    try:
        if recursive:
            # os.walk reports unreadable subdirectories through onerror
            for dirpath, _, filenames in os.walk(root, onerror=errors.append):
                found.extend(os.path.join(dirpath, name) for name in filenames if is_image_name(name, name_re))
        else:
            with os.scandir(root) as entries:
                for entry in entries:
                    if entry.is_file() and is_image_name(entry.name, name_re):
                        found.append(entry.path)
    except PermissionError as e:
        raise ScanPermissionDenied(f"Permission denied: {e.filename or root}") from None

    for error in errors:
        if isinstance(error, PermissionError) and Path(error.filename or "") == root:
            raise ScanPermissionDenied(f"Permission denied: {root}")
        log.warning("Skipping %s: %s", error.filename, error.strerror)

    return sorted(found)


class BatchRunner:
    """
    Extract the palettes of many files on a thread pool.

    Every worker reports to one ProgressSink. `quitting` is set when the
    refresh loop is interrupted by the user; files already being processed
    still finish, files not yet started are dropped.
    """

    def __init__(
        self,
        paths: Sequence[str],
        count: int = settings.DEFAULT_COLORS,
        excluded: Sequence[Color] = (),
        reference: Optional[Color] = None,
        workers: Optional[int] = None,
        decoder: Callable = decode_image,
        quantizer: Quantizer = quantize,
        threshold: Optional[float] = None,
    ):
        self.paths = [str(p) for p in paths]
        self.count = settings.check_count(count)
        self.excluded = check_excluded(excluded)
        self.reference = reference
        self.workers = settings.worker_count(workers)
        self.decoder = decoder
        self.quantizer = quantizer
        self.threshold = settings.exclude_threshold(threshold)
        self.sink = ProgressSink(len(self.paths))
        self.quitting = False

    def process(self, path: str) -> None:
        try:
            palette = extract_file(
                path, self.excluded, self.count, self.reference, self.quantizer, self.threshold, self.decoder
            )
            result = FileResult(palette=palette)
        except CopyColorsError as e:
            log.debug("Extraction failed for %s: %s", path, e)
            result = FileResult(error=str(e))
        except Exception as e:
            log.exception("Unexpected error while processing %s", path)
            result = FileResult(error=str(e) or type(e).__name__)
        self.sink.complete(path, result)

    def run(self, on_progress: Optional[Callable[[ProgressState], None]] = None) -> ScanResult:
        """Process every path and return the results, sorted by path."""
        finished = threading.Event()
        remaining = [len(self.paths)]
        countdown_lock = threading.Lock()

        def countdown(_future: Future) -> None:
            with countdown_lock:
                remaining[0] -= 1
                if remaining[0] <= 0:
                    finished.set()

        if not self.paths:
            finished.set()

        log.debug("Processing %d file(s) with %d worker(s)", len(self.paths), self.workers)
        executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="copycolors")
        futures = []
        try:
            for path in self.paths:
                future = executor.submit(self.process, path)
                future.add_done_callback(countdown)
                futures.append(future)
            try:
                if on_progress is not None:
                    refresh(self.sink, finished, on_progress)
                else:
                    finished.wait()
            except KeyboardInterrupt:
                self.quitting = True
                cancelled = sum(f.cancel() for f in futures)
                log.warning("Interrupted: waiting for running files, %d not started", cancelled)
        finally:
            executor.shutdown(wait=True)

        wait(futures)
        # process() records file failures itself, so only sink errors land here
        for future in futures:
            if not future.cancelled() and future.exception() is not None:
                raise future.exception()
        return self.sink.freeze()


def run_batch(
    paths: Sequence[str],
    count: int = settings.DEFAULT_COLORS,
    excluded: Sequence[Color] = (),
    reference: Optional[Color] = None,
    workers: Optional[int] = None,
    decoder: Callable = decode_image,
    quantizer: Quantizer = quantize,
    threshold: Optional[float] = None,
    on_progress: Optional[Callable[[ProgressState], None]] = None,
) -> ScanResult:
    """
    Extract palettes for every path. A file that fails gets its error message
    in the result instead of a palette; it never stops the others.
    """
    runner = BatchRunner(paths, count, excluded, reference, workers, decoder, quantizer, threshold)
    return runner.run(on_progress)


def scan_directory(
    root: Union[str, Path],
    pattern: Optional[str] = None,
    recursive: bool = False,
    **batch_options,
) -> ScanResult:
    return run_batch(scan(root, pattern, recursive), **batch_options)
