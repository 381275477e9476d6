"""
File-watch reloader.

A ``FileWatcher`` polls the modification time of a property file on a
daemon thread. When the timestamp changes it re-reads the file and hands the
parsed configuration to ``apply_fn``, which re-enters the configurator and
therefore takes the same per-context lock as any other configure() call.

Failures to stat, read, parse or apply the file are reported as
``ReloadError`` on the diagnostic logger and the loop keeps polling. The same
failure is reported once, not on every poll. ``stop()`` ends the loop; the
module-level registry lets ``stop_all_watchers()`` end every loop at once.
"""

import threading
from pathlib import Path
from typing import Callable

from hierlog.config.properties import PropertyConfiguration, load_properties
from hierlog.core.errors import HierlogError, ReloadError
from hierlog.core.tree import HierarchyContext
from hierlog.system.log_system import LoggerFactory

logger = LoggerFactory.get_logger("hierlog.watch")

ApplyFn = Callable[[PropertyConfiguration], None]
Loader = Callable[[Path], PropertyConfiguration]

_UNSEEN = -1


class FileWatcher:
    """
    Poll a property file and re-apply it when it changes.

    Args:
        path: Property file to watch.
        apply_fn: Called with the freshly parsed configuration.
        poll_interval: Seconds between polls.
        initial_mtime: Modification time (ns) already applied. Read from the
            file when omitted.
        loader: Parser for the file (load_properties by default).

    Example:
        >>> watcher = FileWatcher("logging.properties", apply_fn, poll_interval=2.0)
        >>> watcher.start()
        >>> ...
        >>> watcher.stop()
    """

    def __init__(
        self,
        path: str | Path,
        apply_fn: ApplyFn,
        poll_interval: float = 1.0,
        initial_mtime: int | None = None,
        loader: Loader = load_properties,
    ):
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        self.path = Path(path)
        self.apply_fn = apply_fn
        self.poll_interval = poll_interval
        self.loader = loader
        self.reload_count = 0
        self.error_count = 0
        self._last_mtime = initial_mtime if initial_mtime is not None else self._current_mtime()
        self._last_error: str | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def __repr__(self) -> str:
        return f"FileWatcher({str(self.path)!r}, poll_interval={self.poll_interval})"

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start polling on a daemon thread. No-op if already running."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=f"hierlog-watch:{self.path.name}", daemon=True)
        self._thread.start()
        logger.debug("watch.started", path=str(self.path), poll_interval=self.poll_interval)

    def stop(self, timeout: float | None = None) -> None:
        """Stop polling and wait up to ``timeout`` seconds for the thread to end."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def poll_once(self) -> bool:
        """
        Check the file once.

        Returns:
            True if the file changed and was re-applied.
        """
        try:
            mtime = self.path.stat().st_mtime_ns
        except OSError as exc:
            self._report(ReloadError(self.path, exc))
            return False

        if mtime == self._last_mtime:
            return False
        self._last_mtime = mtime

        try:
            config = self.loader(self.path)
            self.apply_fn(config)
        except (OSError, HierlogError) as exc:
            self._report(ReloadError(self.path, exc))
            return False

        self._last_error = None
        self.reload_count += 1
        logger.info("watch.reloaded", path=str(self.path), reloads=self.reload_count)
        return True

    def _run(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            try:
                self.poll_once()
            except Exception:
                # keep the loop alive, the next poll may succeed
                logger.exception("watch.poll_failed", path=str(self.path))

    def _current_mtime(self) -> int:
        try:
            return self.path.stat().st_mtime_ns
        except OSError:
            return _UNSEEN

    def _report(self, error: ReloadError) -> None:
        self.error_count += 1
        message = str(error)
        if message == self._last_error:
            return
        self._last_error = message
        logger.error("watch.reload_failed", path=str(error.path), error=str(error.cause))


_watchers: dict[tuple[Path, HierarchyContext], FileWatcher] = {}
_watchers_lock = threading.Lock()


def start_watching(
    path: str | Path,
    apply_fn: ApplyFn,
    ctx: HierarchyContext,
    poll_interval: float = 1.0,
    initial_mtime: int | None = None,
) -> FileWatcher:
    """Start a watcher for ``path`` in ``ctx``, replacing any existing one."""
    key = (Path(path).resolve(), ctx)
    watcher = FileWatcher(path, apply_fn, poll_interval=poll_interval, initial_mtime=initial_mtime)
    with _watchers_lock:
        previous = _watchers.pop(key, None)
        _watchers[key] = watcher
    if previous is not None:
        previous.stop()
    watcher.start()
    return watcher


def stop_watching(path: str | Path, ctx: HierarchyContext) -> bool:
    """Stop the watcher for ``path`` in ``ctx``. Returns False if there was none."""
    with _watchers_lock:
        watcher = _watchers.pop((Path(path).resolve(), ctx), None)
    if watcher is None:
        return False
    watcher.stop()
    return True


def stop_all_watchers(ctx: HierarchyContext | None = None) -> int:
    """Stop every watcher (or every watcher of ``ctx``). Returns how many were stopped."""
    with _watchers_lock:
        keys = [key for key in _watchers if ctx is None or key[1] == ctx]
        stopped = [_watchers.pop(key) for key in keys]
    for watcher in stopped:
        watcher.stop()
    return len(stopped)


def active_watchers(ctx: HierarchyContext | None = None) -> list[FileWatcher]:
    with _watchers_lock:
        return [watcher for key, watcher in _watchers.items() if ctx is None or key[1] == ctx]
