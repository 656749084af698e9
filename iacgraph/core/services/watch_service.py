"""
Directory watcher — the single owner of the generation working directory.

One background thread per start epoch.  The thread prepares a fresh
working directory under ``watch_root``, signals readiness once, then
polls the directory and mirrors changed artifacts into the output
directory, publishing ``watch:*`` events on the event bus.

State machine::

    stopped ──start()──▶ starting ──ready──▶ ready
       ▲                    │                  │
       └──── stop() / thread failure ◀─────────┘

Rules
─────
- ``start()`` is idempotent: callers arriving while ``starting`` or
  ``ready`` wait on the same epoch.  At most one thread exists.
- A failed thread rejects every waiter with WatcherError and resets
  to ``stopped``; the next ``start()`` launches a new epoch.
- ``stop()`` is a no-op when already stopped.  The directory itself
  is left on disk; only the path is released.
- While ``paused()`` the background poll mirrors nothing.  A run ends
  with ``sync()`` to publish its files or ``sync(discard=True)`` to
  keep a failed run's partial output out of the output directory.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import threading
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterator

from iacgraph.core.errors import WatcherError
from iacgraph.core.models.settings import Settings
from iacgraph.core.services.event_bus import EventBus, bus

logger = logging.getLogger(__name__)

_EVENT_KEY = "watcher"


class WatcherState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    READY = "ready"


def make_working_dir(watch_root: Path) -> Path:
    """Create a new, empty working directory under ``watch_root``."""
    watch_root.mkdir(parents=True, exist_ok=True)
    return Path(tempfile.mkdtemp(prefix="watch-", dir=watch_root))


class _Epoch:
    """Everything belonging to one start() cycle."""

    def __init__(self, number: int) -> None:
        self.number = number
        self.ready = threading.Event()
        self.stop = threading.Event()
        self.sync_lock = threading.Lock()
        self.seen: dict[str, float] = {}  # file name → mtime last mirrored
        self.path: Path | None = None
        self.error: BaseException | None = None
        self.thread: threading.Thread | None = None


class DirectoryWatcher:
    """Lock-guarded owner of the working directory.

    Args:
        watch_root: Parent under which each epoch's directory is made.
        output_dir: Where artifacts are mirrored. None disables mirroring.
        extension: Artifact file suffix to mirror.
        poll_interval: Seconds between directory scans.
        prepare: Builds the working directory; defaults to ``make_working_dir``.
        event_bus: Where ``watch:*`` events go.
    """

    def __init__(
        self,
        watch_root: Path,
        output_dir: Path | None = None,
        *,
        extension: str = ".tf",
        poll_interval: float = 1.0,
        prepare: Callable[[Path], Path] | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.watch_root = Path(watch_root)
        self.output_dir = Path(output_dir) if output_dir else None
        self.extension = extension
        self.poll_interval = poll_interval
        self._prepare = prepare or make_working_dir
        self._bus = event_bus or bus

        self._lock = threading.Lock()
        self._state = WatcherState.STOPPED
        self._epoch: _Epoch | None = None
        self._launches = 0
        self._paused = threading.Event()

    # ── Read-only views ─────────────────────────────────────────

    @property
    def state(self) -> WatcherState:
        with self._lock:
            return self._state

    @property
    def working_dir(self) -> Path | None:
        """The current directory, only while ready."""
        with self._lock:
            if self._state is WatcherState.READY and self._epoch is not None:
                return self._epoch.path
            return None

    @property
    def launches(self) -> int:
        """How many background threads have been started in total."""
        with self._lock:
            return self._launches

    def status(self) -> dict[str, Any]:
        with self._lock:
            path = self._epoch.path if self._epoch and self._state is WatcherState.READY else None
            return {
                "state": self._state.value,
                "working_dir": str(path) if path else None,
                "launches": self._launches,
            }

    # ── Lifecycle ───────────────────────────────────────────────

    def launch(self) -> None:
        """Start the background thread if none is running. Does not wait."""
        with self._lock:
            if self._epoch is None:
                self._spawn()

    def start(self, timeout: float | None = None) -> Path:
        """Return the working directory, launching the watcher if needed.

        Blocks until the background thread reports readiness.

        Raises:
            WatcherError: The thread failed, was stopped before becoming
                ready, or did not report within ``timeout`` seconds.
        """
        with self._lock:
            epoch = self._epoch or self._spawn()

        if not epoch.ready.wait(timeout):
            raise WatcherError(f"Directory watcher not ready after {timeout}s")
        if epoch.error is not None:
            raise WatcherError(f"Directory watcher failed: {epoch.error}") from epoch.error
        assert epoch.path is not None
        return epoch.path

    def stop(self, timeout: float | None = 5.0) -> bool:
        """Stop the background thread and release the path.

        Returns:
            True if a watcher was running, False if already stopped.
        """
        with self._lock:
            epoch = self._epoch
            self._epoch = None
            self._state = WatcherState.STOPPED

        if epoch is None:
            return False

        epoch.stop.set()
        thread = epoch.thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("Directory watcher stopped (epoch %d)", epoch.number)
        return True

    @contextmanager
    def paused(self) -> Iterator[None]:
        """Suspend background mirroring, e.g. for the length of a generation run.

        Waits for an in-flight poll to finish before the body runs.
        """
        self._paused.set()
        with self._lock:
            epoch = self._epoch
        if epoch is not None:
            with epoch.sync_lock:
                pass
        try:
            yield
        finally:
            self._paused.clear()

    def sync(self, discard: bool = False) -> list[str]:
        """Mirror changed artifacts now instead of waiting for the next poll.

        Args:
            discard: Mark changed artifacts as seen without copying them,
                so later polls skip them too.

        Returns:
            Names of the files mirrored (or discarded).
        """
        with self._lock:
            epoch = self._epoch if self._state is WatcherState.READY else None
        if epoch is None:
            return []
        try:
            return self._sync(epoch, copy=not discard)
        except OSError as e:
            # The background thread hits the same error on its next poll and resets
            logger.warning("Artifact mirror failed: %s", e)
            return []

    # ── Background thread ───────────────────────────────────────

    def _spawn(self) -> _Epoch:
        # Caller holds self._lock
        self._launches += 1
        epoch = _Epoch(self._launches)
        self._epoch = epoch
        self._state = WatcherState.STARTING

        epoch.thread = threading.Thread(
            target=self._run,
            args=(epoch,),
            daemon=True,
            name=f"directory-watcher-{epoch.number}",
        )
        epoch.thread.start()
        logger.debug("Directory watcher epoch %d launched", epoch.number)
        return epoch

    def _run(self, epoch: _Epoch) -> None:
        try:
            path = self._prepare(self.watch_root)
        except Exception as e:
            self._fail(epoch, e)
            return

        with self._lock:
            current = self._epoch is epoch and not epoch.stop.is_set()
            if current:
                epoch.path = path
                self._state = WatcherState.READY
            else:
                epoch.error = WatcherError("Directory watcher stopped before it was ready")

        epoch.ready.set()
        if not current:
            return

        logger.info("Directory watcher ready: %s", path)
        self._publish("watch:ready", working_dir=str(path), epoch=epoch.number)

        try:
            while not epoch.stop.wait(self.poll_interval):
                self._sync(epoch, background=True)
        except Exception as e:
            self._fail(epoch, e)
            return

        self._publish("watch:stopped", working_dir=str(path), epoch=epoch.number)

    def _fail(self, epoch: _Epoch, error: BaseException) -> None:
        epoch.error = error
        with self._lock:
            if self._epoch is epoch:
                self._epoch = None
                self._state = WatcherState.STOPPED
        epoch.ready.set()
        logger.error("Directory watcher epoch %d failed: %s", epoch.number, error)
        self._publish("watch:failed", error=str(error), epoch=epoch.number)

    def _sync(self, epoch: _Epoch, *, background: bool = False, copy: bool = True) -> list[str]:
        """Copy artifacts whose mtime changed since the last mirror.

        A vanished working directory propagates and ends the epoch.
        Individual copy failures are logged and retried next poll.
        """
        assert epoch.path is not None
        synced: list[str] = []

        with epoch.sync_lock:
            # Checked under sync_lock so paused() can wait out a running poll
            if background and self._paused.is_set():
                return []
            for entry in sorted(epoch.path.iterdir()):
                if not entry.is_file() or entry.suffix != self.extension:
                    continue
                try:
                    mtime = entry.stat().st_mtime
                    if epoch.seen.get(entry.name) == mtime:
                        continue
                    if not copy:
                        epoch.seen[entry.name] = mtime
                        synced.append(entry.name)
                        continue
                    if self.output_dir is not None:
                        self.output_dir.mkdir(parents=True, exist_ok=True)
                        shutil.copy2(entry, self.output_dir / entry.name)
                    epoch.seen[entry.name] = mtime
                    synced.append(entry.name)
                except OSError as e:
                    logger.warning("Could not mirror %s: %s", entry.name, e)

        if synced and not copy:
            logger.debug("Discarded %d artifact(s): %s", len(synced), ", ".join(synced))
        elif synced:
            logger.debug("Mirrored %d artifact(s): %s", len(synced), ", ".join(synced))
            self._publish("watch:synced", files=synced, epoch=epoch.number)
        return synced

    def _publish(self, event_type: str, **data: Any) -> None:
        try:
            self._bus.publish(event_type, key=_EVENT_KEY, data=data)
        except Exception:
            logger.debug("Event publish failed for %s", event_type, exc_info=True)


# ── Process-wide instance ───────────────────────────────────────

_instance: DirectoryWatcher | None = None
_instance_lock = threading.Lock()


def init_watcher(settings: Settings) -> DirectoryWatcher:
    """Configure the process-wide watcher, stopping any previous one."""
    global _instance
    with _instance_lock:
        if _instance is not None:
            _instance.stop()
        _instance = DirectoryWatcher(
            settings.watch_root,
            settings.output_dir,
            extension=settings.artifact_extension,
            poll_interval=settings.poll_interval,
        )
        return _instance
