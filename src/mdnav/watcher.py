"""File system watcher for live reload of the open document."""

import logging
import threading
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .loader import invalidate_file_cache

logger = logging.getLogger(__name__)


class DocumentEventHandler(FileSystemEventHandler):
    """Handler for changes to one file, with debouncing."""

    def __init__(
        self,
        path: Path,
        on_change: Callable[[Path], None],
        debounce_seconds: float = 0.3,
    ):
        super().__init__()
        self.path = path
        self.on_change = on_change
        self.debounce_seconds = debounce_seconds
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def _is_watched(self, path: str | bytes) -> bool:
        if isinstance(path, bytes):
            path = path.decode(errors="replace")
        try:
            return Path(path).resolve() == self.path
        except OSError:
            return False

    def _schedule_update(self) -> None:
        """Schedule a debounced reload."""
        logger.debug("Change detected: %s", self.path)
        with self._lock:
            if self._timer:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_seconds, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        invalidate_file_cache(self.path)
        self.on_change(self.path)

    def cancel(self) -> None:
        with self._lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_watched(event.src_path):
            self._schedule_update()

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_watched(event.src_path):
            self._schedule_update()

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save via rename show up as a move onto the file
        dest_path = getattr(event, "dest_path", "")
        if not event.is_directory and dest_path and self._is_watched(dest_path):
            self._schedule_update()


class DocumentWatcher:
    """Watches the currently open document; follows it across navigation."""

    def __init__(self, on_change: Callable[[Path], None], debounce_seconds: float = 0.3):
        self.on_change = on_change
        self.debounce_seconds = debounce_seconds
        self.path: Path | None = None
        self._observer: Observer | None = None
        self._handler: DocumentEventHandler | None = None

    def watch(self, path: Path | None) -> None:
        """Start watching path, replacing any previous target."""
        path = path.resolve() if path is not None else None
        if path == self.path and self._observer is not None:
            return
        self.stop()
        self.path = path
        if path is None or not path.parent.is_dir():
            return

        self._handler = DocumentEventHandler(path, self.on_change, self.debounce_seconds)
        self._observer = Observer()
        # Watch the directory, not the file: atomic saves replace the inode
        self._observer.schedule(self._handler, str(path.parent), recursive=False)
        self._observer.daemon = True
        self._observer.start()
        logger.info("Watching %s", path)

    def stop(self) -> None:
        """Stop watching."""
        if self._handler is not None:
            self._handler.cancel()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=1.0)
        self._observer = None
        self._handler = None

    def __enter__(self) -> "DocumentWatcher":
        return self

    def __exit__(self, *args) -> None:
        self.stop()
