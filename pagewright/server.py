from __future__ import annotations

import functools
import logging
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080
REBUILD_DELAY = 0.5


class RebuildHandler(FileSystemEventHandler):
    """Flags the site as dirty whenever a file below a watched directory changes."""

    IGNORED_EVENTS = {"opened", "closed", "closed_no_write"}

    def __init__(self) -> None:
        super().__init__()
        self.dirty = threading.Event()

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in self.IGNORED_EVENTS:
            return
        logger.debug("%s %s", event.event_type, event.src_path)
        self.dirty.set()


def watch_dirs(
    dirs: list[Path],
    on_change: Callable[[], None],
    stop: threading.Event,
    interval: float = REBUILD_DELAY,
) -> None:
    """Call ``on_change`` after any file below ``dirs`` is added, removed or modified.

    Runs until ``stop`` is set. A burst of events within ``interval`` triggers
    a single rebuild, and rebuilds run on this thread so they never overlap.
    """
    handler = RebuildHandler()
    observer = Observer()
    for directory in dirs:
        if directory.is_dir():
            observer.schedule(handler, str(directory), recursive=True)
            logger.debug("Watching %s for changes", directory)
    observer.start()
    try:
        while not stop.wait(interval):
            if not handler.dirty.is_set():
                continue
            handler.dirty.clear()
            logger.info("Change detected, rebuilding")
            on_change()
    finally:
        observer.stop()
        observer.join()


class QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(directory: Path, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> ThreadingHTTPServer:
    handler = functools.partial(QuietHandler, directory=str(directory))
    return ThreadingHTTPServer((host, port), handler)


def serve(
    directory: Path,
    watch: list[Path],
    rebuild: Callable[[], None],
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    stop = threading.Event()
    watcher = threading.Thread(target=watch_dirs, args=(watch, rebuild, stop), daemon=True)
    watcher.start()
    with make_server(directory, host, port) as httpd:
        logger.info("Listening on http://%s:%d/", host, port)
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down")
        finally:
            stop.set()
