"""
Project file watcher, polling-based.

The project file may be edited outside the server (another editor, a sync
client). A daemon thread compares the file's mtime every POLL_INTERVAL
seconds and reloads the session when it changed. Writes made by the session
itself are recognised through ProjectSession.saved_mtime and ignored.
"""

import logging
import os
import threading
from typing import Optional

from mdtasker.store.project_file import ProjectFileError

log = logging.getLogger(__name__)

_DEFAULT_POLL_INTERVAL = 5.0


class ProjectWatcher:
    """
    Usage:
        watcher = ProjectWatcher(session)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(self, session, poll_interval: Optional[float] = None) -> None:
        self._session = session
        self._poll_interval = poll_interval or float(
            os.environ.get("POLL_INTERVAL", _DEFAULT_POLL_INTERVAL)
        )
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_mtime: Optional[float] = None

    def start(self) -> None:
        """Start the polling thread (daemon)."""
        log.info("Starting project watcher (polling every %.1fs)", self._poll_interval)
        self._last_mtime = self._session.saved_mtime
        self._thread = threading.Thread(target=self._poll_loop, daemon=True, name="project-watcher")
        self._thread.start()

    def stop(self) -> None:
        log.info("Stopping project watcher")
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self._poll_interval + 2)

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            self._stop_event.wait(self._poll_interval)
            if self._stop_event.is_set():
                break
            try:
                self.check_for_changes()
            except Exception:
                log.exception("Error during poll cycle")

    def check_for_changes(self) -> bool:
        """
        Single poll cycle.

        Returns:
            True if the session was reloaded
        """
        path = self._session.path
        if path is None:
            return False
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            log.debug("Project file %s is missing", path)
            return False

        if mtime == self._last_mtime:
            return False
        self._last_mtime = mtime
        if mtime == self._session.saved_mtime:
            return False

        log.info("Project file changed on disk: %s", path)
        try:
            self._session.reload()
        except ProjectFileError as exc:
            log.warning("Ignoring invalid project file change: %s", exc)
            return False
        return True
