"""Watch loop: re-run a push whenever the root module or an included path changes.

Local paths are observed with watchfiles; an https root module is polled and
compared by content hash. Pushes never overlap: changes that arrive while a
push is running are coalesced by watchfiles and delivered as one batch
afterwards.
"""

import hashlib
import os
import threading
from typing import Callable, Iterable, List, Optional, Set, Tuple

import click
import requests
from watchfiles import Change, watch

from ..utils.security import get_secure_logger

logger = get_secure_logger(__name__)

SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".json", ".wasm", ".txt", ".html", ".css")
IGNORED_DIRS = {".git", "node_modules", "__pycache__"}


class UrlPoller:
    """Detects content changes of a remote module by polling it."""

    def __init__(self, url: str, session: Optional[requests.Session] = None):
        self.url = url
        self.session = session or requests.Session()
        self.last_digest: Optional[str] = None

    def _digest(self) -> Optional[str]:
        try:
            response = self.session.get(self.url, timeout=30)
        except requests.RequestException as e:
            logger.warning(f"Polling {self.url} failed: {e}")
            return None
        if response.status_code >= 400:
            logger.warning(f"Polling {self.url} returned HTTP {response.status_code}")
            return None
        return hashlib.sha256(response.content).hexdigest()

    def prime(self) -> None:
        self.last_digest = self._digest()

    def changed(self) -> bool:
        digest = self._digest()
        if digest is None:
            return False
        changed = self.last_digest is not None and digest != self.last_digest
        self.last_digest = digest
        return changed


class ModuleWatcher:
    """Invokes on_change after each batch of changes, absorbing its exceptions."""

    def __init__(
        self,
        script_path_or_url: str,
        on_change: Callable[[], None],
        include: Optional[Iterable[str]] = None,
        poll_interval: float = 2.0,
        stop_event: Optional[threading.Event] = None,
    ):
        self.script_path_or_url = script_path_or_url
        self.on_change = on_change
        self.include = [os.path.abspath(p) for p in include or ()]
        self.poll_interval = poll_interval
        self.stop_event = stop_event or threading.Event()
        self.url_poller: Optional[UrlPoller] = None
        self.callback_count = 0

        self.watch_paths: List[str] = list(self.include)
        if script_path_or_url.startswith("https://"):
            self.url_poller = UrlPoller(script_path_or_url)
        else:
            self.root_dir = os.path.dirname(os.path.abspath(script_path_or_url))
            self.watch_paths.insert(0, self.root_dir)

    def _relative_to_watched(self, path: str) -> str:
        for root in self.watch_paths:
            prefix = root.rstrip(os.sep) + os.sep
            if path.startswith(prefix):
                return path[len(prefix):]
        return os.path.basename(path)

    def _filter(self, change: Change, path: str) -> bool:
        # ancestors of the watched roots are not considered
        parts = set(self._relative_to_watched(path).replace(os.sep, "/").split("/"))
        if parts & IGNORED_DIRS:
            return False
        if any(path == p or path.startswith(p.rstrip(os.sep) + os.sep) for p in self.include):
            return True
        return path.endswith(SOURCE_EXTENSIONS)

    def _fire(self, changes: Set[Tuple[Change, str]]) -> None:
        if changes:
            logger.debug(f"Changes: {sorted(path for _, path in changes)}")
        try:
            self.on_change()
        except Exception as e:
            logger.error(f"Push failed: {e}")
            click.echo(f"Error: {e}", err=True)
        finally:
            self.callback_count += 1
            click.echo("watching for changes...")

    def run(self) -> None:
        """Block until stop_event is set (normally never; the process is interrupted)."""
        click.echo("watching for changes...")
        if self.url_poller is not None:
            self.url_poller.prime()

        if not self.watch_paths:
            while not self.stop_event.wait(self.poll_interval):
                if self.url_poller.changed():
                    self._fire(set())
            return

        for changes in watch(
            *self.watch_paths,
            watch_filter=self._filter,
            rust_timeout=int(self.poll_interval * 1000),
            yield_on_timeout=True,
            stop_event=self.stop_event,
        ):
            url_changed = self.url_poller is not None and self.url_poller.changed()
            if changes or url_changed:
                self._fire(changes)
