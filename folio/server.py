"""Development server for Folio.

Serves the built site over HTTP and rebuilds it when sources change:
- GET returns the matching file from the output tree, directories resolve to
  their index.html, and anything else is a 404 (serving 404.html when present).
- Methods other than GET are not implemented.
- Content, static and template folders plus the config file are watched;
  each change supersedes the build in flight and starts a new one.
- A failed rebuild is reported and the previously built site keeps being served.

Key classes:
- DevServer: Main class for running the development server.
- _SiteRequestHandler: HTTP request handler for the output tree.
- _ChangeHandler: File system event handler for triggering rebuilds.
"""

from __future__ import annotations

import dataclasses
import functools
import threading
import time
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import BuildResult, build_site
from .cancel import CancelToken
from .config import SiteConfig, find_config
from .errors import BuildCancelled, BuildError

DEFAULT_INTERFACE = "127.0.0.1"
DEFAULT_PORT = 1111


class _SiteRequestHandler(SimpleHTTPRequestHandler):
    """Serves files from the output tree and nothing else."""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def do_HEAD(self):
        self.send_error(HTTPStatus.NOT_IMPLEMENTED, f"Unsupported method ({self.command!r})")

    def _serve_404(self):
        """Serve 404.html (when present) with a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.is_file():
            encoded = error_page.read_bytes()
            self.send_response(HTTPStatus.NOT_FOUND)
            self.send_header("Content-type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            self.wfile.write(encoded)
            return None
        self.send_error(HTTPStatus.NOT_FOUND, "File not found")
        return None

    def send_head(self):
        path_obj = Path(self.translate_path(self.path))
        if path_obj.is_dir():
            path_obj = path_obj / "index.html"
        if not path_obj.is_file():
            return self._serve_404()
        try:
            f = open(path_obj, "rb")
        except OSError:
            return self._serve_404()
        try:
            size = path_obj.stat().st_size
            self.send_response(HTTPStatus.OK)
            self.send_header("Content-type", self.guess_type(str(path_obj)))
            self.send_header("Content-Length", str(size))
            self.end_headers()
            return f
        except Exception:
            f.close()
            raise


class DevServer:
    """Development server with rebuild-on-change.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration at startup, with the serve base URL applied.
        base_url: Base URL every build uses.
        output_dir: Directory the site is built into and served from.
        interface: Address the HTTP server binds to.
        port: Port the HTTP server binds to.
        include_drafts: Whether rebuilds publish drafts.
    """

    def __init__(
        self,
        project_root: Path,
        config: SiteConfig,
        interface: str = DEFAULT_INTERFACE,
        port: int = DEFAULT_PORT,
        base_url: str | None = None,
        output_dir: Path | None = None,
        include_drafts: bool = False,
        config_path: Path | None = None,
    ):
        self.project_root = project_root
        self.interface = interface
        self.port = port
        self.base_url = base_url if base_url is not None else f"http://{interface}:{port}"
        self.config = dataclasses.replace(config, base_url=self.base_url)
        self.config_path = config_path
        self.output_dir = output_dir or project_root / config.output_dir
        self.include_drafts = include_drafts
        self._observer: Observer | None = None
        self._httpd: ThreadingHTTPServer | None = None
        self._lock = threading.Lock()
        self._build_lock = threading.Lock()
        self._token: CancelToken | None = None
        self._last_signature: tuple | None = None

    def start(self) -> None:  # pragma: no cover - integration path
        """Build once, then serve and watch until interrupted.

        Raises:
            BuildError: If the initial build fails.
        """
        result = self.build()
        self._report(result)
        self._last_signature = self._compute_signature()
        self._httpd = self.make_http_server()
        threading.Thread(target=self._httpd.serve_forever, daemon=True).start()
        print(f"Serving {self.output_dir} at http://{self.interface}:{self.port}")
        self._start_watcher()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        if self._httpd:
            self._httpd.shutdown()
            self._httpd.server_close()
        with self._lock:
            if self._token is not None:
                self._token.cancel()

    def make_http_server(self) -> ThreadingHTTPServer:
        handler = functools.partial(_SiteRequestHandler, directory=str(self.output_dir))
        return ThreadingHTTPServer((self.interface, self.port), handler)

    def build(self, cancel: CancelToken | None = None) -> BuildResult:
        """Run the full pipeline, re-reading the configuration first."""
        return build_site(
            self.project_root,
            config_path=self.config_path,
            base_url=self.base_url,
            output_dir=self.output_dir,
            include_drafts=self.include_drafts,
            cancel=cancel,
        )

    def watched_paths(self) -> list[Path]:
        """Source locations whose changes trigger a rebuild."""
        paths = [
            self.project_root / self.config.content_dir,
            self.project_root / self.config.static_dir,
            self.project_root / self.config.templates_dir,
        ]
        return [path for path in paths if path.exists()]

    def _start_watcher(self) -> None:
        handler = _ChangeHandler(self)
        observer = Observer()
        for watch_path in self.watched_paths():
            observer.schedule(handler, str(watch_path), recursive=True)
        # Watch the root for the config file
        observer.schedule(handler, str(self.project_root), recursive=False)
        observer.start()
        self._observer = observer

    def rebuild(self) -> threading.Thread | None:
        """Supersede any build in flight with a new one on a worker thread.

        Returns:
            The worker thread, or None when sources have not changed.
        """
        signature = self._compute_signature()
        with self._lock:
            if signature is not None and signature == self._last_signature:
                return None
            self._last_signature = signature
            if self._token is not None:
                self._token.cancel()
            token = CancelToken()
            self._token = token
        worker = threading.Thread(target=self._run_build, args=(token,), daemon=True)
        worker.start()
        return worker

    def _run_build(self, token: CancelToken) -> BuildResult | None:
        with self._build_lock:
            if token.cancelled:
                return None
            print("Change detected; rebuilding...")
            try:
                result = self.build(cancel=token)
            except BuildCancelled:
                return None
            except BuildError as exc:
                print(f"Build failed: {exc}")
                print("Still serving the previous build.")
                return None
            self._report(result)
            return result

    def _report(self, result: BuildResult) -> None:
        for warning in result.warnings:
            print(f"Warning: {warning}")
        print(f"Built {len(result.documents)} documents with {len(result.warnings)} warnings")

    def _compute_signature(self) -> tuple | None:
        entries: list[tuple] = []
        roots = self.watched_paths()
        config_file = self.config_path or find_config(self.project_root)
        files = [config_file] if config_file else []
        for root in roots:
            files.extend(path for path in root.rglob("*") if not path.is_dir())
        for path in sorted(files):
            try:
                stat = path.stat()
            except OSError:
                continue
            entries.append((str(path), stat.st_mtime_ns, stat.st_size))
        return tuple(entries) if entries else None


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(event.src_path)
        try:
            path.resolve().relative_to(self.server.output_dir.resolve())
            return
        except ValueError:
            pass
        if path.name.endswith(("~", ".swp")):
            return
        self.server.rebuild()
