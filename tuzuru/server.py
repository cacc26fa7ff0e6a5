"""Preview server for Tuzuru.

Serves the generated blog locally and keeps it fresh without file watchers:
before each request is answered, the ChangeDetector compares source
modification times with the time of the previous request and the blog is
regenerated when something changed.

Other behaviour for local authoring:
- Rejects directory listings and missing paths with a 404 (serving 404.html when present).
- Sends no-cache headers so the browser always shows the latest build.

Key classes:
- PreviewServer: Builds the blog, serves it, regenerates on demand.
- _PreviewHandler: HTTP request handler that triggers the freshness check.
"""

from __future__ import annotations

import functools
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import unquote, urlsplit

from .build import BuildResult, Tuzuru
from .changes import ChangeDetector
from .config import BlogConfiguration
from .errors import TuzuruError
from .logging import get_logger

logger = get_logger("server")


class _PreviewHandler(SimpleHTTPRequestHandler):
    """HTTP request handler that refreshes the blog before serving.

    Attributes:
        preview: Owning server; bound per server instance.
    """

    preview: PreviewServer | None = None

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        # Never expose directory listings; treat as missing content.
        return self._serve_404()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

    def _serve_404(self):
        """Serve 404.html (when present) with a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            encoded = error_page.read_bytes()
            self.send_response(404)
            self.send_header("Content-type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            self.wfile.write(encoded)
            return None
        self.send_error(404, "File not found")
        return None

    def send_head(self):
        if self.preview is not None:
            self.preview.refresh(unquote(urlsplit(self.path).path))
        path_obj = Path(self.translate_path(self.path))
        if path_obj.is_dir():
            if not (path_obj / "index.html").exists():
                return self._serve_404()
        elif not path_obj.exists():
            return self._serve_404()
        return super().send_head()


class PreviewServer:
    """Local HTTP server with regeneration on request.

    Attributes:
        config: Project configuration.
        port: Port for HTTP server.
        host: Interface to bind.
        tuzuru: Pipeline facade used for (re)generation.
        detector: Change detector consulted per request.
    """

    def __init__(self, config: BlogConfiguration, port: int = 8000, host: str = "127.0.0.1"):
        self.config = config
        self.port = port
        self.host = host
        self.tuzuru = Tuzuru(config)
        self.detector = ChangeDetector(config)
        self._lock = threading.Lock()
        self._last_check = 0.0
        self._path_mapping: dict[str, Path] = {}
        self._httpd: ThreadingHTTPServer | None = None

    def regenerate(self) -> BuildResult:
        result = self.tuzuru.build()
        self._path_mapping = self.tuzuru.create_path_mapping(result.source)
        return result

    def refresh(self, request_path: str) -> bool:
        """Regenerate the blog if sources changed since the previous request.

        Requests are checked one at a time. A failed regeneration is logged and
        the previous output keeps being served.

        Args:
            request_path: URL path of the incoming request.

        Returns:
            True if a regeneration was attempted.
        """
        with self._lock:
            checked_at = time.time()
            changed = self.detector.should_regenerate(
                request_path, self._last_check, self._path_mapping
            )
            if changed:
                logger.info("Change detected; regenerating...")
                try:
                    self.regenerate()
                except TuzuruError as exc:
                    logger.error("Regeneration failed: %s", exc)
            self._last_check = checked_at
        return changed

    def make_server(self) -> ThreadingHTTPServer:
        handler_cls = type("_BoundPreviewHandler", (_PreviewHandler,), {"preview": self})
        handler = functools.partial(handler_cls, directory=str(self.config.output_dir))
        self._httpd = ThreadingHTTPServer((self.host, self.port), handler)
        return self._httpd

    def start(self) -> None:  # pragma: no cover - integration path
        with self._lock:
            self._last_check = time.time()
            self.regenerate()
        httpd = self.make_server()
        logger.info("Serving %s at http://%s:%d", self.config.output_dir, self.host, self.port)
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Stopping preview server")
        finally:
            self.stop()

    def stop(self) -> None:
        if self._httpd is not None:
            self._httpd.server_close()
            self._httpd = None
