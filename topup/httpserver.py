"""A WSGI server running in the background with graceful shutdown."""

from __future__ import annotations

import queue
import socketserver
import threading
from datetime import timedelta
from typing import Any, Callable
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

_DEFAULT_READ_TIMEOUT = 30.0
_DEFAULT_WRITE_TIMEOUT = 30.0
_DEFAULT_SHUTDOWN_TIMEOUT = 30.0
_DEFAULT_ADDR = ":80"


def _seconds(value: timedelta | float | int) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class _ThreadingWSGIServer(socketserver.ThreadingMixIn, WSGIServer):
    daemon_threads = True


class HttpServer:
    """Starts serving as soon as it is built; errors from serving arrive on notify()."""

    def __init__(
        self,
        app: Callable[..., Any],
        *,
        port: str | int | None = None,
        read_timeout: timedelta | float = _DEFAULT_READ_TIMEOUT,
        write_timeout: timedelta | float = _DEFAULT_WRITE_TIMEOUT,
        shutdown_timeout: timedelta | float = _DEFAULT_SHUTDOWN_TIMEOUT,
    ) -> None:
        self.addr = _DEFAULT_ADDR if port is None else f":{port}"
        self.read_timeout = _seconds(read_timeout)
        self.write_timeout = _seconds(write_timeout)
        self.shutdown_timeout = _seconds(shutdown_timeout)
        self._notify: queue.Queue[BaseException] = queue.Queue(maxsize=1)
        self._server: _ThreadingWSGIServer | None = None
        self._start(app)

    def _start(self, app: Callable[..., Any]) -> None:
        host, _, port = self.addr.rpartition(":")
        connection_timeout = max(self.read_timeout, self.write_timeout) or None

        class _Handler(WSGIRequestHandler):
            timeout = connection_timeout

        try:
            self._server = make_server(
                host, int(port), app, server_class=_ThreadingWSGIServer, handler_class=_Handler
            )
        except (OSError, ValueError) as exc:
            self._notify.put(exc)
            return
        threading.Thread(target=self._serve, daemon=True).start()

    def _serve(self) -> None:
        assert self._server is not None
        try:
            self._server.serve_forever()
        except Exception as exc:
            self._notify.put(exc)
        else:
            self._notify.put(ConnectionAbortedError("server closed"))

    def notify(self) -> queue.Queue[BaseException]:
        """Queue that receives the error that ended serving."""
        return self._notify

    def shutdown(self) -> None:
        """Stop accepting requests, waiting at most the shutdown timeout."""
        server = self._server
        if server is None:
            return
        stopper = threading.Thread(target=server.shutdown, daemon=True)
        stopper.start()
        stopper.join(self.shutdown_timeout)
        if stopper.is_alive():
            raise TimeoutError("server shutdown timed out")
        server.server_close()
        self._server = None