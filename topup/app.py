"""Application wiring: build every dependency, serve HTTP and shut down cleanly."""

from __future__ import annotations

import queue
import signal
import threading
import time
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from topup.cache import new_redis
from topup.config import Config
from topup.database import open_database
from topup.httpserver import HttpServer
from topup.logger import new_logger
from topup.routes import Authenticator, create_app
from topup.services import new_container
from topup.validator import Validator

_WAIT_TIME = timedelta(minutes=2)
_SQL_DIR = "sql"
_POLL_SECONDS = 0.2
_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _install_signal_handlers(signals: queue.Queue[str]) -> dict[int, Any]:
    if threading.current_thread() is not threading.main_thread():
        return {}

    def handler(signum: int, _frame: Any) -> None:
        signals.put(signal.Signals(signum).name)

    previous = {}
    for sig in _STOP_SIGNALS:
        previous[sig] = signal.getsignal(sig)
        signal.signal(sig, handler)
    return previous


def _restore_signal_handlers(previous: dict[int, Any]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def _close_clients(grpc_clients: Mapping[str, Any] | None) -> None:
    for client in (grpc_clients or {}).values():
        close = getattr(client, "close", None)
        if callable(close):
            close()


def run(config: Config, authenticator: Authenticator, grpc_clients: Mapping[str, Any] | None) -> None:
    """Serve the API until a stop signal arrives or the server fails, then shut everything down."""
    logger = new_logger(config.log.level, config.env)
    db = open_database(config, _SQL_DIR)
    try:
        validator = Validator()
        cache = new_redis(config.redis)
        logger.info(f"redis connected to {config.redis.addr}")

        container = new_container(db.engine, logger, cache, validator, config, grpc_clients)
        server = HttpServer(create_app(container, authenticator), port=config.http.port)

        signals: queue.Queue[str] = queue.Queue()
        previous = _install_signal_handlers(signals)
        try:
            while True:
                try:
                    name = signals.get_nowait()
                except queue.Empty:
                    pass
                else:
                    logger.info("app - Run - signal: " + name)
                    break
                try:
                    error = server.notify().get(timeout=_POLL_SECONDS)
                except queue.Empty:
                    continue
                logger.error(f"app - Run - httpServer.Notify: {error}")
                break
        finally:
            _restore_signal_handlers(previous)

        try:
            server.shutdown()
        except Exception as exc:
            logger.error(f"app - Run - httpServer.Shutdown: {exc}")
    finally:
        try:
            db.close()
        except Exception as exc:
            logger.error(f"app - Run - db.Close: {exc}")
        _close_clients(grpc_clients)

    if config.env != "dev":
        time.sleep(_WAIT_TIME.total_seconds())