"""Database connection, schema setup and seed data loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine

from topup.config import Config, PostgresConfig
from topup.models import Base

_log = logging.getLogger(__name__)

_INIT_FILE = "init.sql"
_DATA_DIR = "data"
_DEV_ENV = "dev"


def _url(pg: PostgresConfig) -> URL:
    query: dict[str, str] = {}
    if pg.ssl_mode:
        query["sslmode"] = pg.ssl_mode
    if pg.schema:
        query["options"] = f"-csearch_path={pg.schema}"
    return URL.create(
        "postgresql",
        username=pg.user or None,
        password=pg.password or None,
        host=pg.host or None,
        port=pg.port or None,
        database=pg.db_name or None,
        query=query,
    )


def _execute_script(engine: Engine, script: str) -> None:
    """Run a whole SQL script; failures are logged and otherwise ignored."""
    raw = engine.raw_connection()
    try:
        driver = raw.driver_connection
        if hasattr(driver, "executescript"):
            driver.executescript(script)
        else:
            cursor = raw.cursor()
            try:
                cursor.execute(script)
            finally:
                cursor.close()
        raw.commit()
    except Exception:
        _log.warning("sql script failed", exc_info=True)
        try:
            raw.rollback()
        except Exception:
            _log.debug("rollback failed", exc_info=True)
    finally:
        raw.close()


@dataclass
class Database:
    """An open database engine."""

    engine: Any

    def close(self) -> None:
        self.engine.dispose()


def open_database(config: Config, sql_dir: str | Path = "sql") -> Database:
    """Connect, run init.sql, migrate the models and, in dev, rebuild the tables and load seed data."""
    engine = create_engine(_url(config.postgres))
    root = Path(sql_dir)
    dev = config.env == _DEV_ENV
    try:
        init_script = (root / _INIT_FILE).read_text(encoding="utf-8")
        _execute_script(engine, init_script)

        if dev:
            Base.metadata.drop_all(engine)
        Base.metadata.create_all(engine)

        if dev:
            for path in sorted((root / _DATA_DIR).iterdir(), key=lambda item: item.name):
                _execute_script(engine, path.read_text(encoding="utf-8"))
    except BaseException:
        engine.dispose()
        raise
    return Database(engine=engine)