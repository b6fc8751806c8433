from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from topup.config import Config
from topup.database import Database, open_database
from topup.repository import SupplierRepository

SEED = (
    "INSERT INTO supplier (code, name, logo_url, status) "
    "VALUES ('VTL', 'Viettel', 'viettel.png', 'active');"
)


def _engine():
    return create_engine(
        "sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False}
    )


@pytest.fixture
def sql_dir(tmp_path):
    root = tmp_path / "sql"
    (root / "data").mkdir(parents=True)
    (root / "init.sql").write_text("CREATE TABLE IF NOT EXISTS marker (id INTEGER);")
    (root / "data" / "01_supplier.sql").write_text(SEED)
    return root


def _config(env):
    return Config.from_mapping(
        {"env": env, "postgres": {"host": "db.example.com", "db_name": "topup", "port": 5432}}
    )


def test_dev_loads_seed_data_and_runs_init(sql_dir):
    engine = _engine()
    with patch("topup.database.create_engine", return_value=engine):
        db = open_database(_config("dev"), sql_dir)
    suppliers = SupplierRepository(db.engine).get_suppliers()
    assert [s.code for s in suppliers] == ["VTL"]
    assert inspect(db.engine).has_table("marker")


def test_dev_rebuilds_tables_on_each_open(sql_dir):
    engine = _engine()
    with patch("topup.database.create_engine", return_value=engine):
        open_database(_config("dev"), sql_dir)
        db = open_database(_config("dev"), sql_dir)
    assert len(SupplierRepository(db.engine).get_suppliers()) == 1


def test_other_env_skips_seed_data(sql_dir):
    engine = _engine()
    with patch("topup.database.create_engine", return_value=engine):
        db = open_database(_config("PROD"), sql_dir)
    assert SupplierRepository(db.engine).get_suppliers() == []
    assert inspect(db.engine).has_table("supplier")


def test_url_built_from_config(sql_dir):
    engine = _engine()
    with patch("topup.database.create_engine", return_value=engine) as factory:
        db = open_database(_config("PROD"), sql_dir)
    assert db.engine is engine
    url = factory.call_args.args[0]
    assert url.drivername == "postgresql"
    assert url.host == "db.example.com"
    assert url.database == "topup"


def test_missing_init_script_raises(tmp_path):
    engine = _engine()
    with patch("topup.database.create_engine", return_value=engine):
        with pytest.raises(FileNotFoundError):
            open_database(_config("PROD"), tmp_path)


def test_missing_data_dir_in_dev_raises(tmp_path):
    (tmp_path / "init.sql").write_text("SELECT 1;")
    engine = _engine()
    with patch("topup.database.create_engine", return_value=engine):
        with pytest.raises(FileNotFoundError):
            open_database(_config("dev"), tmp_path)


def test_close_disposes_engine():
    class FakeEngine:
        disposed = False

        def dispose(self):
            self.disposed = True

    fake = FakeEngine()
    Database(engine=fake).close()
    assert fake.disposed is True