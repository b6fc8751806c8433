import pytest

from topup.config import Config, PostgresConfig, load_config

CONFIG_YAML = """\
env: dev
app:
  name: top-up-api
  version: 1.0.0
http:
  port: "8080"
logger:
  log_level: debug
postgres:
  host: localhost
  db_name: topup
  user: user
  ssl_mode: disable
  password: password
  port: 5432
  schema: public
redis:
  addr: localhost:6379
  password: password
  db: 2
jwt:
  secret: secret
kafka:
  broker: localhost:9092
  group_id: topup
  order_group:
    confirm_topic: order-confirm
    group_id: order
grpc:
  port: "50051"
  client:
    auth_url: localhost:50052
    provider_url: localhost:50053
"""


def test_load_config_from_directory(tmp_path):
    (tmp_path / "config.yaml").write_text(CONFIG_YAML, encoding="utf-8")
    cfg = load_config(tmp_path)
    assert cfg.env == "dev"
    assert cfg.app.name == "top-up-api"
    assert cfg.app.version == "1.0.0"
    assert cfg.http.port == "8080"
    assert cfg.log.level == "debug"
    assert cfg.postgres.port == 5432
    assert cfg.postgres.schema == "public"
    assert cfg.redis.addr == "localhost:6379"
    assert cfg.redis.db == 2
    assert cfg.jwt.secret == "secret"
    assert cfg.kafka.brokers == "localhost:9092"
    assert cfg.kafka.order_group.confirm_topic == "order-confirm"
    assert cfg.kafka.order_group.group_id == "order"
    assert cfg.grpc.port == "50051"
    assert cfg.grpc.client.auth == "localhost:50052"
    assert cfg.grpc.client.provider == "localhost:50053"


def test_load_config_from_file(tmp_path):
    target = tmp_path / "other.yaml"
    target.write_text(CONFIG_YAML, encoding="utf-8")
    cfg = load_config(target)
    assert cfg.kafka.group_id == "topup"
    assert cfg.postgres.db_name == "topup"


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_missing_sections_take_zero_values():
    cfg = Config.from_mapping({"env": "PROD"})
    assert cfg.env == "PROD"
    assert cfg.postgres.port == 0
    assert cfg.http.port == ""
    assert cfg.grpc.client.auth == ""


def test_bad_port_raises():
    with pytest.raises(ValueError):
        Config.from_mapping({"postgres": {"port": "not-a-number"}})


def test_section_must_be_mapping():
    with pytest.raises(ValueError):
        Config.from_mapping({"redis": "localhost"})


def test_dsn_format():
    password = "password"
    pg = PostgresConfig(
        host="localhost",
        db_name="topup",
        user="user",
        ssl_mode="disable",
        password=password,
        port=5432,
        schema="public",
    )
    assert pg.dsn() == (
        "host=localhost user=user password=password dbname=topup "
        "port=5432 sslmode=disable search_path=public"
    )