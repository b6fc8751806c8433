"""Application configuration loaded from a YAML file."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_BLANK = ""
_DEFAULT_FILE_NAME = "config.yaml"


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"config section {key!r} must be a mapping")
    return value


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _number(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"config value {key!r} must be an integer, got {value!r}") from exc


@dataclass
class AppConfig:
    name: str = ""
    version: str = ""


@dataclass
class HttpConfig:
    port: str = ""


@dataclass
class LogConfig:
    level: str = ""


@dataclass
class PostgresConfig:
    host: str = ""
    db_name: str = ""
    user: str = ""
    ssl_mode: str = ""
    password: str = _BLANK
    port: int = 0
    schema: str = ""

    def dsn(self) -> str:
        """Connection string in libpq key/value form."""
        return (
            f"host={self.host} user={self.user} password={self.password} "
            f"dbname={self.db_name} port={self.port:d} sslmode={self.ssl_mode} "
            f"search_path={self.schema}"
        )


@dataclass
class RedisConfig:
    addr: str = ""
    password: str = _BLANK
    db: int = 0


@dataclass
class JwtConfig:
    secret: str = _BLANK


@dataclass
class OrderGroupConfig:
    confirm_topic: str = ""
    group_id: str = ""


@dataclass
class KafkaConfig:
    brokers: str = ""
    group_id: str = ""
    order_group: OrderGroupConfig = field(default_factory=OrderGroupConfig)


@dataclass
class GrpcClientConfig:
    auth: str = ""
    provider: str = ""


@dataclass
class GrpcConfig:
    port: str = ""
    client: GrpcClientConfig = field(default_factory=GrpcClientConfig)


@dataclass
class Config:
    env: str = ""
    app: AppConfig = field(default_factory=AppConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    log: LogConfig = field(default_factory=LogConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    jwt: JwtConfig = field(default_factory=JwtConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    grpc: GrpcConfig = field(default_factory=GrpcConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Config:
        """Build a configuration from parsed YAML; missing keys take zero values."""
        if not isinstance(data, Mapping):
            raise ValueError("configuration must be a mapping")
        app = _section(data, "app")
        http = _section(data, "http")
        log = _section(data, "logger")
        pg = _section(data, "postgres")
        rds = _section(data, "redis")
        jwt = _section(data, "jwt")
        kafka = _section(data, "kafka")
        order_group = _section(kafka, "order_group")
        grpc = _section(data, "grpc")
        client = _section(grpc, "client")
        return cls(
            env=_text(data, "env"),
            app=AppConfig(name=_text(app, "name"), version=_text(app, "version")),
            http=HttpConfig(port=_text(http, "port")),
            log=LogConfig(level=_text(log, "log_level")),
            postgres=PostgresConfig(
                host=_text(pg, "host"),
                db_name=_text(pg, "db_name"),
                user=_text(pg, "user"),
                ssl_mode=_text(pg, "ssl_mode"),
                password=_text(pg, "password"),
                port=_number(pg, "port"),
                schema=_text(pg, "schema"),
            ),
            redis=RedisConfig(
                addr=_text(rds, "addr"),
                password=_text(rds, "password"),
                db=_number(rds, "db"),
            ),
            jwt=JwtConfig(secret=_text(jwt, "secret")),
            kafka=KafkaConfig(
                brokers=_text(kafka, "broker"),
                group_id=_text(kafka, "group_id"),
                order_group=OrderGroupConfig(
                    confirm_topic=_text(order_group, "confirm_topic"),
                    group_id=_text(order_group, "group_id"),
                ),
            ),
            grpc=GrpcConfig(
                port=_text(grpc, "port"),
                client=GrpcClientConfig(
                    auth=_text(client, "auth_url"),
                    provider=_text(client, "provider_url"),
                ),
            ),
        )


def load_config(path: str | Path = "config") -> Config:
    """Read the configuration from a YAML file, or from config.yaml inside a directory."""
    target = Path(path)
    if target.is_dir():
        target = target / _DEFAULT_FILE_NAME
    with target.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    return Config.from_mapping(data or {})