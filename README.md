# topup

An HTTP service for mobile top-up orders. It lists suppliers and their SKUs
(each SKU may carry a percentage or fixed cash back), takes orders, confirms
them, sends confirmed orders to one of several weighted providers, and keeps
a paginated purchase history per user.

Orders in flight live in Redis with a per-order lock (`topup.cache.RedisCache`),
so confirmations and provider status callbacks are handled one at a time.
Status updates are idempotent: the outcome of the first update for an order
is cached for 24 hours and replayed for any repeat.

## Installation

```
pip install .
pip install ".[test]"   # with pytest
```

The database layer uses SQLAlchemy with a `postgresql` URL; install a
PostgreSQL driver that SQLAlchemy supports (for example psycopg2) yourself,
as it is not a declared dependency.

## Configuration

`topup.config.load_config(path)` reads a YAML file, or `config.yaml` inside
`path` when it is a directory (the default is the directory `config`):

```yaml
env: dev
app:
  name: topup
  version: 0.1.0
http:
  port: "8080"
logger:
  log_level: info
postgres:
  host: localhost
  db_name: topup
  user: user
  password: password
  port: 5432
  ssl_mode: disable
  schema: public
redis:
  addr: localhost:6379
  password: password
  db: 0
jwt:
  secret: secret
kafka:
  broker: localhost:9092
  group_id: topup
  order_group:
    confirm_topic: order-confirm
    group_id: topup-order
grpc:
  port: "9090"
  client:
    auth_url: localhost:9091
    provider_url: localhost:9092
```

`Config.from_mapping(data)` builds the same object from an already parsed
mapping; missing keys take empty or zero values. `PostgresConfig.dsn()`
gives the connection string in key/value form.

`topup.database.open_database(config, sql_dir)` connects, runs
`<sql_dir>/init.sql` and creates the tables. With `env: dev` the tables are
dropped and recreated first, and every file in `<sql_dir>/data` is run, in
name order, as seed data. `Database.close()` disposes of the engine.

## Running the service

```python
from topup.config import load_config
from topup.app import run

config = load_config("config/config.yaml")
run(config, authenticator, grpc_clients)
```

- `authenticator` is a callable `authenticator(authorization_header, user_id)`
  that raises when the caller may not act for that user. It guards the
  purchase-history and order-creation routes.
- `grpc_clients` maps a provider code to a client object with a
  `process_order(request)` method; it is used for providers of type `grpc`.
  Clients with a `close()` method are closed on shutdown.

`run` opens the database (SQL files from `./sql`), connects to Redis, serves
HTTP on the configured port with `topup.httpserver.HttpServer`, and stops on
SIGINT/SIGTERM or a server failure. It then shuts the server down, closes
the database and the clients, and, unless `env` is `dev`, waits two minutes
before returning.

Logging goes through `topup.logger.new_logger(level, env)`: JSON lines, to
`.log/server.log` when `env` is `PROD` or `dev`, to standard output otherwise.

To embed the routes in your own server, build the dependencies with
`topup.services.new_container(engine, logger, cache, validator, config, grpc_clients)`
and pass the container to `topup.routes.create_app(container, authenticator)`,
which returns a Flask application.

## Endpoints

All API routes are under `/v1/api`.

| Method | Path | Purpose |
| ------ | ---- | ------- |
| GET | `/health` | Liveness check |
| GET | `/v1/api/supplier/` | All suppliers |
| GET | `/v1/api/sku/` | SKUs grouped by supplier |
| GET | `/v1/api/sku/<supplier_code>` | SKUs of one supplier |
| GET | `/v1/api/purchase-history/<user_id>?page=1&pageSize=10` | Paginated history (authenticated) |
| POST | `/v1/api/order/create` | Create an order (authenticated) |
| POST | `/v1/api/order/confirm` | Confirm or fail a pending order |
| PATCH | `/v1/api/order/update-status` | Provider callback with the final status |

Responses share one envelope: `code`, `message`, `error` and `data`;
paginated responses add `pagination` with `total_count`, `total_page` and
`current_page`. The confirm route validates that `status` is one of
`pending`, `confirm`, `success` or `failed` with `topup.validator.Validator`.

## Cash back

```python
from topup.schema import cash_back_from_dict

rule = cash_back_from_dict({"type": "percentage", "code": "CB001", "value": 5})
rule.calculate_cash_back(10000)   # 500

rule = cash_back_from_dict({"type": "fixed", "code": "CB002", "value": 1000})
rule.calculate_cash_back(20000)   # 1000
```

Any other `type` raises `ValueError("unknown cashback type")`.

## Order life cycle

`topup.order_service.OrderService`:

1. `create_order` looks up the SKU, assigns an order id, computes the cash
   back, draws a random weight for provider routing, caches the order as
   `pending` for 30 minutes and posts it to the payment service at
   `http://localhost:8081/v1/api/order/create` in the background.
2. `confirm_order` checks the request against the cached order, records the
   purchase, and on `confirm` hands the order, in the background, to the
   first provider whose cumulative weight covers the drawn value.
3. `update_order_status` accepts the provider's final status for a confirmed
   order; on `failed` it sends a PATCH to
   `http://localhost:8081/v1/api/order/update`.

Refusals raise `OrderServiceError` with messages such as `order mismatch`,
`order is pending` or `order already confirmed or failed`.

## What this package does not do

- It has no command-line entry point; start it from Python with `run`.
- It does not consume Kafka messages; the `kafka` configuration section is
  read but unused.
- It has no RPC server and no RPC or authentication clients of its own:
  authentication and provider RPC clients are supplied by the caller.
- It serves no API documentation pages.