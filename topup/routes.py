"""HTTP routes for suppliers, SKUs, purchase history and orders."""

from __future__ import annotations

import dataclasses
import enum
import re
from collections.abc import Callable
from typing import Any

from flask import Blueprint, Flask, jsonify, request

from topup import mapper
from topup.schema import OrderConfirmRequest, OrderRequest, OrderUpdateRequest

_API_PREFIX = "/v1/api"
_SIGNED_INT = re.compile(r"^[+-]?[0-9]+$")
_UNSIGNED_INT = re.compile(r"^[0-9]+$")
_UINT64_MAX = 2**64 - 1

Authenticator = Callable[[str, int], Any]


class _BindError(ValueError):
    pass


def _jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _jsonable(dataclasses.asdict(value))
    return value


def _envelope(response: Any) -> dict[str, Any]:
    return {
        "code": response.code,
        "message": response.message,
        "error": response.error or "",
        "data": _jsonable(response.data),
    }


def _pagination_envelope(response: Any) -> dict[str, Any]:
    return {
        "code": response.code,
        "message": response.message,
        "error": response.error or "",
        "pagination": _jsonable(response.pagination),
        "data": _jsonable(response.data),
    }


def _error(code: int, message: str, error: str):
    return jsonify(_envelope(mapper.error_response(code, message, error))), code


def _success(data: Any):
    return jsonify(_envelope(mapper.success_response(data))), 200


def _bind(cls: Any) -> Any:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise _BindError("request body must be a JSON object")
    try:
        return cls.from_dict(payload)
    except (KeyError, TypeError, ValueError) as exc:
        raise _BindError(str(exc)) from exc


def order_blueprint(service: Any, authenticator: Authenticator, logger: Any, validator: Any) -> Blueprint:
    """Routes under /order: create, confirm and update-status."""
    bp = Blueprint("order", __name__, url_prefix="/order")

    @bp.post("/create")
    def create_order():
        try:
            order_request = _bind(OrderRequest)
        except _BindError as exc:
            logger.error("failed to bind order request: %s", exc)
            return _error(400, "Bad Request", str(exc))

        token = request.headers.get("Authorization", "")
        try:
            authenticator(token, order_request.user_id)
        except Exception as exc:
            logger.error("%s", exc)
            return _error(401, "Unauthorized", str(exc))

        try:
            order_response = service.create_order(order_request)
        except Exception as exc:
            logger.error("failed to create order: %s", exc)
            return _error(500, "Internal Server Error", str(exc))
        return _success(order_response)

    @bp.post("/confirm")
    def confirm_order():
        try:
            confirm_request = _bind(OrderConfirmRequest)
        except _BindError as exc:
            logger.error("failed to bind order confirm request: %s", exc)
            return _error(400, "Bad Request", str(exc))

        try:
            validator.validate(confirm_request)
        except Exception as exc:
            logger.error("validation failed for order confirm request: %s", exc)
            return _error(400, "Validation Error", str(exc))

        try:
            service.confirm_order(confirm_request)
        except Exception as exc:
            logger.error("failed to confirm order: %s", exc)
            return _error(500, "Internal Server Error", str(exc))
        return _success(None)

    @bp.patch("/update-status")
    def update_order_status():
        try:
            update_request = _bind(OrderUpdateRequest)
        except _BindError as exc:
            logger.error("failed to bind order update request: %s", exc)
            return _error(400, "Bad Request", str(exc))

        try:
            service.update_order_status(update_request)
        except Exception as exc:
            logger.error("failed to update order status: %s", exc)
            return _error(500, "Internal Server Error", str(exc))
        return _success(None)

    return bp


def _parse_uint(raw: str) -> int:
    if not _UNSIGNED_INT.match(raw):
        raise ValueError(f"invalid user id {raw!r}: invalid syntax")
    value = int(raw)
    if value > _UINT64_MAX:
        raise ValueError(f"invalid user id {raw!r}: value out of range")
    return value


def _parse_int(raw: str) -> int | None:
    if not _SIGNED_INT.match(raw):
        return None
    return int(raw)


def purchase_history_blueprint(service: Any, authenticator: Authenticator, logger: Any) -> Blueprint:
    """Route GET /purchase-history/<user_id> with page and pageSize query parameters."""
    bp = Blueprint("purchase_history", __name__)

    @bp.get("/purchase-history/<user_id>")
    def get_purchase_history(user_id: str):
        token = request.headers.get("Authorization", "")
        try:
            parsed_user_id = _parse_uint(user_id)
        except ValueError as exc:
            logger.error("%s", exc)
            return _error(400, "Invalid request", str(exc))

        try:
            authenticator(token, parsed_user_id)
        except Exception as exc:
            logger.error("%s", exc)
            return _error(401, "Unauthorized", str(exc))

        page = _parse_int(request.args.get("page", "1"))
        if page is None or page < 1:
            logger.error("invalid page number")
            return _error(400, "Invalid page number", "")
        page_size = _parse_int(request.args.get("pageSize", "10"))
        if page_size is None or page_size < 1:
            logger.error("invalid page size")
            return _error(400, "Invalid page size", "")

        try:
            paginated = service.get_purchase_histories_by_user_id_paginated(parsed_user_id, page, page_size)
        except Exception as exc:
            logger.error("%s", exc)
            return _error(500, "Internal Server Error", str(exc))
        return jsonify(_pagination_envelope(paginated)), 200

    return bp


def sku_blueprint(service: Any, logger: Any) -> Blueprint:
    """Routes under /sku: all SKUs grouped by supplier, or the SKUs of one supplier."""
    bp = Blueprint("sku", __name__, url_prefix="/sku")

    @bp.get("/<supplier_code>")
    def get_skus_by_supplier_code(supplier_code: str):
        try:
            skus = service.get_skus_by_supplier_code(supplier_code)
        except Exception as exc:
            logger.error("error getting card details: %s", exc)
            return jsonify({"error": str(exc)}), 500
        return _success(skus)

    @bp.get("/")
    def get_skus_group_by_supplier():
        try:
            groups = service.get_skus_group_by_supplier()
        except Exception as exc:
            logger.error("error getting card details grouped by supplier: %s", exc)
            return jsonify({"error": str(exc)}), 500
        return _success(groups)

    return bp


def supplier_blueprint(service: Any, logger: Any) -> Blueprint:
    """Route GET /supplier/."""
    bp = Blueprint("supplier", __name__, url_prefix="/supplier")

    @bp.get("/")
    def get_suppliers():
        try:
            suppliers = service.get_suppliers()
        except Exception as exc:
            logger.error("error getting suppliers: %s", exc)
            return _error(500, "Internal server error", str(exc))
        return _success(suppliers)

    return bp


def create_app(container: Any, authenticator: Authenticator) -> Flask:
    """The web application: a health check and the API under /v1/api.

    The authenticator is called with the Authorization header and the user id,
    and raises when the caller may not act for that user.
    """
    app = Flask(__name__)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "message": "Service is healthy"}), 200

    api = Blueprint("api", __name__, url_prefix=_API_PREFIX)
    api.register_blueprint(supplier_blueprint(container.supplier_service, container.logger))
    api.register_blueprint(sku_blueprint(container.sku_service, container.logger))
    api.register_blueprint(
        purchase_history_blueprint(container.purchase_history_service, authenticator, container.logger)
    )
    api.register_blueprint(
        order_blueprint(container.order_service, authenticator, container.logger, container.validator)
    )
    app.register_blueprint(api)
    return app