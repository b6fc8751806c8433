"""Order lifecycle: creation, confirmation, provider dispatch and status updates."""

from __future__ import annotations

import contextlib
import enum
import json
import logging
import random
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Union

import requests

from topup import mapper
from topup.models import Provider, PurchaseHistoryStatus
from topup.repository import RecordNotFoundError
from topup.schema import (
    OrderConfirmRequest,
    OrderIdempotencyResponse,
    OrderRequest,
    OrderResponse,
    OrderUpdateRequest,
)
from topup.util import generate_order_id, send_post_request

_log = logging.getLogger(__name__)

_LOCK_TIMEOUT = timedelta(minutes=5)
_ORDER_CACHE_TIME = timedelta(minutes=30)
_IDEMPOTENCY_CACHE_TIME = timedelta(hours=24)
_ORDER_REQUEST_KEY_PREFIX = "order_id"
_PROVIDER_REQUEST_KEY_PREFIX = "order_req_id"
_PAYMENT_CREATE_URL = "http://localhost:8081/v1/api/order/create"
_PAYMENT_UPDATE_URL = "http://localhost:8081/v1/api/order/update"
_CALLBACK_URL = "http://localhost:8080/v1/api/order/update-status"


class OrderServiceError(Exception):
    """An order operation was refused or could not be completed."""


@dataclass
class HttpProviderClient:
    """Provider reached by posting the order as JSON."""

    url: str
    callbacks: str
    cumulative_weight: int

    def send_request(self, order: OrderResponse) -> None:
        request = mapper.order_provider_request_from_order_response(order, self.callbacks)
        payload = json.dumps(request.to_dict(), separators=(",", ":")).encode("utf-8")
        send_post_request(self.url, payload)


@dataclass
class GrpcProviderClient:
    """Provider reached through an RPC client exposing process_order(request)."""

    client: Any
    callbacks: str
    cumulative_weight: int

    def send_request(self, order: OrderResponse) -> None:
        if self.client is None:
            raise OrderServiceError("no RPC client configured for provider")
        self.client.process_order(mapper.order_process_request_from_order(order, self.callbacks))


ProviderClient = Union[HttpProviderClient, GrpcProviderClient]


@dataclass
class ProviderServiceList:
    """The providers serving one supplier, each with its running weight total."""

    total_weight: int = 0
    provider_clients: list[ProviderClient] = field(default_factory=list)


def get_cache_key(prefix: str, order_id: str) -> str:
    return prefix + order_id


def get_random_weight(total_weight: int) -> int:
    """A random weight in [0, total_weight), or 0 when there is no weight."""
    if total_weight <= 0:
        return 0
    return random.randrange(total_weight)


def get_idempotency_response_value(cached_response: str | bytes) -> None:
    """Replay a recorded outcome: return on success, raise its error otherwise."""
    try:
        response = OrderIdempotencyResponse.from_json(cached_response)
    except (ValueError, TypeError) as exc:
        raise OrderServiceError(f"failed to unmarshal idempotency response: {exc}") from exc
    if response.success:
        return None
    raise OrderServiceError(response.error_message)


def send_failed_order(url: str, request: OrderUpdateRequest) -> None:
    """Tell the payment side that an order failed; the outcome is ignored."""
    status = request.status.value if isinstance(request.status, enum.Enum) else request.status
    payload = json.dumps({"order_id": request.order_id, "status": status}, separators=(",", ":"))
    try:
        requests.patch(url, data=payload, headers={"Content-Type": "application/json"})
    except requests.RequestException:
        pass


def create_provider_client(
    provider: Provider, grpc_clients: Mapping[str, Any] | None, cumulative_weight: int
) -> ProviderClient:
    if provider.type == "http":
        return HttpProviderClient(
            url=provider.source or "", callbacks=_CALLBACK_URL, cumulative_weight=cumulative_weight
        )
    if provider.type == "grpc":
        client = (grpc_clients or {}).get(provider.code)
        return GrpcProviderClient(client=client, callbacks=_CALLBACK_URL, cumulative_weight=cumulative_weight)
    raise ValueError(f"unsupported provider type: {provider.type}")


def build_provider_clients(
    providers: Iterable[Provider], grpc_clients: Mapping[str, Any] | None
) -> dict[str, ProviderServiceList]:
    """Group provider clients by supplier code, accumulating weights in order."""
    by_supplier: dict[str, ProviderServiceList] = {}
    for provider in providers:
        for supplier in provider.suppliers:
            entry = by_supplier.setdefault(supplier.code, ProviderServiceList())
            cumulative = entry.total_weight + (provider.weight or 0)
            entry.provider_clients.append(create_provider_client(provider, grpc_clients, cumulative))
            entry.total_weight = cumulative
    return by_supplier


def _run_in_background(task: Callable[..., Any], *args: Any) -> None:
    def runner() -> None:
        try:
            task(*args)
        except Exception:
            _log.exception("background task failed")

    threading.Thread(target=runner, daemon=True).start()


class OrderService:
    """Creates orders, confirms them and applies provider status updates."""

    def __init__(
        self,
        sku_repo: Any,
        purchase_history_repo: Any,
        cache: Any,
        grpc_clients: Mapping[str, Any] | None,
        provider_repo: Any,
        background: Callable[..., None] | None = None,
    ) -> None:
        self._sku_repo = sku_repo
        self._purchase_history_repo = purchase_history_repo
        self._cache = cache
        self._background = background or _run_in_background
        try:
            providers = provider_repo.get_providers_with_suppliers()
        except Exception as exc:
            raise OrderServiceError(f"failed to load providers: {exc}") from exc
        self.provider_clients = build_provider_clients(providers, grpc_clients)

    def create_order(self, order: OrderRequest) -> OrderResponse:
        try:
            sku = self._sku_repo.get_sku_by_id(order.sku_id)
        except RecordNotFoundError as exc:
            raise OrderServiceError("sku not found") from exc

        order_id = generate_order_id()
        response = mapper.order_response_from_order_request(order, sku, order_id)
        entry = self.provider_clients.get(response.sku.supplier.code)
        response.random_provider_weight = get_random_weight(entry.total_weight if entry else 0)

        payload = response.to_json().encode("utf-8")
        cache_key = get_cache_key(_ORDER_REQUEST_KEY_PREFIX, str(order_id))
        self._cache.set(cache_key, payload, _ORDER_CACHE_TIME)

        self._background(send_post_request, _PAYMENT_CREATE_URL, payload)
        return response

    def confirm_order(self, request: OrderConfirmRequest) -> None:
        order_id = str(request.order_id)
        self._cache.try_acquire_lock(order_id, _LOCK_TIMEOUT)
        try:
            cache_key = get_cache_key(_ORDER_REQUEST_KEY_PREFIX, order_id)
            order = self._get_cached_order(cache_key)
            if not order.compare_with_order_confirm_request(request):
                raise OrderServiceError("order mismatch")
            if request.status == PurchaseHistoryStatus.PENDING:
                raise OrderServiceError("order is pending")
            if order.status != PurchaseHistoryStatus.PENDING:
                raise OrderServiceError("order already confirmed or failed")

            history = mapper.purchase_history_from_order_confirm_request(request)
            self._purchase_history_repo.create_purchase_history(history)

            order.status = request.status
            self._update_cached_order(cache_key, order)

            if request.status == PurchaseHistoryStatus.CONFIRM:
                self._background(self._send_request_to_provider, order)
        finally:
            self._cache.release_lock(order_id)

    def update_order_status(self, request: OrderUpdateRequest) -> None:
        order_id = str(request.order_id)
        idempotency_key = get_cache_key(_PROVIDER_REQUEST_KEY_PREFIX, order_id)
        try:
            cached = self._cache.get(idempotency_key)
        except Exception:
            cached = None
        if cached:
            get_idempotency_response_value(cached)
            return

        self._cache.try_acquire_lock(order_id, _LOCK_TIMEOUT)
        try:
            order_key = get_cache_key(_ORDER_REQUEST_KEY_PREFIX, order_id)
            try:
                order = self._get_cached_order(order_key)
                if order.status != PurchaseHistoryStatus.CONFIRM:
                    raise OrderServiceError("order is not confirmed or failed")
                self._purchase_history_repo.update_purchase_history_status_by_order_id(
                    request.order_id, request.status
                )
                order.status = request.status
                self._update_cached_order(order_key, order)
            except Exception as exc:
                self._cache_idempotency_response(idempotency_key, False, str(exc))
                raise

            if request.status == PurchaseHistoryStatus.FAILED:
                self._background(send_failed_order, _PAYMENT_UPDATE_URL, request)

            self._cache_idempotency_response(idempotency_key, True, "")
        finally:
            self._cache.release_lock(order_id)

    def _get_cached_order(self, cache_key: str) -> OrderResponse:
        try:
            text = self._cache.get(cache_key)
        except Exception as exc:
            raise OrderServiceError("order not found or expired") from exc
        try:
            return OrderResponse.from_json(text)
        except (ValueError, TypeError) as exc:
            raise OrderServiceError(f"failed to unmarshal order: {exc}") from exc

    def _update_cached_order(self, cache_key: str, order: OrderResponse) -> None:
        self._cache.set(cache_key, order.to_json().encode("utf-8"), _ORDER_CACHE_TIME)

    def _cache_idempotency_response(self, key: str, success: bool, error_message: str) -> None:
        response = OrderIdempotencyResponse(
            success=success, error_message=error_message, timestamp=int(time.time())
        )
        with contextlib.suppress(Exception):
            self._cache.set(key, response.to_json().encode("utf-8"), _IDEMPOTENCY_CACHE_TIME)

    def _send_request_to_provider(self, order: OrderResponse) -> None:
        entry = self.provider_clients.get(order.sku.supplier.code)
        for client in entry.provider_clients if entry else ():
            if order.random_provider_weight <= client.cumulative_weight:
                client.send_request(order)
                return
        raise OrderServiceError("can't find suitable provider")