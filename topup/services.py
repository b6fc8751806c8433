"""Read-side services for purchases, SKUs and suppliers, and the service container."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from topup import mapper
from topup.config import Config
from topup.models import PurchaseHistory
from topup.order_service import OrderService
from topup.repository import (
    ProviderRepository,
    PurchaseHistoryRepository,
    SkuRepository,
    SupplierRepository,
)
from topup.schema import PaginationResponse, SkuResponse, SkusGroupBySupplier, SupplierResponse


class PurchaseHistoryService:
    """Purchase history lookups."""

    def __init__(self, repo: Any) -> None:
        self._repo = repo

    def get_purchase_histories_by_user_id_paginated(
        self, user_id: int, page: int, page_size: int
    ) -> PaginationResponse:
        """One page of a user's purchases wrapped with pagination details."""
        if page_size < 1:
            raise ValueError("page size must be positive")
        histories, total = self._repo.get_purchase_histories_by_user_id_paginated(user_id, page, page_size)
        data = [mapper.purchase_history_response_from_model(history) for history in histories]
        total = int(total)
        total_page = (total + page_size - 1) // page_size
        return mapper.pagination_response_from_model(total, total_page, page, data)

    def get_purchase_history_by_id(self, id: int) -> PurchaseHistory:
        return self._repo.get_purchase_history_by_id(id)


class SkuService:
    """SKU listings."""

    def __init__(self, repo: Any) -> None:
        self._repo = repo

    def get_skus_by_supplier_code(self, supplier_code: str) -> list[SkuResponse] | None:
        skus = self._repo.get_skus_by_supplier_code(supplier_code)
        if skus is None:
            return None
        return [mapper.sku_response_from_model(sku) for sku in skus]

    def get_skus_group_by_supplier(self) -> list[SkusGroupBySupplier] | None:
        """SKUs grouped by supplier; None when there are no SKUs at all."""
        skus = self._repo.get_skus()
        if skus is None:
            return None
        return mapper.skus_group_by_supplier_from_model(skus)


class SupplierService:
    """Supplier listings."""

    def __init__(self, repo: Any) -> None:
        self._repo = repo

    def get_suppliers(self) -> list[SupplierResponse]:
        return [mapper.supplier_response_from_model(supplier) for supplier in self._repo.get_suppliers()]


@dataclass
class Container:
    """Every shared dependency and service of the application."""

    db: Any
    cache: Any
    logger: Any
    validator: Any
    supplier_service: SupplierService
    sku_service: SkuService
    purchase_history_service: PurchaseHistoryService
    order_service: OrderService


def new_container(
    engine: Any,
    logger: Any,
    cache: Any,
    validator: Any,
    config: Config | None,
    grpc_clients: Mapping[str, Any] | None,
) -> Container:
    """Build the repositories and services on top of a database engine."""
    supplier_repository = SupplierRepository(engine)
    sku_repository = SkuRepository(engine)
    purchase_history_repository = PurchaseHistoryRepository(engine)
    provider_repository = ProviderRepository(engine)

    return Container(
        db=engine,
        cache=cache,
        logger=logger,
        validator=validator,
        supplier_service=SupplierService(supplier_repository),
        sku_service=SkuService(sku_repository),
        purchase_history_service=PurchaseHistoryService(purchase_history_repository),
        order_service=OrderService(
            sku_repository, purchase_history_repository, cache, grpc_clients, provider_repository
        ),
    )