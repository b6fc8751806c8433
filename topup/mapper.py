"""Conversions between database models, request/response shapes and RPC messages."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import Any

from topup.models import (
    CashBack,
    CashBackType,
    PurchaseHistory,
    PurchaseHistoryStatus,
    Sku,
    Supplier,
)
from topup.schema import (
    CashBackFixed,
    CashBackPercentage,
    OrderConfirmRequest,
    OrderProcessRequest,
    OrderProviderRequest,
    OrderRequest,
    OrderResponse,
    Pagination,
    PaginationResponse,
    PurchaseHistoryResponse,
    Response,
    SkuMiniatureResponse,
    SkuResponse,
    SkusGroupBySupplier,
    SupplierInfo,
    SupplierResponse,
)

_SUCCESS_CODE = 200
_SUCCESS_MESSAGE = "success"


def _status_text(status: Any) -> str:
    if isinstance(status, enum.Enum):
        return str(status.value)
    return "" if status is None else str(status)


def _as_status(status: Any) -> PurchaseHistoryStatus | str:
    if isinstance(status, PurchaseHistoryStatus):
        return status
    try:
        return PurchaseHistoryStatus(status)
    except ValueError:
        return status


def cash_back_from_model(cash_back: CashBack | None) -> CashBackPercentage | CashBackFixed:
    """Percentage cash back for percentage rows, fixed cash back for everything else."""
    if cash_back is None:
        return CashBackFixed(code="", value=0, type=CashBackType.FIXED)
    if cash_back.type == CashBackType.PERCENTAGE:
        return CashBackPercentage(
            code=cash_back.code or "", value=cash_back.value or 0, type=CashBackType.PERCENTAGE
        )
    return CashBackFixed(code=cash_back.code or "", value=cash_back.value or 0, type=CashBackType.FIXED)


def _supplier_info(supplier: Supplier | None) -> SupplierInfo:
    if supplier is None:
        return SupplierInfo()
    return SupplierInfo(code=supplier.code or "", name=supplier.name or "")


def sku_response_from_model(sku: Sku) -> SkuResponse:
    return SkuResponse(
        id=sku.id or 0,
        price=sku.price or 0,
        cash_back=cash_back_from_model(sku.cash_back),
        supplier=_supplier_info(sku.supplier),
    )


def skus_group_by_supplier_from_model(skus: Iterable[Sku]) -> list[SkusGroupBySupplier] | None:
    """Group SKUs under their supplier, keeping first-seen order; None when there are none."""
    groups: dict[str, SkusGroupBySupplier] = {}
    for sku in skus:
        supplier = sku.supplier
        code = supplier.code if supplier is not None else ""
        group = groups.get(code)
        if group is None:
            group = SkusGroupBySupplier(
                supplier_code=code,
                supplier_name=supplier.name if supplier is not None else "",
                supplier_logo_url=supplier.logo_url if supplier is not None else "",
            )
            groups[code] = group
        group.skus.append(
            SkuMiniatureResponse(
                id=sku.id or 0, price=sku.price or 0, cash_back=cash_back_from_model(sku.cash_back)
            )
        )
    if not groups:
        return None
    return list(groups.values())


def supplier_response_from_model(supplier: Supplier) -> SupplierResponse:
    return SupplierResponse(
        code=supplier.code,
        name=supplier.name,
        logo=supplier.logo_url,
        status=supplier.status,
    )


def purchase_history_response_from_model(purchase_history: PurchaseHistory) -> PurchaseHistoryResponse:
    sku = purchase_history.sku
    sku_response = (
        sku_response_from_model(sku) if sku is not None else SkuResponse(cash_back=cash_back_from_model(None))
    )
    return PurchaseHistoryResponse(
        order_id=purchase_history.order_id,
        user_id=purchase_history.user_id,
        sku_id=purchase_history.sku_id,
        total_price=purchase_history.total_price,
        phone_number=purchase_history.phone_number,
        status=_status_text(purchase_history.status),
        cash_back_value=purchase_history.cash_back_value or 0,
        sku=sku_response,
    )


def purchase_history_from_order_confirm_request(request: OrderConfirmRequest) -> PurchaseHistory:
    return PurchaseHistory(
        user_id=request.user_id,
        order_id=request.order_id,
        sku_id=request.sku_id,
        phone_number=request.phone_number,
        total_price=request.total_price,
        status=_as_status(request.status),
        cash_back_value=request.cash_back_value,
    )


def order_response_from_order_request(order_request: OrderRequest, sku: Sku, order_id: int) -> OrderResponse:
    """A new pending order for the given SKU, with its cash back worked out."""
    sku_response = sku_response_from_model(sku)
    return OrderResponse(
        order_id=order_id,
        user_id=order_request.user_id,
        sku=sku_response,
        total_price=sku_response.price,
        status=PurchaseHistoryStatus.PENDING,
        phone_number=order_request.phone_number,
        cash_back_value=sku_response.cash_back.calculate_cash_back(sku.price or 0),
    )


def order_provider_request_from_order_response(
    order_response: OrderResponse, callback_url: str
) -> OrderProviderRequest:
    return OrderProviderRequest(
        order_id=order_response.order_id,
        phone_number=order_response.phone_number,
        total_price=order_response.total_price,
        price=order_response.sku.price,
        callback_url=callback_url,
    )


def order_process_request_from_order(order: OrderResponse, callback_url: str) -> OrderProcessRequest:
    request = order_provider_request_from_order_response(order, callback_url)
    return OrderProcessRequest(
        order_id=request.order_id,
        phone_number=request.phone_number,
        total_price=request.total_price,
        price=request.price,
        call_back_url=request.callback_url,
    )


def pagination_response_from_model(
    total_count: int, total_page: int, current_page: int, data: Any
) -> PaginationResponse:
    return PaginationResponse(
        code=_SUCCESS_CODE,
        message=_SUCCESS_MESSAGE,
        data=data,
        pagination=Pagination(total_count=total_count, total_page=total_page, current_page=current_page),
    )


def success_response(data: Any) -> Response:
    return Response(code=_SUCCESS_CODE, message=_SUCCESS_MESSAGE, data=data)


def error_response(code: int, message: str, error: str) -> Response:
    return Response(code=code, message=message, error=error)