"""Request and response shapes exchanged with clients and the cache."""

from __future__ import annotations

import enum
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from topup.models import CashBackType, PurchaseHistoryStatus, SupplierStatus


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    return value


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a JSON object")
    return data


def _read_int(data: Mapping[str, Any], key: str, *, unsigned: bool = False) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r} must be an integer")
    if unsigned and value < 0:
        raise ValueError(f"field {key!r} must not be negative")
    return value


def _read_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _read_status(data: Mapping[str, Any], key: str) -> PurchaseHistoryStatus | str:
    text = _read_str(data, key)
    try:
        return PurchaseHistoryStatus(text)
    except ValueError:
        return text


def _load_json(text: str | bytes) -> Mapping[str, Any]:
    return _require_mapping(json.loads(text), "document")


def _dump_json(data: Mapping[str, Any]) -> str:
    return json.dumps(data, separators=(",", ":"))


@dataclass
class _CashBack:
    code: str = ""
    value: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"type": _plain(self.type), "code": self.code, "value": self.value}

    def calculate_cash_back(self, value: int) -> int:
        raise NotImplementedError


@dataclass
class CashBackPercentage(_CashBack):
    type: CashBackType = CashBackType.PERCENTAGE

    def calculate_cash_back(self, value: int) -> int:
        """A percentage of the price, truncated toward zero."""
        return int(float(value) * float(self.value) / 100)

    def to_dict(self) -> dict[str, Any]:
        return super().to_dict()


@dataclass
class CashBackFixed(_CashBack):
    type: CashBackType = CashBackType.FIXED

    def calculate_cash_back(self, value: int) -> int:
        """A fixed amount, whatever the price."""
        return self.value

    def to_dict(self) -> dict[str, Any]:
        return super().to_dict()


def cash_back_from_dict(data: Any) -> CashBackPercentage | CashBackFixed:
    """Decode a cash-back object, choosing its kind from the "type" field."""
    if data is None:
        raise ValueError("unknown cashback type")
    data = _require_mapping(data, "cash_back")
    kind = data.get("type")
    if kind == CashBackType.PERCENTAGE.value:
        return CashBackPercentage(
            code=_read_str(data, "code"), value=_read_int(data, "value"), type=CashBackType.PERCENTAGE
        )
    if kind == CashBackType.FIXED.value:
        return CashBackFixed(
            code=_read_str(data, "code"), value=_read_int(data, "value"), type=CashBackType.FIXED
        )
    raise ValueError("unknown cashback type")


@dataclass
class SupplierInfo:
    code: str = ""
    name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "name": self.name}


@dataclass
class SkuResponse:
    id: int = 0
    price: int = 0
    cash_back: _CashBack | None = None
    supplier: SupplierInfo = field(default_factory=SupplierInfo)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "price": self.price,
            "cash_back": None if self.cash_back is None else self.cash_back.to_dict(),
            "supplier": self.supplier.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> SkuResponse:
        data = _require_mapping(data, "sku")
        sku_id = _read_int(data, "id", unsigned=True)
        price = _read_int(data, "price")
        supplier_data = data.get("supplier")
        if supplier_data is None:
            supplier = SupplierInfo()
        else:
            supplier_data = _require_mapping(supplier_data, "supplier")
            supplier = SupplierInfo(code=_read_str(supplier_data, "code"), name=_read_str(supplier_data, "name"))
        return cls(id=sku_id, price=price, cash_back=cash_back_from_dict(data.get("cash_back")), supplier=supplier)


@dataclass
class SkuMiniatureResponse:
    id: int = 0
    price: int = 0
    cash_back: _CashBack | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "price": self.price,
            "cashback": None if self.cash_back is None else self.cash_back.to_dict(),
        }


@dataclass
class SkusGroupBySupplier:
    supplier_code: str = ""
    supplier_name: str = ""
    supplier_logo_url: str = ""
    skus: list[SkuMiniatureResponse] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "supplier_code": self.supplier_code,
            "supplier_name": self.supplier_name,
            "supplier_logo_url": self.supplier_logo_url,
            "sku": [sku.to_dict() for sku in self.skus],
        }


@dataclass
class OrderConfirmRequest:
    order_id: int = 0
    user_id: int = 0
    sku_id: int = 0
    total_price: int = 0
    status: PurchaseHistoryStatus | str = ""
    phone_number: str = ""
    cash_back_value: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> OrderConfirmRequest:
        data = _require_mapping(data, "order confirm request")
        return cls(
            order_id=_read_int(data, "order_id", unsigned=True),
            user_id=_read_int(data, "user_id", unsigned=True),
            sku_id=_read_int(data, "sku_id", unsigned=True),
            total_price=_read_int(data, "total_price"),
            status=_read_status(data, "status"),
            phone_number=_read_str(data, "phone_number"),
            cash_back_value=_read_int(data, "cash_back_value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "user_id": self.user_id,
            "sku_id": self.sku_id,
            "total_price": self.total_price,
            "status": _plain(self.status),
            "phone_number": self.phone_number,
            "cash_back_value": self.cash_back_value,
        }


@dataclass
class OrderRequest:
    user_id: int = 0
    sku_id: int = 0
    phone_number: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> OrderRequest:
        data = _require_mapping(data, "order request")
        return cls(
            user_id=_read_int(data, "user_id", unsigned=True),
            sku_id=_read_int(data, "sku_id", unsigned=True),
            phone_number=_read_str(data, "phone_number"),
        )


@dataclass
class OrderResponse:
    order_id: int = 0
    user_id: int = 0
    sku: SkuResponse = field(default_factory=SkuResponse)
    total_price: int = 0
    status: PurchaseHistoryStatus | str = ""
    phone_number: str = ""
    cash_back_value: int = 0
    random_provider_weight: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "user_id": self.user_id,
            "sku": self.sku.to_dict(),
            "total_price": self.total_price,
            "status": _plain(self.status),
            "phone_number": self.phone_number,
            "cash_back_value": self.cash_back_value,
            "rand_provider_weight": self.random_provider_weight,
        }

    @classmethod
    def from_dict(cls, data: Any) -> OrderResponse:
        data = _require_mapping(data, "order")
        sku = SkuResponse.from_dict(data["sku"]) if "sku" in data else SkuResponse()
        return cls(
            order_id=_read_int(data, "order_id", unsigned=True),
            user_id=_read_int(data, "user_id", unsigned=True),
            sku=sku,
            total_price=_read_int(data, "total_price"),
            status=_read_status(data, "status"),
            phone_number=_read_str(data, "phone_number"),
            cash_back_value=_read_int(data, "cash_back_value"),
            random_provider_weight=_read_int(data, "rand_provider_weight"),
        )

    def to_json(self) -> str:
        return _dump_json(self.to_dict())

    @classmethod
    def from_json(cls, text: str | bytes) -> OrderResponse:
        return cls.from_dict(_load_json(text))

    def compare_with_order_confirm_request(self, request: OrderConfirmRequest) -> bool:
        """True when the confirmation matches this order's identity and amounts."""
        return (
            self.order_id == request.order_id
            and self.user_id == request.user_id
            and self.total_price == request.total_price
            and self.phone_number == request.phone_number
            and self.cash_back_value == request.cash_back_value
        )


@dataclass
class OrderProviderRequest:
    order_id: int = 0
    phone_number: str = ""
    total_price: int = 0
    price: int = 0
    callback_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "phone_number": self.phone_number,
            "total_price": self.total_price,
            "price": self.price,
            "callback_url": self.callback_url,
        }


@dataclass
class OrderProcessRequest:
    """Order handed to a provider over RPC."""

    order_id: int = 0
    phone_number: str = ""
    total_price: int = 0
    price: int = 0
    call_back_url: str = ""


@dataclass
class OrderUpdateRequest:
    order_id: int = 0
    status: PurchaseHistoryStatus | str = ""
    phone_number: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> OrderUpdateRequest:
        data = _require_mapping(data, "order update request")
        return cls(
            order_id=_read_int(data, "order_id", unsigned=True),
            status=_read_status(data, "status"),
            phone_number=_read_str(data, "phone_number"),
        )


@dataclass
class OrderIdempotencyResponse:
    success: bool = False
    error_message: str = ""
    timestamp: int = 0

    def to_json(self) -> str:
        data: dict[str, Any] = {"success": self.success}
        if self.error_message:
            data["error_message"] = self.error_message
        data["timestamp"] = self.timestamp
        return _dump_json(data)

    @classmethod
    def from_json(cls, text: str | bytes) -> OrderIdempotencyResponse:
        data = _load_json(text)
        success = data.get("success")
        if success is None:
            success = False
        elif not isinstance(success, bool):
            raise ValueError("field 'success' must be a boolean")
        return cls(
            success=success,
            error_message=_read_str(data, "error_message"),
            timestamp=_read_int(data, "timestamp"),
        )


@dataclass
class PurchaseHistoryResponse:
    order_id: int = 0
    user_id: int = 0
    sku_id: int = 0
    total_price: int = 0
    phone_number: str = ""
    status: str = ""
    cash_back_value: int = 0
    sku: SkuResponse = field(default_factory=SkuResponse)

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "user_id": self.user_id,
            "sku_id": self.sku_id,
            "total_price": self.total_price,
            "phone_number": self.phone_number,
            "status": _plain(self.status),
            "cash_back_value": self.cash_back_value,
            "sku": self.sku.to_dict(),
        }


@dataclass
class Response:
    code: int = 0
    message: str = ""
    error: str = ""
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "error": self.error, "data": _plain(self.data)}


@dataclass
class Pagination:
    total_count: int = 0
    total_page: int = 0
    current_page: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_count": self.total_count,
            "total_page": self.total_page,
            "current_page": self.current_page,
        }


@dataclass
class PaginationResponse:
    code: int = 0
    message: str = ""
    error: str = ""
    pagination: Pagination = field(default_factory=Pagination)
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "error": self.error,
            "pagination": self.pagination.to_dict(),
            "data": _plain(self.data),
        }


@dataclass
class SupplierResponse:
    code: str = ""
    name: str = ""
    logo: str = ""
    status: SupplierStatus | str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "name": self.name, "logo": self.logo, "status": _plain(self.status)}