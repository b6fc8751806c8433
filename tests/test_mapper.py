from topup import mapper
from topup.models import (
    CashBack,
    CashBackType,
    PurchaseHistory,
    PurchaseHistoryStatus,
    Sku,
    Supplier,
    SupplierStatus,
)
from topup.schema import (
    CashBackFixed,
    CashBackPercentage,
    OrderConfirmRequest,
    OrderRequest,
)


def _sku(sku_id, supplier_code, price, cash_type, cash_value, supplier_name, logo=""):
    return Sku(
        id=sku_id,
        supplier_code=supplier_code,
        price=price,
        cash_back=CashBack(code=f"CB{sku_id:03d}", type=cash_type, value=cash_value),
        supplier=Supplier(code=supplier_code, name=supplier_name, logo_url=logo),
    )


def test_cash_back_percentage_from_model():
    result = mapper.cash_back_from_model(CashBack(code="CB001", type=CashBackType.PERCENTAGE, value=5))
    assert isinstance(result, CashBackPercentage)
    assert result.code == "CB001"
    assert result.value == 5
    assert result.type == CashBackType.PERCENTAGE


def test_cash_back_fixed_from_model():
    result = mapper.cash_back_from_model(CashBack(code="CB002", type=CashBackType.FIXED, value=1000))
    assert isinstance(result, CashBackFixed)
    assert result.type == CashBackType.FIXED
    assert result.calculate_cash_back(20000) == 1000


def test_missing_cash_back_is_empty_fixed():
    result = mapper.cash_back_from_model(None)
    assert isinstance(result, CashBackFixed)
    assert result.code == ""
    assert result.calculate_cash_back(10000) == result.value


def test_sku_response_from_model():
    sku = _sku(1, "VTL", 10000, CashBackType.PERCENTAGE, 5, "Viettel")
    result = mapper.sku_response_from_model(sku)
    assert result.id == 1
    assert result.price == 10000
    assert result.supplier.code == "VTL"
    assert result.supplier.name == "Viettel"
    assert isinstance(result.cash_back, CashBackPercentage)


def test_order_response_from_order_request_percentage():
    sku = _sku(1, "VTL", 10000, CashBackType.PERCENTAGE, 5, "Viettel")
    request = OrderRequest(user_id=1, sku_id=1, phone_number="081234567890")
    result = mapper.order_response_from_order_request(request, sku, 42)
    assert result.order_id == 42
    assert result.user_id == 1
    assert result.total_price == 10000
    assert result.status == PurchaseHistoryStatus.PENDING
    assert result.phone_number == "081234567890"
    assert result.cash_back_value == 500


def test_order_response_from_order_request_fixed():
    sku = _sku(2, "MBF", 20000, CashBackType.FIXED, 1000, "Mobifone")
    request = OrderRequest(user_id=2, sku_id=2, phone_number="082345678901")
    result = mapper.order_response_from_order_request(request, sku, 7)
    assert result.cash_back_value == 1000
    assert result.total_price == sku.price


def test_provider_and_process_requests_copy_order():
    sku = _sku(1, "VTL", 10000, CashBackType.PERCENTAGE, 5, "Viettel")
    order = mapper.order_response_from_order_request(
        OrderRequest(user_id=1, sku_id=1, phone_number="081234567890"), sku, 1001
    )
    callback = "http://localhost:8080/v1/api/order/update-status"
    provider_request = mapper.order_provider_request_from_order_response(order, callback)
    assert provider_request.order_id == 1001
    assert provider_request.phone_number == order.phone_number
    assert provider_request.total_price == order.total_price
    assert provider_request.price == order.sku.price
    assert provider_request.callback_url == callback

    process = mapper.order_process_request_from_order(order, callback)
    assert process.order_id == provider_request.order_id
    assert process.price == provider_request.price
    assert process.total_price == provider_request.total_price
    assert process.call_back_url == callback


def test_pagination_and_plain_responses():
    page = mapper.pagination_response_from_model(12, 3, 2, ["a"])
    assert page.code == 200
    assert page.message == "success"
    assert page.data == ["a"]
    assert (page.pagination.total_count, page.pagination.total_page, page.pagination.current_page) == (12, 3, 2)

    ok = mapper.success_response({"x": 1})
    assert ok.code == 200
    assert ok.message == "success"
    assert ok.data == {"x": 1}
    assert ok.error == ""

    err = mapper.error_response(400, "Bad Request", "boom")
    assert err.code == 400
    assert err.message == "Bad Request"
    assert err.error == "boom"
    assert err.data is None


def test_group_by_supplier_empty_is_none():
    assert mapper.skus_group_by_supplier_from_model([]) is None


def test_group_by_supplier_groups_in_first_seen_order():
    skus = [
        _sku(1, "VTL", 10000, CashBackType.PERCENTAGE, 5, "Viettel", "logo1"),
        _sku(2, "MBF", 20000, CashBackType.FIXED, 1000, "Mobifone", "logo2"),
        _sku(3, "VTL", 50000, CashBackType.FIXED, 0, "Viettel", "logo1"),
    ]
    groups = mapper.skus_group_by_supplier_from_model(skus)
    assert [group.supplier_code for group in groups] == ["VTL", "MBF"]
    vtl = groups[0]
    assert vtl.supplier_name == "Viettel"
    assert vtl.supplier_logo_url == "logo1"
    assert [item.id for item in vtl.skus] == [1, 3]
    assert sum(len(group.skus) for group in groups) == len(skus)


def test_supplier_response_from_model():
    supplier = Supplier(code="VTL", name="Viettel", logo_url="viettel.png", status=SupplierStatus.ACTIVE)
    result = mapper.supplier_response_from_model(supplier)
    assert result.code == "VTL"
    assert result.name == "Viettel"
    assert result.logo == "viettel.png"
    assert result.to_dict()["status"] == "active"


def test_purchase_history_response_from_model():
    history = PurchaseHistory(
        order_id=1001,
        user_id=1,
        sku_id=2001,
        total_price=10000,
        phone_number="081234567890",
        status=PurchaseHistoryStatus.SUCCESS,
        cash_back_value=100,
        sku=_sku(2001, "VTL", 10000, CashBackType.FIXED, 0, "Viettel"),
    )
    result = mapper.purchase_history_response_from_model(history)
    assert result.order_id == 1001
    assert result.user_id == 1
    assert result.sku_id == 2001
    assert result.total_price == 10000
    assert result.phone_number == "081234567890"
    assert result.status == "success"
    assert result.cash_back_value == 100
    assert result.sku.supplier.code == "VTL"


def test_purchase_history_from_confirm_request():
    request = OrderConfirmRequest(
        order_id=1001,
        user_id=1,
        sku_id=1,
        total_price=10000,
        status=PurchaseHistoryStatus.CONFIRM,
        phone_number="081234567890",
        cash_back_value=500,
    )
    history = mapper.purchase_history_from_order_confirm_request(request)
    assert history.order_id == request.order_id
    assert history.user_id == request.user_id
    assert history.sku_id == request.sku_id
    assert history.total_price == request.total_price
    assert history.status == PurchaseHistoryStatus.CONFIRM
    assert history.phone_number == request.phone_number
    assert history.cash_back_value == request.cash_back_value


def test_purchase_history_from_confirm_request_accepts_status_text():
    request = OrderConfirmRequest(order_id=1, status="failed")
    history = mapper.purchase_history_from_order_confirm_request(request)
    assert history.status is PurchaseHistoryStatus.FAILED