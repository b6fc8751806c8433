import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from topup.models import (
    Base,
    CashBack,
    CashBackType,
    PurchaseHistory,
    PurchaseHistoryStatus,
    Sku,
    Supplier,
    SupplierStatus,
)
from topup.repository import RecordNotFoundError
from topup.schema import PurchaseHistoryResponse
from topup.services import (
    PurchaseHistoryService,
    SkuService,
    SupplierService,
    new_container,
)


def make_sku(sku_id, supplier_code, price, cash_back_type, cash_back_value, supplier_name):
    return Sku(
        id=sku_id,
        supplier_code=supplier_code,
        price=price,
        cash_back=CashBack(code=f"CB{sku_id:03d}", type=cash_back_type, value=cash_back_value),
        supplier=Supplier(code=supplier_code, name=supplier_name),
    )


def history_one():
    return PurchaseHistory(
        id=1,
        order_id=1001,
        user_id=1,
        sku_id=2001,
        total_price=10000,
        phone_number="081234567890",
        status=PurchaseHistoryStatus.SUCCESS,
        cash_back_value=100,
        sku=make_sku(2001, "VTL", 10000, CashBackType.FIXED, 0, "Viettel"),
    )


def history_two():
    return PurchaseHistory(
        id=2,
        order_id=1002,
        user_id=1,
        sku_id=2002,
        total_price=20000,
        phone_number="081234567891",
        status=PurchaseHistoryStatus.CONFIRM,
        cash_back_value=200,
        sku=make_sku(2002, "MBF", 20000, CashBackType.FIXED, 0, "Mobifone"),
    )


class FakePurchaseHistoryRepo:
    def __init__(self, histories=(), total=0, record=None, error=None):
        self.histories = list(histories)
        self.total = total
        self.record = record
        self.error = error
        self.calls = []

    def get_purchase_histories_by_user_id_paginated(self, user_id, page, page_size):
        self.calls.append((user_id, page, page_size))
        if self.error:
            raise self.error
        return self.histories, self.total

    def get_purchase_history_by_id(self, id):
        self.calls.append((id,))
        if self.error:
            raise self.error
        return self.record


class FakeSkuRepo:
    def __init__(self, skus=None, error=None):
        self.skus = skus
        self.error = error
        self.calls = []

    def get_skus_by_supplier_code(self, supplier_code):
        self.calls.append(supplier_code)
        if self.error:
            raise self.error
        return self.skus

    def get_skus(self):
        self.calls.append(None)
        if self.error:
            raise self.error
        return self.skus


class FakeSupplierRepo:
    def __init__(self, suppliers=None, error=None):
        self.suppliers = suppliers
        self.error = error

    def get_suppliers(self):
        if self.error:
            raise self.error
        return self.suppliers


@pytest.mark.parametrize(
    "histories, total, page, page_size, expected",
    [
        ([], 0, 1, 10, (0, 0, 1)),
        ([history_one(), history_two()], 2, 1, 10, (2, 1, 1)),
        ([], 12, 2, 5, (12, 3, 2)),
    ],
)
def test_paginated_histories(histories, total, page, page_size, expected):
    repo = FakePurchaseHistoryRepo(histories=histories, total=total)
    got = PurchaseHistoryService(repo).get_purchase_histories_by_user_id_paginated(1, page, page_size)
    assert repo.calls == [(1, page, page_size)]
    assert (got.pagination.total_count, got.pagination.total_page, got.pagination.current_page) == expected
    assert got.code == 200
    assert got.message == "success"
    assert len(got.data) == len(histories)
    assert all(isinstance(item, PurchaseHistoryResponse) for item in got.data)


def test_paginated_histories_data_fields():
    repo = FakePurchaseHistoryRepo(histories=[history_one(), history_two()], total=2)
    got = PurchaseHistoryService(repo).get_purchase_histories_by_user_id_paginated(1, 1, 10)
    first = got.data[0]
    assert first.order_id == 1001
    assert first.user_id == 1
    assert first.sku_id == 2001
    assert first.total_price == 10000
    assert first.phone_number == "081234567890"
    assert first.status == "success"
    assert first.cash_back_value == 100
    assert first.sku.supplier.code == "VTL"


def test_paginated_histories_repository_error():
    repo = FakePurchaseHistoryRepo(error=RuntimeError("db error"))
    with pytest.raises(RuntimeError) as info:
        PurchaseHistoryService(repo).get_purchase_histories_by_user_id_paginated(1, 1, 10)
    assert str(info.value) == "db error"


def test_paginated_histories_rejects_zero_page_size():
    with pytest.raises(ValueError):
        PurchaseHistoryService(FakePurchaseHistoryRepo()).get_purchase_histories_by_user_id_paginated(1, 1, 0)


def test_get_purchase_history_by_id_success():
    repo = FakePurchaseHistoryRepo(record=history_one())
    got = PurchaseHistoryService(repo).get_purchase_history_by_id(1)
    assert repo.calls == [(1,)]
    assert got.id == 1
    assert got.order_id == 1001
    assert got.user_id == 1
    assert got.sku_id == 2001
    assert got.total_price == 10000
    assert got.phone_number == "081234567890"
    assert got.status == PurchaseHistoryStatus.SUCCESS
    assert got.cash_back_value == 100


@pytest.mark.parametrize("error", [RuntimeError("record not found"), RecordNotFoundError()])
def test_get_purchase_history_by_id_errors(error):
    repo = FakePurchaseHistoryRepo(error=error)
    with pytest.raises(type(error)) as info:
        PurchaseHistoryService(repo).get_purchase_history_by_id(999)
    assert "record not found" in str(info.value)


def test_skus_by_supplier_code_success():
    repo = FakeSkuRepo(skus=[Sku(supplier_code="VTL"), Sku(supplier_code="VTL")])
    got = SkuService(repo).get_skus_by_supplier_code("VTL")
    assert repo.calls == ["VTL"]
    assert len(got) == 2


def test_skus_by_supplier_code_error():
    with pytest.raises(RuntimeError) as info:
        SkuService(FakeSkuRepo(error=RuntimeError("db error"))).get_skus_by_supplier_code("VTL")
    assert str(info.value) == "db error"


def test_skus_by_supplier_code_no_record():
    assert SkuService(FakeSkuRepo(skus=[])).get_skus_by_supplier_code("VTL") == []


def test_skus_by_supplier_code_nil_from_repo():
    assert SkuService(FakeSkuRepo(skus=None)).get_skus_by_supplier_code("VTL") is None


def test_skus_group_by_supplier_success():
    skus = [
        Sku(supplier_code="VTL", supplier=Supplier(code="VTL", name="Viettel", logo_url="logo1")),
        Sku(supplier_code="MBF", supplier=Supplier(code="MBF", name="Mobifone", logo_url="logo2")),
    ]
    got = SkuService(FakeSkuRepo(skus=skus)).get_skus_group_by_supplier()
    codes = {group.supplier_code for group in got}
    assert "VTL" in codes
    assert "MBF" in codes


def test_skus_group_by_supplier_error():
    with pytest.raises(RuntimeError) as info:
        SkuService(FakeSkuRepo(error=RuntimeError("db error"))).get_skus_group_by_supplier()
    assert str(info.value) == "db error"


@pytest.mark.parametrize("skus", [[], None])
def test_skus_group_by_supplier_empty_is_none(skus):
    assert SkuService(FakeSkuRepo(skus=skus)).get_skus_group_by_supplier() is None


def test_get_suppliers_success():
    suppliers = [
        Supplier(code="VTL", name="Viettel", logo_url="viettel.png", status=SupplierStatus.ACTIVE),
        Supplier(code="MBF", name="Mobifone", logo_url="mobifone.png", status=SupplierStatus.ACTIVE),
    ]
    got = SupplierService(FakeSupplierRepo(suppliers=suppliers)).get_suppliers()
    assert [(item.code, item.name) for item in got] == [("VTL", "Viettel"), ("MBF", "Mobifone")]
    assert got[0].logo == "viettel.png"


def test_get_suppliers_error():
    with pytest.raises(RuntimeError) as info:
        SupplierService(FakeSupplierRepo(error=RuntimeError("db error"))).get_suppliers()
    assert str(info.value) == "db error"


def test_new_container_wires_services_to_database():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        session.add(Supplier(code="VTL", name="Viettel", logo_url="viettel.png", status=SupplierStatus.ACTIVE))
        session.commit()

    container = new_container(engine, None, None, None, None, {})
    assert container.db is engine
    assert container.order_service.provider_clients == {}
    assert [item.code for item in container.supplier_service.get_suppliers()] == ["VTL"]
    assert container.sku_service.get_skus_group_by_supplier() is None