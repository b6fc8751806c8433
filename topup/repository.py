"""Database access for providers, purchase histories, SKUs and suppliers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import joinedload, selectinload, sessionmaker

from topup.errors import NotFoundError
from topup.models import PurchaseHistory, PurchaseHistoryStatus, Provider, Sku, Supplier


class RecordNotFoundError(NotFoundError):
    """No row matched the lookup."""

    def __init__(self, message: str = "record not found") -> None:
        super().__init__(message)


def _live(model: Any) -> Any:
    return model.deleted_at.is_(None)


def _sessions(engine: Engine) -> sessionmaker:
    return sessionmaker(engine, expire_on_commit=False)


def _sku_options() -> tuple[Any, ...]:
    return (joinedload(Sku.cash_back), joinedload(Sku.supplier))


def _history_options() -> tuple[Any, ...]:
    return (
        selectinload(PurchaseHistory.sku).joinedload(Sku.supplier),
        selectinload(PurchaseHistory.sku).joinedload(Sku.cash_back),
    )


class ProviderRepository:
    def __init__(self, engine: Engine) -> None:
        self._sessions = _sessions(engine)

    def get_providers_with_suppliers(self) -> list[Provider]:
        """Every provider with the suppliers it serves."""
        stmt = (
            select(Provider)
            .where(_live(Provider))
            .options(selectinload(Provider.suppliers))
            .order_by(Provider.id)
        )
        with self._sessions() as session:
            return list(session.scalars(stmt).all())


class PurchaseHistoryRepository:
    def __init__(self, engine: Engine) -> None:
        self._sessions = _sessions(engine)

    def create_purchase_history(self, purchase_history: PurchaseHistory) -> None:
        with self._sessions.begin() as session:
            session.add(purchase_history)

    def get_purchase_histories_by_user_id_paginated(
        self, user_id: int, page: int, page_size: int
    ) -> tuple[list[PurchaseHistory], int]:
        """One page of a user's purchases and the user's total purchase count."""
        condition = (PurchaseHistory.user_id == user_id, _live(PurchaseHistory))
        count_stmt = select(func.count()).select_from(PurchaseHistory).where(*condition)
        offset = max(0, (page - 1) * page_size)
        page_stmt = (
            select(PurchaseHistory)
            .where(*condition)
            .options(*_history_options())
            .order_by(PurchaseHistory.id)
            .limit(page_size)
            .offset(offset)
        )
        with self._sessions() as session:
            total = session.scalar(count_stmt) or 0
            histories = list(session.scalars(page_stmt).all())
        return histories, int(total)

    def get_purchase_history_by_id(self, id: int) -> PurchaseHistory:
        """The first purchase recorded under the given order id."""
        stmt = (
            select(PurchaseHistory)
            .where(PurchaseHistory.order_id == id, _live(PurchaseHistory))
            .order_by(PurchaseHistory.id)
            .limit(1)
        )
        with self._sessions() as session:
            history = session.scalars(stmt).first()
        if history is None:
            raise RecordNotFoundError()
        return history

    def update_purchase_history_status_by_order_id(
        self, order_id: int, status: PurchaseHistoryStatus | str
    ) -> None:
        stmt = (
            update(PurchaseHistory)
            .where(PurchaseHistory.order_id == order_id, _live(PurchaseHistory))
            .values(status=PurchaseHistoryStatus(status), updated_at=datetime.now(timezone.utc))
        )
        with self._sessions.begin() as session:
            session.execute(stmt)

    def get_purchase_history_by_order_id(self, order_id: int) -> PurchaseHistory:
        """The purchase for an order, with its SKU, supplier and cash back loaded."""
        stmt = (
            select(PurchaseHistory)
            .where(PurchaseHistory.order_id == order_id, _live(PurchaseHistory))
            .options(*_history_options())
            .order_by(PurchaseHistory.id)
            .limit(1)
        )
        with self._sessions() as session:
            history = session.scalars(stmt).first()
        if history is None:
            raise RecordNotFoundError()
        return history


class SkuRepository:
    def __init__(self, engine: Engine) -> None:
        self._sessions = _sessions(engine)

    def get_skus_by_supplier_code(self, supplier_code: str) -> list[Sku]:
        stmt = (
            select(Sku)
            .where(Sku.supplier_code == supplier_code, _live(Sku))
            .options(*_sku_options())
            .order_by(Sku.id)
        )
        with self._sessions() as session:
            return list(session.scalars(stmt).unique().all())

    def get_sku_by_id(self, id: int) -> Sku:
        stmt = select(Sku).where(Sku.id == id, _live(Sku)).options(*_sku_options())
        with self._sessions() as session:
            sku = session.scalars(stmt).unique().first()
        if sku is None:
            raise RecordNotFoundError()
        return sku

    def get_skus(self) -> list[Sku]:
        stmt = select(Sku).where(_live(Sku)).options(*_sku_options()).order_by(Sku.id)
        with self._sessions() as session:
            return list(session.scalars(stmt).unique().all())


class SupplierRepository:
    def __init__(self, engine: Engine) -> None:
        self._sessions = _sessions(engine)

    def get_suppliers(self) -> list[Supplier]:
        stmt = select(Supplier).where(_live(Supplier)).order_by(Supplier.id)
        with self._sessions() as session:
            return list(session.scalars(stmt).all())