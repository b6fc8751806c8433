"""Database models."""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Table
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class CashBackType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ProviderType(str, enum.Enum):
    GRCP = "grcp"
    HTTP = "http"


class PurchaseHistoryStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRM = "confirm"
    SUCCESS = "success"
    FAILED = "failed"


class SupplierStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _enum_type(enum_cls: type[enum.Enum], name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


class _Timestamped:
    """Identity and bookkeeping columns shared by every table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=_now, onupdate=_now
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)


provider_suppliers = Table(
    "provider_suppliers",
    Base.metadata,
    Column("provider_id", ForeignKey("provider.id"), primary_key=True),
    Column("supplier_id", ForeignKey("supplier.id"), primary_key=True),
)


class CashBack(_Timestamped, Base):
    __tablename__ = "cash_back"

    code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    type: Mapped[CashBackType] = mapped_column(_enum_type(CashBackType, "cash_back_type"), nullable=False)
    value: Mapped[int] = mapped_column(Integer, nullable=False)


class Supplier(_Timestamped, Base):
    __tablename__ = "supplier"

    code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    logo_url: Mapped[str] = mapped_column(String, nullable=False, default="")
    status: Mapped[SupplierStatus] = mapped_column(
        _enum_type(SupplierStatus, "supplier_status"), nullable=False, default=SupplierStatus.ACTIVE
    )
    providers: Mapped[list[Provider]] = relationship(
        "Provider", secondary=provider_suppliers, back_populates="suppliers"
    )


class Provider(_Timestamped, Base):
    __tablename__ = "provider"

    code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    source: Mapped[str | None] = mapped_column(String)
    type: Mapped[str | None] = mapped_column(String)
    weight: Mapped[int | None] = mapped_column(Integer, default=0)
    suppliers: Mapped[list[Supplier]] = relationship(
        "Supplier", secondary=provider_suppliers, back_populates="providers"
    )


class Sku(_Timestamped, Base):
    __tablename__ = "sku"

    supplier_code: Mapped[str] = mapped_column(String, ForeignKey("supplier.code"), nullable=False)
    cash_back_code: Mapped[str | None] = mapped_column(String, ForeignKey("cash_back.code"))
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    cash_back: Mapped[CashBack | None] = relationship("CashBack")
    supplier: Mapped[Supplier] = relationship("Supplier")


class PurchaseHistory(_Timestamped, Base):
    __tablename__ = "purchase_history"

    order_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    sku_id: Mapped[int] = mapped_column(Integer, ForeignKey("sku.id"), nullable=False)
    total_price: Mapped[int] = mapped_column(Integer, nullable=False)
    phone_number: Mapped[str] = mapped_column(String, nullable=False)
    cash_back_value: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[PurchaseHistoryStatus] = mapped_column(
        _enum_type(PurchaseHistoryStatus, "purchase_history_status"), nullable=False
    )
    sku: Mapped[Sku] = relationship("Sku")


def get_models() -> list[type[Base]]:
    """Every mapped model, in migration order."""
    return [Sku, CashBack, Provider, Supplier, PurchaseHistory]