from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quantura.db.base import Base, BusinessScopedMixin, TimestampMixin, UUIDPkMixin
from .security import User


class Warehouse(UUIDPkMixin, BusinessScopedMixin, TimestampMixin, Base):
    """Physical stock location."""
    __tablename__ = "warehouses"
    __table_args__ = (
        UniqueConstraint("business_id", "name", name="uq_warehouses_business_name"),
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class WarehouseItem(UUIDPkMixin, BusinessScopedMixin, TimestampMixin, Base):
    """On-hand quantity of one product in one warehouse."""
    __tablename__ = "warehouse_items"
    __table_args__ = (
        UniqueConstraint("warehouse_id", "sku", name="uq_warehouse_items_warehouse_sku"),
        CheckConstraint("quantity >= 0", name="quantity_non_negative"),
    )

    warehouse_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False
    )
    sku: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


class Transaction(UUIDPkMixin, BusinessScopedMixin, TimestampMixin, Base):
    """Stock movement; sales carry a negative quantity."""
    __tablename__ = "transactions"

    warehouse_item_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("warehouse_items.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_by_user: Mapped[Optional[User]] = relationship(
        User, foreign_keys=[created_by], viewonly=True, lazy="raise"
    )
