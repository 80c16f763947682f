from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quantura.db.base import Base, TimestampMixin, UUIDPkMixin

if TYPE_CHECKING:
    from .catalog import Category
    from .inventory import Warehouse


class Business(UUIDPkMixin, TimestampMixin, Base):
    """A tenant: the unit of data isolation."""
    __tablename__ = "businesses"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    currency: Mapped[str] = mapped_column(Text, nullable=False, default="USD", server_default="USD")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    categories: Mapped[list["Category"]] = relationship(
        "Category",
        primaryjoin="Business.id==Category.business_id",
        foreign_keys="Category.business_id",
        viewonly=True,
        lazy="raise",
    )
    warehouses: Mapped[list["Warehouse"]] = relationship(
        "Warehouse",
        primaryjoin="Business.id==Warehouse.business_id",
        foreign_keys="Warehouse.business_id",
        viewonly=True,
        lazy="raise",
    )
