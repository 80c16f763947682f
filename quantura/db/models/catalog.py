from __future__ import annotations

from typing import Optional

from sqlalchemy import Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from quantura.db.base import Base, BusinessScopedMixin, TimestampMixin, UUIDPkMixin


class Category(UUIDPkMixin, BusinessScopedMixin, TimestampMixin, Base):
    """Product category; `value` is unique within a business."""
    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("business_id", "value", name="uq_categories_business_value"),
    )

    value: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Supplier(UUIDPkMixin, BusinessScopedMixin, TimestampMixin, Base):
    """Supplier/vendor master."""
    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    contact_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
