from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import ForeignKey, Index, Numeric, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quantura.db.base import Base, BusinessScopedMixin, TimestampMixin, UUIDPkMixin
from .security import User


class Expense(UUIDPkMixin, BusinessScopedMixin, TimestampMixin, Base):
    """Money spent by a business, recorded by one of its users."""
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_business_created_at", "business_id", "created_at"),
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_by_user: Mapped[Optional[User]] = relationship(
        User, foreign_keys=[created_by], viewonly=True, lazy="raise"
    )
