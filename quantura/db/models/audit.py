from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quantura.core.clock import utcnow
from quantura.db.base import Base, JSONType, UUIDPkMixin
from .security import User


class AuditLog(UUIDPkMixin, Base):
    """
    Immutable record of one mutation, written in the mutation's transaction.

    `business_id` is not a foreign key: the trail of a deleted business
    (including its own deletion) outlives the business row.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_business_performed_at", "business_id", "performed_at"),
    )

    business_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    model: Mapped[str] = mapped_column(Text, nullable=False)
    record_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    changes: Mapped[Any] = mapped_column(JSONType, nullable=False, default=dict)
    performed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    performed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    performer: Mapped[Optional[User]] = relationship(
        User, foreign_keys=[performed_by], viewonly=True, lazy="raise"
    )
