"""
Demo seeding through the repositories, and the logging context filter.
"""

import logging

from sqlalchemy import func, select

from quantura.core.logging import LoggingContextFilter, business_id_var, correlation_id_var
from quantura.db.models.audit import AuditLog
from quantura.db.models.business import Business
from quantura.db.models.catalog import Category
from quantura.db.seed import DEMO_CATEGORIES, seed_demo_business


async def _count(session, column):
    return (await session.execute(select(func.count(column)))).scalar_one()


class TestSeed:
    async def test_seed_is_audited_and_idempotent(self, session):
        await seed_demo_business(session)
        await seed_demo_business(session)

        assert await _count(session, Business.id) == 1
        assert await _count(session, Category.id) == len(DEMO_CATEGORIES)
        # business + categories + warehouse
        assert await _count(session, AuditLog.id) == 1 + len(DEMO_CATEGORIES) + 1


class TestLoggingContextFilter:
    def _record(self):
        return logging.LogRecord("quantura", logging.INFO, __file__, 1, "hello", None, None)

    def test_placeholders_without_context(self):
        record = self._record()
        assert LoggingContextFilter().filter(record)
        assert record.correlation_id == "-"
        assert record.business_id == "-"

    def test_context_values_are_injected(self):
        corr = correlation_id_var.set("req-1")
        business = business_id_var.set("b-1")
        try:
            record = self._record()
            LoggingContextFilter().filter(record)
        finally:
            business_id_var.reset(business)
            correlation_id_var.reset(corr)

        assert record.correlation_id == "req-1"
        assert record.business_id == "b-1"
