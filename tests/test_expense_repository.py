"""
Expenses: positive amounts, attribution to the recording user and the
inclusive time-interval query.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select

from quantura.core.errors import ErrorCode
from quantura.db.models.audit import AuditLog
from quantura.repositories.expense import ExpenseRepository
from quantura.schemas.expense import ExpenseCreate

JAN_1 = datetime(2024, 1, 1, tzinfo=timezone.utc)


async def _expense_at(session, business_id, user_id, when, amount="10.00"):
    repo = ExpenseRepository(session)
    expense = (
        await repo.create(ExpenseCreate(business_id=business_id, created_by=user_id, amount=Decimal(amount)))
    ).data
    expense.created_at = when
    await session.commit()
    return expense.id


class TestCreateExpense:
    async def test_audit_is_attributed_to_creator(self, session, owner, business_id):
        result = await ExpenseRepository(session).create(
            ExpenseCreate(business_id=business_id, created_by=owner.id, amount=Decimal("12.50"), category="Rent")
        )

        assert result.is_ok
        assert result.data.amount == Decimal("12.50")
        audit = (await session.execute(select(AuditLog).where(AuditLog.action == "create-expense"))).scalar_one()
        assert audit.performed_by == owner.id
        assert audit.record_id == result.data.id

    async def test_amount_must_be_positive(self, session, owner, business_id):
        owner_id = owner.id
        repo = ExpenseRepository(session)

        for amount in (None, Decimal("0"), Decimal("-5")):
            result = await repo.create(ExpenseCreate(business_id=business_id, created_by=owner_id, amount=amount))
            assert result.error is ErrorCode.MISSING_INPUT

    async def test_update_rejects_non_positive_amount(self, session, owner, business_id):
        repo = ExpenseRepository(session)
        created = (
            await repo.create(ExpenseCreate(business_id=business_id, created_by=owner.id, amount=Decimal("3")))
        ).data

        result = await repo.update(created.id, business_id, owner.id, {"amount": Decimal("0")})

        assert result.error is ErrorCode.MISSING_INPUT


class TestTimeInterval:
    async def test_bounds_are_inclusive(self, session, owner, business_id):
        owner_id = owner.id
        before = await _expense_at(session, business_id, owner_id, JAN_1 - timedelta(seconds=1))
        at_start = await _expense_at(session, business_id, owner_id, JAN_1)
        inside = await _expense_at(session, business_id, owner_id, JAN_1 + timedelta(days=3))
        at_end = await _expense_at(session, business_id, owner_id, JAN_1 + timedelta(days=7))
        after = await _expense_at(session, business_id, owner_id, JAN_1 + timedelta(days=7, seconds=1))

        result = await ExpenseRepository(session).get_by_time_interval(
            business_id, JAN_1, JAN_1 + timedelta(days=7)
        )

        ids = [e.id for e in result.data]
        assert ids == [at_end, inside, at_start]
        assert before not in ids and after not in ids
        assert result.data[0].created_by_user.id == owner_id

    async def test_reversed_interval_is_missing_input(self, session, owner, business_id):
        result = await ExpenseRepository(session).get_by_time_interval(
            business_id, JAN_1 + timedelta(days=1), JAN_1
        )
        assert result.error is ErrorCode.MISSING_INPUT

    async def test_naive_bounds_are_taken_as_utc(self, session, owner, business_id):
        expense_id = await _expense_at(session, business_id, owner.id, JAN_1 + timedelta(hours=1))

        result = await ExpenseRepository(session).get_by_time_interval(
            business_id, datetime(2024, 1, 1), datetime(2024, 1, 1, 2)
        )

        assert [e.id for e in result.data] == [expense_id]

    async def test_other_tenants_expenses_are_excluded(self, session, owner, business_id, make_business):
        other_owner, other = await make_business("other@example.com", name="Other")
        await _expense_at(session, other.id, other_owner.id, JAN_1)

        result = await ExpenseRepository(session).get_by_time_interval(
            business_id, JAN_1 - timedelta(days=1), JAN_1 + timedelta(days=1)
        )

        assert result.data == []


async def _audits(session, action):
    return (await session.execute(select(AuditLog).where(AuditLog.action == action))).scalars().all()


class TestUpdateAndRemove:
    async def test_update_writes_one_audit_row(self, session, owner, business_id):
        owner_id = owner.id
        repo = ExpenseRepository(session)
        expense_id = (
            await repo.create(ExpenseCreate(business_id=business_id, created_by=owner_id, amount=Decimal("8")))
        ).data.id

        result = await repo.update(expense_id, business_id, owner_id, {"amount": Decimal("9.50"), "note": "taxi"})

        assert result.data.amount == Decimal("9.50")
        (audit,) = await _audits(session, "update-expense")
        assert audit.record_id == expense_id
        assert audit.performed_by == owner_id
        assert audit.changes["note"] == "taxi"

    async def test_remove_keeps_previous_snapshot(self, session, owner, business_id):
        owner_id = owner.id
        repo = ExpenseRepository(session)
        expense_id = (
            await repo.create(
                ExpenseCreate(business_id=business_id, created_by=owner_id, amount=Decimal("4"), category="Fuel")
            )
        ).data.id

        removed = await repo.remove(expense_id, business_id, owner_id)

        assert removed.is_ok
        assert (await repo.get_by_id(expense_id, business_id)).error is ErrorCode.NOT_FOUND
        (audit,) = await _audits(session, "delete-expense")
        assert audit.record_id == expense_id
        assert audit.changes["category"] == "Fuel"

    async def test_other_tenant_cannot_touch_expense(self, session, owner, business_id, make_business):
        intruder, other = await make_business("intruder@example.com", name="Intruder")
        intruder_id, other_id = intruder.id, other.id
        repo = ExpenseRepository(session)
        expense_id = (
            await repo.create(ExpenseCreate(business_id=business_id, created_by=owner.id, amount=Decimal("5")))
        ).data.id

        updated = await repo.update(expense_id, other_id, intruder_id, {"amount": Decimal("500")})
        removed = await repo.remove(expense_id, other_id, intruder_id)

        assert updated.error is ErrorCode.NOT_FOUND
        assert removed.error is ErrorCode.NOT_FOUND
        assert (await repo.get_by_id(expense_id, business_id)).data.amount == Decimal("5")
        assert await _audits(session, "update-expense") == []
        assert await _audits(session, "delete-expense") == []

    async def test_non_numeric_amount_is_missing_input(self, session, owner, business_id):
        owner_id = owner.id
        repo = ExpenseRepository(session)
        expense_id = (
            await repo.create(ExpenseCreate(business_id=business_id, created_by=owner_id, amount=Decimal("3")))
        ).data.id

        result = await repo.update(expense_id, business_id, owner_id, {"amount": "abc"})

        assert result.error is ErrorCode.MISSING_INPUT
        assert await _audits(session, "update-expense") == []
