"""
Businesses (tenants): ownership on create, partial updates and the hard delete
whose audit entry outlives the business.
"""

import uuid

from sqlalchemy import func, select

from quantura.core.errors import ErrorCode
from quantura.db.models.audit import AuditLog
from quantura.db.models.business import Business
from quantura.db.models.catalog import Category
from quantura.db.models.security import User
from quantura.repositories.business import BusinessRepository
from quantura.repositories.category import CategoryRepository
from quantura.schemas.business import BusinessCreate
from quantura.schemas.catalog import CategoryCreate


class TestCreateBusiness:
    async def test_creator_becomes_owner(self, session, make_user):
        user = await make_user("founder@example.com")

        result = await BusinessRepository(session).create(user.id, BusinessCreate(name="  Corner Shop "))

        assert result.is_ok
        assert result.data.name == "Corner Shop"
        assert result.data.currency == "USD"
        assert user.business_id == result.data.id
        assert user.role == "OWNER"
        audit = (
            await session.execute(select(AuditLog).where(AuditLog.action == "create-business"))
        ).scalar_one()
        assert audit.business_id == result.data.id
        assert audit.performed_by == user.id

    async def test_user_with_business_cannot_create_another(self, session, owner):
        owner_id = owner.id

        result = await BusinessRepository(session).create(owner_id, BusinessCreate(name="Second"))

        assert result.error is ErrorCode.USER_ALREADY_IN_BUSINESS
        count = (await session.execute(select(func.count(Business.id)))).scalar_one()
        assert count == 1

    async def test_unknown_user(self, session):
        result = await BusinessRepository(session).create(uuid.uuid4(), BusinessCreate(name="Ghost"))
        assert result.error is ErrorCode.USER_NOT_FOUND

    async def test_nameless_business_is_missing_input(self, session, make_user):
        user = await make_user("founder@example.com")
        result = await BusinessRepository(session).create(user.id, BusinessCreate(name=""))
        assert result.error is ErrorCode.MISSING_INPUT

    async def test_create_many_is_all_or_nothing(self, session):
        repo = BusinessRepository(session)

        rejected = await repo.create_many([BusinessCreate(name="A"), BusinessCreate(name=" ")])
        created = await repo.create_many([BusinessCreate(name="A"), BusinessCreate(name="B")])

        assert rejected.error is ErrorCode.MISSING_INPUT
        assert sorted(b.name for b in created.data) == ["A", "B"]


class TestUpdateAndRemove:
    async def test_update_records_applied_fields(self, session, owner, business_id):
        result = await BusinessRepository(session).update(
            business_id, owner.id, {"name": "Renamed", "phone": "555-0100", "id": None}
        )

        assert result.data.name == "Renamed"
        audit = (
            await session.execute(select(AuditLog).where(AuditLog.action == "update-business"))
        ).scalar_one()
        assert audit.changes == {"name": "Renamed", "phone": "555-0100"}

    async def test_update_cannot_blank_name(self, session, owner, business_id):
        result = await BusinessRepository(session).update(business_id, owner.id, {"name": " "})
        assert result.error is ErrorCode.MISSING_INPUT

    async def test_remove_cascades_and_keeps_audit_trail(self, session, owner, business_id):
        owner_id = owner.id
        await CategoryRepository(session).create(CategoryCreate(business_id=business_id, value="Food"), owner_id)

        result = await BusinessRepository(session).remove(business_id, owner_id)

        assert result.is_ok
        assert (await session.execute(select(Business).where(Business.id == business_id))).first() is None
        categories = (
            await session.execute(select(func.count(Category.id)).where(Category.business_id == business_id))
        ).scalar_one()
        assert categories == 0
        actions = (
            await session.execute(
                select(AuditLog.action).where(AuditLog.business_id == business_id)
            )
        ).scalars().all()
        assert "delete-business" in actions
        member_business = (
            await session.execute(select(User.business_id).where(User.id == owner_id))
        ).scalar_one()
        assert member_business is None

    async def test_remove_unknown_business(self, session, owner):
        result = await BusinessRepository(session).remove(uuid.uuid4(), owner.id)
        assert result.error is ErrorCode.BUSINESS_NOT_FOUND


class TestReads:
    async def test_detail_includes_categories(self, session, cache, owner, business_id):
        await CategoryRepository(session, cache).create(
            CategoryCreate(business_id=business_id, value="Tools"), owner.id
        )

        result = await BusinessRepository(session, cache).get_by_id_cached(business_id)

        assert result.data.id == business_id
        assert [c.value for c in result.data.categories] == ["Tools"]
        assert result.data.warehouses == []

    async def test_category_change_revalidates_business_detail(self, session, cache, owner, business_id):
        businesses = BusinessRepository(session, cache)
        categories = CategoryRepository(session, cache)

        before = await businesses.get_by_id_cached(business_id)
        assert before.data.categories == []
        await categories.create(CategoryCreate(business_id=business_id, value="Late"), owner.id)
        after = await businesses.get_by_id_cached(business_id)

        assert [c.value for c in after.data.categories] == ["Late"]
