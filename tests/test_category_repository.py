"""
Category repository: upsert on (business_id, value), batch atomicity, audit
rows committed with their mutation, and cache revalidation.
"""

from sqlalchemy import func, select

from quantura.core.clock import ensure_aware
from quantura.core.errors import ErrorCode
from quantura.db.models.audit import AuditLog
from quantura.db.models.catalog import Category
from quantura.repositories.category import CategoryRepository
from quantura.schemas.catalog import CategoryCreate


async def _audit_rows(session, business_id, action=None):
    stmt = select(AuditLog).where(AuditLog.business_id == business_id)
    if action:
        stmt = stmt.where(AuditLog.action == action)
    return list((await session.execute(stmt)).scalars())


async def _category_count(session, business_id):
    stmt = select(func.count(Category.id)).where(Category.business_id == business_id)
    return (await session.execute(stmt)).scalar_one()


class TestCreateCategory:
    async def test_create_writes_row_and_audit(self, session, owner, business_id):
        repo = CategoryRepository(session)

        result = await repo.create(CategoryCreate(business_id=business_id, value="Beverages"), owner.id)

        assert result.is_ok
        assert result.data.value == "Beverages"
        audits = await _audit_rows(session, business_id, "create-category")
        assert len(audits) == 1
        assert audits[0].model == "category"
        assert audits[0].record_id == result.data.id
        assert audits[0].performed_by == owner.id
        assert audits[0].changes["value"] == "Beverages"

    async def test_same_value_upserts_instead_of_duplicating(self, session, owner, business_id):
        repo = CategoryRepository(session)

        first = await repo.create(CategoryCreate(business_id=business_id, value="Snacks"), owner.id)
        second = await repo.create(
            CategoryCreate(business_id=business_id, value="Snacks", description="Chips and more"),
            owner.id,
        )

        assert first.is_ok and second.is_ok
        assert second.data.id == first.data.id
        assert second.data.description == "Chips and more"
        assert await _category_count(session, business_id) == 1
        # Each call is its own mutation and gets its own audit row.
        assert len(await _audit_rows(session, business_id, "create-category")) == 2

    async def test_blank_value_is_missing_input_without_writes(self, session, owner, business_id):
        before = len(await _audit_rows(session, business_id))

        result = await CategoryRepository(session).create(
            CategoryCreate(business_id=business_id, value="   "), owner.id
        )

        assert result.error is ErrorCode.MISSING_INPUT
        assert await _category_count(session, business_id) == 0
        assert len(await _audit_rows(session, business_id)) == before

    async def test_missing_business_is_missing_input(self, session, owner):
        result = await CategoryRepository(session).create(CategoryCreate(value="Tools"), owner.id)
        assert result.error is ErrorCode.MISSING_INPUT

    async def test_audit_failure_rolls_back_the_mutation(self, session, owner, business_id, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("audit store unavailable")

        monkeypatch.setattr(CategoryRepository, "_audit_entry", boom)

        result = await CategoryRepository(session).create(
            CategoryCreate(business_id=business_id, value="Ghost"), owner.id
        )

        assert result.error is ErrorCode.FAILED_REQUEST
        assert await _category_count(session, business_id) == 0


class TestUpsertMany:
    async def test_batch_creates_every_row(self, session, owner, business_id):
        rows = [CategoryCreate(value=v) for v in ("A", "B", "C")]

        result = await CategoryRepository(session).upsert_many(business_id, rows, owner.id)

        assert result.is_ok
        assert sorted(c.value for c in result.data) == ["A", "B", "C"]
        assert len(await _audit_rows(session, business_id, "create-category")) == 3

    async def test_empty_batch_is_missing_input(self, session, owner, business_id):
        result = await CategoryRepository(session).upsert_many(business_id, [], owner.id)
        assert result.error is ErrorCode.MISSING_INPUT

    async def test_row_for_another_business_rejects_batch(self, session, owner, business_id, make_business):
        _, other = await make_business("other@example.com", name="Other Shop")
        other_id = other.id
        rows = [
            CategoryCreate(business_id=business_id, value="Mine"),
            CategoryCreate(business_id=other_id, value="Theirs"),
        ]

        result = await CategoryRepository(session).upsert_many(business_id, rows, owner.id)

        assert result.error is ErrorCode.MISSING_INPUT
        assert await _category_count(session, business_id) == 0
        assert await _category_count(session, other_id) == 0

    async def test_one_invalid_row_aborts_whole_batch(self, session, owner, business_id):
        rows = [CategoryCreate(value="Valid"), CategoryCreate(value=""), CategoryCreate(value="Also valid")]

        result = await CategoryRepository(session).upsert_many(business_id, rows, owner.id)

        assert result.error is ErrorCode.MISSING_INPUT
        assert await _category_count(session, business_id) == 0
        assert await _audit_rows(session, business_id, "create-category") == []


class TestUpdateAndRemove:
    async def test_update_stamps_updated_at_and_audits_changes(self, session, owner, business_id):
        repo = CategoryRepository(session)
        created = (await repo.create(CategoryCreate(business_id=business_id, value="Old"), owner.id)).data
        stamped = created.updated_at

        result = await repo.update(created.id, business_id, owner.id, {"value": "New"})

        assert result.is_ok
        assert result.data.value == "New"
        assert ensure_aware(result.data.updated_at) >= ensure_aware(stamped)
        audit = (await _audit_rows(session, business_id, "update-category"))[0]
        assert audit.changes == {"value": "New"}

    async def test_update_cannot_blank_value(self, session, owner, business_id):
        repo = CategoryRepository(session)
        created = (await repo.create(CategoryCreate(business_id=business_id, value="Keep"), owner.id)).data

        result = await repo.update(created.id, business_id, owner.id, {"value": ""})

        assert result.error is ErrorCode.MISSING_INPUT

    async def test_update_ignores_immutable_columns(self, session, owner, business_id):
        repo = CategoryRepository(session)
        created = (await repo.create(CategoryCreate(business_id=business_id, value="Pinned"), owner.id)).data

        result = await repo.update(created.id, business_id, owner.id, {"business_id": owner.id})

        assert result.error is ErrorCode.MISSING_INPUT

    async def test_other_tenant_cannot_update_or_remove(self, session, owner, business_id, make_business):
        intruder, other = await make_business("intruder@example.com", name="Intruder Inc")
        intruder_id, other_id = intruder.id, other.id
        repo = CategoryRepository(session)
        created = (await repo.create(CategoryCreate(business_id=business_id, value="Private"), owner.id)).data
        category_id = created.id

        # A failed call rolls the session back and expires loaded rows; use plain ids from here on.
        updated = await repo.update(category_id, other_id, intruder_id, {"value": "Hacked"})
        removed = await repo.remove(category_id, other_id, intruder_id)

        assert updated.error is ErrorCode.NOT_FOUND
        assert removed.error is ErrorCode.NOT_FOUND
        assert (await repo.get_by_id(category_id, business_id)).data.value == "Private"

    async def test_remove_audits_previous_snapshot(self, session, owner, business_id):
        repo = CategoryRepository(session)
        created = (await repo.create(CategoryCreate(business_id=business_id, value="Gone"), owner.id)).data

        result = await repo.remove(created.id, business_id, owner.id)

        assert result.is_ok
        assert (await repo.get_by_id(created.id, business_id)).error is ErrorCode.NOT_FOUND
        audit = (await _audit_rows(session, business_id, "delete-category"))[0]
        assert audit.changes["value"] == "Gone"
        assert audit.changes["id"] == str(created.id)


class TestCachedReads:
    async def test_mutation_revalidates_cached_list(self, session, cache, owner, business_id):
        repo = CategoryRepository(session, cache)

        first = await repo.get_all_cached(business_id)
        assert first.is_ok and first.data == []

        await repo.create(CategoryCreate(business_id=business_id, value="Fresh"), owner.id)
        second = await repo.get_all_cached(business_id)

        assert [c.value for c in second.data] == ["Fresh"]

    async def test_repeated_read_returns_cached_envelope(self, session, cache, owner, business_id):
        repo = CategoryRepository(session, cache)
        await repo.create(CategoryCreate(business_id=business_id, value="Stable"), owner.id)

        first = await repo.get_all_cached(business_id)
        second = await repo.get_all_cached(business_id)

        assert second is first

    async def test_cache_entries_do_not_cross_tenants(self, session, cache, owner, business_id, make_business):
        other_owner, other = await make_business("second@example.com", name="Second")
        repo = CategoryRepository(session, cache)
        await repo.create(CategoryCreate(business_id=business_id, value="Ours"), owner.id)

        ours = await repo.get_all_cached(business_id)
        theirs = await repo.get_all_cached(other.id)

        assert [c.value for c in ours.data] == ["Ours"]
        assert theirs.data == []
