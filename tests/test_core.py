"""
Core building blocks: the result envelope, error codes, the role map and the
tagged TTL cache.
"""

import asyncio

import pytest

from quantura.core.cache import TaggedTTLCache, cache_key, tenant_tag
from quantura.core.errors import ERROR_STATUS, ErrorCode, MissingInputError, RepositoryError, describe
from quantura.core.permissions import (
    ROLE_PERMISSIONS,
    UNAFFILIATED_PERMISSIONS,
    Permission,
    Role,
    permissions_for,
)
from quantura.core.result import Result


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestResult:
    """A result carries exactly one of data and error."""

    def test_ok_and_fail(self):
        ok = Result.ok({"id": 1})
        failed = Result.fail(ErrorCode.NOT_FOUND)

        assert ok.is_ok and ok.error is None
        assert not failed.is_ok and failed.data is None
        assert failed.as_dict() == {"data": None, "error": "NOT_FOUND"}

    def test_both_sides_rejected(self):
        with pytest.raises(ValueError):
            Result(data=1, error=ErrorCode.FAILED_REQUEST)

    def test_neither_side_rejected(self):
        with pytest.raises(ValueError):
            Result()

    def test_empty_list_is_valid_data(self):
        assert Result.ok([]).is_ok


class TestErrors:
    def test_every_code_has_status_and_message(self):
        for code in ErrorCode:
            assert code in ERROR_STATUS
            assert describe(code)

    def test_repository_error_codes(self):
        assert MissingInputError().code is ErrorCode.MISSING_INPUT
        assert RepositoryError(ErrorCode.INSUFFICIENT_STOCK).code is ErrorCode.INSUFFICIENT_STOCK
        assert RepositoryError().code is ErrorCode.FAILED_REQUEST


class TestPermissions:
    def test_owner_has_everything(self):
        assert ROLE_PERMISSIONS[Role.OWNER] == frozenset(Permission)

    def test_admin_cannot_delete_business(self):
        admin = ROLE_PERMISSIONS[Role.ADMIN]
        assert Permission.BUSINESS_DELETE not in admin
        assert Permission.INVITATION_CREATE in admin

    def test_member_views_and_sells_only(self):
        member = ROLE_PERMISSIONS[Role.MEMBER]
        assert Permission.CATEGORY_VIEW in member
        assert Permission.TRANSACTION_CREATE in member
        assert Permission.CATEGORY_CREATE not in member
        assert Permission.EXPENSE_DELETE not in member

    def test_manager_cannot_delete_or_invite(self):
        manager = ROLE_PERMISSIONS[Role.MANAGER]
        assert Permission.SUPPLIER_UPDATE in manager
        assert Permission.SUPPLIER_DELETE not in manager
        assert Permission.INVITATION_CREATE not in manager

    def test_unaffiliated_user_may_only_create_a_business(self):
        assert permissions_for(None, None) == UNAFFILIATED_PERMISSIONS
        # A stale role without a business grants nothing more.
        assert permissions_for("OWNER", None) == UNAFFILIATED_PERMISSIONS

    def test_unknown_role_grants_nothing(self):
        assert permissions_for("JANITOR", "b1") == frozenset()


class TestTaggedTTLCache:
    def test_keys_and_tags_include_tenant(self):
        assert cache_key("categories", "b1", "all") == "categories:b1:all"
        assert cache_key("categories", "b1") == "categories:b1"
        assert tenant_tag("categories", "b1") != tenant_tag("categories", "b2")

    def test_entries_expire(self):
        clock = FakeClock()
        cache = TaggedTTLCache(default_ttl=10, clock=clock)
        cache.set("k", "v")
        assert cache.get("k") == "v"
        clock.now += 10
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_invalidate_by_tag(self):
        cache = TaggedTTLCache()
        cache.set("a", 1, tags=["categories:b1"])
        cache.set("b", 2, tags=["categories:b1", "business:b1"])
        cache.set("c", 3, tags=["categories:b2"])

        assert cache.invalidate_tags("categories:b1") == 2
        assert cache.get("a") is None and cache.get("b") is None
        assert cache.get("c") == 3

    def test_zero_ttl_disables_caching(self):
        cache = TaggedTTLCache(default_ttl=0)
        cache.set("k", "v")
        assert cache.get("k") is None

    async def test_get_or_load_shares_concurrent_misses(self):
        cache = TaggedTTLCache()
        calls = 0

        async def loader():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return Result.ok("value")

        results = await asyncio.gather(*(cache.get_or_load("k", loader) for _ in range(5)))
        assert calls == 1
        assert all(r.data == "value" for r in results)

    def test_least_recently_used_entry_is_evicted(self):
        cache = TaggedTTLCache(max_size=2)
        cache.set("a", 1, tags=["t"])
        cache.set("b", 2)
        assert cache.get("a") == 1
        cache.set("c", 3)

        assert len(cache) == 2
        assert cache.get("b") is None
        assert cache.get("a") == 1 and cache.get("c") == 3

    def test_expired_entries_are_swept_before_lru(self):
        clock = FakeClock()
        cache = TaggedTTLCache(default_ttl=10, clock=clock, max_size=2)
        cache.set("old", 1, ttl=1)
        cache.set("fresh", 2)
        clock.now += 5
        cache.set("new", 3)

        assert cache.get("fresh") == 2 and cache.get("new") == 3
        assert cache.purge_expired() == 0

    async def test_key_locks_are_released_after_loads(self):
        cache = TaggedTTLCache(max_size=10)

        async def loader():
            return Result.ok("value")

        for day in range(100):
            await cache.get_or_load(cache_key("statistics", "b1", "summary", day), loader, tags=["t"])
        cache.invalidate_tags("t")

        assert len(cache) == 0
        assert cache._locks == {}

    async def test_concurrent_waiters_keep_the_lock_until_done(self):
        cache = TaggedTTLCache()
        release = asyncio.Event()

        async def loader():
            await release.wait()
            return Result.ok("value")

        tasks = [asyncio.create_task(cache.get_or_load("k", loader)) for _ in range(3)]
        await asyncio.sleep(0)
        assert cache._locks["k"][1] == 3
        release.set()
        await asyncio.gather(*tasks)

        assert cache._locks == {}

    async def test_failed_results_are_not_cached(self):
        cache = TaggedTTLCache()
        calls = 0

        async def loader():
            nonlocal calls
            calls += 1
            return Result.fail(ErrorCode.NOT_FOUND)

        for _ in range(2):
            await cache.get_or_load("k", loader, should_cache=lambda r: r.is_ok)
        assert calls == 2
