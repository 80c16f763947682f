from __future__ import annotations

import functools
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Union
from uuid import UUID

from pydantic_core import to_jsonable_python
from sqlalchemy import Executable, inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

from quantura.core.cache import TaggedTTLCache, tenant_tag
from quantura.core.clock import utcnow
from quantura.core.errors import ErrorCode, MissingInputError, RepositoryError
from quantura.core.result import Result
from quantura.db.models.audit import AuditLog

logger = logging.getLogger(__name__)

# Columns a partial update may never touch.
_IMMUTABLE_COLUMNS = frozenset({"id", "business_id", "created_at", "updated_at", "created_by"})


class Change(NamedTuple):
    """One audited mutation: the affected row and what to record about it."""
    record: Any
    record_id: UUID
    business_id: UUID
    changes: Any


Mutation = Callable[[], Awaitable[Union[Change, List[Change]]]]


# PUBLIC_INTERFACE
def snapshot(row: Any) -> dict:
    """JSON-safe dict of a mapped row's column values."""
    mapper = sa_inspect(row).mapper
    return to_jsonable_python({attr.key: getattr(row, attr.key) for attr in mapper.column_attrs})


# PUBLIC_INTERFACE
def is_blank(value: Any) -> bool:
    """True for None and for strings that are empty once stripped."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


# PUBLIC_INTERFACE
def returns_result(failure_message: str):
    """
    Turn a repository coroutine into a boundary that always returns a Result.

    RepositoryError subclasses map to their own code; anything else is logged
    and reported as FAILED_REQUEST. The session is rolled back on any failure.
    """

    def decorator(func: Callable[..., Awaitable[Result]]) -> Callable[..., Awaitable[Result]]:
        @functools.wraps(func)
        async def wrapper(self: "BaseRepository", *args: Any, **kwargs: Any) -> Result:
            try:
                return await func(self, *args, **kwargs)
            except RepositoryError as exc:
                await self._safe_rollback()
                return Result.fail(exc.code)
            except Exception:
                logger.exception(failure_message)
                await self._safe_rollback()
                return Result.fail(ErrorCode.FAILED_REQUEST)

        return wrapper

    return decorator


class BaseRepository:
    """
    Base class for repositories providing common helpers.

    Subclasses set `model_name` (the entity kind written to the audit trail)
    and `cache_namespace` (the tag family invalidated after their mutations).
    Tenant scoping is explicit: every tenant-scoped query filters on business_id.
    """

    model_name: str = ""
    cache_namespace: str = ""

    def __init__(self, session: AsyncSession, cache: Optional[TaggedTTLCache] = None) -> None:
        self.session = session
        self.cache = cache

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute a SQLAlchemy statement."""
        return await self.session.execute(statement, params or {})

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return scalars."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def add(self, entity: Any) -> None:
        """Add a single entity to session."""
        self.session.add(entity)

    async def add_all(self, entities: Iterable[Any]) -> None:
        """Add multiple entities to session."""
        self.session.add_all(list(entities))

    @property
    def dialect_name(self) -> str:
        return self.session.bind.dialect.name

    # PUBLIC_INTERFACE
    async def mutate_with_audit(
        self,
        *,
        action: str,
        performed_by: Optional[UUID],
        mutation: Mutation,
        model: Optional[str] = None,
    ) -> Any:
        """
        Run `mutation` and write one audit row per Change it reports, atomically.

        The mutation and its audit rows commit together; if either raises, the
        transaction is rolled back and the exception propagates to the
        returns_result boundary. Returns the mutated record, or the list of
        records when the mutation reports several changes.
        """
        try:
            outcome = await mutation()
            changes: Sequence[Change] = outcome if isinstance(outcome, list) else [outcome]
            for change in changes:
                await self.add(self._audit_entry(change, model or self.model_name, action, performed_by))
            await self.session.flush()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        if isinstance(outcome, list):
            return [c.record for c in changes]
        return outcome.record

    def _audit_entry(
        self, change: Change, model: str, action: str, performed_by: Optional[UUID]
    ) -> AuditLog:
        return AuditLog(
            business_id=change.business_id,
            model=model,
            record_id=change.record_id,
            action=action,
            changes=to_jsonable_python(change.changes),
            performed_by=performed_by,
        )

    def apply_updates(
        self,
        row: Any,
        updates: Dict[str, Any],
        *,
        required: Iterable[str] = (),
    ) -> Dict[str, Any]:
        """
        Apply a partial update to a loaded row and stamp `updated_at`.

        Only mapped, mutable columns are applied. Returns the applied values;
        raises MissingInputError when nothing applicable is left or a
        `required` column would become blank.
        """
        columns = {attr.key for attr in sa_inspect(row).mapper.column_attrs} - _IMMUTABLE_COLUMNS
        applied = {k: v for k, v in updates.items() if k in columns}
        if not applied:
            raise MissingInputError()
        for name in required:
            if name in applied and is_blank(applied[name]):
                raise MissingInputError()
        for key, value in applied.items():
            if isinstance(value, Enum):
                value = applied[key] = value.value
            setattr(row, key, value)
        if hasattr(row, "updated_at"):
            row.updated_at = utcnow()
        return applied

    # PUBLIC_INTERFACE
    def revalidate(self, business_id: Any, *namespaces: str, extra_tags: Iterable[str] = ()) -> None:
        """
        Invalidate cached reads of this tenant after a committed mutation.

        Failures are logged only; the committed mutation stands regardless.
        """
        if self.cache is None:
            return
        names = namespaces or (self.cache_namespace,)
        try:
            tags = [tenant_tag(ns, business_id) for ns in names]
            self.cache.invalidate_tags(*tags, *extra_tags)
        except Exception:
            logger.exception("Cache invalidation failed for business=%s tags=%s", business_id, names)

    # PUBLIC_INTERFACE
    async def cached(
        self,
        key: str,
        loader: Callable[[], Awaitable[Result]],
        *,
        tags: Iterable[str],
    ) -> Result:
        """Serve a read through the cache; only successful envelopes are stored."""
        if self.cache is None:
            return await loader()
        return await self.cache.get_or_load(
            key, loader, tags=list(tags), should_cache=lambda r: r.is_ok
        )

    async def _safe_rollback(self) -> None:
        try:
            await self.session.rollback()
        except Exception:
            logger.exception("Rollback failed")
