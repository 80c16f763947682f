from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from quantura.core.cache import TaggedTTLCache


class BaseService:
    """
    Base class for services. Holds a session (and the read cache) for use
    across multiple repositories.

    Services should keep orchestration and side effects that happen after a
    commit, delegating data access to repositories.
    """

    def __init__(self, session: AsyncSession, cache: Optional[TaggedTTLCache] = None) -> None:
        self.session = session
        self.cache = cache
