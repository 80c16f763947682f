from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from quantura.actions.factory import ActionContext, Principal, principal_from_token
from quantura.core.cache import TaggedTTLCache
from quantura.core.settings import AppSettings, get_app_settings
from quantura.db.session import get_async_session
from quantura.services.notifications import Mailer, get_mailer

logger = logging.getLogger(__name__)

# OAuth2 bearer (used by docs). Missing tokens are not rejected here: the
# action wrapper decides, so public actions stay reachable.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

_CACHE: TaggedTTLCache | None = None
_MAILER: Mailer | None = None


# PUBLIC_INTERFACE
def get_settings_dep() -> AppSettings:
    """Application settings for dependency injection."""
    return get_app_settings()


# PUBLIC_INTERFACE
def get_cache() -> TaggedTTLCache:
    """Return the process-wide read cache."""
    global _CACHE
    if _CACHE is None:
        settings = get_app_settings()
        _CACHE = TaggedTTLCache(
            default_ttl=settings.CACHE_TTL_SECONDS, max_size=settings.CACHE_MAX_ENTRIES
        )
    return _CACHE


# PUBLIC_INTERFACE
def get_app_mailer() -> Mailer:
    """Return the process-wide mailer chosen by MAIL_BACKEND."""
    global _MAILER
    if _MAILER is None:
        _MAILER = get_mailer(get_app_settings())
    return _MAILER


# PUBLIC_INTERFACE
async def get_action_context(
    session: AsyncSession = Depends(get_async_session),
    token: Optional[str] = Depends(oauth2_scheme),
    cache: TaggedTTLCache = Depends(get_cache),
    mailer: Mailer = Depends(get_app_mailer),
    settings: AppSettings = Depends(get_settings_dep),
) -> ActionContext:
    """
    Build the ActionContext for one request.

    The principal is resolved lazily from the bearer token, at most once per request.
    """
    resolved: dict[str, Optional[Principal]] = {}

    async def resolve_principal() -> Optional[Principal]:
        if "principal" not in resolved:
            resolved["principal"] = await principal_from_token(session, token)
        return resolved["principal"]

    return ActionContext(
        session=session,
        cache=cache,
        mailer=mailer,
        settings=settings,
        resolve_principal=resolve_principal,
    )
