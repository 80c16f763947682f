from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from quantura.actions.factory import ActionContext
from quantura.api.responses import envelope_response, error_response
from quantura.core.deps import get_action_context
from quantura.core.errors import ErrorCode
from quantura.core.result import Result
from quantura.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from quantura.db.session import get_async_session
from quantura.repositories.security import UserRepository
from quantura.schemas.auth import (
    Message,
    PrincipalRead,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
    UserRead,
)
from quantura.schemas.common import Envelope

router = APIRouter(prefix="/auth", tags=["Auth"])


def _issue_tokens(user) -> TokenPair:
    business_id = str(user.business_id) if user.business_id else None
    access = create_access_token(subject=str(user.id), business_id=business_id)
    refresh = create_refresh_token(subject=str(user.id))
    return TokenPair(access_token=access, refresh_token=refresh)


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=Envelope[UserRead],
    status_code=201,
    summary="Register user",
    description="Create an account. The new user belongs to no business until they create or join one.",
)
async def register_user(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Register a new user."""
    repo = UserRepository(session)
    result = await repo.register(
        email=payload.email, hashed_password=get_password_hash(payload.password), name=payload.name
    )
    return envelope_response(result, UserRead, status_code=201)


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=TokenPair,
    summary="Login",
    description="Authenticate using OAuth2 password form and receive access/refresh tokens.",
)
async def login_for_tokens(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_async_session),
) -> TokenPair:
    """Authenticate user and issue tokens."""
    repo = UserRepository(session)
    user = await repo.get_user_by_email(form_data.username)
    if not user or not user.hashed_password or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User is inactive")
    return _issue_tokens(user)


# PUBLIC_INTERFACE
@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Refresh access token",
    description="Issue a new access token from a valid refresh token.",
)
async def refresh_token(
    payload: RefreshRequest,
    session: AsyncSession = Depends(get_async_session),
) -> TokenPair:
    """Validate refresh token and issue a new access token pair."""
    try:
        claims: Dict[str, Any] = decode_token(payload.refresh_token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    if claims.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid token type")

    try:
        user_id = UUID(str(claims.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    user = await UserRepository(session).get_user_by_id(user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _issue_tokens(user)


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=Message,
    summary="Logout",
    description="Stateless logout. Clients should discard tokens. No server state maintained.",
)
async def logout() -> Message:
    """Acknowledge logout in stateless JWT systems."""
    return Message(message="Logged out")


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=Envelope[PrincipalRead],
    summary="Read current user",
    description="Return the authenticated principal with its business, role and permissions.",
)
async def read_current_user(ctx: ActionContext = Depends(get_action_context)):
    """Return the current principal."""
    principal = await ctx.resolve_principal()
    if principal is None:
        return error_response(ErrorCode.UNAUTHORIZED, status_code=status.HTTP_401_UNAUTHORIZED)
    data = PrincipalRead(
        id=principal.id,
        email=principal.email,
        name=principal.name,
        business_id=principal.business_id,
        role=principal.role,
        permissions=sorted(p.value for p in principal.permissions),
    )
    return envelope_response(Result.ok(data), PrincipalRead)
