"""
Action layer: principal resolution, permission checks and the guarantee that
callers always get an envelope back.
"""

from dataclasses import replace

from sqlalchemy import select

from quantura.actions import business as business_actions
from quantura.actions import categories as category_actions
from quantura.actions import expenses as expense_actions
from quantura.actions import inventory as inventory_actions
from quantura.actions import invitations as invitation_actions
from quantura.actions.factory import Principal, create_protected_action, principal_from_token
from quantura.core.errors import ErrorCode
from quantura.core.permissions import ROLE_PERMISSIONS, Permission, Role
from quantura.core.security import create_access_token, create_refresh_token
from quantura.db.models.catalog import Category
from quantura.schemas.business import BusinessCreate
from quantura.schemas.catalog import CategoryCreate
from quantura.schemas.expense import ExpenseCreate
from quantura.schemas.invitation import InvitationCreate
from quantura.schemas.inventory import WarehouseCreate


def _as_role(principal: Principal, role: Role) -> Principal:
    return replace(principal, role=role.value, permissions=ROLE_PERMISSIONS[role])


class TestAuthorization:
    async def test_anonymous_caller_is_unauthorized(self, make_ctx):
        result = await category_actions.get_categories(make_ctx(None))
        assert result.error is ErrorCode.UNAUTHORIZED

    async def test_member_can_view_but_not_create(self, owner, make_ctx):
        member = _as_role(Principal.from_user(owner), Role.MEMBER)
        ctx = make_ctx(member)

        listed = await category_actions.get_categories(ctx)
        created = await category_actions.create_category(ctx, CategoryCreate(value="Nope"))

        assert listed.is_ok
        assert created.error is ErrorCode.UNAUTHORIZED

    async def test_unaffiliated_user_can_only_create_a_business(self, make_user, make_ctx):
        user = await make_user("solo@example.com")
        ctx = make_ctx(Principal.from_user(user))

        denied = await category_actions.get_categories(ctx)
        created = await business_actions.create_business(ctx, BusinessCreate(name="Solo Shop"))

        assert denied.error is ErrorCode.UNAUTHORIZED
        assert created.data.name == "Solo Shop"

    async def test_failing_principal_resolution_is_unauthorized(self, make_ctx):
        ctx = make_ctx(None)

        async def boom():
            raise RuntimeError("token store down")

        ctx.resolve_principal = boom
        result = await category_actions.get_categories(ctx)

        assert result.error is ErrorCode.UNAUTHORIZED

    async def test_handler_exception_becomes_failed_request(self, owner_ctx):
        async def explode(ctx, principal):
            raise RuntimeError("unexpected")

        action = create_protected_action(Permission.CATEGORY_VIEW, explode)

        result = await action(owner_ctx)

        assert result.error is ErrorCode.FAILED_REQUEST


class TestTenantForcing:
    async def test_category_lands_in_callers_business(self, session, owner_ctx, business_id, make_business):
        _, other = await make_business("other@example.com", name="Other")

        result = await category_actions.create_category(
            owner_ctx, CategoryCreate(business_id=other.id, value="Redirected")
        )

        assert result.data.business_id == business_id
        rows = (await session.execute(select(Category.business_id))).scalars().all()
        assert rows == [business_id]

    async def test_expense_is_attributed_to_caller(self, owner, owner_ctx, business_id):
        result = await expense_actions.create_expense(owner_ctx, ExpenseCreate(amount="9.99"))

        assert result.data.business_id == business_id
        assert result.data.created_by == owner.id

    async def test_owner_reads_current_business_detail(self, owner_ctx, business_id):
        await inventory_actions.create_warehouse(owner_ctx, WarehouseCreate(name="Main"))

        result = await business_actions.get_current_business(owner_ctx)

        assert result.data.id == business_id
        assert [w.name for w in result.data.warehouses] == ["Main"]


class TestInvitationActions:
    async def test_invite_emails_the_link(self, owner_ctx, mailer):
        result = await invitation_actions.create_invitation(owner_ctx, InvitationCreate(email="guest@example.com"))

        assert result.is_ok
        [message] = mailer.outbox
        assert message.to == "guest@example.com"
        assert result.data.code in message.html
        assert "Acme Store" in message.subject

    async def test_public_respond_needs_no_principal(self, owner_ctx, make_ctx):
        code = (
            await invitation_actions.create_invitation(owner_ctx, InvitationCreate(email="guest@example.com"))
        ).data.code

        result = await invitation_actions.respond_to_invitation(make_ctx(None), code, "decline")

        assert result.data["status"] == "declined"


class TestPrincipalFromToken:
    async def test_access_token_resolves_current_membership(self, session, owner, business_id):
        token = create_access_token(subject=str(owner.id))

        principal = await principal_from_token(session, token)

        assert principal.id == owner.id
        assert principal.business_id == business_id
        assert principal.role == "OWNER"
        assert principal.can(Permission.BUSINESS_DELETE)

    async def test_refresh_and_garbage_tokens_resolve_to_none(self, session, owner):
        assert await principal_from_token(session, create_refresh_token(subject=str(owner.id))) is None
        assert await principal_from_token(session, "not-a-jwt") is None
        assert await principal_from_token(session, None) is None
