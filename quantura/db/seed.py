"""
Database seeding utilities for a demo tenant.

Seeds:
- Demo owner account (owner@example.com / changeme)
- Demo business owned by that account
- A handful of product categories
- One warehouse

Everything goes through the repositories, so the seeded rows carry audit
entries like any other mutation. Re-running is a no-op once the owner exists.

Usage:
  python -m quantura.db.run_migrations upgrade head
  python -m quantura.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from quantura.core.security import get_password_hash
from quantura.repositories.business import BusinessRepository
from quantura.repositories.category import CategoryRepository
from quantura.repositories.inventory import InventoryRepository
from quantura.repositories.security import UserRepository
from quantura.schemas.business import BusinessCreate
from quantura.schemas.catalog import CategoryCreate
from quantura.schemas.inventory import WarehouseCreate

from .session import get_async_session

logger = logging.getLogger(__name__)

DEMO_OWNER_EMAIL = "owner@example.com"
DEMO_OWNER_PASSWORD = "changeme"
DEMO_BUSINESS_NAME = "Quantura Demo Store"
DEMO_CATEGORIES: List[str] = ["Beverages", "Snacks", "Household", "Stationery"]


# PUBLIC_INTERFACE
async def seed_all() -> None:
    """Seed the demo owner, business, categories and warehouse."""
    async for session in get_async_session():
        await seed_demo_business(session)


# PUBLIC_INTERFACE
async def seed_demo_business(session: AsyncSession) -> None:
    """
    Seed the demo tenant using an existing session.

    Raises RuntimeError when a repository step fails so startup logs the cause.
    """
    users = UserRepository(session)
    if await users.get_user_by_email(DEMO_OWNER_EMAIL) is not None:
        logger.info("Demo owner already present; skipping seed.")
        return

    owner = await users.register(
        email=DEMO_OWNER_EMAIL,
        hashed_password=get_password_hash(DEMO_OWNER_PASSWORD),
        name="Demo Owner",
    )
    _check("register demo owner", owner)

    business = await BusinessRepository(session).create(
        owner.data.id, BusinessCreate(name=DEMO_BUSINESS_NAME, currency="USD")
    )
    _check("create demo business", business)
    business_id = business.data.id

    categories = await CategoryRepository(session).upsert_many(
        business_id, [CategoryCreate(value=v) for v in DEMO_CATEGORIES], owner.data.id
    )
    _check("seed categories", categories)

    warehouse = await InventoryRepository(session).create_warehouse(
        business_id, owner.data.id, WarehouseCreate(name="Main", location="Front store")
    )
    _check("seed warehouse", warehouse)
    logger.info("Seeded demo business %s", business_id)


def _check(step: str, result) -> None:
    if not result.is_ok:
        raise RuntimeError(f"Seeding failed to {step}: {result.error.value}")


if __name__ == "__main__":
    asyncio.run(seed_all())
