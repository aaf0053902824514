"""
Database seeding script for initial users and the demo chart of accounts.

Creates ADMIN, ACCOUNTANT and MANAGER users plus the Cash, Accounts
Receivable, Revenue and Expenses accounts the reports expect.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cogniflow.app.db.session import AsyncSessionLocal, engine, Base
from cogniflow.app.models.user import User
from cogniflow.app.models.enums import UserRole
from cogniflow.app.models.finance_enums import AccountType
from cogniflow.app.core.config import settings
from cogniflow.app.core.exceptions import DuplicateNameError
from cogniflow.app.core.security import get_password_hash
from cogniflow.app.services.ledger import LedgerService
import cogniflow.app.main  # noqa: F401  registers every model with Base
from sqlalchemy import select

SEED_USERS = [
    ("admin", "admin@cogniflow.local", "admin123", UserRole.ADMIN),
    ("accountant", "accountant@cogniflow.local", "accountant123", UserRole.ACCOUNTANT),
    ("manager", "manager@cogniflow.local", "manager123", UserRole.MANAGER),
]

SEED_ACCOUNTS = [
    ("Cash", AccountType.ASSET),
    ("Accounts Receivable", AccountType.ASSET),
    ("Accounts Payable", AccountType.LIABILITY),
    ("Owner Equity", AccountType.EQUITY),
    (settings.revenue_account_name, AccountType.REVENUE),
    (settings.expense_account_name, AccountType.EXPENSE),
]


async def seed_users(db) -> None:
    for username, email, password, role in SEED_USERS:
        result = await db.execute(select(User).where(User.username == username))
        if result.scalar_one_or_none():
            print(f"ℹ️  {role.value} user '{username}' already exists, skipping")
            continue
        db.add(User(
            email=email,
            username=username,
            hashed_password=get_password_hash(password),
            role=role,
            is_active=True
        ))
        print(f"✅ Created {role.value} user (username: {username}, password: {password})")
    await db.commit()


async def seed_accounts(db) -> None:
    for name, account_type in SEED_ACCOUNTS:
        try:
            await LedgerService.create_account(db, name=name, type=account_type, currency=settings.default_currency)
            print(f"✅ Created {account_type.value} account '{name}'")
        except DuplicateNameError:
            print(f"ℹ️  Account '{name}' already exists, skipping")


async def main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")
        await seed_users(db)
        await seed_accounts(db)

    print("\n🎉 Seeding completed successfully!")
    print("\nNote: USER role accounts register via POST /v1/auth/register")


if __name__ == "__main__":
    asyncio.run(main())
