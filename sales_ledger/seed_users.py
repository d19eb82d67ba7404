"""
Database seeding script for directory users.

Creates an admin and a customer in the local directory and prints a
bearer token for each, for development use.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from sales_ledger.app.core.config import settings
from sales_ledger.app.core.jwt import create_access_token
from sales_ledger.app.db.session import AsyncSessionLocal, engine, Base
from sales_ledger.app.domain.ledger.recorder import new_record_id
from sales_ledger.app.models.user import DirectoryUser
import sales_ledger.app.main  # noqa: F401  registers every model with Base


SEED_USERS = [
    {
        "username": "admin",
        "email": "admin@sales-ledger.example",
        "groups": [settings.admin_group_name],
        "attributes": {"name": "Ledger Admin", "email_verified": "true"},
    },
    {
        "username": "acme-ltd",
        "email": "accounts@acme.example",
        "groups": [],
        "attributes": {"name": "Acme Ltd", "custom:company": "Acme Ltd", "email_verified": "true"},
    },
]


async def seed_users():
    """
    Seed initial directory users.

    Creates:
    - 1 admin user (member of the admin group)
    - 1 customer user
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("Starting user seeding...")

        result = await db.execute(
            select(DirectoryUser).where(DirectoryUser.username == "admin")
        )
        if result.scalar_one_or_none():
            print("Admin user already exists, skipping seeding")
            return

        created = []
        for spec in SEED_USERS:
            user = DirectoryUser(sub=new_record_id(), **spec)
            db.add(user)
            created.append(user)
            print(f"Created user {user.username} (sub: {user.sub})")

        await db.commit()

        print("\nUser seeding completed. Development tokens:")
        for user in created:
            token = create_access_token(data={
                "sub": user.sub,
                "username": user.username,
                "email": user.email,
                "groups": user.groups,
            })
            print(f"  - {user.username}: {token}")


if __name__ == "__main__":
    asyncio.run(seed_users())
