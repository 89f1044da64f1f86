"""Populate the database with a demo owner and licenses asynchronously."""

import asyncio
from datetime import timedelta

from sqlalchemy import delete

from licensegate.clock import utcnow
from licensegate.db.session import DATABASE_URL, SessionLocal, engine, init_models
from licensegate.models.license import License, LicenseStatus
from licensegate.models.user import User

print(f"Using database: {DATABASE_URL}")


async def main() -> None:
    await init_models(engine)
    async with SessionLocal() as session:
        print("Clearing tables...")
        await session.execute(delete(License))
        await session.execute(delete(User))

        print("Adding owner...")
        owner = User(email="owner@example.com", display_name="Demo Owner")
        session.add(owner)
        await session.commit()

        print("Issuing licenses...")
        now = utcnow()
        session.add_all(
            [
                License(key="ABCD-1234-EFGH", product_name="Starter Theme", owner_id=owner.id),
                License(
                    key="WXYZ-5678-JKLM",
                    product_name="Pro Theme",
                    owner_id=owner.id,
                    expires_at=now + timedelta(days=365),
                ),
                License(
                    key="OLD0-0000-LAPS",
                    product_name="Starter Theme",
                    status=LicenseStatus.ACTIVE.value,
                    domain="lapsed.example",
                    activated_at=now - timedelta(days=400),
                    expires_at=now - timedelta(days=35),
                ),
            ]
        )
        await session.commit()

        print("Database seeded.")


if __name__ == "__main__":
    asyncio.run(main())
