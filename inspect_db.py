"""Print every license with its binding and read-time status."""

import asyncio
from sqlalchemy import select

from licensegate.clock import utcnow
from licensegate.db.session import DATABASE_URL, SessionLocal
from licensegate.models.license import License


async def main() -> None:
    print(f"Database: {DATABASE_URL}")
    now = utcnow()
    async with SessionLocal() as db:
        licenses = (await db.execute(select(License).order_by(License.id))).scalars().all()
        for lic in licenses:
            print(
                f"{lic.key:<24} {lic.display_status(now):<8} "
                f"{lic.domain or '-':<32} activated={lic.activated_at or '-'} "
                f"expires={lic.expires_at or '-'}"
            )


if __name__ == "__main__":
    asyncio.run(main())
