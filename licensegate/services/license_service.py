"""Operations for managing :class:`License` records asynchronously."""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from licensegate.clock import utcnow
from licensegate.errors import LicenseNotFoundError, LicenseRevokedError
from licensegate.models.license import BINDABLE_STATUSES, License, LicenseStatus


async def get_license_by_key(db: AsyncSession, key: str) -> Optional[License]:
    result = await db.execute(select(License).filter(License.key == key))
    return result.scalars().first()


async def get_license_by_domain(db: AsyncSession, domain: str) -> Optional[License]:
    """Return the license bound to ``domain``, most recently activated first."""
    result = await db.execute(
        select(License)
        .filter(License.domain == domain)
        .order_by(
            License.activated_at.is_(None),
            License.activated_at.desc(),
            License.id.desc(),
        )
        .limit(1)
    )
    return result.scalars().first()


async def bind_domain(db: AsyncSession, key: str, domain: str, now: datetime) -> bool:
    """Atomically bind ``domain`` to ``key`` if nothing else is bound.

    A single conditional UPDATE: it only matches while the license is
    unbound (or already bound to ``domain``), bindable and not expired, so
    of two concurrent callers at most one can attach a different domain.
    ``activated_at`` keeps its first value. Returns True when the row
    matched.
    """
    stmt = (
        update(License)
        .where(
            License.key == key,
            or_(License.domain.is_(None), License.domain == domain),
            License.status.in_(BINDABLE_STATUSES),
            or_(License.expires_at.is_(None), License.expires_at > now),
        )
        .values(
            domain=domain,
            status=LicenseStatus.ACTIVE.value,
            activated_at=func.coalesce(License.activated_at, now),
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount == 1


async def create_license(
    db: AsyncSession,
    key: str,
    product_name: str,
    owner_id: Optional[int] = None,
    expires_at: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> License:
    license = License(
        key=key,
        product_name=product_name,
        owner_id=owner_id,
        expires_at=expires_at,
        notes=notes,
        status=LicenseStatus.UNUSED.value,
    )
    db.add(license)
    await db.commit()
    await db.refresh(license)
    return license


async def revoke_license(db: AsyncSession, key: str) -> License:
    """Force a license into the terminal ``revoked`` state."""
    license = await get_license_by_key(db, key)
    if license is None:
        raise LicenseNotFoundError(f"License {key} not found")
    license.status = LicenseStatus.REVOKED.value
    license.updated_at = utcnow()
    await db.commit()
    await db.refresh(license)
    return license


async def reset_domain(db: AsyncSession, key: str) -> License:
    """Unbind the domain so the key can be activated elsewhere."""
    license = await get_license_by_key(db, key)
    if license is None:
        raise LicenseNotFoundError(f"License {key} not found")
    if license.status == LicenseStatus.REVOKED.value:
        raise LicenseRevokedError(f"License {key} is revoked")
    license.domain = None
    license.activated_at = None
    license.status = LicenseStatus.UNUSED.value
    license.updated_at = utcnow()
    await db.commit()
    await db.refresh(license)
    return license


_UNSET = object()


async def update_license(
    db: AsyncSession, key: str, expires_at=_UNSET, notes=_UNSET
) -> License:
    """Edit the admin-owned fields of a license; omitted fields are left alone.

    Passing ``expires_at=None`` clears the expiry. Key, domain and status are
    not editable here.
    """
    license = await get_license_by_key(db, key)
    if license is None:
        raise LicenseNotFoundError(f"License {key} not found")
    if expires_at is not _UNSET:
        license.expires_at = expires_at
    if notes is not _UNSET:
        license.notes = notes
    license.updated_at = utcnow()
    await db.commit()
    await db.refresh(license)
    return license
