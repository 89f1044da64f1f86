"""Public read-only lookups: "is this domain licensed?" and key status."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from licensegate.clock import isoformat
from licensegate.errors import ValidationError
from licensegate.models.license import License, LicenseStatus
from licensegate.services import license_service
from licensegate.services.validation import validate_domain, validate_key

NOT_FOUND_DOMAIN = "No license found for this domain"
NOT_FOUND_KEY = "License key not found"


@dataclass
class LookupResult:
    found: bool
    verified: bool = False
    license: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.found:
            return {"success": False, "error": self.error}
        return {"success": True, "verified": self.verified, "license": self.license}


def is_verified(license: License, now: datetime) -> bool:
    return license.status == LicenseStatus.ACTIVE.value and not license.is_expired(now)


def project_license(license: License, now: datetime) -> Dict[str, Any]:
    """Public view of a license; the key itself is never included."""
    owner = license.owner
    return {
        "productName": license.product_name,
        "status": license.display_status(now),
        "domain": license.domain,
        "ownerName": (owner.display_name or owner.email) if owner else None,
        "expiresAt": isoformat(license.expires_at),
        "activatedAt": isoformat(license.activated_at),
        "createdAt": isoformat(license.created_at),
    }


async def verify_domain(db: AsyncSession, raw_domain: str, now: datetime) -> LookupResult:
    try:
        domain = validate_domain(raw_domain)
    except ValidationError:
        return LookupResult(found=False, error=NOT_FOUND_DOMAIN)

    license = await license_service.get_license_by_domain(db, domain)
    if license is None:
        return LookupResult(found=False, error=NOT_FOUND_DOMAIN)
    return LookupResult(
        found=True,
        verified=is_verified(license, now),
        license=project_license(license, now),
    )


async def check_license_key(db: AsyncSession, raw_key: str, now: datetime) -> LookupResult:
    """Status lookup for someone who holds the key."""
    try:
        key = validate_key(raw_key)
    except ValidationError:
        return LookupResult(found=False, error=NOT_FOUND_KEY)

    license = await license_service.get_license_by_key(db, key)
    if license is None:
        return LookupResult(found=False, error=NOT_FOUND_KEY)
    data = project_license(license, now)
    data["key"] = license.key
    return LookupResult(found=True, verified=is_verified(license, now), license=data)
