import hmac
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import (
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from licensegate.api.license_router import get_db
from licensegate.clock import isoformat
from licensegate.errors import (
    LicenseNotFoundError,
    LicenseRevokedError,
    ValidationError,
)
from licensegate.models.license import License
from licensegate.services import license_service
from licensegate.services.validation import validate_key

admin_router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class CreateLicenseRequest(BaseModel):
    key: str
    product_name: str
    owner_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    notes: Optional[str] = None


class UpdateLicenseRequest(BaseModel):
    expires_at: Optional[datetime] = None
    notes: Optional[str] = None


def verify_admin(request: Request, x_admin_token: Optional[str] = Header(None)):
    expected = request.app.state.settings.admin_token
    if not expected:
        raise HTTPException(
            status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="Admin API is disabled"
        )
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def serialize(license: License) -> dict:
    return {
        "key": license.key,
        "productName": license.product_name,
        "status": license.status,
        "domain": license.domain,
        "ownerId": license.owner_id,
        "notes": license.notes,
        "expiresAt": isoformat(license.expires_at),
        "activatedAt": isoformat(license.activated_at),
        "createdAt": isoformat(license.created_at),
        "updatedAt": isoformat(license.updated_at),
    }


@admin_router.post(
    "/licenses", status_code=HTTP_201_CREATED, dependencies=[Depends(verify_admin)]
)
async def create_license(payload: CreateLicenseRequest, db: AsyncSession = Depends(get_db)):
    try:
        key = validate_key(payload.key)
    except ValidationError as exc:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(exc))

    expires_at = to_naive_utc(payload.expires_at)

    try:
        license = await license_service.create_license(
            db,
            key=key,
            product_name=payload.product_name,
            owner_id=payload.owner_id,
            expires_at=expires_at,
            notes=payload.notes,
        )
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=HTTP_409_CONFLICT, detail="License key already exists")

    logger.info("Issued license %s for %s", license.key, license.product_name)
    return serialize(license)


@admin_router.post("/licenses/{key}/revoke", dependencies=[Depends(verify_admin)])
async def revoke_license(key: str, db: AsyncSession = Depends(get_db)):
    try:
        license = await license_service.revoke_license(db, key)
    except LicenseNotFoundError:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="License not found")
    logger.info("Revoked license %s", key)
    return serialize(license)


@admin_router.post("/licenses/{key}/reset-domain", dependencies=[Depends(verify_admin)])
async def reset_domain(key: str, db: AsyncSession = Depends(get_db)):
    try:
        license = await license_service.reset_domain(db, key)
    except LicenseNotFoundError:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="License not found")
    except LicenseRevokedError:
        raise HTTPException(status_code=HTTP_409_CONFLICT, detail="License is revoked")
    logger.info("Reset domain binding of license %s", key)
    return serialize(license)


@admin_router.patch("/licenses/{key}", dependencies=[Depends(verify_admin)])
async def update_license(
    key: str, payload: UpdateLicenseRequest, db: AsyncSession = Depends(get_db)
):
    changes = {}
    # only fields present in the body are edited; explicit null clears them
    if "expires_at" in payload.model_fields_set:
        changes["expires_at"] = to_naive_utc(payload.expires_at)
    if "notes" in payload.model_fields_set:
        changes["notes"] = payload.notes
    try:
        license = await license_service.update_license(db, key, **changes)
    except LicenseNotFoundError:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="License not found")
    logger.info("Updated license %s (%s)", key, ", ".join(sorted(changes)) or "no changes")
    return serialize(license)
