import json
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from licensegate.clock import utcnow
from licensegate.services import verification_service

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_db(request: Request):
    async with request.app.state.session_factory() as db:
        yield db


@router.post("/activate")
async def activate(request: Request):
    """
    Activate a license key for a domain.
    Body:
    {
      "key": "ABCD-1234-EFGH",
      "domain": "https://www.example.com",
      "timestamp": 1760000000000,   # optional, epoch ms
      "signature": "<hex hmac>"     # optional
    }
    """
    service = request.app.state.activation_service
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None

    result = await service.activate_payload(body)
    return result.to_dict()


@router.get("/verify-domain/{domain:path}")
async def verify_domain(domain: str, db: AsyncSession = Depends(get_db)):
    try:
        result = await verification_service.verify_domain(db, domain, utcnow())
    except SQLAlchemyError:
        logger.exception("Domain verification lookup failed")
        return {"success": False, "error": "Internal server error"}
    return result.to_dict()


@router.get("/license/check/{key}")
async def check_license(key: str, db: AsyncSession = Depends(get_db)):
    try:
        result = await verification_service.check_license_key(db, key, utcnow())
    except SQLAlchemyError:
        logger.exception("License key lookup failed")
        return {"success": False, "error": "Internal server error"}
    return result.to_dict()
