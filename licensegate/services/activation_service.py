"""License activation: binds a key to the single domain it may run on.

The pipeline for one request is::

    params -> key/domain validation -> signature check -> state machine

and every answer, whatever branch produced it, is padded by the injected
delay before it is returned. The state machine never locks anything in
process; the domain binding relies on the conditional UPDATE in
:func:`licensegate.services.license_service.bind_domain` and re-reads the
record when that update loses a race.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from licensegate.clock import isoformat, utcnow
from licensegate.errors import (
    InvalidSignatureError,
    LicenseGateError,
    MissingParamsError,
)
from licensegate.models.license import License, LicenseStatus
from licensegate.services import license_service
from licensegate.services.delay import NoDelay
from licensegate.services.signature import SignatureVerifier
from licensegate.services.validation import validate_domain, validate_key

logger = logging.getLogger(__name__)

MAX_BIND_ATTEMPTS = 3


class ActivationCode(str, enum.Enum):
    MISSING_PARAMS = "MISSING_PARAMS"
    INVALID_DOMAIN = "INVALID_DOMAIN"
    INVALID_KEY = "INVALID_KEY"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"
    DOMAIN_MISMATCH = "DOMAIN_MISMATCH"
    VALID = "VALID"
    EXPIRED_REQUEST = "EXPIRED_REQUEST"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    SERVER_ERROR = "SERVER_ERROR"


MESSAGES = {
    ActivationCode.MISSING_PARAMS: "License key and domain are required",
    ActivationCode.INVALID_DOMAIN: "Domain is not valid",
    ActivationCode.INVALID_KEY: "License key is not valid",
    ActivationCode.REVOKED: "License has been revoked",
    ActivationCode.EXPIRED: "License has expired",
    ActivationCode.DOMAIN_MISMATCH: "License is activated for another domain",
    ActivationCode.VALID: "License is valid",
    ActivationCode.EXPIRED_REQUEST: "Request has expired",
    ActivationCode.INVALID_SIGNATURE: "Request signature is not valid",
    ActivationCode.SERVER_ERROR: "Internal server error",
}


@dataclass
class ActivationResult:
    valid: bool
    code: ActivationCode
    message: str
    license: Optional[Dict[str, Any]] = None

    @classmethod
    def failure(cls, code: ActivationCode) -> "ActivationResult":
        return cls(valid=False, code=code, message=MESSAGES[code])

    @classmethod
    def success(cls, license: License) -> "ActivationResult":
        return cls(
            valid=True,
            code=ActivationCode.VALID,
            message=MESSAGES[ActivationCode.VALID],
            license={
                "productName": license.product_name,
                "domain": license.domain,
                "expiresAt": isoformat(license.expires_at),
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"valid": self.valid, "code": self.code.value, "message": self.message}
        if self.license is not None:
            data["license"] = self.license
        return data


def mask_key(key: Any) -> str:
    """Short key prefix for log lines; safe for any client-supplied value."""
    if key is None or key == "":
        return "<none>"
    if not isinstance(key, str):
        return "<invalid>"
    return f"{key[:4]}***"


def decide(license: Optional[License], domain: str, now: datetime) -> Optional[ActivationCode]:
    """Outcome for a license that must not be (re)bound, or None to bind.

    Checks run in a fixed order: unknown key, revoked, expired, bound to a
    different domain.
    """
    if license is None:
        return ActivationCode.INVALID_KEY
    if license.status == LicenseStatus.REVOKED.value:
        return ActivationCode.REVOKED
    if license.is_expired(now) or license.status == LicenseStatus.EXPIRED.value:
        return ActivationCode.EXPIRED
    if license.domain is not None and license.domain != domain:
        return ActivationCode.DOMAIN_MISMATCH
    return None


class ActivationService:
    def __init__(
        self,
        session_factory,
        verifier: SignatureVerifier,
        delay=None,
        require_signature: bool = False,
        clock: Callable[[], datetime] = utcnow,
        max_attempts: int = MAX_BIND_ATTEMPTS,
    ):
        self._session_factory = session_factory
        self._verifier = verifier
        self._delay = delay or NoDelay()
        self.require_signature = require_signature
        self._clock = clock
        self._max_attempts = max_attempts

    async def activate(
        self,
        key: Any,
        domain: Any,
        timestamp: Any = None,
        signature: Any = None,
    ) -> ActivationResult:
        """Run one activation request; never raises.

        Returns an :class:`ActivationResult` for every outcome, including
        infrastructure failures which collapse to ``SERVER_ERROR``.
        """
        try:
            result = await self._activate(key, domain, timestamp, signature)
        except LicenseGateError as exc:
            logger.info("Activation rejected for key %s: %s (%s)", mask_key(key), exc.code, exc)
            result = ActivationResult.failure(ActivationCode(exc.code))
        except Exception:
            logger.exception("Activation failed for key %s", mask_key(key))
            result = ActivationResult.failure(ActivationCode.SERVER_ERROR)
        finally:
            await self._delay()
        return result

    async def activate_payload(self, body: Any) -> ActivationResult:
        """Activate from a decoded JSON body; anything but an object is MISSING_PARAMS."""
        if not isinstance(body, dict):
            body = {}
        return await self.activate(
            body.get("key"),
            body.get("domain"),
            timestamp=body.get("timestamp"),
            signature=body.get("signature"),
        )

    async def _activate(self, key, domain, timestamp, signature) -> ActivationResult:
        if not isinstance(key, str) or not isinstance(domain, str):
            raise MissingParamsError("License key and domain are required")
        if not key.strip() or not domain.strip():
            raise MissingParamsError("License key and domain are required")

        key = validate_key(key)
        domain = validate_domain(domain)
        self._check_signature(key, domain, timestamp, signature)

        result = await self._evaluate(key, domain)
        logger.info(
            "Activation for key %s on %s: %s", mask_key(key), domain, result.code.value
        )
        return result

    def _check_signature(self, key: str, domain: str, timestamp, signature) -> None:
        if timestamp is None and signature is None:
            if self.require_signature:
                raise MissingParamsError("Signed request required")
            logger.warning("Unsigned activation request for key %s", mask_key(key))
            return
        if timestamp is None or signature is None:
            raise MissingParamsError("Both timestamp and signature are required")

        if isinstance(timestamp, bool):
            raise InvalidSignatureError("Malformed timestamp")
        try:
            timestamp = int(timestamp)
        except (TypeError, ValueError, OverflowError):
            raise InvalidSignatureError("Malformed timestamp")
        if not isinstance(signature, str):
            raise InvalidSignatureError("Malformed signature")

        self._verifier.verify(key, domain, timestamp, signature)

    async def _evaluate(self, key: str, domain: str) -> ActivationResult:
        for attempt in range(1, self._max_attempts + 1):
            async with self._session_factory() as db:
                license = await license_service.get_license_by_key(db, key)
                now = self._clock()
                code = decide(license, domain, now)
                if code is not None:
                    return ActivationResult.failure(code)

                if license.domain == domain and license.status == LicenseStatus.ACTIVE.value:
                    return ActivationResult.success(license)

                if await license_service.bind_domain(db, key, domain, now):
                    await db.refresh(license)
                    return ActivationResult.success(license)

            logger.info(
                "Domain binding for key %s changed underneath (attempt %d); re-evaluating",
                mask_key(key),
                attempt,
            )
        raise RuntimeError(f"Could not settle activation for key {mask_key(key)}")
