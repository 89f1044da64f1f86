"""Syntactic checks run on activation input before the database is touched."""

import re
from typing import Optional

from licensegate.errors import (
    InvalidDomainError,
    InvalidKeyFormatError,
    MissingDomainError,
    MissingParamsError,
)

MAX_DOMAIN_LENGTH = 253
MAX_LABEL_LENGTH = 63
MAX_KEY_LENGTH = 64

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://")
_PORT_RE = re.compile(r":\d*$")
_HOSTNAME_RE = re.compile(r"^(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z]{2,}$")
_KEY_RE = re.compile(r"^[A-Z0-9-]+$")


def normalize_domain(raw: Optional[str]) -> str:
    """Reduce a domain or URL to a bare lowercase hostname.

    ``https://www.Example.com/pricing?x=1`` and ``example.com/`` both become
    ``example.com``. Raises :class:`MissingDomainError` when nothing is left.
    """
    if raw is None or not str(raw).strip():
        raise MissingDomainError("Domain is required")

    value = str(raw).strip().lower()
    value = _SCHEME_RE.sub("", value).lstrip("/")
    value = re.split(r"[/?#\\]", value, maxsplit=1)[0]
    if "@" in value:
        value = value.rsplit("@", 1)[1]
    value = _PORT_RE.sub("", value)
    value = value.rstrip(".")
    if value.startswith("www."):
        value = value[4:]

    if not value:
        raise MissingDomainError("Domain is required")
    return value


def validate_domain(raw: Optional[str]) -> str:
    """Normalize ``raw`` and check it is a plausible public hostname."""
    domain = normalize_domain(raw)
    if len(domain) > MAX_DOMAIN_LENGTH:
        raise InvalidDomainError("Domain is too long")
    if not _HOSTNAME_RE.match(domain):
        raise InvalidDomainError(f"Invalid domain: {domain[:64]}")
    if any(len(label) > MAX_LABEL_LENGTH for label in domain.split(".")):
        raise InvalidDomainError("Domain label is too long")
    return domain


def validate_key(raw: Optional[str]) -> str:
    if raw is None or not str(raw).strip():
        raise MissingParamsError("License key is required")
    key = str(raw).strip()
    if len(key) > MAX_KEY_LENGTH or not _KEY_RE.match(key):
        raise InvalidKeyFormatError("Invalid license key format")
    return key
