"""Exception types raised by the activation pipeline.

Every error carries the public result code the ``/activate`` endpoint
reports for it, so the boundary can turn any of them into a response
without a lookup table.
"""


class LicenseGateError(Exception):
    code = "SERVER_ERROR"


class ValidationError(LicenseGateError):
    code = "MISSING_PARAMS"


class MissingParamsError(ValidationError):
    code = "MISSING_PARAMS"


class MissingDomainError(ValidationError):
    code = "MISSING_PARAMS"


class InvalidDomainError(ValidationError):
    code = "INVALID_DOMAIN"


class InvalidKeyFormatError(ValidationError):
    code = "INVALID_KEY"


class SignatureError(LicenseGateError):
    code = "INVALID_SIGNATURE"


class ExpiredRequestError(SignatureError):
    code = "EXPIRED_REQUEST"


class InvalidSignatureError(SignatureError):
    code = "INVALID_SIGNATURE"


class LicenseNotFoundError(LicenseGateError):
    code = "INVALID_KEY"


class LicenseRevokedError(LicenseGateError):
    code = "REVOKED"
