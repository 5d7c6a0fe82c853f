from fastapi import HTTPException


class ErrorCode:
    INVALID_NAME = "Invalid subdomain format"
    INVALID_RECORD_VALUE = "Invalid record value for record type"
    RESERVED_NAME = "This subdomain is reserved"
    NAME_TAKEN = "Subdomain already taken"
    RATE_LIMITED = "Rate limit exceeded. Too many subdomains created recently"
    QUOTA_EXCEEDED = "Subdomain limit reached for this account"
    CLAIM_NOT_FOUND = "Subdomain not found"
    CLAIM_NOT_ACTIVE = "Subdomain is not active"
    PROVIDER_REJECTED = "DNS provider rejected the request"
    PROVIDER_UNAVAILABLE = "DNS provider unavailable"
    STORE_FAILED = "Failed to save subdomain"
    ADMIN_REQUIRED = "Admin access required"
    EMPTY_BULK = "No subdomain IDs provided"


class ProvisioningError(Exception):
    """Base for every failure a provisioning operation reports to its caller."""

    code = "provisioning_error"
    status_code = 500
    default_detail = "Provisioning failed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidFormat(ProvisioningError):
    code = "invalid_format"
    status_code = 400
    default_detail = ErrorCode.INVALID_NAME


class Reserved(ProvisioningError):
    code = "reserved"
    status_code = 400
    default_detail = ErrorCode.RESERVED_NAME


class AlreadyTaken(ProvisioningError):
    code = "already_taken"
    status_code = 409
    default_detail = ErrorCode.NAME_TAKEN


class RateLimited(ProvisioningError):
    code = "rate_limited"
    status_code = 429
    default_detail = ErrorCode.RATE_LIMITED


class QuotaExceeded(ProvisioningError):
    code = "quota_exceeded"
    status_code = 429
    default_detail = ErrorCode.QUOTA_EXCEEDED


class NotFound(ProvisioningError):
    code = "not_found"
    status_code = 404
    default_detail = ErrorCode.CLAIM_NOT_FOUND


class ClaimNotActive(ProvisioningError):
    code = "not_active"
    status_code = 409
    default_detail = ErrorCode.CLAIM_NOT_ACTIVE


class Forbidden(ProvisioningError):
    code = "forbidden"
    status_code = 403
    default_detail = ErrorCode.ADMIN_REQUIRED


class InvalidRequest(ProvisioningError):
    code = "invalid_request"
    status_code = 400
    default_detail = "Invalid request"


class ProviderError(ProvisioningError):
    """The DNS provider refused the request (4xx-equivalent, not retryable)."""

    code = "provider_error"
    status_code = 502
    default_detail = ErrorCode.PROVIDER_REJECTED


class ProviderUnavailable(ProviderError):
    """Timeout, transport failure or 5xx from the provider; safe to retry."""

    code = "provider_unavailable"
    status_code = 503
    default_detail = ErrorCode.PROVIDER_UNAVAILABLE


class StoreError(ProvisioningError):
    code = "store_error"
    status_code = 500
    default_detail = ErrorCode.STORE_FAILED


# Conditions raised by the record store itself.

class RecordStoreError(Exception):
    pass


class RecordNotFound(RecordStoreError):
    pass


class ConstraintViolation(RecordStoreError):
    def __init__(self, detail: str = "", unique: bool = False):
        self.unique = unique
        super().__init__(detail)


class StoreUnavailable(RecordStoreError):
    pass


def raise_error(detail: str, status_code: int = 400):
    raise HTTPException(status_code=status_code, detail=detail)
