from datetime import datetime, timedelta
import logging

from app.core.config import ProvisioningConfig
from app.core.errors import (
    AlreadyTaken,
    ErrorCode,
    InvalidFormat,
    QuotaExceeded,
    RateLimited,
    Reserved,
)
from app.utils.name_utils import is_valid_name, is_valid_record_value, normalize_name

logger = logging.getLogger(__name__)


def validate_name(name: str, config: ProvisioningConfig) -> str:
    """Normalize a candidate label and check it against the label grammar."""
    normalized = normalize_name(name)
    if not is_valid_name(normalized, config.name_min_length, config.name_max_length):
        logger.info(f"Invalid subdomain: {name!r}")
        raise InvalidFormat()
    return normalized


def validate_record_value(record_type: str, value: str) -> None:
    if not is_valid_record_value(record_type, value):
        raise InvalidFormat(f"{ErrorCode.INVALID_RECORD_VALUE}: {record_type} {value!r}")


async def check_reserved(name: str, store, config: ProvisioningConfig) -> None:
    if name in config.reserved_names:
        raise Reserved()
    if name in await store.list_reserved_names():
        raise Reserved()


async def check_available(name: str, store) -> None:
    existing = await store.get_claim_by_name(name)
    if existing is not None:
        raise AlreadyTaken()


async def check_rate_limit(owner_id: str, store, config: ProvisioningConfig, now: datetime = None) -> None:
    since = (now or datetime.utcnow()) - timedelta(seconds=config.rate_limit_window_seconds)
    recent = await store.count_claims_by_owner_since(owner_id, since)
    if recent >= config.rate_limit_max_claims:
        logger.info(f"Rate limit hit for {owner_id}: {recent} claims since {since.isoformat()}")
        raise RateLimited(
            f"{ErrorCode.RATE_LIMITED}: max {config.rate_limit_max_claims} per "
            f"{config.rate_limit_window_seconds} seconds"
        )


async def check_claim_quota(owner_id: str, store, config: ProvisioningConfig) -> None:
    limit = await store.get_claim_limit(owner_id)
    if limit is None:
        limit = config.default_claim_limit
    owned = await store.count_claims_by_owner(owner_id)
    if owned >= limit:
        raise QuotaExceeded(f"{ErrorCode.QUOTA_EXCEEDED} ({limit})")
