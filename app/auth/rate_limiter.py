from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Coarse per-IP request limit; the per-owner claim rate limit lives in the provisioning checks
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.HTTP_RATE_LIMIT],
    enabled=not settings.TESTING,
)
