from dataclasses import dataclass
from typing import FrozenSet

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str
    API_KEY: str = "supersecret"
    REDIS_URL: str = "redis://localhost:6379"
    TESTING: bool = False

    PARENT_DOMAIN: str = "cashurl.shop"
    NAME_MIN_LENGTH: int = 3
    NAME_MAX_LENGTH: int = 20
    RESERVED_NAMES: str = "www,mail,api,admin,app,ftp,smtp,ns1,ns2,status,support"

    RATE_LIMIT_MAX_CLAIMS: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 3600
    DEFAULT_CLAIM_LIMIT: int = 5

    CF_API_TOKEN: str = ""
    CF_ZONE_ID: str = ""
    CF_API_BASE_URL: str = "https://api.cloudflare.com/client/v4"
    PROVIDER_TIMEOUT_SECONDS: float = 10.0
    STORE_TIMEOUT_SECONDS: float = 5.0
    BULK_CONCURRENCY: int = 10

    HTTP_RATE_LIMIT: str = "100/minute"

    class Config:
        env_file = ".env"


settings = Settings()


@dataclass(frozen=True)
class ProvisioningConfig:
    """Values the coordinators need, resolved once from Settings."""

    parent_domain: str = "cashurl.shop"
    name_min_length: int = 3
    name_max_length: int = 20
    reserved_names: FrozenSet[str] = frozenset()
    rate_limit_max_claims: int = 5
    rate_limit_window_seconds: int = 3600
    default_claim_limit: int = 5
    store_timeout_seconds: float = 5.0
    bulk_concurrency: int = 10

    @classmethod
    def from_settings(cls, s: Settings) -> "ProvisioningConfig":
        reserved = frozenset(
            n.strip().lower() for n in s.RESERVED_NAMES.split(",") if n.strip()
        )
        return cls(
            parent_domain=s.PARENT_DOMAIN.lower(),
            name_min_length=s.NAME_MIN_LENGTH,
            name_max_length=s.NAME_MAX_LENGTH,
            reserved_names=reserved,
            rate_limit_max_claims=s.RATE_LIMIT_MAX_CLAIMS,
            rate_limit_window_seconds=s.RATE_LIMIT_WINDOW_SECONDS,
            default_claim_limit=s.DEFAULT_CLAIM_LIMIT,
            store_timeout_seconds=s.STORE_TIMEOUT_SECONDS,
            bulk_concurrency=s.BULK_CONCURRENCY,
        )
