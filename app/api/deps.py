from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import ProvisioningConfig, settings
from app.services.bulk_handler import BulkOperationCoordinator
from app.services.dns_provider import CloudflareClient
from app.services.provisioning import ProvisioningCoordinator
from app.storage.claim_repository import ClaimRepository
from app.storage.db import get_db
from app.storage.redis import RedisOrphanSink

provisioning_config = ProvisioningConfig.from_settings(settings)

_dns_provider = None


def get_config() -> ProvisioningConfig:
    return provisioning_config


def get_dns_provider() -> CloudflareClient:
    """Shared provider client so its connection pool outlives single requests."""
    global _dns_provider
    if _dns_provider is None:
        _dns_provider = CloudflareClient.from_settings(settings)
    return _dns_provider


async def close_dns_provider():
    global _dns_provider
    if _dns_provider is not None:
        await _dns_provider.aclose()
        _dns_provider = None


def get_orphan_sink() -> RedisOrphanSink:
    return RedisOrphanSink()


async def get_store(db: AsyncSession = Depends(get_db)) -> ClaimRepository:
    return ClaimRepository(db)


async def get_coordinator(
    store: ClaimRepository = Depends(get_store),
    provider=Depends(get_dns_provider),
    config: ProvisioningConfig = Depends(get_config),
    orphan_sink=Depends(get_orphan_sink),
) -> ProvisioningCoordinator:
    return ProvisioningCoordinator(store, provider, config, orphan_sink)


async def get_bulk_coordinator(
    store: ClaimRepository = Depends(get_store),
    provider=Depends(get_dns_provider),
    config: ProvisioningConfig = Depends(get_config),
    orphan_sink=Depends(get_orphan_sink),
) -> BulkOperationCoordinator:
    return BulkOperationCoordinator(store, provider, config, orphan_sink)
