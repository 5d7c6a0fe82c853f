"""
Subdomain provisioning.

Every write touches two systems that fail independently: the DNS provider
and the record store. Create and update call the provider first and only
persist once it succeeded; a store failure after a successful provider
create is compensated by deleting the new provider record again. Delete and
disable go the other way round: the provider record is removed on a
best-effort basis and the store write happens regardless, so a claim can
never get stuck because the provider is unreachable. Provider records that
could not be removed are reported to the orphan sink.

The store's unique index on ``name`` is the final word on uniqueness; the
availability check in front of it only gives early, friendly errors.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from app.core.config import ProvisioningConfig
from app.core.errors import (
    AlreadyTaken,
    ClaimNotActive,
    ConstraintViolation,
    ErrorCode,
    NotFound,
    ProviderError,
    ProvisioningError,
    RecordNotFound,
    RecordStoreError,
    StoreError,
)
from app.models.claim_db import Claim, ClaimStatus, LandingType, RecordType
from app.services.dns_provider import DNSProvider
from app.services.validator import (
    check_available,
    check_claim_quota,
    check_rate_limit,
    check_reserved,
    validate_name,
    validate_record_value,
)

logger = logging.getLogger(__name__)


@dataclass
class Availability:
    name: str
    available: bool
    reason: Optional[str] = None


async def report_orphan(orphan_sink, provider_record_id: str, fqdn: str, reason: str):
    try:
        await orphan_sink.report(provider_record_id, fqdn, reason)
    except Exception:
        # The ledger is best-effort; the operation's own outcome stands
        logger.exception(f"Failed to report orphaned DNS record {provider_record_id}")


async def release_provider_record(
    provider: DNSProvider, orphan_sink, provider_record_id: str, fqdn: str, reason: str
) -> bool:
    """Delete a provider record; on failure log it as an orphan and return False."""
    try:
        await provider.delete_record(provider_record_id)
        return True
    except ProviderError as e:
        logger.error(f"Could not delete DNS record {provider_record_id} for {fqdn}: {e.detail}")
        await report_orphan(orphan_sink, provider_record_id, fqdn, f"{reason}: {e.detail}")
        return False
    except Exception as e:
        logger.exception(f"Unexpected error deleting DNS record {provider_record_id} for {fqdn}")
        await report_orphan(orphan_sink, provider_record_id, fqdn, f"{reason}: {e!r}")
        return False


class ProvisioningCoordinator:
    """Creates, updates and removes claims across the DNS provider and the record store."""

    def __init__(self, store, provider: DNSProvider, config: ProvisioningConfig, orphan_sink):
        self.store = store
        self.provider = provider
        self.config = config
        self.orphan_sink = orphan_sink

    def fqdn(self, name: str) -> str:
        return f"{name}.{self.config.parent_domain}"

    async def _store_call(self, coro):
        return await asyncio.wait_for(coro, timeout=self.config.store_timeout_seconds)

    async def _read(self, coro):
        try:
            return await self._store_call(coro)
        except (RecordStoreError, asyncio.TimeoutError) as e:
            logger.error(f"Record store read failed: {e!r}")
            raise StoreError() from e

    async def _owned_claim(self, claim_id: str, owner_id: Optional[str]) -> Claim:
        claim = await self._read(self.store.get_claim_by_id(claim_id))
        if claim is None or (owner_id is not None and claim.owner_id != owner_id):
            raise NotFound()
        return claim

    # Reads

    async def check_availability(self, name: str) -> Availability:
        try:
            normalized = validate_name(name, self.config)
            await self._read(check_reserved(normalized, self.store, self.config))
            await self._read(check_available(normalized, self.store))
        except StoreError:
            raise
        except ProvisioningError as e:
            return Availability(name=name, available=False, reason=e.detail)
        return Availability(name=normalized, available=True)

    async def list_claims_for_owner(self, owner_id: str) -> List[Claim]:
        return await self._read(self.store.list_claims_by_owner(owner_id))

    # Create

    async def create(
        self,
        owner_id: str,
        name: str,
        record_type: Union[RecordType, str],
        record_value: str,
        proxied: bool = False,
    ) -> Claim:
        name = validate_name(name, self.config)
        record_type = RecordType(record_type)
        record_value = str(record_value).strip()
        if record_type == RecordType.CNAME:
            record_value = record_value.rstrip(".").lower()
        validate_record_value(record_type.value, record_value)
        effective_proxied = bool(proxied) and record_type == RecordType.A

        # Re-checked on every create; nothing here is cached
        await self._read(check_reserved(name, self.store, self.config))
        await self._read(check_available(name, self.store))
        await self._read(check_rate_limit(owner_id, self.store, self.config))
        await self._read(check_claim_quota(owner_id, self.store, self.config))

        # Once the provider call is issued it runs to completion, compensation included
        return await asyncio.shield(
            self._provision(owner_id, name, record_type, record_value, effective_proxied)
        )

    async def _provision(
        self, owner_id: str, name: str, record_type: RecordType, record_value: str, proxied: bool
    ) -> Claim:
        fqdn = self.fqdn(name)
        provider_record_id = await self.provider.create_record(
            fqdn, record_type.value, record_value, proxied
        )

        claim = Claim(
            owner_id=owner_id,
            name=name,
            record_type=record_type,
            record_value=record_value,
            proxied=proxied,
            provider_record_id=provider_record_id,
            status=ClaimStatus.ACTIVE,
            landing_type=LandingType.DEFAULT,
            created_at=datetime.utcnow(),
        )
        try:
            stored = await self._store_call(self.store.insert_claim(claim))
        except (RecordStoreError, asyncio.TimeoutError) as e:
            logger.error(f"Storing claim {name} failed after DNS create, rolling back: {e!r}")
            await release_provider_record(
                self.provider, self.orphan_sink, provider_record_id, fqdn, "compensating delete after store failure"
            )
            if isinstance(e, ConstraintViolation) and e.unique:
                raise AlreadyTaken() from e
            raise StoreError() from e

        logger.info(f"Claim created: {fqdn} ({record_type.value} {record_value}) for {owner_id}")
        return stored

    # Update

    async def update(
        self,
        claim_id: str,
        owner_id: str,
        record_value: Optional[str] = None,
        proxied: Optional[bool] = None,
    ) -> Claim:
        claim = await self._owned_claim(claim_id, owner_id)
        if record_value is None and proxied is None:
            return claim
        if claim.status != ClaimStatus.ACTIVE or not claim.provider_record_id:
            raise ClaimNotActive()

        if record_value is None:
            new_value = claim.record_value
        else:
            new_value = str(record_value).strip()
            if claim.record_type == RecordType.CNAME:
                new_value = new_value.rstrip(".").lower()
            validate_record_value(claim.record_type.value, new_value)

        requested_proxied = claim.proxied if proxied is None else bool(proxied)
        # CNAME targets are never proxied, whatever was asked for
        effective_proxied = requested_proxied and claim.record_type == RecordType.A

        return await asyncio.shield(
            self._apply_update(
                claim.id, claim.provider_record_id, self.fqdn(claim.name), new_value, effective_proxied
            )
        )

    async def _apply_update(
        self, claim_id: str, provider_record_id: str, fqdn: str, value: str, proxied: bool
    ) -> Claim:
        await self.provider.update_record(provider_record_id, value, proxied)
        try:
            updated = await self._store_call(
                self.store.update_claim(claim_id, record_value=value, proxied=proxied)
            )
        except RecordNotFound as e:
            raise NotFound() from e
        except (RecordStoreError, asyncio.TimeoutError) as e:
            # Provider already serves the new value; the row stays stale until the next update
            logger.error(
                f"DNS record {provider_record_id} ({fqdn}) updated but store write failed: {e!r}"
            )
            raise StoreError(f"{ErrorCode.STORE_FAILED}: DNS updated, store is stale") from e

        logger.info(f"Claim updated: {fqdn} -> {value} (proxied={proxied})")
        return updated

    async def update_landing(self, claim_id: str, owner_id: str, landing) -> Claim:
        await self._owned_claim(claim_id, owner_id)
        landing_type = LandingType(landing.type)
        values = {
            "landing_type": landing_type,
            "redirect_url": None,
            "html_title": None,
            "html_content": None,
        }
        if landing_type == LandingType.REDIRECT:
            values["redirect_url"] = str(landing.url)
        elif landing_type == LandingType.HTML:
            values["html_title"] = landing.title
            values["html_content"] = landing.body

        try:
            return await self._store_call(self.store.update_claim(claim_id, **values))
        except RecordNotFound as e:
            raise NotFound() from e
        except (RecordStoreError, asyncio.TimeoutError) as e:
            raise StoreError() from e

    # Delete and disable

    async def delete(self, claim_id: str, owner_id: str) -> None:
        claim = await self._owned_claim(claim_id, owner_id)
        await asyncio.shield(
            self._remove(claim.id, claim.provider_record_id, self.fqdn(claim.name))
        )

    async def admin_delete(self, claim_id: str) -> None:
        claim = await self._owned_claim(claim_id, None)
        await asyncio.shield(
            self._remove(claim.id, claim.provider_record_id, self.fqdn(claim.name))
        )

    async def _remove(self, claim_id: str, provider_record_id: Optional[str], fqdn: str) -> None:
        if provider_record_id:
            await release_provider_record(
                self.provider, self.orphan_sink, provider_record_id, fqdn, "claim deleted"
            )
        try:
            await self._store_call(self.store.delete_claim(claim_id))
        except RecordNotFound:
            logger.info(f"Claim {claim_id} was already removed")
        except (RecordStoreError, asyncio.TimeoutError) as e:
            logger.error(f"Deleting claim {claim_id} ({fqdn}) from the store failed: {e!r}")
            raise StoreError(f"{ErrorCode.STORE_FAILED}: claim not deleted") from e
        logger.info(f"Claim deleted: {fqdn}")

    async def disable(self, claim_id: str) -> Claim:
        claim = await self._owned_claim(claim_id, None)
        if claim.status == ClaimStatus.DISABLED and not claim.provider_record_id:
            return claim
        return await asyncio.shield(
            self._disable(claim.id, claim.provider_record_id, self.fqdn(claim.name))
        )

    async def _disable(self, claim_id: str, provider_record_id: Optional[str], fqdn: str) -> Claim:
        if provider_record_id:
            await release_provider_record(
                self.provider, self.orphan_sink, provider_record_id, fqdn, "claim disabled"
            )
        try:
            disabled = await self._store_call(
                self.store.update_claim(
                    claim_id, status=ClaimStatus.DISABLED, provider_record_id=None
                )
            )
        except RecordNotFound as e:
            raise NotFound() from e
        except (RecordStoreError, asyncio.TimeoutError) as e:
            logger.error(f"Disabling claim {claim_id} ({fqdn}) in the store failed: {e!r}")
            raise StoreError(f"{ErrorCode.STORE_FAILED}: claim not disabled") from e
        logger.info(f"Claim disabled: {fqdn}")
        return disabled
