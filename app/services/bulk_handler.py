import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from app.core.config import ProvisioningConfig
from app.core.errors import ErrorCode, InvalidRequest, RecordStoreError, StoreError
from app.models.claim_db import ClaimStatus
from app.services.dns_provider import DNSProvider
from app.services.provisioning import release_provider_record, report_orphan

logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    """Outcome of a bulk disable/delete.

    The store-side effect covers every id in ``attempted``; ``provider_failures``
    lists the claims whose DNS record could not be removed and is now orphaned.
    """

    attempted: int
    affected: int
    provider_failures: List[str] = field(default_factory=list)

    @property
    def partial_failure(self) -> bool:
        return bool(self.provider_failures)


class BulkOperationCoordinator:
    """Administrative disable/delete over a set of claims.

    Provider deletes fan out concurrently (bounded by ``bulk_concurrency``) and
    all of them settle before the single batched store write, which is applied
    to every requested id regardless of individual provider outcomes.
    """

    def __init__(self, store, provider: DNSProvider, config: ProvisioningConfig, orphan_sink):
        self.store = store
        self.provider = provider
        self.config = config
        self.orphan_sink = orphan_sink

    async def bulk_disable(self, claim_ids: Iterable[str]) -> BulkResult:
        return await self._run(claim_ids, "disable")

    async def bulk_delete(self, claim_ids: Iterable[str]) -> BulkResult:
        return await self._run(claim_ids, "delete")

    async def _run(self, claim_ids: Iterable[str], action: str) -> BulkResult:
        ids = list(dict.fromkeys(i for i in claim_ids if i))
        if not ids:
            raise InvalidRequest(ErrorCode.EMPTY_BULK)

        try:
            claims = await asyncio.wait_for(
                self.store.get_claims_by_ids(ids), timeout=self.config.store_timeout_seconds
            )
        except (RecordStoreError, asyncio.TimeoutError) as e:
            raise StoreError() from e

        targets = [
            (c.id, c.provider_record_id, f"{c.name}.{self.config.parent_domain}")
            for c in claims
            if c.provider_record_id
        ]
        return await asyncio.shield(self._apply(ids, targets, action))

    async def _apply(self, ids: List[str], targets, action: str) -> BulkResult:
        semaphore = asyncio.Semaphore(max(1, self.config.bulk_concurrency))
        reason = f"bulk {action}"

        async def release(provider_record_id, fqdn):
            async with semaphore:
                return await release_provider_record(
                    self.provider, self.orphan_sink, provider_record_id, fqdn, reason
                )

        outcomes = await asyncio.gather(
            *(release(record_id, fqdn) for _, record_id, fqdn in targets),
            return_exceptions=True,
        )

        failures = []
        for (claim_id, record_id, fqdn), outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Unexpected error deleting DNS record {record_id}: {outcome!r}")
                await report_orphan(self.orphan_sink, record_id, fqdn, f"{reason}: {outcome!r}")
                failures.append(claim_id)
            elif not outcome:
                failures.append(claim_id)

        try:
            if action == "disable":
                store_call = self.store.batch_update_status(ids, ClaimStatus.DISABLED)
            else:
                store_call = self.store.batch_delete(ids)
            affected = await asyncio.wait_for(store_call, timeout=self.config.store_timeout_seconds)
        except (RecordStoreError, asyncio.TimeoutError) as e:
            logger.error(f"Bulk {action} store write failed for {len(ids)} claims: {e!r}")
            raise StoreError(f"{ErrorCode.STORE_FAILED}: bulk {action} not applied") from e

        if failures:
            logger.warning(
                f"Bulk {action}: {len(failures)} of {len(targets)} DNS deletes failed; "
                f"store updated for all {len(ids)} claims"
            )
        else:
            logger.info(f"Bulk {action} applied to {len(ids)} claims ({affected} rows)")
        return BulkResult(attempted=len(ids), affected=affected, provider_failures=failures)
