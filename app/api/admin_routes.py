from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app.api.deps import get_bulk_coordinator, get_config, get_coordinator, get_store
from app.auth.api_key import require_admin, verify_api_key
from app.core.config import ProvisioningConfig
from app.models.claim_db import ClaimStatus
from app.models.claim_schema import BulkClaimIds, ClaimLimitInput
from app.models.response_schema import (
    BulkResultResponse,
    ClaimPage,
    ClaimResponse,
    OrphanRecordResponse,
)
from app.services.bulk_handler import BulkOperationCoordinator, BulkResult
from app.services.provisioning import ProvisioningCoordinator
from app.storage import redis as orphan_ledger
from app.storage.claim_repository import ClaimRepository

router = APIRouter(dependencies=[Depends(verify_api_key), Depends(require_admin)])


def _bulk_response(result: BulkResult) -> BulkResultResponse:
    return BulkResultResponse(
        attempted=result.attempted,
        affected=result.affected,
        provider_failures=result.provider_failures,
        partial_failure=result.partial_failure,
    )


@router.get("/claims", response_model=ClaimPage)
async def list_all_claims(
    status: Optional[ClaimStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    store: ClaimRepository = Depends(get_store),
    config: ProvisioningConfig = Depends(get_config),
):
    claims, total = await store.list_claims(status=status, offset=(page - 1) * limit, limit=limit)
    return ClaimPage(
        items=[ClaimResponse.from_claim(c, config.parent_domain) for c in claims],
        total=total,
        page=page,
        limit=limit,
    )


# Bulk routes go first so "bulk" is never read as a claim id
@router.post("/claims/bulk/disable", response_model=BulkResultResponse)
async def bulk_disable(
    payload: BulkClaimIds,
    bulk: BulkOperationCoordinator = Depends(get_bulk_coordinator),
):
    return _bulk_response(await bulk.bulk_disable(payload.ids))


@router.post("/claims/bulk/delete", response_model=BulkResultResponse)
async def bulk_delete(
    payload: BulkClaimIds,
    bulk: BulkOperationCoordinator = Depends(get_bulk_coordinator),
):
    return _bulk_response(await bulk.bulk_delete(payload.ids))


@router.post("/claims/{claim_id}/disable", response_model=ClaimResponse)
async def disable_claim(
    claim_id: str,
    coordinator: ProvisioningCoordinator = Depends(get_coordinator),
    config: ProvisioningConfig = Depends(get_config),
):
    claim = await coordinator.disable(claim_id)
    return ClaimResponse.from_claim(claim, config.parent_domain)


@router.delete("/claims/{claim_id}")
async def delete_claim(
    claim_id: str,
    coordinator: ProvisioningCoordinator = Depends(get_coordinator),
):
    await coordinator.admin_delete(claim_id)
    return {"message": "Subdomain deleted", "id": claim_id}


@router.put("/users/{user_id}/claim-limit")
async def set_claim_limit(
    user_id: str,
    payload: ClaimLimitInput,
    store: ClaimRepository = Depends(get_store),
):
    await store.set_claim_limit(user_id, payload.claim_limit)
    return {"user_id": user_id, "claim_limit": payload.claim_limit}


@router.delete("/users/{user_id}/claim-limit")
async def clear_claim_limit(user_id: str, store: ClaimRepository = Depends(get_store)):
    await store.clear_claim_limit(user_id)
    return {"message": "User limit removed, using global default", "user_id": user_id}


@router.get("/orphans", response_model=List[OrphanRecordResponse])
async def list_orphaned_records():
    return await orphan_ledger.list_orphans()


@router.delete("/orphans/{provider_record_id}")
async def acknowledge_orphan(provider_record_id: str):
    await orphan_ledger.clear_orphan(provider_record_id)
    return {"message": "Orphan acknowledged", "provider_record_id": provider_record_id}
