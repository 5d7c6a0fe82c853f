from fastapi import APIRouter, Depends, Request
from typing import List

from app.api.deps import get_config, get_coordinator
from app.auth.api_key import get_requester_id, verify_api_key
from app.auth.rate_limiter import limiter
from app.core.config import ProvisioningConfig
from app.models.claim_schema import ClaimCreateInput, ClaimUpdateInput, LandingConfig
from app.models.response_schema import AvailabilityResponse, ClaimResponse
from app.services.provisioning import ProvisioningCoordinator

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.post("/", response_model=ClaimResponse)
@limiter.limit("10/minute")
async def create_claim(
    request: Request,
    payload: ClaimCreateInput,
    owner_id: str = Depends(get_requester_id),
    coordinator: ProvisioningCoordinator = Depends(get_coordinator),
    config: ProvisioningConfig = Depends(get_config),
):
    claim = await coordinator.create(
        owner_id=owner_id,
        name=payload.name,
        record_type=payload.record_type,
        record_value=str(payload.record_value),
        proxied=payload.proxied,
    )
    return ClaimResponse.from_claim(claim, config.parent_domain)


@router.get("/", response_model=List[ClaimResponse])
async def list_my_claims(
    owner_id: str = Depends(get_requester_id),
    coordinator: ProvisioningCoordinator = Depends(get_coordinator),
    config: ProvisioningConfig = Depends(get_config),
):
    claims = await coordinator.list_claims_for_owner(owner_id)
    return [ClaimResponse.from_claim(c, config.parent_domain) for c in claims]


@router.get("/availability/{name}", response_model=AvailabilityResponse)
async def check_availability(
    name: str,
    coordinator: ProvisioningCoordinator = Depends(get_coordinator),
):
    result = await coordinator.check_availability(name)
    return AvailabilityResponse(name=result.name, available=result.available, reason=result.reason)


@router.patch("/{claim_id}", response_model=ClaimResponse)
async def update_claim(
    claim_id: str,
    payload: ClaimUpdateInput,
    owner_id: str = Depends(get_requester_id),
    coordinator: ProvisioningCoordinator = Depends(get_coordinator),
    config: ProvisioningConfig = Depends(get_config),
):
    claim = await coordinator.update(
        claim_id, owner_id, record_value=payload.record_value, proxied=payload.proxied
    )
    return ClaimResponse.from_claim(claim, config.parent_domain)


@router.put("/{claim_id}/landing", response_model=ClaimResponse)
async def update_landing(
    claim_id: str,
    landing: LandingConfig,
    owner_id: str = Depends(get_requester_id),
    coordinator: ProvisioningCoordinator = Depends(get_coordinator),
    config: ProvisioningConfig = Depends(get_config),
):
    claim = await coordinator.update_landing(claim_id, owner_id, landing)
    return ClaimResponse.from_claim(claim, config.parent_domain)


@router.delete("/{claim_id}")
async def delete_claim(
    claim_id: str,
    owner_id: str = Depends(get_requester_id),
    coordinator: ProvisioningCoordinator = Depends(get_coordinator),
):
    await coordinator.delete(claim_id, owner_id)
    return {"message": "Subdomain deleted", "id": claim_id}
