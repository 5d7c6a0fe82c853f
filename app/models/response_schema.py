from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from app.models.claim_db import Claim, LandingType


class LandingResponse(BaseModel):
    type: str
    url: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None


class ClaimResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    fully_qualified_name: str
    record_type: str
    record_value: str
    proxied: bool
    provider_record_id: Optional[str]
    status: str
    landing: LandingResponse
    created_at: datetime

    @classmethod
    def from_claim(cls, claim: Claim, parent_domain: str) -> "ClaimResponse":
        landing = LandingResponse(type=claim.landing_type.value)
        if claim.landing_type == LandingType.REDIRECT:
            landing.url = claim.redirect_url
        elif claim.landing_type == LandingType.HTML:
            landing.title = claim.html_title
            landing.body = claim.html_content

        return cls(
            id=claim.id,
            owner_id=claim.owner_id,
            name=claim.name,
            fully_qualified_name=claim.fully_qualified_name(parent_domain),
            record_type=claim.record_type.value,
            record_value=claim.record_value,
            proxied=claim.proxied,
            provider_record_id=claim.provider_record_id,
            status=claim.status.value,
            landing=landing,
            created_at=claim.created_at,
        )


class ClaimPage(BaseModel):
    items: List[ClaimResponse]
    total: int
    page: int
    limit: int


class AvailabilityResponse(BaseModel):
    name: str
    available: bool
    reason: Optional[str] = None


class BulkResultResponse(BaseModel):
    attempted: int
    affected: int
    provider_failures: List[str]
    partial_failure: bool


class OrphanRecordResponse(BaseModel):
    provider_record_id: str
    fqdn: str
    reason: str
    detected_at: str
