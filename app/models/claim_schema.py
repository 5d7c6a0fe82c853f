from ipaddress import IPv4Address

from pydantic import BaseModel, Field, HttpUrl, field_validator
from typing import Annotated, List, Literal, Optional, Union

from app.utils.name_utils import validate_hostname_or_raise


# Claim creation schemas, discriminated on record_type
class ARecordClaim(BaseModel):
    name: str
    record_type: Literal["A"]
    record_value: IPv4Address
    proxied: bool = False


class CNAMERecordClaim(BaseModel):
    name: str
    record_type: Literal["CNAME"]
    record_value: str
    proxied: bool = False

    @field_validator("record_value")
    @classmethod
    def validate_cname(cls, v):
        return validate_hostname_or_raise(v, "CNAME value")


ClaimCreateInput = Annotated[
    Union[ARecordClaim, CNAMERecordClaim],
    Field(discriminator="record_type"),
]


class ClaimUpdateInput(BaseModel):
    record_value: Optional[str] = None
    proxied: Optional[bool] = None


# Landing page settings; presentation only, never touches DNS
class DefaultLanding(BaseModel):
    type: Literal["default"] = "default"


class RedirectLanding(BaseModel):
    type: Literal["redirect"]
    url: HttpUrl


class HtmlLanding(BaseModel):
    type: Literal["html"]
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1, max_length=50_000)


LandingConfig = Annotated[
    Union[DefaultLanding, RedirectLanding, HtmlLanding],
    Field(discriminator="type"),
]


class BulkClaimIds(BaseModel):
    ids: List[str]


class ClaimLimitInput(BaseModel):
    claim_limit: int = Field(ge=0)
