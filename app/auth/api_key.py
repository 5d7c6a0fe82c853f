from fastapi import Depends, Header

from app.core.config import settings
from app.core.errors import Forbidden, raise_error
from app.storage.claim_repository import ClaimRepository
from app.api.deps import get_store


async def verify_api_key(x_api_key: str = Header(...)):
    if x_api_key != settings.API_KEY:
        raise_error("Invalid API Key", status_code=403)


async def get_requester_id(x_user_id: str = Header(...)) -> str:
    """Identity of the signed-in user, forwarded by the upstream auth layer."""
    user_id = x_user_id.strip()
    if not user_id:
        raise_error("Unauthorized", status_code=401)
    return user_id


async def require_admin(
    requester_id: str = Depends(get_requester_id),
    store: ClaimRepository = Depends(get_store),
) -> str:
    if not await store.has_role(requester_id, "admin"):
        raise Forbidden()
    return requester_id
