# storage/claim_repository.py
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Iterable, List, Optional, Set, Tuple
import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConstraintViolation, RecordNotFound, StoreUnavailable
from app.models.claim_db import (
    Claim,
    ClaimStatus,
    ReservedName,
    UserClaimLimit,
    UserRole,
)

logger = logging.getLogger(__name__)


class ClaimRepository:
    """The system of record for claims, reserved names, roles and limits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _translate_errors(self, operation: str, write: bool = False):
        try:
            yield
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Constraint violation during {operation}: {e.orig}")
            # sqlite and postgres both name the unique index in the message
            unique = "unique" in str(e.orig).lower()
            raise ConstraintViolation(str(e.orig), unique=unique) from e
        except SQLAlchemyError as e:
            if write:
                await self.db.rollback()
            logger.error(f"Record store failure during {operation}: {e}")
            raise StoreUnavailable(str(e)) from e

    async def insert_claim(self, claim: Claim) -> Claim:
        async with self._translate_errors("insert_claim", write=True):
            self.db.add(claim)
            await self.db.commit()
        logger.info(f"Claim stored for {claim.name}")
        return claim

    async def update_claim(self, claim_id: str, **values) -> Claim:
        async with self._translate_errors("update_claim", write=True):
            result = await self.db.execute(
                update(Claim).where(Claim.id == claim_id).values(**values)
            )
            await self.db.commit()
            if result.rowcount == 0:
                raise RecordNotFound(claim_id)
            return await self.db.get(Claim, claim_id, populate_existing=True)

    async def delete_claim(self, claim_id: str) -> None:
        async with self._translate_errors("delete_claim", write=True):
            result = await self.db.execute(delete(Claim).where(Claim.id == claim_id))
            await self.db.commit()
        if result.rowcount == 0:
            raise RecordNotFound(claim_id)

    async def get_claim_by_id(self, claim_id: str) -> Optional[Claim]:
        async with self._translate_errors("get_claim_by_id"):
            result = await self.db.execute(
                select(Claim)
                .where(Claim.id == claim_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def get_claim_by_name(self, name: str) -> Optional[Claim]:
        async with self._translate_errors("get_claim_by_name"):
            result = await self.db.execute(
                select(Claim)
                .where(Claim.name == name.lower())
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def get_claims_by_ids(self, claim_ids: Iterable[str]) -> List[Claim]:
        async with self._translate_errors("get_claims_by_ids"):
            result = await self.db.execute(
                select(Claim)
                .where(Claim.id.in_(list(claim_ids)))
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    async def list_claims_by_owner(self, owner_id: str) -> List[Claim]:
        async with self._translate_errors("list_claims_by_owner"):
            result = await self.db.execute(
                select(Claim)
                .where(Claim.owner_id == owner_id)
                .order_by(Claim.created_at.desc())
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    async def list_claims(
        self, status: Optional[ClaimStatus] = None, offset: int = 0, limit: int = 20
    ) -> Tuple[List[Claim], int]:
        query = select(Claim).execution_options(populate_existing=True)
        count_query = select(func.count()).select_from(Claim)
        if status is not None:
            query = query.where(Claim.status == status)
            count_query = count_query.where(Claim.status == status)

        async with self._translate_errors("list_claims"):
            total = (await self.db.execute(count_query)).scalar_one()
            result = await self.db.execute(
                query.order_by(Claim.created_at.desc()).offset(offset).limit(limit)
            )
            return list(result.scalars().all()), total

    async def count_claims_by_owner(self, owner_id: str) -> int:
        async with self._translate_errors("count_claims_by_owner"):
            result = await self.db.execute(
                select(func.count()).select_from(Claim).where(Claim.owner_id == owner_id)
            )
            return result.scalar_one()

    async def count_claims_by_owner_since(self, owner_id: str, since: datetime) -> int:
        async with self._translate_errors("count_claims_by_owner_since"):
            result = await self.db.execute(
                select(func.count())
                .select_from(Claim)
                .where(Claim.owner_id == owner_id, Claim.created_at >= since)
            )
            return result.scalar_one()

    async def list_reserved_names(self) -> Set[str]:
        async with self._translate_errors("list_reserved_names"):
            result = await self.db.execute(select(ReservedName.name))
            return {name.lower() for name in result.scalars().all()}

    async def batch_update_status(self, claim_ids: List[str], status: ClaimStatus) -> int:
        values = {"status": status}
        if status != ClaimStatus.ACTIVE:
            values["provider_record_id"] = None
        async with self._translate_errors("batch_update_status", write=True):
            result = await self.db.execute(
                update(Claim)
                .where(Claim.id.in_(claim_ids))
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        return result.rowcount

    async def batch_delete(self, claim_ids: List[str]) -> int:
        async with self._translate_errors("batch_delete", write=True):
            result = await self.db.execute(
                delete(Claim)
                .where(Claim.id.in_(claim_ids))
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        return result.rowcount

    async def get_claim_limit(self, user_id: str) -> Optional[int]:
        async with self._translate_errors("get_claim_limit"):
            limit = await self.db.get(UserClaimLimit, user_id)
            return limit.claim_limit if limit else None

    async def set_claim_limit(self, user_id: str, claim_limit: int) -> None:
        async with self._translate_errors("set_claim_limit", write=True):
            existing = await self.db.get(UserClaimLimit, user_id)
            if existing:
                existing.claim_limit = claim_limit
            else:
                self.db.add(UserClaimLimit(user_id=user_id, claim_limit=claim_limit))
            await self.db.commit()

    async def clear_claim_limit(self, user_id: str) -> None:
        async with self._translate_errors("clear_claim_limit", write=True):
            await self.db.execute(delete(UserClaimLimit).where(UserClaimLimit.user_id == user_id))
            await self.db.commit()

    async def has_role(self, user_id: str, role: str) -> bool:
        async with self._translate_errors("has_role"):
            result = await self.db.execute(
                select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == role)
            )
            return result.first() is not None
