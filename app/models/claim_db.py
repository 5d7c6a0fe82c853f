from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base
from datetime import datetime
import enum
import uuid

Base = declarative_base()


class RecordType(enum.Enum):
    A = "A"
    CNAME = "CNAME"


class ClaimStatus(enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    FAILED = "failed"
    DISABLED = "disabled"


class LandingType(enum.Enum):
    DEFAULT = "default"
    REDIRECT = "redirect"
    HTML = "html"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Claim(Base):
    __tablename__ = "subdomains"
    __table_args__ = (
        # A live provider record exists exactly when the claim is active
        CheckConstraint(
            "(status = 'active' AND provider_record_id IS NOT NULL)"
            " OR (status != 'active' AND provider_record_id IS NULL)",
            name="ck_subdomains_provider_record_matches_status",
        ),
        CheckConstraint(
            "NOT (record_type = 'CNAME' AND proxied)",
            name="ck_subdomains_cname_not_proxied",
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String, nullable=False, index=True)
    # Stored lower-cased, so the unique index is effectively case-insensitive
    name = Column(String(63), nullable=False, unique=True)
    record_type = Column(
        Enum(RecordType, native_enum=False, values_callable=_enum_values, length=8),
        nullable=False,
    )
    record_value = Column(String, nullable=False)
    proxied = Column(Boolean, nullable=False, default=False)
    provider_record_id = Column(String, nullable=True)
    status = Column(
        Enum(ClaimStatus, native_enum=False, values_callable=_enum_values, length=16),
        nullable=False,
        default=ClaimStatus.PENDING,
    )
    landing_type = Column(
        Enum(LandingType, native_enum=False, values_callable=_enum_values, length=16),
        nullable=False,
        default=LandingType.DEFAULT,
    )
    redirect_url = Column(String, nullable=True)
    html_title = Column(String, nullable=True)
    html_content = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def fully_qualified_name(self, parent_domain: str) -> str:
        return f"{self.name}.{parent_domain}"


class ReservedName(Base):
    __tablename__ = "reserved_subdomains"

    name = Column(String(63), primary_key=True)


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    role = Column(String(16), nullable=False)


class UserClaimLimit(Base):
    __tablename__ = "user_subdomain_limits"

    user_id = Column(String, primary_key=True)
    claim_limit = Column(Integer, nullable=False)
