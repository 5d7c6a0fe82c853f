# tests/conftest.py

import asyncio
import itertools
import os
from datetime import datetime

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ["TESTING"] = "1"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.api.deps import get_config, get_dns_provider, get_orphan_sink
from app.core.config import ProvisioningConfig
from app.main import app
from app.models.claim_db import Claim, ClaimStatus, RecordType
from app.services.bulk_handler import BulkOperationCoordinator
from app.services.provisioning import ProvisioningCoordinator
from app.storage.claim_repository import ClaimRepository
from app.storage.db import get_db, init_db


class FakeDNSProvider:
    """In-memory stand-in for the DNS provider with scriptable failures.

    ``failures`` maps an operation ("create", "update", "delete") to either an
    exception (raised on every call) or a dict keyed by fqdn / record id.
    """

    def __init__(self):
        self.records = {}
        self.calls = []
        self.failures = {}
        self.in_flight = 0
        self.max_in_flight = 0
        self._ids = itertools.count(1)

    def _maybe_fail(self, op, key):
        failure = self.failures.get(op)
        if isinstance(failure, dict):
            failure = failure.get(key)
        if failure is not None:
            raise failure

    async def _enter(self):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0.01)

    async def create_record(self, fqdn, record_type, value, proxied):
        self.calls.append(("create", fqdn, record_type, value, proxied))
        await self._enter()
        try:
            self._maybe_fail("create", fqdn)
            record_id = f"rec-{next(self._ids)}"
            self.records[record_id] = {
                "fqdn": fqdn,
                "type": record_type,
                "value": value,
                "proxied": proxied,
            }
            return record_id
        finally:
            self.in_flight -= 1

    async def update_record(self, provider_record_id, value, proxied):
        self.calls.append(("update", provider_record_id, value, proxied))
        await self._enter()
        try:
            self._maybe_fail("update", provider_record_id)
            self.records[provider_record_id].update(value=value, proxied=proxied)
        finally:
            self.in_flight -= 1

    async def delete_record(self, provider_record_id):
        self.calls.append(("delete", provider_record_id))
        await self._enter()
        try:
            self._maybe_fail("delete", provider_record_id)
            self.records.pop(provider_record_id, None)
        finally:
            self.in_flight -= 1

    def calls_for(self, op):
        return [call for call in self.calls if call[0] == op]


class ListOrphanSink:
    def __init__(self):
        self.reports = []

    async def report(self, provider_record_id, fqdn, reason):
        self.reports.append((provider_record_id, fqdn, reason))

    @property
    def record_ids(self):
        return [r[0] for r in self.reports]


def make_claim(owner_id, name, **overrides):
    values = dict(
        owner_id=owner_id,
        name=name,
        record_type=RecordType.A,
        record_value="203.0.113.10",
        proxied=False,
        provider_record_id=f"seed-{name}",
        status=ClaimStatus.ACTIVE,
        created_at=datetime.utcnow(),
    )
    values.update(overrides)
    return Claim(**values)


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'claims.db'}")
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db):
    return ClaimRepository(db)


@pytest.fixture
def provider():
    return FakeDNSProvider()


@pytest.fixture
def orphans():
    return ListOrphanSink()


@pytest.fixture
def config():
    return ProvisioningConfig(
        parent_domain="example.test",
        reserved_names=frozenset({"admin", "www"}),
        rate_limit_max_claims=3,
        rate_limit_window_seconds=3600,
        default_claim_limit=10,
        store_timeout_seconds=5.0,
        bulk_concurrency=2,
    )


@pytest.fixture
def coordinator(store, provider, config, orphans):
    return ProvisioningCoordinator(store, provider, config, orphans)


@pytest.fixture
def bulk(store, provider, config, orphans):
    return BulkOperationCoordinator(store, provider, config, orphans)


# Override app dependencies with the test engine, fake provider and sink
@pytest.fixture(scope="function")
def override_dependencies(session_factory, provider, orphans, config):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_dns_provider] = lambda: provider
    app.dependency_overrides[get_orphan_sink] = lambda: orphans
    app.dependency_overrides[get_config] = lambda: config
    yield
    app.dependency_overrides.clear()


# Return isolated AsyncClient
@pytest_asyncio.fixture(scope="function")
async def client(override_dependencies):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
