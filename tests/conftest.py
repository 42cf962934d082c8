"""
Shared fixtures: an in-memory database with the schema created, row
factories, and a stand-in for the aiohttp session used by the CRM connector.
"""
import os

# Settings are cached on first import, so these must be set before funnelhub loads
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import asyncio
from datetime import date

import aiohttp
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from funnelhub.models import AdAccount, AdInsightDaily, IntegrationConfig, Tenant
from funnelhub.models.base import init_db


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_tenant(db):
    """Tenant with an optional CRM integration."""
    def _make(tenant_id="acme", subdomain=None, journey_map=None, crm_active=True):
        tenant = Tenant(id=tenant_id, name=tenant_id.title())
        db.add(tenant)
        if subdomain is not None:
            db.add(IntegrationConfig(
                tenant_id=tenant_id,
                provider="CRM",
                is_active=crm_active,
                config={"subdomain": subdomain},
                journey_map=journey_map,
            ))
        db.commit()
        return tenant
    return _make


@pytest.fixture
def make_integration(db):
    def _make(tenant_id, provider, is_active=True, config=None, journey_map=None):
        integration = IntegrationConfig(
            tenant_id=tenant_id,
            provider=provider,
            is_active=is_active,
            config=config,
            journey_map=journey_map,
        )
        db.add(integration)
        db.commit()
        return integration
    return _make


@pytest.fixture
def make_account(db):
    def _make(tenant_id, provider="META", account_id="act_1", status="ACTIVE"):
        account = AdAccount(
            tenant_id=tenant_id,
            provider=provider,
            account_id=account_id,
            name=f"{provider} {account_id}",
            status=status,
        )
        db.add(account)
        db.commit()
        return account
    return _make


@pytest.fixture
def add_insight(db):
    """One daily insight row; hierarchy ids and names default to a single ad."""
    def _add(
        account,
        day=date(2025, 1, 10),
        campaign_id="c1",
        campaign_name="Campaign",
        adset_id="s1",
        adset_name="Ad Set",
        ad_id="a1",
        ad_name="Ad",
        status="ACTIVE",
        impressions=0,
        clicks=0,
        spend=0.0,
        leads=0,
        reach=0,
        results=0,
    ):
        row = AdInsightDaily(
            ad_account_id=account.id,
            date=day,
            campaign_id=campaign_id,
            campaign_name=campaign_name,
            adset_id=adset_id,
            adset_name=adset_name,
            ad_id=ad_id,
            ad_name=ad_name,
            status=status,
            impressions=impressions,
            clicks=clicks,
            spend=spend,
            leads=leads,
            reach=reach,
            results=results,
        )
        db.add(row)
        db.commit()
        return row
    return _add


# ---------------------------------------------------------------------------
# CRM HTTP stand-ins
# ---------------------------------------------------------------------------

class FakeResponse:
    """Async context manager mimicking aiohttp.ClientResponse."""

    def __init__(self, status=200, payload=None, reason=""):
        self.status = status
        self.payload = payload
        self.reason = reason

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type=None):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Replays queued responses; an exception in the queue is raised by get()."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None):
        self.calls.append({"url": url, "params": params, "headers": headers})
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def fake_session():
    def _make(*responses):
        return FakeSession(responses)
    return _make


@pytest.fixture
def ok_response():
    def _make(payload):
        return FakeResponse(200, payload)
    return _make


@pytest.fixture
def error_response():
    def _make(status=500, reason="Internal Server Error"):
        return FakeResponse(status, {"error": reason}, reason)
    return _make


@pytest.fixture
def connection_error():
    def _make(message="connection reset"):
        return aiohttp.ClientConnectionError(message)
    return _make


@pytest.fixture
def sleeps(monkeypatch):
    """Record backoff sleeps instead of waiting."""
    delays = []

    async def _sleep(delay, *args, **kwargs):
        delays.append(delay)

    monkeypatch.setattr(asyncio, "sleep", _sleep)
    return delays
