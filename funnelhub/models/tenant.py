"""
Tenant configuration models

Stores which providers a tenant has connected: the CRM integration with its
journey-stage labels, and the ad accounts synced from each ads platform.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from funnelhub.models.base import Base


class Tenant(Base):
    """A client workspace on the dashboard"""
    __tablename__ = "tenants"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    integrations = relationship(
        "IntegrationConfig", back_populates="tenant", cascade="all, delete-orphan"
    )
    ad_accounts = relationship(
        "AdAccount", back_populates="tenant", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Tenant {self.id} - {self.name}>"


class IntegrationConfig(Base):
    """Per-tenant provider integration"""
    __tablename__ = "integration_configs"
    __table_args__ = (
        UniqueConstraint("tenant_id", "provider", name="uq_integration_tenant_provider"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, ForeignKey("tenants.id"), index=True, nullable=False)

    provider = Column(String, nullable=False)
    # Providers: CRM, META, GOOGLE

    is_active = Column(Boolean, default=True, nullable=False)

    config = Column(JSON, nullable=True)
    # CRM: {"subdomain": "..."}

    journey_map = Column(JSON, nullable=True)
    # Ordered stage labels, e.g. ["Created", "Qualified", "Sale"]

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tenant = relationship("Tenant", back_populates="integrations")

    def __repr__(self):
        return f"<IntegrationConfig {self.tenant_id} - {self.provider}>"


class AdAccount(Base):
    """Ads platform account linked to a tenant"""
    __tablename__ = "ad_accounts"
    __table_args__ = (
        UniqueConstraint("provider", "account_id", name="uq_ad_account_provider_account"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, ForeignKey("tenants.id"), index=True, nullable=False)

    provider = Column(String, nullable=False)
    # Providers: META, GOOGLE

    account_id = Column(String, index=True, nullable=False)
    # Meta: act_<id>, Google: customer id
    name = Column(String, nullable=True)

    status = Column(String, default="ACTIVE", nullable=False)
    # Status: ACTIVE, DISABLED, UNSETTLED, ...

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="ad_accounts")
    insights = relationship(
        "AdInsightDaily", back_populates="ad_account", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<AdAccount {self.provider} {self.account_id} ({self.status})>"
