"""
Tenant source configuration
Reads which providers a tenant has connected and how each one is set up.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from funnelhub.models.tenant import AdAccount, IntegrationConfig, Tenant
from funnelhub.utils.logger import log

ACTIVE_ACCOUNT_STATUS = "ACTIVE"


def clean_labels(raw) -> List[str]:
    """Journey map as a list of non-empty label strings (anything else -> [])."""
    if not isinstance(raw, list):
        return []
    return [str(label).strip() for label in raw if label is not None and str(label).strip()]


@dataclass
class TenantSources:
    """Snapshot of one tenant's provider setup."""
    tenant_id: str
    crm_active: bool = False
    crm_subdomain: Optional[str] = None
    crm_labels: List[str] = field(default_factory=list)
    # provider -> active account ids, in creation order
    platform_accounts: Dict[str, List[str]] = field(default_factory=dict)
    # provider -> display labels configured on that platform's integration row
    platform_labels: Dict[str, List[str]] = field(default_factory=dict)

    def is_available(self, provider: str) -> bool:
        if provider == "CRM":
            return self.crm_active
        return bool(self.platform_accounts.get(provider))


def load_tenant_sources(db: Session, tenant_id: str) -> TenantSources:
    """
    Read a tenant's integrations and ad accounts.

    An unknown tenant yields an empty configuration. A platform is usable
    when it has at least one ACTIVE account and its integration row, if
    there is one, is not switched off.
    """
    sources = TenantSources(tenant_id=tenant_id)

    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if tenant is None:
        log.warning(f"Tenant {tenant_id} not found; no sources configured")
        return sources

    disabled_platforms = set()
    integrations = db.query(IntegrationConfig).filter(IntegrationConfig.tenant_id == tenant_id).all()
    for integration in integrations:
        provider = (integration.provider or "").upper()
        if provider == "CRM":
            sources.crm_active = bool(integration.is_active)
            config = integration.config if isinstance(integration.config, dict) else {}
            subdomain = str(config.get("subdomain") or "").strip()
            sources.crm_subdomain = subdomain or None
            sources.crm_labels = clean_labels(integration.journey_map)
        elif not integration.is_active:
            disabled_platforms.add(provider)
        else:
            labels = clean_labels(integration.journey_map)
            if labels:
                sources.platform_labels[provider] = labels

    accounts = (
        db.query(AdAccount)
        .filter(AdAccount.tenant_id == tenant_id)
        .order_by(AdAccount.id)
        .all()
    )
    for account in accounts:
        provider = (account.provider or "").upper()
        if provider in disabled_platforms:
            continue
        if (account.status or "").upper() != ACTIVE_ACCOUNT_STATUS:
            continue
        sources.platform_accounts.setdefault(provider, []).append(account.account_id)

    if sources.crm_active and not sources.crm_subdomain:
        log.warning(f"Tenant {tenant_id} has an active CRM integration without a subdomain")

    return sources
