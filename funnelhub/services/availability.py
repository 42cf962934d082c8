"""
Data source availability
Which dashboard selectors a tenant can pick, given its connected providers.
"""
from typing import List

from sqlalchemy.orm import Session

from funnelhub.schemas.sources import DataSourceType
from funnelhub.services.tenant_sources import TenantSources, load_tenant_sources


def available_for(sources: TenantSources) -> List[DataSourceType]:
    """Selectors whose providers are all available (hybrids are all-or-nothing)."""
    return [
        source for source in DataSourceType
        if all(sources.is_available(provider) for provider in source.providers)
    ]


def get_available_sources(db: Session, tenant_id: str) -> List[DataSourceType]:
    """Read-only; same tenant state always gives the same list, in declaration order."""
    return available_for(load_tenant_sources(db, tenant_id))
