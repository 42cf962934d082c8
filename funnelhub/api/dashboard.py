"""
Campaign Dashboard API

Endpoints for the data source picker and the merged campaign tree.
"""
from fastapi import APIRouter, Depends, Query, HTTPException
from sqlalchemy.orm import Session
from typing import Optional

from funnelhub.connectors.errors import ProviderFetchError
from funnelhub.models.base import get_db
from funnelhub.services.availability import get_available_sources
from funnelhub.services.hybrid_service import HybridService
from funnelhub.utils.logger import log

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/datasources")
def get_datasources(
    tenant_id: Optional[str] = Query(None, description="Tenant to inspect"),
    db: Session = Depends(get_db)
):
    """
    Data source selectors the tenant can pick.

    Hybrid selectors only appear when every provider they combine is connected.
    """
    if not tenant_id:
        raise HTTPException(status_code=400, detail="tenant_id is required")

    return [source.value for source in get_available_sources(db, tenant_id)]


@router.get("/data")
async def get_dashboard_data(
    tenant_id: Optional[str] = Query(None, description="Tenant to load"),
    data_source: Optional[str] = Query(None, alias="dataSource", description="CRM, META, GOOGLE or HYBRID_*"),
    since: Optional[str] = Query(None, description="First day, YYYY-MM-DD"),
    until: Optional[str] = Query(None, description="Last day, YYYY-MM-DD"),
    db: Session = Depends(get_db)
):
    """
    Merged campaign hierarchy for the selected source

    Returns:
    - campaigns: campaign -> ad set -> ad tree with stage1..stage5, spend, revenue, ROAS
    - labels: stage labels for the table header
    """
    missing = [
        name for name, value in (
            ("tenant_id", tenant_id), ("dataSource", data_source), ("since", since), ("until", until)
        ) if not value
    ]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing parameters: {', '.join(missing)}")

    try:
        service = HybridService(db)
        result = await service.fetch_hybrid(tenant_id, data_source, since, until)
        return result.to_dict()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderFetchError as e:
        log.error(f"Dashboard data for {tenant_id} ({data_source}) failed: {str(e)}")
        raise HTTPException(status_code=502, detail=str(e))
