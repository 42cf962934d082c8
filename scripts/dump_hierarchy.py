#!/usr/bin/env python3
"""
Dump a tenant's merged campaign hierarchy as JSON

Usage:
    python scripts/dump_hierarchy.py --tenant-id TENANT [--source HYBRID_ALL] [--since YYYY-MM-DD] [--until YYYY-MM-DD]

Examples:
    # Last 30 days, CRM reconciled against every ads platform
    python scripts/dump_hierarchy.py --tenant-id acme

    # Meta only, fixed range, written to a file
    python scripts/dump_hierarchy.py --tenant-id acme --source META --since 2025-01-01 --until 2025-01-31 > meta.json

    # Which selectors the tenant can use
    python scripts/dump_hierarchy.py --tenant-id acme --list-sources
"""
import asyncio
import json
import sys
import argparse
from datetime import date, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from funnelhub.models.base import SessionLocal, init_db
from funnelhub.schemas.sources import DataSourceType
from funnelhub.services.availability import get_available_sources
from funnelhub.services.hybrid_service import HybridService
from funnelhub.utils.logger import log


async def dump_hierarchy(tenant_id: str, source: str, since: str, until: str, indent: int = 2):
    """Print the merged hierarchy for one tenant and selector."""
    init_db()
    db = SessionLocal()
    try:
        service = HybridService(db)
        result = await service.fetch_hybrid(tenant_id, source, since, until)
        print(json.dumps(result.to_dict(), indent=indent, ensure_ascii=False))
        log.info(f"Dumped {len(result.campaigns)} campaigns for {tenant_id} ({source})")
    finally:
        db.close()


def list_sources(tenant_id: str):
    init_db()
    db = SessionLocal()
    try:
        for source in get_available_sources(db, tenant_id):
            print(source.value)
    finally:
        db.close()


if __name__ == "__main__":
    today = date.today()

    parser = argparse.ArgumentParser(
        description="Dump a tenant's merged campaign hierarchy as JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--tenant-id", type=str, required=True,
        help="Tenant to load"
    )
    parser.add_argument(
        "--source", type=str, default=DataSourceType.HYBRID_ALL.value,
        choices=[s.value for s in DataSourceType],
        help="Data source selector (default: HYBRID_ALL)"
    )
    parser.add_argument(
        "--since", type=str, default=(today - timedelta(days=30)).isoformat(),
        help="First day, YYYY-MM-DD (default: 30 days ago)"
    )
    parser.add_argument(
        "--until", type=str, default=today.isoformat(),
        help="Last day, YYYY-MM-DD (default: today)"
    )
    parser.add_argument(
        "--indent", type=int, default=2,
        help="JSON indent (default: 2)"
    )
    parser.add_argument(
        "--list-sources", action="store_true",
        help="Print the available selectors instead of the hierarchy"
    )

    args = parser.parse_args()

    if args.list_sources:
        list_sources(args.tenant_id)
    else:
        asyncio.run(dump_hierarchy(
            tenant_id=args.tenant_id,
            source=args.source,
            since=args.since,
            until=args.until,
            indent=args.indent
        ))
