"""
Audit User Links Script
Reports, per dependent table, how many rows point at users.id, how many still
point at the auth id, and how many point at no known user at all.
Read only. Optionally prints resolved identity and stats for one user.

Usage:
    python -m app.scripts.audit_user_links [--table checkins ...] [--user <uuid>]
"""

import sys
import argparse
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config import Settings, settings as app_settings
from app.database.supabase_client import get_service_supabase
from app.modules.identity.resolver import ProfileResolver
from app.modules.identity.stats import StatsReporter
from supabase import Client
from typing import Dict, Iterable, List, Optional
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_TABLES = ["checkins", "geographic_checkins", "ai_conversations", "ai_messages", "user_goals"]
PAGE_SIZE = 1000


def classify_user_refs(refs: Iterable[Optional[str]], profiles: Iterable[Dict]) -> Dict[str, int]:
    """Bucket user_id values by which users column (if any) they reference."""
    profile_ids = set()
    auth_ids = set()
    for p in profiles:
        profile_ids.add(str(p["id"]).lower())
        if p.get("auth_id"):
            auth_ids.add(str(p["auth_id"]).lower())

    counts = {"profile_id": 0, "auth_id": 0, "orphaned": 0, "null": 0}
    for ref in refs:
        if ref is None:
            counts["null"] += 1
            continue
        key = str(ref).lower()
        if key in profile_ids:
            counts["profile_id"] += 1
        elif key in auth_ids:
            counts["auth_id"] += 1
        else:
            counts["orphaned"] += 1
    return counts


def fetch_all(supabase: Client, table: str, columns: str) -> List[Dict]:
    rows = []
    offset = 0
    while True:
        result = supabase.table(table)\
            .select(columns)\
            .range(offset, offset + PAGE_SIZE - 1)\
            .execute()
        batch = result.data or []
        rows.extend(batch)
        if len(batch) < PAGE_SIZE:
            return rows
        offset += PAGE_SIZE


def audit(supabase: Client, settings: Settings, tables: List[str]) -> Dict[str, Dict[str, int]]:
    profiles = fetch_all(supabase, settings.profiles_table, "id, auth_id")
    logger.info(f"Loaded {len(profiles)} profiles")
    report = {}
    for table in tables:
        try:
            rows = fetch_all(supabase, table, "user_id")
        except Exception as e:
            logger.error(f"Could not read {table}: {e}")
            continue
        report[table] = classify_user_refs((r.get("user_id") for r in rows), profiles)
        logger.info(f"{table}: {report[table]}")
    return report


def describe_user(supabase: Client, settings: Settings, candidate_id: str) -> int:
    resolver = ProfileResolver(supabase, settings)
    identity = resolver.resolve(candidate_id)
    if identity is None:
        logger.error(f"No profile matches {candidate_id} as id or auth_id")
        return 1
    logger.info(f"Resolved: profile_id={identity.profile_id} auth_id={identity.auth_id}")
    stats = StatsReporter(supabase, settings, resolver).compute_stats(identity)
    logger.info(f"Stats: {stats.model_dump()}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--table", action="append", dest="tables", help="Dependent table to audit (repeatable)")
    parser.add_argument("--user", help="Resolve one id and print its stats")
    args = parser.parse_args(argv)

    supabase = get_service_supabase()
    if args.user:
        return describe_user(supabase, app_settings, args.user)

    report = audit(supabase, app_settings, args.tables or DEFAULT_TABLES)
    debt = sum(r["auth_id"] for r in report.values())
    orphans = sum(r["orphaned"] for r in report.values())
    logger.info(f"Rows still keyed by auth_id: {debt}; orphaned rows: {orphans}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
