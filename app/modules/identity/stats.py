import logging
from concurrent.futures import ThreadPoolExecutor
from supabase import Client
from typing import Dict, List, Tuple

from app.config import Settings
from app.core.exceptions import InvalidIdentifier, ProfileNotFound, StorageUnavailable
from app.modules.identity.identifiers import is_uuid
from app.modules.identity.predicates import Predicate, apply_predicate, build_user_filter
from app.modules.identity.resolver import ProfileResolver
from app.modules.identity.schemas import (
    CheckinItem, MissingProfilePolicy, RankingResponse, RankingScope,
    ResolvedIdentity, UserStats
)

logger = logging.getLogger(__name__)

# Stat name -> physical tables summed into it
COUNT_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "checkins": ("checkins", "geographic_checkins"),
    "conversations": ("ai_conversations",),
    "messages": ("ai_messages",),
}


def _as_int(value, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class StatsReporter:
    def __init__(self, supabase: Client, settings: Settings, resolver: ProfileResolver = None):
        self.supabase = supabase
        self.settings = settings
        self.resolver = resolver or ProfileResolver(supabase, settings)

    def compute_stats(self, identity: ResolvedIdentity) -> UserStats:
        """Count dependent records under both keys and merge the profile scalars (points, level, created_at)."""
        predicate = build_user_filter(identity)
        tables = sorted({t for group in COUNT_CATEGORIES.values() for t in group})
        counts = self._count_tables(tables, predicate)

        totals = {
            name: sum(counts[t] for t in group)
            for name, group in COUNT_CATEGORIES.items()
        }
        return UserStats(
            checkins=totals["checkins"],
            conversations=totals["conversations"],
            messages=totals["messages"],
            points=_as_int(identity.points),
            level=_as_int(identity.level, self.settings.default_level),
            member_since=identity.created_at,
        )

    def stats_for(
        self,
        candidate_id: str,
        on_missing: MissingProfilePolicy = MissingProfilePolicy.NOT_FOUND,
        current_user=None,
    ) -> UserStats:
        if not is_uuid(candidate_id):
            raise InvalidIdentifier()
        identity = self.resolver.resolve(candidate_id, current_user=current_user)
        if identity is None:
            if on_missing == MissingProfilePolicy.ZERO:
                logger.info(f"Unknown user {candidate_id}, answering with empty stats")
                return UserStats.empty(self.settings.default_level)
            raise ProfileNotFound()
        return self.compute_stats(identity)

    def ranking_position(self, identity: ResolvedIdentity, scope: RankingScope = RankingScope.GLOBAL) -> RankingResponse:
        """Position = 1 + number of users with strictly more points in the scope."""
        points = _as_int(identity.points)
        effective = scope
        query = self.supabase.table(self.settings.profiles_table)\
            .select("id", count="exact", head=True)\
            .gt("points", points)
        if scope == RankingScope.CITY and identity.city:
            query = query.eq("city", identity.city)
        elif scope == RankingScope.STATE and identity.state:
            query = query.eq("state", identity.state)
        else:
            effective = RankingScope.GLOBAL

        try:
            result = query.execute()
        except Exception as e:
            logger.error(f"Ranking query failed for {identity.profile_id}: {e}")
            raise StorageUnavailable() from e

        return RankingResponse(
            scope=effective,
            position=_as_int(result.count) + 1,
            points=points,
            city=identity.city if effective == RankingScope.CITY else None,
            state=identity.state if effective == RankingScope.STATE else None,
        )

    def recent_checkins(self, identity: ResolvedIdentity, limit: int = 10) -> List[CheckinItem]:
        """Latest event and geographic check-ins, merged newest first."""
        predicate = build_user_filter(identity)
        try:
            events = apply_predicate(
                self.supabase.table("checkins").select("*, events(title, location)"),
                predicate,
            ).order("created_at", desc=True).limit(limit).execute()
            geo = apply_predicate(
                self.supabase.table("geographic_checkins").select("*, manifestations(name, city, state)"),
                predicate,
            ).order("checked_in_at", desc=True).limit(limit).execute()
        except Exception as e:
            logger.error(f"Check-in listing failed for {identity.profile_id}: {e}")
            raise StorageUnavailable() from e

        items = []
        for row in events.data or []:
            event = row.get("events") or {}
            items.append(CheckinItem(
                id=str(row["id"]),
                type="event",
                name=event.get("title") or "Unknown event",
                location=event.get("location"),
                created_at=row.get("created_at"),
            ))
        for row in geo.data or []:
            manifestation = row.get("manifestations")
            location = None
            if manifestation:
                location = f"{manifestation.get('city')}, {manifestation.get('state')}"
            items.append(CheckinItem(
                id=str(row["id"]),
                type="manifestation",
                name=(manifestation or {}).get("name") or "Unknown manifestation",
                location=location,
                created_at=row.get("checked_in_at") or row.get("created_at"),
            ))

        items.sort(key=lambda c: c.created_at or "", reverse=True)
        return items[:limit]

    def _count_tables(self, tables: List[str], predicate: Predicate) -> Dict[str, int]:
        """Run one head/count query per table concurrently; any failure fails the whole call."""
        executor = ThreadPoolExecutor(max_workers=max(1, self.settings.stats_max_workers))
        try:
            futures = {t: executor.submit(self._count, t, predicate) for t in tables}
            return {t: f.result() for t, f in futures.items()}
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _count(self, table: str, predicate: Predicate) -> int:
        try:
            result = apply_predicate(
                self.supabase.table(table).select("id", count="exact", head=True),
                predicate,
            ).execute()
        except Exception as e:
            logger.error(f"Count query on {table} failed: {e}")
            raise StorageUnavailable() from e
        return _as_int(result.count)
