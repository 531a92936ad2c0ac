import logging
from supabase import Client
from typing import Optional, Dict, Any

from app.config import Settings
from app.core.exceptions import InvalidIdentifier, ProfileNotFound, StorageUnavailable
from app.modules.identity.identifiers import is_uuid
from app.modules.identity.schemas import ResolvedIdentity

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "id, auth_id, points, level, created_at, city, state"


class ProfileResolver:
    def __init__(self, supabase: Client, settings: Settings):
        self.supabase = supabase
        self.settings = settings

    def resolve(self, candidate_id: str, current_user=None) -> Optional[ResolvedIdentity]:
        """
        Map a public users.id or an auth id to the canonical identity.

        Returns None for malformed ids (no query issued) and for ids that
        match neither column (after exactly two lookups). When candidate_id
        is one of current_user's ids, only the users.id lookup is made.
        """
        if not is_uuid(candidate_id):
            logger.debug(f"Rejected non-UUID user id {candidate_id!r}")
            return None

        if current_user is not None:
            known = {current_user.profile_id.lower(), (current_user.auth_id or "").lower()}
            if candidate_id.lower() in known:
                row = self._find_one("id", current_user.profile_id)
                return ResolvedIdentity.from_row(row) if row else None

        row = self._find_one("id", candidate_id)
        if row is None:
            row = self._find_one("auth_id", candidate_id)
        if row is None:
            logger.debug(f"No profile for id or auth_id {candidate_id}")
            return None
        return ResolvedIdentity.from_row(row)

    def require(self, candidate_id: str, current_user=None) -> ResolvedIdentity:
        if not is_uuid(candidate_id):
            raise InvalidIdentifier()
        identity = self.resolve(candidate_id, current_user=current_user)
        if identity is None:
            raise ProfileNotFound()
        return identity

    def _find_one(self, column: str, value: str) -> Optional[Dict[str, Any]]:
        try:
            result = self.supabase.table(self.settings.profiles_table)\
                .select(PROFILE_COLUMNS)\
                .eq(column, value)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Profile lookup by {column} failed: {e}")
            raise StorageUnavailable() from e
        return result.data[0] if result.data else None
