import hashlib
import logging
import time
from supabase import Client
from fastapi import HTTPException
from typing import Dict, Tuple

from app.config import Settings
from app.core.exceptions import StorageUnavailable
from app.modules.auth.schemas import CurrentUser

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token).
# Holds ids and role only; points/level are always read fresh from users.
_AUTH_USER_CACHE: Dict[str, Tuple[CurrentUser, float]] = {}
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client, settings: Settings):
        self.supabase = supabase
        self.settings = settings

    def get_current_user(self, token: str) -> CurrentUser:
        """Validate the Supabase JWT and load the caller's users row by auth_id. Uses short TTL cache."""
        cache_key = hashlib.sha256(token.encode()).hexdigest()
        now = time.monotonic()
        if cache_key in _AUTH_USER_CACHE:
            user, expiry = _AUTH_USER_CACHE[cache_key]
            if now < expiry:
                return user
            del _AUTH_USER_CACHE[cache_key]

        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            logger.warning(f"Auth provider rejected token: {e}")
            raise HTTPException(status_code=401, detail="Authentication failed")

        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        auth_user = user_response.user

        try:
            result = self.supabase.table(self.settings.profiles_table)\
                .select("id, auth_id, email, role")\
                .eq("auth_id", auth_user.id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Profile lookup for auth user {auth_user.id} failed: {e}")
            raise StorageUnavailable() from e

        if not result.data:
            # Auth record without a mirrored users row
            logger.warning(f"Auth user {auth_user.id} has no users row")
            raise HTTPException(status_code=401, detail="User profile not found")

        row = result.data[0]
        user = CurrentUser(
            profile_id=str(row["id"]),
            auth_id=str(row["auth_id"]) if row.get("auth_id") else None,
            email=row.get("email") or auth_user.email,
            role=row.get("role") or "user",
        )
        if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
            _AUTH_USER_CACHE[cache_key] = (user, now + self.settings.auth_cache_ttl_sec)
        return user
