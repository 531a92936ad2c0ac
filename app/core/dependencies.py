"""
Core dependencies for route protection and service wiring
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from app.config import Settings, settings as app_settings
from app.database.supabase_client import get_service_supabase
from app.modules.auth.schemas import CurrentUser
from app.modules.auth.service import AuthService
from app.modules.identity.resolver import ProfileResolver
from app.modules.identity.stats import StatsReporter

security = HTTPBearer()


def get_settings() -> Settings:
    return app_settings


def get_auth_service(
    supabase: Client = Depends(get_service_supabase),
    settings: Settings = Depends(get_settings)
) -> AuthService:
    return AuthService(supabase, settings)


def get_profile_resolver(
    supabase: Client = Depends(get_service_supabase),
    settings: Settings = Depends(get_settings)
) -> ProfileResolver:
    return ProfileResolver(supabase, settings)


def get_stats_reporter(
    supabase: Client = Depends(get_service_supabase),
    settings: Settings = Depends(get_settings),
    resolver: ProfileResolver = Depends(get_profile_resolver)
) -> StatsReporter:
    return StatsReporter(supabase, settings, resolver)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> CurrentUser:
    """Extract current user from JWT token"""
    return auth_service.get_current_user(credentials.credentials)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required"
        )
    return user


def is_self(user: CurrentUser, candidate_id: str) -> bool:
    """True if candidate_id is either of the caller's own ids."""
    candidate = (candidate_id or "").lower()
    return candidate in {user.profile_id.lower(), (user.auth_id or "").lower()} and candidate != ""


def require_self_or_admin(user: CurrentUser, candidate_id: str) -> None:
    if not user.is_admin and not is_self(user, candidate_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User not accessible"
        )
