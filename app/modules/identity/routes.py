from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from typing import Optional

from app.config import Settings
from app.core.dependencies import (
    get_current_user, get_profile_resolver, get_settings, get_stats_reporter,
    require_admin, require_self_or_admin
)
from app.core.exceptions import InvalidIdentifier
from app.modules.auth.schemas import CurrentUser
from app.modules.identity.identifiers import is_uuid
from app.modules.identity.resolver import ProfileResolver
from app.modules.identity.schemas import (
    IdentityResponse, MissingProfilePolicy, RankingResponse, RankingScope,
    RecentCheckinsResponse, UserStats
)
from app.modules.identity.stats import StatsReporter

router = APIRouter(prefix="/users", tags=["users"])


def _checked(user_id: str, user: CurrentUser) -> str:
    if not is_uuid(user_id):
        raise InvalidIdentifier()
    require_self_or_admin(user, user_id)
    return user_id


@router.get("/me/stats", response_model=UserStats)
def get_my_stats(
    user: CurrentUser = Depends(get_current_user),
    reporter: StatsReporter = Depends(get_stats_reporter)
):
    """Stats for the authenticated caller"""
    return reporter.stats_for(user.profile_id, current_user=user)


@router.get("/stats", response_model=UserStats)
def get_stats_by_reference(
    user_id: Optional[str] = Query(None, alias="userId"),
    x_user_id: Optional[str] = Header(None),
    user: CurrentUser = Depends(get_current_user),
    reporter: StatsReporter = Depends(get_stats_reporter),
    settings: Settings = Depends(get_settings)
):
    """Stats for the id given as ?userId= or in the x-user-id header"""
    candidate = user_id or x_user_id
    if not candidate:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User ID is required")
    candidate = _checked(candidate, user)
    return reporter.stats_for(
        candidate,
        on_missing=MissingProfilePolicy(settings.stats_missing_profile_policy),
        current_user=user,
    )


@router.get("/{user_id}/stats", response_model=UserStats)
def get_user_stats(
    user_id: str,
    user: CurrentUser = Depends(get_current_user),
    reporter: StatsReporter = Depends(get_stats_reporter),
    settings: Settings = Depends(get_settings)
):
    """Stats for a user given either their users.id or auth id"""
    _checked(user_id, user)
    return reporter.stats_for(
        user_id,
        on_missing=MissingProfilePolicy(settings.stats_missing_profile_policy),
        current_user=user,
    )


@router.get("/{user_id}/identity", response_model=IdentityResponse)
def get_user_identity(
    user_id: str,
    admin: CurrentUser = Depends(require_admin),
    resolver: ProfileResolver = Depends(get_profile_resolver)
):
    """Resolve an id to the canonical (profile_id, auth_id) pair (admin only)"""
    identity = resolver.require(user_id)
    return IdentityResponse(profile_id=identity.profile_id, auth_id=identity.auth_id)


@router.get("/{user_id}/ranking", response_model=RankingResponse)
def get_user_ranking(
    user_id: str,
    scope: RankingScope = RankingScope.GLOBAL,
    user: CurrentUser = Depends(get_current_user),
    resolver: ProfileResolver = Depends(get_profile_resolver),
    reporter: StatsReporter = Depends(get_stats_reporter)
):
    """Ranking position by points, globally or within the user's city/state"""
    _checked(user_id, user)
    identity = resolver.require(user_id, current_user=user)
    return reporter.ranking_position(identity, scope)


@router.get("/{user_id}/checkins", response_model=RecentCheckinsResponse)
def get_user_checkins(
    user_id: str,
    limit: int = Query(10, ge=1, le=50),
    user: CurrentUser = Depends(get_current_user),
    resolver: ProfileResolver = Depends(get_profile_resolver),
    reporter: StatsReporter = Depends(get_stats_reporter)
):
    """Latest event and geographic check-ins"""
    _checked(user_id, user)
    identity = resolver.require(user_id, current_user=user)
    return RecentCheckinsResponse(checkins=reporter.recent_checkins(identity, limit))
