from enum import Enum
from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class MissingProfilePolicy(str, Enum):
    NOT_FOUND = "not_found"  # raise ProfileNotFound -> 404
    ZERO = "zero"  # answer with empty stats


class RankingScope(str, Enum):
    GLOBAL = "global"
    CITY = "city"
    STATE = "state"


class ResolvedIdentity(BaseModel):
    """Canonical (profile_id, auth_id) pair plus the cached profile scalars."""
    profile_id: str
    auth_id: Optional[str] = None
    points: Optional[int] = None
    level: Optional[int] = None
    created_at: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ResolvedIdentity":
        created_at = row.get("created_at")
        return cls(
            profile_id=str(row["id"]),
            auth_id=str(row["auth_id"]) if row.get("auth_id") else None,
            points=row.get("points"),
            level=row.get("level"),
            created_at=str(created_at) if created_at is not None else None,
            city=row.get("city"),
            state=row.get("state"),
        )


class IdentityResponse(BaseModel):
    profile_id: str
    auth_id: Optional[str] = None


class UserStats(BaseModel):
    checkins: int = 0
    conversations: int = 0
    messages: int = 0
    points: int = 0
    level: int = 1
    member_since: Optional[str] = None

    @classmethod
    def empty(cls, default_level: int = 1) -> "UserStats":
        return cls(level=default_level)


class RankingResponse(BaseModel):
    scope: RankingScope
    position: int
    points: int
    city: Optional[str] = None
    state: Optional[str] = None


class CheckinItem(BaseModel):
    id: str
    type: str  # event | manifestation
    name: str
    location: Optional[str] = None
    created_at: Optional[str] = None


class RecentCheckinsResponse(BaseModel):
    checkins: List[CheckinItem]
