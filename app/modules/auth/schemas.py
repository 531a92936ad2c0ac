from pydantic import BaseModel
from typing import Optional


class CurrentUser(BaseModel):
    """Authenticated caller: auth token subject joined to its users row ids."""
    profile_id: str
    auth_id: Optional[str] = None
    email: Optional[str] = None
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class MeResponse(BaseModel):
    profile_id: str
    auth_id: Optional[str] = None
    email: Optional[str] = None
    role: str
