from pydantic import BaseModel
from enum import Enum
from datetime import datetime
from typing import Optional, Dict, Any


class MembershipRole(str, Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    MEMBER = "member"
    VALIDATOR = "validator"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    INVITED = "invited"
    BLOCKED = "blocked"


class SpaceVisibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class TeamCreate(BaseModel):
    name: str
    description: Optional[str] = None
    avatar_media_id: Optional[str] = None


class TeamUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    avatar_media_id: Optional[str] = None


class TeamResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    avatar_media_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MemberAdd(BaseModel):
    user_id: str
    role: MembershipRole = MembershipRole.MEMBER


class MembershipUpdate(BaseModel):
    role: Optional[MembershipRole] = None
    status: Optional[MembershipStatus] = None


class TeamMembershipResponse(BaseModel):
    id: str
    team_id: str
    user_id: str
    role: MembershipRole
    status: MembershipStatus
    created_at: Optional[datetime] = None
    username: Optional[str] = None
    full_name: Optional[str] = None

    class Config:
        from_attributes = True


class SpaceMembershipResponse(BaseModel):
    id: str
    space_id: str
    user_id: str
    role: MembershipRole
    status: MembershipStatus
    created_at: Optional[datetime] = None
    username: Optional[str] = None
    full_name: Optional[str] = None

    class Config:
        from_attributes = True


class SpaceCreate(BaseModel):
    team_id: str
    name: str
    visibility: SpaceVisibility = SpaceVisibility.PUBLIC
    settings: Optional[Dict[str, Any]] = None


class SpaceUpdate(BaseModel):
    name: Optional[str] = None
    visibility: Optional[SpaceVisibility] = None
    settings: Optional[Dict[str, Any]] = None


class SpaceResponse(BaseModel):
    id: str
    team_id: str
    name: str
    visibility: SpaceVisibility
    settings: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SpaceWithTeamResponse(SpaceResponse):
    team: Optional[TeamResponse] = None
    member_count: int = 0
    idea_count: int = 0


class SpaceRoleResponse(BaseModel):
    space_id: str
    user_id: str
    role: Optional[MembershipRole] = None
    is_admin: bool = False
    is_member: bool = False
