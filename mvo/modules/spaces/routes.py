from fastapi import APIRouter, Depends, HTTPException, status
from mvo.database.supabase_client import get_supabase, get_service_supabase
from mvo.modules.spaces.schemas import (
    TeamCreate, TeamUpdate, TeamResponse, TeamMembershipResponse, MemberAdd, MembershipUpdate,
    SpaceCreate, SpaceUpdate, SpaceResponse, SpaceWithTeamResponse, SpaceMembershipResponse,
    SpaceRoleResponse, MembershipRole, SpaceVisibility
)
from mvo.modules.spaces.service import SpaceService
from mvo.core.dependencies import (
    get_current_user, get_optional_user, get_user_supabase, is_super_user,
    check_space_admin
)
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(tags=["spaces"])


def get_space_service(supabase: Client = Depends(get_supabase)) -> SpaceService:
    return SpaceService(supabase)


def get_counting_space_service(supabase: Client = Depends(get_service_supabase)) -> SpaceService:
    """Member counts span other users' memberships, which RLS hides from the anon client"""
    return SpaceService(supabase)


def get_user_space_service(supabase: Client = Depends(get_user_supabase)) -> SpaceService:
    return SpaceService(supabase)


def _require_team_admin(team_id: str, user_data: dict, service: SpaceService):
    if is_super_user(user_data) or service.is_team_admin(team_id, user_data["id"]):
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Only team admins can perform this action"
    )


# Teams

@router.post("/teams", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    team_data: TeamCreate,
    user_data: Dict = Depends(get_current_user),
    service: SpaceService = Depends(get_user_space_service)
):
    """Create a team; the caller becomes its admin"""
    return service.create_team(team_data, user_data["id"])


@router.get("/teams", response_model=List[TeamResponse])
async def list_teams(service: SpaceService = Depends(get_space_service)):
    return service.list_teams()


@router.get("/teams/mine", response_model=List[TeamResponse])
async def my_teams(
    user_data: Dict = Depends(get_current_user),
    service: SpaceService = Depends(get_space_service)
):
    return service.get_user_teams(user_data["id"])


@router.get("/teams/{team_id}", response_model=TeamResponse)
async def get_team(team_id: str, service: SpaceService = Depends(get_space_service)):
    return service.get_team_by_id(team_id)


@router.put("/teams/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: str,
    team_data: TeamUpdate,
    user_data: Dict = Depends(get_current_user),
    service: SpaceService = Depends(get_user_space_service)
):
    _require_team_admin(team_id, user_data, service)
    return service.update_team(team_id, team_data)


@router.get("/teams/{team_id}/members", response_model=List[TeamMembershipResponse])
async def list_team_members(team_id: str, service: SpaceService = Depends(get_space_service)):
    return service.list_team_members(team_id)


@router.post("/teams/{team_id}/members", response_model=TeamMembershipResponse, status_code=status.HTTP_201_CREATED)
async def add_team_member(
    team_id: str,
    member: MemberAdd,
    user_data: Dict = Depends(get_current_user),
    service: SpaceService = Depends(get_user_space_service)
):
    _require_team_admin(team_id, user_data, service)
    return service.add_team_member(team_id, member)


@router.put("/teams/{team_id}/members/{user_id}", response_model=TeamMembershipResponse)
async def update_team_member(
    team_id: str,
    user_id: str,
    updates: MembershipUpdate,
    user_data: Dict = Depends(get_current_user),
    service: SpaceService = Depends(get_user_space_service)
):
    _require_team_admin(team_id, user_data, service)
    return service.update_team_member(team_id, user_id, updates)


# Spaces

@router.post("/spaces", response_model=SpaceResponse, status_code=status.HTTP_201_CREATED)
async def create_space(
    space_data: SpaceCreate,
    user_data: Dict = Depends(get_current_user),
    service: SpaceService = Depends(get_user_space_service)
):
    """Create a space under a team the caller belongs to"""
    if not is_super_user(user_data) and not service.is_team_member(space_data.team_id, user_data["id"]):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be a member of this team"
        )
    return service.create_space(space_data)


@router.get("/spaces", response_model=List[SpaceResponse])
async def list_spaces(
    team_id: Optional[str] = None,
    service: SpaceService = Depends(get_space_service)
):
    return service.list_spaces(team_id)


@router.get("/spaces/visible", response_model=List[SpaceWithTeamResponse])
async def visible_spaces(
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: SpaceService = Depends(get_counting_space_service)
):
    """Public spaces, plus the caller's private spaces when signed in"""
    return service.get_visible_spaces(user_data["id"] if user_data else None)


@router.get("/spaces/{space_id}", response_model=SpaceWithTeamResponse)
async def get_space(
    space_id: str,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: SpaceService = Depends(get_counting_space_service)
):
    """Space with team and counts; private spaces are only visible to their members"""
    space = service.get_space_by_id(space_id)
    if space.visibility == SpaceVisibility.PRIVATE:
        allowed = user_data is not None and (
            is_super_user(user_data) or service.is_space_member(space_id, user_data["id"])
        )
        if not allowed:
            raise HTTPException(status_code=404, detail="Space not found")
    return space


@router.put("/spaces/{space_id}", response_model=SpaceResponse)
async def update_space(
    space_id: str,
    space_data: SpaceUpdate,
    user_data: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_user_supabase)
):
    check_space_admin(space_id, user_data, supabase)
    return SpaceService(supabase).update_space(space_id, space_data)


@router.delete("/spaces/{space_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_space(
    space_id: str,
    user_data: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_user_supabase)
):
    check_space_admin(space_id, user_data, supabase)
    if not SpaceService(supabase).delete_space(space_id):
        raise HTTPException(status_code=404, detail="Space not found")


@router.get("/spaces/{space_id}/members", response_model=List[SpaceMembershipResponse])
async def list_space_members(space_id: str, service: SpaceService = Depends(get_space_service)):
    return service.list_space_members(space_id)


@router.post("/spaces/{space_id}/members", response_model=SpaceMembershipResponse, status_code=status.HTTP_201_CREATED)
async def add_space_member(
    space_id: str,
    member: MemberAdd,
    user_data: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_user_supabase)
):
    """Join a public space yourself as a member, or (space admins) add anyone"""
    service = SpaceService(supabase)
    self_join = member.user_id == user_data["id"] and member.role == MembershipRole.MEMBER
    if not (self_join and service.get_space_by_id(space_id).visibility == SpaceVisibility.PUBLIC):
        check_space_admin(space_id, user_data, supabase)
    return service.add_space_member(space_id, member)


@router.put("/spaces/{space_id}/members/{user_id}", response_model=SpaceMembershipResponse)
async def update_space_member(
    space_id: str,
    user_id: str,
    updates: MembershipUpdate,
    user_data: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_user_supabase)
):
    check_space_admin(space_id, user_data, supabase)
    return SpaceService(supabase).update_space_member(space_id, user_id, updates)


@router.get("/spaces/{space_id}/role", response_model=SpaceRoleResponse)
async def my_space_role(
    space_id: str,
    user_data: Dict = Depends(get_current_user),
    service: SpaceService = Depends(get_space_service)
):
    """The caller's role in a space"""
    user_id = user_data["id"]
    return SpaceRoleResponse(
        space_id=space_id,
        user_id=user_id,
        role=service.get_user_space_role(space_id, user_id),
        is_admin=service.is_space_admin(space_id, user_id),
        is_member=service.is_space_member(space_id, user_id),
    )
