from fastapi import APIRouter, Depends, Query
from mvo.database.supabase_client import get_supabase
from mvo.modules.ideas.schemas import (
    IdeaCreate, IdeaUpdate, IdeaResponse, AdvancedFilterRequest, FilteredIdeasResponse,
    UserIdeasAnalytics, IdeaVersionCreate, IdeaVersionResponse, SetActiveVersionRequest
)
from mvo.modules.ideas.service import IdeaService
from mvo.core.dependencies import get_current_user, get_user_supabase, check_idea_owner, check_space_member
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/ideas", tags=["ideas"])


def get_idea_service(supabase: Client = Depends(get_supabase)) -> IdeaService:
    return IdeaService(supabase)


def get_user_idea_service(supabase: Client = Depends(get_user_supabase)) -> IdeaService:
    """Idea service acting as the caller, for writes checked by row level security"""
    return IdeaService(supabase)


@router.get("", response_model=List[IdeaResponse])
async def list_ideas(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    space_id: Optional[str] = None,
    service: IdeaService = Depends(get_idea_service)
):
    """List ideas, newest first, optionally within one space"""
    return service.list_ideas(limit=limit, offset=offset, space_id=space_id)


@router.get("/featured", response_model=List[IdeaResponse])
async def featured_ideas(
    limit: int = Query(5, ge=1, le=50),
    service: IdeaService = Depends(get_idea_service)
):
    return service.get_featured_ideas(limit)


@router.get("/trending", response_model=List[IdeaResponse])
async def trending_ideas(
    limit: int = Query(5, ge=1, le=50),
    service: IdeaService = Depends(get_idea_service)
):
    return service.get_trending_ideas(limit)


@router.get("/new", response_model=List[IdeaResponse])
async def new_ideas(
    limit: int = Query(2, ge=1, le=50),
    service: IdeaService = Depends(get_idea_service)
):
    return service.get_new_ideas(limit)


@router.get("/filter", response_model=List[IdeaResponse])
async def filter_ideas(
    sort_by: str = "date",
    tags: Optional[List[str]] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: IdeaService = Depends(get_idea_service)
):
    """Filter by tags (any match) and sort by date, popularity or comments"""
    return service.get_ideas_with_filters(limit=limit, offset=offset, sort_by=sort_by, tags=tags)


@router.post("/search", response_model=FilteredIdeasResponse)
async def search_ideas(
    filters: AdvancedFilterRequest,
    service: IdeaService = Depends(get_idea_service)
):
    """Full-text search with numeric filter conditions, paginated with a total count"""
    return service.get_ideas_with_advanced_filters(filters)


@router.get("/tags", response_model=List[str])
async def list_tags(service: IdeaService = Depends(get_idea_service)):
    return service.list_tags()


@router.get("/mine", response_model=List[IdeaResponse])
async def my_ideas(
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(get_current_user),
    service: IdeaService = Depends(get_idea_service)
):
    return service.get_user_ideas(user_data["id"], limit=limit, offset=offset)


@router.get("/mine/analytics", response_model=UserIdeasAnalytics)
async def my_ideas_analytics(
    user_data: Dict = Depends(get_current_user),
    service: IdeaService = Depends(get_idea_service)
):
    """Engagement, impact and feasibility stats over the caller's ideas"""
    return service.get_user_ideas_analytics(user_data["id"])


@router.get("/{idea_id}", response_model=IdeaResponse)
async def get_idea(
    idea_id: str,
    service: IdeaService = Depends(get_idea_service)
):
    return service.get_idea_by_id(idea_id)


@router.post("", response_model=IdeaResponse, status_code=201)
async def create_idea(
    idea_data: IdeaCreate,
    user_data: Dict = Depends(get_current_user),
    service: IdeaService = Depends(get_user_idea_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Create a new idea (space members only when posting into a space)"""
    if idea_data.space_id:
        check_space_member(idea_data.space_id, user_data, supabase)
    return service.create_idea(idea_data, user_data["id"])


@router.put("/{idea_id}", response_model=IdeaResponse)
async def update_idea(
    idea_id: str,
    idea_data: IdeaUpdate,
    user_data: Dict = Depends(get_current_user),
    service: IdeaService = Depends(get_user_idea_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Update idea (creator or super user)"""
    check_idea_owner(idea_id, user_data, supabase)
    return service.update_idea(idea_id, idea_data)


@router.delete("/{idea_id}", status_code=204)
async def delete_idea(
    idea_id: str,
    user_data: Dict = Depends(get_current_user),
    service: IdeaService = Depends(get_user_idea_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Delete idea (creator or super user)"""
    check_idea_owner(idea_id, user_data, supabase)
    service.delete_idea(idea_id)
    return None


@router.get("/{idea_id}/versions", response_model=List[IdeaVersionResponse])
async def list_versions(
    idea_id: str,
    service: IdeaService = Depends(get_idea_service)
):
    return service.list_versions(idea_id)


@router.post("/{idea_id}/versions", response_model=IdeaVersionResponse, status_code=201)
async def create_version(
    idea_id: str,
    version_data: IdeaVersionCreate,
    user_data: Dict = Depends(get_current_user),
    service: IdeaService = Depends(get_user_idea_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Snapshot the idea as a new version (creator or super user)"""
    check_idea_owner(idea_id, user_data, supabase)
    return service.create_version(idea_id, version_data)


@router.post("/{idea_id}/versions/active", response_model=IdeaVersionResponse)
async def set_active_version(
    idea_id: str,
    request: SetActiveVersionRequest,
    user_data: Dict = Depends(get_current_user),
    service: IdeaService = Depends(get_user_idea_service),
    supabase: Client = Depends(get_user_supabase)
):
    check_idea_owner(idea_id, user_data, supabase)
    return service.set_active_version(idea_id, request.version_id)
