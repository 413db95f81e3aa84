from fastapi import APIRouter, Depends, status
from mvo.database.supabase_client import get_supabase
from mvo.modules.comments.schemas import (
    CommentCreate, CommentResponse, CommentVoteStatus, CommentVotesRequest, CommentCountResponse
)
from mvo.modules.comments.service import CommentService
from mvo.core.dependencies import get_current_user, get_optional_user, get_user_supabase
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(tags=["comments"])


def get_comment_service(supabase: Client = Depends(get_supabase)) -> CommentService:
    return CommentService(supabase)


def get_user_comment_service(supabase: Client = Depends(get_user_supabase)) -> CommentService:
    return CommentService(supabase)


@router.get("/ideas/{idea_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    idea_id: str,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: CommentService = Depends(get_comment_service)
):
    """Comment tree for an idea; signed-in callers also get their own vote flags"""
    return service.get_comments(idea_id, user_data["id"] if user_data else None)


@router.get("/ideas/{idea_id}/comments/count", response_model=CommentCountResponse)
async def comment_count(
    idea_id: str,
    service: CommentService = Depends(get_comment_service)
):
    return CommentCountResponse(idea_id=idea_id, count=service.get_comment_count(idea_id))


@router.post("/ideas/{idea_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    idea_id: str,
    data: CommentCreate,
    user_data: Dict = Depends(get_current_user),
    service: CommentService = Depends(get_user_comment_service)
):
    return service.add_comment(idea_id, data, user_data["id"])


@router.post("/comments/{comment_id}/upvote", response_model=CommentResponse)
async def upvote_comment(
    comment_id: str,
    user_data: Dict = Depends(get_current_user),
    service: CommentService = Depends(get_user_comment_service)
):
    """Toggle the caller's upvote"""
    return service.toggle_upvote(comment_id, user_data["id"])


@router.post("/comments/{comment_id}/downvote", response_model=CommentResponse)
async def downvote_comment(
    comment_id: str,
    user_data: Dict = Depends(get_current_user),
    service: CommentService = Depends(get_user_comment_service)
):
    """Toggle the caller's downvote"""
    return service.toggle_downvote(comment_id, user_data["id"])


@router.post("/comments/votes", response_model=Dict[str, CommentVoteStatus])
async def my_comment_votes(
    request: CommentVotesRequest,
    user_data: Dict = Depends(get_current_user),
    service: CommentService = Depends(get_user_comment_service)
):
    return service.get_user_comment_votes(request.comment_ids, user_data["id"])


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: str,
    user_data: Dict = Depends(get_current_user),
    service: CommentService = Depends(get_user_comment_service)
):
    service.delete_comment(comment_id, user_data)
