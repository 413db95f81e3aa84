"""
Core dependencies for authentication and ownership checks
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from mvo.database.supabase_client import SupabaseClient, get_supabase
from mvo.modules.auth.service import AuthService
from mvo.modules.spaces.service import SpaceService
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(credentials.credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(optional_security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Same as get_current_user, but anonymous readers get None instead of a 401"""
    if credentials is None:
        return None
    try:
        return auth_service.get_current_user(credentials.credentials)
    except HTTPException:
        return None


def get_user_supabase(
    credentials: HTTPAuthorizationCredentials = Security(security),
    user_data: dict = Depends(get_current_user)
) -> Client:
    """Supabase client acting as the verified caller (for RPCs that use auth.uid())"""
    return SupabaseClient.for_user(credentials.credentials)


def is_super_user(user_data: Optional[Dict[str, Any]]) -> bool:
    """Check if user is a super user from app_metadata"""
    if not user_data:
        return False
    # app_metadata is set server-side and cannot be modified by users
    app_metadata = user_data.get("app_metadata") or {}
    return app_metadata.get("type") == "super_user"


def check_idea_owner(idea_id: str, user_data: dict, supabase: Client) -> dict:
    """Allow if super_user or creator of the idea"""
    if is_super_user(user_data):
        return user_data
    result = supabase.table("ideas")\
        .select("creator_id")\
        .eq("id", idea_id)\
        .maybe_single()\
        .execute()
    if not result or not result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Idea not found"
        )
    if result.data.get("creator_id") != user_data["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the creator of this idea can modify it"
        )
    return user_data


def check_space_admin(space_id: str, user_data: dict, supabase: Client) -> dict:
    """Check if user is an admin or moderator of a space, or a super user"""
    if is_super_user(user_data):
        return user_data
    if SpaceService(supabase).is_space_admin(space_id, user_data["id"]):
        return user_data
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Only space admins can perform this action"
    )


def check_space_member(space_id: str, user_data: dict, supabase: Client) -> dict:
    """Check if user is a member of a space (directly or through its team) or a super user"""
    if is_super_user(user_data):
        return user_data
    if SpaceService(supabase).is_space_member(space_id, user_data["id"]):
        return user_data
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You must be a member of this space"
    )
