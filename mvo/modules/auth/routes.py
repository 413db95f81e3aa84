from fastapi import APIRouter, Depends
from mvo.core.dependencies import get_current_user, is_super_user
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me")
async def get_me(user_data: Dict = Depends(get_current_user)):
    """Identity behind the bearer token"""
    return {
        "id": user_data["id"],
        "email": user_data.get("email"),
        "user_metadata": user_data.get("user_metadata") or {},
        "is_super_user": is_super_user(user_data),
    }
