from supabase import Client
from mvo.modules.comments.schemas import CommentCreate, CommentResponse, CommentVoteStatus
from mvo.core.dependencies import is_super_user
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

MAX_REPLY_DEPTH = 4
REACTIONS = ("upvote", "downvote")

COMMENT_SELECT = """
    id,
    idea_id,
    user_id,
    parent_comment_id,
    content,
    created_at,
    public_user_profiles!comments_user_id_fkey (
        username,
        full_name,
        profile_image_url
    ),
    comment_votes (
        reaction_type
    )
"""


def usefulness_score(upvotes: int, downvotes: int) -> float:
    """0 without votes; otherwise centred on 2.5 and capped at 5"""
    total = upvotes + downvotes
    if total == 0:
        return 0
    return min(5, (upvotes - downvotes) / (total + 1) * 5 + 2.5)


def map_db_comment(row: Dict[str, Any]) -> CommentResponse:
    reactions = [v.get("reaction_type") for v in row.get("comment_votes") or []]
    upvotes = reactions.count("upvote")
    downvotes = reactions.count("downvote")
    profile = row.get("public_user_profiles") or {}
    return CommentResponse(
        id=row["id"],
        idea_id=row["idea_id"],
        author=profile.get("username") or profile.get("full_name") or "Anonymous",
        author_image=profile.get("profile_image_url"),
        author_id=row.get("user_id"),
        content=row.get("content") or "",
        created_at=row.get("created_at"),
        upvotes=upvotes,
        downvotes=downvotes,
        usefulness_score=usefulness_score(upvotes, downvotes),
        parent_id=row.get("parent_comment_id"),
    )


def build_comment_tree(
    comments: List[CommentResponse],
    parent_id: Optional[str] = None,
    depth: int = 0
) -> List[CommentResponse]:
    """Nest replies under their parents, keeping input order; replies deeper than four levels are dropped"""
    if depth >= MAX_REPLY_DEPTH:
        return []
    return [
        comment.model_copy(update={"replies": build_comment_tree(comments, comment.id, depth + 1)})
        for comment in comments
        if comment.parent_id == parent_id
    ]


class CommentService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_comments(self, idea_id: str, user_id: Optional[str] = None) -> List[CommentResponse]:
        """Comment tree for an idea, newest first at every level"""
        try:
            result = self.supabase.table("comments")\
                .select(COMMENT_SELECT)\
                .eq("idea_id", idea_id)\
                .is_("deleted_at", "null")\
                .order("created_at", desc=True)\
                .execute()
            comments = [map_db_comment(row) for row in result.data or []]
            if user_id and comments:
                votes = self.get_user_comment_votes([c.id for c in comments], user_id)
                comments = [
                    c.model_copy(update=votes[c.id].model_dump())
                    for c in comments
                ]
            return build_comment_tree(comments)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error loading comments for idea {idea_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_comment_by_id(self, comment_id: str, user_id: Optional[str] = None) -> CommentResponse:
        try:
            result = self.supabase.table("comments")\
                .select(COMMENT_SELECT)\
                .eq("id", comment_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Comment not found")
            comment = map_db_comment(result.data)
            status = CommentVoteStatus()
            if user_id:
                reaction = self._get_reaction(comment_id, user_id)
                status = CommentVoteStatus(upvoted=reaction == "upvote", downvoted=reaction == "downvote")
            return comment.model_copy(update=status.model_dump())
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_comment(self, idea_id: str, data: CommentCreate, user_id: str) -> CommentResponse:
        content = data.content.strip()
        if not content:
            raise HTTPException(status_code=400, detail="Comment content cannot be empty")
        try:
            result = self.supabase.table("comments").insert({
                "idea_id": idea_id,
                "user_id": user_id,
                "content": content,
                "parent_comment_id": data.parent_id or None,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create comment")
            logger.info(f"User {user_id} commented on idea {idea_id}")
            return self.get_comment_by_id(result.data[0]["id"], user_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error adding comment to idea {idea_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def _get_reaction(self, comment_id: str, user_id: str) -> Optional[str]:
        result = self.supabase.table("comment_votes")\
            .select("reaction_type")\
            .eq("comment_id", comment_id)\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            return None
        return result.data.get("reaction_type")

    def _toggle_reaction(self, comment_id: str, user_id: str, reaction: str) -> CommentResponse:
        """Same reaction twice removes it; the other reaction is replaced"""
        try:
            existing = self._get_reaction(comment_id, user_id)
            self.supabase.table("comment_votes")\
                .delete()\
                .eq("comment_id", comment_id)\
                .eq("user_id", user_id)\
                .execute()
            if existing != reaction:
                self.supabase.table("comment_votes").insert({
                    "comment_id": comment_id,
                    "user_id": user_id,
                    "reaction_type": reaction,
                }).execute()
            return self.get_comment_by_id(comment_id, user_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error toggling {reaction} on comment {comment_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def toggle_upvote(self, comment_id: str, user_id: str) -> CommentResponse:
        return self._toggle_reaction(comment_id, user_id, "upvote")

    def toggle_downvote(self, comment_id: str, user_id: str) -> CommentResponse:
        return self._toggle_reaction(comment_id, user_id, "downvote")

    def get_comment_count(self, idea_id: str) -> int:
        """Top-level, non-deleted comments only"""
        try:
            result = self.supabase.table("comments")\
                .select("id", count="exact")\
                .eq("idea_id", idea_id)\
                .is_("parent_comment_id", "null")\
                .is_("deleted_at", "null")\
                .execute()
            return result.count or 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_comment_votes(self, comment_ids: List[str], user_id: str) -> Dict[str, CommentVoteStatus]:
        out = {comment_id: CommentVoteStatus() for comment_id in comment_ids}
        if not comment_ids:
            return out
        try:
            result = self.supabase.table("comment_votes")\
                .select("comment_id, reaction_type")\
                .in_("comment_id", comment_ids)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        for row in result.data or []:
            status = out.get(row.get("comment_id"))
            if status is None:
                continue
            if row.get("reaction_type") == "upvote":
                status.upvoted = True
            elif row.get("reaction_type") == "downvote":
                status.downvoted = True
        return out

    def delete_comment(self, comment_id: str, user_data: dict) -> None:
        """Soft delete; only the author or a super user may delete"""
        try:
            result = self.supabase.table("comments")\
                .select("id, user_id")\
                .eq("id", comment_id)\
                .is_("deleted_at", "null")\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Comment not found")
            if result.data.get("user_id") != user_data["id"] and not is_super_user(user_data):
                raise HTTPException(status_code=403, detail="Only the author can delete this comment")
            self.supabase.table("comments")\
                .update({"deleted_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", comment_id)\
                .execute()
            logger.info(f"Comment {comment_id} deleted by {user_data['id']}")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
