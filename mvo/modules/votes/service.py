from supabase import Client
from mvo.modules.ideas.mapping import map_rpc_idea
from mvo.modules.ideas.schemas import IdeaResponse
from mvo.modules.votes.schemas import UserVotes, VoteType
from typing import Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class VoteService:
    """Vote reads and writes. The client must carry the voter's JWT for the RPCs."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def toggle_vote(self, idea_id: str, vote_type: VoteType) -> IdeaResponse:
        """Toggle one vote type through toggle_idea_vote and return the updated idea"""
        try:
            result = self.supabase.rpc("toggle_idea_vote", {
                "p_idea_id": idea_id,
                "p_vote_type": VoteType(vote_type).value,
            }).execute()
            row = result.data[0] if isinstance(result.data, list) and result.data else result.data
            if not row:
                raise HTTPException(status_code=404, detail="Idea not found")
            return map_rpc_idea(row)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error toggling {vote_type} vote on idea {idea_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_vote(self, idea_id: str, user_id: str) -> Optional[VoteType]:
        """Return one vote type the user holds on the idea, if any"""
        try:
            result = self.supabase.table("idea_votes")\
                .select("vote_type")\
                .eq("idea_id", idea_id)\
                .eq("voter_id", user_id)\
                .limit(1)\
                .execute()
            if not result.data:
                return None
            return VoteType(result.data[0]["vote_type"])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_votes(self, idea_id: str, user_id: str) -> UserVotes:
        try:
            result = self.supabase.table("idea_votes")\
                .select("vote_type")\
                .eq("idea_id", idea_id)\
                .eq("voter_id", user_id)\
                .execute()
            held = {row["vote_type"] for row in result.data or []}
            return UserVotes(use="use" in held, dislike="dislike" in held, pay="pay" in held)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_votes_for_ideas(self, idea_ids: List[str]) -> Dict[str, UserVotes]:
        """Batch lookup through get_user_votes_for_ideas; every requested id is present in the result"""
        if not idea_ids:
            return {}
        try:
            result = self.supabase.rpc("get_user_votes_for_ideas", {
                "p_idea_ids": idea_ids,
            }).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        votes = result.data or {}
        if not isinstance(votes, dict):
            logger.warning("Invalid votes response format, treating as no votes")
            votes = {}
        out = {}
        for idea_id in idea_ids:
            entry = votes.get(idea_id) or {}
            out[idea_id] = UserVotes(
                use=bool(entry.get("use")),
                dislike=bool(entry.get("dislike")),
                pay=bool(entry.get("pay")),
            )
        return out

    def set_vote(self, idea_id: str, user_id: str, target: UserVotes) -> Optional[IdeaResponse]:
        """Bring the stored votes in line with target by toggling only the types that differ"""
        current = self.get_user_votes(idea_id, user_id)
        updated = None
        for vote_type in VoteType:
            if getattr(current, vote_type.value) != getattr(target, vote_type.value):
                updated = self.toggle_vote(idea_id, vote_type)
        if updated is None:
            logger.debug(f"Votes for idea {idea_id} already match target")
        return updated
